# tokengate Core Module
from .config import Settings, get_settings
from .logging import get_logger, setup_logging

__all__ = [
    "Settings",
    "get_settings",
    "get_logger",
    "setup_logging",
]

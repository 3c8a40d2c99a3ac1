# tokengate API
from tokengate.api.router import api_router

__all__ = ["api_router"]

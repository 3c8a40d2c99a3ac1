# tokengate Stores
from tokengate.store.base import TokenStore
from tokengate.store.memory import InMemoryTokenStore
from tokengate.store.sql import SQLTokenStore

__all__ = [
    "InMemoryTokenStore",
    "SQLTokenStore",
    "TokenStore",
]

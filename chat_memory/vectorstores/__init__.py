"""Vector store backends for memory records."""

from .base import BaseVectorStore, new_memory_id
from .in_memory import InMemoryVectorStore
from .sqlite import SQLiteVectorStore

__all__ = [
    "BaseVectorStore",
    "new_memory_id",
    "InMemoryVectorStore",
    "SQLiteVectorStore",
]

"""
Persistence layer.

Provides:
- Stable hashing for content-addressable caching
- SQLite-backed KV store for memory records and embeddings
"""

from .hashing import stable_hash
from .sqlite_store import KVStore

__all__ = [
    "stable_hash",
    "KVStore",
]

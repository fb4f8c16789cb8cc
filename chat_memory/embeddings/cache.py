"""
Embedding cache - wrap any embedder with a SQLite-backed cache.

Caches embeddings by content hash to avoid recomputing.
"""

import logging
from typing import List, Sequence

import numpy as np

from chat_memory.persist.hashing import stable_hash
from chat_memory.persist.sqlite_store import KVStore
from .base import BaseEmbedder

logger = logging.getLogger(__name__)


class CachingEmbedder(BaseEmbedder):
    """
    Wrapper for an embedder that caches vectors.

    Key = blake2b(text + model_name)
    Value = float32 vector bytes

    Usage:
        >>> kv = KVStore(Path("data/cache/cache.db"))
        >>> embedder = CachingEmbedder(OllamaEmbedder(), kv, "nomic-embed-text")
        >>> embedder.embed("hello")   # miss, calls Ollama
        >>> embedder.embed("hello")   # hit
    """

    def __init__(self, embedder: BaseEmbedder, kv: KVStore, model_name: str):
        """
        Args:
            embedder: Underlying embedding service
            kv: KVStore instance
            model_name: Model identifier for cache key
        """
        self.embedder = embedder
        self.kv = kv
        self.model_name = model_name
        self.dimension = embedder.dimension

        self.hits = 0
        self.misses = 0

    def _cache_key(self, text: str) -> str:
        return stable_hash({"text": text, "model": self.model_name})

    def embed(self, text: str) -> List[float]:
        key = self._cache_key(text)
        cached_bytes = self.kv.get("embeddings", key)

        if cached_bytes is not None:
            self.hits += 1
            return np.frombuffer(cached_bytes, dtype=np.float32).astype(np.float64).tolist()

        self.misses += 1
        vector = self.embedder.embed(text)
        self.kv.set("embeddings", key, np.asarray(vector, dtype=np.float32).tobytes())
        return vector

    def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        return [self.embed(text) for text in texts]

    def get_stats(self) -> dict:
        """Get cache statistics."""
        total = self.hits + self.misses
        hit_rate = self.hits / total if total > 0 else 0.0

        return {
            "hits": self.hits,
            "misses": self.misses,
            "total": total,
            "hit_rate": hit_rate,
        }

    def reset_stats(self) -> None:
        self.hits = 0
        self.misses = 0

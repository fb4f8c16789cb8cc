"""Embedding service interface and a deterministic mock."""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Sequence
import logging
import re

import numpy as np

from chat_memory.persist.hashing import stable_hash

logger = logging.getLogger(__name__)


class BaseEmbedder(ABC):
    """
    Abstract base class for embedding services.

    Implementations must raise on failure rather than return an empty or
    all-zero vector.
    """

    dimension: int

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        """Embed a single text."""
        pass

    def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed several texts. Default implementation calls embed() per text."""
        return [self.embed(text) for text in texts]

    def is_available(self) -> bool:
        try:
            self.embed("test")
            return True
        except Exception as e:
            logger.warning(f"Embedding service is not available: {e}")
            return False


def validate_vector(vector: Sequence[float], source: str) -> List[float]:
    """Reject empty or all-zero embeddings."""
    values = [float(v) for v in vector]
    if not values:
        raise RuntimeError(f"{source} returned an empty embedding")
    if not any(values):
        raise RuntimeError(f"{source} returned an all-zero embedding")
    return values


_TOKEN_PATTERN = re.compile(r"[a-z0-9]+|[\u4e00-\u9fff]")


class MockEmbedder(BaseEmbedder):
    """
    Deterministic embedder for tests and offline runs.

    Hashes each lowercase word (and each CJK character) into one of
    `dimension` buckets and L2-normalizes the counts, so texts sharing
    words have positive cosine similarity and identical texts score 1.0.
    """

    def __init__(self, dimension: int = 384):
        self.dimension = dimension

    def _bucket(self, token: str) -> int:
        return int(stable_hash(token)[:8], 16) % self.dimension

    def embed(self, text: str) -> List[float]:
        tokens = _TOKEN_PATTERN.findall(text.lower())
        if not tokens:
            raise RuntimeError(f"Cannot embed text without word tokens: {text!r}")

        vector = np.zeros(self.dimension, dtype=np.float64)
        for token in tokens:
            vector[self._bucket(token)] += 1.0

        vector /= np.linalg.norm(vector)
        return vector.tolist()

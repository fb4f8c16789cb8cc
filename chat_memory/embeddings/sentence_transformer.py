"""Local embeddings with sentence-transformers."""
from __future__ import annotations
from typing import List, Optional, Sequence

from sentence_transformers import SentenceTransformer

from .base import BaseEmbedder, validate_vector


class SentenceTransformerEmbedder(BaseEmbedder):
    """
    Embedding service using a SentenceTransformer model.

    Embeddings are L2-normalized so cosine similarity equals the dot product.
    """

    def __init__(self, model_name: str = "all-MiniLM-L6-v2", model: Optional[SentenceTransformer] = None):
        self.model_name = model_name
        self.model = model or SentenceTransformer(model_name)
        self.dimension = self.model.get_sentence_embedding_dimension()

    def embed(self, text: str) -> List[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        vectors = self.model.encode(
            list(texts),
            convert_to_numpy=True,
            normalize_embeddings=True,
        )
        return [validate_vector(v, f"SentenceTransformer {self.model_name}") for v in vectors]

"""
Embedding services.

SentenceTransformerEmbedder lives in `chat_memory.embeddings.sentence_transformer`
and needs the `local` extra.
"""

from .base import BaseEmbedder, MockEmbedder
from .cache import CachingEmbedder
from .ollama_embedder import OllamaEmbedder

__all__ = [
    "BaseEmbedder",
    "MockEmbedder",
    "CachingEmbedder",
    "OllamaEmbedder",
]

"""
Memory consolidation and retrieval.

Ingestion extracts candidate statements from a conversation and resolves
each one against the store (INSERT / UPDATE / DELETE / SKIP); retrieval
searches with a per-query threshold and re-filters by relevance.
"""

from .schemas import (
    ClassificationOutcome,
    MemoryAction,
    MemoryEvent,
    MemoryRecord,
    MemoryType,
    Message,
)
from .similarity import cosine_similarity, cross_lingual_relevant, extract_keywords
from .errors import (
    ClassificationOracleFailure,
    EmbeddingFailure,
    ExtractionFailure,
    MemoryEngineError,
    StoreFailure,
)
from .extractor import MemoryExtractor, parse_memories
from .classifier import ActionClassifier, parse_decision
from .retrieval import RetrievalEngine, determine_threshold, filter_by_relevance, format_memory_context
from .engine import Memory, create_memory

__all__ = [
    "ClassificationOutcome",
    "MemoryAction",
    "MemoryEvent",
    "MemoryRecord",
    "MemoryType",
    "Message",
    "cosine_similarity",
    "cross_lingual_relevant",
    "extract_keywords",
    "ClassificationOracleFailure",
    "EmbeddingFailure",
    "ExtractionFailure",
    "MemoryEngineError",
    "StoreFailure",
    "MemoryExtractor",
    "parse_memories",
    "ActionClassifier",
    "parse_decision",
    "RetrievalEngine",
    "determine_threshold",
    "filter_by_relevance",
    "format_memory_context",
    "Memory",
    "create_memory",
]

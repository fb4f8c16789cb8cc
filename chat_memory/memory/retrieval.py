"""
Memory retrieval with adaptive thresholds.

Cosine scores are not comparable across languages and query shapes, so the
threshold is picked per query, lowered once when nothing is found, and the
results are re-filtered by keyword and cross-lingual relevance.
"""

import logging
from typing import Any, Dict, List, Optional

from chat_memory.config.settings import MemorySettings
from chat_memory.embeddings.base import BaseEmbedder
from chat_memory.vectorstores.base import BaseVectorStore
from .schemas import MemoryRecord
from .similarity import cross_lingual_relevant, extract_keywords

logger = logging.getLogger(__name__)

# Broad "tell me everything about me" queries
COMPREHENSIVE_PATTERNS = (
    "介绍",
    "告诉我",
    "关于我",
    "我的信息",
    "我是谁",
    "说说我",
    "讲讲我",
    "describe me",
    "tell me about",
    "introduce me",
    "about me",
    "who am i",
    "my information",
)

# Questions about a specific preference
PREFERENCE_PATTERNS = (
    "喜欢喝",
    "喜欢吃",
    "喜欢玩",
    "喜欢看",
    "爱好",
    "什么食物",
    "什么运动",
    "什么饮料",
    "like to",
    "love to",
    "enjoy",
    "favorite",
    "what food",
    "what sport",
    "what drink",
    "my favorite",
    "i like",
    "i love",
    "i enjoy",
)


def is_comprehensive_query(query: str) -> bool:
    lower_query = query.lower()
    return any(pattern in lower_query for pattern in COMPREHENSIVE_PATTERNS)


def is_preference_query(query: str) -> bool:
    lower_query = query.lower()
    return any(pattern in lower_query for pattern in PREFERENCE_PATTERNS)


def determine_threshold(
    query: str,
    threshold: Optional[float] = None,
    settings: Optional[MemorySettings] = None
) -> float:
    """
    Pick the similarity threshold for a query.

    An explicit threshold wins; comprehensive queries get a very low
    threshold, preference questions a medium one, everything else the
    configured default.
    """
    settings = settings or MemorySettings()

    if threshold is not None:
        return threshold

    if is_comprehensive_query(query):
        logger.debug(f"Comprehensive query, using threshold {settings.comprehensive_threshold}")
        return settings.comprehensive_threshold

    if is_preference_query(query):
        logger.debug(f"Preference query, using threshold {settings.preference_threshold}")
        return settings.preference_threshold

    return settings.similarity_threshold


def filter_by_relevance(
    query: str,
    results: List[MemoryRecord],
    settings: Optional[MemorySettings] = None
) -> List[MemoryRecord]:
    """
    Drop results with no relevance signal.

    Small result sets and comprehensive queries are returned as-is. Otherwise
    a result is kept when it contains a query keyword, matches through the
    cross-lingual concept table, or scores above the relevance bands.
    """
    settings = settings or MemorySettings()

    if len(results) <= settings.trusted_result_count:
        logger.debug("Skipping relevance filtering - too few results")
        return results

    if is_comprehensive_query(query):
        logger.debug("Comprehensive query, skipping relevance filtering")
        return results

    keywords = extract_keywords(query)
    if not keywords:
        logger.debug("No meaningful keywords extracted, returning all results")
        return results

    filtered = []
    for record in results:
        lower_content = record.content.lower()
        score = record.score or 0.0

        is_relevant = (
            any(keyword in lower_content for keyword in keywords)
            or cross_lingual_relevant(query, record.content)
            or score > settings.relevance_high_score
            or score > settings.relevance_fallback_score
        )

        if is_relevant:
            filtered.append(record)
        else:
            logger.debug(
                f"Filtered out irrelevant memory: '{record.content}' "
                f"(score: {score:.3f}, keywords: {keywords})"
            )

    return filtered


def format_memory_context(memories: List[MemoryRecord]) -> str:
    """
    Format retrieved memories for injection into an LLM prompt.

    Returns:
        Bullet list block, or "" when there is nothing to inject
    """
    if not memories:
        return ""

    lines = ["[MEMORIES]"]
    for record in memories:
        lines.append(f"- {record.content}")
    lines.append("")

    return "\n".join(lines)


class RetrievalEngine:
    """Embeds a query and searches the store with adaptive thresholds."""

    def __init__(
        self,
        store: BaseVectorStore,
        embedder: BaseEmbedder,
        settings: Optional[MemorySettings] = None
    ):
        self.store = store
        self.embedder = embedder
        self.settings = settings or MemorySettings()

    def search(
        self,
        query: str,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = 10,
        threshold: Optional[float] = None,
        query_embedding: Optional[List[float]] = None
    ) -> List[MemoryRecord]:
        """
        Retrieve memories relevant to a query.

        Args:
            query: Query text
            filters: Scope filters passed to the store
            limit: Maximum results
            threshold: Explicit similarity threshold (skips adaptive choice)
            query_embedding: Precomputed embedding of the query

        Returns:
            Records ranked by descending score, each carrying `score`
        """
        embedding = query_embedding if query_embedding is not None else self.embedder.embed(query)
        effective = determine_threshold(query, threshold, self.settings)

        results = self.store.search(embedding, filters=filters, limit=limit, min_score=effective)

        escalation = self.settings.escalation_threshold
        if not results and effective > escalation:
            logger.debug(f"No results with threshold {effective}, retrying with {escalation}")
            results = self.store.search(embedding, filters=filters, limit=limit, min_score=escalation)
            effective = escalation

        logger.info(f"Found {len(results)} memories for query '{query}' with threshold {effective}")

        filtered = filter_by_relevance(query, results, self.settings)
        if not filtered:
            logger.warning(f"No relevant memories found for query '{query}' (threshold {effective})")

        return filtered

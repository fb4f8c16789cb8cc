"""
Similarity utilities for consolidation and retrieval.

Cosine similarity over embeddings, keyword extraction with a bilingual
(English/Chinese) stopword list, and a small cross-lingual concept table used
to keep relevant memories that share no literal keyword with the query.
"""

import logging
import re
from types import MappingProxyType
from typing import List, Sequence

import numpy as np

logger = logging.getLogger(__name__)


STOPWORDS = frozenset({
    # Chinese pronouns, particles and question words
    "我", "你", "他", "她", "它", "的", "是", "在", "有", "和", "与", "了",
    "吗", "呢", "吧", "啊", "什么", "怎么", "为什么", "哪里", "谁",
    # English
    "when", "where", "what", "how", "why", "who", "i", "you", "he", "she", "it",
    "is", "are", "was", "were", "am", "be", "been", "being", "a", "an", "the",
    "and", "or", "but", "if", "then", "that", "this", "these", "those",
})

# Concept -> synonyms in the other language (both directions)
CONCEPT_SYNONYMS = MappingProxyType({
    "food": ("食物", "吃", "喜欢吃", "爱吃"),
    "favorite": ("喜欢", "最爱", "偏爱", "钟爱"),
    "drink": ("喝", "饮料", "喜欢喝", "爱喝"),
    "sport": ("运动", "体育", "喜欢玩", "锻炼"),
    "hobby": ("爱好", "兴趣", "喜欢"),
    "食物": ("food", "eat", "favorite food"),
    "喜欢吃": ("like to eat", "love eating", "favorite food"),
    "喜欢喝": ("like to drink", "love drinking", "favorite drink"),
    "运动": ("sport", "exercise", "activity"),
    "爱好": ("hobby", "interest", "favorite"),
})

_NON_KEYWORD_CHARS = re.compile(r"[^a-z0-9\u4e00-\u9fa5\s]")
_MIN_KEYWORD_LENGTH = 2


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 instead of raising when the lengths differ or either vector
    has zero norm.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)

    if va.shape != vb.shape:
        logger.debug(f"Vector length mismatch ({va.size} vs {vb.size}), similarity set to 0.0")
        return 0.0

    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0.0 or norm_b == 0.0:
        logger.debug("Zero-norm vector, similarity set to 0.0")
        return 0.0

    similarity = float(np.dot(va, vb) / (norm_a * norm_b))
    return max(-1.0, min(1.0, similarity))


def is_stopword(word: str) -> bool:
    return word in STOPWORDS


def extract_keywords(text: str) -> List[str]:
    """
    Extract meaningful keywords from text.

    Lowercases, replaces anything but letters, digits, CJK ideographs and
    whitespace with spaces, then drops short tokens and stopwords.

    Returns:
        Deduplicated keywords in order of first appearance
    """
    cleaned = _NON_KEYWORD_CHARS.sub(" ", text.lower())

    keywords: List[str] = []
    for word in cleaned.split():
        if len(word) < _MIN_KEYWORD_LENGTH or is_stopword(word):
            continue
        if word not in keywords:
            keywords.append(word)

    logger.debug(f"Extracted keywords from '{text}': {keywords}")
    return keywords


def cross_lingual_relevant(query: str, memory_content: str) -> bool:
    """
    Check whether a memory is relevant to a query through a concept mapping.

    Requires the query to contain a concept, the memory to contain one of the
    concept's synonyms, and the concept's contextual guard to pass.
    """
    lower_query = query.lower()
    lower_memory = memory_content.lower()

    for concept, synonyms in CONCEPT_SYNONYMS.items():
        if concept not in lower_query:
            continue
        for synonym in synonyms:
            if synonym in lower_memory and _contextually_relevant(concept, synonym, lower_query, lower_memory):
                logger.debug(
                    f"Cross-language match: query contains '{concept}', "
                    f"memory '{memory_content}' contains '{synonym}'"
                )
                return True

    return False


def _contextually_relevant(concept: str, synonym: str, query: str, memory: str) -> bool:
    """Guard against coincidental keyword collisions for a concept match."""
    if concept in ("food", "食物") and ("吃" in synonym or "食物" in synonym):
        return ("food" in query or "favorite" in query) and ("吃" in memory or "食物" in memory)

    if concept in ("drink", "饮料") and ("喝" in synonym or "饮料" in synonym):
        return ("drink" in query or "favorite" in query) and ("喝" in memory or "饮料" in memory)

    if concept in ("sport", "运动") and ("运动" in synonym or "打" in synonym):
        return ("sport" in query or "exercise" in query) and (
            "运动" in memory or "打" in memory or "球" in memory
        )

    if concept == "favorite" and "喜欢" in memory:
        return True

    # Direct conceptual mapping
    return True

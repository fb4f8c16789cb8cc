"""
Unit tests for chat_memory/memory/similarity.py

Tests cosine similarity bounds and mismatch safety, keyword extraction and
the cross-lingual concept matching.
"""
import numpy as np
import pytest

from chat_memory.memory.similarity import (
    CONCEPT_SYNONYMS,
    STOPWORDS,
    cosine_similarity,
    cross_lingual_relevant,
    extract_keywords,
)


# ============================================================================
# Cosine similarity
# ============================================================================

def test_identical_vectors_score_one():
    vector = [0.3, -1.2, 4.0, 0.5]
    assert cosine_similarity(vector, vector) == pytest.approx(1.0)


def test_opposite_vectors_score_minus_one():
    assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)


def test_orthogonal_vectors_score_zero():
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)


def test_similarity_stays_in_bounds():
    """Random vectors always land in [-1, 1]."""
    rng = np.random.default_rng(7)
    for _ in range(50):
        a = rng.normal(size=16) * rng.uniform(0.001, 1000)
        b = rng.normal(size=16) * rng.uniform(0.001, 1000)
        score = cosine_similarity(a.tolist(), b.tolist())
        assert -1.0 <= score <= 1.0


def test_length_mismatch_returns_zero():
    assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0]) == 0.0


def test_zero_vector_returns_zero():
    assert cosine_similarity([0.0, 0.0, 0.0], [1.0, 2.0, 3.0]) == 0.0
    assert cosine_similarity([1.0, 2.0, 3.0], [0.0, 0.0, 0.0]) == 0.0


def test_empty_vectors_return_zero():
    assert cosine_similarity([], []) == 0.0


# ============================================================================
# Keyword extraction
# ============================================================================

def test_extract_keywords_drops_stopwords_and_punctuation():
    keywords = extract_keywords("What is my favorite food?")
    assert keywords == ["my", "favorite", "food"]


def test_extract_keywords_drops_short_tokens():
    assert extract_keywords("a b cd") == ["cd"]


def test_extract_keywords_deduplicates_in_order():
    assert extract_keywords("Pizza, pizza and PASTA") == ["pizza", "pasta"]


def test_extract_keywords_keeps_chinese():
    keywords = extract_keywords("喜欢 什么 运动")
    assert "喜欢" in keywords
    assert "运动" in keywords
    assert "什么" not in keywords


def test_extract_keywords_all_stopwords():
    assert extract_keywords("what is the") == []


def test_constant_tables_are_immutable():
    with pytest.raises(TypeError):
        CONCEPT_SYNONYMS["new"] = ("x",)
    assert isinstance(STOPWORDS, frozenset)


# ============================================================================
# Cross-lingual relevance
# ============================================================================

def test_food_query_matches_chinese_eating_memory():
    assert cross_lingual_relevant("What is my favorite food?", "我喜欢吃披萨")


def test_drink_query_matches_chinese_drinking_memory():
    assert cross_lingual_relevant("what drink do I like", "我爱喝绿茶")


def test_sport_query_requires_sport_context_in_memory():
    assert cross_lingual_relevant("what sport do I play", "我每周运动三次")


def test_chinese_query_matches_english_memory():
    assert cross_lingual_relevant("我的爱好是什么", "My hobby is painting")


def test_unrelated_query_does_not_match():
    assert not cross_lingual_relevant("where do I live", "我喜欢吃披萨")

"""
Unit tests for adaptive-threshold retrieval.

Tests:
- determine_threshold(): explicit, comprehensive, preference and default
- RetrievalEngine.search(): single escalation on empty results
- filter_by_relevance(): keyword, cross-lingual and score signals
- format_memory_context()
"""
import pytest
from unittest.mock import MagicMock

from chat_memory.config.settings import MemorySettings
from chat_memory.memory.retrieval import (
    RetrievalEngine,
    determine_threshold,
    filter_by_relevance,
    format_memory_context,
    is_comprehensive_query,
    is_preference_query,
)
from chat_memory.memory.schemas import MemoryRecord


def _record(content, score):
    return MemoryRecord(content=content, embedding=[1.0, 0.0], owner_id="u1", score=score)


# ============================================================================
# Threshold selection
# ============================================================================

def test_explicit_threshold_wins():
    assert determine_threshold("tell me about me", threshold=0.55) == 0.55


def test_explicit_zero_threshold_is_respected():
    assert determine_threshold("pizza", threshold=0.0) == 0.0


@pytest.mark.parametrize("query", ["Tell me about myself", "Who am I?", "介绍一下我", "关于我你知道什么"])
def test_comprehensive_queries_use_low_threshold(query):
    assert is_comprehensive_query(query)
    assert determine_threshold(query) == pytest.approx(0.1)


@pytest.mark.parametrize("query", ["What is my favorite drink?", "What do I enjoy doing?", "我喜欢喝什么"])
def test_preference_queries_use_medium_threshold(query):
    assert is_preference_query(query)
    assert determine_threshold(query) == pytest.approx(0.3)


def test_other_queries_use_default_threshold():
    assert determine_threshold("pizza") == pytest.approx(0.7)


def test_threshold_follows_settings():
    settings = MemorySettings(similarity_threshold=0.6, comprehensive_threshold=0.05)
    assert determine_threshold("pizza", settings=settings) == pytest.approx(0.6)
    assert determine_threshold("who am i", settings=settings) == pytest.approx(0.05)


# ============================================================================
# Escalation
# ============================================================================

@pytest.fixture
def engine_parts():
    store = MagicMock()
    embedder = MagicMock()
    embedder.embed.return_value = [1.0, 0.0]
    return store, embedder


def test_results_at_first_threshold_do_not_escalate(engine_parts):
    store, embedder = engine_parts
    store.search.return_value = [_record("User likes pizza", 0.8)]
    engine = RetrievalEngine(store, embedder)

    results = engine.search("pizza", filters={"owner_id": "u1"})

    assert [r.content for r in results] == ["User likes pizza"]
    store.search.assert_called_once_with(
        [1.0, 0.0], filters={"owner_id": "u1"}, limit=10, min_score=pytest.approx(0.7)
    )


def test_empty_result_escalates_once(engine_parts):
    store, embedder = engine_parts
    store.search.side_effect = [[], [_record("User likes pizza", 0.45)]]
    engine = RetrievalEngine(store, embedder)

    results = engine.search("pizza", filters={"owner_id": "u1"}, threshold=0.7)

    assert store.search.call_count == 2
    assert store.search.call_args_list[1].kwargs["min_score"] == pytest.approx(0.3)
    assert len(results) == 1
    assert all(r.score >= 0.3 for r in results)


def test_escalation_stops_after_one_retry(engine_parts):
    store, embedder = engine_parts
    store.search.return_value = []
    engine = RetrievalEngine(store, embedder)

    assert engine.search("pizza") == []
    assert store.search.call_count == 2


def test_no_escalation_at_or_below_escalation_threshold(engine_parts):
    store, embedder = engine_parts
    store.search.return_value = []
    engine = RetrievalEngine(store, embedder)

    engine.search("What is my favorite drink?")
    engine.search("pizza", threshold=0.2)

    assert store.search.call_count == 2


def test_precomputed_embedding_skips_embedder(engine_parts):
    store, embedder = engine_parts
    store.search.return_value = []
    engine = RetrievalEngine(store, embedder)

    engine.search("pizza", query_embedding=[0.0, 1.0])

    embedder.embed.assert_not_called()
    assert store.search.call_args_list[0].args[0] == [0.0, 1.0]


# ============================================================================
# Relevance filtering
# ============================================================================

def test_small_result_sets_are_trusted():
    results = [_record("User lives in Paris", 0.1), _record("User has a cat", 0.1)]
    assert filter_by_relevance("pizza toppings", results) == results


def test_filter_keeps_keyword_cross_lingual_and_high_score():
    results = [
        _record("User likes pizza with olives", 0.2),
        _record("我喜欢吃披萨", 0.2),
        _record("User enjoys long walks", 0.5),
        _record("User lives in Paris", 0.2),
    ]

    filtered = filter_by_relevance("What is my favorite food, pizza?", results)

    assert [r.content for r in filtered] == [
        "User likes pizza with olives",
        "我喜欢吃披萨",
        "User enjoys long walks",
    ]


def test_filter_uses_fallback_score_band():
    results = [_record(f"Unrelated memory {i}", 0.36) for i in range(3)] + [_record("Unrelated memory x", 0.1)]

    filtered = filter_by_relevance("pizza toppings", results)

    assert len(filtered) == 3


def test_comprehensive_query_is_not_filtered():
    results = [_record(f"Memory number {i}", 0.1) for i in range(5)]
    assert filter_by_relevance("tell me about me", results) == results


def test_query_without_keywords_is_not_filtered():
    results = [_record(f"Memory number {i}", 0.1) for i in range(5)]
    assert filter_by_relevance("what is it?", results) == results


# ============================================================================
# Context formatting
# ============================================================================

def test_format_memory_context():
    context = format_memory_context([_record("User likes pizza", 0.9), _record("User has a cat", 0.8)])
    assert context == "[MEMORIES]\n- User likes pizza\n- User has a cat\n"


def test_format_memory_context_empty():
    assert format_memory_context([]) == ""

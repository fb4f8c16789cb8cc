"""
Unit tests for embedding services.

Tests MockEmbedder determinism, CachingEmbedder hit/miss accounting, and the
Ollama and SentenceTransformer backends with mocked transports/models.
"""
import numpy as np
import pytest
import requests
from unittest.mock import MagicMock, patch

from chat_memory.embeddings.base import MockEmbedder, validate_vector
from chat_memory.embeddings.cache import CachingEmbedder
from chat_memory.embeddings.ollama_embedder import OllamaEmbedder
from chat_memory.memory.similarity import cosine_similarity


# ============================================================================
# MockEmbedder
# ============================================================================

def test_mock_embedder_is_deterministic_and_normalized(embedder):
    first = embedder.embed("User likes pizza")
    second = embedder.embed("user likes PIZZA!")

    assert first == second
    assert len(first) == 384
    assert np.linalg.norm(first) == pytest.approx(1.0)


def test_mock_embedder_shared_words_are_similar(embedder):
    score = cosine_similarity(embedder.embed("User likes pizza"), embedder.embed("pizza"))
    assert 0.3 < score < 0.7


def test_mock_embedder_rejects_empty_text(embedder):
    with pytest.raises(RuntimeError):
        embedder.embed("?!")


def test_validate_vector():
    assert validate_vector((1, 2), "test") == [1.0, 2.0]
    with pytest.raises(RuntimeError, match="empty"):
        validate_vector([], "test")
    with pytest.raises(RuntimeError, match="all-zero"):
        validate_vector([0.0, 0.0], "test")


# ============================================================================
# CachingEmbedder
# ============================================================================

def test_first_embed_miss_inserts_cache(kv):
    inner = MagicMock()
    inner.dimension = 4
    inner.embed.return_value = [0.1, 0.2, 0.3, 0.4]
    embedder = CachingEmbedder(inner, kv, "test-model")

    result = embedder.embed("test text")

    inner.embed.assert_called_once_with("test text")
    assert result == [0.1, 0.2, 0.3, 0.4]
    assert embedder.misses == 1
    assert embedder.hits == 0
    assert kv.stats("embeddings")["count"] == 1


def test_second_embed_hit_no_model_call(kv):
    inner = MagicMock()
    inner.dimension = 4
    inner.embed.return_value = [0.1, 0.2, 0.3, 0.4]
    embedder = CachingEmbedder(inner, kv, "test-model")

    embedder.embed("test text")
    cached = embedder.embed("test text")

    assert inner.embed.call_count == 1
    assert cached == pytest.approx([0.1, 0.2, 0.3, 0.4], abs=1e-6)
    assert embedder.get_stats() == {"hits": 1, "misses": 1, "total": 2, "hit_rate": 0.5}


def test_cache_key_includes_model(kv):
    inner = MagicMock()
    inner.dimension = 2
    inner.embed.return_value = [1.0, 0.0]

    CachingEmbedder(inner, kv, "model-a").embed("hello")
    CachingEmbedder(inner, kv, "model-b").embed("hello")

    assert inner.embed.call_count == 2


def test_cache_does_not_store_failures(kv):
    inner = MagicMock()
    inner.dimension = 2
    inner.embed.side_effect = RuntimeError("service down")
    embedder = CachingEmbedder(inner, kv, "test-model")

    with pytest.raises(RuntimeError):
        embedder.embed("hello")

    assert kv.stats("embeddings")["count"] == 0


def test_reset_stats(kv, embedder):
    cached = CachingEmbedder(embedder, kv, "mock")
    cached.embed("hello world")
    cached.reset_stats()

    assert cached.get_stats()["total"] == 0
    assert cached.dimension == embedder.dimension


# ============================================================================
# OllamaEmbedder
# ============================================================================

@patch("chat_memory.embeddings.ollama_embedder.requests.post")
def test_ollama_embed_success(mock_post):
    mock_post.return_value = MagicMock(status_code=200)
    mock_post.return_value.json.return_value = {"embedding": [0.1, 0.2, 0.3]}
    embedder = OllamaEmbedder(dimension=3)

    assert embedder.embed("hello") == [0.1, 0.2, 0.3]
    args, kwargs = mock_post.call_args
    assert args[0] == "http://localhost:11434/api/embeddings"
    assert kwargs["json"] == {"model": "nomic-embed-text", "prompt": "hello"}


@patch("chat_memory.embeddings.ollama_embedder.requests.post")
def test_ollama_embed_http_error(mock_post):
    mock_post.return_value = MagicMock(status_code=500, text="boom")

    with pytest.raises(RuntimeError, match="status 500"):
        OllamaEmbedder().embed("hello")


@patch("chat_memory.embeddings.ollama_embedder.requests.post")
def test_ollama_embed_connection_error(mock_post):
    mock_post.side_effect = requests.exceptions.ConnectionError("refused")

    with pytest.raises(RuntimeError, match="request failed"):
        OllamaEmbedder().embed("hello")


@patch("chat_memory.embeddings.ollama_embedder.requests.post")
def test_ollama_embed_empty_vector(mock_post):
    mock_post.return_value = MagicMock(status_code=200)
    mock_post.return_value.json.return_value = {"embedding": []}

    with pytest.raises(RuntimeError, match="empty"):
        OllamaEmbedder().embed("hello")


# ============================================================================
# SentenceTransformerEmbedder
# ============================================================================

def test_sentence_transformer_embedder_normalizes():
    pytest.importorskip("sentence_transformers")
    from chat_memory.embeddings.sentence_transformer import SentenceTransformerEmbedder

    model = MagicMock()
    model.get_sentence_embedding_dimension.return_value = 2
    model.encode.return_value = np.array([[0.6, 0.8]], dtype=np.float32)
    embedder = SentenceTransformerEmbedder("fake-model", model=model)

    assert embedder.dimension == 2
    assert embedder.embed("hello") == pytest.approx([0.6, 0.8])
    assert model.encode.call_args.kwargs["normalize_embeddings"] is True

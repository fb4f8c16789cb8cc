"""
Shared fixtures for memory engine unit tests.
"""
import pytest
from unittest.mock import MagicMock

from chat_memory.embeddings.base import MockEmbedder
from chat_memory.generation.generator import MockGenerator
from chat_memory.memory.schemas import MemoryRecord
from chat_memory.persist.sqlite_store import KVStore
from chat_memory.vectorstores.base import BaseVectorStore
from chat_memory.vectorstores.in_memory import InMemoryVectorStore


@pytest.fixture
def kv(tmp_path):
    """Create a temporary KVStore instance."""
    db_path = tmp_path / "cache.db"
    store = KVStore(db_path)
    yield store
    store.close()


@pytest.fixture
def embedder():
    """Deterministic token-hashing embedder."""
    return MockEmbedder(dimension=384)


@pytest.fixture
def generator():
    """Scripted generator that extracts nothing by default."""
    return MockGenerator()


@pytest.fixture
def store():
    """Empty in-memory vector store."""
    return InMemoryVectorStore(dimension=384)


@pytest.fixture
def mock_store():
    """MagicMock vector store with no existing memories."""
    mock = MagicMock(spec=BaseVectorStore)
    mock.search.return_value = []
    mock.add.return_value = "new-id"
    return mock


@pytest.fixture
def make_record(embedder):
    """Build a MemoryRecord embedded with the mock embedder."""
    def _make(content, owner_id="u1", score=None, **kwargs):
        return MemoryRecord(
            content=content,
            embedding=embedder.embed(content),
            owner_id=owner_id,
            score=score,
            **kwargs
        )
    return _make

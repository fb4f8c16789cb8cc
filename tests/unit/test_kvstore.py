"""
Unit tests for chat_memory/persist/sqlite_store.py and hashing.py

Tests thread-safe SQLite KV operations with WAL mode and stable hashing.
"""
import pytest
import threading

from chat_memory.persist.hashing import stable_hash
from chat_memory.persist.sqlite_store import KVStore


def test_set_get_delete_roundtrip(kv):
    """Basic set/get/delete operations."""
    kv.set("embeddings", "key1", b"value")

    assert kv.get("embeddings", "key1") == b"value"
    assert kv.delete("embeddings", "key1") is True
    assert kv.get("embeddings", "key1") is None
    assert kv.delete("embeddings", "key1") is False


def test_tables_are_independent(kv):
    kv.set("embeddings", "shared", b"vector")
    kv.set("memories", "shared", b"record")

    assert kv.get("embeddings", "shared") == b"vector"
    assert kv.get("memories", "shared") == b"record"


def test_unknown_table_rejected(kv):
    with pytest.raises(ValueError, match="Unknown table"):
        kv.set("answers", "key", b"value")


def test_items_in_insertion_order(kv):
    for i in range(3):
        kv.set("memories", f"m{i}", f"record {i}".encode())

    assert list(kv.items("memories")) == [
        ("m0", b"record 0"),
        ("m1", b"record 1"),
        ("m2", b"record 2"),
    ]


def test_purge_and_stats(kv):
    kv.set("memories", "a", b"12345")
    kv.set("memories", "b", b"123")

    stats = kv.stats("memories")
    assert stats["count"] == 2
    assert stats["total_bytes"] == 8
    assert stats["newest_ts"] >= stats["oldest_ts"] > 0

    assert kv.purge_table("memories") == 2
    assert kv.stats("memories")["count"] == 0


def test_persistence_after_reopen(tmp_path):
    """Values should persist after closing and reopening store."""
    db_path = tmp_path / "nested" / "persist.db"

    with KVStore(db_path) as store:
        store.set("memories", "m1", b"record")

    with KVStore(db_path) as store:
        assert store.get("memories", "m1") == b"record"


def test_parallel_writes_no_crash(kv):
    """Parallel writes from multiple threads should not crash."""
    errors = []

    def write_task(thread_id):
        try:
            for i in range(20):
                kv.set("embeddings", f"thread_{thread_id}_key_{i}", b"value")
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=write_task, args=(t,)) for t in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert kv.stats("embeddings")["count"] == 160


# ============================================================================
# Hashing
# ============================================================================

def test_dict_key_order_independence():
    hash1 = stable_hash({"text": "hello", "model": "m"})
    hash2 = stable_hash({"model": "m", "text": "hello"})

    assert hash1 == hash2
    assert len(hash1) == 64


def test_unicode_normalization():
    """NFC and NFD forms of the same text hash identically."""
    assert stable_hash("caf\u00e9") == stable_hash("cafe\u0301")


def test_different_inputs_differ():
    assert stable_hash("tea") != stable_hash("coffee")
    assert stable_hash(b"tea") == stable_hash("tea")


def test_unsupported_type():
    with pytest.raises(TypeError):
        stable_hash(42)

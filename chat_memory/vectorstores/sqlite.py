"""
Memory persistence using the SQLite KVStore.

Records are stored as JSON under their id in the `memories` table.
"""

import json
import logging
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

from chat_memory.memory.schemas import MemoryRecord
from chat_memory.persist.sqlite_store import KVStore
from .base import BaseVectorStore, Filters

logger = logging.getLogger(__name__)

TABLE = "memories"


class SQLiteVectorStore(BaseVectorStore):
    """
    Persistent vector store on SQLite.

    Search loads every record and scores it with cosine similarity, which
    suits the per-user memory volumes this engine deals with.
    """

    def __init__(self, db_path: Union[str, Path] = Path("data/memory/memories.db"), dimension: Optional[int] = None):
        """
        Args:
            db_path: Path to SQLite database
            dimension: Required embedding length, or None to accept any
        """
        super().__init__(dimension)
        self.kv = KVStore(db_path)

    def _write(self, record: MemoryRecord) -> None:
        value = json.dumps(record.to_storage_dict(), ensure_ascii=False)
        self.kv.set(TABLE, record.id, value.encode("utf-8"))

    def _load(self, value: bytes) -> Optional[MemoryRecord]:
        try:
            return MemoryRecord.from_storage_dict(json.loads(value))
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Skipping unreadable memory record: {e}")
            return None

    def _iter_records(self) -> Iterator[MemoryRecord]:
        for _, value in self.kv.items(TABLE):
            record = self._load(value)
            if record is not None:
                yield record

    def add(self, record: MemoryRecord) -> str:
        stored = self._prepare(record)
        self._write(stored)
        logger.debug(f"Added memory item: {stored.id}")
        return stored.id

    def search(
        self,
        query_vector: Sequence[float],
        filters: Filters = None,
        limit: int = 10,
        min_score: float = 0.0,
    ) -> List[MemoryRecord]:
        return self._rank(self._iter_records(), query_vector, filters, limit, min_score)

    def get(self, memory_id: str) -> Optional[MemoryRecord]:
        value = self.kv.get(TABLE, memory_id)
        if value is None:
            return None
        return self._load(value)

    def update(self, record: MemoryRecord) -> None:
        """Replace an existing record; unknown ids are added."""
        stored = self._prepare(record)
        self._write(stored)
        logger.debug(f"Updated memory item: {stored.id}")

    def delete(self, memory_id: str) -> bool:
        deleted = self.kv.delete(TABLE, memory_id)
        logger.debug(f"Deleted memory: {memory_id}")
        return deleted

    def delete_all(self, filters: Filters = None) -> int:
        ids = [r.id for r in self._iter_records() if r.matches(filters)]
        count = sum(1 for memory_id in ids if self.kv.delete(TABLE, memory_id))
        logger.debug(f"Deleted {count} memories with filters: {filters}")
        return count

    def get_all(self, filters: Filters = None, limit: int = 100) -> List[MemoryRecord]:
        records = []
        for record in self._iter_records():
            if record.matches(filters):
                records.append(record)
                if len(records) >= limit:
                    break
        return records

    def reset(self) -> None:
        count = self.kv.purge_table(TABLE)
        logger.info(f"Reset SQLite vector store ({count} memories removed)")

    def count(self) -> int:
        return self.kv.stats(TABLE)["count"]

    def close(self) -> None:
        self.kv.close()

"""In-process vector store backed by a dict."""
from __future__ import annotations
from typing import Dict, List, Optional, Sequence
import logging
import threading

from chat_memory.memory.schemas import MemoryRecord
from .base import BaseVectorStore, Filters

logger = logging.getLogger(__name__)


class InMemoryVectorStore(BaseVectorStore):
    """
    Simple in-memory vector store with brute-force cosine search.

    Individual operations are guarded by a lock; there is no multi-record
    atomicity.
    """

    def __init__(self, dimension: Optional[int] = None):
        super().__init__(dimension)
        self._records: Dict[str, MemoryRecord] = {}
        self._lock = threading.RLock()

    def add(self, record: MemoryRecord) -> str:
        stored = self._prepare(record)
        with self._lock:
            self._records[stored.id] = stored
        logger.debug(f"Added memory item: {stored.id}")
        return stored.id

    def search(
        self,
        query_vector: Sequence[float],
        filters: Filters = None,
        limit: int = 10,
        min_score: float = 0.0,
    ) -> List[MemoryRecord]:
        with self._lock:
            records = list(self._records.values())
        return self._rank(records, query_vector, filters, limit, min_score)

    def get(self, memory_id: str) -> Optional[MemoryRecord]:
        with self._lock:
            record = self._records.get(memory_id)
        return record.model_copy(deep=True) if record else None

    def update(self, record: MemoryRecord) -> None:
        """Replace an existing record; unknown ids are added."""
        stored = self._prepare(record)
        with self._lock:
            existed = record.id is not None and record.id in self._records
            self._records[stored.id] = stored
        if existed:
            logger.debug(f"Updated memory item: {stored.id}")
        else:
            logger.debug(f"Added memory item: {stored.id}")

    def delete(self, memory_id: str) -> bool:
        with self._lock:
            removed = self._records.pop(memory_id, None)
        logger.debug(f"Deleted memory: {memory_id}")
        return removed is not None

    def delete_all(self, filters: Filters = None) -> int:
        with self._lock:
            to_delete = [rid for rid, r in self._records.items() if r.matches(filters)]
            for rid in to_delete:
                del self._records[rid]
        logger.debug(f"Deleted {len(to_delete)} memories with filters: {filters}")
        return len(to_delete)

    def get_all(self, filters: Filters = None, limit: int = 100) -> List[MemoryRecord]:
        with self._lock:
            matching = [r for r in self._records.values() if r.matches(filters)]
        return [r.model_copy(deep=True) for r in matching[:limit]]

    def reset(self) -> None:
        with self._lock:
            self._records.clear()
        logger.info("Reset in-memory vector store")

    def __len__(self) -> int:
        return len(self._records)

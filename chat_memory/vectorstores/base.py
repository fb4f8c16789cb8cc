"""Vector store interface shared by the memory engine backends."""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Sequence
import logging
import uuid

from chat_memory.memory.schemas import MemoryRecord
from chat_memory.memory.similarity import cosine_similarity

logger = logging.getLogger(__name__)

Filters = Optional[Dict[str, Any]]


def new_memory_id() -> str:
    return str(uuid.uuid4())


class BaseVectorStore(ABC):
    """
    Storage for memory records with similarity search.

    Filters are exact-match on owner_id, agent_id, run_id, actor_id and
    memory_type; other keys are ignored.
    """

    def __init__(self, dimension: Optional[int] = None):
        """
        Args:
            dimension: Required embedding length, or None to accept any
        """
        self.dimension = dimension

    @abstractmethod
    def add(self, record: MemoryRecord) -> str:
        """Persist a record, assigning an id if absent. Returns the id."""
        pass

    @abstractmethod
    def search(
        self,
        query_vector: Sequence[float],
        filters: Filters = None,
        limit: int = 10,
        min_score: float = 0.0,
    ) -> List[MemoryRecord]:
        """Records scoring >= min_score, highest first, each carrying `score`."""
        pass

    @abstractmethod
    def get(self, memory_id: str) -> Optional[MemoryRecord]:
        pass

    @abstractmethod
    def update(self, record: MemoryRecord) -> None:
        pass

    @abstractmethod
    def delete(self, memory_id: str) -> bool:
        pass

    @abstractmethod
    def delete_all(self, filters: Filters = None) -> int:
        """Delete matching records. Returns the number deleted."""
        pass

    @abstractmethod
    def get_all(self, filters: Filters = None, limit: int = 100) -> List[MemoryRecord]:
        pass

    @abstractmethod
    def reset(self) -> None:
        pass

    def _prepare(self, record: MemoryRecord) -> MemoryRecord:
        """Validate dimension, assign an id and drop the transient score."""
        if self.dimension is not None and len(record.embedding) != self.dimension:
            raise ValueError(
                f"Embedding has {len(record.embedding)} dimensions, store expects {self.dimension}"
            )
        return record.model_copy(deep=True, update={
            "id": record.id or new_memory_id(),
            "score": None,
        })

    def _rank(
        self,
        records: Iterable[MemoryRecord],
        query_vector: Sequence[float],
        filters: Filters,
        limit: int,
        min_score: float,
    ) -> List[MemoryRecord]:
        scored = []
        for record in records:
            if not record.matches(filters):
                continue
            if len(record.embedding) != len(query_vector):
                logger.warning(
                    f"Memory {record.id} has {len(record.embedding)} dimensions, "
                    f"query has {len(query_vector)}; it cannot be compared"
                )
                continue
            score = cosine_similarity(query_vector, record.embedding)
            if score >= min_score:
                scored.append(record.model_copy(deep=True, update={"score": score}))

        scored.sort(key=lambda r: r.score, reverse=True)
        return scored[:limit]

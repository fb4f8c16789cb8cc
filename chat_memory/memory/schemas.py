"""
Memory system data models.

Defines MemoryRecord, conversation Message, and the classification types
produced when a candidate statement is consolidated against the store.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemoryType(str, Enum):
    """Kinds of memory a record can hold."""

    FACTUAL = "factual"        # facts and information
    EPISODIC = "episodic"      # events and experiences
    SEMANTIC = "semantic"      # concepts and relationships
    PROCEDURAL = "procedural"  # how-to information
    WORKING = "working"        # temporary, current-task information

    @classmethod
    def from_string(cls, text: str) -> "MemoryType":
        """Parse a memory type case-insensitively."""
        for member in cls:
            if member.value == text.strip().lower():
                return member
        raise ValueError(f"No memory type with value {text!r} found")

    def __str__(self) -> str:
        return self.value


SCOPE_FIELDS = ("owner_id", "agent_id", "run_id", "actor_id")
FILTER_FIELDS = SCOPE_FIELDS + ("memory_type",)


class Message(BaseModel):
    """A single conversation turn. Input to extraction only, never persisted."""

    role: str
    content: str


class MemoryRecord(BaseModel):
    """
    A single memory statement stored for long-term recall.

    Ownership fields (owner_id, agent_id, run_id, actor_id) are used only
    for filtering. `score` is set on retrieval results and is never persisted.
    """

    id: Optional[str] = Field(None, description="Unique key, assigned on first persist")
    content: str = Field(..., description="Memory statement")
    embedding: List[float] = Field(default_factory=list, description="Fixed-length vector")
    memory_type: MemoryType = Field(MemoryType.FACTUAL, description="Memory kind")

    # Ownership scope
    owner_id: Optional[str] = None
    agent_id: Optional[str] = None
    run_id: Optional[str] = None
    actor_id: Optional[str] = None

    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # Retrieval scoring (transient)
    score: Optional[float] = Field(None, description="Similarity on retrieval (not persisted)")

    def to_storage_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-ready dict for storage (excludes transient score)."""
        data = self.model_dump(mode="json")
        data.pop("score", None)
        return data

    @classmethod
    def from_storage_dict(cls, data: Dict[str, Any]) -> "MemoryRecord":
        return cls(**data)

    def matches(self, filters: Optional[Dict[str, Any]]) -> bool:
        """
        Exact-match scope filtering.

        Keys outside owner_id/agent_id/run_id/actor_id/memory_type are ignored.
        """
        if not filters:
            return True

        for key, value in filters.items():
            if key not in FILTER_FIELDS:
                continue
            current = getattr(self, key)
            if key == "memory_type" and value is not None:
                value = MemoryType.from_string(str(value))
            if current != value:
                return False
        return True

    def snippet(self, max_chars: int = 100) -> str:
        """Get truncated content for display."""
        if len(self.content) <= max_chars:
            return self.content
        return self.content[:max_chars - 3] + "..."


class MemoryAction(str, Enum):
    """Consolidation decision for a candidate statement."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    SKIP = "SKIP"


@dataclass(frozen=True)
class ClassificationOutcome:
    """
    Result of classifying one candidate against the store.

    UPDATE carries the merged content and the matched record id; DELETE
    carries the matched id; SKIP carries the id of the duplicate it matched.
    """

    action: MemoryAction
    target_id: Optional[str] = None
    merged_content: Optional[str] = None

    @classmethod
    def insert(cls) -> "ClassificationOutcome":
        return cls(MemoryAction.INSERT)

    @classmethod
    def update(cls, target_id: Optional[str], merged_content: str) -> "ClassificationOutcome":
        return cls(MemoryAction.UPDATE, target_id=target_id, merged_content=merged_content)

    @classmethod
    def delete(cls, target_id: Optional[str]) -> "ClassificationOutcome":
        return cls(MemoryAction.DELETE, target_id=target_id)

    @classmethod
    def skip(cls, target_id: Optional[str] = None) -> "ClassificationOutcome":
        return cls(MemoryAction.SKIP, target_id=target_id)


class MemoryEvent(BaseModel):
    """What `Memory.add` did with one candidate statement."""

    action: MemoryAction
    memory_id: Optional[str] = None
    content: str
    previous_content: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "action": "UPDATE",
                "memory_id": "mem_abc123",
                "content": "User prefers tea over coffee",
                "previous_content": "User likes coffee",
            }
        }

"""Exceptions raised by the memory engine."""

from typing import Optional


class MemoryEngineError(RuntimeError):
    """
    Base error for memory operations.

    Carries the operation name, the owner it ran for and, during ingestion,
    the index of the candidate being processed.
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        owner_id: Optional[str] = None,
        candidate_index: Optional[int] = None,
    ):
        self.operation = operation
        self.owner_id = owner_id
        self.candidate_index = candidate_index
        super().__init__(self._format(message))

    def _format(self, message: str) -> str:
        context = []
        if self.operation:
            context.append(f"operation={self.operation}")
        if self.owner_id is not None:
            context.append(f"owner={self.owner_id}")
        if self.candidate_index is not None:
            context.append(f"candidate={self.candidate_index}")
        if not context:
            return message
        return f"{message} ({', '.join(context)})"


class ExtractionFailure(MemoryEngineError):
    """The oracle call that extracts candidate memories failed."""


class EmbeddingFailure(MemoryEngineError):
    """The embedding service failed for a candidate or query."""


class StoreFailure(MemoryEngineError):
    """A vector store operation failed."""


class ClassificationOracleFailure(MemoryEngineError):
    """
    The oracle consultation for an ambiguous candidate failed.

    Recovered inside the classifier as an INSERT; never reaches callers.
    """

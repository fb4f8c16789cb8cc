"""
Memory facade.

Wires extraction, consolidation and retrieval to the embedding service,
the LLM and the vector store, and exposes the public memory operations.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from chat_memory.config.settings import Settings
from chat_memory.embeddings.base import BaseEmbedder, MockEmbedder
from chat_memory.embeddings.cache import CachingEmbedder
from chat_memory.embeddings.ollama_embedder import OllamaEmbedder
from chat_memory.generation.generator import BaseGenerator, MockGenerator
from chat_memory.generation.ollama_generator import OllamaGenerator
from chat_memory.generation.production_llm import LLMConfig, OpenAIGenerator
from chat_memory.persist.sqlite_store import KVStore
from chat_memory.vectorstores.base import BaseVectorStore
from chat_memory.vectorstores.in_memory import InMemoryVectorStore
from chat_memory.vectorstores.sqlite import SQLiteVectorStore
from .classifier import ActionClassifier
from .errors import EmbeddingFailure, MemoryEngineError, StoreFailure
from .extractor import MemoryExtractor, MessageLike
from .retrieval import RetrievalEngine
from .schemas import (
    ClassificationOutcome,
    MemoryAction,
    MemoryEvent,
    MemoryRecord,
    MemoryType,
    utcnow,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Memory:
    """
    Long-term memory for conversational agents.

    `add` extracts statements from a conversation and consolidates each one
    against existing memories of the same owner; `search` retrieves the
    memories relevant to a query.

    Candidates are handled one at a time (look up, decide, write). The
    sequence is not transactional: concurrent adds for the same owner can
    both insert near-duplicates, which a later add reconciles.
    """

    def __init__(
        self,
        store: BaseVectorStore,
        generator: BaseGenerator,
        embedder: BaseEmbedder,
        settings: Optional[Settings] = None
    ):
        """
        Args:
            store: Vector store holding memory records
            generator: LLM used for extraction and consolidation decisions
            embedder: Embedding service
            settings: Thresholds and limits
        """
        self.settings = settings or Settings()
        self.store = store
        self.generator = generator
        self.embedder = embedder

        self.extractor = MemoryExtractor(generator)
        self.classifier = ActionClassifier(store, generator, self.settings.memory)
        self.retrieval = RetrievalEngine(store, embedder, self.settings.memory)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def add(
        self,
        messages: Sequence[MessageLike],
        owner_id: str,
        metadata: Optional[Dict[str, Any]] = None,
        infer: bool = True,
        memory_type: MemoryType = MemoryType.FACTUAL,
        agent_id: Optional[str] = None,
        run_id: Optional[str] = None,
        actor_id: Optional[str] = None
    ) -> List[MemoryEvent]:
        """
        Add memories from a conversation.

        Args:
            messages: Conversation turns ({role, content})
            owner_id: Owner the memories belong to
            metadata: Metadata attached to inserted memories
            infer: Extract statements with the LLM (False stores the transcript)
            memory_type: Memory kind for inserted records
            agent_id, run_id, actor_id: Optional scope fields

        Returns:
            One event per candidate, in order

        Raises:
            ExtractionFailure, EmbeddingFailure, StoreFailure. Candidates
            handled before the failure stay persisted.
        """
        if isinstance(memory_type, str):
            memory_type = MemoryType.from_string(memory_type)

        candidates = self.extractor.extract(messages, infer, owner_id=owner_id)

        scope = {"owner_id": owner_id, "agent_id": agent_id, "run_id": run_id, "actor_id": actor_id}
        filters = {key: value for key, value in scope.items() if value is not None}

        events = []
        for index, content in enumerate(candidates):
            record = MemoryRecord(
                content=content,
                memory_type=memory_type,
                metadata=dict(metadata or {}),
                **scope
            )
            events.append(self._consolidate(record, filters, index))

        counts = {action: sum(1 for e in events if e.action == action) for action in MemoryAction}
        logger.info(
            f"Processed {len(events)} memories for owner {owner_id} "
            f"(inserted {counts[MemoryAction.INSERT]}, updated {counts[MemoryAction.UPDATE]}, "
            f"deleted {counts[MemoryAction.DELETE]}, skipped {counts[MemoryAction.SKIP]})"
        )
        return events

    def _consolidate(self, record: MemoryRecord, filters: Dict[str, Any], index: int) -> MemoryEvent:
        owner_id = record.owner_id
        record.embedding = self._embed(record.content, "add", owner_id, index)

        outcome, neighbor = self._store_call(
            lambda: self.classifier.classify(record.content, record.embedding, filters),
            "add", owner_id, index
        )
        return self._apply(outcome, record, neighbor, index)

    def _apply(
        self,
        outcome: ClassificationOutcome,
        record: MemoryRecord,
        neighbor: Optional[MemoryRecord],
        index: int
    ) -> MemoryEvent:
        """Perform the store mutation a classification outcome calls for."""
        owner_id = record.owner_id

        if outcome.action == MemoryAction.SKIP:
            return MemoryEvent(action=MemoryAction.SKIP, memory_id=outcome.target_id, content=record.content)

        if outcome.action == MemoryAction.UPDATE and neighbor is not None:
            merged = outcome.merged_content
            updated = neighbor.model_copy(update={
                "content": merged,
                "embedding": self._embed(merged, "add", owner_id, index),
                "updated_at": utcnow(),
                "score": None,
            })
            self._store_call(lambda: self.store.update(updated), "add", owner_id, index)
            logger.debug(f"Updated memory {neighbor.id}: '{neighbor.content}' -> '{merged}'")
            return MemoryEvent(
                action=MemoryAction.UPDATE,
                memory_id=neighbor.id,
                content=merged,
                previous_content=neighbor.content,
            )

        if outcome.action == MemoryAction.DELETE and neighbor is not None:
            self._store_call(lambda: self.store.delete(outcome.target_id), "add", owner_id, index)
            logger.debug(f"Deleted memory {outcome.target_id}: '{neighbor.content}'")
            return MemoryEvent(
                action=MemoryAction.DELETE,
                memory_id=outcome.target_id,
                content=record.content,
                previous_content=neighbor.content,
            )

        memory_id = self._store_call(lambda: self.store.add(record), "add", owner_id, index)
        return MemoryEvent(action=MemoryAction.INSERT, memory_id=memory_id, content=record.content)

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    def search(
        self,
        query: str,
        owner_id: str,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
        threshold: Optional[float] = None
    ) -> List[MemoryRecord]:
        """
        Search memories relevant to a query.

        Args:
            query: Query text
            owner_id: Owner whose memories are searched
            filters: Extra scope filters (agent_id, run_id, actor_id, memory_type)
            limit: Maximum results (default from settings)
            threshold: Explicit similarity threshold

        Returns:
            Records ranked by score
        """
        limit = limit or self.settings.memory.search_limit
        embedding = self._embed(query, "search", owner_id)

        return self._store_call(
            lambda: self.retrieval.search(
                query,
                filters=self._scope_filters(owner_id, filters),
                limit=limit,
                threshold=threshold,
                query_embedding=embedding,
            ),
            "search", owner_id
        )

    # ------------------------------------------------------------------
    # Direct record management
    # ------------------------------------------------------------------

    def get_all(
        self,
        owner_id: str,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None
    ) -> List[MemoryRecord]:
        """List an owner's memories."""
        limit = limit or self.settings.memory.max_memories
        return self._store_call(
            lambda: self.store.get_all(self._scope_filters(owner_id, filters), limit),
            "get_all", owner_id
        )

    def get(self, memory_id: str) -> Optional[MemoryRecord]:
        """Get a memory by id."""
        return self._store_call(lambda: self.store.get(memory_id), "get")

    def update(self, memory_id: str, data: Dict[str, Any]) -> Optional[MemoryRecord]:
        """
        Update a memory.

        Args:
            memory_id: Memory to update
            data: `content` (re-embedded) and/or `metadata`

        Returns:
            The updated record, or None if the id is unknown
        """
        record = self._store_call(lambda: self.store.get(memory_id), "update")
        if record is None:
            logger.warning(f"Cannot update unknown memory: {memory_id}")
            return None

        changes: Dict[str, Any] = {"updated_at": utcnow(), "score": None}
        if "content" in data:
            changes["content"] = data["content"]
            changes["embedding"] = self._embed(data["content"], "update", record.owner_id)
        if "metadata" in data:
            changes["metadata"] = dict(data["metadata"] or {})

        updated = record.model_copy(update=changes)
        self._store_call(lambda: self.store.update(updated), "update", record.owner_id)
        logger.info(f"Updated memory: {memory_id}")
        return updated

    def delete(self, memory_id: str) -> bool:
        """Delete a memory by id."""
        deleted = self._store_call(lambda: self.store.delete(memory_id), "delete")
        logger.info(f"Deleted memory: {memory_id}")
        return deleted

    def delete_all(self, owner_id: str) -> int:
        """Delete every memory of an owner. Other owners are untouched."""
        count = self._store_call(
            lambda: self.store.delete_all({"owner_id": owner_id}), "delete_all", owner_id
        )
        logger.info(f"Deleted all memories for owner: {owner_id}")
        return count

    def reset(self) -> None:
        """Remove all memories of all owners."""
        self._store_call(self.store.reset, "reset")
        logger.info("Reset all memories")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _scope_filters(owner_id: str, filters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        scope = dict(filters or {})
        scope["owner_id"] = owner_id
        return scope

    def _embed(
        self,
        text: str,
        operation: str,
        owner_id: Optional[str] = None,
        index: Optional[int] = None
    ) -> List[float]:
        try:
            return self.embedder.embed(text)
        except Exception as e:
            logger.error(f"Embedding failed during {operation} for owner {owner_id}: {e}")
            raise EmbeddingFailure(
                f"Failed to embed text: {e}",
                operation=operation,
                owner_id=owner_id,
                candidate_index=index,
            ) from e

    def _store_call(
        self,
        call: Callable[[], T],
        operation: str,
        owner_id: Optional[str] = None,
        index: Optional[int] = None
    ) -> T:
        try:
            return call()
        except MemoryEngineError:
            raise
        except Exception as e:
            logger.error(f"Store operation {operation} failed for owner {owner_id}: {e}")
            raise StoreFailure(
                f"Vector store error: {e}",
                operation=operation,
                owner_id=owner_id,
                candidate_index=index,
            ) from e


def create_generator(settings: Settings) -> BaseGenerator:
    """Build the LLM backend named in settings."""
    llm = settings.llm
    if llm.provider == "ollama":
        return OllamaGenerator(
            model=llm.model,
            base_url=llm.base_url or "http://localhost:11434",
            timeout=llm.timeout,
        )
    if llm.provider == "openai":
        return OpenAIGenerator(LLMConfig(
            api_key=llm.api_key,
            model_name=llm.model,
            base_url=llm.base_url,
            timeout=llm.timeout,
            max_tokens=llm.max_tokens,
        ))
    return MockGenerator()


def create_embedder(settings: Settings) -> BaseEmbedder:
    """Build the embedding backend named in settings, cached when cache_db is set."""
    cfg = settings.embedding
    if cfg.provider == "ollama":
        embedder: BaseEmbedder = OllamaEmbedder(
            model=cfg.model,
            base_url=cfg.base_url or "http://localhost:11434",
            dimension=cfg.dimension,
            timeout=cfg.timeout,
        )
    elif cfg.provider == "sentence-transformers":
        from chat_memory.embeddings.sentence_transformer import SentenceTransformerEmbedder
        embedder = SentenceTransformerEmbedder(cfg.model)
    else:
        embedder = MockEmbedder(cfg.dimension)

    if cfg.cache_db:
        embedder = CachingEmbedder(embedder, KVStore(Path(cfg.cache_db)), cfg.model)
    return embedder


def create_store(settings: Settings, dimension: Optional[int] = None) -> BaseVectorStore:
    """Build the vector store named in settings."""
    dimension = dimension or settings.embedding.dimension
    if settings.vector_store.type == "sqlite":
        return SQLiteVectorStore(Path(settings.vector_store.path), dimension=dimension)
    return InMemoryVectorStore(dimension=dimension)


def create_memory(settings: Optional[Settings] = None) -> Memory:
    """
    Factory function to create a Memory with backends chosen from settings.

    Args:
        settings: Settings (default: built from CHAT_MEMORY_* environment variables)

    Returns:
        Configured Memory instance
    """
    settings = settings or Settings.from_env()
    embedder = create_embedder(settings)
    return Memory(
        store=create_store(settings, embedder.dimension),
        generator=create_generator(settings),
        embedder=embedder,
        settings=settings,
    )

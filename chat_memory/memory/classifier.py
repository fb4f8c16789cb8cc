"""
Memory consolidation.

Decides, per candidate statement, whether to insert it, merge it into an
existing record, delete the record it contradicts, or skip it as a duplicate.

Bands over the best neighbor's similarity `s`:
- s >= skip_threshold: duplicate, SKIP without calling the LLM
- consult_threshold <= s < skip_threshold: ask the LLM (INSERT / UPDATE / DELETE)
- s < consult_threshold: distinct enough to coexist, INSERT
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from chat_memory.config.settings import MemorySettings
from chat_memory.generation.generator import BaseGenerator, GenerationConfig
from chat_memory.vectorstores.base import BaseVectorStore
from .errors import ClassificationOracleFailure
from .schemas import ClassificationOutcome, MemoryRecord

logger = logging.getLogger(__name__)

DECISION_PROMPT = """You are a memory management system. Compare a new piece of information with an existing memory and decide how to store it.

Existing memory:
{existing}

New information:
{candidate}

Respond with exactly one of:
- INSERT (the new information is different and both should be kept)
- UPDATE: <merged content> (the new information refines or changes the existing memory; give the merged memory)
- DELETE (the new information invalidates the existing memory)

Decision:"""

DECISION_CONFIG = GenerationConfig(temperature=0.1, max_new_tokens=200)

UPDATE_PREFIX = "UPDATE:"
DELETE_PREFIX = "DELETE"


def parse_decision(response: Optional[str], target_id: Optional[str]) -> ClassificationOutcome:
    """
    Map a raw LLM decision to a ClassificationOutcome.

    `UPDATE: <content>` with non-empty content becomes UPDATE, a reply
    starting with `DELETE` becomes DELETE, anything else (including INSERT,
    empty or unparseable replies) becomes INSERT.
    """
    if not response:
        return ClassificationOutcome.insert()

    text = response.strip()
    upper = text.upper()

    if upper.startswith(UPDATE_PREFIX):
        merged = text[len(UPDATE_PREFIX):].strip()
        if merged:
            return ClassificationOutcome.update(target_id, merged)
        logger.debug("UPDATE decision without merged content, treating as INSERT")
        return ClassificationOutcome.insert()

    if upper.startswith(DELETE_PREFIX):
        return ClassificationOutcome.delete(target_id)

    return ClassificationOutcome.insert()


class ActionClassifier:
    """Resolves a candidate statement to INSERT / UPDATE / DELETE / SKIP."""

    def __init__(
        self,
        store: BaseVectorStore,
        generator: BaseGenerator,
        settings: Optional[MemorySettings] = None
    ):
        """
        Args:
            store: Vector store to look up existing memories in
            generator: LLM consulted for the ambiguous band
            settings: Band thresholds
        """
        self.store = store
        self.generator = generator
        self.settings = settings or MemorySettings()

    def find_neighbors(self, embedding: Sequence[float], filters: Dict[str, Any]) -> List[MemoryRecord]:
        """Nearest existing memories in the same scope, best first."""
        return self.store.search(
            embedding,
            filters=filters,
            limit=self.settings.neighbor_top_k,
            min_score=self.settings.neighbor_min_score,
        )

    def classify(
        self,
        candidate: str,
        embedding: Sequence[float],
        filters: Dict[str, Any]
    ) -> Tuple[ClassificationOutcome, Optional[MemoryRecord]]:
        """
        Classify one candidate.

        Returns:
            (outcome, best neighbor or None)
        """
        neighbors = self.find_neighbors(embedding, filters)
        if not neighbors:
            logger.debug(f"No existing memory near '{candidate}', inserting")
            return ClassificationOutcome.insert(), None

        best = max(neighbors, key=lambda r: r.score or 0.0)
        score = best.score or 0.0

        if score >= self.settings.skip_threshold:
            logger.debug(
                f"Skipping duplicate memory: '{candidate}' "
                f"(similar to existing: '{best.content}', score {score:.3f})"
            )
            return ClassificationOutcome.skip(best.id), best

        if score >= self.settings.consult_threshold:
            try:
                return self._consult(candidate, best), best
            except ClassificationOracleFailure as e:
                logger.warning(f"{e}; falling back to INSERT")
                return ClassificationOutcome.insert(), best

        logger.debug(f"Memory '{candidate}' is distinct (best score {score:.3f}), inserting")
        return ClassificationOutcome.insert(), best

    def _consult(self, candidate: str, existing: MemoryRecord) -> ClassificationOutcome:
        """Ask the LLM how the candidate relates to an existing memory."""
        prompt = DECISION_PROMPT.format(existing=existing.content, candidate=candidate)
        try:
            response = self.generator.generate(prompt, DECISION_CONFIG)
        except Exception as e:
            raise ClassificationOracleFailure(
                f"Consolidation decision failed: {e}", operation="classify"
            ) from e

        if response is None or not (response.text or "").strip():
            raise ClassificationOracleFailure("Consolidation decision was empty", operation="classify")

        outcome = parse_decision(response.text, existing.id)
        logger.debug(f"LLM decided {outcome.action.value} for '{candidate}' against '{existing.content}'")
        return outcome

"""
Memory extraction from conversations.

Turns a list of role/content messages into candidate memory statements,
either verbatim or through the LLM with output parsing and validation.
"""

import logging
import re
from typing import Dict, List, Optional, Sequence, Union

from chat_memory.generation.generator import BaseGenerator
from .errors import ExtractionFailure
from .schemas import Message

logger = logging.getLogger(__name__)

MessageLike = Union[Message, Dict[str, str]]

# Generic system chatter that is never worth remembering
BOILERPLATE_PATTERNS = (
    "this is the user's first conversation",
    "this is the first conversation",
    "hello! this is my first time",
    "how can i help",
    "i'm here to help",
    "what can i do for you",
    "nice to meet you",
    "the user is asking",
    "the assistant responded",
    "conversation started",
    "session began",
    "first interaction",
)

MIN_MEMORY_LENGTH = 5
BULLET = "- "

_LEADING_DASHES = re.compile(r"^[-\s]+")
_NO_LETTERS = re.compile(r"[^a-zA-Z\u4e00-\u9fff]*")

EXTRACTION_PROMPT = """Extract key memories from this conversation. Focus ONLY on:
- Important facts about the user (name, age, profession, etc.)
- User preferences and behaviors (likes, dislikes, habits)
- Significant events or experiences mentioned by the user
- Useful information for future personalized interactions

DO NOT extract:
- Generic system messages or responses
- Conversation metadata or status messages
- General greetings or pleasantries
- Assistant responses unless they contain user-specific information

Only extract memories that have real value for understanding the user.

Conversation:
{conversation}

Return each memory as a separate line, starting with "- ".
If no valuable memories exist, return nothing.
"""


def render_transcript(messages: Sequence[MessageLike]) -> str:
    """Render messages as `role: content` lines."""
    lines = []
    for msg in messages:
        if isinstance(msg, Message):
            role, content = msg.role, msg.content
        else:
            role, content = msg.get("role", "user"), msg.get("content", "")
        lines.append(f"{role}: {content}")
    return "\n".join(lines)


def clean_memory_line(line: str) -> str:
    """Strip the bullet marker and any further leading dashes or whitespace."""
    return _LEADING_DASHES.sub("", line[len(BULLET):]).strip()


def is_valid_memory(content: str) -> bool:
    """Check that a parsed line is worth storing."""
    lower_content = content.lower().strip()

    for pattern in BOILERPLATE_PATTERNS:
        if pattern in lower_content:
            logger.debug(f"Filtering out boilerplate memory: '{content}'")
            return False

    if len(content) < MIN_MEMORY_LENGTH:
        logger.debug(f"Filtering out too short memory: '{content}'")
        return False

    if _NO_LETTERS.fullmatch(content):
        logger.debug(f"Filtering out non-text memory: '{content}'")
        return False

    return True


def parse_memories(response: str) -> List[str]:
    """Parse `- ` bullet lines from an LLM reply into valid memory statements."""
    memories = []
    for raw_line in response.splitlines():
        line = raw_line.strip()
        if not line.startswith(BULLET):
            continue
        content = clean_memory_line(line)
        if content and is_valid_memory(content):
            memories.append(content)
    return memories


class MemoryExtractor:
    """Extracts candidate memory statements from a conversation."""

    def __init__(self, generator: BaseGenerator):
        self.generator = generator

    def extract(
        self,
        messages: Sequence[MessageLike],
        infer: bool = True,
        owner_id: Optional[str] = None
    ) -> List[str]:
        """
        Produce candidate memories.

        Args:
            messages: Conversation turns
            infer: Ask the LLM for memory-worthy statements; when False the
                whole transcript becomes a single candidate
            owner_id: Owner the conversation belongs to, reported on failure

        Returns:
            Candidate statements in order

        Raises:
            ExtractionFailure: If the LLM call fails
        """
        if not messages:
            return []

        conversation = render_transcript(messages)

        if not infer:
            return [conversation]

        prompt = EXTRACTION_PROMPT.format(conversation=conversation)
        try:
            response = self.generator.generate(prompt)
        except Exception as e:
            logger.error(f"Memory extraction failed for owner {owner_id}: {e}")
            raise ExtractionFailure(
                f"Failed to extract memories: {e}", operation="extract", owner_id=owner_id
            ) from e

        memories = parse_memories(response.text or "")
        logger.debug(f"Extracted {len(memories)} valid memories from conversation")
        return memories

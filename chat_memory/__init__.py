"""
Long-term memory for conversational agents.
"""

__version__ = "0.1.0"

from chat_memory.memory import (
    Memory,
    MemoryEvent,
    MemoryRecord,
    MemoryType,
    Message,
    create_memory,
)
from chat_memory.config import Settings

__all__ = [
    "Memory",
    "MemoryEvent",
    "MemoryRecord",
    "MemoryType",
    "Message",
    "Settings",
    "create_memory",
]

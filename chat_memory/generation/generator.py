"""LLM abstraction used as the generative oracle for memory extraction and consolidation."""
from __future__ import annotations
from typing import Dict, List, Optional, Sequence, Union
from dataclasses import dataclass, field
from abc import ABC, abstractmethod
import logging

from pydantic import BaseModel

logger = logging.getLogger(__name__)

ChatMessage = Union[Dict[str, str], BaseModel]


@dataclass
class GenerationConfig:
    """Configuration for text generation."""
    max_new_tokens: int = 1000
    temperature: float = 0.7
    top_p: float = 0.9


@dataclass
class GeneratedResponse:
    """Container for generated response with metadata."""
    text: str
    model_used: str
    prompt_length: int
    response_length: int = 0
    processing_time: float = 0.0
    metadata: Dict[str, object] = field(default_factory=dict)


STRUCTURED_CONFIG = GenerationConfig(temperature=0.1)


def to_chat_messages(messages: Sequence[ChatMessage]) -> List[Dict[str, str]]:
    """Normalize Message models or dicts into role/content dicts."""
    normalized = []
    for msg in messages:
        if isinstance(msg, BaseModel):
            msg = msg.model_dump()
        normalized.append({"role": msg.get("role", "user"), "content": msg.get("content", "")})
    return normalized


class BaseGenerator(ABC):
    """Abstract base class for text generators."""

    @abstractmethod
    def generate(self, prompt: str, config: Optional[GenerationConfig] = None) -> GeneratedResponse:
        """Generate text based on the given prompt."""
        pass

    @abstractmethod
    def chat(self, messages: Sequence[ChatMessage], config: Optional[GenerationConfig] = None) -> GeneratedResponse:
        """Generate a reply to a list of role/content messages."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the generator is available and ready to use."""
        pass

    def generate_with_system(
        self,
        system_prompt: str,
        user_message: str,
        config: Optional[GenerationConfig] = None
    ) -> GeneratedResponse:
        """Generate with a system prompt followed by one user message."""
        return self.chat(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            config,
        )

    def generate_structured(
        self,
        prompt: str,
        schema_hint: str,
        config: Optional[GenerationConfig] = None
    ) -> GeneratedResponse:
        """
        Ask for a JSON answer following `schema_hint`.

        Uses a low temperature unless a config is given.
        """
        structured_prompt = f"{prompt}\n\nPlease respond in the following JSON format:\n{schema_hint}\n"
        return self.generate(structured_prompt, config or STRUCTURED_CONFIG)


class MockGenerator(BaseGenerator):
    """
    Scripted generator for tests and offline runs.

    Responses are chosen by the first keyword found in the prompt; prompts
    matching nothing get the default response (empty by default, which the
    extractor reads as "nothing worth remembering").
    """

    def __init__(self, responses: Optional[Dict[str, str]] = None, default: str = ""):
        self.responses = dict(responses or {})
        self.default = default
        self.prompts: List[str] = []

    def _respond(self, prompt: str) -> str:
        self.prompts.append(prompt)
        prompt_lower = prompt.lower()
        for keyword, response in self.responses.items():
            if keyword.lower() in prompt_lower:
                return response
        return self.default

    def generate(self, prompt: str, config: Optional[GenerationConfig] = None) -> GeneratedResponse:
        """Generate a mock response based on keywords in the prompt."""
        response_text = self._respond(prompt)
        return GeneratedResponse(
            text=response_text,
            model_used="mock_generator",
            prompt_length=len(prompt),
            response_length=len(response_text)
        )

    def chat(self, messages: Sequence[ChatMessage], config: Optional[GenerationConfig] = None) -> GeneratedResponse:
        prompt = "\n".join(m["content"] for m in to_chat_messages(messages))
        return self.generate(prompt, config)

    def is_available(self) -> bool:
        """Mock generator is always available."""
        return True

"""
OpenAI-compatible LLM integration.

Works with the OpenAI API and any server exposing the same chat completions
interface (set `base_url`).
"""

import os
import logging
import time
from typing import Any, Dict, List, Optional, Sequence
from dataclasses import dataclass

from .generator import BaseGenerator, ChatMessage, GeneratedResponse, GenerationConfig, to_chat_messages


@dataclass
class LLMConfig:
    """Configuration for an OpenAI-compatible provider."""
    api_key: Optional[str]
    model_name: str = "gpt-4o-mini"
    base_url: Optional[str] = None
    max_retries: int = 3
    timeout: int = 30
    max_tokens: int = 1000


class OpenAIGenerator(BaseGenerator):
    """Generator backed by the `openai` client."""

    def __init__(self, config: LLMConfig):
        self.config = config
        self.logger = logging.getLogger(__name__)
        self.client = self._initialize_client()

    def _initialize_client(self):
        """Initialize OpenAI client."""
        try:
            import openai
        except ImportError:
            raise ImportError("OpenAI package required: pip install 'chat-memory[openai]'")

        return openai.OpenAI(
            api_key=self.config.api_key,
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            max_retries=self.config.max_retries
        )

    def is_available(self) -> bool:
        """Check if the LLM client was initialized."""
        return self.client is not None

    def generate(
        self,
        prompt: str,
        config: Optional[GenerationConfig] = None
    ) -> GeneratedResponse:
        return self.chat([{"role": "user", "content": prompt}], config)

    def chat(
        self,
        messages: Sequence[ChatMessage],
        config: Optional[GenerationConfig] = None
    ) -> GeneratedResponse:
        """
        Generate a chat completion.

        Raises:
            RuntimeError: If the provider call fails or returns no content
        """
        gen_config = config or GenerationConfig()
        chat_messages: List[Dict[str, str]] = to_chat_messages(messages)
        start_time = time.time()

        try:
            response = self.client.chat.completions.create(
                model=self.config.model_name,
                messages=chat_messages,
                temperature=gen_config.temperature,
                max_tokens=min(gen_config.max_new_tokens, self.config.max_tokens),
                top_p=gen_config.top_p
            )
        except Exception as e:
            self.logger.error(f"Generation failed: {e}")
            raise RuntimeError(f"Failed to generate response: {e}") from e

        if not response.choices:
            raise RuntimeError("Provider returned no choices")

        content = response.choices[0].message.content or ""

        return GeneratedResponse(
            text=content.strip(),
            model_used=f"openai_{self.config.model_name}",
            prompt_length=sum(len(m["content"]) for m in chat_messages),
            response_length=len(content),
            processing_time=time.time() - start_time,
            metadata=self._usage(response)
        )

    @staticmethod
    def _usage(response: Any) -> Dict[str, Any]:
        usage = getattr(response, "usage", None)
        metadata: Dict[str, Any] = {"finish_reason": response.choices[0].finish_reason}
        if usage is not None:
            metadata["usage"] = {
                "prompt_tokens": getattr(usage, "prompt_tokens", None),
                "completion_tokens": getattr(usage, "completion_tokens", None),
            }
        return metadata


def load_llm_config_from_env() -> LLMConfig:
    """Load OpenAI configuration from environment variables."""
    return LLMConfig(
        api_key=os.getenv("OPENAI_API_KEY"),
        model_name=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        base_url=os.getenv("OPENAI_BASE_URL"),
    )

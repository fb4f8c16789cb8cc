"""Generative oracle backends."""
from .generator import (
    BaseGenerator, GenerationConfig, GeneratedResponse, MockGenerator
)
from .ollama_generator import OllamaGenerator
from .production_llm import LLMConfig, OpenAIGenerator

__all__ = [
    'BaseGenerator', 'GenerationConfig', 'GeneratedResponse', 'MockGenerator',
    'OllamaGenerator',
    'LLMConfig', 'OpenAIGenerator',
]

"""Application settings and configuration schema."""

import os
from typing import Any, Dict, Literal, Mapping, Optional

from pydantic import BaseModel, Field, model_validator

ENV_PREFIX = "CHAT_MEMORY_"


class LLMSettings(BaseModel):
    """Generative oracle configuration."""
    provider: Literal["mock", "ollama", "openai"] = "mock"
    model: str = "llama3"
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout: int = 60
    temperature: float = 0.7
    max_tokens: int = 1000


class EmbeddingSettings(BaseModel):
    """Embedding service configuration."""
    provider: Literal["mock", "ollama", "sentence-transformers"] = "mock"
    model: str = "nomic-embed-text"
    dimension: int = Field(1536, gt=0)
    base_url: Optional[str] = None
    timeout: int = 30
    cache_db: Optional[str] = None


class VectorStoreSettings(BaseModel):
    """Vector store configuration."""
    type: Literal["memory", "sqlite"] = "memory"
    path: str = "data/memory/memories.db"


class MemorySettings(BaseModel):
    """Consolidation and retrieval thresholds."""
    similarity_threshold: float = Field(0.7, ge=-1.0, le=1.0)

    # Consolidation bands
    skip_threshold: float = Field(0.95, ge=-1.0, le=1.0)
    consult_threshold: float = Field(0.85, ge=-1.0, le=1.0)
    neighbor_top_k: int = Field(5, gt=0)
    neighbor_min_score: float = Field(0.0, ge=-1.0, le=1.0)

    # Retrieval
    escalation_threshold: float = Field(0.3, ge=-1.0, le=1.0)
    comprehensive_threshold: float = Field(0.1, ge=-1.0, le=1.0)
    preference_threshold: float = Field(0.3, ge=-1.0, le=1.0)
    relevance_high_score: float = 0.4
    relevance_fallback_score: float = 0.35
    trusted_result_count: int = 3
    search_limit: int = Field(10, gt=0)
    max_memories: int = Field(1000, gt=0)

    @model_validator(mode="after")
    def check_bands(self) -> "MemorySettings":
        if self.consult_threshold > self.skip_threshold:
            raise ValueError("consult_threshold must not exceed skip_threshold")
        return self


class Settings(BaseModel):
    """Main application settings."""
    llm: LLMSettings = LLMSettings()
    embedding: EmbeddingSettings = EmbeddingSettings()
    vector_store: VectorStoreSettings = VectorStoreSettings()
    memory: MemorySettings = MemorySettings()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from CHAT_MEMORY_* environment variables.

        Section fields map to CHAT_MEMORY_<SECTION>_<FIELD> (for example
        CHAT_MEMORY_LLM_PROVIDER, CHAT_MEMORY_EMBEDDING_DIMENSION,
        CHAT_MEMORY_VECTOR_STORE_TYPE); memory thresholds drop the section,
        as in CHAT_MEMORY_SIMILARITY_THRESHOLD.
        """
        environ = os.environ if environ is None else environ
        sections: Dict[str, Dict[str, Any]] = {}

        for name, model in (("llm", LLMSettings), ("embedding", EmbeddingSettings),
                            ("vector_store", VectorStoreSettings), ("memory", MemorySettings)):
            prefix = ENV_PREFIX if name == "memory" else f"{ENV_PREFIX}{name.upper()}_"
            values = {}
            for field in model.model_fields:
                raw = environ.get(f"{prefix}{field.upper()}")
                if raw is not None:
                    values[field] = raw
            sections[name] = values

        return cls(**{name: values for name, values in sections.items()})

from .settings import EmbeddingSettings, LLMSettings, MemorySettings, Settings, VectorStoreSettings

__all__ = ["EmbeddingSettings", "LLMSettings", "MemorySettings", "Settings", "VectorStoreSettings"]

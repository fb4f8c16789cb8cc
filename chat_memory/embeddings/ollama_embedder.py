"""
Ollama embedding adapter.

Calls the Ollama REST API `/api/embeddings` endpoint.
"""

import logging
import requests
from typing import List

from .base import BaseEmbedder, validate_vector

logger = logging.getLogger(__name__)


class OllamaEmbedder(BaseEmbedder):
    """Embedding service backed by a local Ollama server."""

    def __init__(
        self,
        model: str = "nomic-embed-text",
        base_url: str = "http://localhost:11434",
        dimension: int = 768,
        timeout: int = 30
    ):
        """
        Args:
            model: Ollama embedding model name
            base_url: Ollama API base URL
            dimension: Expected vector length
            timeout: Request timeout in seconds
        """
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.dimension = dimension
        self.timeout = timeout

    def embed(self, text: str) -> List[float]:
        """
        Embed text with Ollama.

        Raises:
            RuntimeError: If the request fails or returns no usable vector
        """
        try:
            response = requests.post(
                f"{self.base_url}/api/embeddings",
                json={"model": self.model, "prompt": text},
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise RuntimeError(f"Ollama embedding timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise RuntimeError(f"Ollama embedding request failed: {str(e)}") from e

        if response.status_code != 200:
            raise RuntimeError(
                f"Ollama API returned status {response.status_code}: {response.text}"
            )

        vector = validate_vector(response.json().get("embedding", []), f"Ollama model {self.model}")
        if len(vector) != self.dimension:
            logger.warning(
                f"Ollama model {self.model} returned {len(vector)} dimensions, expected {self.dimension}"
            )
        return vector

    def __repr__(self) -> str:
        return f"OllamaEmbedder(model='{self.model}', base_url='{self.base_url}')"

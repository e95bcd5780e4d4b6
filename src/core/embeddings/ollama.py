"""
Ollama embedder using native ollama-python SDK.
"""

import ollama

from src.core.embeddings.base import Embedder
from src.utils.exceptions import EmbeddingError, ValidationError
from src.utils.logger import get_logger

logger = get_logger(__name__)


class OllamaEmbedder(Embedder):
    """
    Ollama embedder for generating chunk and query embeddings.

    Supports models like mxbai-embed-large, nomic-embed-text, etc.
    Batches use the server-side `embed` endpoint so a chunk list is
    embedded in a single request.
    """

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "mxbai-embed-large",
        timeout: float = 120.0,
        batch_size: int = 64,
    ):
        """
        Initialize Ollama embedder.

        Args:
            host: Ollama server URL
            model: Embedding model name
            timeout: Request timeout in seconds
            batch_size: Maximum texts sent per embed request
        """
        self.host = host
        self.model = model
        self.timeout = timeout
        self.batch_size = batch_size
        self._dimension: int | None = None

        self.client = ollama.AsyncClient(host=host, timeout=timeout)

    async def embed(self, text: str, **kwargs) -> list[float]:
        """
        Generate embedding for text using Ollama.

        Raises:
            ValidationError: If text is empty
            EmbeddingError: If Ollama embedding fails
        """
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")

        try:
            response = await self.client.embeddings(model=self.model, prompt=text, **kwargs)

            if not response or "embedding" not in response:
                raise EmbeddingError("Ollama returned invalid embedding response")

            return list(response["embedding"])
        except (ValidationError, EmbeddingError):
            raise
        except Exception as e:
            logger.bind(model=self.model, host=self.host, error=str(e)).error(
                f"Ollama embedding error: {e}"
            )
            raise EmbeddingError(f"Ollama embedding error: {e}") from e

    async def batch_embed(self, texts: list[str], **kwargs) -> list[list[float]]:
        """
        Embed texts in order, `batch_size` texts per request.

        Raises:
            EmbeddingError: If any request fails or returns the wrong count
        """
        if not texts:
            return []

        embeddings: list[list[float]] = []
        try:
            for i in range(0, len(texts), self.batch_size):
                batch = texts[i : i + self.batch_size]
                response = await self.client.embed(model=self.model, input=batch, **kwargs)

                vectors = response["embeddings"] if response else None
                if not vectors or len(vectors) != len(batch):
                    raise EmbeddingError(
                        "Ollama returned an incomplete batch embedding response",
                        context={"expected": len(batch), "received": len(vectors or [])},
                    )
                embeddings.extend(list(vector) for vector in vectors)
        except EmbeddingError:
            raise
        except Exception as e:
            logger.bind(model=self.model, num_texts=len(texts), error=str(e)).error(
                f"Ollama batch embedding error: {e}"
            )
            raise EmbeddingError(f"Ollama batch embedding error: {e}") from e

        return embeddings

    async def get_dimension(self) -> int:
        """Embedding dimension, cached after the first probe."""
        if self._dimension is None:
            self._dimension = await super().get_dimension()
        return self._dimension

    async def close(self):
        """Close client (Ollama SDK handles cleanup internally)."""
        pass

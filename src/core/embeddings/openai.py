"""
OpenAI embedder using official SDK.
"""

from openai import AsyncOpenAI

from src.core.embeddings.base import Embedder
from src.utils.exceptions import EmbeddingError, ValidationError
from src.utils.logger import get_logger

logger = get_logger(__name__)


class OpenAIEmbedder(Embedder):
    """
    OpenAI embedder for generating chunk and query embeddings.

    The SDK client owns retries (`max_retries`) and request timeouts.
    """

    # Known dimensions for OpenAI embedding models
    _MODEL_DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        organization: str | None = None,
        base_url: str | None = None,
        timeout: float = 120.0,
        max_retries: int = 2,
        batch_size: int = 2048,
    ):
        """
        Initialize OpenAI embedder.

        Args:
            api_key: OpenAI API key
            model: Embedding model name
            organization: Optional organization ID
            base_url: Optional custom base URL
            timeout: Request timeout in seconds
            max_retries: Retries performed by the SDK before failing
            batch_size: Inputs per request (OpenAI accepts up to 2048)
        """
        self.model = model
        self.batch_size = batch_size

        self.client = AsyncOpenAI(
            api_key=api_key,
            organization=organization,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )

    async def embed(self, text: str, **kwargs) -> list[float]:
        """
        Generate embedding for text using OpenAI.

        Raises:
            ValidationError: If text is empty
            EmbeddingError: If OpenAI API call fails
        """
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")

        vectors = await self._create([text], **kwargs)
        return vectors[0]

    async def batch_embed(self, texts: list[str], **kwargs) -> list[list[float]]:
        """
        Batch embed using OpenAI's native batch input.

        Returns:
            Embedding vectors in input order
        """
        embeddings: list[list[float]] = []
        for i in range(0, len(texts), self.batch_size):
            embeddings.extend(await self._create(texts[i : i + self.batch_size], **kwargs))
        return embeddings

    async def _create(self, inputs: list[str], **kwargs) -> list[list[float]]:
        try:
            response = await self.client.embeddings.create(
                model=self.model, input=inputs, **kwargs
            )

            if not response.data or len(response.data) != len(inputs):
                raise EmbeddingError(
                    "OpenAI returned an incomplete embedding response",
                    context={"expected": len(inputs), "received": len(response.data or [])},
                )

            ordered = sorted(response.data, key=lambda item: item.index)
            return [item.embedding for item in ordered]
        except EmbeddingError:
            raise
        except Exception as e:
            logger.bind(
                model=self.model,
                num_texts=len(inputs),
                error=str(e),
                error_type=type(e).__name__,
            ).error(f"OpenAI embedding error: {e}")
            raise EmbeddingError(f"OpenAI embedding error: {e}") from e

    async def get_dimension(self) -> int:
        """
        Get embedding dimension.

        Uses known dimensions for OpenAI models, falling back to a test embedding.
        """
        if self.model in self._MODEL_DIMENSIONS:
            return self._MODEL_DIMENSIONS[self.model]

        return await super().get_dimension()

    async def close(self):
        """Close OpenAI client."""
        await self.client.close()

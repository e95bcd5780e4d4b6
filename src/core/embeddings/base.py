"""
Abstract base class for embedding providers.
Turns chunk and query text into fixed-dimensionality vectors.
"""

from abc import ABC, abstractmethod


class Embedder(ABC):
    """
    Abstract base for embedding providers.

    Responsibilities:
    - Generate vector embeddings for text
    - Batch processing that preserves input order
    - Consistent vector dimensions

    Retry and timeout policy belongs to the concrete provider; callers
    treat any raised EmbeddingError as final.
    """

    @abstractmethod
    async def embed(self, text: str, **kwargs) -> list[float]:
        """
        Generate embedding vector for text.

        Args:
            text: Text to embed
            **kwargs: Provider-specific parameters

        Returns:
            List of floats representing the embedding vector

        Raises:
            ValidationError: If text is invalid
            EmbeddingError: If embedding generation fails
        """
        pass

    async def batch_embed(self, texts: list[str], **kwargs) -> list[list[float]]:
        """
        Generate embeddings for multiple texts.

        Default implementation processes sequentially. Either every text is
        embedded or an error is raised; partial results are never returned.

        Args:
            texts: List of texts to embed
            **kwargs: Provider-specific parameters

        Returns:
            List of embedding vectors (same order as input texts)
        """
        embeddings = []
        for text in texts:
            embedding = await self.embed(text, **kwargs)
            embeddings.append(embedding)
        return embeddings

    async def get_dimension(self) -> int:
        """
        Get the dimension of embeddings produced by this provider.

        Default implementation embeds a test string.

        Returns:
            Embedding vector dimension
        """
        test_embedding = await self.embed("test")
        return len(test_embedding)

    async def health_check(self) -> bool:
        """
        Probe the provider.

        Returns:
            True if an embedding can be produced
        """
        await self.embed("health check")
        return True

    @abstractmethod
    async def close(self):
        """Close any open connections."""
        pass

"""
Vector store construction.
"""

from urllib.parse import urlparse

from src.config import QdrantConfig
from src.core.vector_store.base import VectorStore
from src.core.vector_store.qdrant import QdrantStore
from src.utils.exceptions import ConfigurationError

_DEFAULT_QDRANT_PORT = 6333


class VectorStoreFactory:
    """Creates the chunk vector store."""

    @staticmethod
    def create(config: QdrantConfig, vector_size: int) -> VectorStore:
        """
        Create a Qdrant store for `config.url`.

        Args:
            config: Qdrant configuration
            vector_size: Embedding dimension of the collection

        Raises:
            ConfigurationError: If the URL has no host or the size is not positive
        """
        if vector_size < 1:
            raise ConfigurationError(
                f"Vector size must be positive, got {vector_size}",
                context={"vector_size": vector_size},
            )

        parsed = urlparse(config.url if "://" in config.url else f"http://{config.url}")
        if not parsed.hostname:
            raise ConfigurationError(
                f"Invalid Qdrant URL: {config.url}", context={"url": config.url}
            )

        return QdrantStore(
            host=parsed.hostname,
            port=parsed.port or _DEFAULT_QDRANT_PORT,
            collection_name=config.collection_name,
            vector_size=vector_size,
            use_grpc=config.use_grpc,
            hnsw_m=config.hnsw_m,
            hnsw_ef_construct=config.hnsw_ef_construct,
            on_disk=config.on_disk,
            batch_size=config.batch_size,
            timeout=config.timeout,
        )

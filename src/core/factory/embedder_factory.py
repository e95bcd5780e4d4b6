"""
Embedder construction and vector dimension resolution.
"""

from src.config import OLLAMA_DEFAULT_HOST, EmbedderConfig
from src.core.embeddings.base import Embedder
from src.core.embeddings.ollama import OllamaEmbedder
from src.core.embeddings.openai import OpenAIEmbedder
from src.utils.exceptions import ConfigurationError
from src.utils.logger import get_logger

logger = get_logger(__name__)


class EmbedderFactory:
    """Creates the configured embedder and resolves its vector size."""

    PROVIDERS = ("ollama", "openai")

    @staticmethod
    def create(config: EmbedderConfig) -> Embedder:
        """
        Create the embedder named by `config.provider` (case-insensitive).

        Raises:
            ConfigurationError: If the provider is unknown or misconfigured
        """
        provider = config.provider.lower()

        if provider == "ollama":
            return OllamaEmbedder(
                host=config.base_url or OLLAMA_DEFAULT_HOST,
                model=config.model,
                timeout=config.timeout,
            )
        if provider == "openai":
            if not config.api_key:
                raise ConfigurationError(
                    "OpenAI API key is required (set CME_EMBEDDER_API_KEY)",
                    context={"provider": "openai"},
                )
            return OpenAIEmbedder(
                api_key=config.api_key,
                model=config.model,
                base_url=config.base_url,
                timeout=config.timeout,
            )

        raise ConfigurationError(
            f"Unsupported embedder provider: {config.provider}",
            context={"supported": list(EmbedderFactory.PROVIDERS)},
        )

    @staticmethod
    async def get_dimension(embedder: Embedder, config: EmbedderConfig | None = None) -> int:
        """
        Vector size for the collection: the configured dimension if set,
        otherwise whatever the embedder reports.
        """
        if config and config.dimension:
            return config.dimension

        dimension = await embedder.get_dimension()
        logger.bind(dimension=dimension).info(f"Detected embedding dimension {dimension}")
        return dimension

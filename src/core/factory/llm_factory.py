"""
LLM provider construction.

`LLMConfig.provider` selects the adapter. Without a `base_url` the Ollama
adapter talks to the local daemon and the OpenAI adapter to the public API.
"""

from collections.abc import Callable

from src.config import OLLAMA_DEFAULT_HOST, LLMConfig
from src.core.llm.base import LLMProvider
from src.core.llm.ollama import OllamaLLM
from src.core.llm.openai import OpenAILLM
from src.utils.exceptions import ConfigurationError
from src.utils.logger import get_logger

logger = get_logger(__name__)


def _build_ollama(config: LLMConfig) -> LLMProvider:
    return OllamaLLM(
        host=config.base_url or OLLAMA_DEFAULT_HOST,
        model=config.model,
        timeout=config.timeout,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )


def _build_openai(config: LLMConfig) -> LLMProvider:
    if not config.api_key:
        raise ConfigurationError(
            "OpenAI API key is required (set CME_LLM_API_KEY)",
            context={"provider": "openai"},
        )
    return OpenAILLM(
        api_key=config.api_key,
        model=config.model,
        base_url=config.base_url,
        timeout=config.timeout,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )


_BUILDERS: dict[str, Callable[[LLMConfig], LLMProvider]] = {
    "ollama": _build_ollama,
    "openai": _build_openai,
}


class LLMFactory:
    """Creates the configured LLM provider."""

    @staticmethod
    def supported_providers() -> list[str]:
        return sorted(_BUILDERS)

    @staticmethod
    def create(config: LLMConfig) -> LLMProvider:
        """
        Create the LLM provider named by `config.provider` (case-insensitive).

        Raises:
            ConfigurationError: If the provider is unknown or misconfigured
        """
        provider = config.provider.lower()
        builder = _BUILDERS.get(provider)
        if builder is None:
            raise ConfigurationError(
                f"Unsupported LLM provider: {config.provider}",
                context={"supported": LLMFactory.supported_providers()},
            )

        llm = builder(config)
        logger.bind(provider=provider, model=config.model).debug(f"Created {provider} LLM provider")
        return llm

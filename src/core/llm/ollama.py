"""
Ollama LLM provider using native ollama-python SDK.
"""

from collections.abc import AsyncIterator

import ollama
from pydantic import BaseModel

from src.core.llm.base import LLMProvider
from src.utils.exceptions import LLMError, ValidationError
from src.utils.logger import get_logger

logger = get_logger(__name__)


class OllamaLLM(LLMProvider):
    """
    Ollama LLM provider.

    Uses the ollama-python AsyncClient for chat completions, JSON mode for
    structured outputs and `stream=True` for incremental analysis.
    """

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "llama3",
        timeout: float = 120.0,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ):
        """
        Initialize Ollama LLM provider.

        Args:
            host: Ollama server URL
            model: Model name for text generation (e.g., "llama3", "mistral")
            timeout: Request timeout in seconds
            temperature: Default sampling temperature for streamed chat
            max_tokens: Default generation limit for streamed chat
        """
        self.host = host
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens

        self.client = ollama.AsyncClient(host=host, timeout=timeout)

    async def complete(
        self,
        prompt: str,
        response_format: type[BaseModel] | None = None,
        max_tokens: int = 2000,
        temperature: float = 0.0,
        **kwargs,
    ) -> BaseModel | str:
        """
        Generate completion using Ollama.

        With `response_format`, the model's JSON schema is passed as the
        `format` constraint and the reply is validated into the model.

        Raises:
            ValidationError: If the prompt is empty
            LLMError: If the request fails or structured output cannot be parsed
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt cannot be empty")

        options = {
            "temperature": temperature,
            "num_predict": max_tokens,
            **kwargs.pop("options", {}),
        }
        format_type = response_format.model_json_schema() if response_format else None

        try:
            response = await self.client.chat(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                format=format_type,
                options=options,
                **kwargs,
            )
        except Exception as e:
            logger.bind(model=self.model, host=self.host, error=str(e)).error(
                f"Ollama chat error: {e}"
            )
            raise LLMError(f"Ollama chat error: {e}") from e

        content = response["message"]["content"]

        if response_format:
            try:
                return response_format.model_validate_json(self._extract_json(content))
            except Exception as e:
                raise LLMError(
                    f"Failed to parse structured output: {e}",
                    context={
                        "raw_response": content[:500],
                        "expected_format": response_format.__name__,
                    },
                ) from e

        return content

    async def stream_chat(self, messages: list[dict[str, str]], **kwargs) -> AsyncIterator[str]:
        """
        Stream chat increments from Ollama.

        Empty increments are skipped.
        """
        options = {
            "temperature": kwargs.pop("temperature", self.temperature),
            "num_predict": kwargs.pop("max_tokens", self.max_tokens),
        }

        try:
            stream = await self.client.chat(
                model=self.model, messages=messages, stream=True, options=options, **kwargs
            )
            async for part in stream:
                content = part["message"]["content"]
                if content:
                    yield content
        except Exception as e:
            logger.bind(model=self.model, host=self.host, error=str(e)).error(
                f"Ollama streaming error: {e}"
            )
            raise LLMError(f"Ollama streaming error: {e}") from e

    def _extract_json(self, content: str) -> str:
        """
        Extract JSON from content that might have markdown formatting.

        Args:
            content: Raw content that may contain JSON

        Returns:
            Cleaned JSON string
        """
        content = content.strip()

        if "```json" in content:
            content = content.split("```json")[1].split("```")[0].strip()
        elif "```" in content:
            content = content.split("```")[1].split("```")[0].strip()

        return content

    async def health_check(self) -> bool:
        """Probe the server by listing local models."""
        await self.client.list()
        return True

    async def list_models(self) -> list[str]:
        """List models pulled on the Ollama server."""
        try:
            response = await self.client.list()
        except Exception as e:
            logger.bind(host=self.host).error(f"Ollama list models error: {e}")
            raise LLMError(f"Ollama list models error: {e}") from e

        return [model["model"] for model in response["models"]]

    async def close(self):
        """Close client (Ollama SDK handles cleanup internally)."""
        pass

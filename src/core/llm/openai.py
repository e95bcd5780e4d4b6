"""
OpenAI LLM provider using official SDK.
"""

from collections.abc import AsyncIterator

from openai import AsyncOpenAI
from pydantic import BaseModel

from src.core.llm.base import LLMProvider
from src.utils.exceptions import LLMError, ValidationError
from src.utils.logger import get_logger

logger = get_logger(__name__)


class OpenAILLM(LLMProvider):
    """
    OpenAI LLM provider.

    Uses native structured outputs (Parse API) for extraction and
    `stream=True` chat completions for incremental analysis. The SDK client
    owns retries and request timeouts.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        organization: str | None = None,
        base_url: str | None = None,
        timeout: float = 120.0,
        max_retries: int = 2,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ):
        """
        Initialize OpenAI LLM provider.

        Args:
            api_key: OpenAI API key
            model: Model name (e.g., "gpt-4o", "gpt-4o-mini")
            organization: Optional organization ID
            base_url: Optional custom base URL
            timeout: Request timeout in seconds
            max_retries: Retries performed by the SDK before failing
            temperature: Default sampling temperature for streamed chat
            max_tokens: Default generation limit for streamed chat
        """
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

        self.client = AsyncOpenAI(
            api_key=api_key,
            organization=organization,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )

    async def complete(
        self,
        prompt: str,
        response_format: type[BaseModel] | None = None,
        max_tokens: int = 2000,
        temperature: float = 0.0,
        **kwargs,
    ) -> BaseModel | str:
        """
        Generate completion using OpenAI.

        Raises:
            ValidationError: If the prompt is empty
            LLMError: If the API call fails or returns nothing usable
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt cannot be empty")

        params = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "max_tokens": max_tokens,
            **kwargs,
        }

        try:
            if response_format:
                response = await self.client.beta.chat.completions.parse(
                    **params, response_format=response_format
                )

                parsed = response.choices[0].message.parsed
                if not parsed:
                    raise LLMError("OpenAI returned empty parsed response")

                return parsed

            response = await self.client.chat.completions.create(**params)
            content = response.choices[0].message.content

            if not content:
                raise LLMError("OpenAI returned empty content")

            return content
        except LLMError:
            raise
        except Exception as e:
            logger.bind(model=self.model, error=str(e), error_type=type(e).__name__).error(
                f"OpenAI API error: {e}"
            )
            raise LLMError(f"OpenAI API error: {e}") from e

    async def stream_chat(self, messages: list[dict[str, str]], **kwargs) -> AsyncIterator[str]:
        """
        Stream chat completion deltas.

        Empty deltas (role headers, finish chunks) are skipped.
        """
        params = {
            "model": self.model,
            "messages": messages,
            "temperature": kwargs.pop("temperature", self.temperature),
            "max_tokens": kwargs.pop("max_tokens", self.max_tokens),
            "stream": True,
            **kwargs,
        }

        try:
            stream = await self.client.chat.completions.create(**params)
            async for chunk in stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        except Exception as e:
            logger.bind(model=self.model, error=str(e), error_type=type(e).__name__).error(
                f"OpenAI streaming error: {e}"
            )
            raise LLMError(f"OpenAI streaming error: {e}") from e

    async def health_check(self) -> bool:
        """Probe the API by retrieving the configured model."""
        await self.client.models.retrieve(self.model)
        return True

    async def list_models(self) -> list[str]:
        """List models visible to the API key."""
        try:
            page = await self.client.models.list()
        except Exception as e:
            logger.bind(model=self.model).error(f"OpenAI list models error: {e}")
            raise LLMError(f"OpenAI list models error: {e}") from e

        return sorted(model.id for model in page.data)

    async def close(self):
        """Close OpenAI client."""
        await self.client.close()

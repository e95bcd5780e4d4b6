"""
Abstract base class for LLM providers.
Handles completion, incremental chat streaming, relationship extraction
and summarization.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from pydantic import BaseModel

from src.models.relationships import ExtractedRelationship, RelationshipExtraction
from src.utils.exceptions import LLMError

SUMMARY_PROMPT = """You are a helpful assistant that creates concise summaries of text.
Summarize the following text in no more than {max_length} characters.
Focus on the main points and key information.

Text:
{text}

Summary:"""

RELATIONSHIP_PROMPT = """Extract relationships between entities from the following text.
For each relationship give the source entity, the target entity, the relationship
type (a short verb-like label such as WORKS_FOR, LOCATED_IN, PART_OF), a confidence
between 0 and 1, and the phrase from the text that supports it.
Only include relationships that are stated or strongly implied by the text.
If there are none, return an empty list.

Text:
{text}"""


class LLMProvider(ABC):
    """
    Abstract base for LLM providers.

    Responsibilities:
    - Text completion/generation
    - Structured output (JSON/Pydantic models)
    - Incremental chat streaming
    - Health probing and model listing

    Retry and timeout policy belongs to the concrete provider; the engine
    never retries a failed call.
    """

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        response_format: type[BaseModel] | None = None,
        max_tokens: int = 2000,
        temperature: float = 0.0,
        **kwargs,
    ) -> BaseModel | str:
        """
        Generate completion from prompt.

        Args:
            prompt: The input prompt
            response_format: Optional Pydantic model for structured output
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature (0.0 = deterministic, 1.0 = creative)
            **kwargs: Provider-specific parameters

        Returns:
            Pydantic model instance if response_format provided, else string

        Raises:
            LLMError: Provider failure or unparseable structured output
        """
        pass

    @abstractmethod
    def stream_chat(self, messages: list[dict[str, str]], **kwargs) -> AsyncIterator[str]:
        """
        Stream a chat response as text increments.

        The returned iterator is finite, single-pass and not restartable.
        Closing it (or cancelling the consuming task) aborts the request.

        Args:
            messages: Chat messages as {"role": ..., "content": ...} dicts

        Returns:
            Async iterator of text increments in the order received

        Raises:
            LLMError: If the request fails
        """
        pass

    async def extract_relationships(self, text: str) -> list[ExtractedRelationship]:
        """
        Extract entity relationships from text.

        Args:
            text: Source text

        Returns:
            Extracted relationships (possibly empty)

        Raises:
            LLMError: If the provider fails or returns unusable output
        """
        result = await self.complete(
            RELATIONSHIP_PROMPT.format(text=text),
            response_format=RelationshipExtraction,
            temperature=0.0,
        )
        if not isinstance(result, RelationshipExtraction):
            raise LLMError("Relationship extraction returned an unexpected response")
        return result.relationships

    async def summarize(self, text: str, max_length: int = 500) -> str:
        """
        Summarize text in at most `max_length` characters.

        Longer responses are cut to `max_length - 3` characters plus "...".

        Raises:
            LLMError: If the provider fails
        """
        summary = await self.complete(
            SUMMARY_PROMPT.format(text=text, max_length=max_length), temperature=0.3
        )
        summary = str(summary).strip()
        if len(summary) > max_length:
            summary = summary[: max_length - 3] + "..."
        return summary

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Probe the provider.

        Returns:
            True if the provider answered
        """
        pass

    @abstractmethod
    async def list_models(self) -> list[str]:
        """
        List models available from the provider.

        Raises:
            LLMError: If listing fails
        """
        pass

    @abstractmethod
    async def close(self):
        """Close any open connections."""
        pass

"""
Fixed-width character chunking.

Content is sliced into consecutive windows of at most `max_chunk_size`
characters. Nothing is trimmed or dropped, so joining the chunks yields the
original content exactly and a document of length n produces
ceil(n / max_chunk_size) chunks.
"""

from src.config import IngestionConfig
from src.models.document import Chunk
from src.utils.exceptions import ValidationError


def chunk_text(content: str, max_chunk_size: int) -> list[str]:
    """
    Split content into ordered chunks of at most `max_chunk_size` characters.

    Args:
        content: Raw text
        max_chunk_size: Maximum chunk length in characters (>= 1)

    Returns:
        Ordered chunk texts; empty content yields an empty list

    Raises:
        ValidationError: If max_chunk_size is below 1
    """
    if max_chunk_size < 1:
        raise ValidationError(
            f"Chunk size must be at least 1, got {max_chunk_size}",
            context={"chunk_size": max_chunk_size},
        )
    if not content:
        return []

    return [content[i : i + max_chunk_size] for i in range(0, len(content), max_chunk_size)]


class TextChunker:
    """
    Chunker bound to a configured chunk size.

    Usage:
        chunker = TextChunker()
        texts = chunker.split("Some long text...")
        chunks = chunker.build_chunks("doc_1", "Some long text...")
    """

    def __init__(self, config: IngestionConfig | None = None):
        """
        Initialize chunker with configuration.

        Args:
            config: Optional ingestion configuration. Uses defaults if not provided.
        """
        self.config = config or IngestionConfig()

    @property
    def chunk_size(self) -> int:
        return self.config.chunk_size

    def split(self, content: str, chunk_size: int | None = None) -> list[str]:
        """Split content using the given size, or the configured one."""
        return chunk_text(content, chunk_size if chunk_size is not None else self.chunk_size)

    def build_chunks(
        self, document_id: str, content: str, chunk_size: int | None = None
    ) -> list[Chunk]:
        """
        Split content into Chunk models with stable 0-based ordinals.

        Args:
            document_id: Owning document ID
            content: Document content
            chunk_size: Optional override of the configured size

        Returns:
            Chunks without embeddings
        """
        return [
            Chunk(document_id=document_id, ordinal=ordinal, text=text)
            for ordinal, text in enumerate(self.split(content, chunk_size))
        ]

"""
Chunker module for splitting document content into embeddable slices.
"""

from src.core.chunker.chunker import TextChunker, chunk_text

__all__ = ["TextChunker", "chunk_text"]

"""
ID generation utilities for the Context Memory Engine.

Provides consistent ID generation for all entity types:
- Documents: doc_xxx
- Chunks: doc_xxx_chunk_N
- Analysis sessions: session_xxx
"""

from uuid import uuid4


def generate_document_id() -> str:
    """
    Generate unique Document ID.

    Returns:
        ID in format "doc_xxx" where xxx is 12 hex characters
    """
    return f"doc_{uuid4().hex[:12]}"


def generate_chunk_id(document_id: str, ordinal: int) -> str:
    """
    Generate Chunk ID based on parent document.

    Chunk IDs are deterministic so re-ingesting a document addresses
    the same vector points.

    Args:
        document_id: Parent document ID
        ordinal: Zero-based chunk position

    Returns:
        ID in format "<document_id>_chunk_N"
    """
    return f"{document_id}_chunk_{ordinal}"


def generate_session_id() -> str:
    """
    Generate unique streaming analysis session ID.

    Returns:
        ID in format "session_xxx" where xxx is 12 hex characters
    """
    return f"session_{uuid4().hex[:12]}"

"""
Embedders turning chunk and query text into vectors.

Backends: Ollama and OpenAI-compatible embedding endpoints.
"""

from src.core.embeddings.base import Embedder
from src.core.embeddings.ollama import OllamaEmbedder
from src.core.embeddings.openai import OpenAIEmbedder

__all__ = [
    "Embedder",
    "OllamaEmbedder",
    "OpenAIEmbedder",
]

"""
Factory modules for creating engine components.

Provides modular factories for LLM, Embedder, Graph Store, Vector Store
and Document Store.
"""

from src.core.factory.document_factory import DocumentStoreFactory
from src.core.factory.embedder_factory import EmbedderFactory
from src.core.factory.graph_factory import GraphStoreFactory
from src.core.factory.llm_factory import LLMFactory
from src.core.factory.vector_factory import VectorStoreFactory

__all__ = [
    "LLMFactory",
    "EmbedderFactory",
    "GraphStoreFactory",
    "VectorStoreFactory",
    "DocumentStoreFactory",
]

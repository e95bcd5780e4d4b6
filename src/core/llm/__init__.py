"""
LLM providers used for relationship extraction, summaries and streamed
analysis.

Backends: Ollama (`ollama.AsyncClient`) and OpenAI-compatible APIs
(`openai.AsyncOpenAI`).
"""

from src.core.llm.base import LLMProvider
from src.core.llm.ollama import OllamaLLM
from src.core.llm.openai import OpenAILLM

__all__ = [
    "LLMProvider",
    "OllamaLLM",
    "OpenAILLM",
]


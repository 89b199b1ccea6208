"""LLM backend implementations."""

from .base import LLMBackend, LLMResponse, LLMUnavailableError, Message
from .openai import OpenAIBackend
from .factory import get_backend, list_backends

__all__ = [
    "LLMBackend",
    "LLMResponse",
    "LLMUnavailableError",
    "Message",
    "OpenAIBackend",
    "get_backend",
    "list_backends",
]

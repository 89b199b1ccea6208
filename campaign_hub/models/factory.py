"""Backend factory for LLM backends."""

from ..config import (
    LLM_BACKEND,
    OPENROUTER_API_KEY,
    OPENROUTER_BASE_URL,
    OPENROUTER_MODEL,
)
from .base import LLMBackend
from .openai import OpenAIBackend


def get_backend(name: str | None = None) -> LLMBackend:
    """Get an LLM backend instance by name.

    Args:
        name: Backend name (openai, openrouter). Defaults to LLM_BACKEND.

    Raises:
        ValueError: If backend name is unknown.
    """
    name = name or LLM_BACKEND

    if name == "openai":
        return OpenAIBackend()
    if name == "openrouter":
        # OpenRouter speaks the OpenAI API with its own key and model ids
        return OpenAIBackend(
            model=OPENROUTER_MODEL,
            api_key=OPENROUTER_API_KEY,
            base_url=OPENROUTER_BASE_URL,
        )
    raise ValueError(f"Unknown backend: {name}. Available: {list_backends()}")


def list_backends() -> list[str]:
    """List available backend names."""
    return ["openai", "openrouter"]

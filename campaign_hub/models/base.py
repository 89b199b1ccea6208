"""Abstract LLM backend interface."""

from abc import ABC, abstractmethod

from pydantic import BaseModel


class LLMUnavailableError(Exception):
    """Raised when the LLM backend is unavailable."""

    pass


class LLMResponse(BaseModel):
    """Response from an LLM backend."""

    text: str
    finish_reason: str = "stop"
    usage: dict[str, int] = {}


class Message(BaseModel):
    """A message in the conversation."""

    role: str  # "system", "user", "assistant"
    content: str


class LLMBackend(ABC):
    """Abstract base class for LLM backends."""

    @abstractmethod
    def chat(
        self,
        messages: list[Message],
        json_mode: bool = False,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Send messages and get a response.

        Args:
            messages: Conversation messages.
            json_mode: Ask the model for a single JSON object.
            temperature: Sampling temperature; backend default when None.
            max_tokens: Completion length cap; backend default when None.
        """
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        """Get the name of the model being used."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the backend is available and configured."""
        pass

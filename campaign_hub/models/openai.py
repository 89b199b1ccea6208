"""OpenAI LLM backend implementation.

Also works with OpenRouter by setting a custom base_url.
"""

import logging
import time
from typing import Any

from openai import APIConnectionError, APIStatusError, OpenAI, RateLimitError

from ..config import LLM_MAX_RETRIES, OPENAI_API_KEY, OPENAI_BASE_URL, OPENAI_MODEL
from .base import LLMBackend, LLMResponse, LLMUnavailableError, Message

logger = logging.getLogger(__name__)


class OpenAIBackend(LLMBackend):
    """Chat completions through the OpenAI SDK."""

    def __init__(
        self,
        model: str | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
        max_retries: int = LLM_MAX_RETRIES,
        retry_delay: float = 1.0,
    ):
        self.model = model or OPENAI_MODEL
        self._api_key = api_key if api_key is not None else OPENAI_API_KEY
        self._base_url = base_url or OPENAI_BASE_URL
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self._client = None

    @property
    def client(self) -> OpenAI:
        """Lazily initialize the OpenAI client."""
        if self._client is None:
            self._client = OpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                max_retries=0,  # We handle retries ourselves
            )
        return self._client

    def is_available(self) -> bool:
        """Check that a key is configured and the API answers."""
        if not self._api_key:
            return False
        try:
            self.client.models.list()
            return True
        except Exception as e:
            logger.debug(f"OpenAI availability check failed: {e}")
            return False

    def chat(
        self,
        messages: list[Message],
        json_mode: bool = False,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Send messages and get a response.

        Connection and rate-limit failures are retried with exponential backoff.

        Raises:
            LLMUnavailableError: If the API cannot be reached after retries,
                or rejects the request.
        """
        if not self._api_key:
            raise LLMUnavailableError("No API key configured for OpenAI backend")

        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        if temperature is not None:
            kwargs["temperature"] = temperature
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens

        last_error = None
        for attempt in range(self.max_retries):
            try:
                response = self.client.chat.completions.create(**kwargs)
                return self._parse_response(response)

            except (APIConnectionError, RateLimitError) as e:
                last_error = e
                if attempt < self.max_retries - 1:
                    delay = self.retry_delay * (2**attempt)
                    logger.warning(
                        f"OpenAI API connection failed (attempt {attempt + 1}/{self.max_retries}), "
                        f"retrying in {delay:.1f}s: {e}"
                    )
                    time.sleep(delay)
                else:
                    logger.error(f"OpenAI API failed after {self.max_retries} attempts: {e}")

            except APIStatusError as e:
                # Auth and request errors are not transient
                logger.error(f"OpenAI API error: {e}")
                raise LLMUnavailableError(f"OpenAI API error: {e}") from e

        raise LLMUnavailableError(
            f"OpenAI unavailable after {self.max_retries} attempts. Last error: {last_error}"
        )

    def _parse_response(self, response) -> LLMResponse:
        choice = response.choices[0]
        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }
        return LLMResponse(
            text=choice.message.content or "",
            finish_reason="length" if choice.finish_reason == "length" else "stop",
            usage=usage,
        )

    def get_model_name(self) -> str:
        return self.model

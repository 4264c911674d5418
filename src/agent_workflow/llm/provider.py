"""Abstract base class for LLM providers."""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    This interface is the only surface the built-in tools use to reach an
    AI-completion backend.
    """

    @abstractmethod
    def chat(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        **kwargs: Any,
    ) -> str:
        """Generate a chat completion from messages.

        Args:
            messages: List of message dicts with 'role' and 'content'.
            model: Model override. Defaults to the configured chat model.
            **kwargs: Additional provider-specific parameters.

        Returns:
            Generated chat response.
        """
        pass

    @abstractmethod
    def stream_chat(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        **kwargs: Any,
    ) -> Iterator[str]:
        """Generate a chat completion incrementally.

        Args:
            messages: List of message dicts with 'role' and 'content'.
            model: Model override. Defaults to the configured chat model.
            **kwargs: Additional provider-specific parameters.

        Returns:
            Iterator of content deltas in arrival order.
        """
        pass

    @abstractmethod
    def embed(self, text: str, model: str | None = None) -> list[float]:
        """Compute an embedding vector for text.

        Args:
            text: Text to embed.
            model: Model override. Defaults to the configured embedding model.

        Returns:
            The embedding vector.
        """
        pass

    @abstractmethod
    def generate_image(self, prompt: str, size: str | None = None) -> str:
        """Generate an image and return its URL.

        Args:
            prompt: Image description.
            size: Image size such as '1024x1024'.

        Returns:
            URL of the generated image.
        """
        pass

    @abstractmethod
    def count_tokens(self, text: str) -> int:
        """Count the number of tokens in text.

        Not used by the built-in tools, which budget prompts with the
        provider-independent `estimate_tokens`; exposed for callers that size
        their own prompts against a specific backend.

        Args:
            text: Text to count tokens for.

        Returns:
            Number of tokens.
        """
        pass

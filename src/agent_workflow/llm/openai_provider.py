"""OpenAI LLM provider implementation."""

import logging
from collections.abc import Iterator
from typing import Any

from openai import OpenAI, OpenAIError

from agent_workflow.core.config import LLMConfig
from agent_workflow.errors import ToolExecutionFailed
from agent_workflow.llm.provider import LLMProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI API provider implementation.

    Works with any OpenAI-compatible endpoint when `openai_base_url` is set.
    SDK errors are surfaced as `ToolExecutionFailed`.
    """

    def __init__(self, config: LLMConfig, api_key: str | None = None) -> None:
        """Initialize the OpenAI provider.

        Args:
            config: LLM configuration.
            api_key: Key overriding `config.openai_api_key`.

        Raises:
            ValueError: If API key is not provided.
        """
        resolved_key = api_key or config.openai_api_key
        if not resolved_key:
            raise ValueError("OpenAI API key is required")

        self.config = config
        client_kwargs: dict[str, Any] = {
            "api_key": resolved_key,
            "timeout": config.request_timeout_seconds,
        }
        if config.openai_base_url:
            client_kwargs["base_url"] = config.openai_base_url
        self.client = OpenAI(**client_kwargs)
        self.chat_model = config.chat_model
        self.embedding_model = config.embedding_model

        logger.info(f"OpenAI provider initialized with model: {self.chat_model}")

    def chat(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        **kwargs: Any,
    ) -> str:
        logger.debug(f"Generating chat completion with {len(messages)} messages")

        try:
            response = self.client.chat.completions.create(
                model=model or self.chat_model,
                messages=messages,  # type: ignore
                **kwargs,
            )
        except OpenAIError as e:
            raise ToolExecutionFailed(f"chat completion failed: {e}") from e

        if not response.choices:
            raise ToolExecutionFailed("no choices returned from the API")

        content = response.choices[0].message.content or ""
        logger.debug(f"Generated {len(content)} characters")

        return content

    def stream_chat(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        **kwargs: Any,
    ) -> Iterator[str]:
        """Open a streaming chat completion.

        The request is sent eagerly so connection and auth failures raise here,
        before any iterator is handed out.
        """
        logger.debug(f"Opening chat stream with {len(messages)} messages")

        try:
            response = self.client.chat.completions.create(
                model=model or self.chat_model,
                messages=messages,  # type: ignore
                stream=True,
                **kwargs,
            )
        except OpenAIError as e:
            raise ToolExecutionFailed(f"failed to execute request: {e}") from e

        return self._iter_deltas(response)

    @staticmethod
    def _iter_deltas(response: Any) -> Iterator[str]:
        try:
            for chunk in response:
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content
        except OpenAIError as e:
            raise ToolExecutionFailed(f"failed to read stream: {e}") from e
        finally:
            close = getattr(response, "close", None)
            if close is not None:
                close()

    def embed(self, text: str, model: str | None = None) -> list[float]:
        try:
            response = self.client.embeddings.create(
                model=model or self.embedding_model,
                input=text,
            )
        except OpenAIError as e:
            raise ToolExecutionFailed(f"embedding request failed: {e}") from e

        if not response.data:
            raise ToolExecutionFailed("no embeddings returned from OpenAI API")

        return list(response.data[0].embedding)

    def generate_image(self, prompt: str, size: str | None = None) -> str:
        try:
            response = self.client.images.generate(
                prompt=prompt,
                n=1,
                size=size or self.config.image_size,  # type: ignore
            )
        except OpenAIError as e:
            raise ToolExecutionFailed(f"image generation failed: {e}") from e

        if not response.data or not response.data[0].url:
            raise ToolExecutionFailed("no images returned from OpenAI API")

        return response.data[0].url

    def count_tokens(self, text: str) -> int:
        """Count tokens using a simple approximation.

        Args:
            text: Text to count tokens for.

        Returns:
            Estimated number of tokens.

        Note:
            This is a rough approximation. For accurate counts,
            use tiktoken library with the specific model's encoding.
        """
        # Rough approximation: 1 token ≈ 4 characters
        return len(text) // 4

"""Factory for creating LLM providers."""

import logging
import threading
from collections.abc import Callable

from agent_workflow.core.config import LLMConfig
from agent_workflow.llm.openai_provider import OpenAIProvider
from agent_workflow.llm.provider import LLMProvider

logger = logging.getLogger(__name__)


class LLMFactory:
    """Factory for creating LLM provider instances."""

    @staticmethod
    def create(config: LLMConfig, api_key: str | None = None) -> LLMProvider:
        """Create an LLM provider based on configuration.

        Args:
            config: LLM configuration specifying the provider.
            api_key: Optional key overriding the configured one.

        Returns:
            Configured LLM provider instance.

        Raises:
            ValueError: If provider type is not supported.
        """
        logger.info(f"Creating LLM provider: {config.provider}")

        if config.provider == "openai":
            return OpenAIProvider(config, api_key=api_key)
        else:
            raise ValueError(f"Unsupported LLM provider: {config.provider}")

    @staticmethod
    def cached(config: LLMConfig) -> Callable[[str | None], LLMProvider]:
        """Return a thread-safe factory creating one provider per API key, on first use.

        Providers are built lazily so workflows that use no AI tools never
        need a key.
        """
        providers: dict[str | None, LLMProvider] = {}
        lock = threading.Lock()

        def provider_for(api_key: str | None = None) -> LLMProvider:
            with lock:
                if api_key not in providers:
                    providers[api_key] = LLMFactory.create(config, api_key=api_key)
                return providers[api_key]

        return provider_for

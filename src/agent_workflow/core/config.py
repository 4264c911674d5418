"""Core configuration for the workflow engine."""

import logging
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMConfig(BaseSettings):
    """Configuration for the LLM provider backing the built-in tools."""

    provider: Literal["openai"] = Field(
        default="openai",
        description="LLM provider to use",
    )

    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("AGENT_WORKFLOW_LLM_OPENAI_API_KEY", "OPENAI_API_KEY"),
        description="OpenAI API key",
    )
    openai_base_url: str | None = Field(
        default=None,
        description="Base URL for OpenAI-compatible providers (None = api.openai.com)",
    )
    chat_model: str = Field(
        default="gpt-3.5-turbo",
        description="Model used for chat completions",
    )
    embedding_model: str = Field(
        default="text-embedding-ada-002",
        description="Model used for embeddings",
    )
    image_size: str = Field(
        default="1024x1024",
        description="Size of generated images",
    )
    request_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="HTTP timeout for provider requests",
    )

    model_config = SettingsConfigDict(
        env_prefix="AGENT_WORKFLOW_LLM_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )


class EngineConfig(BaseSettings):
    """Configuration for scheduling and tool execution."""

    max_workers: int = Field(
        default=8,
        gt=0,
        description="Upper bound on concurrently running agents or tasks",
    )
    task_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Per-task tool call timeout (None = no timeout)",
    )
    pdf_max_tokens: int = Field(
        default=8000,
        gt=0,
        description="Token cap applied to extracted PDF text",
    )
    download_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout for PDF downloads",
    )

    model_config = SettingsConfigDict(
        env_prefix="AGENT_WORKFLOW_ENGINE_",
        env_file=".env",
        extra="ignore",
    )


class WorkflowSettings(BaseSettings):
    """Main configuration for the workflow engine."""

    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    llm: LLMConfig = Field(
        default_factory=LLMConfig,
        description="LLM configuration",
    )
    engine: EngineConfig = Field(
        default_factory=EngineConfig,
        description="Engine configuration",
    )

    model_config = SettingsConfigDict(
        env_prefix="AGENT_WORKFLOW_",
        env_file=".env",
        extra="ignore",
    )

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        from agent_workflow.logging import configure_logging

        configure_logging(self.log_level, fmt=self.log_format)

        if self.debug:
            logging.getLogger("agent_workflow").setLevel(logging.DEBUG)

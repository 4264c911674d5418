"""Built-in tools: document extraction, embeddings, completions and images.

Each tool validates its own inputs and reaches the AI provider only through
`LLMProvider`. Tools accept an optional `api_key` input that overrides the
configured key for that call.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from agent_workflow.core.config import EngineConfig
from agent_workflow.errors import ToolExecutionFailed, ToolInputInvalid
from agent_workflow.llm.provider import LLMProvider
from agent_workflow.tools.inputs import optional_bool, optional_str, require_int, require_str
from agent_workflow.tools.pdf import download_pdf, extract_text_from_pdf
from agent_workflow.tools.registry import Tool, ToolContext, ToolRegistry, ToolResult
from agent_workflow.tools.stream import ResultStream, produce_stream
from agent_workflow.tools.text import (
    estimate_tokens,
    split_text_into_chunks,
    truncate_text_to_token_limit,
)

logger = logging.getLogger(__name__)

MAX_PROMPT_TOKENS = 8000
IMAGE_NEED_SYSTEM_PROMPT = (
    "You are an assistant that identifies the need for diagrams or flowcharts in text."
)

ProviderFactory = Callable[[str | None], LLMProvider]


class BuiltinTools:
    """Holds the collaborators shared by the built-in tools."""

    def __init__(self, provider_for: ProviderFactory, engine: EngineConfig | None = None) -> None:
        self._provider_for = provider_for
        self._engine = engine or EngineConfig()

    def _provider(self, inputs: dict[str, Any]) -> LLMProvider:
        api_key = optional_str(inputs, "api_key")
        try:
            return self._provider_for(api_key)
        except ValueError as e:
            # No key in the inputs or the configuration.
            raise ToolInputInvalid(f"input 'api_key' is required: {e}") from e

    def text_to_pdf(self, inputs: dict[str, Any], context: ToolContext) -> ToolResult:
        text = require_str(inputs, "text")
        logger.info("Converting text to PDF")
        return ToolResult.of(f"PDF Content from: {text}")

    def content_generator(self, inputs: dict[str, Any], context: ToolContext) -> ToolResult:
        query = require_str(inputs, "query")
        chunk_size = require_int(inputs, "chunkSize")
        chunk_overlap = require_int(inputs, "chunkOverlap")
        context_text = require_str(inputs, "context")
        verbose = optional_bool(inputs, "verbose")
        model = optional_str(inputs, "model")

        chunks = split_text_into_chunks(context_text, chunk_size, chunk_overlap)
        prompt = f"Context: {chunks[0] if chunks else ''}\n\nQuery: {query}"
        if estimate_tokens(prompt) > MAX_PROMPT_TOKENS:
            prompt = truncate_text_to_token_limit(prompt, MAX_PROMPT_TOKENS - 500)

        if verbose:
            logger.info(f"Generated prompt: {prompt}")

        # Opening the stream is synchronous so request failures raise here,
        # before any stream exists.
        deltas = self._provider(inputs).stream_chat(
            [{"role": "user", "content": prompt}], model=model
        )

        def _pump(stream: ResultStream) -> None:
            for delta in deltas:
                context.raise_if_cancelled()
                stream.put(delta)

        return ToolResult.streaming(produce_stream(_pump, name="openai_content_generator"))

    def image_generator(self, inputs: dict[str, Any], context: ToolContext) -> ToolResult:
        description = require_str(inputs, "description")
        verbose = optional_bool(inputs, "verbose")

        if verbose:
            logger.info(f"Generating image with description: {description}")

        url = self._provider(inputs).generate_image(description)

        if verbose:
            logger.info(f"Generated image URL: {url}")
        return ToolResult.of(url)

    def query_to_embedding(self, inputs: dict[str, Any], context: ToolContext) -> ToolResult:
        query = require_str(inputs, "query")
        verbose = optional_bool(inputs, "verbose")
        model = optional_str(inputs, "model")

        if verbose:
            logger.info(f"Sending query to embedding API: {query}")

        embedding = self._provider(inputs).embed(query, model=model)

        if verbose:
            logger.info(f"Query embedding generated, embedding length: {len(embedding)}")
        return ToolResult.of(embedding)

    def pdf_to_embeddings(self, inputs: dict[str, Any], context: ToolContext) -> ToolResult:
        pdf_content = optional_str(inputs, "pdf_content", default="") or ""
        chunk_size = require_int(inputs, "chunkSize")
        chunk_overlap = require_int(inputs, "chunkOverlap")
        verbose = optional_bool(inputs, "verbose")
        model = optional_str(inputs, "model")

        logger.info(f"PDF content length: {len(pdf_content)}")
        provider = self._provider(inputs)

        embeddings: list[list[float]] = []
        for i, chunk in enumerate(split_text_into_chunks(pdf_content, chunk_size, chunk_overlap)):
            context.raise_if_cancelled()
            if not chunk:
                if verbose:
                    logger.info(f"Chunk {i + 1} is empty, skipping.")
                continue
            if verbose:
                logger.info(f"Processing chunk {i + 1}: {chunk}")
            embeddings.append(provider.embed(chunk, model=model))

        if not embeddings:
            raise ToolExecutionFailed("no valid embeddings were produced")

        if verbose:
            logger.info(f"Total embeddings generated: {len(embeddings)}")
        return ToolResult.of(embeddings)

    def pdf_extractor(self, inputs: dict[str, Any], context: ToolContext) -> ToolResult:
        pdf_url = require_str(inputs, "pdf_url")
        verbose = optional_bool(inputs, "verbose")

        path: Path = download_pdf(pdf_url, timeout=self._engine.download_timeout_seconds)
        try:
            context.raise_if_cancelled()
            text = extract_text_from_pdf(path, max_tokens=self._engine.pdf_max_tokens)
        finally:
            path.unlink(missing_ok=True)

        if verbose:
            logger.info(f"Extracted text from PDF: {text}")
        return ToolResult.of(text)

    def image_need_checker(self, inputs: dict[str, Any], context: ToolContext) -> ToolResult:
        content = require_str(inputs, "content")
        model = optional_str(inputs, "model")

        messages = [
            {"role": "system", "content": IMAGE_NEED_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    "Given the following content, identify if any diagrams or flowcharts are "
                    f"needed and provide descriptions: {content}. "
                    "THE OUTPUT TO BE STRICTLY A LIST OF STRINGS, ONE PER LINE"
                ),
            },
        ]
        return ToolResult.of(self._provider(inputs).chat(messages, model=model))

    def tools(self) -> list[Tool]:
        return [
            Tool(id="text_to_pdf", name="Text to PDF", execute=self.text_to_pdf),
            Tool(
                id="openai_content_generator",
                name="OpenAI Content Generator",
                execute=self.content_generator,
            ),
            Tool(id="image_generator", name="Image Generator", execute=self.image_generator),
            Tool(
                id="query_to_embedding",
                name="Query to Embedding",
                execute=self.query_to_embedding,
            ),
            Tool(id="pdf_to_embeddings", name="PDF to Embeddings", execute=self.pdf_to_embeddings),
            Tool(id="pdf_extractor", name="PDF Extractor", execute=self.pdf_extractor),
            Tool(
                id="image_need_checker",
                name="Image Need Checker",
                execute=self.image_need_checker,
            ),
        ]


def register_builtin_tools(
    registry: ToolRegistry,
    provider_for: ProviderFactory,
    engine: EngineConfig | None = None,
) -> list[Tool]:
    """Register every built-in tool on `registry` and return them."""
    tools = BuiltinTools(provider_for, engine).tools()
    for tool in tools:
        registry.register(tool)
    logger.debug(f"Registered {len(tools)} built-in tools")
    return tools

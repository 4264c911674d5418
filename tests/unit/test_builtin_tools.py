"""Unit tests for the built-in tools."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import Mock

import pytest

from agent_workflow.core.config import EngineConfig, LLMConfig
from agent_workflow.errors import ToolExecutionFailed, ToolInputInvalid
from agent_workflow.llm.factory import LLMFactory
from agent_workflow.llm.provider import LLMProvider
from agent_workflow.tools.builtin import BuiltinTools, register_builtin_tools
from agent_workflow.tools.registry import ToolContext, ToolRegistry
from agent_workflow.tools.text import split_text_into_chunks
from agent_workflow.workflow.manager import WorkflowManager
from agent_workflow.workflow.task import Task


@pytest.fixture
def provider() -> Mock:
    return Mock(spec=LLMProvider)


@pytest.fixture
def keys_seen() -> list[str | None]:
    return []


@pytest.fixture
def tools(provider: Mock, keys_seen: list[str | None]) -> BuiltinTools:
    def _provider_for(api_key: str | None) -> LLMProvider:
        keys_seen.append(api_key)
        return provider

    return BuiltinTools(_provider_for, EngineConfig())


def test_register_builtin_tools_uses_known_ids(provider: Mock) -> None:
    registry = ToolRegistry()

    register_builtin_tools(registry, lambda _key: provider)

    assert sorted(registry.ids()) == [
        "image_generator",
        "image_need_checker",
        "openai_content_generator",
        "pdf_extractor",
        "pdf_to_embeddings",
        "query_to_embedding",
        "text_to_pdf",
    ]


def test_text_to_pdf(tools: BuiltinTools) -> None:
    result = tools.text_to_pdf({"text": "hello"}, ToolContext())

    assert result.value == "PDF Content from: hello"
    assert result.stream is None


def test_missing_required_input_is_reported(tools: BuiltinTools) -> None:
    with pytest.raises(ToolInputInvalid, match="'text' is required"):
        tools.text_to_pdf({}, ToolContext())


def test_wrong_input_type_is_reported(tools: BuiltinTools) -> None:
    with pytest.raises(ToolInputInvalid, match="'chunkSize' is required and must be an int"):
        tools.pdf_to_embeddings({"pdf_content": "a b", "chunkSize": "3"}, ToolContext())


def test_query_to_embedding_uses_api_key_override(
    tools: BuiltinTools, provider: Mock, keys_seen: list[str | None]
) -> None:
    provider.embed.return_value = [0.5, 0.5]

    result = tools.query_to_embedding({"query": "q", "api_key": "sk-1"}, ToolContext())

    assert result.value == [0.5, 0.5]
    assert keys_seen == ["sk-1"]
    provider.embed.assert_called_once_with("q", model=None)


def test_pdf_to_embeddings_embeds_each_chunk(tools: BuiltinTools, provider: Mock) -> None:
    provider.embed.side_effect = lambda chunk, model=None: [float(len(chunk))]

    result = tools.pdf_to_embeddings(
        {"pdf_content": "a b c d e", "chunkSize": 3, "chunkOverlap": 1}, ToolContext()
    )

    assert result.value == [[5.0], [5.0]]
    assert [c.args[0] for c in provider.embed.call_args_list] == ["a b c", "c d e"]


def test_pdf_to_embeddings_without_content_fails(tools: BuiltinTools) -> None:
    with pytest.raises(ToolExecutionFailed, match="no valid embeddings"):
        tools.pdf_to_embeddings({"chunkSize": 3, "chunkOverlap": 1}, ToolContext())


def test_content_generator_streams_deltas(tools: BuiltinTools, provider: Mock) -> None:
    provider.stream_chat.return_value = iter(["Sum", "mary"])

    result = tools.content_generator(
        {
            "query": "Summarise",
            "context": "one two three four",
            "chunkSize": 2,
            "chunkOverlap": 0,
        },
        ToolContext(),
    )

    assert result.value is None
    assert result.stream is not None
    assert result.stream.join_text() == "Summary"
    messages = provider.stream_chat.call_args.args[0]
    assert messages == [{"role": "user", "content": "Context: one two\n\nQuery: Summarise"}]


def test_content_generator_error_before_stream_yields_no_stream(
    tools: BuiltinTools, provider: Mock
) -> None:
    provider.stream_chat.side_effect = ToolExecutionFailed("failed to execute request")
    task = Task(
        "t",
        "Generate",
        tools.tools()[1],
        {"query": "q", "context": "c", "chunkSize": 2, "chunkOverlap": 0},
    )

    with pytest.raises(ToolExecutionFailed):
        task.execute()

    assert task.stream is None


def test_content_generator_stream_error_is_raised_to_consumer(
    tools: BuiltinTools, provider: Mock
) -> None:
    def _deltas() -> Iterator[str]:
        yield "partial"
        raise ToolExecutionFailed("failed to read stream")

    provider.stream_chat.return_value = _deltas()
    result = tools.content_generator(
        {"query": "q", "context": "c", "chunkSize": 2, "chunkOverlap": 0}, ToolContext()
    )

    received: list[Any] = []
    with pytest.raises(ToolExecutionFailed, match="read stream"):
        for chunk in result.stream:  # type: ignore[union-attr]
            received.append(chunk)
    assert received == ["partial"]


def test_image_generator_returns_url(tools: BuiltinTools, provider: Mock) -> None:
    provider.generate_image.return_value = "https://img.example/1.png"

    result = tools.image_generator({"description": "a city", "verbose": True}, ToolContext())

    assert result.value == "https://img.example/1.png"


def test_image_need_checker_uses_chat(tools: BuiltinTools, provider: Mock) -> None:
    provider.chat.return_value = "A flowchart"

    result = tools.image_need_checker({"content": "pipeline text"}, ToolContext())

    assert result.value == "A flowchart"
    messages = provider.chat.call_args.args[0]
    assert messages[0]["role"] == "system"
    assert "pipeline text" in messages[1]["content"]


def test_pdf_extractor_removes_downloaded_file(
    tools: BuiltinTools, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    downloaded = tmp_path / "downloaded.pdf"
    downloaded.write_bytes(b"%PDF")
    monkeypatch.setattr(
        "agent_workflow.tools.builtin.download_pdf", lambda url, timeout: downloaded
    )
    monkeypatch.setattr(
        "agent_workflow.tools.builtin.extract_text_from_pdf",
        lambda path, max_tokens: "extracted text",
    )

    result = tools.pdf_extractor({"pdf_url": "https://example.com/a.pdf"}, ToolContext())

    assert result.value == "extracted text"
    assert not downloaded.exists()


@pytest.fixture
def keyless_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> LLMConfig:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("AGENT_WORKFLOW_LLM_OPENAI_API_KEY", raising=False)
    monkeypatch.chdir(tmp_path)
    return LLMConfig()


def test_missing_api_key_is_an_input_error(keyless_config: LLMConfig) -> None:
    tools = BuiltinTools(LLMFactory.cached(keyless_config))

    with pytest.raises(ToolInputInvalid, match="'api_key' is required"):
        tools.query_to_embedding({"query": "q"}, ToolContext())


def test_missing_api_key_is_reported_with_its_kind(keyless_config: LLMConfig) -> None:
    manager = WorkflowManager()
    register_builtin_tools(manager.tools, LLMFactory.cached(keyless_config))
    manager.create_task("embed", "Embed", "query_to_embedding", {"query": "q"})
    manager.create_agent("a", "A")
    manager.assign_task_to_agent("a", "embed")

    manager.execute_all_workflows()

    assert manager.state.failures["a"].kind == "tool_input_invalid"


def test_embedded_chunks_line_up_with_split_windows(tools: BuiltinTools, provider: Mock) -> None:
    text = " ".join(f"w{i}" for i in range(20))
    provider.embed.side_effect = lambda chunk, model=None: [float(len(chunk))]

    tools.pdf_to_embeddings(
        {"pdf_content": text, "chunkSize": 6, "chunkOverlap": 2}, ToolContext()
    )

    embedded = [c.args[0] for c in provider.embed.call_args_list]
    assert embedded == split_text_into_chunks(text, 6, 2)
    assert embedded[1].split()[0] == "w4"

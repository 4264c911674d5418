"""Unit tests for logging configuration."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator

import pytest

from agent_workflow.logging import JsonFormatter, configure_logging


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="agent_workflow.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Agent %s failed",
        args=("a1",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields() -> None:
    payload = json.loads(JsonFormatter().format(_record(agent_id="a1", attempt=2)))

    assert payload["level"] == "WARNING"
    assert payload["logger"] == "agent_workflow.test"
    assert payload["message"] == "Agent a1 failed"
    assert payload["extra"] == {"agent_id": "a1", "attempt": 2}
    assert "thread" in payload


def test_json_formatter_omits_empty_extra() -> None:
    payload = json.loads(JsonFormatter().format(_record()))

    assert "extra" not in payload


def test_json_formatter_serialises_unknown_types() -> None:
    payload = json.loads(JsonFormatter().format(_record(failed={"a"})))

    assert payload["extra"]["failed"] == "{'a'}"


@pytest.mark.usefixtures("restore_root_logger")
def test_configure_logging_replaces_handlers() -> None:
    configure_logging("debug")
    configure_logging("info", fmt="text")

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert not isinstance(root.handlers[0].formatter, JsonFormatter)
    assert root.level == logging.INFO
    assert logging.getLogger("openai").level == logging.WARNING


def test_json_formatter_includes_exception() -> None:
    try:
        raise ValueError("bad input")
    except ValueError:
        record = _record()
        record.exc_info = sys.exc_info()

    payload = json.loads(JsonFormatter().format(record))

    assert payload["exception_type"] == "ValueError"
    assert "bad input" in payload["exception"]

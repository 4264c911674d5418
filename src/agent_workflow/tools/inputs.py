"""Typed accessors for tool input maps."""

from __future__ import annotations

from typing import Any

from agent_workflow.errors import ToolInputInvalid


def require_str(inputs: dict[str, Any], key: str) -> str:
    value = inputs.get(key)
    if not isinstance(value, str):
        raise ToolInputInvalid(f"input '{key}' is required and must be a string")
    return value


def require_int(inputs: dict[str, Any], key: str) -> int:
    value = inputs.get(key)
    # bool is an int subclass; a flag is never a valid count.
    if not isinstance(value, int) or isinstance(value, bool):
        raise ToolInputInvalid(f"input '{key}' is required and must be an int")
    return value


def optional_str(inputs: dict[str, Any], key: str, default: str | None = None) -> str | None:
    value = inputs.get(key)
    if value is None or value == "":
        return default
    if not isinstance(value, str):
        raise ToolInputInvalid(f"input '{key}' must be a string")
    return value


def optional_bool(inputs: dict[str, Any], key: str, default: bool = False) -> bool:
    value = inputs.get(key)
    return value if isinstance(value, bool) else default

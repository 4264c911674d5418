"""CLI entrypoint for running workflow definitions."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from agent_workflow import __version__
from agent_workflow.core.config import WorkflowSettings
from agent_workflow.errors import WorkflowError
from agent_workflow.llm.factory import LLMFactory
from agent_workflow.tools.builtin import register_builtin_tools
from agent_workflow.tools.registry import ToolRegistry
from agent_workflow.workflow.definition import WorkflowDefinition
from agent_workflow.workflow.manager import ExecutionMode, FailurePolicy, WorkflowManager

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agent-workflow",
        description="Run dependency-ordered agent workflows built from tool-backed tasks",
    )
    parser.add_argument("--version", action="version", version=f"agent-workflow {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run a workflow definition")
    run.add_argument("workflow", type=Path, help="Path to the workflow JSON file")
    run.add_argument(
        "--mode",
        choices=[m.value for m in ExecutionMode],
        default=ExecutionMode.SEQUENTIAL.value,
        help="Scheduling strategy",
    )
    run.add_argument(
        "--policy",
        choices=[p.value for p in FailurePolicy],
        default=None,
        help="Failure policy (defaults: sequential=abort, concurrent=best-effort)",
    )
    run.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Write a JSON run report to this path",
    )
    run.add_argument(
        "--no-streams",
        action="store_true",
        help="Do not print streamed task output after the run",
    )

    validate = subparsers.add_parser("validate", help="Validate a workflow definition")
    validate.add_argument("workflow", type=Path, help="Path to the workflow JSON file")

    subparsers.add_parser("tools", help="List built-in tools")

    return parser


def _build_manager(settings: WorkflowSettings, path: Path) -> WorkflowManager:
    registry = ToolRegistry()
    register_builtin_tools(registry, LLMFactory.cached(settings.llm), settings.engine)
    definition = WorkflowDefinition.from_file(path)
    return WorkflowManager.from_definition(definition, registry, settings.engine)


def _printable(value: Any) -> Any:
    # Embedding matrices are summarised; everything else is printed as-is.
    if isinstance(value, list) and value and isinstance(value[0], list):
        return f"<{len(value)} vectors>"
    if isinstance(value, list) and value and isinstance(value[0], float):
        return f"<vector of {len(value)}>"
    return value


def _print_outputs(manager: WorkflowManager, show_streams: bool) -> None:
    outputs = {
        agent.id: {task_id: _printable(v) for task_id, v in agent.output_snapshot().items()}
        for agent in manager.agents.values()
    }
    print(json.dumps(outputs, indent=2, ensure_ascii=False, default=str))

    if not show_streams:
        return
    for agent in manager.agents.values():
        for task_id, stream in agent.streams.items():
            print(f"\n--- {agent.id}/{task_id} ---")
            for chunk in stream:
                print(chunk, end="", flush=True)
            print()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = WorkflowSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    settings.setup_logging()

    if args.command == "tools":
        registry = ToolRegistry()
        for tool in register_builtin_tools(registry, LLMFactory.cached(settings.llm)):
            print(f"{tool.id}\t{tool.name}")
        return 0

    try:
        manager = _build_manager(settings, args.workflow)
    except (OSError, ValueError, WorkflowError) as e:
        # pydantic's ValidationError is a ValueError.
        logger.error(f"Invalid workflow definition: {e}", extra={"path": str(args.workflow)})
        print(f"Invalid workflow: {e}", file=sys.stderr)
        return 2

    if args.command == "validate":
        for depth, layer in enumerate(manager.validate()):
            print(f"pass {depth + 1}: {', '.join(layer)}")
        return 0

    if args.command == "run":
        mode = ExecutionMode(args.mode)
        policy = FailurePolicy(args.policy) if args.policy else None
        exit_code = 0
        try:
            manager.run(mode, policy)
        except WorkflowError as e:
            logger.error(f"Workflow failed: {e}", extra={"error_kind": e.kind.value})
            print(f"Workflow failed: {e}", file=sys.stderr)
            exit_code = 1
        except Exception:
            logger.exception("Workflow failed")
            exit_code = 1

        report = manager.report()
        if args.report is not None:
            report.save(args.report)
        if exit_code == 0 and not report.ok:
            logger.warning(
                "Workflow finished with failed agents",
                extra={"failed_agents": report.failed_agents},
            )

        _print_outputs(manager, show_streams=not args.no_streams and exit_code == 0)
        return exit_code

    logger.error("Unknown command", extra={"command": args.command})
    return 2


if __name__ == "__main__":
    raise SystemExit(main())

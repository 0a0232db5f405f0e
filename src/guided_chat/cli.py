"""CLI entrypoint for the guided chat engine."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from guided_chat import __version__
from guided_chat.core.config import EngineConfig
from guided_chat.handoff.parser import PayloadKind, parse_handoff
from guided_chat.llm.factory import LLMFactory
from guided_chat.orchestrator.context import LaunchContext
from guided_chat.workflow.catalog import default_registry
from guided_chat.workflow.registry import UnknownWorkflowError
from guided_chat.workspace import AgentWorkspace, WorkspaceCallbacks

logger = logging.getLogger(__name__)

CHAT_HELP = """\
Commands:
  /step <step_id> [json]   complete a step with optional collected data
  /invoke <step_id>        run the agent for a step
  /payloads                show pending payloads
  /quit                    leave the session
Anything else is sent to the assistant."""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="guided-chat",
        description="Guided, multi-step AI conversation engine",
    )
    parser.add_argument("--version", action="version", version=f"guided-chat {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("workflows", help="List the built-in workflows")

    parse = subparsers.add_parser("parse", help="Split a generator reply into prose and payload")
    parse.add_argument(
        "path",
        nargs="?",
        default=None,
        help="File holding the raw reply (defaults to stdin)",
    )
    parse.add_argument(
        "--default-kind",
        choices=[kind.value for kind in PayloadKind],
        default=None,
        help="Payload kind for bare-JSON replies",
    )

    chat = subparsers.add_parser("chat", help="Run an interactive session against the configured LLM")
    chat.add_argument("--mode", required=True, help="Workflow chat mode, e.g. 'arcCreation'")
    chat.add_argument("--source", default="cli", help="Launch source reported to the generator")
    chat.add_argument("--no-resume", action="store_true", help="Discard any saved draft")

    return parser


def _cmd_workflows() -> int:
    for definition in default_registry():
        flags = []
        if definition.persist_draft:
            flags.append("drafts")
        if not definition.auto_complete:
            flags.append("manual-complete")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        print(f"{definition.chat_mode}: {definition.label} ({len(definition.steps)} steps){suffix}")
    return 0


def _cmd_parse(path: str | None, default_kind: str | None) -> int:
    text = Path(path).read_text(encoding="utf-8") if path else sys.stdin.read()
    parsed = parse_handoff(text, default_kind=PayloadKind(default_kind) if default_kind else None)
    print(
        json.dumps(
            {
                "visibleText": parsed.visible_text,
                "kind": parsed.kind.value if parsed.kind else None,
                "payload": parsed.payload,
            },
            indent=2,
            ensure_ascii=False,
        )
    )
    return 0


def parse_step_data(raw: str) -> dict[str, object] | None:
    """Collected data for `/step`: nothing, or a JSON object."""

    if not raw.strip():
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("step data must be a JSON object")
    return data


async def _chat_session(settings: EngineConfig, mode: str, source: str, resume: bool) -> int:
    transport = LLMFactory.create_transport(settings.llm)
    callbacks = WorkspaceCallbacks(
        on_transport_error=lambda e: print(f"! transport error: {e}", file=sys.stderr),
        on_quota_exceeded=lambda source: print("! generation quota exceeded", file=sys.stderr),
        on_payload=lambda kind, payload: print(f"[{kind.value}] {json.dumps(payload, ensure_ascii=False)}"),
    )
    workspace = AgentWorkspace(transport, config=settings, callbacks=callbacks)
    workspace.activate(mode, launch_context=LaunchContext(source=source), resume_draft=resume)
    printed: set[str] = set()

    def flush_transcript() -> None:
        for item in workspace.timeline.get_timeline():
            if item.message_id in printed or item.role == "user":
                continue
            printed.add(item.message_id)
            print(f"assistant> {item.content}")

    try:
        await workspace.bootstrap()
        await workspace.wait_idle()
        flush_transcript()
        print(CHAT_HELP)

        while True:
            step = workspace.runtime.current_step
            prompt = f"[{step.id}] you> " if step else "you> "
            try:
                line = (await asyncio.to_thread(input, prompt)).strip()
            except EOFError:
                break
            if not line:
                continue
            if line == "/quit":
                break

            if line.startswith("/step "):
                step_id, _, raw = line[len("/step ") :].partition(" ")
                try:
                    collected = parse_step_data(raw)
                except ValueError as e:
                    print(f"! {e}", file=sys.stderr)
                    continue
                instance = workspace.complete_step(step_id, collected)
                if instance is not None:
                    print(f"-> step={instance.current_step_id} status={instance.status.value}")
            elif line.startswith("/invoke "):
                await workspace.invoke_agent_step(line[len("/invoke ") :].strip())
            elif line == "/payloads":
                for kind in PayloadKind:
                    payload = workspace.pending_payload(kind)
                    if payload is not None:
                        print(f"{kind.value}: {json.dumps(payload, ensure_ascii=False)}")
            else:
                await workspace.send_user_message(line)

            workspace.skip_reveal()
            await workspace.wait_idle()
            flush_transcript()
    finally:
        workspace.deactivate()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = EngineConfig()
    except ValidationError as e:
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    settings.setup_logging()

    try:
        if args.command == "workflows":
            return _cmd_workflows()

        if args.command == "parse":
            return _cmd_parse(args.path, args.default_kind)

        if args.command == "chat":
            return asyncio.run(_chat_session(settings, args.mode, args.source, not args.no_resume))

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except UnknownWorkflowError as e:
        print(f"Unknown workflow mode: {e.args[0]}", file=sys.stderr)
        return 3

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

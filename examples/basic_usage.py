#!/usr/bin/env python3
"""Programmatic arc-creation example.

This demonstrates driving the engine directly:

* load settings from `.env`
* activate the `arcCreation` workflow with a launch context
* record the user's answer and ask the generator for a proposal
* confirm the pending proposal

The user's answer is passed as an argument.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import Sequence

from guided_chat.core.config import EngineConfig
from guided_chat.handoff.parser import PayloadKind
from guided_chat.handoff.payloads import coerce_payload
from guided_chat.llm.factory import LLMFactory
from guided_chat.orchestrator.agent import InvocationStatus
from guided_chat.orchestrator.context import LaunchContext
from guided_chat.workspace import AgentWorkspace


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate an Arc proposal (programmatic example).")
    parser.add_argument("--prompt", required=True, help='What the Arc is about, e.g. "getting back into pottery"')
    parser.add_argument("--source", default="example", help="Launch source reported to the generator")
    return parser.parse_args(argv)


async def _run(settings: EngineConfig, prompt: str, source: str) -> int:
    workspace = AgentWorkspace(LLMFactory.create_transport(settings.llm), config=settings)
    workspace.activate("arcCreation", launch_context=LaunchContext(source=source), resume_draft=False)

    try:
        workspace.timeline.append_user_message(prompt)
        workspace.complete_step("context_collect", {"prompt": prompt})

        result = await workspace.invoke_agent_step("agent_generate_arc")
        workspace.skip_reveal()
        await workspace.wait_idle()

        if result.status != InvocationStatus.DELIVERED:
            print(f"No proposal: {result.status.value}")
            return 1

        print(result.visible_text)
        proposal = coerce_payload(PayloadKind.ARC_PROPOSAL, workspace.confirm_payload(PayloadKind.ARC_PROPOSAL))
        if proposal is None:
            print("The reply did not contain a usable Arc proposal.")
            return 1

        print(json.dumps(proposal.model_dump(by_alias=True), indent=2, ensure_ascii=False))
        workspace.decide("confirm_arc", "confirm", {"adoptedArcId": proposal.name})
        print(f"Workflow status: {workspace.instance.status.value}")
        return 0
    finally:
        workspace.deactivate()


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = EngineConfig()
    settings.setup_logging()

    return asyncio.run(_run(settings, args.prompt, args.source))


if __name__ == "__main__":
    raise SystemExit(main())

"""Property-based tests for the workflow state machine and handoff parser.

Checks invariants that should hold for all inputs rather than a handful of
hand-picked replies.
"""

from __future__ import annotations

import json

from hypothesis import given, settings, strategies as st

from guided_chat.handoff.parser import PayloadKind, parse_handoff
from guided_chat.workflow.definitions import StepType, WorkflowDefinition, WorkflowStep
from guided_chat.workflow.state_machine import WorkflowStatus, complete_step, start_instance

LINEAR = WorkflowDefinition(
    id="linear",
    chat_mode="linear",
    steps=(
        WorkflowStep(id="A", type=StepType.USER_INPUT, next_step_id="B"),
        WorkflowStep(id="B", type=StepType.USER_INPUT, next_step_id="C"),
        WorkflowStep(id="C", type=StepType.CONFIRM),
    ),
)

scalars = st.none() | st.booleans() | st.integers() | st.text(max_size=8)
collected_maps = st.dictionaries(st.sampled_from(["a", "b", "c", "d", "e"]), scalars, max_size=4)
completions = st.lists(
    st.tuples(st.sampled_from(["A", "B", "C"]), st.none() | collected_maps),
    max_size=12,
)

json_scalars = (
    st.none()
    | st.booleans()
    | st.integers()
    | st.floats(allow_nan=False, allow_infinity=False)
    | st.text(max_size=12)
)
json_values = st.recursive(
    json_scalars,
    lambda children: st.lists(children, max_size=4) | st.dictionaries(st.text(max_size=6), children, max_size=4),
    max_leaves=12,
)
json_containers = st.lists(json_values, max_size=4) | st.dictionaries(st.text(max_size=6), json_values, max_size=4)
padding = st.text(alphabet=" \t\n", max_size=6)


class TestStateMachineProperties:
    """Merging collected data across arbitrary completion sequences."""

    @given(steps=completions)
    @settings(max_examples=200)
    def test_collected_data_is_last_write_wins_union(
        self, steps: list[tuple[str, dict[str, object] | None]]
    ) -> None:
        instance = start_instance(LINEAR)
        expected: dict[str, object] = {}

        for step_id, collected in steps:
            instance = complete_step(LINEAR, instance, step_id, collected)
            expected.update(collected or {})

            assert instance.collected_data == expected
            if step_id == "C":
                assert instance.status == WorkflowStatus.COMPLETED
                assert instance.outcome == expected

    @given(steps=completions)
    def test_revision_counts_transitions(self, steps: list[tuple[str, dict[str, object] | None]]) -> None:
        instance = start_instance(LINEAR)
        seen = {instance.transition_id}

        for step_id, collected in steps:
            instance = complete_step(LINEAR, instance, step_id, collected)
            seen.add(instance.transition_id)

        assert instance.revision == len(steps)
        assert len(seen) == len(steps) + 1


class TestHandoffParserProperties:
    """Marker payloads survive whitespace and a single code fence."""

    @given(payload=json_containers, before=padding, after=padding, fence=st.sampled_from([None, "", "json"]))
    @settings(max_examples=300)
    def test_marker_payload_round_trips(
        self, payload: object, before: str, after: str, fence: str | None
    ) -> None:
        body = json.dumps(payload)
        if fence is not None:
            body = f"```{fence}\n{before}{body}{after}\n```"
        reply = f"Here it is.\n\nARC_PROPOSAL_JSON:{before}{body}{after}"

        parsed = parse_handoff(reply)

        assert parsed.kind == PayloadKind.ARC_PROPOSAL
        assert parsed.payload == payload
        assert parsed.visible_text == "Here it is."

    @given(payload=st.dictionaries(st.text(max_size=6), json_values, max_size=4), pad=padding)
    def test_bare_object_round_trips_with_default_kind(self, payload: dict[str, object], pad: str) -> None:
        parsed = parse_handoff(f"{pad}{json.dumps(payload)}{pad}", default_kind=PayloadKind.ASPIRATION)

        assert parsed.payload == payload
        assert parsed.kind == PayloadKind.ASPIRATION
        assert parsed.visible_text == ""

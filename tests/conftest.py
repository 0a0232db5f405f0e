"""Test configuration and fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from guided_chat.core.config import (
    DraftConfig,
    EngineConfig,
    LLMConfig,
    QualityConfig,
    RevealConfig,
)
from guided_chat.workflow.definitions import (
    AgentBehavior,
    StepType,
    WorkflowDefinition,
    WorkflowStep,
)


@pytest.fixture
def fast_reveal() -> RevealConfig:
    """Reveal settings with no delays."""
    return RevealConfig(
        chars_per_tick=4,
        tick_seconds=0.0,
        paragraph_pause_seconds=0.0,
        initial_delay_seconds=0.0,
    )


@pytest.fixture
def slow_reveal() -> RevealConfig:
    """Reveal settings that never tick during a test."""
    return RevealConfig(
        chars_per_tick=1,
        tick_seconds=60.0,
        paragraph_pause_seconds=60.0,
        initial_delay_seconds=60.0,
    )


@pytest.fixture
def llm_config() -> LLMConfig:
    """Provide a test LLM configuration."""
    return LLMConfig(
        provider="openai",
        openai_api_key="test-key",
        openai_model="gpt-4o-mini",
    )


@pytest.fixture
def engine_config(tmp_path: Path, fast_reveal: RevealConfig, llm_config: LLMConfig) -> EngineConfig:
    """Engine configuration with drafts under tmp_path and instant reveals."""
    return EngineConfig(
        log_level="DEBUG",
        llm=llm_config,
        reveal=fast_reveal,
        drafts=DraftConfig(directory=tmp_path / "drafts", debounce_seconds=0.0),
        quality=QualityConfig(critic_timeout_seconds=1.0),
    )


@pytest.fixture
def linear_definition() -> WorkflowDefinition:
    """Steps A -> B -> C with auto-complete."""
    return WorkflowDefinition(
        id="linear",
        chat_mode="linear",
        steps=(
            WorkflowStep(id="A", type=StepType.USER_INPUT, next_step_id="B"),
            WorkflowStep(id="B", type=StepType.USER_INPUT, next_step_id="C"),
            WorkflowStep(id="C", type=StepType.CONFIRM),
        ),
    )


@pytest.fixture
def agent_definition() -> WorkflowDefinition:
    """Collect -> generate -> confirm, with a loading message on generate."""
    return WorkflowDefinition(
        id="agentFlow",
        chat_mode="agentFlow",
        system_prompt="You are a test coach.",
        steps=(
            WorkflowStep(id="collect", type=StepType.USER_INPUT, next_step_id="generate"),
            WorkflowStep(
                id="generate",
                type=StepType.AGENT_GENERATE,
                prompt_template="Propose one Arc.",
                validation_hint="Keep it short.",
                agent_behavior=AgentBehavior(loading_message="Working on it..."),
                next_step_id="confirm",
            ),
            WorkflowStep(id="confirm", type=StepType.CONFIRM),
        ),
    )

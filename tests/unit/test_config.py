"""Unit tests for configuration."""

from pathlib import Path

import pytest

from guided_chat.core.config import (
    DraftConfig,
    EngineConfig,
    LLMConfig,
    QualityConfig,
    RevealConfig,
)


def test_llm_config_defaults() -> None:
    """Test LLM config default values."""
    config = LLMConfig(openai_api_key="test-key")

    assert config.provider == "openai"
    assert config.openai_model == "gpt-4o-mini"
    assert config.openai_temperature == 0.55
    assert config.llama_n_ctx == 4096
    assert config.history_window == 16


def test_reveal_config_defaults() -> None:
    config = RevealConfig()

    assert config.chars_per_tick == 2
    assert config.tick_seconds == 0.04
    assert config.paragraph_pause_seconds == 0.8


def test_reveal_config_rejects_zero_tick_size() -> None:
    with pytest.raises(ValueError):
        RevealConfig(chars_per_tick=0)


def test_draft_config_defaults() -> None:
    config = DraftConfig()

    assert config.enabled is True
    assert config.directory == Path(".drafts")
    assert config.debounce_seconds == 0.75


def test_quality_config_threshold_default() -> None:
    config = QualityConfig()

    assert config.enabled is True
    assert config.min_total_score == 8
    assert config.critic_timeout_seconds == 20.0


def test_quality_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GUIDED_CHAT_QUALITY_MIN_TOTAL_SCORE", "6.5")

    assert QualityConfig().min_total_score == 6.5


def test_engine_config_composition() -> None:
    """Test engine config with nested configs."""
    config = EngineConfig(
        log_level="DEBUG",
        debug=True,
    )

    assert config.log_level == "DEBUG"
    assert config.debug is True
    assert isinstance(config.llm, LLMConfig)
    assert isinstance(config.reveal, RevealConfig)
    assert isinstance(config.drafts, DraftConfig)
    assert isinstance(config.quality, QualityConfig)

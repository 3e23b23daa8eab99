"""Pytest tests for environment-driven settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from pedro.config import Settings
from pedro.models import Difficulty


class TestSettings:

    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.thinking_min_ms == 400
        assert settings.thinking_max_ms == 2000
        assert settings.thinking_delay == (0.4, 2.0)
        assert settings.difficulty is Difficulty.BEGINNER
        assert settings.log_level == "WARNING"
        assert settings.data_dir.name == "data"

    def test_overrides(self, tmp_path):
        settings = Settings.from_env({
            "PEDRO_DATA_DIR": str(tmp_path),
            "PEDRO_THINKING_MIN_MS": "0",
            "PEDRO_THINKING_MAX_MS": "50",
            "PEDRO_DIFFICULTY": "Expert",
            "PEDRO_LOG_LEVEL": "debug",
        })
        assert settings.data_dir == Path(tmp_path)
        assert settings.thinking_delay == (0.0, 0.05)
        assert settings.difficulty is Difficulty.EXPERT
        assert settings.log_level == "DEBUG"
        assert settings.current_view_path == Path(tmp_path) / "current_view.json"
        assert settings.progress_path == Path(tmp_path) / "progress.json"

    def test_blank_values_use_defaults(self):
        settings = Settings.from_env({"PEDRO_THINKING_MIN_MS": " ", "PEDRO_DIFFICULTY": ""})
        assert settings.thinking_min_ms == 400
        assert settings.difficulty is Difficulty.BEGINNER

    @pytest.mark.parametrize("value", ["fast", "1.5", "-1"])
    def test_invalid_thinking_ms(self, value):
        with pytest.raises(ValueError, match="PEDRO_THINKING_MIN_MS"):
            Settings.from_env({"PEDRO_THINKING_MIN_MS": value})

    def test_max_below_min(self):
        with pytest.raises(ValueError, match="PEDRO_THINKING_MAX_MS"):
            Settings.from_env({"PEDRO_THINKING_MIN_MS": "500", "PEDRO_THINKING_MAX_MS": "100"})

    def test_invalid_difficulty(self):
        with pytest.raises(ValueError, match="PEDRO_DIFFICULTY"):
            Settings.from_env({"PEDRO_DIFFICULTY": "grandmaster"})

    def test_reads_os_environ(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PEDRO_DATA_DIR", str(tmp_path))
        assert Settings.from_env().data_dir == Path(tmp_path)

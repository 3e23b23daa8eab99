"""Runtime settings read from PEDRO_* environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from pedro.models import Difficulty

_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Opponent "thinking" window in milliseconds
_DEFAULT_THINKING_MIN_MS = 400
_DEFAULT_THINKING_MAX_MS = 2000


def _int_env(env: dict, name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    thinking_min_ms: int = _DEFAULT_THINKING_MIN_MS
    thinking_max_ms: int = _DEFAULT_THINKING_MAX_MS
    difficulty: Difficulty = Difficulty.BEGINNER
    log_level: str = "WARNING"

    @property
    def thinking_delay(self) -> tuple[float, float]:
        """Thinking window in seconds."""
        return self.thinking_min_ms / 1000.0, self.thinking_max_ms / 1000.0

    @property
    def current_view_path(self) -> Path:
        return self.data_dir / "current_view.json"

    @property
    def progress_path(self) -> Path:
        return self.data_dir / "progress.json"

    @classmethod
    def from_env(cls, env: dict | None = None) -> Settings:
        """Build settings from environment variables.

        Args:
            env: Mapping to read instead of os.environ.

        Raises:
            ValueError: If a variable holds an invalid value.
        """
        env = dict(os.environ if env is None else env)

        thinking_min = _int_env(env, "PEDRO_THINKING_MIN_MS", _DEFAULT_THINKING_MIN_MS)
        thinking_max = _int_env(env, "PEDRO_THINKING_MAX_MS", _DEFAULT_THINKING_MAX_MS)
        if thinking_max < thinking_min:
            raise ValueError(
                "PEDRO_THINKING_MAX_MS must be >= PEDRO_THINKING_MIN_MS "
                f"({thinking_max} < {thinking_min})"
            )

        try:
            difficulty = Difficulty.parse(env.get("PEDRO_DIFFICULTY") or "beginner")
        except ValueError as exc:
            raise ValueError(f"PEDRO_DIFFICULTY: {exc}") from None

        data_dir = env.get("PEDRO_DATA_DIR")
        return cls(
            data_dir=Path(data_dir) if data_dir else _PROJECT_ROOT / "data",
            thinking_min_ms=thinking_min,
            thinking_max_ms=thinking_max,
            difficulty=difficulty,
            log_level=(env.get("PEDRO_LOG_LEVEL") or "WARNING").upper(),
        )

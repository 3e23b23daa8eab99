"""Solved-puzzle progress store for Pedro Chess.

Persists the set of solved puzzle ids so a trainer can be reopened
without losing progress. The sessions never touch this file; the
trainer writes through to the store when one is supplied.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
from pathlib import Path

_log = logging.getLogger(__name__)


class ProgressStore:
    """Manages the solved-puzzle set in a JSON file."""

    def __init__(self, path: str | Path = "data/progress.json") -> None:
        """Load progress from a JSON file.

        If the file is corrupted, backs it up as .bak and starts fresh.

        Args:
            path: Path to the JSON file storing progress.
        """
        self._path = Path(path)
        self._solved: set[str] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> set[str]:
        """Load solved ids from disk, handling corruption gracefully.

        Returns:
            Set of puzzle ids. Empty if the file is missing or corrupt.
        """
        if not self._path.exists():
            return set()

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("Progress file must contain a JSON object")
            solved = data.get("solved_puzzles", [])
            if not isinstance(solved, list):
                raise ValueError("solved_puzzles must be a JSON array")
            return {str(puzzle_id) for puzzle_id in solved}
        except (json.JSONDecodeError, ValueError) as exc:
            backup_path = self._path.with_suffix(".bak")
            shutil.copy2(self._path, backup_path)
            _log.warning(
                "Corrupt progress file %s (%s); backed up to %s",
                self._path, exc, backup_path,
            )
            return set()

    def _save(self) -> None:
        """Save progress to the JSON file with atomic write."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(
            json.dumps({"solved_puzzles": sorted(self._solved)}, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        os.replace(tmp_path, self._path)

    def solved(self) -> set[str]:
        return set(self._solved)

    def mark_solved(self, puzzle_id: str) -> bool:
        """Record a solved puzzle.

        Returns:
            True if the id was new, False if it was already recorded.
        """
        if puzzle_id in self._solved:
            return False
        self._solved.add(puzzle_id)
        self._save()
        return True

    def clear(self) -> None:
        self._solved.clear()
        self._save()

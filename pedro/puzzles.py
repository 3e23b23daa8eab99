"""Puzzle catalog loading and validation.

Puzzles are stored as a JSON array. Each record carries a starting FEN
and the full solution line in SAN (both sides' moves, in order).
Validation replays the line with python-chess and checks that every
move is legal and written exactly as the canonical SAN.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import chess

from pedro.errors import PuzzleFormatError
from pedro.models import Difficulty

CATALOG_PATH = Path(__file__).parent / "data" / "puzzles.json"

REQUIRED_FIELDS = ["id", "name", "fen", "solution_san"]


@dataclass(frozen=True)
class Puzzle:
    id: str
    name: str
    fen: str
    solution: tuple[str, ...]
    description: str = ""
    difficulty: Difficulty = Difficulty.BEGINNER
    theme: str = ""
    rating: int = 0
    solution_moves: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> Puzzle:
        """Build a Puzzle from a catalog record.

        Raises:
            PuzzleFormatError: If a required field is missing or malformed.
        """
        if not isinstance(data, dict):
            raise PuzzleFormatError(f"Puzzle record must be an object, got {type(data).__name__}")
        missing = [f for f in REQUIRED_FIELDS if f not in data]
        if missing:
            label = data.get("id", "?")
            raise PuzzleFormatError(f"Puzzle {label}: missing field(s) {', '.join(missing)}")

        solution = data["solution_san"]
        if not isinstance(solution, list) or not solution:
            raise PuzzleFormatError(f"Puzzle {data['id']}: solution_san must be a non-empty list")

        try:
            difficulty = Difficulty.parse(data.get("difficulty", "beginner"))
            rating = int(data.get("rating", 0))
        except ValueError as exc:
            raise PuzzleFormatError(f"Puzzle {data['id']}: {exc}") from exc

        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            fen=str(data["fen"]),
            solution=tuple(str(m) for m in solution),
            description=str(data.get("description", "")),
            difficulty=difficulty,
            theme=str(data.get("theme", "")),
            rating=rating,
            solution_moves=tuple(str(m) for m in data.get("solution_moves", [])),
        )


def load_puzzles(path: str | Path | None = None) -> list[Puzzle]:
    """Load puzzles from a JSON file (the built-in catalog by default).

    Raises:
        PuzzleFormatError: If the file cannot be read or parsed.
    """
    filepath = Path(path) if path is not None else CATALOG_PATH
    try:
        data = json.loads(filepath.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise PuzzleFormatError(f"{filepath.name}: failed to load: {exc}") from exc

    if not isinstance(data, list):
        raise PuzzleFormatError(f"{filepath.name}: expected a JSON array")
    return [Puzzle.from_dict(record) for record in data]


def validate_puzzle(puzzle: Puzzle) -> list[str]:
    """Validate a single puzzle. Returns list of error messages."""
    errors = []
    prefix = f"puzzle {puzzle.id}"

    try:
        board = chess.Board(puzzle.fen)
    except ValueError as e:
        return [f"{prefix}: invalid FEN '{puzzle.fen}': {e}"]
    if not board.is_valid():
        return [f"{prefix}: illegal position '{puzzle.fen}'"]

    if puzzle.solution_moves and len(puzzle.solution_moves) != len(puzzle.solution):
        errors.append(
            f"{prefix}: {len(puzzle.solution_moves)} UCI moves "
            f"for {len(puzzle.solution)} SAN moves"
        )

    for i, san in enumerate(puzzle.solution):
        try:
            move = board.parse_san(san)
        except (chess.InvalidMoveError, chess.IllegalMoveError, chess.AmbiguousMoveError):
            errors.append(f"{prefix}: illegal move '{san}' at step {i} (FEN: {board.fen()})")
            break

        canonical = board.san(move)
        if canonical != san:
            errors.append(f"{prefix}: step {i} written '{san}', canonical SAN is '{canonical}'")

        if i < len(puzzle.solution_moves) and puzzle.solution_moves[i] != move.uci():
            errors.append(
                f"{prefix}: step {i} UCI '{puzzle.solution_moves[i]}' "
                f"does not match '{san}' ({move.uci()})"
            )

        board.push(move)

    return errors


def validate_catalog(puzzles: list[Puzzle]) -> tuple[int, list[str]]:
    """Validate a list of puzzles. Returns (passed, errors)."""
    errors = []
    passed = 0
    seen: set[str] = set()

    for puzzle in puzzles:
        puzzle_errors = validate_puzzle(puzzle)
        if puzzle.id in seen:
            puzzle_errors.append(f"puzzle {puzzle.id}: duplicate id")
        seen.add(puzzle.id)

        if puzzle_errors:
            errors.extend(puzzle_errors)
        else:
            passed += 1

    return passed, errors

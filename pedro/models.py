"""Shared data models for Pedro Chess.

Move, the status enums and the view dataclasses are the shared contract
between the sessions, the MCP server and the terminal board.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Difficulty(str, Enum):
    """Named policy tier for the scripted opponent."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"

    @classmethod
    def parse(cls, value: str | Difficulty) -> Difficulty:
        """Parse a difficulty name, case-insensitively.

        Args:
            value: Difficulty name (e.g. "Expert") or a Difficulty.

        Returns:
            The matching Difficulty.

        Raises:
            ValueError: If the name is unknown.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            names = ", ".join(d.value for d in cls)
            raise ValueError(
                f"Unknown difficulty: {value!r} (expected one of {names})"
            ) from None


class TerminalStatus(str, Enum):
    """Continuation state of a game, derived from its position."""

    PLAYING = "playing"
    CHECK = "check"
    CHECKMATE = "checkmate"
    DRAW = "draw"

    @property
    def is_over(self) -> bool:
        return self in (TerminalStatus.CHECKMATE, TerminalStatus.DRAW)


class PuzzleState(str, Enum):
    SOLVING = "solving"
    CORRECT_INTERMEDIATE = "correct"
    INCORRECT = "incorrect"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Move:
    """A legal move as reported by the rules oracle."""

    origin: str
    destination: str
    promotion: str | None
    san: str

    @property
    def uci(self) -> str:
        return f"{self.origin}{self.destination}{self.promotion or ''}"


@dataclass(frozen=True)
class PositionStatus:
    """Raw judgements the oracle makes about a position."""

    in_check: bool
    is_checkmate: bool
    is_draw: bool


@dataclass(frozen=True)
class Selection:
    """Selected origin square and the legal destinations from it."""

    origin: str
    destinations: tuple[str, ...] = ()


@dataclass
class GameView:
    """Represents a game session for display and sync."""

    game_id: str
    fen: str
    board_display: str
    turn: str
    human_color: str
    status: str
    difficulty: str
    thinking: bool = False
    is_game_over: bool = False
    winner: str | None = None
    selected_square: str | None = None
    legal_destinations: list[str] = field(default_factory=list)
    move_list: list[str] = field(default_factory=list)
    last_move: str | None = None
    last_move_san: str | None = None
    legal_moves_count: int = 0
    start_fen: str = ""
    mode: str = "game"


@dataclass
class PuzzleView:
    """Represents the current puzzle of a trainer for display and sync."""

    puzzle_id: str
    name: str
    description: str
    theme: str
    difficulty: str
    rating: int
    fen: str
    board_display: str
    turn: str
    state: str
    cursor: int
    solution_length: int
    puzzle_index: int = 0
    puzzle_count: int = 1
    solved_puzzles: list[str] = field(default_factory=list)
    solved_moves: list[str] = field(default_factory=list)
    revealed_hint: str | None = None
    selected_square: str | None = None
    legal_destinations: list[str] = field(default_factory=list)
    last_move: str | None = None
    mode: str = "puzzle"

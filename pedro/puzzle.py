"""Puzzle sessions and the puzzle trainer.

A PuzzleSession checks each legal move against the next expected SAN
in the puzzle's solution line. Correct moves are committed and advance
the cursor; wrong moves are never committed. Feedback states revert to
SOLVING after a short presentation delay.

The whole solution line is verified in order without asking whose turn
it is, so lines that include the defender's replies are played out by
the same user.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from pedro.errors import IllegalMove, InvalidSquare, PuzzleAlreadyCompleted
from pedro.models import Move, PuzzleState, PuzzleView, Selection
from pedro.oracle import Position, RulesOracle
from pedro.progress import ProgressStore
from pedro.puzzles import Puzzle
from pedro.scheduler import AsyncioScheduler, Cancellable, Scheduler

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PuzzleOutcome:
    """Result of a legal move attempt on a puzzle."""

    state: PuzzleState
    move: Move
    expected: str
    cursor: int

    @property
    def correct(self) -> bool:
        return self.move.san == self.expected


class PuzzleSession:
    """One attempt at one puzzle."""

    def __init__(
        self,
        puzzle: Puzzle,
        oracle: RulesOracle | None = None,
        scheduler: Scheduler | None = None,
        on_solved: Callable[[str], None] | None = None,
        correct_delay: float = 1.0,
        incorrect_delay: float = 1.5,
    ) -> None:
        """Open a puzzle at its starting position.

        Raises:
            InvalidPosition: If the puzzle FEN is malformed.
        """
        self.puzzle = puzzle
        self._oracle = oracle or RulesOracle()
        self._scheduler = scheduler or AsyncioScheduler()
        self._on_solved = on_solved
        self._correct_delay = correct_delay
        self._incorrect_delay = incorrect_delay

        self._start = self._oracle.parse_position(puzzle.fen)
        self._position = self._start
        self._cursor = 0
        self._state = PuzzleState.SOLVING
        self._selection: Selection | None = None
        self._hint_shown = False
        self._revert: Cancellable | None = None

    @property
    def position(self) -> Position:
        return self._position

    @property
    def state(self) -> PuzzleState:
        return self._state

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def expected_moves(self) -> tuple[str, ...]:
        return self.puzzle.solution

    @property
    def selection(self) -> Selection | None:
        return self._selection

    def attempt_move(
        self, origin: str, destination: str, promotion: str | None = "q",
    ) -> PuzzleOutcome:
        """Try a move against the next expected solution move.

        Raises:
            PuzzleAlreadyCompleted: If the puzzle is already solved.
            IllegalMove: If the move is not legal; nothing changes.
        """
        if self._state is PuzzleState.COMPLETED:
            raise PuzzleAlreadyCompleted(f"Puzzle {self.puzzle.id} is already solved")

        after, move = self._oracle.apply_move(
            self._position, origin, destination, promotion,
        )
        self._cancel_revert()
        self._selection = None
        expected = self.puzzle.solution[self._cursor]

        if move.san != expected:
            self._state = PuzzleState.INCORRECT
            self._schedule_revert(self._incorrect_delay)
            _log.debug("Puzzle %s: %s is not %s", self.puzzle.id, move.san, expected)
            return PuzzleOutcome(self._state, move, expected, self._cursor)

        self._position = after
        self._cursor += 1
        if self._cursor >= len(self.puzzle.solution):
            self._state = PuzzleState.COMPLETED
            _log.info("Puzzle %s solved", self.puzzle.id)
            if self._on_solved is not None:
                self._on_solved(self.puzzle.id)
        else:
            self._state = PuzzleState.CORRECT_INTERMEDIATE
            self._schedule_revert(self._correct_delay)
        return PuzzleOutcome(self._state, move, expected, self._cursor)

    def select_square(self, square: str) -> Selection | None:
        """Select any piece and list where it can go."""
        self._selection = None
        if self._state is PuzzleState.COMPLETED:
            return None
        try:
            if self._position.piece_color(square) is None:
                return None
        except InvalidSquare:
            return None

        origin = square.strip().lower()
        destinations = {
            m.destination for m in self._oracle.legal_moves(self._position, origin)
        }
        self._selection = Selection(origin, tuple(sorted(destinations)))
        return self._selection

    def click(self, square: str) -> PuzzleOutcome | None:
        """Handle a board click: try the move if a piece is selected, else select."""
        if self._state is PuzzleState.COMPLETED:
            return None
        if self._selection is not None:
            try:
                return self.attempt_move(self._selection.origin, square)
            except IllegalMove:
                pass
        self.select_square(square)
        return None

    def hint(self) -> str:
        """Reveal the expected move at the cursor (the last move once solved)."""
        self._hint_shown = True
        index = min(self._cursor, len(self.puzzle.solution) - 1)
        return self.puzzle.solution[index]

    def reset(self) -> None:
        self._cancel_revert()
        self._position = self._start
        self._cursor = 0
        self._state = PuzzleState.SOLVING
        self._selection = None
        self._hint_shown = False

    def close(self) -> None:
        """Drop any pending feedback timer."""
        self._cancel_revert()

    def view(
        self,
        solved: Sequence[str] = (),
        index: int = 0,
        count: int = 1,
    ) -> PuzzleView:
        puzzle = self.puzzle
        selection = self._selection
        revealed = None
        if self._hint_shown and self._cursor < len(puzzle.solution):
            revealed = puzzle.solution[self._cursor]
        return PuzzleView(
            puzzle_id=puzzle.id,
            name=puzzle.name,
            description=puzzle.description,
            theme=puzzle.theme,
            difficulty=puzzle.difficulty.value,
            rating=puzzle.rating,
            fen=self._position.fen,
            board_display=str(self._position),
            turn=self._position.turn,
            state=self._state.value,
            cursor=self._cursor,
            solution_length=len(puzzle.solution),
            puzzle_index=index,
            puzzle_count=count,
            solved_puzzles=sorted(solved),
            solved_moves=list(puzzle.solution[: self._cursor]),
            revealed_hint=revealed,
            selected_square=selection.origin if selection else None,
            legal_destinations=list(selection.destinations) if selection else [],
            last_move=self._position.last_move,
        )

    def _schedule_revert(self, delay: float) -> None:
        self._revert = self._scheduler.call_later(delay, self._revert_to_solving)

    def _cancel_revert(self) -> None:
        if self._revert is not None:
            self._revert.cancel()
            self._revert = None

    def _revert_to_solving(self) -> None:
        self._revert = None
        if self._state in (PuzzleState.CORRECT_INTERMEDIATE, PuzzleState.INCORRECT):
            self._state = PuzzleState.SOLVING


class PuzzleTrainer:
    """Walks through a list of puzzles and tracks which are solved."""

    def __init__(
        self,
        puzzles: Sequence[Puzzle],
        oracle: RulesOracle | None = None,
        scheduler: Scheduler | None = None,
        store: ProgressStore | None = None,
        start_index: int = 0,
    ) -> None:
        if not puzzles:
            raise ValueError("PuzzleTrainer needs at least one puzzle")
        self._puzzles = list(puzzles)
        self._oracle = oracle or RulesOracle()
        self._scheduler = scheduler or AsyncioScheduler()
        self._store = store
        self._solved: set[str] = store.solved() if store is not None else set()
        self._index = max(0, min(start_index, len(self._puzzles) - 1))
        self._session = self._open(self._index)

    @property
    def session(self) -> PuzzleSession:
        return self._session

    @property
    def puzzle(self) -> Puzzle:
        return self._puzzles[self._index]

    @property
    def index(self) -> int:
        return self._index

    @property
    def count(self) -> int:
        return len(self._puzzles)

    @property
    def solved(self) -> frozenset[str]:
        return frozenset(self._solved)

    def advance(self, direction: int) -> bool:
        """Move to the puzzle direction steps away.

        Returns:
            False (and does nothing) if that puzzle does not exist.
        """
        return self.go_to(self._index + direction)

    def next_puzzle(self) -> bool:
        return self.advance(1)

    def previous_puzzle(self) -> bool:
        return self.advance(-1)

    def go_to(self, index: int) -> bool:
        if not 0 <= index < len(self._puzzles) or index == self._index:
            return False
        self._session.close()
        self._index = index
        self._session = self._open(index)
        return True

    def view(self) -> PuzzleView:
        return self._session.view(
            solved=sorted(self._solved), index=self._index, count=len(self._puzzles),
        )

    def _open(self, index: int) -> PuzzleSession:
        return PuzzleSession(
            self._puzzles[index],
            oracle=self._oracle,
            scheduler=self._scheduler,
            on_solved=self._record_solved,
        )

    def _record_solved(self, puzzle_id: str) -> None:
        if puzzle_id in self._solved:
            return
        self._solved.add(puzzle_id)
        if self._store is not None:
            self._store.mark_solved(puzzle_id)

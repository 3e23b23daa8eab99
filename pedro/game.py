"""GameSession: a human against the scripted opponent.

Owns the current position and replaces it on every accepted move.
After each human move the opponent's reply is scheduled behind a short
random "thinking" delay; human input is refused until it commits.
"""

from __future__ import annotations

import logging
import random
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from pedro.errors import AutomatedMoveInProgress, GameOver, IllegalMove, InvalidSquare
from pedro.models import Difficulty, GameView, Move, Selection, TerminalStatus
from pedro.oracle import Position, RulesOracle
from pedro.scheduler import AsyncioScheduler, Cancellable, Scheduler
from pedro.selector import select_move

_log = logging.getLogger(__name__)

MoveCallback = Callable[[Move, Position], None]
StatusCallback = Callable[[TerminalStatus], None]


@dataclass
class GameEvents:
    """Observable callbacks. Multiple handlers per event."""

    on_move: list[MoveCallback] = field(default_factory=list)
    on_status_changed: list[StatusCallback] = field(default_factory=list)


class GameSession:
    """A single game between the human and the scripted opponent."""

    def __init__(
        self,
        oracle: RulesOracle | None = None,
        scheduler: Scheduler | None = None,
        difficulty: Difficulty | str = Difficulty.BEGINNER,
        rng: random.Random | None = None,
        thinking_delay: tuple[float, float] = (0.4, 2.0),
        start: Position | None = None,
        game_id: str | None = None,
    ) -> None:
        """Start a session at the standard position (or at start).

        Args:
            oracle: Rules oracle; a RulesOracle by default.
            scheduler: Runs the opponent's delayed reply. Defaults to the
                running asyncio loop.
            difficulty: Opponent policy tier.
            rng: Random source for the thinking delay and move choice.
            thinking_delay: (min, max) thinking delay in seconds.
            start: Optional starting position; the side to move in it
                is the human's side.
            game_id: Identifier used in views. Random UUID by default.
        """
        low, high = thinking_delay
        if low < 0 or high < low:
            raise ValueError(f"Invalid thinking delay window: {thinking_delay}")

        self.game_id = game_id or str(uuid.uuid4())
        self.events = GameEvents()
        self._oracle = oracle or RulesOracle()
        self._scheduler = scheduler or AsyncioScheduler()
        self._rng = rng or random.Random()
        self._thinking_delay = (low, high)
        self._difficulty = Difficulty.parse(difficulty)
        self._start = start or self._oracle.initial_position()
        self._human_color = self._start.turn

        self._position = self._start
        self._status = self._oracle.terminal_status(self._position)
        self._history: list[Move] = []
        self._selection: Selection | None = None
        self._pending: Cancellable | None = None

    # -- Properties ------------------------------------------------------

    @property
    def position(self) -> Position:
        return self._position

    @property
    def status(self) -> TerminalStatus:
        return self._status

    @property
    def difficulty(self) -> Difficulty:
        return self._difficulty

    @property
    def human_color(self) -> str:
        return self._human_color

    @property
    def thinking(self) -> bool:
        """True while the opponent's reply is scheduled but not played."""
        return self._pending is not None

    @property
    def selection(self) -> Selection | None:
        return self._selection

    @property
    def moves(self) -> list[str]:
        return [m.san for m in self._history]

    @property
    def winner(self) -> str | None:
        if self._status is not TerminalStatus.CHECKMATE:
            return None
        return "black" if self._position.turn == "white" else "white"

    # -- Commands --------------------------------------------------------

    def set_difficulty(self, difficulty: Difficulty | str) -> None:
        """Change the opponent's policy; applies to its next move."""
        self._difficulty = Difficulty.parse(difficulty)

    def attempt_move(
        self, origin: str, destination: str, promotion: str | None = "q",
    ) -> Move:
        """Play a human move.

        Args:
            origin: Origin square name.
            destination: Destination square name.
            promotion: Promotion piece letter for pawn promotions.

        Returns:
            The applied Move.

        Raises:
            GameOver: If the game ended in checkmate or a draw.
            AutomatedMoveInProgress: If it is not the human's turn.
            IllegalMove: If the move is not legal. The position is unchanged.
        """
        if self._status.is_over:
            raise GameOver(f"Game is already over: {self._status.value}")
        if self._pending is not None or self._position.turn != self._human_color:
            raise AutomatedMoveInProgress("Opponent is thinking")

        position, move = self._oracle.apply_move(
            self._position, origin, destination, promotion,
        )
        self._commit(position, move)

        return move

    def select_square(self, square: str) -> Selection | None:
        """Select one of the human's pieces and list where it can go.

        Clears the selection when the square holds no human piece or the
        session is not accepting input, or the square
        is not a board square.
        """
        self._selection = None
        if self._status.is_over or self.thinking:
            return None
        if self._position.turn != self._human_color:
            return None
        try:
            if self._position.piece_color(square) != self._human_color:
                return None
        except InvalidSquare:
            return None

        origin = square.strip().lower()
        destinations = {
            m.destination for m in self._oracle.legal_moves(self._position, origin)
        }
        self._selection = Selection(origin, tuple(sorted(destinations)))
        return self._selection

    def click(self, square: str) -> Move | None:
        """Handle a board click: move to square if possible, else select it.

        Returns:
            The applied Move, or None if the click changed the selection.
        """
        if self._selection is not None:
            try:
                return self.attempt_move(self._selection.origin, square)
            except IllegalMove:
                pass
        self.select_square(square)
        return None

    def reset(self) -> None:
        """Discard any pending reply and return to the starting position."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self._position = self._start
        self._status = self._oracle.terminal_status(self._position)
        self._history = []
        self._selection = None
        _log.debug("Game %s reset", self.game_id)

    def view(self) -> GameView:
        """Snapshot the session for display."""
        last = self._history[-1] if self._history else None
        selection = self._selection
        return GameView(
            game_id=self.game_id,
            fen=self._position.fen,
            board_display=str(self._position),
            turn=self._position.turn,
            human_color=self._human_color,
            status=self._status.value,
            difficulty=self._difficulty.value,
            thinking=self.thinking,
            is_game_over=self._status.is_over,
            winner=self.winner,
            selected_square=selection.origin if selection else None,
            legal_destinations=list(selection.destinations) if selection else [],
            move_list=self.moves,
            last_move=last.uci if last else None,
            last_move_san=last.san if last else None,
            legal_moves_count=len(self._oracle.legal_moves(self._position)),
            start_fen=self._start.fen,
        )

    # -- Internals -------------------------------------------------------

    def _commit(self, position: Position, move: Move) -> None:
        self._position = position
        self._history.append(move)
        self._selection = None
        self._status = self._oracle.terminal_status(position)

        # The reply is queued before listeners run so a failing listener
        # cannot leave the opponent's turn without a pending move.
        if not self._status.is_over and position.turn != self._human_color:
            self._schedule_reply()

        for callback in self.events.on_move:
            self._notify(callback, move, position)

        # Terminal states are absorbing, so this fires once per game.
        if self._status.is_over:
            _log.info(
                "Game %s over: %s after %s", self.game_id, self._status.value, move.san,
            )
            for callback in self.events.on_status_changed:
                self._notify(callback, self._status)

    def _notify(self, callback: Callable[..., None], *args) -> None:
        try:
            callback(*args)
        except Exception:
            _log.exception("Game %s: listener %r failed", self.game_id, callback)

    def _schedule_reply(self) -> None:
        delay = self._rng.uniform(*self._thinking_delay)
        _log.debug("Game %s: opponent reply in %.2fs", self.game_id, delay)
        self._pending = self._scheduler.call_later(delay, self._play_reply)

    def _play_reply(self) -> None:
        self._pending = None
        if self._status.is_over:
            return
        legal = self._oracle.legal_moves(self._position)
        choice = select_move(legal, self._difficulty, self._rng)
        position, move = self._oracle.apply_move(
            self._position, choice.origin, choice.destination, choice.promotion,
        )
        _log.debug("Game %s: opponent plays %s", self.game_id, move.san)
        self._commit(position, move)

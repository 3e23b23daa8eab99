"""Rules oracle for Pedro Chess.

Wraps python-chess so the sessions never touch chess rules directly.
Provides:
- Immutable Position snapshots (root FEN + UCI move history)
- Legal move enumeration, optionally filtered by origin square
- Move application that never mutates its input
- Check / checkmate / draw judgements and terminal status derivation
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property

import chess

from pedro.errors import IllegalMove, InvalidPosition, InvalidSquare
from pedro.models import Move, PositionStatus, TerminalStatus

_log = logging.getLogger(__name__)

_PROMOTION_PIECES = {
    "q": chess.QUEEN,
    "r": chess.ROOK,
    "b": chess.BISHOP,
    "n": chess.KNIGHT,
}


def color_name(color: chess.Color) -> str:
    return "white" if color == chess.WHITE else "black"


def _parse_square(name: str) -> chess.Square:
    """Parse an algebraic square name such as 'e4'.

    Raises:
        InvalidSquare: If the name is not a square.
    """
    try:
        return chess.parse_square(str(name).strip().lower())
    except ValueError:
        raise InvalidSquare(name) from None


def _parse_promotion(
    origin: str, destination: str, promotion: str | None,
) -> chess.PieceType | None:
    if promotion is None or promotion == "":
        return None
    piece = _PROMOTION_PIECES.get(str(promotion).strip().lower())
    if piece is None:
        raise IllegalMove(
            origin, destination, promotion,
            reason=f"Invalid promotion piece: {promotion!r}",
        )
    return piece


def _to_move(board: chess.Board, move: chess.Move) -> Move:
    """Convert a python-chess move (legal in board) to a Move."""
    return Move(
        origin=chess.square_name(move.from_square),
        destination=chess.square_name(move.to_square),
        promotion=chess.piece_symbol(move.promotion) if move.promotion else None,
        san=board.san(move),
    )


@dataclass(frozen=True)
class Position:
    """Immutable chess position.

    Stored as the FEN it started from plus the UCI moves played since,
    which keeps the full history needed for repetition detection.
    """

    root_fen: str
    moves: tuple[str, ...] = ()

    @cached_property
    def _board(self) -> chess.Board:
        board = chess.Board(self.root_fen)
        for uci in self.moves:
            board.push_uci(uci)
        return board

    @classmethod
    def _after(cls, previous: Position, move: chess.Move, board: chess.Board) -> Position:
        """Build the successor of previous, reusing the already-pushed board."""
        position = cls(previous.root_fen, previous.moves + (move.uci(),))
        position.__dict__["_board"] = board
        return position

    def board(self) -> chess.Board:
        """Return a private copy of the board for this position."""
        return self._board.copy()

    @property
    def fen(self) -> str:
        return self._board.fen()

    @property
    def turn(self) -> str:
        return color_name(self._board.turn)

    @property
    def ply(self) -> int:
        return len(self.moves)

    @property
    def last_move(self) -> str | None:
        return self.moves[-1] if self.moves else None

    def piece_color(self, square: str) -> str | None:
        """Return the colour of the piece on square, or None if empty."""
        piece = self._board.piece_at(_parse_square(square))
        if piece is None:
            return None
        return color_name(piece.color)

    def __str__(self) -> str:
        return str(self._board)


class RulesOracle:
    """Chess legality, move application and terminal judgements."""

    def initial_position(self) -> Position:
        return Position(chess.STARTING_FEN)

    def parse_position(self, fen: str) -> Position:
        """Parse a FEN string into a Position.

        Args:
            fen: FEN string of the position.

        Returns:
            The parsed Position.

        Raises:
            InvalidPosition: If the FEN is malformed or the position
                could not arise in a legal game.
        """
        try:
            board = chess.Board(fen)
        except (ValueError, TypeError) as exc:
            raise InvalidPosition(f"Invalid FEN: {exc}") from exc
        if not board.is_valid():
            raise InvalidPosition(f"Invalid FEN position: {fen}")
        return Position(board.fen())

    def legal_moves(self, position: Position, origin: str | None = None) -> list[Move]:
        """List the legal moves in a position.

        Args:
            position: Position to enumerate.
            origin: Optional square name; only moves from it are returned.

        Returns:
            Moves in python-chess generation order.
        """
        board = position.board()
        from_sq = _parse_square(origin) if origin is not None else None
        return [
            _to_move(board, m)
            for m in board.legal_moves
            if from_sq is None or m.from_square == from_sq
        ]

    def apply_move(
        self,
        position: Position,
        origin: str,
        destination: str,
        promotion: str | None = None,
    ) -> tuple[Position, Move]:
        """Validate and apply a move, returning the successor position.

        Pawn moves to the last rank promote to a queen unless another
        piece is given; a promotion piece on a non-promoting move is
        ignored.

        Args:
            position: Position before the move. Never modified.
            origin: Origin square name.
            destination: Destination square name.
            promotion: Optional promotion piece letter (q, r, b, n).

        Returns:
            Tuple of (new Position, applied Move).

        Raises:
            IllegalMove: If no legal move matches.
        """
        from_sq = _parse_square(origin)
        to_sq = _parse_square(destination)
        wanted = _parse_promotion(origin, destination, promotion) or chess.QUEEN

        board = position.board()
        chosen: chess.Move | None = None
        for candidate in board.legal_moves:
            if candidate.from_square != from_sq or candidate.to_square != to_sq:
                continue
            if candidate.promotion is None or candidate.promotion == wanted:
                chosen = candidate
                break

        if chosen is None:
            raise IllegalMove(origin, destination, promotion)

        applied = _to_move(board, chosen)
        board.push(chosen)
        _log.debug("Applied %s (%s) -> %s", applied.san, applied.uci, board.fen())
        return Position._after(position, chosen, board), applied

    def status(self, position: Position) -> PositionStatus:
        """Report check, checkmate and draw for the side to move.

        Draws cover stalemate, insufficient material, threefold
        repetition and the fifty-move rule.
        """
        board = position.board()
        is_draw = (
            board.is_stalemate()
            or board.is_insufficient_material()
            or board.is_fifty_moves()
            or board.is_repetition(3)
        )
        return PositionStatus(
            in_check=board.is_check(),
            is_checkmate=board.is_checkmate(),
            is_draw=is_draw,
        )

    def terminal_status(self, position: Position) -> TerminalStatus:
        """Derive the terminal status: checkmate, then draw, then check."""
        status = self.status(position)
        if status.is_checkmate:
            return TerminalStatus.CHECKMATE
        if status.is_draw:
            return TerminalStatus.DRAW
        if status.in_check:
            return TerminalStatus.CHECK
        return TerminalStatus.PLAYING

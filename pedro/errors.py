"""Exceptions raised by the Pedro Chess sessions and rules oracle."""

from __future__ import annotations


class PedroError(Exception):
    """Base class for every error the core raises."""


class IllegalMove(PedroError):
    """The attempted move matches none of the legal moves in the position."""

    def __init__(
        self,
        origin: str,
        destination: str,
        promotion: str | None = None,
        reason: str | None = None,
    ) -> None:
        self.origin = origin
        self.destination = destination
        self.promotion = promotion
        move = f"{origin}{destination}{promotion or ''}"
        super().__init__(reason or f"Illegal move: {move}")


class InvalidSquare(IllegalMove):
    """A square name could not be parsed."""

    def __init__(self, square: str) -> None:
        self.square = square
        super().__init__(square, square, reason=f"Invalid square: {square!r}")


class GameOver(PedroError):
    """A move was attempted after checkmate or a draw."""


class AutomatedMoveInProgress(PedroError):
    """Human input arrived while the opponent is still thinking."""


class PuzzleAlreadyCompleted(PedroError):
    """A move was attempted on a solved puzzle."""


class InvalidPosition(PedroError, ValueError):
    """A position string is malformed or describes an illegal position."""


class PuzzleFormatError(PedroError, ValueError):
    """A puzzle file or record is malformed."""

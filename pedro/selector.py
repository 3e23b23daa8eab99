"""Move selection for the scripted opponent.

The opponent does not search. Each difficulty is an ordered cascade of
preference pools, each a subset of the legal moves picked out by a
pattern on the move's SAN. A pool is used with its probability when it
is non-empty; otherwise the cascade falls through, ending with a
uniform choice over every legal move.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from pedro.models import Difficulty, Move


@dataclass(frozen=True)
class NotationTags:
    is_capture: bool
    is_check: bool
    is_castle: bool
    is_promotion: bool


def classify_notation(san: str) -> NotationTags:
    """Classify a move from its SAN text alone.

    Only '+' marks a check; a mating move ('#') is not a check here.

    Args:
        san: Move in standard algebraic notation (e.g. 'Nbxd2+').

    Returns:
        NotationTags for the move.
    """
    return NotationTags(
        is_capture="x" in san,
        is_check="+" in san,
        is_castle=san.startswith("O-O"),
        is_promotion="=" in san,
    )


def is_capture(move: Move) -> bool:
    return classify_notation(move.san).is_capture


def is_check(move: Move) -> bool:
    return classify_notation(move.san).is_check


def is_castle(move: Move) -> bool:
    return classify_notation(move.san).is_castle


def is_clean_capture(move: Move) -> bool:
    """Capture that is not also a promotion."""
    tags = classify_notation(move.san)
    return tags.is_capture and not tags.is_promotion


def is_priority(move: Move) -> bool:
    """Check, clean capture, or castling."""
    tags = classify_notation(move.san)
    return (
        tags.is_check
        or (tags.is_capture and not tags.is_promotion)
        or tags.is_castle
    )


@dataclass(frozen=True)
class PreferencePool:
    name: str
    predicate: Callable[[Move], bool]
    probability: float


POLICIES: dict[Difficulty, tuple[PreferencePool, ...]] = {
    Difficulty.BEGINNER: (),
    Difficulty.INTERMEDIATE: (
        PreferencePool("captures", is_capture, 0.7),
    ),
    Difficulty.ADVANCED: (
        PreferencePool("checks", is_check, 0.8),
        PreferencePool("captures", is_clean_capture, 0.6),
    ),
    Difficulty.EXPERT: (
        PreferencePool("priority", is_priority, 0.9),
    ),
}


def select_move(
    legal_moves: Sequence[Move],
    difficulty: Difficulty,
    rng: random.Random | None = None,
) -> Move:
    """Pick the opponent's move under a difficulty policy.

    Args:
        legal_moves: Non-empty legal moves of the position.
        difficulty: Policy tier to apply.
        rng: Random source (defaults to the module-level generator).

    Returns:
        One element of legal_moves.

    Raises:
        ValueError: If legal_moves is empty.
    """
    if not legal_moves:
        raise ValueError("No legal moves to select from")

    source = rng if rng is not None else random
    for pool in POLICIES[Difficulty.parse(difficulty)]:
        candidates = [m for m in legal_moves if pool.predicate(m)]
        # Randomness is only drawn for non-empty pools.
        if candidates and source.random() < pool.probability:
            return source.choice(candidates)

    return source.choice(list(legal_moves))

"""Shared test fixtures.

Fixtures:
    oracle             - A RulesOracle.
    scheduler          - A ManualScheduler; nothing runs until advanced.
    back_rank_puzzle   - One-move back-rank mate puzzle.
    pin_puzzle         - Three-move line including the defender's reply.
    enable_validation  - Sets PEDRO_VALIDATE=1 for schema validation.
"""

from __future__ import annotations

import os

import pytest

from pedro.oracle import RulesOracle
from pedro.puzzles import Puzzle
from pedro.scheduler import ManualScheduler

BACK_RANK_FEN = "6k1/5ppp/8/8/8/8/8/4R2K w - - 0 1"


@pytest.fixture()
def oracle() -> RulesOracle:
    return RulesOracle()


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def back_rank_puzzle() -> Puzzle:
    return Puzzle(
        id="br1",
        name="Back Rank Mate",
        fen=BACK_RANK_FEN,
        solution=("Re8#",),
        solution_moves=("e1e8",),
        theme="checkmate",
        rating=800,
    )


@pytest.fixture()
def pin_puzzle() -> Puzzle:
    """Three-move line including the defender's reply."""
    return Puzzle(
        id="pin1",
        name="Pin and Win",
        fen="r1bqkb1r/pppp1ppp/2n2n2/4p3/2B1P3/3P1N2/PPP2PPP/RNBQK2R w KQkq - 2 5",
        solution=("Bxf7+", "Kxf7", "Ng5+"),
        solution_moves=("c4f7", "e8f7", "f3g5"),
    )


@pytest.fixture(autouse=True)
def enable_validation():
    """Set PEDRO_VALIDATE=1 for the test session.

    Restores the original env var value after the test.
    """
    original = os.environ.get("PEDRO_VALIDATE")
    os.environ["PEDRO_VALIDATE"] = "1"
    yield
    if original is None:
        os.environ.pop("PEDRO_VALIDATE", None)
    else:
        os.environ["PEDRO_VALIDATE"] = original

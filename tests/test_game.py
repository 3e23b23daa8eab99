"""Pytest tests for GameSession.

Covers the human/opponent turn cycle, the thinking window, terminal
states, selection, reset and the event callbacks. All tests drive a
ManualScheduler so timing is deterministic.
"""

from __future__ import annotations

import random

import pytest

from pedro.errors import AutomatedMoveInProgress, GameOver, IllegalMove
from pedro.game import GameSession
from pedro.models import Difficulty, TerminalStatus

# After 1.f3 e5: white to move, black threatens Qh4# once g4 is played.
_FOOLS_MATE_SETUP = "rnbqkbnr/pppp1ppp/8/4p3/8/5P2/PPPPP1PP/RNBQKBNR w KQkq - 0 2"
_SCHOLARS_MATE_SETUP = "r1bqkb1r/pppp1ppp/2n2n2/4p2Q/2B1P3/8/PPPP1PPP/RNB1K1NR w KQkq - 4 4"
# Qe6-f7 stalemates the black king on h8.
_STALEMATE_SETUP = "7k/8/4Q1K1/8/8/8/8/8 w - - 0 1"


class _MatingRandom:
    """Shortest delay, every pool taken; picks a mating move when offered."""

    def __init__(self):
        self.random_calls = 0
        self.offered: list[list[str]] = []

    def uniform(self, a, b):
        return a

    def random(self):
        self.random_calls += 1
        return 0.0

    def choice(self, seq):
        self.offered.append([m.san for m in seq])
        mates = [m for m in seq if m.san.endswith("#")]
        return mates[0] if mates else seq[0]


def _session(scheduler, oracle=None, **kwargs) -> GameSession:
    kwargs.setdefault("rng", random.Random(42))
    return GameSession(oracle=oracle, scheduler=scheduler, **kwargs)


# ---------------------------------------------------------------------------
# Turn cycle
# ---------------------------------------------------------------------------


class TestTurnCycle:

    def test_new_session(self, scheduler):
        session = _session(scheduler)
        assert session.status is TerminalStatus.PLAYING
        assert session.human_color == "white"
        assert session.position.turn == "white"
        assert session.moves == []
        assert not session.thinking
        assert session.difficulty is Difficulty.BEGINNER

    def test_human_move_schedules_reply(self, scheduler):
        session = _session(scheduler)
        move = session.attempt_move("e2", "e4")

        assert move.san == "e4"
        assert session.moves == ["e4"]
        assert session.position.turn == "black"
        assert session.thinking
        assert scheduler.pending == 1

        scheduler.run_all()
        assert not session.thinking
        assert session.position.turn == "white"
        assert len(session.moves) == 2
        assert session.moves[0] == "e4"

    def test_reply_lands_inside_thinking_window(self, scheduler):
        session = _session(scheduler, thinking_delay=(0.4, 2.0))
        session.attempt_move("d2", "d4")

        scheduler.advance(0.39)
        assert session.thinking
        assert session.moves == ["d4"]

        scheduler.advance(1.61)
        assert not session.thinking
        assert len(session.moves) == 2

    def test_input_refused_while_thinking(self, scheduler):
        session = _session(scheduler)
        session.attempt_move("e2", "e4")
        fen = session.position.fen

        with pytest.raises(AutomatedMoveInProgress):
            session.attempt_move("d2", "d4")
        assert session.position.fen == fen
        assert session.moves == ["e4"]

    def test_illegal_move_changes_nothing(self, scheduler):
        session = _session(scheduler)
        start = session.position

        with pytest.raises(IllegalMove):
            session.attempt_move("e2", "e5")
        assert session.position is start
        assert not session.thinking
        assert scheduler.pending == 0

    def test_full_exchange_cycle(self, scheduler, oracle):
        """Several human/opponent exchanges keep strict alternation."""
        session = _session(scheduler, oracle=oracle, difficulty="expert")
        for _ in range(3):
            if session.status.is_over:
                break
            move = oracle.legal_moves(session.position)[0]
            session.attempt_move(move.origin, move.destination, move.promotion)
            scheduler.run_all()
            assert not session.thinking
            if not session.status.is_over:
                assert session.position.turn == "white"
                assert len(session.moves) % 2 == 0

    def test_human_plays_black(self, scheduler, oracle):
        start = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"
        session = _session(scheduler, start=oracle.parse_position(start))
        assert session.human_color == "black"
        session.attempt_move("e7", "e5")
        assert session.thinking
        scheduler.run_all()
        assert session.position.turn == "black"

    def test_invalid_thinking_window(self, scheduler):
        with pytest.raises(ValueError):
            GameSession(scheduler=scheduler, thinking_delay=(2.0, 1.0))
        with pytest.raises(ValueError):
            GameSession(scheduler=scheduler, thinking_delay=(-1.0, 1.0))


# ---------------------------------------------------------------------------
# Terminal states
# ---------------------------------------------------------------------------


class TestTerminalStates:

    def test_human_delivers_mate(self, scheduler, oracle):
        session = _session(scheduler, start=oracle.parse_position(_SCHOLARS_MATE_SETUP))
        statuses = []
        session.events.on_status_changed.append(statuses.append)

        move = session.attempt_move("h5", "f7")
        assert move.san == "Qxf7#"
        assert session.status is TerminalStatus.CHECKMATE
        assert session.winner == "white"
        assert not session.thinking
        assert scheduler.pending == 0
        assert statuses == [TerminalStatus.CHECKMATE]

    def test_moves_refused_after_game_over(self, scheduler, oracle):
        session = _session(scheduler, start=oracle.parse_position(_SCHOLARS_MATE_SETUP))
        session.attempt_move("h5", "f7")
        with pytest.raises(GameOver):
            session.attempt_move("e1", "e2")

    def test_reset_after_mate(self, scheduler, oracle):
        start = oracle.parse_position(_SCHOLARS_MATE_SETUP)
        session = _session(scheduler, start=start)
        session.attempt_move("h5", "f7")

        session.reset()
        assert session.status is TerminalStatus.PLAYING
        assert session.position == start
        assert session.attempt_move("h5", "f7").san == "Qxf7#"

    def test_opponent_delivers_mate(self, scheduler, oracle):
        """A quiet mate enters no Expert pool; it comes from the uniform fallback."""
        rng = _MatingRandom()
        session = _session(
            scheduler,
            start=oracle.parse_position(_FOOLS_MATE_SETUP),
            difficulty=Difficulty.EXPERT,
            rng=rng,
        )
        statuses = []
        session.events.on_status_changed.append(statuses.append)

        session.attempt_move("g2", "g4")
        assert statuses == []
        scheduler.run_all()

        assert session.moves == ["g4", "Qh4#"]
        assert session.status is TerminalStatus.CHECKMATE
        assert session.winner == "black"
        assert statuses == [TerminalStatus.CHECKMATE]
        assert rng.random_calls == 0
        assert len(rng.offered) == 1
        assert "Qh4#" in rng.offered[0] and len(rng.offered[0]) > 1

    def test_stalemate_is_draw(self, scheduler, oracle):
        session = _session(scheduler, start=oracle.parse_position(_STALEMATE_SETUP))
        session.attempt_move("e6", "f7")
        assert session.status is TerminalStatus.DRAW
        assert session.winner is None
        assert scheduler.pending == 0
        view = session.view()
        assert view.is_game_over
        assert view.status == "draw"

    def test_check_is_not_terminal(self, scheduler, oracle):
        session = _session(scheduler, start=oracle.parse_position("4k3/8/8/8/8/8/8/4K2R w K - 0 1"))
        statuses = []
        session.events.on_status_changed.append(statuses.append)
        session.attempt_move("h1", "h8")
        assert session.status is TerminalStatus.CHECK
        assert session.thinking
        assert statuses == []


# ---------------------------------------------------------------------------
# Selection and clicks
# ---------------------------------------------------------------------------


class TestSelection:

    def test_select_own_piece(self, scheduler):
        session = _session(scheduler)
        selection = session.select_square("e2")
        assert selection.origin == "e2"
        assert selection.destinations == ("e3", "e4")
        assert session.selection == selection

    def test_select_opponent_or_empty_square(self, scheduler):
        session = _session(scheduler)
        session.select_square("e2")
        assert session.select_square("e7") is None
        assert session.selection is None
        assert session.select_square("e4") is None

    def test_no_selection_while_thinking(self, scheduler):
        session = _session(scheduler)
        session.attempt_move("e2", "e4")
        assert session.select_square("d2") is None

    def test_click_moves_selected_piece(self, scheduler):
        session = _session(scheduler)
        assert session.click("g1") is None
        move = session.click("f3")
        assert move is not None and move.san == "Nf3"
        assert session.selection is None

    def test_click_illegal_destination_reselects(self, scheduler):
        session = _session(scheduler)
        session.click("e2")
        assert session.click("b1") is None
        assert session.selection.origin == "b1"
        assert session.selection.destinations == ("a3", "c3")
        assert session.moves == []

    def test_malformed_square_clears_selection(self, scheduler):
        session = _session(scheduler)
        session.select_square("e2")
        assert session.select_square("z9") is None
        assert session.selection is None
        assert session.select_square("") is None

    def test_click_malformed_square(self, scheduler):
        session = _session(scheduler)
        session.click("e2")
        assert session.click("e9") is None
        assert session.selection is None
        assert session.moves == []
        assert session.click("zz") is None


# ---------------------------------------------------------------------------
# Reset, difficulty and events
# ---------------------------------------------------------------------------


class TestSessionControl:

    def test_reset_discards_pending_reply(self, scheduler):
        session = _session(scheduler)
        start = session.position
        session.attempt_move("e2", "e4")
        assert session.thinking

        session.reset()
        assert not session.thinking
        assert session.position == start
        assert session.moves == []
        assert scheduler.pending == 0

        scheduler.advance(10.0)
        assert session.moves == []
        assert session.position == start

    def test_set_difficulty(self, scheduler):
        session = _session(scheduler)
        session.set_difficulty("Advanced")
        assert session.difficulty is Difficulty.ADVANCED
        with pytest.raises(ValueError):
            session.set_difficulty("grandmaster")
        assert session.difficulty is Difficulty.ADVANCED

    def test_on_move_fires_for_both_sides(self, scheduler):
        session = _session(scheduler)
        seen = []
        session.events.on_move.append(lambda move, position: seen.append((move.san, position.turn)))
        session.attempt_move("e2", "e4")
        scheduler.run_all()
        assert len(seen) == 2
        assert seen[0] == ("e4", "black")
        assert seen[1][1] == "white"

    def test_view(self, scheduler):
        session = _session(scheduler, game_id="g-1", difficulty="intermediate")
        session.attempt_move("e2", "e4")
        view = session.view()
        assert view.game_id == "g-1"
        assert view.mode == "game"
        assert view.turn == "black"
        assert view.thinking
        assert view.difficulty == "intermediate"
        assert view.move_list == ["e4"]
        assert view.last_move == "e2e4"
        assert view.last_move_san == "e4"
        assert view.legal_moves_count == 20
        assert view.start_fen.startswith("rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w ")
        assert view.winner is None
        assert "P" in view.board_display

    def test_failing_listener_does_not_strand_the_game(self, scheduler, caplog):
        session = _session(scheduler)

        def broken(move, position):
            raise OSError("disk full")

        session.events.on_move.append(broken)
        with caplog.at_level("ERROR", logger="pedro.game"):
            session.attempt_move("e2", "e4")
        assert session.thinking
        assert scheduler.pending == 1
        assert "listener" in caplog.text

        scheduler.run_all()
        assert session.position.turn == "white"
        assert len(session.moves) == 2
        assert session.attempt_move("d2", "d4").san == "d4"

    def test_failing_listener_still_reports_game_over(self, scheduler, oracle):
        session = _session(scheduler, start=oracle.parse_position(_SCHOLARS_MATE_SETUP))
        statuses = []

        def broken(move, position):
            raise RuntimeError("boom")

        session.events.on_move.append(broken)
        session.events.on_status_changed.append(statuses.append)
        session.attempt_move("h5", "f7")
        assert session.status is TerminalStatus.CHECKMATE
        assert statuses == [TerminalStatus.CHECKMATE]

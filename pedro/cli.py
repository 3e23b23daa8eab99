"""Command-line interface for Pedro Chess.

Subcommands:
- play: interactive game against the scripted opponent
- puzzles: interactive puzzle trainer
- validate: check a puzzle catalog for legal, canonical solutions
- tui: rich board that follows the MCP server's current view
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
import time

from pedro.config import Settings
from pedro.errors import AutomatedMoveInProgress, GameOver, IllegalMove, PedroError
from pedro.game import GameSession
from pedro.models import Difficulty, Move, PuzzleState, TerminalStatus
from pedro.oracle import Position, RulesOracle
from pedro.progress import ProgressStore
from pedro.puzzle import PuzzleTrainer
from pedro.puzzles import load_puzzles, validate_catalog
from pedro.scheduler import ManualScheduler

_TICK = 0.1


def _match_input(oracle: RulesOracle, position: Position, text: str) -> Move | None:
    """Find the legal move written as SAN (check marks optional) or UCI."""
    wanted = text.strip()
    bare = wanted.rstrip("+#")
    for move in oracle.legal_moves(position):
        if wanted == move.uci or bare == move.san.rstrip("+#"):
            return move
    return None


def _wait_for_reply(session: GameSession, scheduler: ManualScheduler) -> None:
    if session.thinking:
        print("Pedro AI is thinking...")
    while session.thinking:
        time.sleep(_TICK)
        scheduler.advance(_TICK)


def _cli_play(difficulty: Difficulty, seed: int | None, settings: Settings) -> None:
    """Play an interactive game as white against the scripted opponent."""
    oracle = RulesOracle()
    scheduler = ManualScheduler()
    session = GameSession(
        oracle=oracle,
        scheduler=scheduler,
        difficulty=difficulty,
        rng=random.Random(seed),
        thinking_delay=settings.thinking_delay,
    )
    session.events.on_move.append(
        lambda move, position: print(f"{'White' if position.turn == 'black' else 'Black'} plays: {move.san}")
    )

    print(f"New game at {difficulty.value} difficulty")
    print(session.position)
    print()

    while True:
        if session.status.is_over:
            winner = session.winner
            print(f"Game over: {session.status.value}" + (f", {winner} wins" if winner else ""))
            print("Type 'new' for another game or 'q' to quit.")

        print("Your move (SAN or UCI; 'moves', 'new', 'q'): ", end="")
        try:
            user_input = input().strip()
        except EOFError:
            return
        if user_input.lower() == "q":
            print("Game ended by user.")
            return
        if user_input.lower() == "new":
            session.reset()
            print(session.position)
            continue
        if user_input.lower() == "moves":
            print(" ".join(m.san for m in oracle.legal_moves(session.position)))
            continue

        move = _match_input(oracle, session.position, user_input)
        if move is None:
            print("Illegal move. Try again.")
            continue

        try:
            session.attempt_move(move.origin, move.destination, move.promotion)
        except (GameOver, AutomatedMoveInProgress, IllegalMove) as exc:
            print(exc)
            continue

        _wait_for_reply(session, scheduler)
        print(session.position)
        if session.status is TerminalStatus.CHECK:
            print("Check!")
        print()


def _print_puzzle(trainer: PuzzleTrainer) -> None:
    view = trainer.view()
    print(f"Puzzle {view.puzzle_index + 1} of {view.puzzle_count}: {view.name} "
          f"({view.difficulty}, {view.rating}) - {len(view.solved_puzzles)} solved")
    print(view.description)
    print(trainer.session.position)
    print(f"{view.turn.capitalize()} to move. Progress {view.cursor}/{view.solution_length}")


def _cli_puzzles(start: int, settings: Settings) -> None:
    """Work through the built-in puzzles interactively."""
    oracle = RulesOracle()
    scheduler = ManualScheduler()
    trainer = PuzzleTrainer(
        load_puzzles(),
        oracle=oracle,
        scheduler=scheduler,
        store=ProgressStore(settings.progress_path),
        start_index=start,
    )
    _print_puzzle(trainer)

    while True:
        print("Move (SAN or UCI; 'hint', 'reset', 'next', 'prev', 'q'): ", end="")
        try:
            user_input = input().strip()
        except EOFError:
            return
        command = user_input.lower()
        if command == "q":
            return
        if command == "hint":
            print(f"Hint: {trainer.session.hint()}")
            continue
        if command == "reset":
            trainer.session.reset()
            _print_puzzle(trainer)
            continue
        if command in ("next", "prev"):
            moved = trainer.next_puzzle() if command == "next" else trainer.previous_puzzle()
            if not moved:
                print("No more puzzles in that direction.")
            _print_puzzle(trainer)
            continue

        session = trainer.session
        move = _match_input(oracle, session.position, user_input)
        if move is None:
            print("Illegal move. Try again.")
            continue
        try:
            outcome = session.attempt_move(move.origin, move.destination, move.promotion)
        except PedroError as exc:
            print(exc)
            continue

        if outcome.state is PuzzleState.COMPLETED:
            print(f"Puzzle solved! Great job on \"{trainer.puzzle.name}\".")
        elif outcome.state is PuzzleState.CORRECT_INTERMEDIATE:
            print("Correct move! Keep going.")
        else:
            print("Not quite right. Try again or use a hint.")
        scheduler.run_all()
        print(session.position)


def _cli_validate(path: str | None) -> int:
    """Validate a puzzle catalog. Returns process exit code."""
    try:
        puzzles = load_puzzles(path)
    except PedroError as exc:
        print(f"FAIL: {exc}", file=sys.stderr)
        return 1

    passed, errors = validate_catalog(puzzles)
    status = "PASS" if not errors else "FAIL"
    print(f"{status}: {passed}/{len(puzzles)} puzzles valid")
    if errors:
        print(f"\n{len(errors)} error(s):")
        for err in errors:
            print(f"  - {err}")
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for pedro."""
    parser = argparse.ArgumentParser(
        description="Pedro Chess - play the scripted opponent or solve puzzles"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    play_parser = subparsers.add_parser("play", help="Play against Pedro AI")
    play_parser.add_argument(
        "--difficulty", type=str, default=None,
        help="beginner, intermediate, advanced or expert",
    )
    play_parser.add_argument("--seed", type=int, default=None, help="Random seed")

    puzzles_parser = subparsers.add_parser("puzzles", help="Solve tactical puzzles")
    puzzles_parser.add_argument("--start", type=int, default=1, help="Puzzle number to start at")

    validate_parser = subparsers.add_parser("validate", help="Validate a puzzle file")
    validate_parser.add_argument("path", nargs="?", default=None, help="Puzzle JSON file")

    tui_parser = subparsers.add_parser("tui", help="Terminal board for the MCP server")
    tui_parser.add_argument("--sample", action="store_true", help="Render a sample and exit")

    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "play":
        try:
            difficulty = Difficulty.parse(args.difficulty or settings.difficulty)
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 2
        _cli_play(difficulty, args.seed, settings)
    elif args.command == "puzzles":
        _cli_puzzles(max(0, args.start - 1), settings)
    elif args.command == "validate":
        return _cli_validate(args.path)
    elif args.command == "tui":
        from pedro import tui

        tui.run(sample=args.sample, settings=settings)
    else:
        parser.print_help()
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

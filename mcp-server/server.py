"""MCP server for Pedro Chess.

Exposes game and puzzle sessions via FastMCP. Sessions are stored in
memory keyed by UUID. The current view is synced to
data/current_view.json after every change for TUI consumption.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import uuid
from dataclasses import asdict
from pathlib import Path

# Add project root and mcp-server dir to path for imports
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_MCP_SERVER_DIR = Path(__file__).resolve().parent
sys.path.insert(0, str(_PROJECT_ROOT))
sys.path.insert(0, str(_MCP_SERVER_DIR))

from mcp.server.fastmcp import FastMCP  # noqa: E402

from pedro.config import Settings  # noqa: E402
from pedro.errors import IllegalMove, PedroError  # noqa: E402
from pedro.game import GameSession  # noqa: E402
from pedro.models import Difficulty  # noqa: E402
from pedro.oracle import RulesOracle  # noqa: E402
from pedro.progress import ProgressStore  # noqa: E402
from pedro.puzzle import PuzzleTrainer  # noqa: E402
from pedro.puzzles import load_puzzles, validate_catalog  # noqa: E402
from pedro.scheduler import AsyncioScheduler, Scheduler  # noqa: E402

from response_schemas import minify_game_view, minify_puzzle_view  # noqa: E402

_log = logging.getLogger(__name__)

mcp = FastMCP("pedro-chess")

_settings = Settings.from_env()
_DATA_DIR = _settings.data_dir
_oracle = RulesOracle()
_scheduler: Scheduler = AsyncioScheduler()

# In-memory session stores: id -> session
_games: dict[str, GameSession] = {}
_trainers: dict[str, PuzzleTrainer] = {}


def _sync_view(view: dict) -> None:
    """Write a view to data/current_view.json atomically.

    Uses temp file + os.replace() for atomic write.

    Args:
        view: GameView or PuzzleView dict to persist.
    """
    _DATA_DIR.mkdir(parents=True, exist_ok=True)
    target = _DATA_DIR / "current_view.json"
    tmp = _DATA_DIR / "current_view.tmp"
    tmp.write_text(
        json.dumps(view, indent=2, default=str, ensure_ascii=False),
        encoding="utf-8",
    )
    os.replace(tmp, target)


def _game_response(game: GameSession) -> dict:
    view = asdict(game.view())
    _sync_view(view)
    return minify_game_view(view)


def _puzzle_response(trainer_id: str, trainer: PuzzleTrainer) -> dict:
    view = asdict(trainer.view())
    _sync_view(view)
    result = minify_puzzle_view(view)
    result["trainer_id"] = trainer_id
    return result


def _legal_moves_error(position, origin: str | None = None) -> list[str]:
    try:
        return [m.san for m in _oracle.legal_moves(position, origin)]
    except IllegalMove:
        return [m.san for m in _oracle.legal_moves(position)]


# ---------------------------------------------------------------------------
# Game tools
# ---------------------------------------------------------------------------


@mcp.tool()
def new_game(
    difficulty: str = "beginner",
    starting_fen: str | None = None,
) -> dict:
    """Start a new game against Pedro AI.

    Args:
        difficulty: 'beginner', 'intermediate', 'advanced' or 'expert'.
        starting_fen: Optional custom starting position FEN. The side to
            move in it is the human's side.

    Returns:
        GameView dict with the initial position.
    """
    try:
        level = Difficulty.parse(difficulty)
        start = _oracle.parse_position(starting_fen) if starting_fen else None
    except ValueError as exc:
        return {"error": str(exc)}

    game_id = str(uuid.uuid4())
    game = GameSession(
        oracle=_oracle,
        scheduler=_scheduler,
        difficulty=level,
        thinking_delay=_settings.thinking_delay,
        start=start,
        game_id=game_id,
    )
    # Opponent replies land after the tool call returns; keep the TUI current.
    game.events.on_move.append(lambda move, position: _sync_view(asdict(game.view())))
    _games[game_id] = game
    _log.info("New game %s at %s", game_id, level.value)

    return _game_response(game)


@mcp.tool()
def get_game(game_id: str) -> dict:
    """Get the current state of a game.

    Args:
        game_id: UUID of the game.

    Returns:
        GameView dict with position, status, and thinking flag.
    """
    game = _games.get(game_id)
    if game is None:
        return {"error": f"Game not found: {game_id}"}

    return _game_response(game)


@mcp.tool()
def select_square(game_id: str, square: str) -> dict:
    """Select one of your pieces and list its legal destinations.

    Args:
        game_id: UUID of the game.
        square: Square name (e.g., 'e2').

    Returns:
        GameView dict including selected_square and legal_destinations,
        or without them when square holds none of your pieces.
    """
    game = _games.get(game_id)
    if game is None:
        return {"error": f"Game not found: {game_id}"}

    game.select_square(square)
    return _game_response(game)


@mcp.tool()
def make_move(
    game_id: str,
    origin: str,
    destination: str,
    promotion: str = "q",
) -> dict:
    """Make a player move; Pedro AI replies after a short delay.

    Args:
        game_id: UUID of the game.
        origin: Origin square (e.g., 'e2').
        destination: Destination square (e.g., 'e4').
        promotion: Promotion piece for pawn promotions (q, r, b, n).

    Returns:
        Updated GameView dict after the move.
    """
    game = _games.get(game_id)
    if game is None:
        return {"error": f"Game not found: {game_id}"}

    try:
        game.attempt_move(origin, destination, promotion)
    except IllegalMove as exc:
        legal = _legal_moves_error(game.position, origin)
        return {"error": f"{exc}. Legal moves: {legal}"}
    except PedroError as exc:
        return {"error": str(exc)}

    return _game_response(game)


@mcp.tool()
def set_difficulty(game_id: str, difficulty: str) -> dict:
    """Change Pedro AI's difficulty mid-game.

    Args:
        game_id: UUID of the game.
        difficulty: 'beginner', 'intermediate', 'advanced' or 'expert'.

    Returns:
        Confirmation dict with the new difficulty.
    """
    game = _games.get(game_id)
    if game is None:
        return {"error": f"Game not found: {game_id}"}

    try:
        game.set_difficulty(difficulty)
    except ValueError as exc:
        return {"error": str(exc)}

    return {
        "game_id": game_id,
        "difficulty": game.difficulty.value,
        "message": f"Difficulty set to {game.difficulty.value}",
    }


@mcp.tool()
def reset_game(game_id: str) -> dict:
    """Start the game over, discarding any pending Pedro AI move.

    Args:
        game_id: UUID of the game.

    Returns:
        GameView dict at the starting position.
    """
    game = _games.get(game_id)
    if game is None:
        return {"error": f"Game not found: {game_id}"}

    game.reset()
    return _game_response(game)


@mcp.tool()
def get_legal_moves(game_id: str, square: str | None = None) -> dict:
    """List legal moves, optionally filtered by origin square.

    Args:
        game_id: UUID of the game.
        square: Optional square name (e.g., 'e2') to filter moves from.

    Returns:
        Dict with list of legal moves in SAN notation.
    """
    game = _games.get(game_id)
    if game is None:
        return {"error": f"Game not found: {game_id}"}

    try:
        moves = [m.san for m in _oracle.legal_moves(game.position, square)]
    except IllegalMove as exc:
        return {"error": str(exc)}

    return {"game_id": game_id, "square": square, "legal_moves": moves}


# ---------------------------------------------------------------------------
# Puzzle tools
# ---------------------------------------------------------------------------


@mcp.tool()
def open_puzzles(start: int = 1) -> dict:
    """Open the puzzle trainer on the built-in catalog.

    Args:
        start: Puzzle number to start at (1-based).

    Returns:
        PuzzleView dict with trainer_id for the other puzzle tools.
    """
    try:
        puzzles = load_puzzles()
        trainer = PuzzleTrainer(
            puzzles,
            oracle=_oracle,
            scheduler=_scheduler,
            store=ProgressStore(_DATA_DIR / "progress.json"),
            start_index=start - 1,
        )
    except PedroError as exc:
        return {"error": str(exc)}

    trainer_id = str(uuid.uuid4())
    _trainers[trainer_id] = trainer
    return _puzzle_response(trainer_id, trainer)


@mcp.tool()
def get_puzzle(trainer_id: str) -> dict:
    """Get the current puzzle and progress.

    Args:
        trainer_id: UUID returned by open_puzzles.

    Returns:
        PuzzleView dict.
    """
    trainer = _trainers.get(trainer_id)
    if trainer is None:
        return {"error": f"Puzzle trainer not found: {trainer_id}"}

    return _puzzle_response(trainer_id, trainer)


@mcp.tool()
def puzzle_move(
    trainer_id: str,
    origin: str,
    destination: str,
    promotion: str = "q",
) -> dict:
    """Try a move on the current puzzle.

    Args:
        trainer_id: UUID returned by open_puzzles.
        origin: Origin square (e.g., 'e1').
        destination: Destination square (e.g., 'e8').
        promotion: Promotion piece for pawn promotions (q, r, b, n).

    Returns:
        PuzzleView dict plus 'correct' and 'move' for the attempt.
    """
    trainer = _trainers.get(trainer_id)
    if trainer is None:
        return {"error": f"Puzzle trainer not found: {trainer_id}"}

    try:
        outcome = trainer.session.attempt_move(origin, destination, promotion)
    except IllegalMove as exc:
        legal = _legal_moves_error(trainer.session.position, origin)
        return {"error": f"{exc}. Legal moves: {legal}"}
    except PedroError as exc:
        return {"error": str(exc)}

    result = _puzzle_response(trainer_id, trainer)
    result["correct"] = outcome.correct
    result["move"] = outcome.move.san
    return result


@mcp.tool()
def puzzle_hint(trainer_id: str) -> dict:
    """Reveal the next expected move of the current puzzle.

    Args:
        trainer_id: UUID returned by open_puzzles.

    Returns:
        PuzzleView dict including the hint.
    """
    trainer = _trainers.get(trainer_id)
    if trainer is None:
        return {"error": f"Puzzle trainer not found: {trainer_id}"}

    hint = trainer.session.hint()
    result = _puzzle_response(trainer_id, trainer)
    result["hint"] = hint
    return result


@mcp.tool()
def reset_puzzle(trainer_id: str) -> dict:
    """Restart the current puzzle from its starting position.

    Args:
        trainer_id: UUID returned by open_puzzles.

    Returns:
        PuzzleView dict.
    """
    trainer = _trainers.get(trainer_id)
    if trainer is None:
        return {"error": f"Puzzle trainer not found: {trainer_id}"}

    trainer.session.reset()
    return _puzzle_response(trainer_id, trainer)


@mcp.tool()
def next_puzzle(trainer_id: str) -> dict:
    """Move to the next puzzle (stays on the last one at the end).

    Args:
        trainer_id: UUID returned by open_puzzles.

    Returns:
        PuzzleView dict plus 'moved'.
    """
    trainer = _trainers.get(trainer_id)
    if trainer is None:
        return {"error": f"Puzzle trainer not found: {trainer_id}"}

    moved = trainer.next_puzzle()
    result = _puzzle_response(trainer_id, trainer)
    result["moved"] = moved
    return result


@mcp.tool()
def previous_puzzle(trainer_id: str) -> dict:
    """Move to the previous puzzle (stays on the first one at the start).

    Args:
        trainer_id: UUID returned by open_puzzles.

    Returns:
        PuzzleView dict plus 'moved'.
    """
    trainer = _trainers.get(trainer_id)
    if trainer is None:
        return {"error": f"Puzzle trainer not found: {trainer_id}"}

    moved = trainer.previous_puzzle()
    result = _puzzle_response(trainer_id, trainer)
    result["moved"] = moved
    return result


@mcp.tool()
def validate_puzzles(path: str | None = None) -> dict:
    """Check a puzzle catalog for legal, canonical solution lines.

    Args:
        path: Optional JSON file; the built-in catalog by default.

    Returns:
        Dict with total, passed and errors.
    """
    try:
        puzzles = load_puzzles(path)
    except PedroError as exc:
        return {"error": str(exc)}

    passed, errors = validate_catalog(puzzles)
    return {"total": len(puzzles), "passed": passed, "errors": errors}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    logging.basicConfig(level=_settings.log_level)
    mcp.run()

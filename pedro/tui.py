"""Terminal chess board UI for Pedro Chess.

Renders a Rich-based board for a game or puzzle view and auto-updates
by watching data/current_view.json via watchdog at ~4Hz. Supports
--sample flag for standalone rendering without the MCP server.
"""

from __future__ import annotations

import argparse
import json
import time
from dataclasses import asdict
from pathlib import Path

import chess
from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from pedro.config import Settings

# Unicode piece symbols
_PIECE_SYMBOLS = {
    "K": "♔", "Q": "♕", "R": "♖", "B": "♗",
    "N": "♘", "P": "♙",
    "k": "♚", "q": "♛", "r": "♜", "b": "♝",
    "n": "♞", "p": "♟",
}

_LIGHT_SQ = "grey85"
_DARK_SQ = "grey50"
_HIGHLIGHT = "yellow"
_SELECTED = "green"
_DESTINATION = "cyan"

_STATUS_LABELS = {
    "playing": "{turn} to move",
    "check": "Check!",
    "checkmate": "Checkmate!",
    "draw": "Draw!",
}

_PUZZLE_LABELS = {
    "solving": "Find the best move",
    "correct": "Correct! Keep going.",
    "incorrect": "Not quite right. Try again.",
    "completed": "Puzzle solved!",
}


def _load_view(path: Path) -> dict | None:
    """Load a view dict from a JSON file.

    Args:
        path: Path to the JSON file.

    Returns:
        Parsed dict or None if file missing/corrupt.
    """
    if not path.exists():
        return None
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        if isinstance(data, dict):
            return data
        return None
    except (json.JSONDecodeError, OSError):
        return None


def sample_view() -> dict:
    """Build a sample game view: 1.e4, a reply, and the g1 knight selected."""
    import random

    from pedro.game import GameSession
    from pedro.scheduler import ManualScheduler

    scheduler = ManualScheduler()
    session = GameSession(scheduler=scheduler, rng=random.Random(7), game_id="sample")
    session.attempt_move("e2", "e4")
    scheduler.run_all()
    session.select_square("g1")
    return asdict(session.view())


def render_board(state: dict) -> Layout:
    """Render the full board layout from a view dict.

    Args:
        state: GameView or PuzzleView dict.

    Returns:
        Rich Layout with board and sidebar.
    """
    layout = Layout()
    layout.split_row(
        Layout(name="board", ratio=2),
        Layout(name="sidebar", ratio=1),
    )

    layout["board"].update(_render_board_panel(state))
    if state.get("mode") == "puzzle":
        layout["sidebar"].update(_render_puzzle_sidebar(state))
    else:
        layout["sidebar"].update(_render_game_sidebar(state))

    return layout


def _render_board_panel(state: dict) -> Panel:
    """Render the chess board as a Rich Panel.

    Args:
        state: View dict.

    Returns:
        Panel containing the board.
    """
    fen = state.get("fen", chess.STARTING_FEN)
    is_flipped = state.get("human_color") == "black"
    last_move = state.get("last_move")

    board = chess.Board(fen)

    highlight_squares: set[int] = set()
    if last_move and len(last_move) >= 4:
        try:
            mv = chess.Move.from_uci(last_move)
            highlight_squares.add(mv.from_square)
            highlight_squares.add(mv.to_square)
        except (ValueError, chess.InvalidMoveError):
            pass

    selected: int | None = None
    if state.get("selected_square"):
        try:
            selected = chess.parse_square(state["selected_square"])
        except ValueError:
            selected = None
    destinations: set[int] = set()
    for name in state.get("legal_destinations", []):
        try:
            destinations.add(chess.parse_square(name))
        except ValueError:
            continue

    table = Table(show_header=False, show_edge=False, pad_edge=False,
                  box=None, padding=(0, 1))

    # Add columns: rank label + 8 squares
    table.add_column(width=2, justify="right")
    for _ in range(8):
        table.add_column(width=3, justify="center")

    ranks = range(8) if is_flipped else range(7, -1, -1)
    files = range(7, -1, -1) if is_flipped else range(8)

    for rank in ranks:
        row: list[Text] = [Text(str(rank + 1), style="bold")]
        for file in files:
            sq = chess.square(file, rank)
            piece = board.piece_at(sq)

            is_light = (rank + file) % 2 == 1
            bg = _LIGHT_SQ if is_light else _DARK_SQ
            if sq in highlight_squares:
                bg = _HIGHLIGHT
            if sq in destinations:
                bg = _DESTINATION
            if sq == selected:
                bg = _SELECTED

            if piece is not None:
                symbol = _PIECE_SYMBOLS.get(piece.symbol(), "?")
                cell = Text(f" {symbol} ", style=f"on {bg}")
            elif sq in destinations:
                cell = Text(" · ", style=f"on {bg}")
            else:
                cell = Text("   ", style=f"on {bg}")

            row.append(cell)

        table.add_row(*row)

    file_labels = [Text("  ")]
    for f in files:
        file_labels.append(Text(f" {chr(ord('a') + f)} ", style="bold"))
    table.add_row(*file_labels)

    if state.get("mode") == "puzzle":
        title = state.get("name", "Puzzle")
    else:
        title = "Pedro Chess"
        if state.get("is_game_over"):
            winner = state.get("winner")
            title = f"Game Over: {winner} wins" if winner else "Game Over: draw"

    return Panel(table, title=title, border_style="blue")


def _format_moves(move_list: list[str], start_fen: str = "") -> list[str]:
    """Pair moves per line, numbered from the starting FEN when given."""
    fields = start_fen.split()
    black_first = len(fields) > 1 and fields[1] == "b"
    move_num = max(int(fields[5]), 1) if len(fields) > 5 and fields[5].isdigit() else 1

    moves = list(move_list)
    lines = []
    if black_first and moves:
        lines.append(f"  {move_num}. ... {moves.pop(0)}")
        move_num += 1
    for i in range(0, len(moves), 2):
        white_move = moves[i]
        black_move = moves[i + 1] if i + 1 < len(moves) else ""
        lines.append(f"  {move_num}. {white_move} {black_move}")
        move_num += 1
    return lines


def _render_game_sidebar(state: dict) -> Panel:
    """Render the sidebar with game info.

    Args:
        state: GameView dict.

    Returns:
        Panel containing sidebar info.
    """
    parts: list[str] = []

    status = state.get("status", "playing")
    turn = str(state.get("turn", "white")).capitalize()
    parts.append(f"[bold]{_STATUS_LABELS.get(status, status).format(turn=turn)}[/bold]")
    if state.get("thinking"):
        parts.append("[italic]Pedro AI is thinking...[/italic]")
    parts.append("")

    move_list = state.get("move_list", [])
    if move_list:
        parts.append("[bold]Moves:[/bold]")
        parts.extend(_format_moves(move_list, state.get("start_fen", "")))
        parts.append("")

    parts.append(f"Playing as: {state.get('human_color', 'white')}")
    parts.append(f"Difficulty: {state.get('difficulty', 'beginner')}")
    parts.append(f"Legal moves: {state.get('legal_moves_count', 0)}")

    content = "\n".join(parts)
    return Panel(content, title="Info", border_style="green")


def _render_puzzle_sidebar(state: dict) -> Panel:
    """Render the sidebar with puzzle progress.

    Args:
        state: PuzzleView dict.

    Returns:
        Panel containing sidebar info.
    """
    parts: list[str] = []

    index = state.get("puzzle_index", 0)
    count = state.get("puzzle_count", 1)
    solved = state.get("solved_puzzles", [])
    parts.append(f"[bold]Puzzle {index + 1} of {count}[/bold]  ({len(solved)} solved)")
    parts.append(f"{state.get('theme', '')} • {state.get('difficulty', '')} "
                 f"• {state.get('rating', 0)}")
    if state.get("description"):
        parts.append(f"[italic]{state['description']}[/italic]")
    parts.append("")

    puzzle_state = state.get("state", "solving")
    parts.append(f"[bold]{_PUZZLE_LABELS.get(puzzle_state, puzzle_state)}[/bold]")
    parts.append(f"Progress: {state.get('cursor', 0)}/{state.get('solution_length', 0)}")

    done = state.get("solved_moves", [])
    total = state.get("solution_length", len(done))
    shown = []
    for i in range(total):
        if i < len(done):
            shown.append(f"{i + 1}. {done[i]}")
        elif i == len(done) and state.get("revealed_hint"):
            shown.append(f"{i + 1}. {state['revealed_hint']}")
        else:
            shown.append(f"{i + 1}. ?")
    parts.append("Solution: " + "  ".join(shown))

    content = "\n".join(parts)
    return Panel(content, title="Puzzle", border_style="green")


def _render_waiting() -> Panel:
    """Render a waiting message when no session is active.

    Returns:
        Panel with waiting message.
    """
    return Panel(
        Text("Waiting for game...\n\nStart a game or puzzle via the MCP server to see the board.",
             justify="center"),
        title="Pedro Chess",
        border_style="dim",
    )


def _watch_loop(console: Console, view_path: Path) -> None:
    """Watch the current view file and auto-update display at ~4Hz.

    Args:
        console: Rich Console instance.
        view_path: JSON file the MCP server syncs views to.
    """
    from watchdog.events import FileSystemEventHandler
    from watchdog.observers import Observer

    last_state: dict | None = None
    state_changed = True

    class _Handler(FileSystemEventHandler):
        def on_any_event(self, event):
            nonlocal state_changed
            if str(event.src_path).endswith(view_path.name) or str(
                getattr(event, "dest_path", "")
            ).endswith(view_path.name):
                state_changed = True

    observer = Observer()
    view_path.parent.mkdir(parents=True, exist_ok=True)
    observer.schedule(_Handler(), str(view_path.parent), recursive=False)
    observer.start()

    try:
        with Live(console=console, refresh_per_second=4) as live:
            while True:
                if state_changed:
                    state = _load_view(view_path)
                    if state is not None:
                        last_state = state
                        live.update(render_board(state))
                    elif last_state is None:
                        live.update(_render_waiting())
                    state_changed = False
                time.sleep(0.25)
    except KeyboardInterrupt:
        pass
    finally:
        observer.stop()
        observer.join()


def run(sample: bool = False, settings: Settings | None = None) -> None:
    """Render the sample board, or watch the synced view file."""
    console = Console()

    if sample:
        console.print(render_board(sample_view()))
        return

    settings = settings or Settings.from_env()
    _watch_loop(console, settings.current_view_path)


def main() -> None:
    """CLI entry point for tui.py."""
    parser = argparse.ArgumentParser(
        description="Pedro Chess Terminal UI"
    )
    parser.add_argument(
        "--sample", action="store_true",
        help="Render a sample game and exit (no watch loop)"
    )
    args = parser.parse_args()
    run(sample=args.sample)


if __name__ == "__main__":
    main()

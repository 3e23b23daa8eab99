"""Response schemas and minification for MCP tool responses.

Minifies MCP tool return values to reduce LLM context token waste.
data/current_view.json (TUI sync) is NOT affected, only MCP return values.

PGN string format for move_list uses standard chess notation
(1.e4 e5 2.Nf3 ...) which is natural for the LLM agent to read.
"""

from __future__ import annotations

import os


# ---------------------------------------------------------------------------
# Minification functions
# ---------------------------------------------------------------------------


def minify_game_view(view: dict) -> dict:
    """Minify a GameView dict for MCP response.

    Drops the ASCII board (the FEN carries the same information),
    compacts move_list to a PGN string and omits empty selections.

    Args:
        view: Full GameView dict (from dataclasses.asdict).

    Returns:
        Minified dict with reduced token footprint.
    """
    result = {}

    for key in (
        "game_id", "fen", "turn", "human_color", "status", "difficulty",
        "thinking", "is_game_over", "winner", "last_move", "last_move_san",
        "legal_moves_count",
    ):
        if key in view:
            result[key] = view[key]

    move_list = view.get("move_list", [])
    if isinstance(move_list, list):
        first_move_number, black_first = _start_numbering(view.get("start_fen", ""))
        result["move_list"] = _moves_to_pgn_string(
            move_list, first_move_number, black_first,
        )
    else:
        result["move_list"] = move_list

    if view.get("selected_square"):
        result["selected_square"] = view["selected_square"]
        result["legal_destinations"] = list(view.get("legal_destinations", []))

    # Removed fields: board_display, mode

    return result


def minify_puzzle_view(view: dict) -> dict:
    """Minify a PuzzleView dict for MCP response.

    Hides unsolved solution moves (only a revealed hint is shown) and
    replaces the solved id list with a count.

    Args:
        view: Full PuzzleView dict (from dataclasses.asdict).

    Returns:
        Minified dict.
    """
    result = {}

    for key in (
        "puzzle_id", "name", "description", "theme", "difficulty", "rating",
        "fen", "turn", "state", "cursor", "solution_length",
        "puzzle_index", "puzzle_count", "solved_moves",
    ):
        if key in view:
            result[key] = view[key]

    solved = view.get("solved_puzzles", [])
    result["solved_count"] = len(solved) if isinstance(solved, list) else 0
    result["is_solved"] = view.get("puzzle_id") in solved

    if view.get("revealed_hint"):
        result["hint"] = view["revealed_hint"]
    if view.get("selected_square"):
        result["selected_square"] = view["selected_square"]
        result["legal_destinations"] = list(view.get("legal_destinations", []))

    # Removed fields: board_display, last_move, mode

    return result


# ---------------------------------------------------------------------------
# Helper: move list to PGN string
# ---------------------------------------------------------------------------


def _moves_to_pgn_string(
    moves: list[str], first_move_number: int = 1, black_first: bool = False,
) -> str:
    """Convert a list of SAN moves to a PGN move string.

    E.g., ['e4', 'e5', 'Nf3', 'Nc6'] -> '1.e4 e5 2.Nf3 Nc6'
    and, with black_first, ['e5', 'Nf3'] -> '1...e5 2.Nf3'

    Args:
        moves: List of SAN move strings.
        first_move_number: Full-move number of the first move.
        black_first: True when black plays the first move.

    Returns:
        PGN-formatted move string.
    """
    if not moves:
        return ""

    parts = []
    offset = 1 if black_first else 0
    for i, move in enumerate(moves):
        ply = i + offset
        move_num = first_move_number + ply // 2
        if ply % 2 == 0:
            parts.append(f"{move_num}.{move}")
        elif i == 0:
            parts.append(f"{move_num}...{move}")
        else:
            parts.append(move)

    return " ".join(parts)


def _start_numbering(start_fen: str) -> tuple[int, bool]:
    """Read the full-move number and side to move from a starting FEN."""
    fields = start_fen.split()
    black_first = len(fields) > 1 and fields[1] == "b"
    try:
        first_move_number = max(int(fields[5]), 1)
    except (IndexError, ValueError):
        first_move_number = 1
    return first_move_number, black_first


# ---------------------------------------------------------------------------
# Validation schemas (dict-based)
# ---------------------------------------------------------------------------

GAME_VIEW_SCHEMA = {
    "game_id": str,
    "fen": str,
    "turn": str,
    "human_color": str,
    "status": str,
    "difficulty": str,
    "thinking": bool,
    "is_game_over": bool,
    "winner": (str, type(None)),
    "last_move": (str, type(None)),
    "last_move_san": (str, type(None)),
    "legal_moves_count": int,
    "move_list": str,
}

PUZZLE_VIEW_SCHEMA = {
    "puzzle_id": str,
    "name": str,
    "fen": str,
    "turn": str,
    "state": str,
    "cursor": int,
    "solution_length": int,
    "puzzle_index": int,
    "puzzle_count": int,
    "solved_moves": list,
    "solved_count": int,
    "is_solved": bool,
}

ERROR_SCHEMA = {
    "error": str,
}


def validate_response(response: dict, schema: dict) -> list[str]:
    """Validate a response dict against a schema.

    Only runs when PEDRO_VALIDATE=1 env var is set.

    Args:
        response: Response dict to validate.
        schema: Dict mapping key names to expected types (or tuple of types).

    Returns:
        List of validation error strings (empty = valid).
    """
    if os.environ.get("PEDRO_VALIDATE") != "1":
        return []

    errors = []

    if not isinstance(response, dict):
        errors.append(f"Response is not a dict: {type(response).__name__}")
        return errors

    for key, expected_types in schema.items():
        if key not in response:
            errors.append(f"Missing key: {key}")
            continue

        value = response[key]
        if isinstance(expected_types, tuple):
            if not isinstance(value, expected_types):
                type_names = ", ".join(t.__name__ for t in expected_types)
                errors.append(
                    f"Key '{key}': expected ({type_names}), "
                    f"got {type(value).__name__}"
                )
        else:
            if not isinstance(value, expected_types):
                errors.append(
                    f"Key '{key}': expected {expected_types.__name__}, "
                    f"got {type(value).__name__}"
                )

    return errors

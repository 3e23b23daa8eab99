"""Pytest tests for puzzle catalog loading and validation."""

from __future__ import annotations

import json

import pytest

from pedro.errors import PuzzleFormatError
from pedro.models import Difficulty
from pedro.puzzles import Puzzle, load_puzzles, validate_catalog, validate_puzzle

_BACK_RANK = {
    "id": "br",
    "name": "Back Rank",
    "fen": "6k1/5ppp/8/8/8/8/8/4R2K w - - 0 1",
    "solution_san": ["Re8#"],
    "solution_moves": ["e1e8"],
}


def _puzzle(**overrides) -> Puzzle:
    return Puzzle.from_dict({**_BACK_RANK, **overrides})


class TestBuiltinCatalog:

    def test_loads(self):
        puzzles = load_puzzles()
        assert len(puzzles) == 5
        assert [p.id for p in puzzles] == ["1", "2", "3", "4", "5"]
        assert puzzles[0].name == "Back Rank Mate"
        assert puzzles[2].difficulty is Difficulty.INTERMEDIATE

    def test_all_valid(self):
        puzzles = load_puzzles()
        passed, errors = validate_catalog(puzzles)
        assert errors == []
        assert passed == len(puzzles)


class TestFromDict:

    def test_defaults(self):
        puzzle = Puzzle.from_dict({k: _BACK_RANK[k] for k in ("id", "name", "fen", "solution_san")})
        assert puzzle.solution == ("Re8#",)
        assert puzzle.difficulty is Difficulty.BEGINNER
        assert puzzle.solution_moves == ()
        assert puzzle.rating == 0

    def test_missing_fields(self):
        with pytest.raises(PuzzleFormatError, match="solution_san"):
            Puzzle.from_dict({"id": "x", "name": "x", "fen": "x"})

    def test_empty_solution(self):
        with pytest.raises(PuzzleFormatError):
            _puzzle(solution_san=[])

    def test_bad_difficulty(self):
        with pytest.raises(PuzzleFormatError):
            _puzzle(difficulty="impossible")

    def test_not_an_object(self):
        with pytest.raises(PuzzleFormatError):
            Puzzle.from_dict(["Re8#"])


class TestLoadPuzzles:

    def test_custom_file(self, tmp_path):
        path = tmp_path / "puzzles.json"
        path.write_text(json.dumps([_BACK_RANK]), encoding="utf-8")
        puzzles = load_puzzles(path)
        assert [p.id for p in puzzles] == ["br"]

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "puzzles.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PuzzleFormatError):
            load_puzzles(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(PuzzleFormatError):
            load_puzzles(tmp_path / "nope.json")

    def test_not_an_array(self, tmp_path):
        path = tmp_path / "puzzles.json"
        path.write_text(json.dumps(_BACK_RANK), encoding="utf-8")
        with pytest.raises(PuzzleFormatError, match="array"):
            load_puzzles(path)


class TestValidatePuzzle:

    def test_valid(self):
        assert validate_puzzle(_puzzle()) == []

    def test_invalid_fen(self):
        errors = validate_puzzle(_puzzle(fen="garbage"))
        assert len(errors) == 1
        assert "invalid FEN" in errors[0]

    def test_illegal_position(self):
        errors = validate_puzzle(_puzzle(fen="8/8/8/8/8/8/8/8 w - - 0 1"))
        assert "illegal position" in errors[0]

    def test_illegal_move(self):
        errors = validate_puzzle(_puzzle(solution_san=["Re9"], solution_moves=[]))
        assert any("illegal move 'Re9' at step 0" in e for e in errors)

    def test_non_canonical_san(self):
        errors = validate_puzzle(_puzzle(solution_san=["Re8"]))
        assert any("canonical SAN is 'Re8#'" in e for e in errors)

    def test_uci_mismatch(self):
        errors = validate_puzzle(_puzzle(solution_moves=["e1e7"]))
        assert any("does not match" in e for e in errors)

    def test_uci_count_mismatch(self):
        errors = validate_puzzle(_puzzle(solution_moves=["e1e8", "g8h8"]))
        assert any("2 UCI moves for 1 SAN moves" in e for e in errors)

    def test_duplicate_ids(self):
        passed, errors = validate_catalog([_puzzle(), _puzzle()])
        assert passed == 1
        assert errors == ["puzzle br: duplicate id"]

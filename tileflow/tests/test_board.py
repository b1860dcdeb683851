"""
Tests for grid primitives and snapshot validation.

Tests:
- Travel-order line walks
- Direction parsing
- Snapshot acceptance and rejection
"""

import pytest

from ..board import (
    Direction,
    GameSnapshot,
    SnapshotError,
    empty_board,
    format_board,
    is_tile_value,
    occupied_cells,
    parse_snapshot,
    travel_lines,
)
from .conftest import board_of


def payload(board=None, **overrides):
    data = {
        "board": board or [[0, 0, 0, 0] for _ in range(4)],
        "score": 0,
        "won": False,
        "gameOver": False,
    }
    data.update(overrides)
    return data


class TestTravelLines:
    """Lines are walked starting at the compaction edge."""

    def test_left_walks_rows_from_first_column(self):
        assert travel_lines(Direction.LEFT)[0] == [(0, 0), (0, 1), (0, 2), (0, 3)]

    def test_right_walks_rows_from_last_column(self):
        assert travel_lines(Direction.RIGHT)[2] == [(2, 3), (2, 2), (2, 1), (2, 0)]

    def test_up_walks_columns_from_top(self):
        assert travel_lines(Direction.UP)[1] == [(0, 1), (1, 1), (2, 1), (3, 1)]

    def test_down_walks_columns_from_bottom(self):
        assert travel_lines(Direction.DOWN)[0] == [(3, 0), (2, 0), (1, 0), (0, 0)]

    @pytest.mark.parametrize("direction", list(Direction))
    def test_lines_cover_every_cell_once(self, direction):
        cells = [cell for line in travel_lines(direction) for cell in line]
        assert len(cells) == 16
        assert len(set(cells)) == 16


class TestDirection:
    def test_parse_is_case_insensitive(self):
        assert Direction.parse(" LEFT ") is Direction.LEFT

    def test_parse_passes_directions_through(self):
        assert Direction.parse(Direction.UP) is Direction.UP

    def test_parse_rejects_unknown(self):
        with pytest.raises(ValueError, match="sideways"):
            Direction.parse("sideways")


class TestGridHelpers:
    def test_tile_values(self):
        assert all(is_tile_value(v) for v in (2, 4, 8, 2048, 65536))
        assert not any(is_tile_value(v) for v in (0, 1, 3, 6, -2))

    def test_occupied_cells_row_major(self):
        board = board_of([0, 2, 0, 0], [4, 0, 0, 8])
        assert occupied_cells(board) == [(0, 1), (1, 0), (1, 3)]

    def test_empty_board_has_no_tiles(self):
        assert occupied_cells(empty_board()) == []

    def test_format_board(self):
        text = format_board(board_of([2, 0, 0, 0]))
        assert text.splitlines()[0] == "2 . . ."
        assert len(text.splitlines()) == 4


class TestSnapshotValidation:
    """Snapshots are rejected before they reach the engine."""

    def test_accepts_service_payload(self):
        snapshot = parse_snapshot(payload(
            board=[[2, 0, 0, 0], [0, 0, 0, 0], [0, 0, 4, 0], [0, 0, 0, 2048]],
            score=16,
            won=True,
            gameOver=True,
        ))

        assert snapshot.score == 16
        assert snapshot.won and snapshot.game_over
        assert snapshot.grid[3][3] == 2048
        assert snapshot.tile_count == 3

    def test_round_trips_service_field_names(self):
        snapshot = parse_snapshot(payload())
        assert "gameOver" in snapshot.to_wire()

    def test_accepts_field_names_in_code(self):
        snapshot = GameSnapshot(
            board=[[0] * 4 for _ in range(4)], score=0, won=False, game_over=True
        )
        assert snapshot.game_over

    def test_rejects_missing_field(self):
        data = payload()
        del data["won"]
        with pytest.raises(SnapshotError):
            parse_snapshot(data)

    def test_rejects_wrong_row_count(self):
        with pytest.raises(SnapshotError) as exc:
            parse_snapshot(payload(board=[[0, 0, 0, 0]] * 3))
        assert exc.value.details[0]["loc"] == ["board"]

    def test_rejects_wrong_row_length(self):
        rows = [[0, 0, 0, 0]] * 3 + [[0, 0, 0, 0, 0]]
        with pytest.raises(SnapshotError):
            parse_snapshot(payload(board=rows))

    @pytest.mark.parametrize("value", [1, 3, 6, -2])
    def test_rejects_non_power_of_two(self, value):
        rows = [[value, 0, 0, 0]] + [[0, 0, 0, 0]] * 3
        with pytest.raises(SnapshotError):
            parse_snapshot(payload(board=rows))

    def test_rejects_negative_score(self):
        with pytest.raises(SnapshotError):
            parse_snapshot(payload(score=-4))

    def test_rejects_stringly_typed_score(self):
        with pytest.raises(SnapshotError):
            parse_snapshot(payload(score="12"))

    def test_rejects_non_object(self):
        with pytest.raises(SnapshotError):
            parse_snapshot([[0, 0, 0, 0]])

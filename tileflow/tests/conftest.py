"""
Pytest fixtures for Tileflow tests.
"""

import pytest

from ..animation import RecordingSurface
from ..board import GameSnapshot, freeze_board
from ..config import ClientConfig
from ..session import GameClient
from ..transport import ScriptedSnapshotSource


def board_of(*rows):
    """Board from up to four rows; short or missing rows are zero-padded."""
    rows = [list(r) + [0] * (4 - len(r)) for r in rows]
    rows += [[0, 0, 0, 0]] * (4 - len(rows))
    return freeze_board(rows)


def snapshot_of(rows, score=0, won=False, game_over=False) -> GameSnapshot:
    return GameSnapshot(
        board=[list(r) for r in board_of(*rows)],
        score=score,
        won=won,
        game_over=game_over,
    )


@pytest.fixture
def instant_config() -> ClientConfig:
    """Config with zero-length animation phases."""
    return ClientConfig.instant()


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


@pytest.fixture
def opening_snapshot() -> GameSnapshot:
    """New game with two tiles side by side in the top row."""
    return snapshot_of([[2, 2, 0, 0]])


@pytest.fixture
def merged_snapshot() -> GameSnapshot:
    """opening_snapshot after LEFT: merged 4 plus a spawned 2."""
    return snapshot_of([[4, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 2, 0]], score=4)


@pytest.fixture
def source(opening_snapshot, merged_snapshot) -> ScriptedSnapshotSource:
    return ScriptedSnapshotSource([opening_snapshot, merged_snapshot])


@pytest.fixture
def game_client(source, surface, instant_config) -> GameClient:
    return GameClient(source, surface, instant_config)

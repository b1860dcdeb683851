"""
Tests for render surfaces.
"""

from ..animation import RecordingSurface, status_message
from .conftest import snapshot_of


class TestRecordingSurface:
    def test_keeps_full_history_by_default(self):
        surface = RecordingSurface()
        for _ in range(100):
            surface.clear()
        assert len(surface.events) == 100

    def test_bounded_history_keeps_newest(self):
        surface = RecordingSurface(max_events=3)

        for n in range(5):
            surface.notify(f"message {n}", 10)

        assert [e["payload"]["message"] for e in surface.events] == [
            "message 2",
            "message 3",
            "message 4",
        ]

    def test_listeners_see_events_beyond_the_bound(self):
        surface = RecordingSurface(max_events=0)
        seen = []
        surface.subscribe(seen.append)

        surface.clear()
        surface.notify("boom", 10)

        assert not surface.events
        assert [e["type"] for e in seen] == ["clear", "notify"]

    def test_unsubscribe(self):
        surface = RecordingSurface()
        seen = []
        surface.subscribe(seen.append)
        surface.unsubscribe(seen.append)

        surface.clear()

        assert seen == []


class TestStatusMessage:
    def test_win_shown_over_game_over(self):
        snapshot = snapshot_of([[2048]], won=True, game_over=True)
        assert status_message(snapshot) == "You reached 2048!"

    def test_game_over(self):
        assert status_message(snapshot_of([[2]], game_over=True)).startswith("Game over")

    def test_in_progress(self):
        assert status_message(snapshot_of([[2]])) is None

"""
Tests for GameClient: the request / reconcile / animate loop.

Tests:
- New game and move round trips
- Dropping input while busy
- Transport failures leave state untouched
- A new game overrides in-flight work
"""

import asyncio

from ..board import Direction
from ..config import ClientConfig
from ..session import GameClient, SessionManager
from ..transport import ScriptedSnapshotSource, TransportError
from .conftest import snapshot_of


class GatedSource(ScriptedSnapshotSource):
    """Scripted source whose move replies wait for a gate to open."""

    def __init__(self, script):
        super().__init__(script)
        self.gate = None

    async def move(self, direction):
        self.calls.append(("move", direction.value))
        await self.gate.wait()
        return await self._next()


class TestNewGame:
    def test_first_snapshot_is_all_spawns(self, game_client, surface):
        result = asyncio.run(game_client.new_game())

        assert result.success and result.committed
        assert [op.op_type.value for op in result.ops] == ["spawn", "spawn"]
        assert len(game_client.tracker.table) == 2
        assert surface.event_types() == ["clear", "slide", "settle", "status"]

    def test_resume_draws_current_state(self, merged_snapshot, surface, instant_config):
        source = ScriptedSnapshotSource([merged_snapshot])
        client = GameClient(source, surface, instant_config)

        result = asyncio.run(client.resume())

        assert result.success
        assert source.calls == [("state", None)]
        assert sorted(op.value for op in result.ops) == [2, 4]
        assert client.snapshot is merged_snapshot

    def test_status_reports_a_win(self, surface, instant_config):
        won = snapshot_of([[2048, 0, 0, 0]], score=20000, won=True)
        client = GameClient(ScriptedSnapshotSource([won]), surface, instant_config)

        asyncio.run(client.new_game())

        status = surface.events[-1]["payload"]
        assert status["won"]
        assert status["message"] == "You reached 2048!"


class TestMove:
    def test_merge_round_trip(self, game_client, merged_snapshot):
        async def run():
            await game_client.new_game()
            opening_ids = game_client.tracker.table.tile_ids
            return opening_ids, await game_client.move("left")

        opening_ids, result = asyncio.run(run())

        assert result.success
        merge, spawn = result.ops
        assert merge.new_value == 4 and merge.target == (0, 0)
        assert {merge.survivor_id, merge.consumed_id} == opening_ids
        assert spawn.target == (3, 2)
        assert game_client.snapshot is merged_snapshot
        assert game_client.board[0][0] == 4
        assert not game_client.is_busy()

    def test_move_before_any_game(self, game_client, source):
        result = asyncio.run(game_client.move(Direction.UP))

        assert not result.success
        assert result.errors == ["No game in progress"]
        assert source.calls == []

    def test_input_while_busy_is_dropped(self, game_client, source):
        async def run():
            await game_client.new_game()
            first = asyncio.ensure_future(game_client.move("left"))
            await asyncio.sleep(0)
            second = await game_client.move("right")
            return await first, second

        first, second = asyncio.run(run())

        assert first.success
        assert second.dropped and not second.success
        assert source.calls == [("new_game", None), ("move", "left")]

    def test_score_mismatch_is_logged(self, opening_snapshot, surface, instant_config, caplog):
        inflated = snapshot_of([[4, 0, 0, 0], [], [], [0, 0, 2, 0]], score=12)
        source = ScriptedSnapshotSource([opening_snapshot, inflated])
        client = GameClient(source, surface, instant_config)

        async def run():
            await client.new_game()
            return await client.move("left")

        with caplog.at_level("WARNING", logger="tileflow.session.client"):
            result = asyncio.run(run())

        assert result.success
        assert "merges account for 4" in caplog.text


class TestTransportFailure:
    def test_failed_move_notifies_and_changes_nothing(self, opening_snapshot, surface, instant_config):
        source = ScriptedSnapshotSource([opening_snapshot, TransportError("boom", 503)])
        client = GameClient(source, surface, instant_config)

        async def run():
            await client.new_game()
            table = client.tracker.table
            return table, await client.move("left")

        table, result = asyncio.run(run())

        assert result.transport_failed and not result.success
        assert client.snapshot is opening_snapshot
        assert client.tracker.table is table
        assert not client.is_busy()
        notify = surface.events[-1]
        assert notify["type"] == "notify"
        assert notify["payload"] == {
            "message": "Failed to make that move. Please try again.",
            "dismiss_after_ms": 3000,
        }

    def test_malformed_snapshot_is_a_transport_failure(self, opening_snapshot, surface, instant_config):
        malformed = {"board": [[0, 0, 0, 0]] * 3, "score": 0, "won": False, "gameOver": False}
        source = ScriptedSnapshotSource([opening_snapshot, malformed])
        client = GameClient(source, surface, instant_config)

        async def run():
            await client.new_game()
            return await client.move("down")

        result = asyncio.run(run())

        assert result.transport_failed
        assert client.snapshot is opening_snapshot

    def test_failed_new_game_keeps_the_current_game(self, opening_snapshot, surface, instant_config):
        source = ScriptedSnapshotSource([opening_snapshot, TransportError("down")])
        client = GameClient(source, surface, instant_config)

        async def run():
            await client.new_game()
            return await client.new_game()

        result = asyncio.run(run())

        assert result.transport_failed
        assert result.errors == ["Failed to start a new game. Please try again."]
        assert client.snapshot is opening_snapshot
        assert len(client.tracker.table) == 2
        assert client.scheduler.epoch == 1


class TestNewGameOverride:
    def test_new_game_abandons_running_animation(self, opening_snapshot, merged_snapshot, surface):
        fresh = snapshot_of([[0, 0, 0, 0], [0, 8, 0, 0], [0, 0, 0, 2]])
        source = ScriptedSnapshotSource([opening_snapshot, merged_snapshot, fresh])
        client = GameClient(source, surface, ClientConfig(slide_ms=20, settle_ms=20))

        async def run():
            await client.new_game()
            moving = asyncio.ensure_future(client.move("left"))
            await asyncio.sleep(0.005)
            restarted = await client.new_game()
            return await moving, restarted

        moved, restarted = asyncio.run(run())

        assert not moved.committed
        assert moved.errors == ["Transition abandoned by a new game"]
        assert restarted.committed
        assert client.snapshot is fresh
        assert client.tracker.table.describes(fresh.grid)
        assert not client.is_busy()

    def test_reply_from_previous_game_is_discarded(self, opening_snapshot, merged_snapshot, surface, instant_config):
        fresh = snapshot_of([[0, 0, 0, 2], [], [0, 4]])
        source = GatedSource([opening_snapshot, fresh, merged_snapshot])
        client = GameClient(source, surface, instant_config)

        async def run():
            source.gate = asyncio.Event()
            await client.new_game()
            moving = asyncio.ensure_future(client.move("left"))
            await asyncio.sleep(0)
            await client.new_game()
            source.gate.set()
            return await moving

        moved = asyncio.run(run())

        assert not moved.success
        assert moved.errors == ["Game was restarted"]
        assert client.snapshot is fresh
        assert client.tracker.table.describes(fresh.grid)


class ClosableSource(ScriptedSnapshotSource):
    def __init__(self, script=()):
        super().__init__(script)
        self.closed = False

    def close(self):
        self.closed = True


class TestSessionManager:
    def test_sessions_are_independent(self, opening_snapshot):
        manager = SessionManager(ClientConfig.instant(), lambda: ScriptedSnapshotSource([opening_snapshot]))

        first = manager.create_session()
        second = manager.create_session()

        assert first.session_id != second.session_id
        assert first.client.tracker is not second.client.tracker
        assert manager.list_active_sessions() == [first.session_id, second.session_id]

    def test_end_session_closes_source_and_clears_surface(self):
        manager = SessionManager(ClientConfig.instant(), ClosableSource)
        session = manager.create_session()

        assert manager.end_session(session.session_id)

        assert session.client.source.closed
        assert session.surface.event_types() == ["clear"]
        assert manager.get_session(session.session_id) is None
        assert not manager.end_session(session.session_id)

    def test_cleanup_ends_only_idle_sessions(self):
        manager = SessionManager(ClientConfig(session_idle_s=60), ClosableSource)
        idle = manager.create_session()
        busy = manager.create_session()
        idle.last_active -= 61

        assert manager.cleanup_stale_sessions() == [idle.session_id]
        assert manager.list_active_sessions() == [busy.session_id]
        assert idle.client.source.closed

    def test_cleanup_limit_can_be_overridden(self):
        manager = SessionManager(ClientConfig.instant(), ClosableSource)
        session = manager.create_session()
        session.last_active -= 10

        assert manager.cleanup_stale_sessions(max_idle_seconds=5) == [session.session_id]

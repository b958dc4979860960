import asyncio
import datetime as dt
import unittest

from dayslot.model import Interval, ScheduledItem
from dayslot.reschedule import CommitStatus, DragError, DragState, InteractiveRescheduler
from dayslot.store import InMemoryRepository, ItemBoard
from dayslot.timeline import TimelineMapper

DAY = dt.date(2025, 3, 10)


class FailingRepository(InMemoryRepository):
    async def update(self, item_id, interval):
        raise ConnectionError("backend unavailable")


class GatedRepository(InMemoryRepository):
    """update() waits until the test releases it; can be told to fail."""

    def __init__(self, items=()):
        super().__init__(items)
        self.gates = []
        self.calls = []
        self.fail_calls = set()

    async def update(self, item_id, interval):
        idx = len(self.gates)
        gate = asyncio.Event()
        self.gates.append(gate)
        self.calls.append((item_id, interval))
        await gate.wait()
        if idx in self.fail_calls:
            raise ConnectionError("late failure")
        return await super().update(item_id, interval)


def _setup(repo_cls=InMemoryRepository):
    it = ScheduledItem("a", DAY, Interval(600, 660), title="Write report")
    board = ItemBoard([it])
    repo = repo_cls([it])
    # 60 units per hour: one unit is one minute.
    r = InteractiveRescheduler(board, repo, TimelineMapper(units_per_hour=60.0))
    return board, repo, r


class TestInteractiveReschedulerContract(unittest.IsolatedAsyncioTestCase):
    async def test_drop_is_snapped_and_committed(self) -> None:
        board, repo, r = _setup()
        r.drag_start("a")
        self.assertIs(r.state("a"), DragState.DRAGGING)

        preview = r.drag_move("a", 33.0)
        self.assertEqual(preview, Interval(633, 693))
        self.assertEqual(board.require("a").interval, Interval(600, 660))

        out = await r.drag_end("a")
        self.assertEqual(out.status, CommitStatus.CONFIRMED)
        self.assertTrue(out.ok)
        self.assertEqual(out.interval, Interval(630, 690))
        self.assertEqual(board.require("a").interval, Interval(630, 690))
        self.assertEqual((await repo.list(DAY))[0].interval, Interval(630, 690))
        self.assertIs(r.state("a"), DragState.IDLE)

    async def test_move_is_clamped_to_the_day(self) -> None:
        _board, _repo, r = _setup()
        r.drag_start("a")
        self.assertEqual(r.drag_move("a", -5000.0), Interval(0, 60))
        self.assertEqual(r.drag_move("a", 5000.0), Interval(1380, 1440))
        out = await r.drag_end("a")
        self.assertEqual(out.interval, Interval(1380, 1440))

    async def test_second_drag_start_is_rejected(self) -> None:
        _board, _repo, r = _setup()
        r.drag_start("a")
        with self.assertRaises(DragError):
            r.drag_start("a")

    async def test_move_without_drag_is_rejected(self) -> None:
        _board, _repo, r = _setup()
        with self.assertRaises(DragError):
            r.drag_move("a", 10.0)
        with self.assertRaises(KeyError):
            r.drag_start("missing")

    async def test_cancel_reverts_without_network(self) -> None:
        board, repo, r = _setup(GatedRepository)
        r.drag_start("a")
        r.drag_move("a", 120.0)
        self.assertEqual(r.cancel("a"), Interval(600, 660))
        self.assertEqual(board.require("a").interval, Interval(600, 660))
        self.assertEqual(repo.calls, [])
        self.assertIs(r.state("a"), DragState.IDLE)

    async def test_failed_commit_rolls_back(self) -> None:
        board, _repo, r = _setup(FailingRepository)
        events = []
        board.subscribe(lambda ev, it: events.append((ev, it.interval)))

        r.drag_start("a")
        r.drag_move("a", 60.0)
        out = await r.drag_end("a")

        self.assertEqual(out.status, CommitStatus.ROLLED_BACK)
        self.assertFalse(out.ok)
        self.assertIsInstance(out.error, ConnectionError)
        self.assertEqual(board.require("a").interval, Interval(600, 660))
        self.assertEqual(events, [("moved", Interval(660, 720)), ("moved", Interval(600, 660))])
        self.assertIs(r.state("a"), DragState.IDLE)

    async def test_optimistic_update_is_visible_while_committing(self) -> None:
        board, repo, r = _setup(GatedRepository)
        r.drag_start("a")
        r.drag_move("a", 30.0)
        task = asyncio.create_task(r.drag_end("a"))
        await asyncio.sleep(0)

        self.assertIs(r.state("a"), DragState.COMMITTING)
        self.assertEqual(board.require("a").interval, Interval(630, 690))

        repo.gates[0].set()
        out = await task
        self.assertEqual(out.status, CommitStatus.CONFIRMED)
        self.assertIs(r.state("a"), DragState.IDLE)

    async def test_drop_where_it_started_sends_nothing(self) -> None:
        _board, repo, r = _setup(GatedRepository)
        r.drag_start("a")
        r.drag_move("a", 3.0)  # snaps back to 600
        out = await r.drag_end("a")
        self.assertEqual(out.status, CommitStatus.UNCHANGED)
        self.assertEqual(repo.calls, [])

    async def test_drop_past_end_of_day_is_reverted(self) -> None:
        it = ScheduledItem("long", DAY, Interval(1000, 1435))
        board = ItemBoard([it])
        repo = GatedRepository([it])
        r = InteractiveRescheduler(board, repo, TimelineMapper(units_per_hour=60.0))
        r.drag_start("long")
        r.drag_move("long", 6.0)  # clamped to 1005; snaps to 1010, which runs past 24:00
        out = await r.drag_end("long")
        self.assertEqual(out.status, CommitStatus.REVERTED)
        self.assertEqual(board.require("long").interval, Interval(1000, 1435))
        self.assertEqual(repo.calls, [])
        self.assertIs(r.state("long"), DragState.IDLE)

    async def test_late_response_of_superseded_drag_is_ignored(self) -> None:
        board, repo, r = _setup(GatedRepository)

        r.drag_start("a")
        r.drag_move("a", 60.0)
        first = asyncio.create_task(r.drag_end("a"))
        await asyncio.sleep(0)
        self.assertEqual(board.require("a").interval, Interval(660, 720))

        # New gesture while the first commit is still in flight.
        r.drag_start("a")
        r.drag_move("a", 120.0)
        second = asyncio.create_task(r.drag_end("a"))
        await asyncio.sleep(0)
        self.assertEqual(board.require("a").interval, Interval(780, 840))

        repo.gates[1].set()
        out2 = await second
        self.assertEqual(out2.status, CommitStatus.CONFIRMED)

        # The first request now fails late; it must not roll back the newer state.
        repo.fail_calls.add(0)
        repo.gates[0].set()
        out1 = await first
        self.assertEqual(out1.status, CommitStatus.STALE)
        self.assertLess(out1.version, out2.version)
        self.assertEqual(r.latest_version("a"), out2.version)
        self.assertEqual(board.require("a").interval, Interval(780, 840))
        self.assertIs(r.state("a"), DragState.IDLE)

    async def _commit_then_hold(self, board, repo, r):
        r.drag_start("a")
        r.drag_move("a", 60.0)
        first = asyncio.create_task(r.drag_end("a"))
        await asyncio.sleep(0)
        self.assertEqual(board.require("a").interval, Interval(660, 720))
        return first

    async def _assert_first_failure_rolls_back(self, board, repo, r, first) -> None:
        repo.fail_calls.add(0)
        repo.gates[0].set()
        out1 = await first
        self.assertEqual(out1.status, CommitStatus.ROLLED_BACK)
        self.assertEqual(board.require("a").interval, Interval(600, 660))
        self.assertEqual(board.require("a").interval, (await repo.list(DAY))[0].interval)
        self.assertEqual(len(repo.calls), 1)
        self.assertIs(r.state("a"), DragState.IDLE)

    async def test_cancelled_gesture_keeps_rollback_of_older_commit(self) -> None:
        board, repo, r = _setup(GatedRepository)
        first = await self._commit_then_hold(board, repo, r)
        v1 = r.latest_version("a")

        r.drag_start("a")
        r.drag_move("a", 120.0)
        r.cancel("a")
        self.assertEqual(r.latest_version("a"), v1)
        self.assertIs(r.state("a"), DragState.COMMITTING)

        await self._assert_first_failure_rolls_back(board, repo, r, first)

    async def test_gesture_dropped_in_place_keeps_rollback_of_older_commit(self) -> None:
        board, repo, r = _setup(GatedRepository)
        first = await self._commit_then_hold(board, repo, r)

        r.drag_start("a")
        r.drag_move("a", 2.0)  # snaps back onto 660
        out2 = await r.drag_end("a")
        self.assertEqual(out2.status, CommitStatus.UNCHANGED)

        await self._assert_first_failure_rolls_back(board, repo, r, first)

    async def test_gesture_ended_without_move_keeps_rollback_of_older_commit(self) -> None:
        board, repo, r = _setup(GatedRepository)
        first = await self._commit_then_hold(board, repo, r)

        r.drag_start("a")
        out2 = await r.drag_end("a")  # no move at all
        self.assertEqual(out2.status, CommitStatus.UNCHANGED)

        await self._assert_first_failure_rolls_back(board, repo, r, first)

    async def test_older_failure_rebases_gesture_in_progress(self) -> None:
        board, repo, r = _setup(GatedRepository)
        first = await self._commit_then_hold(board, repo, r)

        sess = r.drag_start("a")
        self.assertEqual(sess.original, Interval(660, 720))
        repo.fail_calls.add(0)
        repo.gates[0].set()
        out1 = await first
        self.assertEqual(out1.status, CommitStatus.ROLLED_BACK)
        self.assertIs(r.state("a"), DragState.DRAGGING)
        self.assertEqual(r.session("a").original, Interval(600, 660))

        r.drag_move("a", 30.0)
        second = asyncio.create_task(r.drag_end("a"))
        await asyncio.sleep(0)
        repo.gates[1].set()
        out2 = await second
        self.assertEqual(out2.interval, Interval(630, 690))
        self.assertEqual((await repo.list(DAY))[0].interval, Interval(630, 690))

    async def test_cancelled_commit_task_rolls_back(self) -> None:
        board, repo, r = _setup(GatedRepository)
        first = await self._commit_then_hold(board, repo, r)

        first.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await first
        self.assertEqual(board.require("a").interval, Interval(600, 660))
        self.assertIs(r.state("a"), DragState.IDLE)
        self.assertIsNone(r.session("a"))


if __name__ == "__main__":
    unittest.main(verbosity=2)

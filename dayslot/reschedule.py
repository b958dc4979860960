# dayslot/reschedule.py
"""Drag-to-reschedule state machine with optimistic commit and rollback.

Per item:  IDLE -> DRAGGING -> (COMMITTING | CANCELLED) -> IDLE

Gesture input is a pointer-delta stream: drag_start, drag_move(delta),
drag_end, cancel. Deltas are in timeline position units (see TimelineMapper).

Every gesture gets a monotonically increasing version; the item's latest
version moves only when a gesture actually sends a commit. A repository
response whose version is no longer the latest belongs to a superseded commit
and is discarded: it never overwrites newer local state. A gesture that ends
without sending anything leaves an older in-flight commit in charge, so its
failure still rolls the item back.
"""

from __future__ import annotations

import asyncio
import enum
import itertools
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from .interval import DAY_MINUTES
from .model import DragSession, Interval
from .store import ItemBoard, ItemRepository
from .timeline import DEFAULT_SNAP_MIN, TimelineMapper

logger = logging.getLogger(__name__)


class DragState(str, enum.Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTING = "committing"
    CANCELLED = "cancelled"


class DragError(ValueError):
    """Gesture misuse (e.g. a second drag-start on an item already being dragged)."""


class CommitStatus(str, enum.Enum):
    CONFIRMED = "confirmed"      # repository accepted the new interval
    ROLLED_BACK = "rolled_back"  # repository failed; local item restored
    REVERTED = "reverted"        # snapped result left the day; nothing sent
    UNCHANGED = "unchanged"      # dropped where it started; nothing sent
    STALE = "stale"              # response of a superseded gesture; ignored


@dataclass(frozen=True)
class CommitOutcome:
    item_id: str
    status: CommitStatus
    interval: Interval
    version: int
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status in (CommitStatus.CONFIRMED, CommitStatus.UNCHANGED)


class InteractiveRescheduler:
    def __init__(
        self,
        board: ItemBoard,
        repository: ItemRepository,
        mapper: Optional[TimelineMapper] = None,
        *,
        snap_min: int = DEFAULT_SNAP_MIN,
    ) -> None:
        self.board = board
        self.repository = repository
        self.mapper = mapper or TimelineMapper()
        self.snap_min = int(snap_min)
        self._states: Dict[str, DragState] = {}
        self._sessions: Dict[str, DragSession] = {}
        self._latest: Dict[str, int] = {}
        self._pending: Dict[str, int] = {}
        self._versions = itertools.count(1)

    def state(self, item_id: str) -> DragState:
        return self._states.get(item_id, DragState.IDLE)

    def session(self, item_id: str) -> Optional[DragSession]:
        return self._sessions.get(item_id)

    def latest_version(self, item_id: str) -> int:
        return self._latest.get(item_id, 0)

    def drag_start(self, item_id: str) -> DragSession:
        if self.state(item_id) is DragState.DRAGGING:
            raise DragError(f"item {item_id} is already being dragged")
        item = self.board.require(item_id)

        version = next(self._versions)
        sess = DragSession(item_id=item_id, original=item.interval, version=version)
        self._sessions[item_id] = sess
        self._states[item_id] = DragState.DRAGGING
        return sess

    def _dragging(self, item_id: str) -> DragSession:
        sess = self._sessions.get(item_id)
        if sess is None or self.state(item_id) is not DragState.DRAGGING:
            raise DragError(f"item {item_id} is not being dragged")
        return sess

    def drag_move(self, item_id: str, delta_position: float) -> Interval:
        """Unsnapped live preview for the current pointer offset.

        Touches neither the board nor the repository.
        """
        sess = self._dragging(item_id)
        dur = sess.original.duration_min
        raw = sess.original.start_min + self.mapper.to_minute(delta_position)
        start = max(0.0, min(float(DAY_MINUTES - dur), raw))
        sess.delta_min = start - sess.original.start_min
        # Preview keeps whole minutes; snapping happens on drop only.
        preview_start = int(start)
        sess.proposed = Interval(preview_start, preview_start + dur)
        return sess.proposed

    def cancel(self, item_id: str) -> Interval:
        sess = self._dragging(item_id)
        self._finish(item_id, DragState.CANCELLED)
        return sess.original

    def _finish(self, item_id: str, via: DragState) -> None:
        logger.debug("drag %s: %s -> idle", item_id, via.value)
        self._sessions.pop(item_id, None)
        # An older commit may still be awaiting its response.
        self._states[item_id] = DragState.COMMITTING if item_id in self._pending else DragState.IDLE

    def _settle(self, item_id: str, version: int) -> None:
        if self._pending.get(item_id) == version:
            del self._pending[item_id]
        if item_id not in self._sessions:
            self._states[item_id] = DragState.IDLE

    def _rollback(self, item_id: str, version: int, original: Interval) -> None:
        self.board.move(item_id, original)
        sess = self._sessions.get(item_id)
        if sess is not None:
            # A gesture started on the optimistic position; rebase it on the restored one.
            sess.original = original
            sess.proposed = None
            sess.delta_min = 0.0
        self._settle(item_id, version)

    async def drag_end(self, item_id: str) -> CommitOutcome:
        sess = self._dragging(item_id)
        original = sess.original
        version = sess.version

        if sess.proposed is None:
            self._finish(item_id, DragState.CANCELLED)
            return CommitOutcome(item_id, CommitStatus.UNCHANGED, original, version)

        snapped = self.mapper.snap(original.start_min + sess.delta_min, self.snap_min)
        target = original.shifted(snapped - original.start_min)
        if target.start_min < 0 or target.end_min > DAY_MINUTES:
            self._finish(item_id, DragState.CANCELLED)
            return CommitOutcome(item_id, CommitStatus.REVERTED, original, version)
        if target == original:
            self._finish(item_id, DragState.CANCELLED)
            return CommitOutcome(item_id, CommitStatus.UNCHANGED, original, version)

        self.board.move(item_id, target)
        self._sessions.pop(item_id, None)
        self._states[item_id] = DragState.COMMITTING
        self._latest[item_id] = version
        self._pending[item_id] = version

        try:
            await self.repository.update(item_id, target)
        except asyncio.CancelledError:
            if self._latest.get(item_id) == version:
                logger.warning("drag %s: commit v%d cancelled, rolling back to %s", item_id, version, original)
                self._rollback(item_id, version, original)
            raise
        except Exception as ex:
            if self._latest.get(item_id) != version:
                logger.warning("drag %s: discarding failed commit v%d (superseded): %s", item_id, version, ex)
                return CommitOutcome(item_id, CommitStatus.STALE, target, version, error=ex)
            logger.warning("drag %s: commit v%d failed, rolling back to %s: %s", item_id, version, original, ex)
            self._rollback(item_id, version, original)
            return CommitOutcome(item_id, CommitStatus.ROLLED_BACK, original, version, error=ex)

        if self._latest.get(item_id) != version:
            logger.info("drag %s: discarding late confirmation of v%d", item_id, version)
            return CommitOutcome(item_id, CommitStatus.STALE, target, version)

        self._settle(item_id, version)
        return CommitOutcome(item_id, CommitStatus.CONFIRMED, target, version)

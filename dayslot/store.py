# dayslot/store.py
"""Item storage boundary.

ItemRepository is the asynchronous persistence collaborator (create / update /
delete / list). ItemBoard is the local, synchronous view the UI renders from;
it notifies subscribers on every change. The engine never persists anything
itself: it mutates the board and calls the repository.
"""

from __future__ import annotations

import datetime as dt
import uuid as uuidlib
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional, Protocol

from .interval import validate_interval
from .model import Interval, ScheduledItem

Listener = Callable[[str, ScheduledItem], None]


class ItemNotFoundError(KeyError):
    pass


class ItemRepository(Protocol):
    async def list(self, date: dt.date) -> List[ScheduledItem]:
        """Items stored for `date`."""

    async def create(self, item: ScheduledItem) -> ScheduledItem:
        """Persist a new item; returns the stored item."""

    async def update(self, item_id: str, interval: Interval) -> ScheduledItem:
        """Move an item to `interval`; returns the stored item."""

    async def delete(self, item_id: str) -> None:
        """Remove an item."""


class InMemoryRepository:
    """Reference ItemRepository backed by a dict (tests, CLI, demos)."""

    def __init__(self, items: Iterable[ScheduledItem] = ()) -> None:
        self._items: Dict[str, ScheduledItem] = {it.id: it for it in items}

    async def list(self, date: dt.date) -> List[ScheduledItem]:
        return sorted(
            (it for it in self._items.values() if it.date == date),
            key=lambda it: (it.interval.start_min, it.id),
        )

    async def create(self, item: ScheduledItem) -> ScheduledItem:
        validate_interval(item.interval)
        if not item.id:
            item = replace(item, id=str(uuidlib.uuid4()))
        if item.id in self._items:
            raise ValueError(f"item already exists: {item.id}")
        self._items[item.id] = item
        return item

    async def update(self, item_id: str, interval: Interval) -> ScheduledItem:
        validate_interval(interval)
        cur = self._items.get(item_id)
        if cur is None:
            raise ItemNotFoundError(item_id)
        new = replace(cur, interval=interval)
        self._items[item_id] = new
        return new

    async def delete(self, item_id: str) -> None:
        if self._items.pop(item_id, None) is None:
            raise ItemNotFoundError(item_id)


class ItemBoard:
    """Local item state with subscriber notification.

    Events passed to listeners: "added", "moved", "removed".
    """

    def __init__(self, items: Iterable[ScheduledItem] = ()) -> None:
        self._items: Dict[str, ScheduledItem] = {}
        self._listeners: List[Listener] = []
        for it in items:
            self._items[it.id] = it

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, event: str, item: ScheduledItem) -> None:
        for listener in list(self._listeners):
            listener(event, item)

    def get(self, item_id: str) -> Optional[ScheduledItem]:
        return self._items.get(item_id)

    def require(self, item_id: str) -> ScheduledItem:
        it = self._items.get(item_id)
        if it is None:
            raise ItemNotFoundError(item_id)
        return it

    def items_on(self, date: dt.date) -> List[ScheduledItem]:
        return sorted(
            (it for it in self._items.values() if it.date == date),
            key=lambda it: (it.interval.start_min, it.id),
        )

    def add(self, item: ScheduledItem) -> ScheduledItem:
        validate_interval(item.interval)
        self._items[item.id] = item
        self._emit("added", item)
        return item

    def move(self, item_id: str, interval: Interval) -> ScheduledItem:
        cur = self.require(item_id)
        new = replace(cur, interval=interval)
        self._items[item_id] = new
        self._emit("moved", new)
        return new

    def remove(self, item_id: str) -> ScheduledItem:
        cur = self._items.pop(item_id, None)
        if cur is None:
            raise ItemNotFoundError(item_id)
        self._emit("removed", cur)
        return cur

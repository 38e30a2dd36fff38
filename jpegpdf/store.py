"""Ordered store of conversion items and their status state machine."""

from __future__ import annotations

import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple

from .exceptions import InvalidTransitionError, ItemBusyError, ItemNotFoundError
from .types import ImageSource, ItemSnapshot, ItemStatus
from .utils import PathLike, get_logger, resolve_path

LOGGER = get_logger("jpegpdf.store")

TRANSITIONS: Dict[ItemStatus, FrozenSet[ItemStatus]] = {
    ItemStatus.IDLE: frozenset({ItemStatus.QUEUED}),
    ItemStatus.FAILED: frozenset({ItemStatus.QUEUED}),
    ItemStatus.QUEUED: frozenset({ItemStatus.IN_PROGRESS}),
    ItemStatus.IN_PROGRESS: frozenset({ItemStatus.DONE, ItemStatus.FAILED}),
    ItemStatus.DONE: frozenset(),
}

ELIGIBLE_STATUSES = frozenset({ItemStatus.IDLE, ItemStatus.FAILED})


@dataclass
class QueueItem:
    id: str
    name: str
    source: Optional[ImageSource]
    status: ItemStatus = ItemStatus.IDLE
    width: Optional[int] = None
    height: Optional[int] = None
    result: Optional[bytes] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None

    def snapshot(self) -> ItemSnapshot:
        return ItemSnapshot(
            id=self.id,
            name=self.name,
            status=self.status,
            width=self.width,
            height=self.height,
            result=self.result,
            error=self.error,
            error_kind=self.error_kind,
            source_path=self.source if isinstance(self.source, Path) else None,
        )


class ItemStore:
    """Arena of queue items addressed by stable id.

    Readers only ever receive :class:`ItemSnapshot` values. Status changes
    go through :meth:`transition`, which enforces :data:`TRANSITIONS` and
    keeps ``result`` set only for DONE items and ``error`` only for FAILED
    ones.
    """

    def __init__(self, paths: Iterable[PathLike] = ()) -> None:
        self._items: "OrderedDict[str, QueueItem]" = OrderedDict()
        self._lock = threading.RLock()
        self.extend(paths)

    def add(self, source: ImageSource, name: Optional[str] = None) -> str:
        """Add an Idle item for *source* and return its id."""

        if isinstance(source, (bytes, bytearray, memoryview)):
            source = bytes(source)
            if name is None:
                raise ValueError("A display name is required for byte sources")
        else:
            source = resolve_path(source)
            name = name or source.name

        item = QueueItem(id=uuid.uuid4().hex, name=name, source=source)
        with self._lock:
            self._items[item.id] = item
        LOGGER.debug("Added item %s (%s)", item.id, item.name)
        return item.id

    def extend(self, paths: Iterable[PathLike]) -> List[str]:
        return [self.add(Path(path)) for path in paths]

    def get(self, item_id: str) -> ItemSnapshot:
        with self._lock:
            return self._require(item_id).snapshot()

    def source(self, item_id: str) -> ImageSource:
        """Return the source of an item that still owns one."""

        with self._lock:
            item = self._require(item_id)
            if item.source is None:
                raise InvalidTransitionError(f"Item {item.name} no longer holds its source")
            return item.source

    def snapshot(self, status: Optional[ItemStatus] = None) -> Tuple[ItemSnapshot, ...]:
        with self._lock:
            return tuple(
                item.snapshot()
                for item in self._items.values()
                if status is None or item.status is status
            )

    def eligible(self) -> List[str]:
        """Ids of Idle and Failed items in insertion order."""

        with self._lock:
            return [item.id for item in self._items.values() if item.status in ELIGIBLE_STATUSES]

    def counts(self) -> Dict[ItemStatus, int]:
        with self._lock:
            counts = {status: 0 for status in ItemStatus}
            for item in self._items.values():
                counts[item.status] += 1
            return counts

    def transition(
        self,
        item_id: str,
        status: ItemStatus,
        *,
        result: Optional[bytes] = None,
        error: Optional[str] = None,
        error_kind: Optional[str] = None,
    ) -> ItemSnapshot:
        """Move an item to *status*.

        Raises:
            ItemNotFoundError: If the item is not in the store.
            InvalidTransitionError: If the transition is not allowed, or a
                DONE transition lacks a result, or a FAILED one lacks an error.
        """

        with self._lock:
            item = self._require(item_id)
            if status not in TRANSITIONS[item.status]:
                raise InvalidTransitionError(
                    f"Item {item.name} cannot move from {item.status.value} to {status.value}"
                )
            if status is ItemStatus.DONE and result is None:
                raise InvalidTransitionError(f"Item {item.name} cannot be done without a result")
            if status is ItemStatus.FAILED and not error:
                raise InvalidTransitionError(f"Item {item.name} cannot fail without an error message")

            item.status = status
            item.result = result if status is ItemStatus.DONE else None
            if status is ItemStatus.FAILED:
                item.error = error
                item.error_kind = error_kind
            else:
                item.error = None
                item.error_kind = None
            if status is ItemStatus.DONE and not isinstance(item.source, Path):
                # Done is final; the converted document replaces the source bytes.
                item.source = None
            return item.snapshot()

    def set_dimensions(self, item_id: str, width: int, height: int) -> None:
        with self._lock:
            item = self._require(item_id)
            item.width = width
            item.height = height

    def remove(self, item_id: str, *, force: bool = False) -> ItemSnapshot:
        """Remove an item and return its last snapshot.

        Items that are queued or in progress belong to a running scheduler
        and are only removed with ``force=True``; the scheduler then drops
        their outcome.
        """

        with self._lock:
            item = self._require(item_id)
            if item.status.is_active and not force:
                raise ItemBusyError(f"Item {item.name} is {item.status.value} and cannot be removed")
            del self._items[item_id]
        LOGGER.debug("Removed item %s (%s)", item.id, item.name)
        return item.snapshot()

    def clear(self, *, force: bool = False) -> None:
        with self._lock:
            if not force:
                busy = [item.name for item in self._items.values() if item.status.is_active]
                if busy:
                    raise ItemBusyError(f"{len(busy)} item(s) are queued or in progress")
            self._items.clear()

    def _require(self, item_id: str) -> QueueItem:
        try:
            return self._items[item_id]
        except KeyError as exc:
            raise ItemNotFoundError(f"Item not found: {item_id}") from exc

    def __contains__(self, item_id: object) -> bool:
        with self._lock:
            return item_id in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator[ItemSnapshot]:
        return iter(self.snapshot())


__all__ = ["ItemStore", "QueueItem", "TRANSITIONS", "ELIGIBLE_STATUSES"]

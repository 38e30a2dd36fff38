"""Aggregate statistics for conversion runs."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional

from .types import ItemStatus


@dataclass(frozen=True)
class BatchStats:
    """
    Counters of one conversion run.

    Attributes:
        total: Items queued when the run started
        processed: Items that reached DONE or FAILED
        success: Items that reached DONE
        failed: Items that reached FAILED
        discarded: Items removed from the store while in flight
        start_time: Epoch seconds when the run started
        end_time: Epoch seconds when the run ended
    """
    total: int = 0
    processed: int = 0
    success: int = 0
    failed: int = 0
    discarded: int = 0
    start_time: Optional[float] = None
    end_time: Optional[float] = None

    @property
    def running(self) -> bool:
        return self.start_time is not None and self.end_time is None

    @property
    def elapsed(self) -> Optional[float]:
        if self.start_time is None:
            return None
        end = self.end_time if self.end_time is not None else time.time()
        return max(end - self.start_time, 0.0)

    @property
    def progress(self) -> float:
        if self.total == 0:
            return 1.0 if self.end_time is not None else 0.0
        return (self.processed + self.discarded) / self.total

    def __str__(self) -> str:
        return (
            "BatchStats(total={total}, processed={processed}, success={success}, "
            "failed={failed}, discarded={discarded})"
        ).format(
            total=self.total,
            processed=self.processed,
            success=self.success,
            failed=self.failed,
            discarded=self.discarded,
        )


class StatsAggregator:
    """Single writer for :class:`BatchStats`.

    Every update happens under one lock and replaces the frozen stats
    value, so :meth:`snapshot` always returns a consistent view with
    ``processed == success + failed <= total``.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._stats = BatchStats()

    def on_start(self, total: int) -> None:
        if total < 0:
            raise ValueError(f"total must not be negative, got {total}")
        with self._lock:
            self._stats = BatchStats(total=total, start_time=self._clock())

    def on_item_settled(self, status: ItemStatus) -> None:
        if not status.is_terminal:
            raise ValueError(f"Cannot settle an item with status {status.value}")
        with self._lock:
            stats = self._check_capacity()
            if status is ItemStatus.DONE:
                self._stats = replace(stats, processed=stats.processed + 1, success=stats.success + 1)
            else:
                self._stats = replace(stats, processed=stats.processed + 1, failed=stats.failed + 1)

    def on_item_discarded(self) -> None:
        with self._lock:
            stats = self._check_capacity()
            self._stats = replace(stats, discarded=stats.discarded + 1)

    def on_run_end(self) -> None:
        with self._lock:
            if self._stats.start_time is None:
                raise ValueError("Run has not started")
            self._stats = replace(self._stats, end_time=self._clock())

    def snapshot(self) -> BatchStats:
        with self._lock:
            return self._stats

    def reset(self) -> None:
        with self._lock:
            self._stats = BatchStats()

    def _check_capacity(self) -> BatchStats:
        stats = self._stats
        if not stats.running:
            raise ValueError("No run in progress")
        if stats.processed + stats.discarded >= stats.total:
            raise ValueError(f"More items settled than the {stats.total} queued")
        return stats


__all__ = ["BatchStats", "StatsAggregator"]

"""Wave-based scheduler driving conversions with bounded concurrency."""

from __future__ import annotations

import asyncio
import time
from typing import AsyncIterator, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .config import BatchConfig
from .converter import Converter
from .exceptions import (
    ConversionTimeoutError,
    ItemNotFoundError,
    JpegPdfError,
    RunAbortedError,
)
from .stats import BatchStats, StatsAggregator
from .store import ItemStore
from .types import ConvertedPage, ImageSource, ItemSettled, ItemSnapshot, ItemStatus
from .utils import PathLike, get_logger

LOGGER = get_logger("jpegpdf.scheduler")

EventCallback = Callable[[ItemSettled], None]


def partition(item_ids: Sequence[str], size: int) -> List[List[str]]:
    """Split *item_ids* into consecutive waves of at most *size* items."""

    if size < 1:
        raise ValueError(f"Wave size must be at least 1, got {size}")
    return [list(item_ids[start:start + size]) for start in range(0, len(item_ids), size)]


class Scheduler:
    """Convert every eligible item of a store in sequential waves.

    Idle and Failed items are queued together when a run starts. Waves of
    at most ``config.concurrency`` items are converted concurrently; the
    next wave starts only once every item of the current one has settled,
    after a pause of ``config.wave_delay`` seconds. A failing item is
    recorded as FAILED and never stops the run. An item that exceeds
    ``config.item_timeout`` is marked FAILED at once, but its wave only ends
    when the abandoned work returns, so no more than ``concurrency``
    conversions ever run at the same time.

    The scheduler is the only writer of item status while a run is active.
    Outcomes are written back by id, so an item removed from the store in
    the meantime is reported as discarded instead of being re-inserted.
    """

    def __init__(
        self,
        converter: Optional[Converter] = None,
        config: Optional[BatchConfig] = None,
        stats: Optional[StatsAggregator] = None,
    ) -> None:
        self.converter = converter or Converter()
        self.config = config or BatchConfig()
        self.stats = stats or StatsAggregator()
        self._running = False
        self._overruns: List["asyncio.Future[ConvertedPage]"] = []

    @property
    def running(self) -> bool:
        return self._running

    async def run(self, store: ItemStore) -> AsyncIterator[ItemSettled]:
        """Yield an :class:`ItemSettled` event for every queued item.

        Closing the iterator early still waits for the current wave, and
        marks items of waves that never started as FAILED with
        :class:`RunAbortedError` so they can be submitted again.
        """

        if self._running:
            raise RuntimeError("Scheduler is already running")

        queued = self._enqueue(store)
        self._running = True
        waves = partition(list(queued), self.config.concurrency)
        started = 0
        LOGGER.info(
            "Starting run: %d item(s) in %d wave(s) of up to %d",
            len(queued),
            len(waves),
            self.config.concurrency,
        )

        try:
            for index, wave in enumerate(waves):
                if index and self.config.wave_delay:
                    await asyncio.sleep(self.config.wave_delay)
                started = index + 1
                LOGGER.debug("Dispatching wave %d with %d item(s)", index, len(wave))
                tasks, skipped = self._dispatch(store, wave, queued, index)
                try:
                    for event in skipped:
                        yield event
                    for next_event in asyncio.as_completed(tasks):
                        yield await next_event
                finally:
                    if tasks:
                        await asyncio.gather(*tasks)
                    await self._settle_overruns()
        finally:
            for wave in waves[started:]:
                for item_id in wave:
                    self._abort(store, item_id)
            self.stats.on_run_end()
            self._running = False
            LOGGER.info("Run finished: %s", self.stats.snapshot())

    async def process(self, store: ItemStore, on_event: Optional[EventCallback] = None) -> BatchStats:
        """Run to completion and return the final statistics."""

        async for event in self.run(store):
            if on_event is not None:
                on_event(event)
        return self.stats.snapshot()

    def _enqueue(self, store: ItemStore) -> Dict[str, ItemSnapshot]:
        queued: Dict[str, ItemSnapshot] = {}
        for item_id in store.eligible():
            queued[item_id] = store.transition(item_id, ItemStatus.QUEUED)
        self.stats.on_start(len(queued))
        return queued

    def _dispatch(
        self,
        store: ItemStore,
        wave: Sequence[str],
        queued: Dict[str, ItemSnapshot],
        index: int,
    ) -> Tuple[List["asyncio.Task[ItemSettled]"], List[ItemSettled]]:
        tasks: List["asyncio.Task[ItemSettled]"] = []
        skipped: List[ItemSettled] = []
        for item_id in wave:
            try:
                snapshot = store.transition(item_id, ItemStatus.IN_PROGRESS)
                source = store.source(item_id)
            except ItemNotFoundError:
                LOGGER.info("Item %s was removed before conversion", queued[item_id].name)
                self.stats.on_item_discarded()
                skipped.append(ItemSettled(item=queued[item_id], wave=index, duration=0.0, discarded=True))
                continue
            tasks.append(
                asyncio.create_task(
                    self._convert_one(store, snapshot, source, index),
                    name=f"convert-{snapshot.id}",
                )
            )
        return tasks, skipped

    async def _convert_one(
        self,
        store: ItemStore,
        snapshot: ItemSnapshot,
        source: ImageSource,
        wave: int,
    ) -> ItemSettled:
        t0 = time.perf_counter()
        page: Optional[ConvertedPage] = None
        error: Optional[Exception] = None
        try:
            page = await self._with_timeout(self.converter.convert(source, snapshot.name))
        except JpegPdfError as exc:
            error = exc
        except Exception as exc:
            LOGGER.exception("Unexpected error converting %s", snapshot.name)
            error = exc
        return self._record(store, snapshot, wave, time.perf_counter() - t0, page, error)

    async def _with_timeout(self, conversion: Awaitable[ConvertedPage]) -> ConvertedPage:
        timeout = self.config.item_timeout
        if timeout is None:
            return await conversion
        work = asyncio.ensure_future(conversion)
        try:
            return await asyncio.wait_for(asyncio.shield(work), timeout)
        except asyncio.TimeoutError as exc:
            # A worker thread cannot be interrupted, so the item keeps its
            # slot until the work returns.
            self._overruns.append(work)
            raise ConversionTimeoutError(f"Conversion exceeded {timeout:g}s") from exc

    async def _settle_overruns(self) -> None:
        """Wait for timed-out conversions before another wave may start."""

        if not self._overruns:
            return
        pending, self._overruns = self._overruns, []
        LOGGER.debug("Waiting for %d timed-out conversion(s) to finish", len(pending))
        await asyncio.gather(*pending, return_exceptions=True)

    def _record(
        self,
        store: ItemStore,
        snapshot: ItemSnapshot,
        wave: int,
        duration: float,
        page: Optional[ConvertedPage],
        error: Optional[Exception],
    ) -> ItemSettled:
        try:
            if page is not None:
                store.set_dimensions(snapshot.id, page.width, page.height)
                settled = store.transition(snapshot.id, ItemStatus.DONE, result=page.data)
            else:
                settled = store.transition(
                    snapshot.id,
                    ItemStatus.FAILED,
                    error=_describe(error),
                    error_kind=type(error).__name__,
                )
        except ItemNotFoundError:
            LOGGER.info("Item %s was removed while converting; dropping its outcome", snapshot.name)
            self.stats.on_item_discarded()
            return ItemSettled(item=snapshot, wave=wave, duration=duration, discarded=True)

        self.stats.on_item_settled(settled.status)
        if settled.status is ItemStatus.FAILED:
            LOGGER.warning("Failed to convert %s: %s", settled.name, settled.error)
        else:
            LOGGER.debug("Converted %s in %.3fs", settled.name, duration)
        return ItemSettled(item=settled, wave=wave, duration=duration)

    def _abort(self, store: ItemStore, item_id: str) -> None:
        error = RunAbortedError()
        try:
            store.transition(item_id, ItemStatus.IN_PROGRESS)
            store.transition(item_id, ItemStatus.FAILED, error=error.message, error_kind=error.kind)
        except ItemNotFoundError:
            self.stats.on_item_discarded()
            return
        self.stats.on_item_settled(ItemStatus.FAILED)


def _describe(error: Optional[Exception]) -> str:
    if isinstance(error, JpegPdfError):
        return error.message
    if error is None:
        return "Conversion failed"
    return str(error) or type(error).__name__


BatchSource = Union[PathLike, Tuple[str, bytes]]


def convert_batch(
    sources: Iterable[BatchSource],
    *,
    config: Optional[BatchConfig] = None,
    converter: Optional[Converter] = None,
    on_event: Optional[EventCallback] = None,
) -> Tuple[ItemStore, BatchStats]:
    """Convert *sources* in one run and return the store and final stats.

    Each source is a path or a ``(name, bytes)`` pair. Runs its own event
    loop, so it must not be called from async code.
    """

    store = ItemStore()
    for source in sources:
        if isinstance(source, tuple):
            name, data = source
            store.add(data, name)
        else:
            store.add(source)
    scheduler = Scheduler(converter=converter, config=config)
    stats = asyncio.run(scheduler.process(store, on_event=on_event))
    return store, stats


__all__ = ["Scheduler", "partition", "convert_batch", "EventCallback", "BatchSource"]

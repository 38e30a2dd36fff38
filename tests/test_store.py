from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Callable

import pytest

from jpegpdf.exceptions import InvalidTransitionError, ItemBusyError, ItemNotFoundError
from jpegpdf.store import TRANSITIONS, ItemStore
from jpegpdf.types import ItemStatus

ALLOWED = {(source, target) for source, targets in TRANSITIONS.items() for target in targets}


def _store_with(status: ItemStatus) -> tuple[ItemStore, str]:
    store = ItemStore()
    item_id = store.add(b"data", "image.jpg")
    path = {
        ItemStatus.IDLE: [],
        ItemStatus.QUEUED: [ItemStatus.QUEUED],
        ItemStatus.IN_PROGRESS: [ItemStatus.QUEUED, ItemStatus.IN_PROGRESS],
        ItemStatus.DONE: [ItemStatus.QUEUED, ItemStatus.IN_PROGRESS, ItemStatus.DONE],
        ItemStatus.FAILED: [ItemStatus.QUEUED, ItemStatus.IN_PROGRESS, ItemStatus.FAILED],
    }[status]
    for step in path:
        store.transition(item_id, step, result=b"%PDF", error="broken")
    return store, item_id


def test_allowed_transitions_table() -> None:
    assert ALLOWED == {
        (ItemStatus.IDLE, ItemStatus.QUEUED),
        (ItemStatus.FAILED, ItemStatus.QUEUED),
        (ItemStatus.QUEUED, ItemStatus.IN_PROGRESS),
        (ItemStatus.IN_PROGRESS, ItemStatus.DONE),
        (ItemStatus.IN_PROGRESS, ItemStatus.FAILED),
    }


@pytest.mark.parametrize("source", list(ItemStatus))
@pytest.mark.parametrize("target", list(ItemStatus))
def test_transition_enforced(source: ItemStatus, target: ItemStatus) -> None:
    store, item_id = _store_with(source)

    if (source, target) in ALLOWED:
        snapshot = store.transition(item_id, target, result=b"%PDF", error="broken")
        assert snapshot.status is target
    else:
        with pytest.raises(InvalidTransitionError):
            store.transition(item_id, target, result=b"%PDF", error="broken")
        assert store.get(item_id).status is source


def test_result_only_for_done_and_error_only_for_failed() -> None:
    store, item_id = _store_with(ItemStatus.IN_PROGRESS)

    with pytest.raises(InvalidTransitionError):
        store.transition(item_id, ItemStatus.DONE)
    with pytest.raises(InvalidTransitionError):
        store.transition(item_id, ItemStatus.FAILED, error="")

    failed = store.transition(item_id, ItemStatus.FAILED, result=b"ignored", error="bad", error_kind="ProbeError")
    assert failed.result is None
    assert failed.error == "bad"
    assert failed.error_kind == "ProbeError"

    requeued = store.transition(item_id, ItemStatus.QUEUED)
    assert requeued.error is None
    assert requeued.error_kind is None

    store.transition(item_id, ItemStatus.IN_PROGRESS)
    done = store.transition(item_id, ItemStatus.DONE, result=b"%PDF", error="ignored")
    assert done.result == b"%PDF"
    assert done.error is None


def test_done_releases_byte_source() -> None:
    store, item_id = _store_with(ItemStatus.DONE)

    with pytest.raises(InvalidTransitionError):
        store.source(item_id)


def test_path_sources(jpeg_file_factory: Callable[..., Path]) -> None:
    first = jpeg_file_factory("b.jpg")
    second = jpeg_file_factory("a.jpg")

    store = ItemStore([first, second])

    snapshots = store.snapshot()
    assert [item.name for item in snapshots] == ["b.jpg", "a.jpg"]
    assert snapshots[0].source_path == first.resolve()
    assert store.source(snapshots[1].id) == second.resolve()


def test_byte_source_requires_name() -> None:
    with pytest.raises(ValueError):
        ItemStore().add(b"data")


def test_eligible_keeps_order_and_includes_failures() -> None:
    store = ItemStore()
    ids = [store.add(b"x", f"{index}.jpg") for index in range(4)]
    store.transition(ids[1], ItemStatus.QUEUED)
    for status in (ItemStatus.QUEUED, ItemStatus.IN_PROGRESS):
        store.transition(ids[2], status)
    store.transition(ids[2], ItemStatus.FAILED, error="broken")

    assert store.eligible() == [ids[0], ids[2], ids[3]]
    assert store.counts()[ItemStatus.QUEUED] == 1
    assert store.counts()[ItemStatus.FAILED] == 1


def test_snapshots_are_immutable() -> None:
    store = ItemStore()
    item_id = store.add(b"x", "a.jpg")
    snapshot = store.get(item_id)

    with pytest.raises(dataclasses.FrozenInstanceError):
        snapshot.status = ItemStatus.DONE  # type: ignore[misc]

    store.transition(item_id, ItemStatus.QUEUED)
    assert snapshot.status is ItemStatus.IDLE


@pytest.mark.parametrize("status", [ItemStatus.IDLE, ItemStatus.DONE, ItemStatus.FAILED])
def test_remove_items_at_rest(status: ItemStatus) -> None:
    store, item_id = _store_with(status)

    removed = store.remove(item_id)

    assert removed.status is status
    assert item_id not in store
    assert len(store) == 0


@pytest.mark.parametrize("status", [ItemStatus.QUEUED, ItemStatus.IN_PROGRESS])
def test_remove_busy_items_requires_force(status: ItemStatus) -> None:
    store, item_id = _store_with(status)

    with pytest.raises(ItemBusyError):
        store.remove(item_id)
    with pytest.raises(ItemBusyError):
        store.clear()

    store.remove(item_id, force=True)
    assert item_id not in store


def test_unknown_item() -> None:
    store = ItemStore()

    with pytest.raises(ItemNotFoundError):
        store.get("missing")
    with pytest.raises(KeyError):
        store.transition("missing", ItemStatus.QUEUED)

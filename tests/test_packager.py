from __future__ import annotations

import io
import os
import zipfile
from pathlib import Path

import pytest

from jpegpdf import Packager, package_items
from jpegpdf.exceptions import ArchiveError
from jpegpdf.types import ItemSnapshot, ItemStatus


def _item(name: str, status: ItemStatus = ItemStatus.DONE, result: bytes | None = b"%PDF-1") -> ItemSnapshot:
    return ItemSnapshot(id=name, name=name, status=status, result=result)


def _entries(data: bytes) -> dict[str, bytes]:
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        return {name: archive.read(name) for name in archive.namelist()}


def test_package_contains_one_entry_per_done_item() -> None:
    items = [
        _item("cat.jpg", result=b"%PDF-cat"),
        _item("dog.JPEG", result=b"%PDF-dog"),
        _item("failed.jpg", status=ItemStatus.FAILED, result=None),
        _item("idle.jpg", status=ItemStatus.IDLE, result=None),
        _item("missing.jpg", result=None),
    ]

    entries = _entries(package_items(items))

    assert entries == {
        "converted_pdfs/cat.pdf": b"%PDF-cat",
        "converted_pdfs/dog.pdf": b"%PDF-dog",
    }


def test_custom_folder_and_multi_dot_names() -> None:
    entries = _entries(Packager("scans").package([_item("trip.day1.jpg")]))

    assert list(entries) == ["scans/trip.day1.pdf"]


def test_name_collision_last_writer_wins() -> None:
    items = [_item("photo.jpg", result=b"first"), _item("photo.jpeg", result=b"second")]

    data = Packager().package(items)

    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        assert archive.namelist() == ["converted_pdfs/photo.pdf"]
        assert archive.read("converted_pdfs/photo.pdf") == b"second"


def test_package_without_done_items_fails() -> None:
    with pytest.raises(ArchiveError):
        Packager().package([_item("failed.jpg", status=ItemStatus.FAILED, result=None)])
    with pytest.raises(ArchiveError):
        Packager().package([])


def test_write_archive(tmp_path: Path) -> None:
    destination = tmp_path / "out" / "converted_pdfs.zip"

    result = Packager().write([_item("a.jpg")], destination)

    assert result == destination.resolve()
    assert _entries(destination.read_bytes()) == {"converted_pdfs/a.pdf": b"%PDF-1"}
    assert [path.name for path in destination.parent.iterdir()] == ["converted_pdfs.zip"]


def test_write_without_items_leaves_no_file(tmp_path: Path) -> None:
    destination = tmp_path / "converted_pdfs.zip"

    with pytest.raises(ArchiveError):
        Packager().write([], destination)

    assert not destination.exists()
    assert list(tmp_path.iterdir()) == []


def test_write_documents(tmp_path: Path) -> None:
    written = Packager().write_documents([_item("a.jpg", result=b"A"), _item("b.jpg", result=b"B")], tmp_path / "pdfs")

    assert [path.name for path in written] == ["a.pdf", "b.pdf"]
    assert (tmp_path / "pdfs" / "b.pdf").read_bytes() == b"B"


def test_write_documents_into_a_file_fails_cleanly(tmp_path: Path) -> None:
    blocker = tmp_path / "pdfs"
    blocker.write_text("not a directory")

    with pytest.raises(ArchiveError):
        Packager().write_documents([_item("a.jpg")], blocker)

    assert blocker.read_text() == "not a directory"


def test_write_documents_rolls_back_after_partial_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    real_replace = os.replace
    calls = []

    def flaky_replace(source, target):
        calls.append(target)
        if len(calls) == 2:
            raise OSError("disk full")
        real_replace(source, target)

    monkeypatch.setattr("jpegpdf.packager.os.replace", flaky_replace)
    output = tmp_path / "pdfs"

    with pytest.raises(ArchiveError):
        Packager().write_documents(
            [_item("a.jpg", result=b"A"), _item("b.jpg", result=b"B"), _item("c.jpg", result=b"C")],
            output,
        )

    assert len(calls) == 2
    assert list(output.iterdir()) == []

"""Bundle converted documents into a single ZIP archive."""

from __future__ import annotations

import io
import os
import tempfile
import zipfile
from pathlib import Path
from typing import Dict, Iterable, List

from .config import DEFAULT_ARCHIVE_FOLDER
from .exceptions import ArchiveError
from .types import ItemSnapshot, ItemStatus
from .utils import PathLike, document_name, ensure_parent, get_logger

LOGGER = get_logger("jpegpdf.packager")


class Packager:
    """Collect DONE items and write their PDFs under one archive folder.

    Each entry is named after the item's display name with the extension
    replaced by ``.pdf``. When two items map to the same entry name the
    later one wins and only one entry is written.
    """

    def __init__(self, folder: str = DEFAULT_ARCHIVE_FOLDER, *, compression: int = zipfile.ZIP_STORED) -> None:
        self.folder = folder.strip("/")
        self.compression = compression

    def select(self, items: Iterable[ItemSnapshot]) -> List[ItemSnapshot]:
        """Items with status DONE and a result; everything else is skipped."""

        return [item for item in items if item.status is ItemStatus.DONE and item.has_result]

    def entries(self, items: Iterable[ItemSnapshot]) -> Dict[str, bytes]:
        entries: Dict[str, bytes] = {}
        for item in self.select(items):
            arcname = f"{self.folder}/{document_name(item.name)}"
            if arcname in entries:
                LOGGER.warning("Duplicate archive entry %s; keeping the last one", arcname)
                del entries[arcname]
            entries[arcname] = item.result  # type: ignore[assignment]
        return entries

    def package(self, items: Iterable[ItemSnapshot]) -> bytes:
        """Return the ZIP archive of all converted items.

        Raises:
            ArchiveError: If no item is eligible or the archive cannot be built.
        """

        entries = self.entries(items)
        if not entries:
            raise ArchiveError("No converted documents to package.")

        buffer = io.BytesIO()
        try:
            with zipfile.ZipFile(buffer, "w", compression=self.compression) as archive:
                for arcname, data in entries.items():
                    archive.writestr(arcname, data)
        except (OSError, ValueError, zipfile.LargeZipFile) as exc:
            LOGGER.error("Failed to build archive: %s", exc)
            raise ArchiveError(f"Failed to build archive: {exc}") from exc

        LOGGER.info("Packaged %d document(s) into archive (%d bytes)", len(entries), buffer.tell())
        return buffer.getvalue()

    def write(self, items: Iterable[ItemSnapshot], destination: PathLike) -> Path:
        """Write the archive to *destination* and return its path.

        The archive is written to a temporary file next to *destination*
        and moved into place, so a failure never leaves a partial file.
        """

        data = self.package(items)
        try:
            output_path = _write_atomically(destination, data)
        except OSError as exc:
            LOGGER.error("Failed to write archive to %s: %s", destination, exc)
            raise ArchiveError(f"Failed to write archive to {destination}") from exc

        LOGGER.info("Wrote archive %s", output_path)
        return output_path

    def write_documents(self, items: Iterable[ItemSnapshot], directory: PathLike) -> List[Path]:
        """Write each converted PDF as a loose file into *directory*.

        Every file is moved into place whole. If any write fails, the files
        written by this call are removed again and :class:`ArchiveError` is
        raised.
        """

        written: List[Path] = []
        try:
            for arcname, data in self.entries(items).items():
                target = Path(directory) / arcname.rsplit("/", 1)[-1]
                written.append(_write_atomically(target, data))
        except OSError as exc:
            for path in written:
                path.unlink(missing_ok=True)
            LOGGER.error("Failed to write documents to %s: %s", directory, exc)
            raise ArchiveError(f"Failed to write documents to {directory}") from exc

        LOGGER.info("Wrote %d document(s) to %s", len(written), directory)
        return written


def _write_atomically(destination: PathLike, data: bytes) -> Path:
    output_path = ensure_parent(destination)
    handle = tempfile.NamedTemporaryFile(
        dir=output_path.parent,
        prefix=f".{output_path.name}.",
        suffix=".tmp",
        delete=False,
    )
    try:
        with handle:
            handle.write(data)
        os.replace(handle.name, output_path)
    except OSError:
        Path(handle.name).unlink(missing_ok=True)
        raise
    return output_path


def package_items(items: Iterable[ItemSnapshot], folder: str = DEFAULT_ARCHIVE_FOLDER) -> bytes:
    """Convenience wrapper around :meth:`Packager.package`."""

    return Packager(folder).package(items)


__all__ = ["Packager", "package_items"]

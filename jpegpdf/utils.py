"""Utilities shared by jpegpdf modules."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Union

PathLike = Union[str, Path]

JPEG_EXTENSIONS = frozenset({".jpg", ".jpeg", ".jpe", ".jfif"})
DOCUMENT_EXTENSION = ".pdf"


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False
    return logger


def set_log_level(level: int) -> None:
    """Apply *level* to every ``jpegpdf`` logger created so far."""

    for name, logger in list(logging.root.manager.loggerDict.items()):
        if name == "jpegpdf" or name.startswith("jpegpdf."):
            if isinstance(logger, logging.Logger):
                logger.setLevel(level)


def resolve_path(path: PathLike | None) -> Path:
    if path is None:
        raise ValueError("Path must not be None")
    resolved = Path(path).expanduser().resolve()
    return resolved


def ensure_parent(path: PathLike) -> Path:
    resolved = resolve_path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return resolved


def is_jpeg_name(name: str) -> bool:
    return Path(name).suffix.lower() in JPEG_EXTENSIONS


def document_name(display_name: str) -> str:
    """Return *display_name* with its extension replaced by ``.pdf``.

    Only the last extension is stripped, so ``holiday.v2.jpg`` becomes
    ``holiday.v2.pdf``. Names without an extension simply gain one.
    """

    name = Path(display_name).name
    stem, dot, _ = name.rpartition(".")
    if not dot or not stem:
        stem = name
    return stem + DOCUMENT_EXTENSION


def collect_jpegs(inputs: Iterable[PathLike], *, recursive: bool = False) -> List[Path]:
    """Expand files and directories in *inputs* into a list of JPEG paths.

    Explicit files are kept in the order given without an extension check.
    Directory contents are filtered by extension and sorted by name.
    Duplicates are dropped.
    """

    collected: List[Path] = []
    seen: set[Path] = set()

    def _add(candidate: Path) -> None:
        if candidate not in seen:
            seen.add(candidate)
            collected.append(candidate)

    for entry in inputs:
        path = resolve_path(entry)
        if not path.exists():
            raise FileNotFoundError(f"Input not found: {entry}")
        if path.is_dir():
            pattern = "**/*" if recursive else "*"
            for child in sorted(path.glob(pattern)):
                if child.is_file() and is_jpeg_name(child.name):
                    _add(child)
        else:
            _add(path)
    return collected


def format_file_size(size_bytes: float) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB", "500 KB")
    """
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} PB"


__all__ = [
    "PathLike",
    "JPEG_EXTENSIONS",
    "DOCUMENT_EXTENSION",
    "get_logger",
    "set_log_level",
    "resolve_path",
    "ensure_parent",
    "is_jpeg_name",
    "document_name",
    "collect_jpegs",
    "format_file_size",
]

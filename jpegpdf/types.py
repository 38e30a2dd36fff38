"""
Type definitions and dataclasses for jpegpdf.

This module defines the data structures shared by the store, scheduler,
converter and packager.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

ImageSource = Union[bytes, Path]


class ItemStatus(str, enum.Enum):
    """Lifecycle states of a queue item."""

    IDLE = "idle"
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ItemStatus.DONE, ItemStatus.FAILED)

    @property
    def is_active(self) -> bool:
        return self in (ItemStatus.QUEUED, ItemStatus.IN_PROGRESS)


class Orientation(str, enum.Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"

    @classmethod
    def for_size(cls, width: int, height: int) -> "Orientation":
        return cls.LANDSCAPE if width > height else cls.PORTRAIT


@dataclass(frozen=True)
class ImageInfo:
    """
    Header information read from a JPEG without decoding its pixels.

    Attributes:
        width: Pixel width
        height: Pixel height
        mode: Pillow colour mode (``L``, ``RGB``, ``CMYK`` ...)
        format: Pillow format name, ``JPEG`` for supported sources
        adobe: Whether the stream carries an Adobe APP14 marker
        progressive: Whether the stream is progressive
    """
    width: int
    height: int
    mode: str
    format: Optional[str]
    adobe: bool = False
    progressive: bool = False

    @property
    def orientation(self) -> Orientation:
        return Orientation.for_size(self.width, self.height)


@dataclass(frozen=True)
class ConvertedPage:
    """
    Result of converting one image into a single-page PDF.

    Attributes:
        data: PDF document bytes
        width: Page and image width in pixels
        height: Page and image height in pixels
        orientation: Page orientation derived from the pixel size
    """
    data: bytes
    width: int
    height: int
    orientation: Orientation

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ItemSnapshot:
    """
    Immutable view of a queue item handed to readers of the store.

    Attributes:
        id: Stable item identifier
        name: Display name, usually the source file name
        status: Status at the time the snapshot was taken
        width: Pixel width once probed
        height: Pixel height once probed
        result: PDF bytes, present only when ``status`` is DONE
        error: Error message, present only when ``status`` is FAILED
        error_kind: Exception class name of the failure
        source_path: Path of the source when it was added from disk
    """
    id: str
    name: str
    status: ItemStatus
    width: Optional[int] = None
    height: Optional[int] = None
    result: Optional[bytes] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    source_path: Optional[Path] = None

    @property
    def has_result(self) -> bool:
        return self.result is not None


@dataclass(frozen=True)
class ItemSettled:
    """
    Completion event emitted by the scheduler for every converted item.

    Attributes:
        item: Snapshot taken right after the outcome was recorded
        wave: Zero-based index of the wave the item ran in
        duration: Seconds spent converting the item
        discarded: True when the item was removed from the store while in
            flight; its outcome was dropped and not counted
    """
    item: ItemSnapshot
    wave: int
    duration: float
    discarded: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.discarded and self.item.status is ItemStatus.DONE

    def __str__(self) -> str:
        if self.discarded:
            return f"ItemSettled(name='{self.item.name}', discarded=True)"
        if self.succeeded:
            return f"ItemSettled(name='{self.item.name}', status=done)"
        return f"ItemSettled(name='{self.item.name}', status=failed, error='{self.item.error}')"


__all__ = [
    "ImageSource",
    "ItemStatus",
    "Orientation",
    "ImageInfo",
    "ConvertedPage",
    "ItemSnapshot",
    "ItemSettled",
]

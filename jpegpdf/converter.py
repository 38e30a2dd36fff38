"""Lossless conversion of one JPEG into a single-page PDF."""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Optional

from .backends import DocumentBackend, PypdfBackend
from .exceptions import EncodingError, ProbeError
from .probe import probe_image
from .types import ConvertedPage, ImageSource
from .utils import get_logger

LOGGER = get_logger("jpegpdf.converter")

# Multi-picture camera files (MPO) open with a plain baseline JPEG stream.
EMBEDDABLE_FORMATS = frozenset({"JPEG", "MPO"})


class Converter:
    """Turn JPEG bytes into a one-page PDF without touching the image stream.

    The page is exactly as large as the image, one PDF unit per pixel, and
    the original DCT stream is embedded byte for byte.
    """

    def __init__(self, backend: Optional[DocumentBackend] = None) -> None:
        self.backend: DocumentBackend = backend or PypdfBackend()

    def convert_bytes(self, data: bytes, name: Optional[str] = None) -> ConvertedPage:
        """Convert *data* synchronously.

        Raises:
            ProbeError: If *data* is not a decodable image.
            EncodingError: If the image cannot be embedded unchanged.
        """

        info = probe_image(data)
        if info.format not in EMBEDDABLE_FORMATS:
            raise EncodingError(
                f"{info.format or 'Unknown'} images cannot be embedded without re-encoding; only JPEG is supported."
            )

        title = Path(name).stem if name else None
        document = self.backend.build_page(data, info, title=title)
        return ConvertedPage(
            data=document,
            width=info.width,
            height=info.height,
            orientation=info.orientation,
        )

    async def convert(self, source: ImageSource, name: Optional[str] = None) -> ConvertedPage:
        """Convert *source*, reading and encoding off the event loop."""

        t0 = time.perf_counter()
        data = await read_source(source)
        page = await asyncio.to_thread(self.convert_bytes, data, name)
        LOGGER.debug(
            "Converted %s (%dx%d %s) in %.3fs",
            name or "<bytes>",
            page.width,
            page.height,
            page.orientation.value,
            time.perf_counter() - t0,
        )
        return page


async def read_source(source: ImageSource) -> bytes:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    try:
        return await asyncio.to_thread(Path(source).read_bytes)
    except OSError as exc:
        raise ProbeError(f"Unable to read source {source}: {exc}") from exc


def convert_image(data: bytes, name: Optional[str] = None) -> ConvertedPage:
    """Convenience wrapper converting *data* with the default backend."""

    return Converter().convert_bytes(data, name)


def extract_embedded_image(document: bytes) -> bytes:
    """Return the raw image stream embedded in a PDF produced by :class:`Converter`."""

    return PypdfBackend().extract_image(document)


__all__ = [
    "Converter",
    "EMBEDDABLE_FORMATS",
    "read_source",
    "convert_image",
    "extract_embedded_image",
]

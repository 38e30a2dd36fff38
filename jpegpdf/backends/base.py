"""Backend protocol for building single-page PDF documents."""

from __future__ import annotations

from typing import Optional, Protocol

from ..types import ImageInfo


class DocumentBackend(Protocol):
    """Protocol defining the document operations the converter needs."""

    def build_page(self, data: bytes, info: ImageInfo, *, title: Optional[str] = None) -> bytes:
        """Return a one-page PDF embedding the JPEG stream *data* unchanged."""

    def extract_image(self, document: bytes) -> bytes:
        """Return the raw image stream embedded on the first page of *document*."""

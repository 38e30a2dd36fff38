"""pypdf backend implementation for jpegpdf."""

from __future__ import annotations

import io
from typing import Optional

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError
from pypdf.generic import (
    ArrayObject,
    DecodedStreamObject,
    DictionaryObject,
    NameObject,
    NumberObject,
    StreamObject,
)

from ..exceptions import EncodingError
from ..types import ImageInfo
from ..utils import get_logger
from .base import DocumentBackend

LOGGER = get_logger("jpegpdf.backends.pypdf")

IMAGE_NAME = "/Im0"
PRODUCER = "jpegpdf"

COLOR_SPACES = {
    "L": "/DeviceGray",
    "RGB": "/DeviceRGB",
    "CMYK": "/DeviceCMYK",
}
# Adobe CMYK JPEGs store inverted ink values.
_INVERTED_CMYK_DECODE = (1, 0, 1, 0, 1, 0, 1, 0)


def _image_xobject(data: bytes, info: ImageInfo) -> DecodedStreamObject:
    color_space = COLOR_SPACES.get(info.mode)
    if color_space is None:
        raise EncodingError(
            f"JPEG colour mode {info.mode!r} cannot be embedded without re-encoding."
        )

    # A decoded stream object is written verbatim; the DCTDecode filter
    # entry tells readers how to interpret those bytes.
    image = DecodedStreamObject()
    image.set_data(data)
    image.update(
        {
            NameObject("/Type"): NameObject("/XObject"),
            NameObject("/Subtype"): NameObject("/Image"),
            NameObject("/Width"): NumberObject(info.width),
            NameObject("/Height"): NumberObject(info.height),
            NameObject("/ColorSpace"): NameObject(color_space),
            NameObject("/BitsPerComponent"): NumberObject(8),
            NameObject("/Filter"): NameObject("/DCTDecode"),
        }
    )
    if info.mode == "CMYK" and info.adobe:
        image[NameObject("/Decode")] = ArrayObject(NumberObject(value) for value in _INVERTED_CMYK_DECODE)
    return image


def _content_stream(width: int, height: int) -> DecodedStreamObject:
    content = DecodedStreamObject()
    content.set_data(f"q {width} 0 0 {height} 0 0 cm {IMAGE_NAME} Do Q".encode("ascii"))
    return content


class PypdfBackend(DocumentBackend):
    """Backend implementation that uses `pypdf` under the hood."""

    def build_page(self, data: bytes, info: ImageInfo, *, title: Optional[str] = None) -> bytes:
        image = _image_xobject(data, info)

        try:
            writer = PdfWriter()
            page = writer.add_blank_page(width=info.width, height=info.height)
            image_ref = writer._add_object(image)  # type: ignore[attr-defined]
            content_ref = writer._add_object(_content_stream(info.width, info.height))  # type: ignore[attr-defined]
            page[NameObject("/Resources")] = DictionaryObject(
                {
                    NameObject("/XObject"): DictionaryObject({NameObject(IMAGE_NAME): image_ref}),
                }
            )
            page[NameObject("/Contents")] = content_ref

            metadata = {"/Producer": PRODUCER}
            if title:
                metadata["/Title"] = title
            writer.add_metadata(metadata)

            buffer = io.BytesIO()
            writer.write(buffer)
        except EncodingError:
            raise
        except Exception as exc:
            LOGGER.error("Failed to build PDF page: %s", exc)
            raise EncodingError(f"PDF backend failed to embed image: {exc}") from exc

        LOGGER.debug("Built %dx%d page (%d bytes)", info.width, info.height, buffer.tell())
        return buffer.getvalue()

    def extract_image(self, document: bytes) -> bytes:
        try:
            reader = PdfReader(io.BytesIO(document))
            if not reader.pages:
                raise EncodingError("PDF has no pages.")
            resources = reader.pages[0].get(NameObject("/Resources"))
            resources = resources.get_object() if resources is not None else None
            xobjects = resources.get(NameObject("/XObject")) if resources else None
            xobjects = xobjects.get_object() if xobjects is not None else None
        except EncodingError:
            raise
        except PdfReadError as exc:
            raise EncodingError(f"Corrupted or invalid PDF: {exc}") from exc
        except Exception as exc:
            raise EncodingError(f"Unexpected error reading PDF: {exc}") from exc

        for reference in (xobjects or {}).values():
            stream = reference.get_object()
            if not isinstance(stream, StreamObject):
                continue
            if stream.get(NameObject("/Subtype")) != NameObject("/Image"):
                continue
            raw = getattr(stream, "_data", None)
            return bytes(raw) if raw is not None else stream.get_data()

        raise EncodingError("PDF page has no embedded image.")


__all__ = ["PypdfBackend", "COLOR_SPACES", "IMAGE_NAME", "PRODUCER"]

"""Read JPEG header information without decoding pixel data."""

from __future__ import annotations

import io

from PIL import Image, UnidentifiedImageError

from .exceptions import ProbeError
from .types import ImageInfo
from .utils import get_logger

LOGGER = get_logger("jpegpdf.probe")


def probe_image(data: bytes) -> ImageInfo:
    """Return the pixel size and colour layout of the image in *data*.

    Pillow only parses the header on open, so this never decompresses the
    scan data. Any image format Pillow recognises is accepted here; the
    converter decides whether the format can be embedded.

    Raises:
        ProbeError: If *data* is empty or not a recognisable image.
    """

    if not data:
        raise ProbeError("Source is empty.")

    try:
        with Image.open(io.BytesIO(data)) as image:
            width, height = image.size
            info = ImageInfo(
                width=int(width),
                height=int(height),
                mode=image.mode,
                format=image.format,
                adobe="adobe" in image.info,
                progressive=bool(image.info.get("progressive") or image.info.get("progression")),
            )
    except UnidentifiedImageError as exc:
        raise ProbeError("Source is not a decodable image.") from exc
    except Image.DecompressionBombError as exc:
        raise ProbeError(f"Image exceeds the pixel limit: {exc}") from exc
    except (OSError, SyntaxError, ValueError) as exc:
        raise ProbeError(f"Unable to read image header: {exc}") from exc

    if info.width <= 0 or info.height <= 0:
        raise ProbeError(f"Image has invalid dimensions {info.width}x{info.height}.")

    LOGGER.debug(
        "Probed %s image %dx%d mode=%s progressive=%s",
        info.format,
        info.width,
        info.height,
        info.mode,
        info.progressive,
    )
    return info


__all__ = ["probe_image"]

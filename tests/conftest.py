from __future__ import annotations

import io
from pathlib import Path
from typing import Callable
import sys

import pytest
from PIL import Image

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

_FILL = {
    "L": 128,
    "RGB": (200, 120, 40),
    "CMYK": (10, 80, 160, 0),
}


@pytest.fixture()
def jpeg_factory() -> Callable[..., bytes]:
    def _create(
        width: int = 64,
        height: int = 48,
        *,
        mode: str = "RGB",
        quality: int = 85,
        progressive: bool = False,
    ) -> bytes:
        image = Image.new(mode, (width, height), _FILL[mode])
        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=quality, progressive=progressive)
        return buffer.getvalue()

    return _create


@pytest.fixture()
def jpeg_bytes(jpeg_factory: Callable[..., bytes]) -> bytes:
    return jpeg_factory()


@pytest.fixture()
def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (20, 10), (0, 255, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture()
def mpo_bytes() -> bytes:
    left = Image.new("RGB", (40, 20), (200, 30, 30))
    right = Image.new("RGB", (40, 20), (30, 30, 200))
    buffer = io.BytesIO()
    left.save(buffer, format="MPO", save_all=True, append_images=[right])
    return buffer.getvalue()


@pytest.fixture()
def corrupt_bytes() -> bytes:
    return b"\xff\xd8 this is not really a jpeg"


@pytest.fixture()
def jpeg_file_factory(tmp_path: Path, jpeg_factory: Callable[..., bytes]) -> Callable[..., Path]:
    def _create(filename: str, width: int = 64, height: int = 48, **kwargs: object) -> Path:
        path = tmp_path / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(jpeg_factory(width, height, **kwargs))
        return path

    return _create


@pytest.fixture()
def jpeg_dir(tmp_path: Path, jpeg_factory: Callable[..., bytes]) -> Path:
    directory = tmp_path / "photos"
    directory.mkdir()
    for index in range(3):
        (directory / f"photo_{index}.jpg").write_bytes(jpeg_factory(40 + index, 30))
    (directory / "notes.txt").write_text("not an image")
    return directory

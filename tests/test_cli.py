from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Callable

import pytest
from click.testing import CliRunner

from jpegpdf import convert_image
from jpegpdf.cli import cli


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def test_convert_directory_writes_archive(runner: CliRunner, jpeg_dir: Path, tmp_path: Path) -> None:
    archive = tmp_path / "out.zip"

    result = runner.invoke(cli, ["convert", str(jpeg_dir), "-o", str(archive), "--delay", "0"])

    assert result.exit_code == 0, result.output
    with zipfile.ZipFile(archive) as bundle:
        assert sorted(bundle.namelist()) == [
            "converted_pdfs/photo_0.pdf",
            "converted_pdfs/photo_1.pdf",
            "converted_pdfs/photo_2.pdf",
        ]
        embedded = bundle.read("converted_pdfs/photo_1.pdf")
    assert (jpeg_dir / "photo_1.jpg").read_bytes() in embedded
    assert "Archive created with 3 PDF(s)" in result.output


def test_convert_reports_failures_and_keeps_going(
    runner: CliRunner, jpeg_dir: Path, tmp_path: Path, corrupt_bytes: bytes
) -> None:
    (jpeg_dir / "broken.jpg").write_bytes(corrupt_bytes)
    archive = tmp_path / "out.zip"

    result = runner.invoke(
        cli,
        ["convert", str(jpeg_dir), "-o", str(archive), "--delay", "0", "--folder", "scans"],
    )

    assert result.exit_code == 0, result.output
    assert "Failed Items" in result.output
    assert "broken.jpg" in result.output
    with zipfile.ZipFile(archive) as bundle:
        names = bundle.namelist()
    assert len(names) == 3
    assert all(name.startswith("scans/") for name in names)


def test_convert_fails_when_nothing_converts(runner: CliRunner, tmp_path: Path, corrupt_bytes: bytes) -> None:
    broken = tmp_path / "broken.jpg"
    broken.write_bytes(corrupt_bytes)
    archive = tmp_path / "out.zip"

    result = runner.invoke(cli, ["convert", str(broken), "-o", str(archive)])

    assert result.exit_code == 1
    assert "No images were converted" in result.output
    assert not archive.exists()


def test_convert_without_jpegs(runner: CliRunner, tmp_path: Path) -> None:
    (tmp_path / "readme.txt").write_text("hello")

    result = runner.invoke(cli, ["convert", str(tmp_path)])

    assert result.exit_code == 1
    assert "No JPEG files found" in result.output


def test_convert_to_directory_without_archive(runner: CliRunner, jpeg_dir: Path, tmp_path: Path) -> None:
    output_dir = tmp_path / "pdfs"

    with runner.isolated_filesystem(temp_dir=tmp_path):
        result = runner.invoke(
            cli,
            ["convert", str(jpeg_dir), "--output-dir", str(output_dir), "--no-archive", "-c", "2", "--delay", "0"],
        )
        assert not Path("converted_pdfs.zip").exists()

    assert result.exit_code == 0, result.output
    assert sorted(path.name for path in output_dir.iterdir()) == ["photo_0.pdf", "photo_1.pdf", "photo_2.pdf"]


def test_info(runner: CliRunner, jpeg_file_factory: Callable[..., Path]) -> None:
    path = jpeg_file_factory("wide.jpg", 90, 30)

    result = runner.invoke(cli, ["info", str(path)])

    assert result.exit_code == 0, result.output
    assert "90 x 30 px" in result.output
    assert "landscape" in result.output
    assert "JPEG" in result.output


def test_info_reports_multi_picture_file_as_lossless(runner: CliRunner, tmp_path: Path, mpo_bytes: bytes) -> None:
    path = tmp_path / "camera.jpg"
    path.write_bytes(mpo_bytes)

    result = runner.invoke(cli, ["info", str(path)])

    assert result.exit_code == 0, result.output
    assert "MPO" in result.output
    lossless = [line for line in result.output.splitlines() if "Lossless PDF" in line]
    assert lossless and "Yes" in lossless[0]


def test_info_rejects_corrupt_file(runner: CliRunner, tmp_path: Path, corrupt_bytes: bytes) -> None:
    path = tmp_path / "broken.jpg"
    path.write_bytes(corrupt_bytes)

    result = runner.invoke(cli, ["info", str(path)])

    assert result.exit_code == 1
    assert "Error" in result.output


def test_verify_identical(runner: CliRunner, jpeg_file_factory: Callable[..., Path], tmp_path: Path) -> None:
    image = jpeg_file_factory("photo.jpg")
    document = tmp_path / "photo.pdf"
    document.write_bytes(convert_image(image.read_bytes(), image.name).data)

    result = runner.invoke(cli, ["verify", str(image), str(document)])

    assert result.exit_code == 0, result.output
    assert "Identical" in result.output


def test_verify_mismatch(runner: CliRunner, jpeg_file_factory: Callable[..., Path], tmp_path: Path) -> None:
    image = jpeg_file_factory("photo.jpg")
    other = jpeg_file_factory("other.jpg", 10, 10)
    document = tmp_path / "other.pdf"
    document.write_bytes(convert_image(other.read_bytes(), other.name).data)

    result = runner.invoke(cli, ["verify", str(image), str(document)])

    assert result.exit_code == 1
    assert "Mismatch" in result.output

"""
Command-line interface for jpegpdf.
"""

import asyncio
import logging
import os
import sys

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeRemainingColumn, TaskProgressColumn
from rich.table import Table

from jpegpdf import __version__
from jpegpdf.backends.pypdf_backend import COLOR_SPACES
from jpegpdf.config import BatchConfig
from jpegpdf.converter import EMBEDDABLE_FORMATS, extract_embedded_image
from jpegpdf.exceptions import JpegPdfError
from jpegpdf.packager import Packager
from jpegpdf.probe import probe_image
from jpegpdf.scheduler import Scheduler
from jpegpdf.stats import BatchStats
from jpegpdf.store import ItemStore
from jpegpdf.types import ItemStatus
from jpegpdf.utils import collect_jpegs, format_file_size, set_log_level

console = Console()


@click.group()
@click.version_option(version=__version__)
def cli():
    """
    jpegpdf - Convert JPEG images into PDFs without re-encoding them.
    """
    pass


def _run_with_progress(store, config, description):
    """Run one scheduler pass over the eligible items of *store*."""
    scheduler = Scheduler(config=config)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeRemainingColumn(),
        console=console
    ) as progress:
        task = progress.add_task(description, total=len(store.eligible()))

        def on_event(event):
            progress.advance(task)

        return asyncio.run(scheduler.process(store, on_event=on_event))


def _print_summary(store: ItemStore, stats: BatchStats) -> None:
    counts = store.counts()

    summary = Table(title="Conversion Summary", show_header=False)
    summary.add_column("Property", style="cyan")
    summary.add_column("Value", style="green")
    summary.add_row("Items", str(len(store)))
    summary.add_row("Converted", str(counts[ItemStatus.DONE]))
    summary.add_row("Failed", str(counts[ItemStatus.FAILED]))
    if stats.elapsed is not None:
        summary.add_row("Last run", f"{stats.processed}/{stats.total} in {stats.elapsed:.2f}s")
    console.print(summary)

    failures = store.snapshot(ItemStatus.FAILED)
    if failures:
        table = Table(title="Failed Items")
        table.add_column("File", style="cyan")
        table.add_column("Error", style="red", no_wrap=True)
        table.add_column("Message")
        for item in failures:
            table.add_row(item.name, item.error_kind or "", item.error or "")
        console.print(table)


@cli.command(name="convert")
@click.argument('inputs', nargs=-1, required=True, type=click.Path(exists=True))
@click.option(
    '--output', '-o',
    default=None,
    help='Archive path (default: converted_pdfs.zip)',
    type=click.Path(dir_okay=False)
)
@click.option(
    '--output-dir', '-d',
    default=None,
    help='Also write each PDF into this directory',
    type=click.Path(file_okay=False)
)
@click.option(
    '--concurrency', '-c',
    default=None,
    help='Maximum number of conversions in flight (default: 5)',
    type=click.IntRange(min=1)
)
@click.option(
    '--delay',
    default=None,
    help='Pause in seconds between waves (default: 0.05)',
    type=click.FloatRange(min=0)
)
@click.option(
    '--timeout',
    default=None,
    help='Fail a single conversion after this many seconds',
    type=click.FloatRange(min=0, min_open=True)
)
@click.option(
    '--folder',
    default=None,
    help='Folder name inside the archive (default: converted_pdfs)',
    type=str
)
@click.option('--recursive', '-r', is_flag=True, help='Search directories recursively')
@click.option(
    '--retry-failed',
    default=0,
    help='Re-submit failed items up to this many times',
    type=click.IntRange(min=0)
)
@click.option('--no-archive', is_flag=True, help='Do not write the ZIP archive')
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging')
def convert(inputs, output, output_dir, concurrency, delay, timeout, folder, recursive, retry_failed, no_archive,
            verbose):
    """
    Convert JPEG files or directories of JPEGs into single-page PDFs.

    Examples:

        jpegpdf convert photos/

        jpegpdf convert a.jpg b.jpg -o scans.zip

        jpegpdf convert photos/ -r -c 8 --output-dir pdfs --no-archive
    """
    set_log_level(logging.DEBUG if verbose else logging.WARNING)
    try:
        config = BatchConfig().with_updates(
            concurrency=concurrency,
            wave_delay=delay,
            item_timeout=timeout,
            archive_folder=folder,
        )

        paths = collect_jpegs(inputs, recursive=recursive)
        if not paths:
            console.print("[bold red]✗ Error:[/bold red] No JPEG files found")
            sys.exit(1)

        store = ItemStore(paths)
        console.print(f"\n[bold cyan]Converting {len(paths)} image(s)...[/bold cyan]")
        stats = _run_with_progress(store, config, "Converting")

        for attempt in range(1, retry_failed + 1):
            if not store.eligible():
                break
            console.print(f"\n[bold yellow]Retrying {len(store.eligible())} failed item(s) ({attempt}/{retry_failed})...[/bold yellow]")
            stats = _run_with_progress(store, config, f"Retry {attempt}")

        console.print()
        _print_summary(store, stats)

        converted = store.snapshot(ItemStatus.DONE)
        if not converted:
            console.print("\n[bold red]✗ Error:[/bold red] No images were converted")
            sys.exit(1)

        packager = Packager(config.archive_folder)
        if output_dir:
            written = packager.write_documents(converted, output_dir)
            console.print(f"\n[bold green]✓ Wrote {len(written)} PDF(s)[/bold green]")
            console.print(f"[dim]Output directory: {os.path.abspath(output_dir)}[/dim]")

        if not no_archive:
            archive_path = packager.write(converted, output or config.archive_name)
            console.print(
                f"\n[bold green]✓ Archive created with {len(converted)} PDF(s)[/bold green] "
                f"[dim]({format_file_size(archive_path.stat().st_size)})[/dim]"
            )
            console.print(f"[dim]Archive: {archive_path}[/dim]")

        console.print()

    except FileNotFoundError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)
    except JpegPdfError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e.message}")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)


@cli.command(name="info")
@click.argument('input_image', type=click.Path(exists=True, dir_okay=False))
def show_info(input_image):
    """
    Display header information about a JPEG file.

    Example:

        jpegpdf info photo.jpg
    """
    try:
        with open(input_image, 'rb') as handle:
            data = handle.read()
        info = probe_image(data)

        embeddable = info.format in EMBEDDABLE_FORMATS and info.mode in COLOR_SPACES

        table = Table(title=f"Image Information: {os.path.basename(input_image)}")
        table.add_column("Property", style="cyan", no_wrap=True)
        table.add_column("Value", style="green")

        table.add_row("File Path", os.path.abspath(input_image))
        table.add_row("File Size", format_file_size(len(data)))
        table.add_row("Format", info.format or "unknown")
        table.add_row("Dimensions", f"{info.width} x {info.height} px")
        table.add_row("Colour Mode", info.mode)
        table.add_row("Orientation", info.orientation.value)
        table.add_row("Progressive", "Yes" if info.progressive else "No")
        table.add_row("Lossless PDF", "Yes" if embeddable else "No")

        console.print()
        console.print(table)
        console.print()

    except JpegPdfError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e.message}")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)


@cli.command(name="verify")
@click.argument('input_image', type=click.Path(exists=True, dir_okay=False))
@click.argument('input_pdf', type=click.Path(exists=True, dir_okay=False))
def verify(input_image, input_pdf):
    """
    Check that a PDF embeds a JPEG byte for byte.

    Example:

        jpegpdf verify photo.jpg photo.pdf
    """
    try:
        with open(input_image, 'rb') as handle:
            original = handle.read()
        with open(input_pdf, 'rb') as handle:
            embedded = extract_embedded_image(handle.read())

        if embedded != original:
            console.print(
                f"[bold red]✗ Mismatch:[/bold red] embedded stream is {len(embedded)} bytes, "
                f"source is {len(original)} bytes"
            )
            sys.exit(1)

        console.print(f"[bold green]✓ Identical:[/bold green] {len(original)} bytes embedded unchanged")

    except JpegPdfError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e.message}")
        sys.exit(1)
    except OSError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)


if __name__ == '__main__':
    cli()

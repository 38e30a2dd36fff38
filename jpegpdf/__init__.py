"""
jpegpdf - Lossless batch conversion of JPEG images into PDF documents.

Every image becomes a single-page PDF whose page is exactly the size of
the image, with the original JPEG stream embedded byte for byte. Batches
are converted in waves of bounded concurrency and the results can be
bundled into one ZIP archive.

Quick Start:
    >>> from jpegpdf import convert_batch, Packager
    >>> store, stats = convert_batch(['a.jpg', 'b.jpg'])
    >>> Packager().write(store.snapshot(), 'converted_pdfs.zip')

Main Classes:
    - ItemStore: Ordered queue of items and their status state machine
    - Scheduler: Runs conversions in concurrency-bounded waves
    - Converter: Converts one JPEG into a one-page PDF
    - StatsAggregator: Counts successes and failures of a run
    - Packager: Builds the archive of converted documents

Exceptions:
    - JpegPdfError: Base exception
    - ProbeError: Source is not a decodable image
    - EncodingError: Image cannot be embedded without re-encoding
    - ArchiveError: Archive cannot be built

For CLI usage, use the 'jpegpdf' command after installation.
"""

# Core classes
from jpegpdf.config import BatchConfig
from jpegpdf.converter import Converter, convert_image, extract_embedded_image
from jpegpdf.packager import Packager, package_items
from jpegpdf.scheduler import Scheduler, convert_batch
from jpegpdf.stats import BatchStats, StatsAggregator
from jpegpdf.store import ItemStore

# Data types
from jpegpdf.types import ConvertedPage, ImageInfo, ItemSettled, ItemSnapshot, ItemStatus, Orientation

# Exceptions
from jpegpdf.exceptions import (
    JpegPdfError,
    ProbeError,
    EncodingError,
    ConversionTimeoutError,
    RunAbortedError,
    ArchiveError,
    InvalidTransitionError,
    ItemNotFoundError,
    ItemBusyError,
    ConfigurationError,
)

# Utility functions
from jpegpdf.probe import probe_image
from jpegpdf.utils import collect_jpegs, document_name, format_file_size

__version__ = "1.0.0"
__license__ = "MIT"

__all__ = [
    # Main classes
    "BatchConfig",
    "Converter",
    "ItemStore",
    "Scheduler",
    "StatsAggregator",
    "Packager",
    # Data types
    "BatchStats",
    "ConvertedPage",
    "ImageInfo",
    "ItemSettled",
    "ItemSnapshot",
    "ItemStatus",
    "Orientation",
    # Exceptions
    "JpegPdfError",
    "ProbeError",
    "EncodingError",
    "ConversionTimeoutError",
    "RunAbortedError",
    "ArchiveError",
    "InvalidTransitionError",
    "ItemNotFoundError",
    "ItemBusyError",
    "ConfigurationError",
    # Functions
    "convert_batch",
    "convert_image",
    "extract_embedded_image",
    "package_items",
    "probe_image",
    "collect_jpegs",
    "document_name",
    "format_file_size",
    # Version info
    "__version__",
]

"""Batch configuration shared by the scheduler, packager and CLI."""

from __future__ import annotations

import dataclasses
from typing import Any, Optional

from .exceptions import ConfigurationError

DEFAULT_CONCURRENCY = 5
DEFAULT_WAVE_DELAY = 0.05
DEFAULT_ARCHIVE_FOLDER = "converted_pdfs"
DEFAULT_ARCHIVE_NAME = "converted_pdfs.zip"


@dataclasses.dataclass(slots=True, frozen=True)
class BatchConfig:
    """Tunable knobs of a conversion run.

    ``concurrency`` bounds how many conversions are in flight at once and
    therefore peak memory. ``wave_delay`` is the pause in seconds between
    waves. ``item_timeout`` caps a single conversion; ``None`` waits
    forever.
    """

    concurrency: int = DEFAULT_CONCURRENCY
    wave_delay: float = DEFAULT_WAVE_DELAY
    item_timeout: Optional[float] = None
    archive_folder: str = DEFAULT_ARCHIVE_FOLDER
    archive_name: str = DEFAULT_ARCHIVE_NAME

    def __post_init__(self) -> None:
        if isinstance(self.concurrency, bool) or not isinstance(self.concurrency, int):
            raise ConfigurationError(f"concurrency must be an integer, got {self.concurrency!r}")
        if self.concurrency < 1:
            raise ConfigurationError(f"concurrency must be at least 1, got {self.concurrency}")
        if self.wave_delay < 0:
            raise ConfigurationError(f"wave_delay must not be negative, got {self.wave_delay}")
        if self.item_timeout is not None and self.item_timeout <= 0:
            raise ConfigurationError(f"item_timeout must be positive, got {self.item_timeout}")
        folder = self.archive_folder.strip("/")
        if not folder or "/" in folder or "\\" in folder or folder in (".", ".."):
            raise ConfigurationError(f"archive_folder must be a single folder name, got {self.archive_folder!r}")
        if not self.archive_name:
            raise ConfigurationError("archive_name must not be empty")

    def with_updates(self, **changes: Any) -> "BatchConfig":
        """Return a copy with every non-``None`` value in *changes* applied."""

        updates = {key: value for key, value in changes.items() if value is not None}
        return dataclasses.replace(self, **updates)


__all__ = [
    "BatchConfig",
    "DEFAULT_CONCURRENCY",
    "DEFAULT_WAVE_DELAY",
    "DEFAULT_ARCHIVE_FOLDER",
    "DEFAULT_ARCHIVE_NAME",
]

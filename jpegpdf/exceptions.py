"""
Custom exceptions for jpegpdf.

This module defines all custom exceptions used throughout the library.
Per-item conversion errors (:class:`ProbeError`, :class:`EncodingError`,
:class:`ConversionTimeoutError`) are recorded on the failing item by the
scheduler; :class:`ArchiveError` is raised to the caller of the packager.
"""


class JpegPdfError(Exception):
    """Base exception for all jpegpdf errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def default_message(self) -> str:
        return "An unknown jpegpdf error occurred."

    @property
    def kind(self) -> str:
        return type(self).__name__


class ProbeError(JpegPdfError):
    """Raised when source bytes cannot be decoded as an image."""

    @property
    def default_message(self) -> str:
        return "Source is not a decodable image; dimensions unavailable."


class EncodingError(JpegPdfError):
    """Raised when an image cannot be embedded without re-encoding."""

    @property
    def default_message(self) -> str:
        return "Image stream cannot be embedded into a PDF without alteration."


class ConversionTimeoutError(JpegPdfError):
    """Raised when a single conversion exceeds the configured timeout."""

    @property
    def default_message(self) -> str:
        return "Conversion timed out."


class RunAbortedError(JpegPdfError):
    """Recorded on items left queued when a run is closed early."""

    @property
    def default_message(self) -> str:
        return "Run was stopped before this item was converted."


class ArchiveError(JpegPdfError):
    """Raised when the archive of converted documents cannot be built."""

    @property
    def default_message(self) -> str:
        return "Unable to build archive of converted documents."


class InvalidTransitionError(JpegPdfError):
    """Raised when an item is moved along a transition the state machine forbids."""

    @property
    def default_message(self) -> str:
        return "Invalid item status transition."


class ItemNotFoundError(JpegPdfError, KeyError):
    """Raised when an item id is not present in the store."""

    @property
    def default_message(self) -> str:
        return "Item not found in store."

    def __str__(self) -> str:
        return self.message


class ItemBusyError(JpegPdfError):
    """Raised when removing an item that is queued or being converted."""

    @property
    def default_message(self) -> str:
        return "Item is queued or in progress and cannot be removed."


class ConfigurationError(JpegPdfError, ValueError):
    """Raised when batch configuration values are invalid."""

    @property
    def default_message(self) -> str:
        return "Invalid batch configuration."

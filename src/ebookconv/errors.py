"""ebookconv exception hierarchy.

Keep this module small and dependency-free: it is imported broadly across the
project and by tests.
"""


class EbookConvError(Exception):
    """Base exception for all ebookconv errors."""


class InvalidInputError(EbookConvError):
    """Raised when conversion content is empty or not text."""


class UnsupportedConversionError(EbookConvError):
    """Raised when no converter is registered for a source/target pair."""

    def __init__(self, source_format: str, target_format: str) -> None:
        super().__init__(f"Unsupported conversion: {source_format} -> {target_format}")
        self.source_format = source_format
        self.target_format = target_format


class EbookConvConfigError(EbookConvError):
    """Raised for invalid user configuration."""

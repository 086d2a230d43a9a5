from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from ebookconv.dispatch import convert, supported_conversions
from ebookconv.errors import (
    EbookConvConfigError,
    EbookConvError,
    InvalidInputError,
    UnsupportedConversionError,
)
from ebookconv.markup import markup_to_hypertext
from ebookconv.metadata import Metadata
from ebookconv.record import to_structured_record
from ebookconv.render import to_hypertext
from ebookconv.sanitize import sanitize
from ebookconv.segmenter import Section, segment


def _package_version() -> str:
    try:
        return version("ebookconv")
    except PackageNotFoundError:
        # Running from a source checkout, or otherwise not installed.
        return "0.0.0"


__version__ = _package_version()

__all__ = [
    "EbookConvConfigError",
    "EbookConvError",
    "InvalidInputError",
    "Metadata",
    "Section",
    "UnsupportedConversionError",
    "__version__",
    "convert",
    "markup_to_hypertext",
    "sanitize",
    "segment",
    "supported_conversions",
    "to_hypertext",
    "to_structured_record",
]

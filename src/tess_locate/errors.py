"""Local error taxonomy for tess-locate.

Per-record footprint parse failures are recoverable: the index builder skips
the record and keeps an ``ErrorEnvelope`` for diagnostics. Everything else
(index build failure, unusable footprint cache, malformed target input) is
fatal to the caller.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorType(str, Enum):
    INVALID_TAG = "INVALID_TAG"
    ODD_COORDINATE_COUNT = "ODD_COORDINATE_COUNT"
    INVALID_COORDINATE = "INVALID_COORDINATE"
    DEGENERATE_RING = "DEGENERATE_RING"
    INDEX_BUILD_FAILURE = "INDEX_BUILD_FAILURE"
    CACHE_UNAVAILABLE = "CACHE_UNAVAILABLE"
    INVALID_TARGET = "INVALID_TARGET"


class ErrorEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    type: ErrorType
    message: str
    context: dict[str, Any] = Field(default_factory=dict)


def make_error(error_type: ErrorType, message: str, **context: Any) -> ErrorEnvelope:
    return ErrorEnvelope(type=error_type, message=message, context=dict(context))


class TessLocateError(Exception):
    """Base class for all tess-locate errors."""

    error_type: ErrorType = ErrorType.INDEX_BUILD_FAILURE

    def to_envelope(self, **context: Any) -> ErrorEnvelope:
        return make_error(self.error_type, str(self), **context)


class FootprintParseError(TessLocateError, ValueError):
    """A single footprint region string could not be turned into a polygon.

    Attributes:
        region: The offending region text, as given.
    """

    def __init__(self, message: str, region: str) -> None:
        self.region = region
        super().__init__(message)


class InvalidTagError(FootprintParseError):
    error_type = ErrorType.INVALID_TAG


class OddCoordinateCountError(FootprintParseError):
    error_type = ErrorType.ODD_COORDINATE_COUNT


class InvalidCoordinateError(FootprintParseError):
    error_type = ErrorType.INVALID_COORDINATE


class DegenerateRingError(FootprintParseError):
    error_type = ErrorType.DEGENERATE_RING


class IndexBuildError(TessLocateError):
    """Raised when the footprint index cannot be built at all."""

    error_type = ErrorType.INDEX_BUILD_FAILURE


class FootprintCacheError(TessLocateError):
    """Raised when the footprint cache file cannot be fetched or decoded."""

    error_type = ErrorType.CACHE_UNAVAILABLE


class TargetInputError(TessLocateError, ValueError):
    """Raised for malformed target rows.

    Attributes:
        row: 1-based data row number in the input file, if known.
    """

    error_type = ErrorType.INVALID_TARGET

    def __init__(self, message: str, row: int | None = None) -> None:
        self.row = row
        super().__init__(message if row is None else f"row {row}: {message}")

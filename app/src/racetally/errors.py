"""Exception types raised inside the analysis core."""
from __future__ import annotations


class RaceTallyError(Exception):
    """Base class for failures that are reported back as structured results."""

    code = "error"


class AnalyzerBusyError(RaceTallyError):
    code = "busy"

    def __init__(self, message: str = "Another screenshot is being analyzed; try again shortly.") -> None:
        super().__init__(message)


class NotAResultScreenError(RaceTallyError):
    """The vision model reported that the image is not a race result screen."""

    code = "not_result_screen"


class ResponseParseError(RaceTallyError):
    """The vision model answered with something other than the expected JSON."""

    code = "parse_error"


class ExtractionError(RaceTallyError):
    """Transport or API failure while calling the vision model."""

    code = "transport"


class ExtractorConfigError(RaceTallyError):
    code = "config"


class ImageLoaderError(RaceTallyError, ValueError):
    """Raised when the loader encounters invalid input."""

    code = "invalid_image"

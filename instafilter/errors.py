"""Exception classes for decoding, filtering and rendering."""


class InstafilterError(Exception):
    """Base exception for all errors raised by instafilter."""

    pass


class InvalidImageBufferError(InstafilterError, ValueError):
    """Raised when an ImageBuffer is constructed with inconsistent data."""

    pass


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


class DecodeError(InstafilterError, ValueError):
    """Raised when encoded image bytes can not be turned into an ImageBuffer."""

    pass


class CorruptImageError(DecodeError):
    """Raised for recognized but damaged, truncated or oversized image data."""

    pass


class UnsupportedFormatError(DecodeError):
    """Raised when the encoding of the image data is not recognized."""

    pass


# ---------------------------------------------------------------------------
# Registry and filter configuration
# ---------------------------------------------------------------------------


class FilterNotFoundError(InstafilterError, LookupError):
    """Raised when no filter is registered under the requested name."""

    def __init__(self, name: str):
        super().__init__(f"Filter not available: {name}")
        self.name = name


class FilterError(InstafilterError):
    """Base exception for misuse of a configured filter instance."""

    pass


class NoSourceBoundError(FilterError):
    """Raised when an output is requested before a source image was bound."""

    pass


class UnsupportedParameterError(FilterError, KeyError):
    """Raised when writing a parameter key the filter does not declare."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class ParameterRangeError(FilterError, ValueError):
    """Raised when an explicit parameter value is outside its declared range."""

    pass


class IntensityRangeError(FilterError, ValueError):
    """Raised when a normalized intensity is not within [0, 1]."""

    pass


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class RenderError(InstafilterError):
    """Base exception for failures while materializing a recipe."""

    pass


class ExtentUnresolvableError(RenderError):
    """Raised when a recipe has an infinite or empty extent."""

    pass


class RenderContextBusyError(RenderError):
    """Raised when a render context is entered by a second concurrent render."""

    pass


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class PipelineError(InstafilterError):
    """Base exception for everything Pipeline.apply can raise."""

    pass


class UnknownFilterError(PipelineError):
    """Raised when the requested filter name is not registered."""

    def __init__(self, name: str):
        super().__init__(f"Filter not available: {name}")
        self.name = name


class InvalidIntensityError(PipelineError, ValueError):
    """Raised when the requested intensity is not within [0, 1]."""

    pass


class InvalidSourceError(PipelineError, TypeError):
    """Raised when the source passed to a pipeline is not an ImageBuffer."""

    pass


class InvalidStepError(PipelineError, ValueError):
    """Raised when a chain step is not a (filter name, intensity) pair."""

    pass


class SourceNotBoundError(PipelineError):
    """Raised when a filter instance reports that no source was bound."""

    pass


class RenderFailedError(PipelineError):
    """Raised when the filtered image could not be rendered."""

    def __init__(self, reason: str):
        super().__init__(f"Unable to render: {reason}")
        self.reason = reason


class PipelineCancelledError(PipelineError):
    """Raised when an apply call was cancelled before rendering began."""

    pass

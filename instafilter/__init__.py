"""
Instafilter - Apply runtime-selectable filters to decoded images
"""

from .image import ImageBuffer, decode, encode, SUPPORTED_ENCODE_FILETYPES
from .pixel_format import PixelFormat
from .extent import Extent
from .config import Settings, settings
from .errors import (
    InstafilterError,
    InvalidImageBufferError,
    DecodeError,
    CorruptImageError,
    UnsupportedFormatError,
    FilterNotFoundError,
    FilterError,
    NoSourceBoundError,
    UnsupportedParameterError,
    ParameterRangeError,
    IntensityRangeError,
    RenderError,
    ExtentUnresolvableError,
    RenderContextBusyError,
    PipelineError,
    UnknownFilterError,
    InvalidIntensityError,
    InvalidSourceError,
    InvalidStepError,
    SourceNotBoundError,
    RenderFailedError,
    PipelineCancelledError,
)
from .filters import (
    ParameterKey,
    FilterDescriptor,
    FilterRegistry,
    FilterInstance,
    RenderContext,
    Pipeline,
    PipelineResult,
    CancellationToken,
    PipelineWorker,
    create_default_registry,
)

__version__ = "0.1.0"

__all__ = [
    # Images
    "ImageBuffer",
    "decode",
    "encode",
    "SUPPORTED_ENCODE_FILETYPES",
    "PixelFormat",
    "Extent",
    # Configuration
    "Settings",
    "settings",
    # Filters
    "ParameterKey",
    "FilterDescriptor",
    "FilterRegistry",
    "FilterInstance",
    "RenderContext",
    "Pipeline",
    "PipelineResult",
    "CancellationToken",
    "PipelineWorker",
    "create_default_registry",
    # Errors
    "InstafilterError",
    "InvalidImageBufferError",
    "DecodeError",
    "CorruptImageError",
    "UnsupportedFormatError",
    "FilterNotFoundError",
    "FilterError",
    "NoSourceBoundError",
    "UnsupportedParameterError",
    "ParameterRangeError",
    "IntensityRangeError",
    "RenderError",
    "ExtentUnresolvableError",
    "RenderContextBusyError",
    "PipelineError",
    "UnknownFilterError",
    "InvalidIntensityError",
    "InvalidSourceError",
    "InvalidStepError",
    "SourceNotBoundError",
    "RenderFailedError",
    "PipelineCancelledError",
]

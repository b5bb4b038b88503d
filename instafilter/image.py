"""
Implements the class :class:`.ImageBuffer`, instafilter's immutable container
for decoded RGBA8 pixel data, and the :func:`decode` / :func:`encode`
functions converting between encoded bytes and buffers.

An ImageBuffer can be viewed in three representations which can not be used
interchangeably:

- as opaque platform bitmap (a PIL image) via :meth:`ImageBuffer.to_pil`
- as flat pixel array (a numpy array) via :meth:`ImageBuffer.to_array`
- as lazy recipe via :func:`instafilter.filters.render.to_recipe`
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field

import PIL.Image
import filetype
import numpy as np

from .config import Settings, settings as default_settings
from .errors import (
    CorruptImageError,
    InvalidImageBufferError,
    UnsupportedFormatError,
)
from .extent import Extent
from .pixel_format import PixelFormat

logger = logging.getLogger(__name__)

SUPPORTED_DECODE_MIME_TYPES = {
    "image/png",
    "image/jpeg",
    "image/gif",
    "image/bmp",
    "image/webp",
    "image/tiff",
}
"MIME types decode() accepts"

SUPPORTED_ENCODE_FILETYPES = ["png", "webp", "bmp", "jpeg"]
"List of file types encode() can write"


@dataclass(frozen=True)
class ImageBuffer:
    """
    An immutable, decoded RGBA8 pixel image.

    The pixel data is stored row by row, four bytes per pixel. The length of
    :attr:`data` always matches ``width * height * 4``, a mismatch is
    rejected at construction time.

    Two buffers are equal if their size, pixel format and every pixel match.
    """

    width: int
    "The image's width in pixels"
    height: int
    "The image's height in pixels"
    data: bytes = field(repr=False)
    "The raw pixel data"
    pixel_format: PixelFormat = PixelFormat.RGBA8
    "The pixel format, always RGBA8"

    def __post_init__(self):
        if not isinstance(self.width, int) or not isinstance(self.height, int):
            raise InvalidImageBufferError("Width and height have to be integers")
        if self.width <= 0 or self.height <= 0:
            raise InvalidImageBufferError(
                f"Invalid image size {self.width}x{self.height}"
            )
        if self.pixel_format != PixelFormat.RGBA8:
            raise InvalidImageBufferError(f"Unsupported pixel format {self.pixel_format}")
        if isinstance(self.data, (bytearray, memoryview)):
            object.__setattr__(self, "data", bytes(self.data))
        if not isinstance(self.data, bytes):
            raise InvalidImageBufferError("Pixel data has to be a bytes object")
        expected = self.width * self.height * self.pixel_format.bytes_per_pixel
        if len(self.data) != expected:
            raise InvalidImageBufferError(
                f"Pixel data has {len(self.data)} bytes, "
                f"expected {expected} for {self.width}x{self.height} RGBA8"
            )

    @property
    def size(self) -> tuple[int, int]:
        """
        Returns the image's size in pixels

        :return: The size as tuple (width, height)
        """
        return self.width, self.height

    @property
    def extent(self) -> Extent:
        """
        Returns the region the image covers

        :return: The extent, always starting at the origin
        """
        return Extent(0, 0, self.width, self.height)

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> ImageBuffer:
        """
        Creates a buffer from a numpy array

        :param pixels: A uint8 array of shape (H, W), (H, W, 3) or (H, W, 4).
            Gray and RGB data is expanded to RGBA with an opaque alpha channel.
        :return: The new buffer
        """
        if not isinstance(pixels, np.ndarray):
            raise InvalidImageBufferError("Pixel source has to be a numpy array")
        if pixels.dtype != np.uint8:
            raise InvalidImageBufferError(f"Expected uint8 pixels, got {pixels.dtype}")
        if pixels.ndim == 2:
            pixels = np.stack([pixels, pixels, pixels], axis=-1)
        if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
            raise InvalidImageBufferError(f"Unsupported array shape {pixels.shape}")
        if pixels.shape[2] == 3:
            alpha = np.full(pixels.shape[:2] + (1,), 255, dtype=np.uint8)
            pixels = np.concatenate([pixels, alpha], axis=-1)
        height, width = pixels.shape[:2]
        return cls(width, height, np.ascontiguousarray(pixels).tobytes())

    @classmethod
    def from_pil(cls, image: PIL.Image.Image) -> ImageBuffer:
        """
        Creates a buffer from a PIL image of any mode

        16-bit grayscale images (modes ``I;16*`` and ``I``) are scaled down to
        8 bits, a plain mode conversion would clip them instead.

        :param image: The PIL image
        :return: The new buffer
        """
        if image.mode == "I" or image.mode.startswith("I;16"):
            wide = np.clip(np.asarray(image).astype(np.int64), 0, 65535)
            return cls.from_array(((wide * 255 + 32767) // 65535).astype(np.uint8))
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls(image.width, image.height, image.tobytes())

    @classmethod
    def solid(
        cls,
        width: int,
        height: int,
        color: tuple[int, int, int] | tuple[int, int, int, int] = (0, 0, 0, 255),
    ) -> ImageBuffer:
        """
        Creates a buffer filled with a single color

        :param width: The width in pixels
        :param height: The height in pixels
        :param color: The RGB or RGBA color, 0..255 per channel
        :return: The new buffer
        """
        if len(color) == 3:
            color = (*color, 255)
        if len(color) != 4 or any(not 0 <= c <= 255 for c in color):
            raise InvalidImageBufferError(f"Invalid color {color}")
        if width <= 0 or height <= 0:
            raise InvalidImageBufferError(f"Invalid image size {width}x{height}")
        return cls(width, height, bytes(color) * (width * height))

    def to_array(self) -> np.ndarray:
        """
        Returns the pixels as read-only numpy array without copying them

        :return: A uint8 array of shape (height, width, 4)
        """
        return np.frombuffer(self.data, dtype=np.uint8).reshape(
            self.height, self.width, 4
        )

    def to_pil(self) -> PIL.Image.Image:
        """
        Converts the buffer to a new PIL image

        :return: The PIL image in RGBA mode
        """
        return PIL.Image.frombytes(self.pixel_format.to_pil(), self.size, self.data)

    def encode(self, filetype: str | None = None, quality: int = 90) -> bytes:
        """
        Compresses the image. See :func:`encode`.
        """
        return encode(self, filetype, quality=quality)

    def __str__(self):
        return f"ImageBuffer ({self.width}x{self.height} {self.pixel_format.value})"


def decode(raw: bytes, settings: Settings | None = None) -> ImageBuffer:
    """
    Decodes encoded image data into an RGBA8 buffer

    :param raw: The encoded bytes, e.g. the content of a PNG or JPEG file
    :param settings: The settings to use, the module defaults if omitted
    :return: The decoded buffer

    Raises :class:`~instafilter.errors.UnsupportedFormatError` if the encoding
    is not recognized and :class:`~instafilter.errors.CorruptImageError` if
    the data is recognized but can not be parsed.
    """
    settings = settings or default_settings
    if isinstance(raw, (bytearray, memoryview)):
        raw = bytes(raw)
    if not isinstance(raw, bytes):
        raise UnsupportedFormatError(f"Expected bytes, got {type(raw).__name__}")
    if len(raw) == 0:
        raise CorruptImageError("Image data is empty")
    kind = filetype.guess(raw)
    if kind is None or kind.mime not in SUPPORTED_DECODE_MIME_TYPES:
        mime = kind.mime if kind is not None else "unknown"
        raise UnsupportedFormatError(f"Unsupported image encoding ({mime})")
    try:
        with PIL.Image.open(io.BytesIO(raw)) as pil_image:
            pixel_count = pil_image.width * pil_image.height
            if pixel_count <= 0:
                raise CorruptImageError("Image header declares an empty image")
            if pixel_count > settings.MAX_IMAGE_PIXELS:
                raise CorruptImageError(
                    f"Image of {pil_image.width}x{pil_image.height} pixels "
                    f"exceeds the limit of {settings.MAX_IMAGE_PIXELS} pixels"
                )
            pil_image.load()
            buffer = ImageBuffer.from_pil(pil_image)
    except CorruptImageError:
        raise
    except PIL.Image.DecompressionBombError as e:
        raise CorruptImageError(str(e)) from e
    except (PIL.UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise CorruptImageError(f"Invalid or damaged {kind.extension} data: {e}") from e
    logger.debug(f"Decoded {kind.mime} to {buffer}")
    return buffer


def encode(buffer: ImageBuffer, filetype: str | None = None, quality: int = 90) -> bytes:
    """
    Compresses the image and returns the compressed file's data

    :param buffer: The buffer to encode
    :param filetype: The output file type, "png", "webp", "bmp" or "jpeg"/"jpg".
        The configured default (png) if omitted.
    :param quality: The jpeg quality between 0 and 100
    :return: The encoded bytes

    PNG and WebP are stored lossless, so decoding them again yields a buffer
    equal to the input. JPEG has no alpha channel, transparent pixels are
    composed onto white.
    """
    filetype = (filetype or default_settings.DEFAULT_ENCODE_FORMAT).lstrip(".").lower()
    if filetype == "jpg":
        filetype = "jpeg"
    if filetype not in SUPPORTED_ENCODE_FILETYPES:
        raise UnsupportedFormatError(f"Can not encode to {filetype}")
    pil_image = buffer.to_pil()
    parameters = {}
    if filetype == "jpeg":
        if not 0 <= quality <= 100:
            raise ValueError(f"Invalid jpeg quality {quality}")
        background = PIL.Image.new("RGB", pil_image.size, (255, 255, 255))
        background.paste(pil_image, (0, 0), pil_image)
        pil_image = background
        parameters["quality"] = quality
    elif filetype == "webp":
        parameters["lossless"] = True
        parameters["exact"] = True  # Keep the color of fully transparent pixels
    output_stream = io.BytesIO()
    pil_image.save(output_stream, format=filetype, **parameters)
    return output_stream.getvalue()


__all__ = ["ImageBuffer", "decode", "encode", "SUPPORTED_ENCODE_FILETYPES"]

"""
Defines the pixel formats an :class:`~instafilter.image.ImageBuffer` can hold.
"""

from __future__ import annotations

from enum import Enum


class PixelFormat(Enum):
    """
    Enumeration of the supported pixel formats.

    Only 8-bit RGBA is supported, every decoded or rendered image is
    normalized to it.
    """

    RGBA8 = "RGBA8"
    "Red, green, blue and alpha, one byte per channel"

    @property
    def band_count(self) -> int:
        """
        Returns the number of channels per pixel

        :return: The channel count
        """
        return 4

    @property
    def bytes_per_pixel(self) -> int:
        """
        Returns the number of bytes a single pixel occupies

        :return: The byte count
        """
        return 4

    def to_pil(self) -> str:
        """
        Returns the matching PIL image mode

        :return: The PIL mode string
        """
        return "RGBA"

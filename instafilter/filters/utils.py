"""Conversion helpers shared by the filter kernels and the render context."""

from __future__ import annotations

from typing import Any, Mapping

import numpy as np

from .base import ParameterKey


def uint8_to_float(pixels: np.ndarray) -> np.ndarray:
    """Convert uint8 pixels to float32 in the range 0..1."""
    return pixels.astype(np.float32) / np.float32(255.0)


def float_to_uint8(pixels: np.ndarray) -> np.ndarray:
    """Convert float pixels in the range 0..1 to uint8, rounding to nearest."""
    return (np.clip(pixels, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)


def center_in_pixels(params: Mapping[ParameterKey, Any], pixels: np.ndarray) -> tuple[float, float]:
    """Resolve the normalized center parameter to pixel coordinates (x, y).

    Filters without a center parameter use the middle of the image.
    """
    height, width = pixels.shape[:2]
    cx, cy = params.get(ParameterKey.CENTER, (0.5, 0.5))
    return cx * width, cy * height


def with_alpha(rgb: np.ndarray, pixels: np.ndarray) -> np.ndarray:
    """Combine new color channels with the alpha channel of the input."""
    return np.concatenate([rgb, pixels[:, :, 3:4]], axis=-1).astype(np.float32)

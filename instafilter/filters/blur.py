# Instafilter Filters - Blur & Sharpen
"""
Blur, sharpen and edge filters.
"""

from __future__ import annotations

from typing import Any, Mapping

import numpy as np
from PIL import Image, ImageFilter
from skimage.filters import sobel

from .base import ExtentPolicy, ParameterKey, ParameterSpec, builtin_filter
from .utils import float_to_uint8, uint8_to_float, with_alpha


def _gaussian(pixels: np.ndarray, radius: float) -> np.ndarray:
    """Blur float RGBA pixels with Pillow's Gaussian blur."""
    pil_img = Image.fromarray(float_to_uint8(pixels))
    result = pil_img.filter(ImageFilter.GaussianBlur(radius=radius))
    return uint8_to_float(np.asarray(result))


@builtin_filter(
    'gaussian_blur',
    parameters=[
        ParameterSpec(ParameterKey.RADIUS, 10.0, 0.0, 200.0, 'Blur radius in pixels'),
    ],
    extent_policy=ExtentPolicy.INFINITE,
    identity_at_zero=True,
    category='blur',
    aliases=['blur', 'gaussianblur'],
)
def gaussian_blur(pixels: np.ndarray, params: Mapping[ParameterKey, Any]) -> np.ndarray:
    """Gaussian blur.

    The blurred output spreads past the input's edges, so the result has an
    infinite extent and has to be cropped before it can be rendered.

    radius: Blur radius in pixels
    """
    radius = params[ParameterKey.RADIUS]
    if radius <= 0.0:
        return pixels.copy()
    return _gaussian(pixels, radius)


@builtin_filter(
    'unsharp_mask',
    parameters=[
        ParameterSpec(ParameterKey.RADIUS, 2.5, 0.0, 200.0, 'Radius of the blurred mask'),
        ParameterSpec(ParameterKey.INTENSITY, 0.5, 0.0, 1.0, 'Amount of sharpening'),
    ],
    identity_at_zero=True,
    category='blur',
    aliases=['unsharpmask', 'sharpen'],
)
def unsharp_mask(pixels: np.ndarray, params: Mapping[ParameterKey, Any]) -> np.ndarray:
    """Sharpen by amplifying the difference to a blurred copy.

    radius: Radius of the blurred mask in pixels
    intensity: Amount of sharpening
    """
    radius = params[ParameterKey.RADIUS]
    intensity = params[ParameterKey.INTENSITY]
    if radius <= 0.0 or intensity == 0.0:
        return pixels.copy()
    rgb = pixels[:, :, :3]
    blurred = _gaussian(pixels, radius)[:, :, :3]
    return with_alpha(np.clip(rgb + (rgb - blurred) * intensity, 0.0, 1.0), pixels)


@builtin_filter(
    'edges',
    parameters=[
        ParameterSpec(ParameterKey.INTENSITY, 1.0, 0.0, 10.0, 'Edge brightness'),
    ],
    category='edge',
)
def edges(pixels: np.ndarray, params: Mapping[ParameterKey, Any]) -> np.ndarray:
    """Highlight edges, flat areas turn black.

    intensity: Brightness of the detected edges
    """
    intensity = params[ParameterKey.INTENSITY]
    magnitude = np.stack(
        [sobel(pixels[:, :, channel]) for channel in range(3)], axis=-1
    )
    return with_alpha(np.clip(magnitude * intensity * 4.0, 0.0, 1.0), pixels)

# Instafilter Filters - Color
"""
Color filters: Sepia, Vignette, Noir, Invert.

All kernels operate on float32 RGBA arrays of shape (H, W, 4) with values
in 0..1 and leave the alpha channel untouched.
"""

from __future__ import annotations

from typing import Any, Mapping

import numpy as np

from .base import ParameterKey, ParameterSpec, builtin_filter
from .utils import center_in_pixels, with_alpha

# Rows produce the output red, green and blue channels
SEPIA_MATRIX = np.array([
    [0.393, 0.769, 0.189],
    [0.349, 0.686, 0.168],
    [0.272, 0.534, 0.131],
], dtype=np.float32)

# Rec. 601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float32)


@builtin_filter(
    'sepia',
    parameters=[
        ParameterSpec(ParameterKey.INTENSITY, 1.0, 0.0, 1.0,
                      'Blend between the original (0) and full sepia (1)'),
    ],
    identity_at_zero=True,
    display_name='Sepia Tone',
    category='color',
    aliases=['sepia_tone', 'sepiatone'],
)
def sepia(pixels: np.ndarray, params: Mapping[ParameterKey, Any]) -> np.ndarray:
    """Warm brown tone of an old photograph.

    intensity: Blend factor, 0 keeps the original colors
    """
    intensity = params[ParameterKey.INTENSITY]
    rgb = pixels[:, :, :3]
    toned = np.clip(rgb @ SEPIA_MATRIX.T, 0.0, 1.0)
    return with_alpha(rgb + (toned - rgb) * intensity, pixels)


@builtin_filter(
    'vignette',
    parameters=[
        ParameterSpec(ParameterKey.INTENSITY, 0.0, -1.0, 1.0,
                      'Darkening at the corners, negative values brighten'),
        ParameterSpec(ParameterKey.RADIUS, 1.0, 0.0, 2.0,
                      'Reach of the effect towards the center'),
    ],
    # The radius is a relative reach (0..2), not a pixel count
    intensity_mapping={ParameterKey.INTENSITY: 1.0, ParameterKey.RADIUS: 2.0},
    identity_at_zero=True,
    category='color',
)
def vignette(pixels: np.ndarray, params: Mapping[ParameterKey, Any]) -> np.ndarray:
    """Darken the image towards its corners.

    intensity: Strength of the darkening
    radius: Larger values pull the darkened area closer to the center
    """
    intensity = params[ParameterKey.INTENSITY]
    radius = params[ParameterKey.RADIUS]
    if intensity == 0.0:
        return pixels.copy()
    height, width = pixels.shape[:2]
    cx, cy = center_in_pixels(params, pixels)
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float32)
    half_diagonal = max(np.hypot(width, height) / 2.0, 1.0)
    distance = np.clip(np.hypot(xs + 0.5 - cx, ys + 0.5 - cy) / half_diagonal, 0.0, 1.0)
    falloff = distance ** (2.0 / max(radius, 0.1))
    factor = np.clip(1.0 - intensity * falloff, 0.0, 2.0)
    return with_alpha(np.clip(pixels[:, :, :3] * factor[:, :, None], 0.0, 1.0), pixels)


@builtin_filter(
    'noir',
    display_name='Photo Effect Noir',
    category='color',
    aliases=['photo_effect_noir'],
)
def noir(pixels: np.ndarray, params: Mapping[ParameterKey, Any]) -> np.ndarray:
    """High contrast black and white."""
    luma = pixels[:, :, :3] @ LUMA_WEIGHTS
    luma = np.clip((luma - 0.5) * 1.25 + 0.5, 0.0, 1.0)
    return with_alpha(np.repeat(luma[:, :, None], 3, axis=2), pixels)


@builtin_filter(
    'invert',
    display_name='Color Invert',
    category='color',
    aliases=['color_invert'],
)
def invert(pixels: np.ndarray, params: Mapping[ParameterKey, Any]) -> np.ndarray:
    """Invert the color channels."""
    return with_alpha(1.0 - pixels[:, :, :3], pixels)

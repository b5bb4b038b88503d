# Instafilter Filters - Distortion
"""
Distortion filters: Twirl.
"""

from __future__ import annotations

import math
from typing import Any, Mapping

import numpy as np
from skimage.transform import swirl

from .base import ParameterKey, ParameterSpec, builtin_filter
from .utils import center_in_pixels

# Rotation at the twirl's center in radians
TWIRL_ANGLE = math.pi


@builtin_filter(
    'twirl_distortion',
    parameters=[
        ParameterSpec(ParameterKey.RADIUS, 300.0, 0.0, 2000.0,
                      'Distance from the center the rotation fades over'),
        ParameterSpec(ParameterKey.CENTER, (0.5, 0.5), description='Twirl center, normalized'),
    ],
    identity_at_zero=True,
    category='geometric',
    aliases=['twirl', 'swirl'],
)
def twirl_distortion(pixels: np.ndarray, params: Mapping[ParameterKey, Any]) -> np.ndarray:
    """Rotate pixels around a center, fading with the distance.

    Requires scikit-image.

    radius: Reach of the rotation in pixels, values below 1 keep the image unchanged
    center: Twirl center
    """
    radius = params[ParameterKey.RADIUS]
    if radius < 1.0:
        return pixels.copy()
    cx, cy = center_in_pixels(params, pixels)
    result = swirl(
        pixels,
        center=(cx, cy),
        strength=TWIRL_ANGLE,
        radius=radius,
        order=1,
        mode='edge',
        preserve_range=True,
    )
    return np.clip(result, 0.0, 1.0).astype(np.float32)

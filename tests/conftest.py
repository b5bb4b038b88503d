"""
Pytest fixtures for instafilter tests
"""

import numpy as np
import pytest

from instafilter import ImageBuffer, Pipeline, create_default_registry


@pytest.fixture
def gray_image() -> ImageBuffer:
    """A neutral mid gray 32x24 image."""
    return ImageBuffer.solid(32, 24, (128, 128, 128))


@pytest.fixture
def gradient_image() -> ImageBuffer:
    """A 64x48 image with a horizontal red and a vertical green gradient."""
    pixels = np.zeros((48, 64, 4), dtype=np.uint8)
    pixels[:, :, 0] = np.linspace(0, 255, 64, dtype=np.uint8)[None, :]
    pixels[:, :, 1] = np.linspace(0, 255, 48, dtype=np.uint8)[:, None]
    pixels[:, :, 2] = 96
    pixels[:, :, 3] = 255
    return ImageBuffer.from_array(pixels)


@pytest.fixture
def checker_image() -> ImageBuffer:
    """A 40x40 black and white checkerboard with 8 pixel squares."""
    ys, xs = np.mgrid[0:40, 0:40]
    value = (((xs // 8) + (ys // 8)) % 2 * 255).astype(np.uint8)
    return ImageBuffer.from_array(value)


@pytest.fixture
def registry():
    """A registry holding all built-in filters."""
    return create_default_registry()


@pytest.fixture
def pipeline(registry) -> Pipeline:
    """A pipeline using the built-in filters and the default settings."""
    return Pipeline(registry=registry)

# Instafilter Filters - Rendering
"""
RenderContext turns lazy recipes into concrete image buffers.

A context is expensive to keep warm (it caches float working copies of the
source images it rendered) and is not reentrant: a render entered while
another render on the same context is running fails with
:class:`~instafilter.errors.RenderContextBusyError`. Use one context per
thread, e.g. one per :class:`~instafilter.filters.pipeline.Pipeline`.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict

import numpy as np

from instafilter.config import Settings, settings as default_settings
from instafilter.errors import (
    ExtentUnresolvableError,
    RenderContextBusyError,
    RenderError,
)
from instafilter.extent import Extent
from instafilter.image import ImageBuffer
from .recipe import CropRecipe, FilterRecipe, Recipe, SourceRecipe
from .utils import float_to_uint8, uint8_to_float

logger = logging.getLogger(__name__)


def to_recipe(image: ImageBuffer) -> SourceRecipe:
    """Wrap a buffer into a recipe. Never touches the pixels."""
    if not isinstance(image, ImageBuffer):
        raise TypeError(f"Expected ImageBuffer, got {type(image).__name__}")
    return SourceRecipe(image)


def from_recipe(recipe: Recipe, context: 'RenderContext') -> ImageBuffer:
    """Materialize a recipe with the given context.

    :raises ExtentUnresolvableError: If the recipe's extent is infinite or empty.
    :raises RenderError: If a filter kernel fails.
    """
    return context.render(recipe)


class RenderContext:
    """Computes the pixels of recipes.

    :param settings: The settings to use, the module defaults if omitted
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or default_settings
        self.renders = 0
        "Number of successful renders"
        self._working: OrderedDict[int, tuple[ImageBuffer, np.ndarray]] = OrderedDict()
        self._busy = threading.Lock()

    def render(self, recipe: Recipe) -> ImageBuffer:
        """Materialize a recipe into a new ImageBuffer.

        :raises ExtentUnresolvableError: If the recipe's extent is infinite or empty.
        :raises RenderContextBusyError: If another render runs on this context.
        :raises RenderError: If a filter kernel fails.
        """
        extent = recipe.extent
        if extent is None:
            raise ExtentUnresolvableError(
                "Recipe has an infinite extent, crop it before rendering"
            )
        if extent.is_empty():
            raise ExtentUnresolvableError(f"Recipe has an empty extent: {extent}")
        if not self._busy.acquire(blocking=False):
            raise RenderContextBusyError("RenderContext is already rendering")
        try:
            pixels, domain = self._evaluate(recipe)
            pixels = _cut(pixels, domain, extent)
            result = ImageBuffer.from_array(float_to_uint8(pixels))
            self.renders += 1
            return result
        finally:
            self._busy.release()

    def clear_cache(self) -> None:
        """Drop all cached working copies."""
        self._working.clear()

    def _evaluate(self, recipe: Recipe) -> tuple[np.ndarray, Extent]:
        """Compute the pixels of a node over its domain."""
        if isinstance(recipe, SourceRecipe):
            return self._working_copy(recipe.image), recipe.domain
        if isinstance(recipe, FilterRecipe):
            pixels, domain = self._evaluate(recipe.input)
            descriptor = recipe.descriptor
            try:
                result = np.asarray(
                    descriptor.kernel(pixels, recipe.parameter_map), dtype=np.float32
                )
            except Exception as e:
                logger.warning(f"Filter {descriptor.name} failed: {e}")
                raise RenderError(f"Filter {descriptor.name} failed: {e}") from e
            if result.shape != pixels.shape:
                raise RenderError(
                    f"Filter {descriptor.name} returned shape {result.shape}, "
                    f"expected {pixels.shape}"
                )
            return result, domain
        if isinstance(recipe, CropRecipe):
            pixels, domain = self._evaluate(recipe.input)
            return _cut(pixels, domain, recipe.rect), recipe.rect
        raise RenderError(f"Unsupported recipe node {type(recipe).__name__}")

    def _working_copy(self, image: ImageBuffer) -> np.ndarray:
        """Get the read-only float32 copy of a source image, cached."""
        key = id(image)
        cached = self._working.get(key)
        if cached is not None and cached[0] is image:
            self._working.move_to_end(key)
            logger.debug(f"Working copy cache hit for {image}")
            return cached[1]
        pixels = uint8_to_float(image.to_array())
        pixels.flags.writeable = False
        if self.settings.WORKING_CACHE_SIZE > 0:
            self._working[key] = (image, pixels)
            while len(self._working) > self.settings.WORKING_CACHE_SIZE:
                self._working.popitem(last=False)
        return pixels


def _cut(pixels: np.ndarray, domain: Extent, rect: Extent) -> np.ndarray:
    """Extract a rectangle from pixels covering domain, padding with transparency."""
    if rect == domain:
        return pixels
    result = np.zeros((rect.height, rect.width, 4), dtype=np.float32)
    overlap = rect.intersection(domain)
    if overlap.is_empty():
        return result
    result[
        overlap.y - rect.y:overlap.y2 - rect.y,
        overlap.x - rect.x:overlap.x2 - rect.x,
    ] = pixels[
        overlap.y - domain.y:overlap.y2 - domain.y,
        overlap.x - domain.x:overlap.x2 - domain.x,
    ]
    return result

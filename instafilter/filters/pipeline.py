# Instafilter Filters - Pipeline
"""
The pipeline applies a filter selected by name to an image.

Usage:
    from instafilter import Pipeline, decode

    pipeline = Pipeline()
    image = decode(raw_bytes)
    sepia = pipeline.apply('sepia', image, 0.8)
    blurred = pipeline.apply_chain([('sepia', 1.0), ('gaussian_blur', 0.05)], image)

Only :class:`~instafilter.errors.PipelineError` subclasses escape
:meth:`Pipeline.apply`. Callers preferring values over exceptions use
:meth:`Pipeline.try_apply`.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Iterable

from instafilter.config import Settings, settings as default_settings
from instafilter.errors import (
    FilterNotFoundError,
    IntensityRangeError,
    InvalidIntensityError,
    InvalidSourceError,
    InvalidStepError,
    NoSourceBoundError,
    PipelineCancelledError,
    PipelineError,
    RenderError,
    RenderFailedError,
    SourceNotBoundError,
    UnknownFilterError,
)
from instafilter.image import ImageBuffer
from .base import FilterDescriptor, FilterRegistry, create_default_registry
from .instance import FilterInstance, validate_intensity
from .recipe import Recipe
from .render import RenderContext, from_recipe, to_recipe

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative cancellation flag shared between a caller and an apply call."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class PipelineResult:
    """Outcome of :meth:`Pipeline.try_apply`, either an image or an error."""

    image: ImageBuffer | None = None
    error: PipelineError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Pipeline:
    """Applies registered filters to images.

    A pipeline owns one :class:`RenderContext` and keeps the most recently
    used :class:`FilterInstance`. Selecting the same filter again reuses the
    instance, selecting another one replaces it. Calls are serialized, so a
    pipeline can be shared between threads, but they never run in parallel.

    :param registry: The filters to choose from, all built-in filters if omitted
    :param context: The render context, a new one if omitted
    :param settings: The settings to use, the module defaults if omitted
    """

    def __init__(
        self,
        registry: FilterRegistry | None = None,
        context: RenderContext | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or default_settings
        self.registry = registry if registry is not None else create_default_registry()
        self.context = context or RenderContext(self.settings)
        self.filter_changes = 0
        "Number of times a new filter instance was selected"
        self._instance: FilterInstance | None = None
        self._lock = threading.Lock()

    @property
    def current_filter(self) -> str | None:
        """Name of the active filter, None before the first apply."""
        instance = self._instance
        return instance.name if instance is not None else None

    def filters(self) -> list[str]:
        """Get the names of all available filters."""
        return self.registry.names()

    def apply(
        self,
        filter_name: str,
        source: ImageBuffer,
        intensity: float,
        cancel: CancellationToken | None = None,
    ) -> ImageBuffer:
        """Apply a filter at a normalized intensity.

        :param filter_name: Name or alias of a registered filter
        :param source: The image to filter
        :param intensity: Filter strength within [0, 1]
        :param cancel: Optional token to abort the call before rendering
        :return: The filtered image, same size as the source
        :raises InvalidIntensityError: If intensity is not within [0, 1]
        :raises InvalidSourceError: If source is not an ImageBuffer
        :raises UnknownFilterError: If the filter is not registered
        :raises RenderFailedError: If the image could not be rendered
        :raises PipelineCancelledError: If the token was cancelled in time
        """
        intensity = self._check_intensity(intensity)
        self._check_source(source)
        with self._lock:
            self._check_cancel(cancel)
            descriptor = self._resolve(filter_name)
            instance = self._select(descriptor)
            instance.bind(source)
            instance.set_normalized_intensity(intensity)
            self._check_cancel(cancel)
            try:
                recipe = instance.output_recipe()
            except NoSourceBoundError as e:
                raise SourceNotBoundError(str(e)) from e
            return self._render(recipe, source, cancel)

    def apply_chain(
        self,
        steps: Iterable[tuple[str, float]],
        source: ImageBuffer,
        cancel: CancellationToken | None = None,
    ) -> ImageBuffer:
        """Apply several filters in sequence, rendering only once.

        Every step gets its own filter instance, the pipeline's current
        filter is left untouched. An empty chain returns the source.

        :param steps: (filter name, intensity) pairs in application order
        :raises InvalidStepError: If a step is not a (name, intensity) pair
        :raises PipelineError: As :meth:`apply`
        """
        try:
            steps = list(steps)
        except TypeError as e:
            raise InvalidStepError(f"Steps have to be iterable, got {steps!r}") from e
        steps = [self._check_step(step) for step in steps]
        self._check_source(source)
        if not steps:
            return source
        with self._lock:
            self._check_cancel(cancel)
            recipe: Recipe = to_recipe(source)
            for name, intensity in steps:
                instance = FilterInstance(self._resolve(name))
                instance.bind(recipe)
                instance.set_normalized_intensity(intensity)
                recipe = self._crop(instance.output_recipe(), source)
                self._check_cancel(cancel)
            return self._render(recipe, source, cancel)

    def try_apply(
        self,
        filter_name: str,
        source: Any,
        intensity: Any,
        cancel: CancellationToken | None = None,
    ) -> PipelineResult:
        """Like :meth:`apply` but returns the outcome instead of raising."""
        try:
            return PipelineResult(image=self.apply(filter_name, source, intensity, cancel))
        except PipelineError as e:
            return PipelineResult(error=e)

    def _check_intensity(self, intensity: Any) -> float:
        try:
            return validate_intensity(intensity)
        except IntensityRangeError as e:
            raise InvalidIntensityError(str(e)) from e

    def _check_step(self, step: Any) -> tuple[str, float]:
        try:
            name, intensity = step
        except (TypeError, ValueError) as e:
            raise InvalidStepError(
                f"Expected a (filter name, intensity) pair, got {step!r}"
            ) from e
        return name, self._check_intensity(intensity)

    @staticmethod
    def _check_source(source: Any) -> None:
        if not isinstance(source, ImageBuffer):
            raise InvalidSourceError(f"Expected ImageBuffer, got {type(source).__name__}")

    @staticmethod
    def _check_cancel(cancel: CancellationToken | None) -> None:
        if cancel is not None and cancel.cancelled:
            raise PipelineCancelledError("Filter application was cancelled")

    def _resolve(self, filter_name: str) -> FilterDescriptor:
        try:
            return self.registry.lookup(filter_name)
        except FilterNotFoundError as e:
            raise UnknownFilterError(filter_name) from e

    def _select(self, descriptor: FilterDescriptor) -> FilterInstance:
        """Reuse the current instance for the same filter, else replace it."""
        if self._instance is not None and self._instance.descriptor is descriptor:
            return self._instance
        self._instance = FilterInstance(descriptor)
        self.filter_changes += 1
        logger.debug(f"Selected filter {descriptor.name} (change #{self.filter_changes})")
        return self._instance

    def _crop(self, recipe: Recipe, source: ImageBuffer) -> Recipe:
        if self.settings.CROP_TO_SOURCE and not recipe.is_bounded:
            return recipe.cropped(source.extent)
        return recipe

    def _render(
        self, recipe: Recipe, source: ImageBuffer, cancel: CancellationToken | None
    ) -> ImageBuffer:
        recipe = self._crop(recipe, source)
        self._check_cancel(cancel)
        try:
            return from_recipe(recipe, self.context)
        except RenderError as e:
            raise RenderFailedError(str(e)) from e
        except Exception as e:
            logger.warning(f"Unexpected failure while rendering: {e}")
            raise RenderFailedError(str(e)) from e

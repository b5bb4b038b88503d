# Instafilter Filters - Filter Instances
"""
Configured, mutable filter instances.

A :class:`FilterInstance` pairs a :class:`~instafilter.filters.base.FilterDescriptor`
with current parameter values and an optional bound source. Its output is a
lazy :class:`~instafilter.filters.recipe.FilterRecipe` holding a snapshot of
the parameters at the time the output was requested.

An instance is not synchronized, it is owned by a single pipeline which
serializes access to it.
"""

from __future__ import annotations

import logging
import math
from numbers import Real
from typing import Any

from instafilter.errors import (
    IntensityRangeError,
    NoSourceBoundError,
    UnsupportedParameterError,
)
from instafilter.image import ImageBuffer
from .base import FilterDescriptor, ParameterKey, ParameterValue
from .recipe import FilterRecipe, Recipe, SourceRecipe

logger = logging.getLogger(__name__)


def validate_intensity(value: Any) -> float:
    """Check a normalized intensity and return it as float.

    :raises IntensityRangeError: If the value is not a number within [0, 1].
    """
    if isinstance(value, bool) or not isinstance(value, Real):
        raise IntensityRangeError(f"Intensity must be a number, got {value!r}")
    value = float(value)
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        raise IntensityRangeError(f"Intensity must be within [0, 1], got {value}")
    return value


class FilterInstance:
    """A filter with current parameter values and an optional source.

    :param descriptor: The filter to configure
    """

    def __init__(self, descriptor: FilterDescriptor):
        self.descriptor = descriptor
        self._values: dict[ParameterKey, ParameterValue] = descriptor.defaults()
        self._source: Recipe | None = None

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def parameters(self) -> dict[ParameterKey, ParameterValue]:
        """Copy of the current parameter values."""
        return dict(self._values)

    @property
    def source(self) -> Recipe | None:
        """The bound input recipe, None if nothing was bound yet."""
        return self._source

    def supports(self, key: ParameterKey | str) -> bool:
        """Check if the filter declares a parameter key."""
        return self.descriptor.supports(key)

    def get(self, key: ParameterKey | str) -> ParameterValue:
        """Get the current value of a declared parameter.

        :raises UnsupportedParameterError: If the key is not declared.
        """
        spec = self.descriptor.parameter(key)
        return self._values[spec.key]

    def reset(self) -> None:
        """Restore all parameters to their defaults. The source stays bound."""
        self._values = self.descriptor.defaults()

    def set_parameter(self, key: ParameterKey | str, value: Any) -> None:
        """Set a parameter explicitly.

        :raises UnsupportedParameterError: If the key is not declared.
        :raises ParameterRangeError: If the value is invalid or out of range.
        """
        spec = self.descriptor.parameter(key)
        self._write(spec.key, spec.validate(value))

    def set_normalized_intensity(self, value: Any) -> None:
        """Drive all intensity-mapped parameters from one value in [0, 1].

        Each declared key with an entry in the descriptor's intensity mapping
        receives ``value * multiplier``, clamped into its range. Keys the
        filter does not declare are skipped, so parameterless filters ignore
        the call.

        :raises IntensityRangeError: If the value is not within [0, 1].
        """
        value = validate_intensity(value)
        skipped = [k.value for k in self.descriptor.intensity_mapping if not self.supports(k)]
        if skipped:
            logger.debug(f"Filter {self.name} does not declare {', '.join(skipped)}, skipped")
        for spec in self.descriptor.parameters:
            multiplier = self.descriptor.intensity_mapping.get(spec.key)
            if multiplier is None:
                continue
            self._write(spec.key, spec.clamp(value * multiplier))

    def bind(self, source: ImageBuffer | Recipe) -> None:
        """Bind the input image. A buffer is wrapped into a source recipe."""
        if isinstance(source, ImageBuffer):
            source = SourceRecipe(source)
        elif not isinstance(source, Recipe):
            raise TypeError(
                f"Expected ImageBuffer or Recipe, got {type(source).__name__}"
            )
        self._source = source

    def output_recipe(self) -> FilterRecipe:
        """Get the lazy output with a snapshot of the current parameters.

        :raises NoSourceBoundError: If no source was bound.
        """
        if self._source is None:
            raise NoSourceBoundError(f"No source bound to filter {self.name}")
        return FilterRecipe(
            input=self._source,
            descriptor=self.descriptor,
            parameters=tuple(self._values.items()),
        )

    def _write(self, key: ParameterKey, value: ParameterValue) -> None:
        """Store a parameter value. All writes pass through here."""
        if not self.descriptor.supports(key):
            raise UnsupportedParameterError(
                f"Filter {self.name} does not declare {key.value}"
            )
        self._values[key] = value

    def __repr__(self) -> str:
        values = ', '.join(f'{k.value}={v}' for k, v in self._values.items())
        return f"FilterInstance({self.name}: {values})"

# Instafilter Filters - Recipes
"""
Lazy image recipes.

A recipe describes how an image is computed without computing it. Recipes
are immutable trees of three node kinds:

- :class:`SourceRecipe` wraps a concrete :class:`~instafilter.image.ImageBuffer`
- :class:`FilterRecipe` applies a filter kernel with frozen parameters to
  another recipe
- :class:`CropRecipe` bounds another recipe to a rectangle

Building and chaining recipes is cheap, pixels are only computed when a
:class:`~instafilter.filters.render.RenderContext` materializes the final
recipe.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterator, TYPE_CHECKING

from instafilter.extent import Extent
from .base import ExtentPolicy, FilterDescriptor, ParameterKey

if TYPE_CHECKING:
    from instafilter.image import ImageBuffer


class Recipe(ABC):
    """Base class of all recipe nodes."""

    @property
    @abstractmethod
    def extent(self) -> Extent | None:
        """The region the recipe's output covers, None if it is unbounded."""
        pass

    @property
    @abstractmethod
    def domain(self) -> Extent:
        """The region for which the recipe computes concrete pixels."""
        pass

    @abstractmethod
    def inputs(self) -> tuple['Recipe', ...]:
        """The recipes this node reads from."""
        pass

    def cropped(self, extent: Extent) -> 'CropRecipe':
        """Return a recipe bounded to the given extent."""
        return CropRecipe(input=self, rect=extent)

    def filtered(
        self,
        descriptor: FilterDescriptor,
        parameters: dict[ParameterKey, Any] | None = None,
    ) -> 'FilterRecipe':
        """Return a recipe applying a filter to this one.

        Parameters missing from ``parameters`` use the descriptor's defaults.
        """
        values = descriptor.defaults()
        values.update(parameters or {})
        return FilterRecipe(
            input=self, descriptor=descriptor, parameters=tuple(values.items())
        )

    def walk(self) -> Iterator['Recipe']:
        """Iterate over this node and all nodes below it, depth first."""
        yield self
        for child in self.inputs():
            yield from child.walk()

    @property
    def is_bounded(self) -> bool:
        """Whether the recipe has a finite extent."""
        return self.extent is not None


@dataclass(frozen=True, eq=False)
class SourceRecipe(Recipe):
    """Leaf node wrapping a concrete image."""

    image: 'ImageBuffer'

    @property
    def extent(self) -> Extent:
        return self.image.extent

    @property
    def domain(self) -> Extent:
        return self.image.extent

    def inputs(self) -> tuple[Recipe, ...]:
        return ()


@dataclass(frozen=True, eq=False)
class FilterRecipe(Recipe):
    """Node applying a filter kernel to its input.

    The parameters are a snapshot taken when the recipe was created, later
    changes of a filter instance do not affect it.
    """

    input: Recipe
    descriptor: FilterDescriptor
    parameters: tuple[tuple[ParameterKey, Any], ...] = ()

    @property
    def parameter_map(self) -> dict[ParameterKey, Any]:
        """The parameter snapshot as dictionary."""
        return dict(self.parameters)

    @property
    def extent(self) -> Extent | None:
        if self.descriptor.extent_policy is ExtentPolicy.INFINITE:
            return None
        return self.input.extent

    @property
    def domain(self) -> Extent:
        return self.input.domain

    def inputs(self) -> tuple[Recipe, ...]:
        return (self.input,)


@dataclass(frozen=True, eq=False)
class CropRecipe(Recipe):
    """Node bounding its input to a rectangle.

    Pixels of the rectangle outside of the input's domain are transparent.
    """

    input: Recipe
    rect: Extent

    @property
    def extent(self) -> Extent:
        bounds = self.input.extent
        if bounds is None:
            return self.rect
        return self.rect.intersection(bounds)

    @property
    def domain(self) -> Extent:
        return self.rect

    def inputs(self) -> tuple[Recipe, ...]:
        return (self.input,)

# Instafilter Filters Module
"""
Runtime-selectable image filters.

Filters are described by immutable descriptors collected in a registry,
configured through filter instances and evaluated lazily as recipes which a
render context materializes. The :class:`Pipeline` ties it all together.
"""

from .base import (
    ParameterKey,
    ParameterSpec,
    ExtentPolicy,
    FilterDescriptor,
    FilterRegistry,
    DEFAULT_INTENSITY_MAPPING,
    BUILTIN_FILTERS,
    BUILTIN_ALIASES,
    builtin_filter,
    load_builtin_filters,
    create_default_registry,
)

from .recipe import (
    Recipe,
    SourceRecipe,
    FilterRecipe,
    CropRecipe,
)

from .render import (
    RenderContext,
    to_recipe,
    from_recipe,
)

from .instance import FilterInstance, validate_intensity

from .pipeline import (
    Pipeline,
    PipelineResult,
    CancellationToken,
)

from .executor import PipelineWorker, WorkerMetrics

__all__ = [
    # Descriptors & registry
    'ParameterKey',
    'ParameterSpec',
    'ExtentPolicy',
    'FilterDescriptor',
    'FilterRegistry',
    'DEFAULT_INTENSITY_MAPPING',
    'BUILTIN_FILTERS',
    'BUILTIN_ALIASES',
    'builtin_filter',
    'load_builtin_filters',
    'create_default_registry',
    # Recipes & rendering
    'Recipe',
    'SourceRecipe',
    'FilterRecipe',
    'CropRecipe',
    'RenderContext',
    'to_recipe',
    'from_recipe',
    # Configuration
    'FilterInstance',
    'validate_intensity',
    # Orchestration
    'Pipeline',
    'PipelineResult',
    'CancellationToken',
    'PipelineWorker',
    'WorkerMetrics',
]

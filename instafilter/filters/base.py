# Instafilter Filters - Base Classes
"""
Base classes for the filter system.

A filter is described by an immutable :class:`FilterDescriptor` which names
it, declares the parameter keys it accepts and carries the opaque kernel
computing its pixels. Descriptors are collected in a :class:`FilterRegistry`.

Parameter keys are drawn from the closed vocabulary :class:`ParameterKey`.
Writing a key a filter does not declare is never allowed, callers ask
:meth:`FilterDescriptor.supports` first.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from enum import Enum, auto
from types import MappingProxyType
from typing import Any, Callable, Iterable, Iterator, Mapping, Union

import numpy as np

from instafilter.errors import (
    FilterNotFoundError,
    ParameterRangeError,
    UnsupportedParameterError,
)

logger = logging.getLogger(__name__)

# Type of a parameter value: a float for scalar keys, an (x, y) tuple for center
ParameterValue = Union[float, tuple[float, float]]

# A kernel receives float32 RGBA pixels (H, W, 4) in the range 0..1 and the
# parameter values, and returns a new array of the same shape.
Kernel = Callable[[np.ndarray, Mapping['ParameterKey', Any]], np.ndarray]


class ParameterKey(Enum):
    """Closed vocabulary of filter parameter keys."""

    INTENSITY = 'intensity'
    RADIUS = 'radius'
    SCALE = 'scale'
    CENTER = 'center'

    @property
    def is_point(self) -> bool:
        """Whether values of this key are (x, y) tuples instead of floats."""
        return self is ParameterKey.CENTER

    @classmethod
    def parse(cls, key: 'ParameterKey | str') -> 'ParameterKey':
        """Convert a key or its string token to a ParameterKey.

        :raises UnsupportedParameterError: If the token is not in the vocabulary.
        """
        if isinstance(key, ParameterKey):
            return key
        try:
            return cls(str(key).lower())
        except ValueError:
            raise UnsupportedParameterError(f"Unknown parameter key: {key}") from None


class ExtentPolicy(Enum):
    """How a filter's output extent relates to its input extent."""
    PRESERVE = auto()  # Output covers exactly the input extent
    INFINITE = auto()  # Output is unbounded, e.g. a blur spreading past the edges


# Multipliers from a normalized intensity (0..1) to each key's native range.
# Keys without an entry, e.g. center, are not driven by intensity.
DEFAULT_INTENSITY_MAPPING: Mapping[ParameterKey, float] = MappingProxyType({
    ParameterKey.INTENSITY: 1.0,
    ParameterKey.RADIUS: 200.0,
    ParameterKey.SCALE: 10.0,
})


@dataclass(frozen=True)
class ParameterSpec:
    """Declaration of a single filter parameter."""

    key: ParameterKey
    default: ParameterValue
    min_value: float | None = None
    max_value: float | None = None
    description: str = ''

    def __post_init__(self):
        object.__setattr__(self, 'key', ParameterKey.parse(self.key))
        if self.key.is_point:
            object.__setattr__(self, 'default', _as_point(self.default))
        else:
            object.__setattr__(self, 'default', float(self.default))

    def clamp(self, value: float) -> float:
        """Clamp a scalar value into the declared range."""
        if self.min_value is not None:
            value = max(self.min_value, value)
        if self.max_value is not None:
            value = min(self.max_value, value)
        return value

    def validate(self, value: Any) -> ParameterValue:
        """Check and normalize an explicitly set value.

        :raises ParameterRangeError: If the value has the wrong type or is
            outside of the declared range.
        """
        if self.key.is_point:
            try:
                return _as_point(value)
            except (TypeError, ValueError) as e:
                raise ParameterRangeError(f"Invalid value for {self.key.value}: {value!r}") from e
        if isinstance(value, bool):
            raise ParameterRangeError(f"Invalid value for {self.key.value}: {value!r}")
        try:
            value = float(value)
        except (TypeError, ValueError) as e:
            raise ParameterRangeError(f"Invalid value for {self.key.value}: {value!r}") from e
        if math.isnan(value) or self.clamp(value) != value:
            raise ParameterRangeError(
                f"{self.key.value}={value} is outside of "
                f"[{self.min_value}, {self.max_value}]"
            )
        return value

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result = {
            'key': self.key.value,
            'default': list(self.default) if self.key.is_point else self.default,
        }
        if self.min_value is not None:
            result['min'] = self.min_value
        if self.max_value is not None:
            result['max'] = self.max_value
        if self.description:
            result['description'] = self.description
        return result


@dataclass(frozen=True)
class FilterDescriptor:
    """Immutable metadata describing a filter and the parameters it accepts.

    Descriptors are created once when the registry is populated and live for
    the whole process. The kernel is treated as an opaque capability: the
    orchestration layer never looks into it, it only hands it the parameter
    keys the descriptor declares.

    Example:
        FilterDescriptor(
            name='pixellate',
            kernel=pixellate,
            parameters=(ParameterSpec(ParameterKey.SCALE, 8.0, 1.0, 200.0),),
        )
    """

    name: str
    kernel: Kernel = field(compare=False, repr=False)
    parameters: tuple[ParameterSpec, ...] = ()
    intensity_mapping: Mapping[ParameterKey, float] = field(
        default_factory=lambda: DEFAULT_INTENSITY_MAPPING, compare=False
    )
    extent_policy: ExtentPolicy = ExtentPolicy.PRESERVE
    identity_at_zero: bool = False  # Intensity 0 reproduces the input
    display_name: str = ''
    category: str = 'other'
    summary: str = ''

    def __post_init__(self):
        if not self.name:
            raise ValueError("Filter name must not be empty")
        parameters = tuple(self.parameters)
        keys = [p.key for p in parameters]
        if len(set(keys)) != len(keys):
            raise ValueError(f"Duplicate parameter keys for filter {self.name}")
        object.__setattr__(self, 'parameters', parameters)
        mapping = {ParameterKey.parse(k): float(v) for k, v in self.intensity_mapping.items()}
        for key in mapping:
            if key.is_point:
                raise ValueError(f"{key.value} can not be driven by intensity")
        object.__setattr__(self, 'intensity_mapping', MappingProxyType(mapping))
        if not self.display_name:
            object.__setattr__(self, 'display_name', self.name.replace('_', ' ').title())

    @property
    def keys(self) -> tuple[ParameterKey, ...]:
        """The declared parameter keys in declaration order."""
        return tuple(p.key for p in self.parameters)

    def supports(self, key: ParameterKey | str) -> bool:
        """Check if the filter declares a parameter key."""
        try:
            key = ParameterKey.parse(key)
        except UnsupportedParameterError:
            return False
        return any(p.key is key for p in self.parameters)

    def parameter(self, key: ParameterKey | str) -> ParameterSpec:
        """Get the declaration of a parameter.

        :raises UnsupportedParameterError: If the key is not declared.
        """
        key = ParameterKey.parse(key)
        for spec in self.parameters:
            if spec.key is key:
                return spec
        raise UnsupportedParameterError(f"Filter {self.name} does not declare {key.value}")

    def defaults(self) -> dict[ParameterKey, ParameterValue]:
        """Get the default value of every declared parameter."""
        return {p.key: p.default for p in self.parameters}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'name': self.name,
            'display_name': self.display_name,
            'category': self.category,
            'summary': self.summary,
            'parameters': [p.to_dict() for p in self.parameters],
            'intensity_mapping': {k.value: v for k, v in self.intensity_mapping.items()},
            'extent_policy': self.extent_policy.name.lower(),
            'identity_at_zero': self.identity_at_zero,
        }


class FilterRegistry:
    """Catalog of the filters available to a pipeline.

    Registering a name that already exists replaces the previous entry.
    Writers copy the table and swap it in under a lock, so lookups never
    lock and the registry can be shared across threads.
    """

    def __init__(self, descriptors: Iterable[FilterDescriptor] | None = None):
        self._descriptors: dict[str, FilterDescriptor] = {}
        self._aliases: dict[str, str] = {}
        self._lock = threading.Lock()
        for descriptor in descriptors or ():
            self.register(descriptor)

    def register(self, descriptor: FilterDescriptor) -> None:
        """Register a descriptor under its name (last write wins)."""
        if not isinstance(descriptor, FilterDescriptor):
            raise TypeError(f"Expected FilterDescriptor, got {type(descriptor).__name__}")
        key = descriptor.name.lower()
        with self._lock:
            table = dict(self._descriptors)
            if key in table:
                logger.debug(f"Replacing filter {descriptor.name}")
            else:
                logger.debug(f"Registered filter {descriptor.name}")
            table[key] = descriptor
            self._descriptors = table

    def register_alias(self, alias: str, name: str) -> None:
        """Register an alternative name for a filter.

        Examples:
            register_alias('blur', 'gaussian_blur')
            register_alias('sepia_tone', 'sepia')
        """
        with self._lock:
            aliases = dict(self._aliases)
            aliases[alias.lower()] = name.lower()
            self._aliases = aliases

    def unregister(self, name: str) -> None:
        """Remove a filter and the aliases pointing to it, ignoring unknown names."""
        key = name.lower()
        with self._lock:
            table = dict(self._descriptors)
            table.pop(key, None)
            self._descriptors = table
            self._aliases = {a: t for a, t in self._aliases.items() if t != key}

    def lookup(self, name: str) -> FilterDescriptor:
        """Find a filter by name or alias, ignoring case.

        :raises FilterNotFoundError: If no filter is registered under the name.
        """
        if not isinstance(name, str):
            raise FilterNotFoundError(repr(name))
        key = name.lower()
        table = self._descriptors
        descriptor = table.get(key)
        if descriptor is None:
            target = self._aliases.get(key)
            descriptor = table.get(target) if target is not None else None
        if descriptor is None:
            raise FilterNotFoundError(name)
        return descriptor

    def names(self) -> list[str]:
        """Get all registered filter names, sorted."""
        return sorted(d.name for d in self._descriptors.values())

    def descriptors(self) -> list[FilterDescriptor]:
        """Get all registered descriptors, sorted by name."""
        return sorted(self._descriptors.values(), key=lambda d: d.name)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        try:
            self.lookup(name)
        except FilterNotFoundError:
            return False
        return True

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[FilterDescriptor]:
        return iter(self.descriptors())


# Built-in filters, filled by the builtin_filter decorator when the kernel
# modules are imported
BUILTIN_FILTERS: dict[str, FilterDescriptor] = {}
BUILTIN_ALIASES: dict[str, str] = {}


def builtin_filter(
    name: str,
    *,
    parameters: Iterable[ParameterSpec] = (),
    intensity_mapping: Mapping[ParameterKey, float] | None = None,
    extent_policy: ExtentPolicy = ExtentPolicy.PRESERVE,
    identity_at_zero: bool = False,
    display_name: str = '',
    category: str = 'other',
    aliases: Iterable[str] = (),
) -> Callable[[Kernel], Kernel]:
    """Decorator declaring a kernel function as built-in filter.

    The summary is taken from the first line of the kernel's docstring.
    """

    def decorator(kernel: Kernel) -> Kernel:
        doc = (kernel.__doc__ or '').strip().split('\n')
        descriptor = FilterDescriptor(
            name=name,
            kernel=kernel,
            parameters=tuple(parameters),
            intensity_mapping=(
                intensity_mapping if intensity_mapping is not None
                else DEFAULT_INTENSITY_MAPPING
            ),
            extent_policy=extent_policy,
            identity_at_zero=identity_at_zero,
            display_name=display_name,
            category=category,
            summary=doc[0].strip() if doc else '',
        )
        BUILTIN_FILTERS[name] = descriptor
        for alias in aliases:
            BUILTIN_ALIASES[alias] = name
        kernel.descriptor = descriptor  # type: ignore[attr-defined]
        return kernel

    return decorator


def load_builtin_filters() -> None:
    """Import all built-in filter modules to trigger registration."""
    from . import blur, color, distortion, stylize  # noqa: F401


def create_default_registry() -> FilterRegistry:
    """Create a registry holding all built-in filters and their aliases."""
    load_builtin_filters()
    registry = FilterRegistry(BUILTIN_FILTERS.values())
    for alias, name in BUILTIN_ALIASES.items():
        registry.register_alias(alias, name)
    return registry


def _as_point(value: Any) -> tuple[float, float]:
    """Convert a two element sequence to a float tuple."""
    x, y = value
    point = (float(x), float(y))
    if any(math.isnan(v) for v in point):
        raise ValueError("Point coordinates must not be NaN")
    return point

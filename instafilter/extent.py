"""
Implements :class:`.Extent`, the integer pixel rectangle a recipe covers.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Extent:
    """
    An axis aligned pixel rectangle.

    Coordinates are integers, ``x`` and ``y`` denote the top-left corner.
    A rectangle with zero width or height is empty.
    """

    x: int
    y: int
    width: int
    height: int

    @property
    def x2(self) -> int:
        """The exclusive right edge"""
        return self.x + self.width

    @property
    def y2(self) -> int:
        """The exclusive bottom edge"""
        return self.y + self.height

    @property
    def size(self) -> tuple[int, int]:
        """
        Returns the extent's size

        :return: The size as tuple (width, height)
        """
        return self.width, self.height

    def is_empty(self) -> bool:
        """
        Returns if the extent covers no pixels at all

        :return: True if width or height is not positive
        """
        return self.width <= 0 or self.height <= 0

    def intersection(self, other: Extent) -> Extent:
        """
        Returns the overlapping region of two extents

        :param other: The other extent
        :return: The intersection, an empty extent if they do not overlap
        """
        x = max(self.x, other.x)
        y = max(self.y, other.y)
        x2 = min(self.x2, other.x2)
        y2 = min(self.y2, other.y2)
        return Extent(x, y, max(0, x2 - x), max(0, y2 - y))

    def to_int_coord_tuple(self) -> tuple[int, int, int, int]:
        """
        Returns the extent as x, y, x2, y2 tuple

        :return: The corner coordinates
        """
        return self.x, self.y, self.x2, self.y2

    def __str__(self):
        return f"Extent ({self.x}, {self.y}, {self.width}x{self.height})"

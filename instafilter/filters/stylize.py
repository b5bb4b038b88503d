"""Stylize filters: Pixellate and Crystallize.

Both kernels replace regions of the image by a single color. The grids are
aligned to the center parameter, so a cell is always centered on it.

Usage:
    from instafilter.filters.stylize import pixellate, crystallize

    result = pixellate(rgba_f32, {ParameterKey.SCALE: 8.0})
"""
from __future__ import annotations

from typing import Any, Mapping

import numpy as np

from .base import ParameterKey, ParameterSpec, builtin_filter
from .utils import center_in_pixels

# Seed of the crystal jitter, fixed so equal inputs render equal outputs
CRYSTALLIZE_SEED = 0x1F2E


@builtin_filter(
    'pixellate',
    parameters=[
        ParameterSpec(ParameterKey.SCALE, 8.0, 0.0, 1000.0, 'Block size in pixels'),
        ParameterSpec(ParameterKey.CENTER, (0.5, 0.5), description='Grid origin, normalized'),
    ],
    identity_at_zero=True,
    category='stylize',
    aliases=['pixelate'],
)
def pixellate(pixels: np.ndarray, params: Mapping[ParameterKey, Any]) -> np.ndarray:
    """Mosaic of square blocks filled with their average color.

    scale: Block size in pixels, values below 2 keep the image unchanged
    center: Point a block is centered on
    """
    size = int(round(params[ParameterKey.SCALE]))
    if size < 2:
        return pixels.copy()
    height, width = pixels.shape[:2]
    cx, cy = center_in_pixels(params, pixels)
    pad_left = (size - int(round(cx - size / 2)) % size) % size
    pad_top = (size - int(round(cy - size / 2)) % size) % size
    pad_right = -(width + pad_left) % size
    pad_bottom = -(height + pad_top) % size
    padded = np.pad(
        pixels, ((pad_top, pad_bottom), (pad_left, pad_right), (0, 0)), mode='edge'
    )
    rows, cols = padded.shape[0] // size, padded.shape[1] // size
    blocks = padded.reshape(rows, size, cols, size, 4).mean(axis=(1, 3))
    expanded = np.repeat(np.repeat(blocks, size, axis=0), size, axis=1)
    return np.ascontiguousarray(
        expanded[pad_top:pad_top + height, pad_left:pad_left + width], dtype=np.float32
    )


@builtin_filter(
    'crystallize',
    parameters=[
        ParameterSpec(ParameterKey.RADIUS, 20.0, 0.0, 200.0, 'Crystal size in pixels'),
        ParameterSpec(ParameterKey.CENTER, (0.5, 0.5), description='Grid origin, normalized'),
    ],
    identity_at_zero=True,
    category='stylize',
)
def crystallize(pixels: np.ndarray, params: Mapping[ParameterKey, Any]) -> np.ndarray:
    """Polygonal crystals colored by the pixel at their seed point.

    Seeds are jittered points on a grid of the crystal size, every pixel takes
    the color of its nearest seed (a Voronoi diagram). The nearest seed always
    lies in one of the 3x3 neighbouring grid cells.

    radius: Crystal size in pixels, values below 1 keep the image unchanged
    center: Grid origin
    """
    cell = float(params[ParameterKey.RADIUS])
    if cell < 1.0:
        return pixels.copy()
    height, width = pixels.shape[:2]
    cx, cy = center_in_pixels(params, pixels)
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float32)
    xs += 0.5
    ys += 0.5
    grid_x = np.floor((xs - cx) / cell).astype(np.int64)
    grid_y = np.floor((ys - cy) / cell).astype(np.int64)
    x0 = int(grid_x.min()) - 1
    y0 = int(grid_y.min()) - 1
    count_x = int(grid_x.max()) - x0 + 2
    count_y = int(grid_y.max()) - y0 + 2

    rng = np.random.default_rng(CRYSTALLIZE_SEED)
    jitter = rng.random((count_y, count_x, 2), dtype=np.float32)
    seed_x = cx + (np.arange(count_x, dtype=np.float32)[None, :] + x0 + jitter[:, :, 0]) * cell
    seed_y = cy + (np.arange(count_y, dtype=np.float32)[:, None] + y0 + jitter[:, :, 1]) * cell

    best = np.full((height, width), np.inf, dtype=np.float32)
    best_x = np.zeros((height, width), dtype=np.float32)
    best_y = np.zeros((height, width), dtype=np.float32)
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            iy = grid_y - y0 + dy
            ix = grid_x - x0 + dx
            sx = seed_x[iy, ix]
            sy = seed_y[iy, ix]
            distance = (xs - sx) ** 2 + (ys - sy) ** 2
            closer = distance < best
            best = np.where(closer, distance, best)
            best_x = np.where(closer, sx, best_x)
            best_y = np.where(closer, sy, best_y)

    row = np.clip(np.floor(best_y), 0, height - 1).astype(np.int64)
    col = np.clip(np.floor(best_x), 0, width - 1).astype(np.int64)
    return np.ascontiguousarray(pixels[row, col], dtype=np.float32)

from __future__ import annotations

import math
from collections.abc import Iterator

import numpy as np
from loguru import logger

from .matching import ColorMatcher
from .models import ColorAlgorithm, ConversionConfig, Palette, PixelBlock

# Blocks whose mean alpha (0..255) falls below this are left transparent.
TRANSPARENCY_THRESHOLD = 10.0


def grid_shape(width: int, height: int, block_size: int) -> tuple[int, int]:
    """Return ``(columns, rows)`` of the block grid."""
    return math.ceil(width / block_size), math.ceil(height / block_size)


def iter_blocks(width: int, height: int, block_size: int) -> Iterator[PixelBlock]:
    """Yield blocks in row-major order, clipped to the image bounds."""
    if block_size < 1:
        raise ValueError(f"block_size must be >= 1, got {block_size}")
    for y in range(0, height, block_size):
        h = min(block_size, height - y)
        for x in range(0, width, block_size):
            w = min(block_size, width - x)
            yield PixelBlock(x=x, y=y, w=w, h=h)


def block_averages(
    image: np.ndarray, block_size: int
) -> tuple[np.ndarray, np.ndarray]:
    """Per-block mean color and mean alpha.

    Returns ``(rgb, alpha)`` with shapes ``(rows, columns, 3)`` and
    ``(rows, columns)``. The RGB means are rounded half-up to integers; the
    alpha means stay as floats.
    """
    rgba = _as_rgba(image)
    height, width = rgba.shape[:2]
    row_starts = np.arange(0, height, block_size)
    col_starts = np.arange(0, width, block_size)

    sums = np.add.reduceat(rgba.astype(np.int64), row_starts, axis=0)
    sums = np.add.reduceat(sums, col_starts, axis=1)

    heights = np.minimum(block_size, height - row_starts)
    widths = np.minimum(block_size, width - col_starts)
    counts = np.outer(heights, widths).astype(np.float64)

    means = sums / counts[:, :, None]
    rgb = np.floor(means[:, :, :3] + 0.5).astype(np.uint8)
    return rgb, means[:, :, 3]


def render(
    source: np.ndarray,
    block_size: int,
    palette: Palette | None = None,
    algorithm: ColorAlgorithm = ColorAlgorithm.EUCLIDEAN,
    lab_cache: np.ndarray | None = None,
) -> np.ndarray:
    """Pixelate ``source`` into flat-colored blocks.

    ``source`` is an ``(H, W, 4)`` RGBA (or ``(H, W, 3)`` RGB) uint8 array.
    The result is always ``(H, W, 4)``; transparent blocks stay zeroed.
    """
    config = ConversionConfig(block_size=block_size, palette=palette, algorithm=algorithm)
    return render_with_config(source, config, lab_cache=lab_cache)


def render_with_config(
    source: np.ndarray,
    config: ConversionConfig,
    lab_cache: np.ndarray | None = None,
) -> np.ndarray:
    rgba = _as_rgba(source)
    height, width = rgba.shape[:2]
    output = np.zeros((height, width, 4), dtype=np.uint8)
    if height == 0 or width == 0:
        return output

    block_size = int(config.block_size)
    rgb, alpha = block_averages(rgba, block_size)
    visible = alpha >= TRANSPARENCY_THRESHOLD

    palette = config.effective_palette
    if palette is not None and np.any(visible):
        matcher = ColorMatcher(palette, config.algorithm, lab_cache)
        palette_rgb = np.asarray([color.rgb for color in palette.colors], dtype=np.uint8)
        rgb[visible] = palette_rgb[matcher.nearest_indices(rgb[visible])]

    columns, rows = grid_shape(width, height, block_size)
    logger.debug(
        "rendering {}x{} image as {}x{} blocks of {}px ({} visible, palette={})",
        width,
        height,
        columns,
        rows,
        block_size,
        int(np.count_nonzero(visible)),
        None if palette is None else palette.name,
    )

    for block in iter_blocks(width, height, block_size):
        row, col = block.y // block_size, block.x // block_size
        if not visible[row, col]:
            continue
        region = output[block.y : block.y + block.h, block.x : block.x + block.w]
        region[..., :3] = rgb[row, col]
        region[..., 3] = 255

    return output


def _as_rgba(image: np.ndarray) -> np.ndarray:
    arr = np.asarray(image)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError("image must have shape (H, W, 3) or (H, W, 4)")
    if arr.shape[2] == 4:
        return arr
    alpha = np.full(arr.shape[:2] + (1,), 255, dtype=arr.dtype)
    return np.concatenate([arr, alpha], axis=2)

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

import numpy as np
from loguru import logger

from .color_space import rgb_to_lab
from .models import RGB, Color, ColorAlgorithm, Palette

# ITU-R BT.709 luma coefficients
LUMA_WEIGHTS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float64)

_CHUNK_ROWS = 4096

DistanceFn = Callable[[np.ndarray, np.ndarray], np.ndarray]


def euclidean_distances(samples: np.ndarray, targets: np.ndarray) -> np.ndarray:
    """Squared RGB distance for every (sample, target) pair, shape (N, P)."""
    diff = samples[:, None, :].astype(np.int64) - targets[None, :, :].astype(np.int64)
    return np.einsum("npc,npc->np", diff, diff)


def weighted_distances(samples: np.ndarray, targets: np.ndarray) -> np.ndarray:
    diff = samples[:, None, :].astype(np.float64) - targets[None, :, :].astype(np.float64)
    return np.einsum("npc,npc,c->np", diff, diff, LUMA_WEIGHTS)


def cie76_distances(samples_lab: np.ndarray, targets_lab: np.ndarray) -> np.ndarray:
    diff = samples_lab[:, None, :] - targets_lab[None, :, :]
    return np.einsum("npc,npc->np", diff, diff)


def palette_rgb_array(palette: Palette) -> np.ndarray:
    return np.asarray([color.rgb for color in palette.colors], dtype=np.int64).reshape(-1, 3)


def build_lab_cache(palette: Palette) -> np.ndarray:
    """Lab values of the palette, indexed in lockstep with ``palette.colors``."""
    return rgb_to_lab(palette_rgb_array(palette))


class PaletteLabCache:
    """Memoizes palette Lab values, keyed by palette identity."""

    def __init__(self) -> None:
        self._entry: tuple[Palette, np.ndarray] | None = None

    def get(self, palette: Palette) -> np.ndarray:
        entry = self._entry
        if entry is None or entry[0] is not palette:
            logger.debug(
                "building Lab cache for palette '{}' ({} colors)",
                palette.name,
                len(palette.colors),
            )
            entry = (palette, build_lab_cache(palette))
            self._entry = entry
        return entry[1]


@dataclass(eq=False)
class ColorMatcher:
    palette: Palette
    algorithm: ColorAlgorithm = ColorAlgorithm.EUCLIDEAN
    lab_cache: np.ndarray | None = None
    _targets: np.ndarray = field(init=False, repr=False)
    _distance: DistanceFn = field(init=False, repr=False)
    _to_space: Callable[[np.ndarray], np.ndarray] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.palette.is_empty:
            raise ValueError("palette must contain at least one color")
        self.algorithm = ColorAlgorithm(self.algorithm)

        if self.algorithm is ColorAlgorithm.CIE76:
            if self.lab_cache is None:
                self.lab_cache = build_lab_cache(self.palette)
            elif len(self.lab_cache) != len(self.palette.colors):
                raise ValueError("lab_cache does not match the palette size")
            self._targets = np.asarray(self.lab_cache, dtype=np.float64)
            self._distance = cie76_distances
            self._to_space = rgb_to_lab
        else:
            self._targets = palette_rgb_array(self.palette)
            self._distance = (
                weighted_distances
                if self.algorithm is ColorAlgorithm.WEIGHTED
                else euclidean_distances
            )
            self._to_space = _as_rgb_array

    def nearest_indices(self, samples: np.ndarray) -> np.ndarray:
        """Index of the nearest palette color for each RGB row of ``samples``.

        ``np.argmin`` keeps the first minimum, so ties go to the color that
        comes first in the palette.
        """
        samples = np.asarray(samples).reshape(-1, 3)
        indices = np.empty(samples.shape[0], dtype=np.int64)
        for start in range(0, samples.shape[0], _CHUNK_ROWS):
            chunk = self._to_space(samples[start : start + _CHUNK_ROWS])
            distances = self._distance(chunk, self._targets)
            indices[start : start + _CHUNK_ROWS] = np.argmin(distances, axis=1)
        return indices

    def nearest(self, pixel: Color | RGB) -> Color:
        rgb = pixel.rgb if isinstance(pixel, Color) else tuple(pixel)
        index = int(self.nearest_indices(np.asarray([rgb]))[0])
        return self.palette.colors[index]


def nearest_color(
    pixel: Color | RGB,
    palette: Palette,
    algorithm: ColorAlgorithm = ColorAlgorithm.EUCLIDEAN,
    lab_cache: np.ndarray | None = None,
) -> Color:
    return ColorMatcher(palette, algorithm, lab_cache).nearest(pixel)


def _as_rgb_array(samples: np.ndarray) -> np.ndarray:
    return np.asarray(samples, dtype=np.int64)

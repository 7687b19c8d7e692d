from __future__ import annotations

import numpy as np

from .models import LabColor

# linear sRGB -> XYZ, D65
_RGB_TO_XYZ = np.array(
    [
        [0.4124564, 0.3575761, 0.1804375],
        [0.2126729, 0.7151522, 0.0721750],
        [0.0193339, 0.1191920, 0.9503041],
    ],
    dtype=np.float64,
)
_D65_WHITE = np.array([0.95047, 1.00000, 1.08883], dtype=np.float64)

_LINEAR_BREAKPOINT = 0.04045
_LAB_EPSILON = 0.008856
_LAB_KAPPA = 7.787


def srgb_to_linear(values: np.ndarray) -> np.ndarray:
    """Linearize sRGB channel values in [0, 1]."""
    values = np.asarray(values, dtype=np.float64)
    return np.where(
        values <= _LINEAR_BREAKPOINT,
        values / 12.92,
        ((values + 0.055) / 1.055) ** 2.4,
    )


def rgb_to_xyz(rgb: np.ndarray) -> np.ndarray:
    """Convert 0..255 sRGB triplets of shape (..., 3) to D65-normalized XYZ."""
    arr = np.asarray(rgb, dtype=np.float64) / 255.0
    linear = srgb_to_linear(arr)
    xyz = linear @ _RGB_TO_XYZ.T
    return xyz / _D65_WHITE


def _lab_f(t: np.ndarray) -> np.ndarray:
    return np.where(t > _LAB_EPSILON, np.cbrt(t), _LAB_KAPPA * t + 16.0 / 116.0)


def xyz_to_lab(xyz: np.ndarray) -> np.ndarray:
    """Convert white-normalized XYZ of shape (..., 3) to CIE L*a*b*."""
    f = _lab_f(np.asarray(xyz, dtype=np.float64))
    fx, fy, fz = f[..., 0], f[..., 1], f[..., 2]

    out = np.empty(f.shape, dtype=np.float64)
    out[..., 0] = 116.0 * fy - 16.0
    out[..., 1] = 500.0 * (fx - fy)
    out[..., 2] = 200.0 * (fy - fz)
    return out


def rgb_to_lab(rgb: np.ndarray) -> np.ndarray:
    """sRGB (0..255) -> CIE L*a*b* under D65. Shape (..., 3) is preserved."""
    return xyz_to_lab(rgb_to_xyz(rgb))


def to_lab_color(rgb: tuple[int, int, int]) -> LabColor:
    lab = rgb_to_lab(np.asarray(rgb, dtype=np.float64))
    return LabColor(L=float(lab[0]), a=float(lab[1]), b=float(lab[2]))

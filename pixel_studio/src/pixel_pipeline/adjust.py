from __future__ import annotations

import numpy as np
from skimage import color as skcolor

from .models import ImageAdjustments


def apply_adjustments(image: np.ndarray, adjustments: ImageAdjustments) -> np.ndarray:
    """Apply brightness, contrast and saturation (in that order) to RGB channels.

    Percentages follow CSS filter semantics, 100 meaning unchanged. Alpha is
    passed through untouched.
    """
    if adjustments.is_identity:
        return image

    arr = np.asarray(image)
    rgb = arr[..., :3].astype(np.float64)

    if adjustments.brightness != 100:
        rgb = rgb * (adjustments.brightness / 100.0)

    if adjustments.contrast != 100:
        rgb = (rgb - 127.5) * (adjustments.contrast / 100.0) + 127.5

    rgb = np.clip(rgb, 0.0, 255.0)

    if adjustments.saturation != 100:
        hsv = skcolor.rgb2hsv(rgb / 255.0)
        hsv[..., 1] = np.clip(hsv[..., 1] * (adjustments.saturation / 100.0), 0.0, 1.0)
        rgb = skcolor.hsv2rgb(hsv) * 255.0

    adjusted = arr.copy()
    adjusted[..., :3] = np.clip(np.floor(rgb + 0.5), 0, 255).astype(arr.dtype)
    return adjusted

from __future__ import annotations

import time
from pathlib import Path

import numpy as np

from .adjust import apply_adjustments
from .io import encode_png, read_image_rgba
from .log import get_logger
from .matching import PaletteLabCache
from .models import (
    ColorAlgorithm,
    ConversionConfig,
    ConversionResult,
    ImageAdjustments,
    Palette,
)
from .palette import load_palette
from .pixelate import grid_shape, render_with_config

logger = get_logger()


class PixelArtPipeline:
    def __init__(self, lab_cache: PaletteLabCache | None = None) -> None:
        self.lab_cache = lab_cache or PaletteLabCache()

    def run(
        self,
        image_path: str,
        block_size: int,
        palette: Palette | str | Path | None = None,
        algorithm: ColorAlgorithm | str = ColorAlgorithm.EUCLIDEAN,
        adjustments: ImageAdjustments | None = None,
    ) -> ConversionResult:
        image = read_image_rgba(image_path)
        if palette is not None and not isinstance(palette, Palette):
            palette = load_palette(palette)
        config = ConversionConfig(
            block_size=block_size, palette=palette, algorithm=algorithm
        )
        return self.convert(image, config, adjustments)

    def convert(
        self,
        image: np.ndarray,
        config: ConversionConfig,
        adjustments: ImageAdjustments | None = None,
    ) -> ConversionResult:
        started = time.perf_counter()
        if adjustments is not None:
            image = apply_adjustments(image, adjustments)

        rendered = self.render(image, config)
        height, width = rendered.shape[:2]
        columns, rows = grid_shape(width, height, config.block_size)
        palette = config.effective_palette

        if config.palette is not None and palette is None:
            logger.warning(
                "palette '{}' has no colors, keeping averaged colors",
                config.palette.name,
            )

        result = ConversionResult(
            width=width,
            height=height,
            columns=columns,
            rows=rows,
            block_size=config.block_size,
            algorithm=config.algorithm,
            palette_name=None if palette is None else palette.name,
            palette_size=0 if palette is None else len(palette),
            png=encode_png(rendered),
        )
        logger.bind(**result.to_dict()).info(
            "conversion finished in {:.1f} ms", (time.perf_counter() - started) * 1000.0
        )
        return result

    def render(self, image: np.ndarray, config: ConversionConfig) -> np.ndarray:
        palette = config.effective_palette
        lab_cache = None
        if palette is not None and config.algorithm is ColorAlgorithm.CIE76:
            lab_cache = self.lab_cache.get(palette)
        return render_with_config(image, config, lab_cache=lab_cache)

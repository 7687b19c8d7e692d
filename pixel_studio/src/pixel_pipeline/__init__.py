from .matching import ColorMatcher, PaletteLabCache, nearest_color
from .models import (
    Color,
    ColorAlgorithm,
    ConversionConfig,
    ConversionResult,
    ImageAdjustments,
    LabColor,
    Palette,
    PixelBlock,
)
from .palette import (
    InvalidFormatError,
    MalformedPayloadError,
    PaletteParseError,
    load_palette,
    parse_palette,
)
from .pipeline import PixelArtPipeline
from .pixelate import iter_blocks, render

__all__ = [
    "Color",
    "ColorAlgorithm",
    "ColorMatcher",
    "ConversionConfig",
    "ConversionResult",
    "ImageAdjustments",
    "InvalidFormatError",
    "LabColor",
    "MalformedPayloadError",
    "Palette",
    "PaletteLabCache",
    "PaletteParseError",
    "PixelArtPipeline",
    "PixelBlock",
    "iter_blocks",
    "load_palette",
    "nearest_color",
    "parse_palette",
    "render",
]

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import re
from typing import Any

RGB = tuple[int, int, int]
LAB = tuple[float, float, float]

_HEX_PATTERN = re.compile(r"#?[0-9A-Fa-f]{6}")


class ColorAlgorithm(str, Enum):
    EUCLIDEAN = "euclidean"
    WEIGHTED = "weighted"
    CIE76 = "cie76"


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int
    name: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        for channel in (self.r, self.g, self.b):
            if not 0 <= channel <= 255:
                raise ValueError(f"color channels must be within 0..255, got {self.rgb}")

    @property
    def rgb(self) -> RGB:
        return (self.r, self.g, self.b)

    @property
    def hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    @classmethod
    def from_hex(cls, value: str, name: str | None = None) -> Color:
        if not _HEX_PATTERN.fullmatch(value):
            raise ValueError(f"invalid hex color '{value}'")
        normalized = value[1:] if value.startswith("#") else value
        return cls(
            int(normalized[0:2], 16),
            int(normalized[2:4], 16),
            int(normalized[4:6], 16),
            name,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"hex": self.hex, "rgb": list(self.rgb), "name": self.name}


@dataclass(frozen=True)
class Palette:
    name: str
    colors: tuple[Color, ...] = ()

    def __len__(self) -> int:
        return len(self.colors)

    @property
    def is_empty(self) -> bool:
        return not self.colors

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "count": len(self.colors),
            "colors": [color.to_dict() for color in self.colors],
        }


@dataclass(frozen=True)
class LabColor:
    L: float
    a: float
    b: float


@dataclass(frozen=True)
class PixelBlock:
    x: int
    y: int
    w: int
    h: int


@dataclass(frozen=True)
class ImageAdjustments:
    brightness: float = 100.0
    contrast: float = 100.0
    saturation: float = 100.0

    def __post_init__(self) -> None:
        for label, value in (
            ("brightness", self.brightness),
            ("contrast", self.contrast),
            ("saturation", self.saturation),
        ):
            if not 0.0 <= float(value) <= 200.0:
                raise ValueError(f"{label} must be between 0 and 200, got {value}")

    @property
    def is_identity(self) -> bool:
        return self.brightness == 100 and self.contrast == 100 and self.saturation == 100


@dataclass(frozen=True)
class ConversionConfig:
    block_size: int
    palette: Palette | None = None
    algorithm: ColorAlgorithm = ColorAlgorithm.EUCLIDEAN

    def __post_init__(self) -> None:
        if int(self.block_size) < 1:
            raise ValueError(f"block_size must be >= 1, got {self.block_size}")
        object.__setattr__(self, "algorithm", ColorAlgorithm(self.algorithm))

    @property
    def effective_palette(self) -> Palette | None:
        if self.palette is None or self.palette.is_empty:
            return None
        return self.palette


@dataclass(frozen=True)
class ConversionResult:
    width: int
    height: int
    columns: int
    rows: int
    block_size: int
    algorithm: ColorAlgorithm
    palette_name: str | None
    palette_size: int
    png: bytes = field(repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "columns": self.columns,
            "rows": self.rows,
            "block_size": self.block_size,
            "algorithm": self.algorithm.value,
            "palette_name": self.palette_name,
            "palette_size": self.palette_size,
        }

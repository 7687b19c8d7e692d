from __future__ import annotations

import base64
import binascii

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from pixel_studio.src.pixel_pipeline.config import config
from pixel_studio.src.pixel_pipeline.log import get_logger
from pixel_studio.src.pixel_pipeline.models import (
    ColorAlgorithm,
    ImageAdjustments,
    Palette,
)
from pixel_studio.src.pixel_pipeline.palette import (
    PaletteParseError,
    parse_palette,
    supported_formats_message,
)
from pixel_studio.src.pixel_pipeline.pipeline import PixelArtPipeline

logger = get_logger()


class PaletteRequest(BaseModel):
    file_name: str = Field(..., description="Original palette file name, used for format dispatch")
    payload_b64: str = Field(..., description="Base64-encoded palette file contents")


class ColorItem(BaseModel):
    hex: str
    rgb: list[int]
    name: str | None


class PaletteResponse(BaseModel):
    name: str
    count: int
    colors: list[ColorItem]


class ConvertRequest(BaseModel):
    image_url: str = Field(..., description="HTTP(S) image URL or local path")
    block_size: int = Field(default=config.DEFAULT_BLOCK_SIZE, ge=1, le=512)
    algorithm: ColorAlgorithm = Field(default_factory=config.default_algorithm)
    palette_file_name: str | None = Field(
        default=None,
        description="Palette file name; required together with palette_b64",
    )
    palette_b64: str | None = Field(
        default=None,
        description="Optional base64-encoded palette file contents",
    )
    brightness: float = Field(default=100.0, ge=0.0, le=200.0)
    contrast: float = Field(default=100.0, ge=0.0, le=200.0)
    saturation: float = Field(default=100.0, ge=0.0, le=200.0)


class ConvertResponse(BaseModel):
    width: int
    height: int
    columns: int
    rows: int
    algorithm: str
    palette_name: str | None
    palette_size: int
    png_b64: str


app = FastAPI(
    title="Pixel Studio API",
    version="1.0.0",
    description="Convert images to pixel art and import palettes from GPL, PAL, ACT, HEX, ASE and Lospec JSON files.",
)


def _build_pipeline() -> PixelArtPipeline:
    return PixelArtPipeline()


def _decode_palette(file_name: str, payload_b64: str) -> Palette:
    try:
        payload = base64.b64decode(payload_b64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(
            status_code=400, detail=f"failed_to_parse_palette: invalid base64 ({exc})"
        ) from exc

    if len(payload) > config.MAX_PALETTE_BYTES:
        raise HTTPException(status_code=413, detail="palette_too_large")

    try:
        return parse_palette(file_name, payload)
    except PaletteParseError as exc:
        logger.warning("palette '{}' rejected: {}", file_name, exc)
        raise HTTPException(
            status_code=400,
            detail=f"failed_to_parse_palette: {supported_formats_message()} ({exc})",
        ) from exc


@app.post("/palette", response_model=PaletteResponse)
async def import_palette(payload: PaletteRequest) -> PaletteResponse:
    palette = _decode_palette(payload.file_name, payload.payload_b64)
    return PaletteResponse(
        name=palette.name,
        count=len(palette.colors),
        colors=[
            ColorItem(hex=color.hex, rgb=list(color.rgb), name=color.name)
            for color in palette.colors
        ],
    )


@app.post("/convert", response_model=ConvertResponse)
async def convert_image(payload: ConvertRequest) -> ConvertResponse:
    palette = None
    if payload.palette_b64 is not None:
        if not payload.palette_file_name:
            raise HTTPException(
                status_code=400, detail="palette_file_name is required with palette_b64"
            )
        palette = _decode_palette(payload.palette_file_name, payload.palette_b64)

    pipeline = _build_pipeline()
    try:
        adjustments = ImageAdjustments(
            brightness=payload.brightness,
            contrast=payload.contrast,
            saturation=payload.saturation,
        )
        result = await run_in_threadpool(
            pipeline.run,
            payload.image_url,
            payload.block_size,
            palette,
            payload.algorithm,
            adjustments,
        )
    except Exception as exc:
        raise HTTPException(
            status_code=400, detail=f"failed_to_convert: {exc}"
        ) from exc

    return ConvertResponse(
        width=result.width,
        height=result.height,
        columns=result.columns,
        rows=result.rows,
        algorithm=result.algorithm.value,
        palette_name=result.palette_name,
        palette_size=result.palette_size,
        png_b64=base64.b64encode(result.png).decode("ascii"),
    )

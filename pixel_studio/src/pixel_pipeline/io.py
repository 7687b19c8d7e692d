from __future__ import annotations

import json
from pathlib import Path
import io
import requests

import numpy as np
from PIL import Image

from .config import config
from .models import ConversionResult, Palette


def read_image_rgba(image_path: str | Path) -> np.ndarray:
    path_str = str(image_path)
    if path_str.startswith(("http://", "https://")):
        response = requests.get(path_str, timeout=config.HTTP_TIMEOUT)
        response.raise_for_status()
        return decode_image_rgba(response.content)

    path = Path(image_path)
    with Image.open(path) as image:
        rgba = image.convert("RGBA")
        return np.asarray(rgba, dtype=np.uint8)


def decode_image_rgba(data: bytes) -> np.ndarray:
    with Image.open(io.BytesIO(data)) as image:
        rgba = image.convert("RGBA")
        return np.asarray(rgba, dtype=np.uint8)


def encode_png(image_rgba: np.ndarray) -> bytes:
    if image_rgba.ndim != 3 or image_rgba.shape[2] != 4:
        raise ValueError("image must have shape (H, W, 4)")
    buffer = io.BytesIO()
    Image.fromarray(image_rgba.astype(np.uint8)).save(buffer, format="PNG")
    return buffer.getvalue()


def write_png(result: ConversionResult, output_path: str | Path) -> None:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(result.png)


def write_result_json(result: ConversionResult, output_path: str | Path) -> None:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(result.to_dict(), indent=2)
    path.write_text(payload + "\n", encoding="utf-8")


def write_palette_json(palette: Palette, output_path: str | Path) -> None:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(palette.to_dict(), indent=2)
    path.write_text(payload + "\n", encoding="utf-8")

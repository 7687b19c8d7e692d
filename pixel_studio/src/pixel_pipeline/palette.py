from __future__ import annotations

import json
import math
import re
import struct
from pathlib import Path
from typing import Callable

from loguru import logger

from .models import Color, Palette

_HEX_PATTERN = re.compile(r"^[0-9A-Fa-f]{6}$")
_LEADING_INT = re.compile(r"^[+-]?\d+")
_DIGITS_ONLY = re.compile(r"^\d+$")

SUPPORTED_FORMATS = ("gpl", "pal", "act", "hex", "ase", "json")

DEFAULT_GPL_NAME = "Imported Palette"
PAL_NAME = "PAL Palette"
ACT_NAME = "ACT Palette"
HEX_NAME = "HEX Palette"
ASE_NAME = "ASE Palette"
LOSPEC_NAME = "Lospec Palette"

ACT_FILE_SIZE = 772
ACT_COUNT_OFFSET = 768
MAX_ACT_COLORS = 256

ASE_SIGNATURE = b"ASEF"
ASE_HEADER_SIZE = 12
ASE_GROUP_START = 0x0000
ASE_COLOR_ENTRY = 0x0001


class PaletteParseError(ValueError):
    pass


class InvalidFormatError(PaletteParseError):
    pass


class MalformedPayloadError(PaletteParseError):
    pass


def supported_formats_message() -> str:
    names = ", ".join(fmt.upper() for fmt in SUPPORTED_FORMATS)
    return f"failed to parse palette, supported formats: {names}"


def parse_palette(file_name: str, payload: bytes) -> Palette:
    """Decode a palette file by its extension.

    Unknown extensions are read as a list of hex colors. A palette with no
    colors is returned as-is; deciding whether that is acceptable is left to
    the caller.
    """
    ext = _extension(file_name)
    decoder = _DECODERS.get(ext, _decode_hex_payload)
    palette = decoder(payload)
    logger.debug(
        "parsed palette '{}' as {} with {} colors",
        file_name,
        ext if ext in _DECODERS else "hex (fallback)",
        len(palette.colors),
    )
    return palette


def load_palette(path_like: str | Path) -> Palette:
    path = Path(path_like)
    if not path.exists():
        raise FileNotFoundError(f"palette file does not exist: {path}")
    return parse_palette(path.name, path.read_bytes())


def parse_gpl(text: str) -> Palette:
    name = DEFAULT_GPL_NAME
    colors: list[Color] = []

    for line in text.splitlines():
        trimmed = line.strip()
        if trimmed.startswith("Name:"):
            name = trimmed[5:].strip()
            continue
        if not trimmed or trimmed.startswith("#") or trimmed.startswith("GIMP"):
            continue

        parts = trimmed.split()
        rgb = _leading_rgb(parts)
        if rgb is None:
            continue
        color_name = " ".join(parts[3:]) or None
        colors.append(Color(*rgb, name=color_name))

    return Palette(name=name, colors=tuple(colors))


def parse_pal(text: str) -> Palette:
    # The declared count only marks where color lines start. It is not
    # enforced: every following line that holds three integers is kept.
    colors: list[Color] = []
    reading = False

    for line in text.splitlines():
        trimmed = line.strip()
        if trimmed in ("JASC-PAL", "0100"):
            continue
        if not reading and _DIGITS_ONLY.match(trimmed):
            reading = True
            continue
        if not reading:
            continue

        rgb = _leading_rgb(trimmed.split())
        if rgb is not None:
            colors.append(Color(*rgb))

    return Palette(name=PAL_NAME, colors=tuple(colors))


def parse_act(data: bytes) -> Palette:
    count = MAX_ACT_COLORS
    if len(data) >= ACT_FILE_SIZE:
        (count,) = struct.unpack_from(">H", data, ACT_COUNT_OFFSET)
        if count == 0 or count > MAX_ACT_COLORS:
            count = MAX_ACT_COLORS

    available = len(data) // 3
    colors = tuple(
        Color(data[i * 3], data[i * 3 + 1], data[i * 3 + 2])
        for i in range(min(count, available))
    )
    return Palette(name=ACT_NAME, colors=colors)


def parse_hex(text: str) -> Palette:
    colors: list[Color] = []
    for line in text.splitlines():
        color = _hex_to_color(line.strip())
        if color is not None:
            colors.append(color)
    return Palette(name=HEX_NAME, colors=tuple(colors))


def parse_ase(data: bytes) -> Palette:
    if len(data) < ASE_HEADER_SIZE or data[:4] != ASE_SIGNATURE:
        raise InvalidFormatError("invalid ASE file: missing ASEF signature")

    name = ASE_NAME
    colors: list[Color] = []
    size = len(data)
    offset = ASE_HEADER_SIZE

    while offset < size - 2:
        (block_type,) = struct.unpack_from(">H", data, offset)
        offset += 2
        if offset + 4 > size:
            break
        (block_length,) = struct.unpack_from(">I", data, offset)
        offset += 4
        block_end = offset + block_length

        if block_type == ASE_COLOR_ENTRY:
            color = _read_ase_color(data, offset)
            if color is not None:
                colors.append(color)
        elif block_type == ASE_GROUP_START:
            group_name = _read_ase_group_name(data, offset)
            if group_name is not None:
                name = group_name

        offset = block_end
        if offset >= size:
            break

    return Palette(name=name, colors=tuple(colors))


def parse_lospec_json(text: str) -> Palette:
    try:
        document = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as exc:
        raise MalformedPayloadError(f"palette json is not parseable: {exc}") from exc

    if not isinstance(document, dict):
        document = {}

    hex_list = document.get("colors")
    if hex_list is None:
        hex_list = document.get("palette")
    if not isinstance(hex_list, list):
        hex_list = []

    colors: list[Color] = []
    for entry in hex_list:
        if not isinstance(entry, str):
            continue
        color = _hex_to_color(entry)
        if color is not None:
            colors.append(color)

    name = document.get("name")
    if name is None:
        name = LOSPEC_NAME
    return Palette(name=str(name), colors=tuple(colors))


def _read_ase_color(data: bytes, offset: int) -> Color | None:
    size = len(data)
    if offset + 2 > size:
        return None
    (name_length,) = struct.unpack_from(">H", data, offset)
    offset += 2 + name_length * 2

    if offset + 4 > size:
        return None
    model = data[offset : offset + 4]
    offset += 4

    if model == b"RGB ":
        values = _read_floats(data, offset, 3)
        if values is None:
            return None
        r, g, b = values
        return Color(
            *_clamped(
                _round_half_up(r * 255),
                _round_half_up(g * 255),
                _round_half_up(b * 255),
            )
        )

    if model == b"CMYK":
        values = _read_floats(data, offset, 4)
        if values is None:
            return None
        c, m, y, k = values
        return Color(
            *_clamped(
                _round_half_up(255 * (1 - c) * (1 - k)),
                _round_half_up(255 * (1 - m) * (1 - k)),
                _round_half_up(255 * (1 - y) * (1 - k)),
            )
        )

    return None


def _read_ase_group_name(data: bytes, offset: int) -> str | None:
    size = len(data)
    if offset + 2 > size:
        return None
    (name_length,) = struct.unpack_from(">H", data, offset)
    start = offset + 2
    available = max(0, (size - start) // 2)
    units = min(name_length, available)
    if units == 0:
        return None
    raw = data[start : start + units * 2]
    return raw.decode("utf-16-be", errors="replace").replace("\x00", "")


def _read_floats(data: bytes, offset: int, count: int) -> tuple[float, ...] | None:
    if offset + 4 * count > len(data):
        return None
    values = struct.unpack_from(f">{count}f", data, offset)
    if not all(math.isfinite(value) for value in values):
        return None
    return values


def _round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def _clamped(r: int, g: int, b: int) -> tuple[int, int, int]:
    return (
        min(max(r, 0), 255),
        min(max(g, 0), 255),
        min(max(b, 0), 255),
    )


def _leading_rgb(parts: list[str]) -> tuple[int, int, int] | None:
    if len(parts) < 3:
        return None
    values: list[int] = []
    for token in parts[:3]:
        match = _LEADING_INT.match(token)
        if match is None:
            return None
        values.append(int(match.group(0)))
    return _clamped(values[0], values[1], values[2])


def _hex_to_color(value: str) -> Color | None:
    normalized = value[1:] if value.startswith("#") else value
    if not _HEX_PATTERN.fullmatch(normalized):
        return None
    return Color.from_hex(normalized)


def _extension(file_name: str) -> str:
    _, dot, ext = file_name.rpartition(".")
    return ext.lower() if dot else ""


def _as_text(payload: bytes) -> str:
    return payload.decode("utf-8-sig", errors="replace")


def _decode_hex_payload(payload: bytes) -> Palette:
    return parse_hex(_as_text(payload))


_DECODERS: dict[str, Callable[[bytes], Palette]] = {
    "gpl": lambda payload: parse_gpl(_as_text(payload)),
    "pal": lambda payload: parse_pal(_as_text(payload)),
    "act": parse_act,
    "hex": _decode_hex_payload,
    "ase": parse_ase,
    "json": lambda payload: parse_lospec_json(_as_text(payload)),
}

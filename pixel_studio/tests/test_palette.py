from __future__ import annotations

import json
import struct

import pytest

from pixel_studio.src.pixel_pipeline.models import Color
from pixel_studio.src.pixel_pipeline.palette import (
    InvalidFormatError,
    MalformedPayloadError,
    PaletteParseError,
    load_palette,
    parse_palette,
    supported_formats_message,
)


def _ase_block(block_type: int, body: bytes) -> bytes:
    return struct.pack(">HI", block_type, len(body)) + body


def _ase_name(text: str) -> bytes:
    encoded = text.encode("utf-16-be")
    return struct.pack(">H", len(encoded) // 2) + encoded


def _ase_color(model: bytes, values: tuple[float, ...], name: str = "Swatch\0") -> bytes:
    body = _ase_name(name) + model + struct.pack(f">{len(values)}f", *values)
    return _ase_block(0x0001, body + struct.pack(">H", 2))


def _ase_file(*blocks: bytes) -> bytes:
    return b"ASEF" + struct.pack(">HHI", 1, 0, len(blocks)) + b"".join(blocks)


def test_gpl_with_only_name_and_comments_is_empty():
    payload = b"GIMP Palette\nName: Foo\n# a comment\n\n#\n"

    palette = parse_palette("foo.gpl", payload)

    assert palette.name == "Foo"
    assert palette.colors == ()


def test_gpl_reads_colors_and_names_and_skips_junk():
    payload = (
        "GIMP Palette\r\n"
        "Name: Sweetie 16\r\n"
        "Columns: 4\r\n"
        "#\r\n"
        " 26  28  44\tBlack Pearl\r\n"
        "255 0 0\r\n"
        "not a color line\r\n"
        "12 34\r\n"
        "  0 255   0 Bright   Green\r\n"
    ).encode("utf-8")

    palette = parse_palette("sweetie.GPL", payload)

    assert palette.name == "Sweetie 16"
    assert [c.rgb for c in palette.colors] == [(26, 28, 44), (255, 0, 0), (0, 255, 0)]
    assert palette.colors[0].name == "Black Pearl"
    assert palette.colors[1].name is None
    assert palette.colors[2].name == "Bright Green"


def test_gpl_defaults_name_when_missing():
    palette = parse_palette("plain.gpl", b"10 20 30\n")

    assert palette.name == "Imported Palette"
    assert palette.colors == (Color(10, 20, 30),)


def test_pal_reads_declared_colors():
    payload = b"JASC-PAL\n0100\n2\n255 0 0\n0 255 0\n"

    palette = parse_palette("test.pal", payload)

    assert palette.name == "PAL Palette"
    assert [c.rgb for c in palette.colors] == [(255, 0, 0), (0, 255, 0)]


def test_pal_keeps_lines_beyond_declared_count():
    # The count line is only a start marker; it does not cap the color list.
    payload = b"JASC-PAL\r\n0100\r\n1\r\n1 2 3\r\n4 5 6\r\n7 8 9\r\n"

    palette = parse_palette("overflow.pal", payload)

    assert [c.rgb for c in palette.colors] == [(1, 2, 3), (4, 5, 6), (7, 8, 9)]


def test_gpl_clamps_out_of_range_channels():
    palette = parse_palette("hot.gpl", b"GIMP Palette\n300 -5 128 Hot\n")

    assert palette.colors == (Color(255, 0, 128),)
    assert palette.colors[0].name == "Hot"


def test_pal_clamps_out_of_range_channels():
    palette = parse_palette("hot.pal", b"JASC-PAL\n0100\n1\n300 -5 128\n")

    assert palette.colors == (Color(255, 0, 128),)


def test_pal_ignores_lines_before_count_marker():
    payload = b"JASC-PAL\n0100\n9 9 9\n1\n10 20 30\nbogus\n"

    palette = parse_palette("early.pal", payload)

    assert [c.rgb for c in palette.colors] == [(10, 20, 30)]


def test_act_full_file_uses_count_field():
    data = bytearray(772)
    data[0:9] = bytes([255, 0, 0, 0, 255, 0, 0, 0, 255])
    data[9:12] = bytes([1, 2, 3])
    data[768:770] = struct.pack(">H", 3)
    data[770:772] = b"\xff\xff"

    palette = parse_palette("adobe.act", bytes(data))

    assert palette.name == "ACT Palette"
    assert [c.rgb for c in palette.colors] == [(255, 0, 0), (0, 255, 0), (0, 0, 255)]


@pytest.mark.parametrize("stored", [0, 257, 0xFFFF])
def test_act_out_of_range_count_means_256(stored):
    data = bytearray(772)
    data[768:770] = struct.pack(">H", stored)

    palette = parse_palette("adobe.act", bytes(data))

    assert len(palette.colors) == 256


def test_act_short_buffer_reads_complete_triplets():
    assert len(parse_palette("short.act", bytes([1, 2, 3, 4, 5, 6])).colors) == 2
    assert len(parse_palette("short.act", bytes([1, 2, 3, 4, 5, 6, 7])).colors) == 2
    assert parse_palette("empty.act", b"").colors == ()


def test_hex_skips_invalid_lines():
    payload = b"#FF0000\n00ff00\n#12345\nnot a color\n#abcdefg\n##0000ff\n\n"

    palette = parse_palette("lospec.hex", payload)

    assert palette.name == "HEX Palette"
    assert [c.rgb for c in palette.colors] == [(255, 0, 0), (0, 255, 0)]


@pytest.mark.parametrize("file_name", ["colors.txt", "palette", "weird.PNG"])
def test_unknown_extension_falls_back_to_hex(file_name):
    palette = parse_palette(file_name, b"\xef\xbb\xbf#102030\r\n405060\r\n")

    assert palette.name == "HEX Palette"
    assert [c.rgb for c in palette.colors] == [(16, 32, 48), (64, 80, 96)]


def test_ase_single_rgb_color():
    payload = _ase_file(_ase_color(b"RGB ", (1.0, 0.0, 0.0)))

    palette = parse_palette("swatches.ase", payload)

    assert palette.name == "ASE Palette"
    assert palette.colors == (Color(255, 0, 0),)


def test_ase_cmyk_and_unknown_models():
    payload = _ase_file(
        _ase_color(b"CMYK", (0.0, 1.0, 1.0, 0.0)),
        _ase_color(b"LAB ", (50.0, 0.0, 0.0)),
        _ase_color(b"Gray", (0.5,)),
        _ase_color(b"CMYK", (0.0, 0.0, 0.0, 0.5)),
    )

    palette = parse_palette("swatches.ase", payload)

    assert [c.rgb for c in palette.colors] == [(255, 0, 0), (128, 128, 128)]


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
def test_ase_skips_colors_with_non_finite_channels(bad):
    payload = _ase_file(
        _ase_color(b"RGB ", (0.0, 1.0, 0.0)),
        _ase_color(b"RGB ", (bad, 0.0, 0.0)),
        _ase_color(b"CMYK", (0.0, 0.0, 0.0, bad)),
    )

    palette = parse_palette("swatches.ase", payload)

    assert palette.colors == (Color(0, 255, 0),)


def test_ase_clamps_out_of_range_channels():
    payload = _ase_file(
        _ase_color(b"CMYK", (0.0, 0.0, 0.0, -1.0)),
        _ase_color(b"RGB ", (1.5, -0.2, 0.5)),
    )

    palette = parse_palette("swatches.ase", payload)

    assert [c.rgb for c in palette.colors] == [(255, 255, 255), (255, 0, 128)]


def test_ase_group_name_overrides_palette_name():
    payload = _ase_file(
        _ase_block(0x0000, _ase_name("Brand Colors\0")),
        _ase_color(b"RGB ", (0.0, 0.5, 1.0)),
        _ase_block(0x0002, b""),
    )

    palette = parse_palette("brand.ase", payload)

    assert palette.name == "Brand Colors"
    assert palette.colors == (Color(0, 128, 255),)


def test_ase_skips_unknown_blocks_by_declared_length():
    payload = _ase_file(
        _ase_block(0x00C0, b"\x00\x01\x00\x00\x00\x00junk"),
        _ase_color(b"RGB ", (0.0, 0.0, 1.0)),
    )

    palette = parse_palette("mixed.ase", payload)

    assert palette.colors == (Color(0, 0, 255),)


def test_ase_keeps_colors_before_truncated_block():
    good = _ase_color(b"RGB ", (0.0, 1.0, 0.0))
    truncated = _ase_color(b"RGB ", (1.0, 1.0, 1.0))[:-10]

    palette = parse_palette("cut.ase", _ase_file(good, truncated))

    assert palette.colors == (Color(0, 255, 0),)


def test_ase_rejects_bad_signature():
    payload = b"ASEX" + b"\x00" * 20

    with pytest.raises(InvalidFormatError):
        parse_palette("bad.ase", payload)


def test_ase_rejects_too_short_header():
    with pytest.raises(InvalidFormatError):
        parse_palette("tiny.ase", b"AS")


def test_lospec_json_keeps_valid_hex_entries():
    payload = json.dumps({"name": "Test", "colors": ["#ff0000", "bad", "00ff00"]})

    palette = parse_palette("test.json", payload.encode("utf-8"))

    assert palette.name == "Test"
    assert [c.rgb for c in palette.colors] == [(255, 0, 0), (0, 255, 0)]


def test_lospec_json_palette_field_and_default_name():
    payload = json.dumps({"palette": ["0a0b0c", 12, None, "#FFFFFF"]})

    palette = parse_palette("lospec.json", payload.encode("utf-8"))

    assert palette.name == "Lospec Palette"
    assert [c.rgb for c in palette.colors] == [(10, 11, 12), (255, 255, 255)]


def test_lospec_json_missing_fields_degrade_to_empty():
    assert parse_palette("empty.json", b"{}").colors == ()
    assert parse_palette("list.json", b"[1, 2, 3]").colors == ()


def test_lospec_json_malformed_document_raises():
    with pytest.raises(MalformedPayloadError):
        parse_palette("broken.json", b"{not json")


def test_lospec_json_deeply_nested_document_raises():
    payload = b"[" * 100000 + b"]" * 100000

    with pytest.raises(MalformedPayloadError):
        parse_palette("nested.json", payload)


def test_parse_errors_share_a_base_class():
    assert issubclass(InvalidFormatError, PaletteParseError)
    assert issubclass(MalformedPayloadError, PaletteParseError)
    assert "GPL, PAL, ACT, HEX, ASE, JSON" in supported_formats_message()


@pytest.mark.parametrize("value", ["ff0000", "00FF00", "0a1B2c", "FFFFFF", "000000"])
def test_hex_decode_then_encode_is_case_normalized(value):
    assert Color.from_hex(value).hex == f"#{value.lower()}"
    assert Color.from_hex(f"#{value}").hex == f"#{value.lower()}"


def test_load_palette_from_file(tmp_path):
    palette_file = tmp_path / "palette.gpl"
    palette_file.write_text(
        "GIMP Palette\nName: On Disk\n255 255 255 White\n", encoding="utf-8"
    )

    palette = load_palette(palette_file)

    assert palette.name == "On Disk"
    assert palette.colors[0].name == "White"


def test_load_palette_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_palette(tmp_path / "missing.gpl")

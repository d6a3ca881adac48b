"""Tests for palette file parsing, serialization, template and preview."""

from __future__ import annotations

from pathlib import Path

import click
import pytest

from pal_toolbox.core.exceptions import FormatError, ToolError, ValidationError
from pal_toolbox.tools.palette._format import ANALOGUE_POCKET_FOOTER, ANALOGUE_POCKET_LAYOUT, PaletteGroup, PaletteLayout
from pal_toolbox.tools.palette.logic import (
    PaletteFile,
    contrast_color,
    load_palette,
    parse,
    render_ansi,
    save_palette,
    serialize,
    template,
)

# ── Helpers ───────────────────────────────────────────────────────────────

DMG_LAYOUT = PaletteLayout(name="dmg", groups=(PaletteGroup("bg", "Background", 4),))


def _pocket_bytes(footer: bytes = ANALOGUE_POCKET_FOOTER) -> bytes:
    """Build 56 palette bytes where slot *n* is ``(n, n + 100, 255 - n)``."""
    body = b"".join(bytes([n, n + 100, 255 - n]) for n in range(17))
    return body + footer


# ── Layout ────────────────────────────────────────────────────────────────


class TestLayout:
    """Tests for the device layout description."""

    def test_pocket_layout_size(self) -> None:
        """The Analogue Pocket layout is 17 slots in 56 bytes."""
        assert ANALOGUE_POCKET_LAYOUT.slot_count == 17
        assert ANALOGUE_POCKET_LAYOUT.byte_size == 56

    def test_slot_names_in_file_order(self) -> None:
        """Multi-slot groups are numbered, single-slot groups keep their name."""
        names = ANALOGUE_POCKET_LAYOUT.slot_names
        assert names[:4] == ("bg_0", "bg_1", "bg_2", "bg_3")
        assert names[4] == "obj0_0"
        assert names[-1] == "lcd_off"


# ── Parse / serialize ────────────────────────────────────────────────────


class TestParse:
    """Tests for ``parse``."""

    def test_reads_slots_in_order(self) -> None:
        """Slots are read as consecutive RGB triples."""
        palette = parse(_pocket_bytes())

        assert palette.slot_count == 17
        assert palette.colors[0] == (0, 100, 255)
        assert palette.colors[16] == (16, 116, 239)
        assert palette.as_dict()["lcd_off"] == (16, 116, 239)

    def test_groups_split_by_layout(self) -> None:
        """``groups()`` returns the colours of each group."""
        groups = parse(_pocket_bytes()).groups()

        assert len(groups["bg"]) == 4
        assert groups["obj1"][0] == (8, 108, 247)
        assert groups["lcd_off"] == ((16, 116, 239),)

    @pytest.mark.parametrize("size", [0, 55, 57, 512])
    def test_rejects_wrong_length(self, size: int) -> None:
        """Any size other than 56 bytes is a format error."""
        with pytest.raises(FormatError, match="exactly 56 bytes"):
            parse(bytes(size))

    def test_rejects_wrong_footer(self) -> None:
        """A corrupted footer is a format error in strict mode."""
        with pytest.raises(FormatError, match="footer"):
            parse(_pocket_bytes(footer=b"XXXXX"))

    def test_lenient_reads_wrong_footer(self, caplog: pytest.LogCaptureFixture) -> None:
        """Non-strict parsing logs the bad footer and keeps the colours."""
        palette = parse(_pocket_bytes(footer=b"XXXXX"), strict=False, source="odd.pal")

        assert palette.colors[0] == (0, 100, 255)
        assert "odd.pal" in caplog.text

    def test_error_names_source(self) -> None:
        """The source name appears in the error message."""
        with pytest.raises(FormatError, match="broken.pal"):
            parse(b"\x00", source="broken.pal")


class TestSerialize:
    """Tests for ``serialize`` and the round-trip law."""

    def test_bytes_round_trip(self) -> None:
        """Serializing a parsed file reproduces the exact bytes."""
        data = _pocket_bytes()
        assert serialize(parse(data)) == data

    def test_template_round_trip(self) -> None:
        """``parse(serialize(template()))`` equals the template."""
        palette = template()
        assert parse(serialize(palette)) == palette

    def test_footer_written(self) -> None:
        """The device footer ends every serialized file."""
        assert serialize(template()).endswith(b"\x81APGB")

    def test_custom_layout_without_footer(self) -> None:
        """A layout without footer serializes to just the slot bytes."""
        palette = template(DMG_LAYOUT)
        data = serialize(palette)

        assert len(data) == 12
        assert parse(data, layout=DMG_LAYOUT) == palette


# ── Model ─────────────────────────────────────────────────────────────────


class TestPaletteFile:
    """Tests for the immutable palette model."""

    def test_rejects_wrong_slot_count(self) -> None:
        """Construction fails when colours do not fill the layout."""
        with pytest.raises(FormatError, match="needs 17 colours"):
            PaletteFile(colors=((0, 0, 0),))

    def test_rejects_channel_out_of_range(self) -> None:
        """Channels must fit in one byte."""
        colors = [(0, 0, 0)] * 3 + [(0, 0, 256)]
        with pytest.raises(FormatError, match="bg_3"):
            PaletteFile(colors=tuple(colors), layout=DMG_LAYOUT)

    def test_with_slot_returns_new_instance(self) -> None:
        """Editing a slot leaves the original untouched."""
        original = template()
        edited = original.with_slot("bg_0", (1, 2, 3))

        assert edited.colors[0] == (1, 2, 3)
        assert original.colors[0] != (1, 2, 3)
        assert edited.colors[1:] == original.colors[1:]

    def test_with_slot_unknown_name(self) -> None:
        """Unknown slot names raise ``ValidationError``."""
        with pytest.raises(ValidationError, match="Unknown slot"):
            template().with_slot("sprite_9", (0, 0, 0))


# ── Template ──────────────────────────────────────────────────────────────


class TestTemplate:
    """Tests for the deterministic template palette."""

    def test_same_bytes_every_call(self) -> None:
        """The template is deterministic."""
        assert serialize(template()) == serialize(template())

    def test_all_colours_unique(self) -> None:
        """Every slot has a distinct colour so screenshots map back to slots."""
        colors = template().colors
        assert len(set(colors)) == len(colors)

    def test_four_slot_ramp_light_to_dark(self) -> None:
        """A single four-slot group runs near-white, light gray, dark gray, near-black."""
        colors = template(DMG_LAYOUT).colors

        assert colors == ((232, 232, 232), (163, 163, 163), (93, 93, 93), (24, 24, 24))

    def test_lcd_off_is_magenta(self) -> None:
        """The single-slot ``lcd_off`` group gets full-intensity magenta."""
        assert template().as_dict()["lcd_off"] == (255, 0, 255)


# ── File I/O ──────────────────────────────────────────────────────────────


class TestFileIO:
    """Tests for ``load_palette`` / ``save_palette``."""

    def test_save_then_load(self, tmp_path: Path) -> None:
        """A saved palette loads back unchanged."""
        path = save_palette(template(), tmp_path / "template.pal")

        assert path.stat().st_size == 56
        assert load_palette(path) == template()

    def test_save_refuses_overwrite(self, tmp_path: Path) -> None:
        """Existing files are kept unless ``overwrite`` is set."""
        path = tmp_path / "t.pal"
        path.write_bytes(b"keep")

        with pytest.raises(ToolError, match="already exists"):
            save_palette(template(), path)
        save_palette(template(), path, overwrite=True)
        assert path.stat().st_size == 56

    def test_load_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises ``ToolError`` naming the path."""
        with pytest.raises(ToolError, match="missing.pal"):
            load_palette(tmp_path / "missing.pal")

    def test_load_malformed_names_path(self, tmp_path: Path) -> None:
        """Format errors name the offending file."""
        path = tmp_path / "short.pal"
        path.write_bytes(b"\x00" * 10)

        with pytest.raises(FormatError, match="short.pal"):
            load_palette(path)


# ── Preview ───────────────────────────────────────────────────────────────


class TestRenderAnsi:
    """Tests for the terminal preview."""

    def test_contrast_color(self) -> None:
        """Dark colours get white text, light colours black text."""
        assert contrast_color((0, 0, 0)) == (255, 255, 255)
        assert contrast_color((255, 255, 255)) == (0, 0, 0)

    def test_hex_style_lists_every_group(self) -> None:
        """Each group heading and hex value is present."""
        text = click.unstyle(render_ansi(template(), "hex"))

        for heading in ("Background", "Object 0", "Object 1", "Window", "LCD Off"):
            assert f"-- {heading} --" in text
        assert "#e8e8e8" in text
        assert "#ff00ff" in text

    def test_dec_style(self) -> None:
        """Decimal style prints bracketed channel values."""
        text = click.unstyle(render_ansi(template(), "dec"))
        assert "[232, 232, 232]" in text

    def test_output_contains_truecolor_escapes(self) -> None:
        """Swatches use 24-bit background escapes."""
        assert "\x1b[48;2;255;0;255m" in render_ansi(template(), "just-color")

    def test_rejects_unknown_style(self) -> None:
        """Unknown styles raise ``ValidationError``."""
        with pytest.raises(ValidationError, match="Invalid display style"):
            render_ansi(template(), "rainbow")

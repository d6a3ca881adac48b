"""Pure palette file logic — parsing, serialization, template and preview."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import click

from pal_toolbox.core.exceptions import FormatError, ToolError, ValidationError
from pal_toolbox.tools.palette._format import (
    ANALOGUE_POCKET_LAYOUT,
    CHANNELS,
    Color,
    PaletteLayout,
    pack_slots,
    unpack_slots,
)

logger = logging.getLogger(__name__)

# ── Constants ─────────────────────────────────────────────────────────────

PALETTE_SUFFIX = ".pal"

DISPLAY_STYLES: frozenset[str] = frozenset({"just-color", "number", "dec", "hex"})

# Template ramp runs from near-white to near-black.
TEMPLATE_LIGHT = 232
TEMPLATE_DARK = 24

# Channel masks cycled over the layout groups: gray, green, blue, red, magenta.
_TEMPLATE_TINTS: tuple[tuple[int, int, int], ...] = (
    (1, 1, 1),
    (0, 1, 0),
    (0, 0, 1),
    (1, 0, 0),
    (1, 0, 1),
)


# ── Model ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PaletteFile:
    """An immutable palette: one RGB triple per slot of *layout*, in file order.

    Raises:
        FormatError: If the slot count does not match the layout or a
            channel is outside 0-255.
    """

    colors: tuple[Color, ...]
    layout: PaletteLayout = field(default=ANALOGUE_POCKET_LAYOUT)

    def __post_init__(self) -> None:
        if len(self.colors) != self.layout.slot_count:
            msg = f"Layout '{self.layout.name}' needs {self.layout.slot_count} colours, got {len(self.colors)}"
            raise FormatError(msg)
        normalised = []
        for slot, color in zip(self.layout.slot_names, self.colors, strict=True):
            if len(color) != CHANNELS or not all(isinstance(c, int) and 0 <= c <= 255 for c in color):
                msg = f"Slot '{slot}' must be three 8-bit channels, got {color!r}"
                raise FormatError(msg)
            normalised.append(tuple(color))
        object.__setattr__(self, "colors", tuple(normalised))

    @property
    def slot_count(self) -> int:
        """Return the number of colour slots."""
        return len(self.colors)

    def as_dict(self) -> dict[str, Color]:
        """Return slot name → colour, in file order."""
        return dict(zip(self.layout.slot_names, self.colors, strict=True))

    def groups(self) -> dict[str, tuple[Color, ...]]:
        """Return group name → the colours of that group."""
        result: dict[str, tuple[Color, ...]] = {}
        start = 0
        for group in self.layout.groups:
            result[group.name] = self.colors[start : start + group.size]
            start += group.size
        return result

    def with_slot(self, slot: str | int, color: Color) -> PaletteFile:
        """Return a copy of this palette with one slot replaced.

        Args:
            slot: Slot name (``"bg_2"``) or index.
            color: The new RGB triple.

        Raises:
            ValidationError: If the slot does not exist.
        """
        if isinstance(slot, str):
            try:
                index = self.layout.slot_names.index(slot)
            except ValueError:
                msg = f"Unknown slot '{slot}'. Choose from: {list(self.layout.slot_names)}"
                raise ValidationError(msg) from None
        else:
            index = slot
        if not 0 <= index < self.slot_count:
            msg = f"Slot index {index} out of range 0-{self.slot_count - 1}"
            raise ValidationError(msg)
        colors = list(self.colors)
        colors[index] = color
        return PaletteFile(colors=tuple(colors), layout=self.layout)


# ── Binary format ─────────────────────────────────────────────────────────


def parse(
    data: bytes,
    *,
    layout: PaletteLayout = ANALOGUE_POCKET_LAYOUT,
    strict: bool = True,
    source: str = "<bytes>",
) -> PaletteFile:
    """Decode palette file bytes.

    Args:
        data: Raw file contents.
        layout: Slot layout the bytes must follow.
        strict: Reject a wrong footer.  When ``False`` the mismatch is
            logged and the slot data is read anyway.
        source: Name used in error messages (usually the file path).

    Returns:
        A fully populated ``PaletteFile``.

    Raises:
        FormatError: If the length or (in strict mode) the footer is wrong.
    """
    if len(data) != layout.byte_size:
        msg = f"Palette '{source}' should have exactly {layout.byte_size} bytes, but it has {len(data)} bytes"
        raise FormatError(msg)

    colors, footer = unpack_slots(layout, data)
    if footer != layout.footer:
        if strict:
            msg = f"Palette '{source}' has footer {footer.hex(' ')}, expected {layout.footer.hex(' ')}"
            raise FormatError(msg)
        logger.warning("Footer of palette '%s' is incorrect, reading it anyway", source)
    else:
        logger.debug("Footer of palette '%s' is correct", source)

    return PaletteFile(colors=colors, layout=layout)


def serialize(palette: PaletteFile) -> bytes:
    """Encode a palette to file bytes (slot data followed by the footer)."""
    return pack_slots(palette.layout, palette.colors)


def _ramp(size: int, tint: tuple[int, int, int]) -> tuple[Color, ...]:
    """Return *size* tinted shades from light to dark."""
    if size == 1:
        return ((255 * tint[0], 255 * tint[1], 255 * tint[2]),)
    shades = []
    for step in range(size):
        level = round(TEMPLATE_LIGHT - (TEMPLATE_LIGHT - TEMPLATE_DARK) * step / (size - 1))
        shades.append(tuple(level if on else level // 4 for on in tint))
    return tuple(shades)


def template(layout: PaletteLayout = ANALOGUE_POCKET_LAYOUT) -> PaletteFile:
    """Return the deterministic placeholder palette for *layout*.

    Each multi-slot group is a ramp from near-white to near-black, tinted
    per group so every colour in the template is unique.  Single-slot
    groups get the full-intensity tint (``lcd_off`` is magenta).
    """
    colors: list[Color] = []
    for position, group in enumerate(layout.groups):
        colors.extend(_ramp(group.size, _TEMPLATE_TINTS[position % len(_TEMPLATE_TINTS)]))
    return PaletteFile(colors=tuple(colors), layout=layout)


# ── File I/O ──────────────────────────────────────────────────────────────


def load_palette(path: Path, *, layout: PaletteLayout = ANALOGUE_POCKET_LAYOUT, strict: bool = True) -> PaletteFile:
    """Read and parse a palette file.

    Raises:
        ToolError: If the file cannot be read.
        FormatError: If the contents are malformed.
    """
    logger.debug("Loading palette from %s", path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        msg = f"Palette '{path}' could not be read"
        raise ToolError(msg) from exc
    palette = parse(data, layout=layout, strict=strict, source=str(path))
    logger.info("Palette from %s loaded", path)
    return palette


def save_palette(palette: PaletteFile, path: Path, *, overwrite: bool = False) -> Path:
    """Write a palette file.

    Raises:
        ToolError: If the file exists and *overwrite* is false, or the write fails.
    """
    if path.exists() and not overwrite:
        msg = f"Palette '{path}' already exists"
        raise ToolError(msg)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        path.write_bytes(serialize(palette))
    except OSError as exc:
        msg = f"Failed to write palette to '{path}'"
        raise ToolError(msg) from exc
    logger.info("Saved palette to %s", path)
    return path


# ── Terminal preview ─────────────────────────────────────────────────────


def contrast_color(color: Color) -> Color:
    """Return black or white, whichever reads better on *color*."""
    luminance = (0.299 * color[0] + 0.587 * color[1] + 0.114 * color[2]) / 255
    value = 0 if luminance > 0.5 else 255
    return (value, value, value)


def _swatch(color: Color, style: str, number: int) -> str:
    """Render one colour as a styled terminal cell."""
    match style:
        case "just-color":
            return click.style("  ", bg=color)
        case "number":
            text = f"  {number}  "
        case "dec":
            padding = "".join(" " * (3 - len(str(c))) for c in color)
            text = f"  [{color[0]}, {color[1]}, {color[2]}]  {padding}"
        case "hex":
            text = f"  #{color[0]:02x}{color[1]:02x}{color[2]:02x}  "
        case _:
            msg = f"Invalid display style '{style}'. Choose from: {sorted(DISPLAY_STYLES)}"
            raise ValidationError(msg)
    return click.style(text, fg=contrast_color(color), bg=color)


def render_ansi(palette: PaletteFile, style: str = "hex") -> str:
    """Render a palette as true-colour ANSI text, one block per group.

    Requires a terminal with 24-bit colour support to look right.

    Args:
        palette: The palette to render.
        style: ``just-color``, ``number``, ``dec`` or ``hex``.

    Returns:
        The rendered text, ending with a newline.
    """
    if style not in DISPLAY_STYLES:
        msg = f"Invalid display style '{style}'. Choose from: {sorted(DISPLAY_STYLES)}"
        raise ValidationError(msg)

    groups = palette.groups()
    lines: list[str] = []
    for group in palette.layout.groups:
        lines.append(f"-- {group.label} --")
        lines.append("".join(_swatch(color, style, n) for n, color in enumerate(groups[group.name])))
    return "\n".join(lines) + "\n"

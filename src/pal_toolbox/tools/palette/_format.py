"""Binary layout of device palette files.

Analogue Pocket ``.pal`` (Game Boy core), 56 bytes, no header::

    offset  size  content
         0    12  bg       4 x RGB   background shades 0-3
        12    12  obj0     4 x RGB   sprite palette 0 shades 0-3
        24    12  obj1     4 x RGB   sprite palette 1 shades 0-3
        36    12  window   4 x RGB   window layer shades 0-3
        48     3  lcd_off  1 x RGB   colour shown while the LCD is off
        51     5  footer   81 41 50 47 42  ('\\x81APGB')

Every channel is one unsigned byte.  Slot order in the file is the slot
index order used by colorization.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from functools import cached_property

Color = tuple[int, int, int]

CHANNELS = 3


@dataclass(frozen=True)
class PaletteGroup:
    """A run of consecutive slots sharing one role (e.g. background shades)."""

    name: str
    label: str
    size: int

    def slot_names(self) -> tuple[str, ...]:
        """Return slot names: ``<name>_<n>`` for multi-slot groups, ``<name>`` otherwise."""
        if self.size == 1:
            return (self.name,)
        return tuple(f"{self.name}_{n}" for n in range(self.size))


@dataclass(frozen=True)
class PaletteLayout:
    """Device contract: ordered slot groups followed by a fixed footer."""

    name: str
    groups: tuple[PaletteGroup, ...]
    footer: bytes = b""

    @property
    def slot_count(self) -> int:
        """Return the total number of colour slots."""
        return sum(group.size for group in self.groups)

    @property
    def byte_size(self) -> int:
        """Return the exact file size in bytes."""
        return self.slot_count * CHANNELS + len(self.footer)

    @cached_property
    def slot_names(self) -> tuple[str, ...]:
        """Return every slot name in file order."""
        return tuple(name for group in self.groups for name in group.slot_names())

    @cached_property
    def record(self) -> struct.Struct:
        """Return the ``struct`` record for slot bytes plus footer."""
        return struct.Struct(f"<{self.slot_count * CHANNELS}B{len(self.footer)}s")


ANALOGUE_POCKET_FOOTER = b"\x81APGB"

ANALOGUE_POCKET_LAYOUT = PaletteLayout(
    name="analogue-pocket-gb",
    groups=(
        PaletteGroup("bg", "Background", 4),
        PaletteGroup("obj0", "Object 0", 4),
        PaletteGroup("obj1", "Object 1", 4),
        PaletteGroup("window", "Window", 4),
        PaletteGroup("lcd_off", "LCD Off", 1),
    ),
    footer=ANALOGUE_POCKET_FOOTER,
)


def unpack_slots(layout: PaletteLayout, data: bytes) -> tuple[tuple[Color, ...], bytes]:
    """Split raw palette bytes into RGB triples and the trailing footer.

    The caller has already checked ``len(data) == layout.byte_size``.
    """
    *channels, footer = layout.record.unpack(data)
    colors = tuple(
        (channels[i], channels[i + 1], channels[i + 2]) for i in range(0, len(channels), CHANNELS)
    )
    return colors, footer


def pack_slots(layout: PaletteLayout, colors: tuple[Color, ...]) -> bytes:
    """Pack RGB triples and the layout footer into file bytes."""
    channels = [channel for color in colors for channel in color]
    return layout.record.pack(*channels, layout.footer)

"""Palette tool — the device ``.pal`` format, template generator and preview."""

from pal_toolbox.tools.palette._format import ANALOGUE_POCKET_LAYOUT, PaletteGroup, PaletteLayout
from pal_toolbox.tools.palette.logic import PaletteFile, load_palette, parse, save_palette, serialize, template
from pal_toolbox.tools.palette.tool import PaletteTemplateTool

__all__ = [
    "ANALOGUE_POCKET_LAYOUT",
    "PaletteFile",
    "PaletteGroup",
    "PaletteLayout",
    "PaletteTemplateTool",
    "load_palette",
    "parse",
    "save_palette",
    "serialize",
    "template",
]

"""Colorizer tool — maps indexed screenshots through a palette file."""

from pal_toolbox.tools.colorizer.logic import IndexedImage, colorize, colorize_file, colorize_indexed, extract_indices
from pal_toolbox.tools.colorizer.tool import ColorizerTool

__all__ = ["ColorizerTool", "IndexedImage", "colorize", "colorize_file", "colorize_indexed", "extract_indices"]

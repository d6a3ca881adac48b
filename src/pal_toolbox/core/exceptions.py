"""Exception hierarchy for the pal-toolbox framework."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pal_toolbox.core.datatypes import BatchWorkItem


class ToolboxError(Exception):
    """Base exception for all pal-toolbox errors."""


class ToolError(ToolboxError):
    """Raised when a tool encounters an error during execution."""


class ValidationError(ToolboxError):
    """Raised when parameter validation fails."""


class FormatError(ToolError):
    """Raised when palette bytes do not match the expected binary layout."""


class UnsupportedRasterError(ToolError):
    """Raised when a raster cannot be read as palette indices."""


class IndexOutOfRangeError(ToolError):
    """Raised when a pixel references a slot the palette does not have.

    Args:
        index: The offending palette index.
        slot_count: Number of slots in the palette.
        x: Column of the first pixel carrying *index*.
        y: Row of the first pixel carrying *index*.
    """

    def __init__(self, index: int, slot_count: int, x: int, y: int) -> None:
        self.index = index
        self.slot_count = slot_count
        self.x = x
        self.y = y
        super().__init__(
            f"Pixel ({x}, {y}) has palette index {index}, "
            f"but the palette only has {slot_count} slots (0-{slot_count - 1})"
        )


class NamingCollisionError(ToolError):
    """Raised when two work items would write the same output file.

    Args:
        collisions: Output path mapped to every work item deriving it.
    """

    def __init__(self, collisions: dict[Path, list[BatchWorkItem]]) -> None:
        self.collisions = collisions
        lines = ["Output file names collide:"]
        for output, items in collisions.items():
            pairs = ", ".join(f"({item.palette}, {item.image})" for item in items)
            lines.append(f"  {output} <- {pairs}")
        super().__init__("\n".join(lines))


class PatternResolutionError(ToolError):
    """Raised when a pattern must match exactly one file but does not.

    Args:
        pattern: The pattern as given by the user.
        matches: The files it actually matched.
        kind: What the pattern was meant to select (``"palette"``, ``"image"``).
    """

    def __init__(self, pattern: str, matches: list[Path], kind: str = "file") -> None:
        self.pattern = pattern
        self.matches = matches
        self.kind = kind
        if not matches:
            detail = "matched no files"
        else:
            detail = f"matched {len(matches)} files, expected exactly one"
        super().__init__(f"{kind.capitalize()} pattern '{pattern}' {detail}")

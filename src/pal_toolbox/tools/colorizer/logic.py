"""Pure colorization logic — palette indices in, RGB raster out."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image

from pal_toolbox.core.datatypes import ImageData
from pal_toolbox.core.exceptions import (
    IndexOutOfRangeError,
    ToolError,
    UnsupportedRasterError,
    ValidationError,
)
from pal_toolbox.tools.palette.logic import PaletteFile, load_palette, template

logger = logging.getLogger(__name__)

# ── Constants ─────────────────────────────────────────────────────────────

INDEX_SOURCES: frozenset[str] = frozenset({"indexed", "template"})

# Screenshots taken with the template palette drift a few levels per channel.
TEMPLATE_TOLERANCE = 8

PNG_PALETTE_ENTRIES = 256


# ── Indexed image ─────────────────────────────────────────────────────────


@dataclass(frozen=True, eq=False)
class IndexedImage:
    """Per-pixel palette indices of a raster, row-major (``indices[y, x]``).

    Index values are not checked against any palette here; that happens
    in ``colorize``.
    """

    indices: np.ndarray

    def __post_init__(self) -> None:
        if self.indices.ndim != 2:
            msg = f"Index array must be 2-D (height x width), got shape {self.indices.shape}"
            raise ValidationError(msg)

    @classmethod
    def from_rows(cls, rows: list[list[int]]) -> IndexedImage:
        """Build an indexed image from nested lists, one list per row."""
        return cls(indices=np.array(rows, dtype=np.int64).reshape(len(rows), -1))

    @property
    def width(self) -> int:
        """Return the image width in pixels."""
        return int(self.indices.shape[1])

    @property
    def height(self) -> int:
        """Return the image height in pixels."""
        return int(self.indices.shape[0])

    @property
    def max_index(self) -> int:
        """Return the highest index used (``-1`` for an empty image)."""
        return int(self.indices.max()) if self.indices.size else -1

    def index_at(self, x: int, y: int) -> int:
        """Return the palette index of pixel (*x*, *y*)."""
        return int(self.indices[y, x])


def extract_indices(raster: Image.Image) -> IndexedImage:
    """Read the palette indices of an indexed (mode ``P``) raster.

    Raises:
        UnsupportedRasterError: If the raster stores direct colour.
    """
    if raster.mode != "P":
        msg = f"Image is not indexed (mode '{raster.mode}'), expected a palette-based image"
        raise UnsupportedRasterError(msg)
    return IndexedImage(indices=np.asarray(raster, dtype=np.uint8))


def screen_slot_indices(palette: PaletteFile) -> set[int]:
    """Return the slots a screenshot can show.

    Single-slot groups such as ``lcd_off`` are only used while the screen
    is off, so they never appear in a capture.  A layout made only of
    single-slot groups counts every slot.
    """
    indices: set[int] = set()
    offset = 0
    for group in palette.layout.groups:
        if group.size > 1:
            indices.update(range(offset, offset + group.size))
        offset += group.size
    return indices or set(range(palette.slot_count))


def extract_indices_from_template(
    raster: Image.Image,
    palette: PaletteFile | None = None,
    *,
    tolerance: int = TEMPLATE_TOLERANCE,
) -> IndexedImage:
    """Recover slot indices from a screenshot taken with the template palette.

    Each pixel is matched to the first template slot whose three channels
    are all within *tolerance* of the pixel colour.

    Args:
        raster: Any Pillow image; converted to RGB.
        palette: Palette the screenshot was taken with (default: ``template()``).
        tolerance: Allowed per-channel drift.

    Raises:
        UnsupportedRasterError: If any pixel matches no slot.
    """
    reference = palette or template()
    rgb = np.asarray(raster.convert("RGB"), dtype=np.int16)
    slots = np.array(reference.colors, dtype=np.int16)

    # (h, w, slots) -> True where every channel is within tolerance.
    close = np.all(np.abs(rgb[:, :, np.newaxis, :] - slots[np.newaxis, np.newaxis, :, :]) <= tolerance, axis=3)
    matched = close.any(axis=2)
    indices = close.argmax(axis=2)

    unique_colors = len(np.unique(rgb.reshape(-1, 3), axis=0))
    screen_slots = screen_slot_indices(reference)
    seen = {int(i) for i in np.unique(indices[matched])}
    coverage = len(seen & screen_slots) / len(screen_slots) * 100
    logger.debug("Found %d unique colours in image", unique_colors)
    if coverage < 100:
        logger.info("Only ~%.2f%% of template colours appear in the image", coverage)

    if not matched.all():
        unmatched = np.argwhere(~matched)
        y, x = (int(v) for v in unmatched[0])
        msg = (
            f"{len(unmatched)} pixels do not match any template colour "
            f"(first at ({x}, {y}) with colour {tuple(int(c) for c in rgb[y, x])})"
        )
        raise UnsupportedRasterError(msg)

    return IndexedImage(indices=indices.astype(np.uint8))


# ── Colorization ──────────────────────────────────────────────────────────


def validate_scale(scale: int) -> None:
    """Check that *scale* is a positive integer.

    Raises:
        ValidationError: If it is not.
    """
    if isinstance(scale, bool) or not isinstance(scale, int) or scale < 1:
        msg = f"Scale must be a positive integer, got {scale!r}"
        raise ValidationError(msg)


def check_index_range(indexed: IndexedImage, palette: PaletteFile) -> None:
    """Reject any pixel whose index is negative or has no palette slot.

    Raises:
        IndexOutOfRangeError: For the first offending pixel in row-major order.
    """
    out_of_range = np.argwhere((indexed.indices < 0) | (indexed.indices >= palette.slot_count))
    if out_of_range.size:
        y, x = (int(v) for v in out_of_range[0])
        raise IndexOutOfRangeError(indexed.index_at(x, y), palette.slot_count, x, y)


def _upscale(image: Image.Image, scale: int) -> Image.Image:
    if scale == 1:
        return image
    return image.resize((image.width * scale, image.height * scale), resample=Image.Resampling.NEAREST)


def colorize(indexed: IndexedImage, palette: PaletteFile, scale: int = 1) -> Image.Image:
    """Map every pixel's index to its palette colour and upscale.

    Each source pixel becomes a ``scale x scale`` block of one colour
    (nearest neighbour, no interpolation).

    Args:
        indexed: Per-pixel palette indices.
        palette: Colours to apply.
        scale: Positive integer upscale factor.

    Returns:
        An RGB image of ``width * scale`` by ``height * scale`` pixels.

    Raises:
        IndexOutOfRangeError: If a pixel index is negative or >= ``palette.slot_count``.
        ValidationError: If *scale* is not a positive integer.
    """
    validate_scale(scale)
    check_index_range(indexed, palette)

    lut = np.array(palette.colors, dtype=np.uint8)
    return _upscale(Image.fromarray(lut[indexed.indices]), scale)


def colorize_indexed(indexed: IndexedImage, palette: PaletteFile, scale: int = 1) -> Image.Image:
    """Like ``colorize`` but keep the indices and embed *palette* as the PNG palette.

    The result is a mode ``P`` image: it displays with the palette's
    colours and can itself be colorized again with another palette.
    Unused PNG palette entries are white.

    Raises:
        IndexOutOfRangeError: If a pixel index is negative or >= ``palette.slot_count``.
        ValidationError: If *scale* is not a positive integer.
    """
    validate_scale(scale)
    check_index_range(indexed, palette)

    result = Image.frombytes("P", (indexed.width, indexed.height), indexed.indices.astype(np.uint8).tobytes())
    entries = [channel for color in palette.colors for channel in color]
    result.putpalette(entries + [255] * (PNG_PALETTE_ENTRIES * 3 - len(entries)))
    return _upscale(result, scale)


# ── File-level pipeline ──────────────────────────────────────────────────


def load_indexed_image(path: Path, *, source: str = "indexed") -> IndexedImage:
    """Open an image file and extract its palette indices.

    Args:
        path: Image file to read.
        source: ``indexed`` for palette-based PNGs, ``template`` for RGB
            screenshots taken with the template palette.

    Raises:
        ToolError: If the file cannot be opened.
        UnsupportedRasterError: If indices cannot be extracted.
        ValidationError: If *source* is unknown.
    """
    if source not in INDEX_SOURCES:
        msg = f"Invalid index source '{source}'. Choose from: {sorted(INDEX_SOURCES)}"
        raise ValidationError(msg)

    logger.debug("Opening image file %s", path)
    try:
        with Image.open(path) as img:
            img.load()
            raster = img.copy()
    except (OSError, Image.DecompressionBombError) as exc:
        msg = f"Image '{path}' could not be opened"
        raise ToolError(msg) from exc
    logger.info("Opened image file %s (%dx%d, mode %s)", path, raster.width, raster.height, raster.mode)

    try:
        if source == "template":
            return extract_indices_from_template(raster)
        return extract_indices(raster)
    except UnsupportedRasterError as exc:
        msg = f"Image '{path}': {exc}"
        raise UnsupportedRasterError(msg) from exc


def save_atomic(image: Image.Image, output_path: Path) -> None:
    """Write *image* as PNG so that *output_path* is either complete or absent.

    Raises:
        ToolError: If the image cannot be written.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{output_path.name}.", suffix=".tmp", dir=output_path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as fh:
            image.save(fh, format="PNG")
        tmp_path.replace(output_path)
    except OSError as exc:
        tmp_path.unlink(missing_ok=True)
        msg = f"Failed to save colorized image to '{output_path}'"
        raise ToolError(msg) from exc


def colorize_file(
    palette_path: Path,
    image_path: Path,
    output_path: Path,
    *,
    scale: int = 1,
    source: str = "indexed",
    strict: bool = True,
    indexed_output: bool = False,
) -> ImageData:
    """Colorize one image file with one palette file.

    Args:
        palette_path: ``.pal`` file to apply.
        image_path: Indexed screenshot to colorize.
        output_path: Where the PNG is written.
        scale: Positive integer upscale factor.
        source: How indices are read from the image (see ``load_indexed_image``).
        strict: Reject palette files with a wrong footer.
        indexed_output: Write an indexed PNG carrying the palette
            (``colorize_indexed``) instead of an RGB one.

    Returns:
        An ``ImageData`` describing the written file.

    Raises:
        ToolError: Any palette, image or write failure (subclasses name the cause).
        ValidationError: If *scale* or *source* is invalid.
    """
    validate_scale(scale)
    palette = load_palette(palette_path, strict=strict)
    indexed = load_indexed_image(image_path, source=source)

    result = colorize_indexed(indexed, palette, scale) if indexed_output else colorize(indexed, palette, scale)
    save_atomic(result, output_path)
    logger.info("Saved image file %s", output_path)

    return ImageData(path=output_path, width=result.width, height=result.height, format="png")

"""Batch planning — resolve palette/image patterns and pair them up.

Resolution and pairing are separate steps: ``resolve_patterns`` turns
user patterns into a sorted, deduplicated file list, and
``cross_product`` forms work items from two such lists without touching
the filesystem again.
"""

from __future__ import annotations

import glob
import logging
import re
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path

from pal_toolbox.core.datatypes import BatchWorkItem
from pal_toolbox.core.exceptions import NamingCollisionError, PatternResolutionError, ValidationError

logger = logging.getLogger(__name__)

# ── Constants ─────────────────────────────────────────────────────────────

DEFAULT_NAME_FORMAT = "{image}__{palette}@{scale}x.png"
DEFAULT_OUTPUT_DIRNAME = "colorized"

NAME_FIELDS: frozenset[str] = frozenset({"image", "palette", "scale"})

_GLOB_CHARS = re.compile(r"[*?\[]")
_LABEL_JUNK = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class BatchPlan:
    """Resolved inputs and the work items formed from them."""

    palettes: tuple[Path, ...]
    images: tuple[Path, ...]
    items: tuple[BatchWorkItem, ...]


# ── Pattern resolution ────────────────────────────────────────────────────


def is_pattern(text: str) -> bool:
    """Return whether *text* contains glob wildcards."""
    return bool(_GLOB_CHARS.search(text))


def _match(pattern: str) -> list[Path]:
    """Return the files one pattern matches, in no particular order."""
    if is_pattern(pattern):
        candidates = [Path(p) for p in glob.glob(pattern, recursive=True)]
    else:
        candidates = [Path(pattern)]
    return [p.resolve() for p in candidates if p.is_file()]


def resolve_patterns(patterns: list[str] | tuple[str, ...], *, exclude: Path | None = None) -> list[Path]:
    """Expand patterns into a sorted list of distinct files.

    Each pattern is matched independently (``*``, ``?``, ``[...]`` and
    recursive ``**``); literal paths are kept if they name a file.
    Matches are resolved, deduplicated and sorted lexicographically.
    A pattern with no matches contributes nothing.

    Args:
        patterns: Glob patterns or plain paths.
        exclude: Directory whose files are never returned (the batch
            output directory, so earlier results are not read back as
            inputs).

    Returns:
        Sorted, deduplicated absolute file paths.
    """
    excluded = exclude.resolve() if exclude is not None else None
    found: set[Path] = set()
    for pattern in patterns:
        matches = _match(pattern)
        if excluded is not None:
            kept = [p for p in matches if not p.is_relative_to(excluded)]
            if len(kept) != len(matches):
                logger.debug("Skipped %d files of '%s' inside %s", len(matches) - len(kept), pattern, excluded)
            matches = kept
        if not matches:
            logger.warning("Pattern '%s' matched no files", pattern)
        else:
            logger.debug("Pattern '%s' matched %d files", pattern, len(matches))
        found.update(matches)
    return sorted(found, key=str)


def resolve_single(pattern: str, kind: str = "file") -> Path:
    """Resolve a pattern that must name exactly one file.

    Raises:
        PatternResolutionError: If it matches zero or several files.
    """
    matches = sorted(set(_match(pattern)), key=str)
    if len(matches) != 1:
        raise PatternResolutionError(pattern, matches, kind=kind)
    return matches[0]


def default_output_dir(images: list[Path] | tuple[Path, ...]) -> Path:
    """Return ``colorized/`` next to the first image that is not a previous result.

    Falls back to the current directory when there are no images.
    """
    for image in images:
        if image.parent.name != DEFAULT_OUTPUT_DIRNAME:
            return image.parent / DEFAULT_OUTPUT_DIRNAME
    base = images[0].parent if images else Path.cwd()
    return base / DEFAULT_OUTPUT_DIRNAME


# ── Output naming ─────────────────────────────────────────────────────────


def palette_label(path: Path) -> str:
    """Return a filename-safe label for a palette (``"Desert Sun.pal"`` → ``"desert-sun"``)."""
    label = _LABEL_JUNK.sub("-", path.stem.lower()).strip("-")
    return label or "palette"


def validate_name_format(name_format: str) -> None:
    """Check that *name_format* only uses ``{image}``, ``{palette}`` and ``{scale}``.

    Raises:
        ValidationError: If the format is unusable.
    """
    try:
        name_format.format(image="i", palette="p", scale=1)
    except (KeyError, IndexError, ValueError) as exc:
        msg = f"Invalid name format '{name_format}'. Use only {{image}}, {{palette}} and {{scale}}"
        raise ValidationError(msg) from exc
    if "/" in name_format or "\\" in name_format:
        msg = f"Name format '{name_format}' must not contain path separators"
        raise ValidationError(msg)


def derive_output_path(
    palette: Path,
    image: Path,
    output_dir: Path,
    scale: int,
    name_format: str = DEFAULT_NAME_FORMAT,
) -> Path:
    """Return the output file for one (palette, image) pair.

    The name depends only on the image stem, the palette label and the
    scale, so it is stable across runs.
    """
    name = name_format.format(image=image.stem, palette=palette_label(palette), scale=scale)
    return output_dir / name


# ── Cross product ─────────────────────────────────────────────────────────


def cross_product(
    palettes: list[Path] | tuple[Path, ...],
    images: list[Path] | tuple[Path, ...],
    output_dir: Path,
    *,
    scale: int = 1,
    name_format: str = DEFAULT_NAME_FORMAT,
) -> tuple[BatchWorkItem, ...]:
    """Pair every image with every palette, image-major.

    Args:
        palettes: Resolved palette files (column order).
        images: Resolved image files (row order).
        output_dir: Directory the outputs are written to.
        scale: Upscale factor, part of the output name.
        name_format: Output file name template.

    Returns:
        ``len(images) * len(palettes)`` work items.

    Raises:
        NamingCollisionError: If two items derive the same output path.
    """
    validate_name_format(name_format)

    items: list[BatchWorkItem] = []
    by_output: dict[Path, list[BatchWorkItem]] = defaultdict(list)
    for image in images:
        for palette in palettes:
            output = derive_output_path(palette, image, output_dir, scale, name_format)
            item = BatchWorkItem(palette=palette, image=image, output=output)
            items.append(item)
            by_output[output].append(item)

    collisions = {output: clashing for output, clashing in by_output.items() if len(clashing) > 1}
    if collisions:
        raise NamingCollisionError(collisions)

    return tuple(items)


def expand(
    palette_patterns: list[str] | tuple[str, ...],
    image_patterns: list[str] | tuple[str, ...],
    output_dir: Path,
    *,
    scale: int = 1,
    name_format: str = DEFAULT_NAME_FORMAT,
) -> BatchPlan:
    """Resolve both pattern lists and form the full cross product.

    Images inside *output_dir* are skipped, so re-running a batch does not
    pick up its own earlier results.

    Returns:
        A ``BatchPlan``; N palettes and M images give N x M items.

    Raises:
        NamingCollisionError: If output names are not unique.
    """
    palettes = resolve_patterns(palette_patterns)
    images = resolve_patterns(image_patterns, exclude=output_dir)
    logger.info("Resolved %d palettes and %d images", len(palettes), len(images))
    items = cross_product(palettes, images, output_dir, scale=scale, name_format=name_format)
    return BatchPlan(palettes=tuple(palettes), images=tuple(images), items=items)

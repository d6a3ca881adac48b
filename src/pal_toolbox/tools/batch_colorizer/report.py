"""Comparison report — one row per image, one column per palette.

Rendering is a pure function of the document: the same document always
produces the same HTML, so reports can be diffed between runs.
"""

from __future__ import annotations

import html
import logging
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from pal_toolbox.core.datatypes import BatchWorkItem, Failure, Outcome, Success
from pal_toolbox.core.exceptions import ToolError
from pal_toolbox.tools.batch_colorizer.plan import palette_label

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Palette comparison"

NOT_PROCESSED = "not processed"

_STYLE = """\
body { font-family: sans-serif; background: #202020; color: #e0e0e0; }
table { border-collapse: collapse; }
th, td { border: 1px solid #404040; padding: 6px; text-align: center; vertical-align: middle; }
th { background: #303030; }
td img { image-rendering: pixelated; display: block; margin: 0 auto; }
td.failed { background: #4a1c1c; }
td.failed .placeholder { color: #ff9c9c; font-family: monospace; max-width: 24em; white-space: pre-wrap; }
"""


@dataclass(frozen=True)
class ReportDocument:
    """Grid of outcomes keyed by (image, palette).

    Attributes:
        rows: Image files in first-seen order.
        columns: Palette files in first-seen order.
        cells: Outcome per (image, palette); a missing key means not processed.
    """

    rows: tuple[Path, ...]
    columns: tuple[Path, ...]
    cells: dict[tuple[Path, Path], Outcome] = field(default_factory=dict)

    def cell(self, image: Path, palette: Path) -> Outcome | None:
        """Return the outcome for one pair, or ``None`` if it was not processed."""
        return self.cells.get((image, palette))


def build_report(
    items: Iterable[BatchWorkItem],
    outcomes: Mapping[BatchWorkItem, Outcome],
    *,
    images: Iterable[Path] = (),
    palettes: Iterable[Path] = (),
) -> ReportDocument:
    """Arrange work item outcomes into a report grid.

    Rows start with *images* and columns with *palettes*, in the order
    given; images and palettes first seen in *items* are appended after
    them.  Passing the resolved path lists keeps the grid
    ``len(images) x len(palettes)`` even when one side is empty and the
    plan has no items at all.

    Args:
        items: Work items in plan order.
        outcomes: Outcome per work item (items without one render as
            not processed).
        images: Resolved image files, the row axis.
        palettes: Resolved palette files, the column axis.

    Returns:
        The report document.

    Raises:
        ToolError: If *outcomes* has an entry for an item not in *items*.
    """
    rows: dict[Path, None] = dict.fromkeys(images)
    columns: dict[Path, None] = dict.fromkeys(palettes)
    cells: dict[tuple[Path, Path], Outcome] = {}
    known: set[BatchWorkItem] = set()

    for item in items:
        rows.setdefault(item.image)
        columns.setdefault(item.palette)
        known.add(item)
        outcome = outcomes.get(item)
        if outcome is not None:
            cells[(item.image, item.palette)] = outcome

    unknown = [item for item in outcomes if item not in known]
    if unknown:
        msg = f"{len(unknown)} outcomes do not belong to any work item (first: {unknown[0]})"
        raise ToolError(msg)

    return ReportDocument(rows=tuple(rows), columns=tuple(columns), cells=cells)


def _href(target: Path, base_dir: Path) -> str:
    """Return *target* relative to *base_dir* with forward slashes."""
    try:
        relative = os.path.relpath(target, base_dir)
    except ValueError:
        # Different drives on Windows.
        relative = str(target)
    return html.escape(Path(relative).as_posix(), quote=True)


def _render_cell(outcome: Outcome | None, base_dir: Path, alt: str) -> str:
    """Render one table cell."""
    match outcome:
        case Success(path=path):
            href = _href(path, base_dir)
            return f'<td class="ok"><a href="{href}"><img src="{href}" alt="{html.escape(alt)}"></a></td>'
        case Failure(reason=reason):
            return f'<td class="failed"><div class="placeholder">{html.escape(reason)}</div></td>'
        case _:
            return f'<td class="failed"><div class="placeholder">{NOT_PROCESSED}</div></td>'


def render_html(document: ReportDocument, *, report_path: Path, title: str = DEFAULT_TITLE) -> str:
    """Render a report document as a standalone HTML page.

    Args:
        document: The grid to render.
        report_path: Where the page will live; image links are relative to it.
        title: Page title and heading.

    Returns:
        The HTML text.
    """
    base_dir = report_path.parent
    lines = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '<meta charset="utf-8">',
        f"<title>{html.escape(title)}</title>",
        "<style>",
        _STYLE.rstrip("\n"),
        "</style>",
        "</head>",
        "<body>",
        f"<h1>{html.escape(title)}</h1>",
        f"<p>{len(document.rows)} images &times; {len(document.columns)} palettes</p>",
        "<table>",
        "<thead>",
        "<tr>",
        "<th>Image</th>",
    ]
    for palette in document.columns:
        lines.append(f'<th title="{html.escape(str(palette))}">{html.escape(palette.stem)}</th>')
    lines += ["</tr>", "</thead>", "<tbody>"]

    for image in document.rows:
        lines.append("<tr>")
        lines.append(f'<th title="{html.escape(str(image))}">{html.escape(image.name)}</th>')
        for palette in document.columns:
            alt = f"{image.stem} / {palette_label(palette)}"
            lines.append(_render_cell(document.cell(image, palette), base_dir, alt))
        lines.append("</tr>")

    lines += ["</tbody>", "</table>", "</body>", "</html>"]
    return "\n".join(lines) + "\n"


def write_report(document: ReportDocument, report_path: Path, *, title: str = DEFAULT_TITLE) -> Path:
    """Render and write the report.

    Raises:
        ToolError: If the file cannot be written.
    """
    report_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        report_path.write_text(render_html(document, report_path=report_path, title=title), encoding="utf-8")
    except OSError as exc:
        msg = f"Failed to write report to '{report_path}'"
        raise ToolError(msg) from exc
    logger.info("Wrote report for %d x %d grid to %s", len(document.rows), len(document.columns), report_path)
    return report_path

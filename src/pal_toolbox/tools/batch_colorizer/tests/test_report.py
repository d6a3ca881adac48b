"""Tests for the comparison report document and HTML rendering."""

from __future__ import annotations

from pathlib import Path

import pytest

from pal_toolbox.core.datatypes import BatchWorkItem, Failure, Outcome, Success
from pal_toolbox.core.exceptions import ToolError
from pal_toolbox.tools.batch_colorizer.plan import cross_product
from pal_toolbox.tools.batch_colorizer.report import build_report, render_html, write_report

# ── Helpers ───────────────────────────────────────────────────────────────

ROOT = Path("/work")
PALETTES = [ROOT / "pals" / "Desert.pal", ROOT / "pals" / "Ocean.pal", ROOT / "pals" / "Forest.pal"]
IMAGES = [ROOT / "shots" / "link.png", ROOT / "shots" / "mario.png"]
REPORT = ROOT / "report.html"


def _items() -> tuple[BatchWorkItem, ...]:
    """Return the 2 x 3 work items used by most tests."""
    return cross_product(PALETTES, IMAGES, ROOT / "out")


def _all_success(items: tuple[BatchWorkItem, ...]) -> dict[BatchWorkItem, Outcome]:
    """Mark every item as successful."""
    return {item: Success(path=item.output) for item in items}


# ── build_report ──────────────────────────────────────────────────────────


class TestBuildReport:
    """Tests for ``build_report``."""

    def test_grid_shape(self) -> None:
        """Rows are images, columns are palettes, in first-seen order."""
        items = _items()
        document = build_report(items, _all_success(items))

        assert document.rows == tuple(IMAGES)
        assert document.columns == tuple(PALETTES)

    def test_shape_independent_of_failures(self) -> None:
        """Failed and missing items still occupy their cells."""
        items = _items()
        outcomes: dict[BatchWorkItem, Outcome] = {items[0]: Failure(reason="bad footer")}

        document = build_report(items, outcomes)

        assert len(document.rows) == 2
        assert len(document.columns) == 3
        assert document.cell(IMAGES[0], PALETTES[0]) == Failure(reason="bad footer")
        assert document.cell(IMAGES[1], PALETTES[2]) is None

    def test_unknown_outcome_rejected(self) -> None:
        """Outcomes for items outside the plan are an error."""
        stray = BatchWorkItem(palette=Path("x.pal"), image=Path("y.png"), output=Path("z.png"))

        with pytest.raises(ToolError, match="do not belong"):
            build_report(_items(), {stray: Success(path=Path("z.png"))})

    def test_order_follows_items_not_outcomes(self) -> None:
        """Outcome insertion order (e.g. thread completion order) does not matter."""
        items = _items()
        forward = build_report(items, _all_success(items))
        backward = build_report(items, dict(reversed(list(_all_success(items).items()))))

        assert forward == backward

    def test_axes_from_resolved_lists(self) -> None:
        """With no palettes there are no items, but the images still form rows."""
        document = build_report((), {}, images=IMAGES, palettes=())

        assert document.rows == tuple(IMAGES)
        assert document.columns == ()

    def test_axes_keep_given_order(self) -> None:
        """Resolved lists fix the axis order; items only fill cells."""
        items = _items()
        document = build_report(items, _all_success(items), images=IMAGES, palettes=PALETTES)

        assert document == build_report(items, _all_success(items))


# ── render_html ───────────────────────────────────────────────────────────


class TestRenderHtml:
    """Tests for ``render_html``."""

    def test_byte_identical_for_same_document(self) -> None:
        """Rendering is deterministic."""
        items = _items()
        document = build_report(items, _all_success(items))

        assert render_html(document, report_path=REPORT) == render_html(document, report_path=REPORT)

    def test_links_relative_to_report(self) -> None:
        """Image references are relative to the report directory."""
        items = _items()
        html_text = render_html(build_report(items, _all_success(items)), report_path=REPORT)

        assert 'src="out/link__desert@1x.png"' in html_text
        assert 'src="/work/' not in html_text

    def test_columns_in_order(self) -> None:
        """Header cells follow palette order."""
        items = _items()
        html_text = render_html(build_report(items, _all_success(items)), report_path=REPORT)

        assert html_text.index(">Desert<") < html_text.index(">Ocean<") < html_text.index(">Forest<")

    def test_failure_placeholder(self) -> None:
        """Failures render as distinct placeholder cells with the escaped reason."""
        items = _items()
        outcomes = _all_success(items)
        outcomes[items[1]] = Failure(reason="Pixel (1, 0) has palette index 20 <oops>")

        html_text = render_html(build_report(items, outcomes), report_path=REPORT)

        assert html_text.count('<td class="failed">') == 1
        assert "index 20 &lt;oops&gt;" in html_text
        assert html_text.count('<td class="ok">') == 5

    def test_missing_outcome_placeholder(self) -> None:
        """Items with no outcome are shown as not processed."""
        items = _items()
        html_text = render_html(build_report(items, {}), report_path=REPORT)

        assert html_text.count("not processed") == 6

    def test_rows_are_complete(self) -> None:
        """Every row has one cell per palette."""
        items = _items()
        html_text = render_html(build_report(items, {items[0]: Failure(reason="x")}), report_path=REPORT)
        body = html_text.split("<tbody>")[1]

        assert body.count("<tr>") == 2
        assert body.count("<td ") == 6

    def test_title_is_escaped(self) -> None:
        """Custom titles are HTML-escaped."""
        items = _items()
        html_text = render_html(build_report(items, {}), report_path=REPORT, title="Mario & Link")

        assert "<title>Mario &amp; Link</title>" in html_text


class TestWriteReport:
    """Tests for ``write_report``."""

    def test_writes_file(self, tmp_path: Path) -> None:
        """The report is written as UTF-8 HTML."""
        items = _items()
        path = write_report(build_report(items, {}), tmp_path / "nested" / "report.html")

        assert path.is_file()
        assert path.read_text(encoding="utf-8").startswith("<!DOCTYPE html>")

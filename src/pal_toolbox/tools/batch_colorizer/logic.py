"""Pure batch colorization logic — no CLI imports allowed."""

from __future__ import annotations

import concurrent.futures
import logging
from pathlib import Path
from typing import Any

from pal_toolbox.core.datatypes import BatchResult, BatchWorkItem, Failure, Outcome, Success
from pal_toolbox.core.events import EventBus
from pal_toolbox.core.exceptions import ToolboxError, ValidationError
from pal_toolbox.tools.batch_colorizer.plan import BatchPlan
from pal_toolbox.tools.batch_colorizer.report import DEFAULT_TITLE, build_report, write_report
from pal_toolbox.tools.colorizer.logic import INDEX_SOURCES, colorize_file, validate_scale

logger = logging.getLogger(__name__)


def process_item(
    item: BatchWorkItem,
    *,
    scale: int = 1,
    source: str = "indexed",
    strict: bool = True,
    indexed_output: bool = False,
) -> Outcome:
    """Colorize one work item, turning any per-item error into a ``Failure``.

    Args:
        item: The (palette, image, output) triple.
        scale: Upscale factor.
        source: How indices are read from the image.
        strict: Reject palette files with a wrong footer.
        indexed_output: Write indexed PNGs carrying the palette.

    Returns:
        ``Success`` with the written path, or ``Failure`` with the reason.
    """
    try:
        image_data = colorize_file(
            item.palette,
            item.image,
            item.output,
            scale=scale,
            source=source,
            strict=strict,
            indexed_output=indexed_output,
        )
    except (ToolboxError, OSError) as exc:
        logger.warning("Failed to colorize %s with %s: %s", item.image, item.palette, exc)
        return Failure(reason=str(exc))
    return Success(path=image_data.path)


def run_batch(
    plan: BatchPlan,
    *,
    scale: int = 1,
    source: str = "indexed",
    strict: bool = True,
    indexed_output: bool = False,
    workers: int = 1,
    report_path: Path | None = None,
    title: str = DEFAULT_TITLE,
    event_bus: EventBus | None = None,
) -> BatchResult:
    """Process every work item of *plan* and optionally write the report.

    Items are independent; with ``workers > 1`` they run on a thread pool.
    One item failing never stops the others.

    Args:
        plan: Resolved palettes, images and work items.
        scale: Upscale factor.
        source: How indices are read from the images.
        strict: Reject palette files with a wrong footer.
        indexed_output: Write indexed PNGs carrying the palette.
        workers: Number of worker threads (1 = sequential).
        report_path: Where to write the HTML report, or ``None`` for no report.
        title: Report title.
        event_bus: Optional event bus for progress events.

    Returns:
        A ``BatchResult`` with one outcome per work item.

    Raises:
        ValidationError: If *scale*, *source* or *workers* is invalid.
    """
    validate_scale(scale)
    if source not in INDEX_SOURCES:
        msg = f"Invalid index source '{source}'. Choose from: {sorted(INDEX_SOURCES)}"
        raise ValidationError(msg)
    if workers < 1:
        msg = f"Workers must be >= 1, got {workers}"
        raise ValidationError(msg)

    outcomes: dict[BatchWorkItem, Outcome] = {}
    total = len(plan.items)
    options: dict[str, Any] = {"scale": scale, "source": source, "strict": strict, "indexed_output": indexed_output}

    def _record(item: BatchWorkItem, outcome: Outcome) -> None:
        outcomes[item] = outcome
        if event_bus is None:
            return
        status = "ok" if isinstance(outcome, Success) else "FAILED"
        event_bus.emit(
            "progress",
            tool="batch_colorizer",
            current=len(outcomes),
            total=total,
            message=f"{item.image.name} + {item.palette.name}: {status}",
        )
        if isinstance(outcome, Failure):
            event_bus.emit("log", tool="batch_colorizer", message=f"{item.image.name}: {outcome.reason}")

    if workers == 1 or total <= 1:
        for item in plan.items:
            _record(item, process_item(item, **options))
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(process_item, item, **options): item for item in plan.items}
            for future in concurrent.futures.as_completed(futures):
                _record(futures[future], future.result())

    written_report = None
    if report_path is not None:
        document = build_report(plan.items, outcomes, images=plan.images, palettes=plan.palettes)
        written_report = write_report(document, report_path, title=title)

    result = BatchResult(
        items=plan.items,
        outcomes={item: outcomes[item] for item in plan.items},
        report_path=written_report,
    )

    if event_bus is not None:
        event_bus.emit(
            "completed",
            tool="batch_colorizer",
            message=f"Done: {result.succeeded} colorized, {result.failed} failed",
        )

    return result

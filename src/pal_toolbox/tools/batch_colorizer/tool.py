"""BatchColorizerTool — BaseTool wrapper for palette x image batches."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pal_toolbox.core.base_tool import BaseTool, ToolParameter
from pal_toolbox.core.datatypes import BatchResult
from pal_toolbox.core.events import EventBus
from pal_toolbox.tools.batch_colorizer.logic import run_batch
from pal_toolbox.tools.batch_colorizer.plan import DEFAULT_NAME_FORMAT, default_output_dir, expand, resolve_patterns
from pal_toolbox.tools.batch_colorizer.report import DEFAULT_TITLE
from pal_toolbox.tools.colorizer.logic import INDEX_SOURCES


class BatchColorizerTool(BaseTool):
    """Colorize every matched image with every matched palette."""

    name = "batch_colorizer"
    display_name = "Batch Colorizer"
    description = "Apply many palettes to many screenshots and build a comparison report"
    version = "0.1.0"

    def __init__(self, event_bus: EventBus | None = None) -> None:
        """Initialise the batch colorizer tool.

        Args:
            event_bus: Shared event bus for progress reporting.
        """
        super().__init__(event_bus=event_bus)

    def define_parameters(self) -> list[ToolParameter]:
        """Return the parameter schema for batch colorization."""
        return [
            ToolParameter(
                name="palettes",
                label="Palette patterns",
                type=list,
                required=True,
                help="Paths or glob patterns selecting .pal files.",
            ),
            ToolParameter(
                name="images",
                label="Image patterns",
                type=list,
                required=True,
                help="Paths or glob patterns selecting screenshots.",
            ),
            ToolParameter(
                name="output_dir",
                label="Output directory",
                type=Path,
                default=None,
                help="Directory for colorized images (default: 'colorized/' next to the first image).",
            ),
            ToolParameter(
                name="scale",
                label="Scale",
                type=int,
                default=1,
                min_value=1,
                help="Integer upscale factor (nearest neighbour).",
            ),
            ToolParameter(
                name="name_format",
                label="Name format",
                type=str,
                default=DEFAULT_NAME_FORMAT,
                help="Output name template using {image}, {palette} and {scale}.",
            ),
            ToolParameter(
                name="report",
                label="Report file",
                type=Path,
                default=None,
                help="Write an HTML comparison matrix to this file.",
            ),
            ToolParameter(
                name="title",
                label="Report title",
                type=str,
                default=DEFAULT_TITLE,
                help="Heading of the HTML report.",
            ),
            ToolParameter(
                name="workers",
                label="Workers",
                type=int,
                default=1,
                min_value=1,
                help="Number of worker threads.",
            ),
            ToolParameter(
                name="source",
                label="Index source",
                type=str,
                default="indexed",
                choices=sorted(INDEX_SOURCES),
                help="Read indices from indexed PNGs or match template colours.",
            ),
            ToolParameter(
                name="strict",
                label="Strict footer",
                type=bool,
                default=True,
                help="Reject palette files with a wrong footer.",
            ),
            ToolParameter(
                name="indexed_output",
                label="Indexed output",
                type=bool,
                default=False,
                help="Write indexed PNGs with the palette embedded instead of RGB.",
            ),
        ]

    def _do_execute(self, params: dict[str, Any]) -> BatchResult:
        """Expand the patterns and run every work item.

        Args:
            params: Validated parameter dictionary.

        Returns:
            A ``BatchResult`` with one outcome per work item.
        """
        output_dir = params.get("output_dir")
        if output_dir is None:
            output_dir = default_output_dir(resolve_patterns(params["images"]))

        plan = expand(
            params["palettes"],
            params["images"],
            Path(output_dir),
            scale=params["scale"],
            name_format=params["name_format"],
        )

        return run_batch(
            plan,
            scale=params["scale"],
            source=params["source"],
            strict=params["strict"],
            indexed_output=params["indexed_output"],
            workers=params["workers"],
            report_path=params.get("report"),
            title=params["title"],
            event_bus=self.event_bus,
        )

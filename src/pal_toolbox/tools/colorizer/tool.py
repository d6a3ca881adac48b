"""ColorizerTool — BaseTool wrapper for single palette/image colorization."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pal_toolbox.core.base_tool import BaseTool, ToolParameter
from pal_toolbox.core.datatypes import ImageData
from pal_toolbox.core.events import EventBus
from pal_toolbox.tools.batch_colorizer.plan import (
    DEFAULT_NAME_FORMAT,
    derive_output_path,
    resolve_single,
    validate_name_format,
)
from pal_toolbox.tools.colorizer.logic import INDEX_SOURCES, colorize_file


class ColorizerTool(BaseTool):
    """Colorize exactly one screenshot with exactly one palette file."""

    name = "colorizer"
    display_name = "Colorizer"
    description = "Apply a .pal palette to an indexed screenshot"
    version = "0.1.0"

    def __init__(self, event_bus: EventBus | None = None) -> None:
        """Initialise the colorizer tool.

        Args:
            event_bus: Shared event bus for status reporting.
        """
        super().__init__(event_bus=event_bus)

    def define_parameters(self) -> list[ToolParameter]:
        """Return the parameter schema for single-file colorization."""
        return [
            ToolParameter(
                name="palette",
                label="Palette file",
                type=str,
                required=True,
                help="Path or pattern matching exactly one .pal file.",
            ),
            ToolParameter(
                name="image",
                label="Image file",
                type=str,
                required=True,
                help="Path or pattern matching exactly one screenshot.",
            ),
            ToolParameter(
                name="output",
                label="Output file",
                type=Path,
                default=None,
                help="Output PNG (default: derived name next to the image).",
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
                name="source",
                label="Index source",
                type=str,
                default="indexed",
                choices=sorted(INDEX_SOURCES),
                help="Read indices from an indexed PNG or match template colours.",
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
                help="Write an indexed PNG with the palette embedded instead of RGB.",
            ),
            ToolParameter(
                name="name_format",
                label="Name format",
                type=str,
                default=DEFAULT_NAME_FORMAT,
                help="Output name template used when no output file is given.",
            ),
        ]

    def validate(self, params: dict[str, Any]) -> None:
        """Validate parameters, including the output name template.

        Args:
            params: Parameter dict to validate.

        Raises:
            ValidationError: If any parameter is invalid.
        """
        super().validate(params)
        validate_name_format(params.get("name_format") or DEFAULT_NAME_FORMAT)

    def _do_execute(self, params: dict[str, Any]) -> ImageData:
        """Resolve both inputs and colorize.

        Args:
            params: Validated parameter dictionary.

        Returns:
            An ``ImageData`` describing the written file.
        """
        palette_path = resolve_single(params["palette"], kind="palette")
        image_path = resolve_single(params["image"], kind="image")

        output = params.get("output")
        if output is None:
            output = derive_output_path(palette_path, image_path, image_path.parent, params["scale"], params["name_format"])

        result = colorize_file(
            palette_path,
            image_path,
            Path(output),
            scale=params["scale"],
            source=params["source"],
            strict=params["strict"],
            indexed_output=params["indexed_output"],
        )
        self.event_bus.emit("completed", tool=self.name, message=f"Colorized {image_path.name} -> {result.path}")
        return result

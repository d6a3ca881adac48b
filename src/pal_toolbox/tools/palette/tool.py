"""PaletteTemplateTool — BaseTool wrapper that writes a template palette file."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pal_toolbox.core.base_tool import BaseTool, ToolParameter
from pal_toolbox.core.events import EventBus
from pal_toolbox.tools.palette.logic import save_palette, template


class PaletteTemplateTool(BaseTool):
    """Write the deterministic template palette used to seed palette editing."""

    name = "palette_template"
    display_name = "Palette Template"
    description = "Create a template .pal file with a unique colour in every slot"
    version = "0.1.0"

    def __init__(self, event_bus: EventBus | None = None) -> None:
        """Initialise the template tool.

        Args:
            event_bus: Shared event bus for status reporting.
        """
        super().__init__(event_bus=event_bus)

    def define_parameters(self) -> list[ToolParameter]:
        """Return the parameter schema for template creation."""
        return [
            ToolParameter(
                name="output",
                label="Output file",
                type=Path,
                required=True,
                help="Where to write the template .pal file.",
            ),
            ToolParameter(
                name="overwrite",
                label="Overwrite",
                type=bool,
                default=False,
                help="Replace an existing file at the output path.",
            ),
        ]

    def _do_execute(self, params: dict[str, Any]) -> Path:
        """Write the template palette.

        Args:
            params: Validated parameter dictionary.

        Returns:
            The path that was written.
        """
        path = save_palette(template(), Path(params["output"]), overwrite=params["overwrite"])
        self.event_bus.emit("completed", tool=self.name, message=f"Template palette written to {path}")
        return path

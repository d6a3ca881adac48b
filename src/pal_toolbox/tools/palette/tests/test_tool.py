"""Tests for PaletteTemplateTool (BaseTool integration)."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from pal_toolbox.core.base_tool import ToolParameter
from pal_toolbox.core.events import EventBus
from pal_toolbox.core.exceptions import ToolError, ValidationError
from pal_toolbox.tools.palette.logic import load_palette, template
from pal_toolbox.tools.palette.tool import PaletteTemplateTool


@pytest.fixture()
def tool() -> PaletteTemplateTool:
    """Return a fresh PaletteTemplateTool instance."""
    return PaletteTemplateTool()


class TestToolMetadata:
    """Tests for tool identity and parameter schema."""

    def test_tool_name(self, tool: PaletteTemplateTool) -> None:
        """Tool exposes the expected name."""
        assert tool.name == "palette_template"
        assert tool.display_name == "Palette Template"

    def test_define_parameters(self, tool: PaletteTemplateTool) -> None:
        """Parameters are ``ToolParameter`` instances with unique names."""
        params = tool.define_parameters()
        assert all(isinstance(p, ToolParameter) for p in params)
        assert {p.name for p in params} == {"output", "overwrite"}


class TestToolExecution:
    """Tests for the full ``run()`` lifecycle."""

    def test_writes_template(self, tool: PaletteTemplateTool, tmp_path: Path) -> None:
        """Happy path: the template file is written and parses back."""
        path = tool.run(params={"output": tmp_path / "template.pal"})

        assert path == tmp_path / "template.pal"
        assert load_palette(path) == template()

    def test_requires_output(self, tool: PaletteTemplateTool) -> None:
        """Missing output path is a validation error."""
        with pytest.raises(ValidationError, match="'output' is required"):
            tool.run(params={})

    def test_existing_file_needs_overwrite(self, tool: PaletteTemplateTool, tmp_path: Path) -> None:
        """An existing file is only replaced with ``overwrite``."""
        target = tmp_path / "template.pal"
        target.write_bytes(b"old")

        with pytest.raises(ToolError, match="already exists"):
            tool.run(params={"output": target})
        tool.run(params={"output": target, "overwrite": True})
        assert target.stat().st_size == 56

    def test_emits_completed_event(self, tmp_path: Path) -> None:
        """Completion is reported through the event bus."""
        bus = EventBus()
        events: list[dict[str, Any]] = []
        bus.subscribe("completed", lambda **kw: events.append(kw))

        PaletteTemplateTool(event_bus=bus).run(params={"output": tmp_path / "t.pal"})

        assert len(events) == 1
        assert events[0]["tool"] == "palette_template"

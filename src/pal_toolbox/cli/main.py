"""CLI entry point — click group with the display, template and colorize commands."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click

from pal_toolbox.core.config import ConfigManager
from pal_toolbox.core.exceptions import ToolboxError
from pal_toolbox.core.log import setup_logging
from pal_toolbox.tools.batch_colorizer.plan import DEFAULT_NAME_FORMAT, is_pattern
from pal_toolbox.tools.batch_colorizer.report import DEFAULT_TITLE
from pal_toolbox.tools.colorizer.logic import INDEX_SOURCES
from pal_toolbox.tools.palette.logic import DISPLAY_STYLES


def _progress_bus() -> Any:
    """Return an event bus that echoes progress and log lines."""
    from pal_toolbox.core.events import EventBus

    bus = EventBus()
    bus.subscribe("progress", lambda **kw: click.echo(f"  [{kw['current']:5d}/{kw['total']:5d}] {kw['message']}"))
    bus.subscribe("log", lambda **kw: click.echo(f"  {kw['message']}"))
    return bus


def _config_value(ctx: click.Context, value: Any, key: str, tool: str, default: Any) -> Any:
    """Return the CLI value if given, else the configured value, else *default*."""
    if value is not None:
        return value
    config: ConfigManager = ctx.obj["config"]
    return config.get(key, tool=tool, default=default)


@click.group()
@click.version_option(package_name="pal-toolbox")
@click.option("-v", "--verbose", count=True, help="Increase log output (-v info, -vv debug).")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, resolve_path=True),
    default=None,
    help="Also append log records to this file.",
)
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, resolve_path=True),
    default=None,
    help="Configuration directory (default: $PAL_TOOLBOX_CONFIG_DIR or ~/.config/pal-toolbox).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: int, log_file: str | None, config_dir: str | None) -> None:
    """Pal Toolbox — colorize handheld screenshots with .pal palette files."""
    if verbose or log_file:
        setup_logging(verbose, Path(log_file) if log_file else None)
    config = ConfigManager(config_dir=Path(config_dir) if config_dir else None)
    try:
        config.load()
    except ToolboxError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command(name="display")
@click.argument("palette", type=click.Path(exists=True, dir_okay=False, resolve_path=True))
@click.option(
    "-s",
    "--style",
    default="hex",
    show_default=True,
    type=click.Choice(sorted(DISPLAY_STYLES)),
    help="What to print inside each colour swatch.",
)
@click.option("--lenient", is_flag=True, default=False, help="Accept palette files with a wrong footer.")
def display_cmd(palette: str, style: str, lenient: bool) -> None:
    """Display a palette as ANSI colours.

    Requires 24-bit colour support in the terminal.
    """
    from pal_toolbox.tools.palette.logic import load_palette, render_ansi

    try:
        pal = load_palette(Path(palette), strict=not lenient)
    except ToolboxError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(render_ansi(pal, style), nl=False, color=True)


@cli.command(name="create-template")
@click.argument("output", type=click.Path(dir_okay=False, resolve_path=True))
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing file.")
def create_template_cmd(output: str, force: bool) -> None:
    """Write a template .pal file with a unique colour in every slot.

    Load it on the device, take screenshots, then colorize them with
    --source template.
    """
    from pal_toolbox.tools.palette import PaletteTemplateTool

    tool = PaletteTemplateTool()
    try:
        path = tool.run(params={"output": Path(output), "overwrite": force})
    except ToolboxError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Template palette written to {path}")


@cli.command(name="colorize")
@click.option("-p", "--palette", "palettes", multiple=True, required=True, help="Palette file or glob (repeatable).")
@click.option("-i", "--image", "images", multiple=True, required=True, help="Image file or glob (repeatable).")
@click.option("-s", "--scale", type=click.IntRange(min=1), default=None, help="Integer upscale factor [default: 1].")
@click.option(
    "-o",
    "--output",
    type=click.Path(resolve_path=True),
    default=None,
    help="Output file (single mode) or directory (batch mode).",
)
@click.option("--batch", "force_batch", is_flag=True, default=False, help="Use batch mode even for single patterns.")
@click.option(
    "-r",
    "--report",
    type=click.Path(dir_okay=False, resolve_path=True),
    default=None,
    help="Write an HTML comparison matrix (implies --batch).",
)
@click.option("-j", "--workers", type=click.IntRange(min=1), default=None, help="Worker threads for batch mode [default: 1].")
@click.option("--title", default=None, help="Heading of the HTML report.")
@click.option(
    "--source",
    type=click.Choice(sorted(INDEX_SOURCES)),
    default=None,
    help="Read indices from indexed PNGs or from template-palette screenshots [default: indexed].",
)
@click.option("--name-format", default=None, help=f"Output name template [default: {DEFAULT_NAME_FORMAT}].")
@click.option(
    "--indexed-output",
    is_flag=True,
    default=False,
    help="Write indexed PNGs with the palette embedded instead of RGB.",
)
@click.option("--lenient", is_flag=True, default=False, help="Accept palette files with a wrong footer.")
@click.pass_context
def colorize_cmd(
    ctx: click.Context,
    palettes: tuple[str, ...],
    images: tuple[str, ...],
    scale: int | None,
    output: str | None,
    force_batch: bool,
    report: str | None,
    workers: int | None,
    title: str | None,
    source: str | None,
    name_format: str | None,
    lenient: bool,
    indexed_output: bool,
) -> None:
    """Colorize screenshots with palette files.

    With one palette and one image (no wildcards) a single PNG is written.
    With several patterns, wildcards, --batch or --report, every image is
    colorized with every palette.
    """
    batch = force_batch or report is not None or len(palettes) > 1 or len(images) > 1
    batch = batch or any(is_pattern(p) for p in (*palettes, *images))
    tool_name = "batch_colorizer" if batch else "colorizer"

    params: dict[str, Any] = {
        "scale": _config_value(ctx, scale, "scale", tool_name, 1),
        "source": _config_value(ctx, source, "source", tool_name, "indexed"),
        "strict": False if lenient else _config_value(ctx, None, "strict", tool_name, True),
        "name_format": _config_value(ctx, name_format, "name_format", tool_name, DEFAULT_NAME_FORMAT),
        "indexed_output": indexed_output or _config_value(ctx, None, "indexed_output", tool_name, False),
    }

    try:
        if batch:
            _run_batch(ctx, params, palettes, images, output, report, workers, title)
        else:
            _run_single(params, palettes[0], images[0], output)
    except ToolboxError as exc:
        raise click.ClickException(str(exc)) from exc


def _run_single(params: dict[str, Any], palette: str, image: str, output: str | None) -> None:
    """Colorize one palette/image pair and report the written file."""
    from pal_toolbox.tools.colorizer import ColorizerTool

    tool = ColorizerTool()
    result = tool.run(
        params={
            **params,
            "palette": palette,
            "image": image,
            "output": Path(output) if output else None,
        },
    )
    click.echo(f"Colorized image ({result.width}x{result.height}) written to {result.path}")


def _run_batch(
    ctx: click.Context,
    params: dict[str, Any],
    palettes: tuple[str, ...],
    images: tuple[str, ...],
    output: str | None,
    report: str | None,
    workers: int | None,
    title: str | None,
) -> None:
    """Run the cross product and summarise the outcomes."""
    from pal_toolbox.tools.batch_colorizer import BatchColorizerTool

    tool = BatchColorizerTool(event_bus=_progress_bus())
    result = tool.run(
        params={
            **params,
            "palettes": list(palettes),
            "images": list(images),
            "output_dir": Path(output) if output else None,
            "report": Path(report) if report else None,
            "workers": _config_value(ctx, workers, "workers", "batch_colorizer", 1),
            "title": _config_value(ctx, title, "title", "batch_colorizer", DEFAULT_TITLE),
        },
    )

    click.echo(f"Colorized {result.succeeded} of {len(result.items)} combinations ({result.failed} failed)")
    if result.report_path is not None:
        click.echo(f"Report written to {result.report_path}")
    if result.failed:
        ctx.exit(1)

"""Command-line interface for diagspan using Click."""
from __future__ import annotations

import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Final

import click

from diagspan.config import load_config, resolve_emitter_kind
from diagspan.constants import (
    CharSet,
    ColorMode,
    DisplayStyle,
    EmitterKind,
    LabelStyle,
    Severity,
    __version__,
)
from diagspan.diagnostics import Diagnostic, Label
from diagspan.example import make_example, svg_page
from diagspan.files import Files, FilesError
from diagspan.runner import render_to_string
from diagspan.types import Chars, ConfigError, DiagspanConfig, RenderConfig, Styles

logger = logging.getLogger(__name__)


def format_config_text(*, config: DiagspanConfig) -> str:
    """Format configuration as human-readable text."""
    render: RenderConfig = config.render
    emitter: str = config.emitter.value if config.emitter is not None else "(from color)"
    lines: list[str] = [
        "diagspan Configuration",
        "=" * 40,
        "",
        f"Config file: {config.config_path or '(defaults)'}",
        "",
        "Layout:",
        f"  Display style: {render.display_style.value}",
        f"  Tab width: {render.tab_width}",
        f"  Chars: {config.char_set.value}",
        "",
        "Context Lines:",
        f"  Start of multi-line label: {render.start_context_lines}",
        f"  End of multi-line label: {render.end_context_lines}",
        f"  Before label: {render.before_label_lines}",
        f"  After label: {render.after_label_lines}",
        "",
        "Output:",
        f"  Color: {config.color.value}",
        f"  Emitter: {emitter}",
    ]
    return "\n".join(lines)


def format_config_json(*, config: DiagspanConfig) -> str:
    """Format configuration as JSON."""
    render: RenderConfig = config.render
    data: dict[str, Any] = {
        "config_path": str(config.config_path) if config.config_path else None,
        "display_style": render.display_style.value,
        "tab_width": render.tab_width,
        "chars": config.char_set.value,
        "start_context_lines": render.start_context_lines,
        "end_context_lines": render.end_context_lines,
        "before_label_lines": render.before_label_lines,
        "after_label_lines": render.after_label_lines,
        "color": config.color.value,
        "emitter": config.emitter.value if config.emitter is not None else None,
    }
    return json.dumps(data, indent=2)


class DocumentError(Exception):
    """A diagnostics document could not be read or is malformed."""


def load_document(path: Path) -> tuple[Files, list[Diagnostic]]:
    """
    Load files and diagnostics from a JSON document.

    Files are given inline (``source``) or by ``path``, relative to the
    document. Labels name their file by its ``name``.
    """
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise DocumentError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise DocumentError(f"Cannot read {path}: {e}") from e

    if not isinstance(data, dict):
        raise DocumentError(f"{path}: expected a JSON object")

    files: Files = Files()
    file_ids: dict[str, int] = {}
    for entry in data.get("files", []):
        name: str = entry["name"] if "name" in entry else entry.get("path", "")
        if "source" in entry:
            source: str = entry["source"]
        elif "path" in entry:
            source_path: Path = path.parent / entry["path"]
            try:
                source = source_path.read_text(encoding="utf-8")
            except OSError as e:
                raise DocumentError(f"Cannot read {source_path}: {e}") from e
        else:
            raise DocumentError(f"file {name!r} needs a 'source' or a 'path'")
        file_ids[name] = files.add(name, source)
        logger.debug("Loaded file %s (%d bytes)", name, len(source.encode("utf-8")))

    diagnostics: list[Diagnostic] = []
    for index, entry in enumerate(data.get("diagnostics", [])):
        try:
            diagnostics.append(_parse_diagnostic(entry, file_ids=file_ids))
        except (KeyError, TypeError, ValueError) as e:
            raise DocumentError(f"diagnostic #{index}: {e}") from e

    logger.info("Loaded %d diagnostic(s) from %s", len(diagnostics), path)
    return files, diagnostics


def _parse_diagnostic(entry: dict[str, Any], *, file_ids: dict[str, int]) -> Diagnostic:
    labels: list[Label] = []
    for label in entry.get("labels", []):
        file_name: str = label["file"]
        if file_name not in file_ids:
            raise ValueError(f"unknown file {file_name!r}")
        labels.append(Label(
            LabelStyle(label.get("style", "primary")),
            file_ids[file_name],
            int(label["start"]),
            int(label["end"]),
            label.get("message", ""),
        ))
    return Diagnostic(
        severity=Severity(entry.get("severity", "error")),
        code=entry.get("code"),
        message=entry.get("message", ""),
        labels=tuple(labels),
        notes=tuple(entry.get("notes", [])),
    )


def styles_for(kind: EmitterKind) -> Styles:
    if kind == EmitterKind.PLAIN:
        return Styles.no_color()
    return Styles.standard_color()


class ConfigType(click.ParamType):
    """Custom Click parameter type for config path."""

    name: str = "path"

    def convert(
        self,
        value: str | Path | None,
        param: click.Parameter | None,
        ctx: click.Context | None,
    ) -> Path | None:
        if value is None:
            return None
        return Path(value)


CONFIG_TYPE: Final[ConfigType] = ConfigType()

_PREVIEW_MODES: Final[dict[str, EmitterKind]] = {
    "plain": EmitterKind.PLAIN,
    "ansi": EmitterKind.ANSI,
    "svg": EmitterKind.MARKUP,
    "debug": EmitterKind.DEBUG,
}


@click.group()
@click.version_option(version=__version__, prog_name="diagspan")
@click.option(
    "--config",
    "config_path",
    type=CONFIG_TYPE,
    default=None,
    help="Path to pyproject.toml (default: search upward from current directory)",
)
@click.option("--verbose", is_flag=True, help="Show progress")
@click.option("--debug", is_flag=True, help="Show detailed trace")
@click.pass_context
def cli(
    ctx: click.Context,
    *,
    config_path: Path | None,
    verbose: bool,
    debug: bool,
) -> None:
    """diagspan - Render source-annotated compiler diagnostics."""
    level: int = (
        logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    )
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        stream=sys.stderr,
    )

    ctx.ensure_object(dict)
    try:
        cfg: DiagspanConfig = load_config(path=config_path)
        ctx.obj["config"] = cfg
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        if e.path:
            click.echo(f"  in: {e.path}", err=True)
        ctx.exit(1)


@cli.command()
@click.option("--validate", is_flag=True, help="Only validate configuration, don't print")
@click.option("--json", "as_json", is_flag=True, help="Output configuration as JSON")
@click.pass_context
def config(ctx: click.Context, *, validate: bool, as_json: bool) -> None:
    """Show or validate configuration."""
    cfg: DiagspanConfig = ctx.obj["config"]

    if validate:
        click.echo(f"Configuration valid: {cfg.config_path or '(defaults)'}")
        return

    if as_json:
        click.echo(format_config_json(config=cfg))
    else:
        click.echo(format_config_text(config=cfg))


@cli.command()
@click.argument("mode", type=click.Choice(list(_PREVIEW_MODES)), default="plain")
@click.pass_context
def preview(ctx: click.Context, mode: str) -> None:
    """Render the built-in FizzBuzz example diagnostic."""
    kind: EmitterKind = _PREVIEW_MODES[mode]
    example = make_example()
    styles: Styles = Styles.standard() if kind == EmitterKind.PLAIN else Styles.standard_color()

    output: str = render_to_string(
        config=RenderConfig(),
        styles=styles,
        emitter_kind=kind,
        files=example.files,
        diagnostics=[example.diagnostic],
    )
    if mode == "svg":
        output = svg_page(output)
    click.echo(output, nl=False, color=kind == EmitterKind.ANSI)


@cli.command()
@click.argument("document", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--display-style",
    type=click.Choice([s.value for s in DisplayStyle]),
    default=None,
    help="Display style (overrides config)",
)
@click.option("--tab-width", type=click.IntRange(min=0), default=None, help="Tab width (overrides config)")
@click.option("--ascii", "use_ascii", is_flag=True, help="Draw with ASCII characters only")
@click.option(
    "--color",
    type=click.Choice([c.value for c in ColorMode]),
    default=None,
    help="Color output mode (overrides config)",
)
@click.pass_context
def render(
    ctx: click.Context,
    document: Path,
    *,
    display_style: str | None,
    tab_width: int | None,
    use_ascii: bool,
    color: str | None,
) -> None:
    """Render diagnostics from a JSON document."""
    cfg: DiagspanConfig = ctx.obj["config"]

    # Apply CLI overrides
    render_overrides: dict[str, Any] = {}
    if display_style is not None:
        render_overrides["display_style"] = DisplayStyle(display_style)
    if tab_width is not None:
        render_overrides["tab_width"] = tab_width
    if use_ascii:
        render_overrides["chars"] = Chars.for_char_set(CharSet.ASCII)
    if render_overrides:
        cfg = replace(cfg, render=replace(cfg.render, **render_overrides))
    if color is not None:
        cfg = replace(cfg, color=ColorMode(color), emitter=None)

    try:
        files, diagnostics = load_document(document)
    except DocumentError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
        return

    kind: EmitterKind = resolve_emitter_kind(config=cfg, isatty=sys.stdout.isatty())
    logger.debug("Rendering with the %s emitter", kind.value)
    try:
        output: str = render_to_string(
            config=cfg.render,
            styles=styles_for(kind),
            emitter_kind=kind,
            files=files,
            diagnostics=diagnostics,
        )
    except FilesError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
        return

    if output:
        click.echo(output, nl=False, color=kind == EmitterKind.ANSI)
    failed: bool = any(d.severity >= Severity.ERROR for d in diagnostics)
    ctx.exit(1 if failed else 0)


def main() -> None:
    """Main entry point for diagspan CLI."""
    cli()


if __name__ == "__main__":
    main()

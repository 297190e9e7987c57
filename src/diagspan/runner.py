"""Entry points for emitting diagnostics."""
from __future__ import annotations

import io
import logging
from collections.abc import Iterable
from typing import TextIO

from diagspan.constants import DisplayStyle, EmitterKind
from diagspan.diagnostics import Diagnostic
from diagspan.emitters import PlainStyleEmitter, StyleEmitter, get_emitter
from diagspan.files import FilesProtocol
from diagspan.renderer import Renderer
from diagspan.types import RenderConfig, Styles
from diagspan.views import RichDiagnosticView, ShortDiagnosticView

logger = logging.getLogger(__name__)


def emit(
    writer: TextIO,
    *,
    config: RenderConfig,
    styles: Styles,
    emitter: StyleEmitter | None = None,
    files: FilesProtocol,
    diagnostic: Diagnostic,
) -> None:
    """
    Render one diagnostic to ``writer``.

    Args:
        writer: Text sink receiving the output.
        config: Layout options; ``config.display_style`` picks the view.
        styles: Style for each output role.
        emitter: Style backend writing to ``writer``. Defaults to plain text.
        files: Source files the diagnostic's labels refer to.
        diagnostic: The diagnostic to render.

    Raises:
        FilesError: If a label refers to a missing file or an invalid
            position, or if writing to the sink fails. Output already
            written is not rolled back.
    """
    if emitter is None:
        emitter = PlainStyleEmitter(writer)
    renderer: Renderer = Renderer(config=config, styles=styles, emitter=emitter)

    if config.display_style == DisplayStyle.RICH:
        RichDiagnosticView(diagnostic=diagnostic, config=config).render(
            files=files, renderer=renderer
        )
    elif config.display_style == DisplayStyle.MEDIUM:
        ShortDiagnosticView(diagnostic=diagnostic, include_notes=True).render(
            files=files, renderer=renderer
        )
    else:
        ShortDiagnosticView(diagnostic=diagnostic, include_notes=False).render(
            files=files, renderer=renderer
        )


def emit_all(
    writer: TextIO,
    *,
    config: RenderConfig,
    styles: Styles,
    emitter: StyleEmitter | None = None,
    files: FilesProtocol,
    diagnostics: Iterable[Diagnostic],
) -> int:
    """Render diagnostics in order, returning how many were written."""
    if emitter is None:
        emitter = PlainStyleEmitter(writer)
    count: int = 0
    for diagnostic in diagnostics:
        emit(
            writer,
            config=config,
            styles=styles,
            emitter=emitter,
            files=files,
            diagnostic=diagnostic,
        )
        count += 1
    logger.debug("Emitted %d diagnostic(s)", count)
    return count


def render_to_string(
    *,
    config: RenderConfig | None = None,
    styles: Styles | None = None,
    emitter_kind: EmitterKind = EmitterKind.PLAIN,
    files: FilesProtocol,
    diagnostics: Iterable[Diagnostic],
) -> str:
    """Render diagnostics into a string using the given style backend."""
    buffer: io.StringIO = io.StringIO()
    emit_all(
        buffer,
        config=config if config is not None else RenderConfig(),
        styles=styles if styles is not None else Styles.no_color(),
        emitter=get_emitter(kind=emitter_kind, writer=buffer),
        files=files,
        diagnostics=diagnostics,
    )
    return buffer.getvalue()

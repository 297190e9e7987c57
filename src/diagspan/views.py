"""Diagnostic views: walk a diagnostic and drive the renderer."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from diagspan.diagnostics import Diagnostic, Label
from diagspan.files import FilesProtocol, Locus, check_byte_range, slice_source, source_bytes
from diagspan.layout import Plan, PlannedLine, plan_diagnostic
from diagspan.renderer import Renderer
from diagspan.types import RenderConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RichDiagnosticView:
    """Header, annotated source snippets for every labelled file, and notes."""

    diagnostic: Diagnostic
    config: RenderConfig

    def render(self, *, files: FilesProtocol, renderer: Renderer) -> None:
        diagnostic: Diagnostic = self.diagnostic
        plan: Plan = plan_diagnostic(diagnostic=diagnostic, files=files, config=self.config)
        outer_padding: int = plan.outer_padding

        renderer.render_header(
            locus=None,
            severity=diagnostic.severity,
            code=diagnostic.code,
            message=diagnostic.message,
        )

        for file_index, planned in enumerate(plan.files):
            source: bytes = source_bytes(files, planned.file_id)

            if planned.lines:
                renderer.render_snippet_start(outer_padding=outer_padding, locus=planned.locus)
                renderer.render_snippet_empty(
                    outer_padding=outer_padding,
                    severity=diagnostic.severity,
                    num_multi_labels=planned.num_multi_labels,
                    multi_labels=[],
                )

            rendered: list[tuple[int, PlannedLine]] = planned.rendered_lines()
            logger.debug(
                "Rendering %d of %d planned line(s) from %s",
                len(rendered),
                len(planned.lines),
                planned.name,
            )
            for position, (line_index, line) in enumerate(rendered):
                renderer.render_snippet_source(
                    outer_padding=outer_padding,
                    line_number=line.number,
                    source=slice_source(source, *line.range),
                    severity=diagnostic.severity,
                    single_labels=line.single_labels,
                    num_multi_labels=planned.num_multi_labels,
                    multi_labels=line.multi_labels,
                )

                if position + 1 >= len(rendered):
                    continue
                next_index, next_line = rendered[position + 1]
                gap: int = next_index - line_index

                if gap == 2:
                    # One skipped line is drawn in full instead of a break.
                    middle_index: int = line_index + 1
                    hidden: PlannedLine | None = planned.lines.get(middle_index)
                    renderer.render_snippet_source(
                        outer_padding=outer_padding,
                        line_number=files.line_number(
                            planned.file_id, line_index=middle_index
                        ),
                        source=slice_source(
                            source,
                            *files.line_range(planned.file_id, line_index=middle_index),
                        ),
                        severity=diagnostic.severity,
                        single_labels=[],
                        num_multi_labels=planned.num_multi_labels,
                        multi_labels=hidden.multi_labels if hidden is not None else [],
                    )
                elif gap > 2:
                    renderer.render_snippet_break(
                        outer_padding=outer_padding,
                        severity=diagnostic.severity,
                        num_multi_labels=planned.num_multi_labels,
                        multi_labels=next_line.multi_labels,
                    )

            # No trailing border right before the final newline.
            if file_index < len(plan.files) - 1 or diagnostic.notes:
                renderer.render_snippet_empty(
                    outer_padding=outer_padding,
                    severity=diagnostic.severity,
                    num_multi_labels=planned.num_multi_labels,
                    multi_labels=[],
                )

        for note in diagnostic.notes:
            renderer.render_snippet_note(outer_padding=outer_padding, message=note)

        renderer.render_empty()


@dataclass(frozen=True, slots=True)
class ShortDiagnosticView:
    """
    One header line per primary label, addressed at that label.

    A diagnostic with several primary labels repeats its header once for
    each of them. With ``include_notes`` the notes follow the headers.
    """

    diagnostic: Diagnostic
    include_notes: bool = False

    def render(self, *, files: FilesProtocol, renderer: Renderer) -> None:
        diagnostic: Diagnostic = self.diagnostic
        primary_labels: tuple[Label, ...] = diagnostic.primary_labels

        for label in diagnostic.labels:
            check_byte_range(source_bytes(files, label.file_id), label.start, label.end)

        if not primary_labels:
            renderer.render_header(
                locus=None,
                severity=diagnostic.severity,
                code=diagnostic.code,
                message=diagnostic.message,
            )

        for label in primary_labels:
            renderer.render_header(
                locus=Locus(
                    name=str(files.name(label.file_id)),
                    location=files.location(label.file_id, byte_index=label.start),
                ),
                severity=diagnostic.severity,
                code=diagnostic.code,
                message=diagnostic.message,
            )

        if self.include_notes:
            for note in diagnostic.notes:
                renderer.render_snippet_note(outer_padding=0, message=note)

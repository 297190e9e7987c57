"""Layout planning: group a diagnostic's labels by file and line.

The plan records, for every file a diagnostic touches, which lines carry
which labels and which lines must be shown. Multi-line labels get a
gutter column the first time they are seen; columns are numbered
monotonically per file and never reused.
"""
from __future__ import annotations

import logging
from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import Union

from diagspan.constants import LabelStyle
from diagspan.diagnostics import Diagnostic, Label
from diagspan.files import FilesError, FilesProtocol, Locus, check_byte_range, source_bytes
from diagspan.types import RenderConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SingleLabel:
    """A label confined to one line; offsets are relative to the line start."""

    style: LabelStyle
    start: int
    end: int
    message: str = ""

    @property
    def range(self) -> tuple[int, int]:
        return (self.start, self.end)


@dataclass(frozen=True, slots=True)
class Top:
    """First line of a multi-line label, starting at ``start`` in that line."""

    start: int


@dataclass(frozen=True, slots=True)
class Left:
    """A line strictly inside a multi-line label."""


@dataclass(frozen=True, slots=True)
class Bottom:
    """Last line of a multi-line label, ending at ``end`` in that line."""

    end: int
    message: str = ""


MultiLabel = Union[Top, Left, Bottom]


@dataclass(frozen=True, slots=True)
class MultiLabelEntry:
    """A multi-line label part placed in gutter column ``column``."""

    column: int
    style: LabelStyle
    part: MultiLabel


@dataclass(slots=True)
class PlannedLine:
    number: int
    range: tuple[int, int]
    single_labels: list[SingleLabel] = field(default_factory=list)
    multi_labels: list[MultiLabelEntry] = field(default_factory=list)
    must_render: bool = False


@dataclass(slots=True)
class PlannedFile:
    """Everything the renderer needs to draw one file's snippet."""

    file_id: Hashable
    start: int
    name: str
    locus: Locus
    max_label_style: LabelStyle
    num_multi_labels: int = 0
    lines: dict[int, PlannedLine] = field(default_factory=dict)

    def line(self, *, index: int, line_range: tuple[int, int], number: int) -> PlannedLine:
        """Return the planned line at ``index``, creating it if needed."""
        planned: PlannedLine | None = self.lines.get(index)
        if planned is None:
            planned = PlannedLine(number=number, range=line_range)
            self.lines[index] = planned
        return planned

    def rendered_lines(self) -> list[tuple[int, PlannedLine]]:
        """Lines that must be shown, in ascending line order."""
        return sorted(
            ((index, line) for index, line in self.lines.items() if line.must_render),
            key=lambda item: item[0],
        )


@dataclass(frozen=True, slots=True)
class Plan:
    files: list[PlannedFile]
    outer_padding: int


def count_digits(number: int) -> int:
    return len(str(number))


def overlaps(a: tuple[int, int], b: tuple[int, int]) -> bool:
    """Whether two half-open ranges share at least one offset."""
    return max(a[0], b[0]) < min(a[1], b[1])


def _insertion_index(labels: list[SingleLabel], *, start: int, end: int) -> int:
    # Keep single labels sorted by (start, end), ties going before existing ones.
    for index, existing in enumerate(labels):
        if existing.start > start:
            return index
        if existing.start == start and existing.end >= end:
            return index
    return len(labels)


def _planned_file_for(
    planned_files: list[PlannedFile],
    *,
    files: FilesProtocol,
    label: Label,
) -> PlannedFile:
    for planned in planned_files:
        if planned.file_id != label.file_id:
            continue
        if (
            planned.max_label_style == LabelStyle.SECONDARY
            and label.style == LabelStyle.PRIMARY
        ) or (
            planned.max_label_style == label.style and planned.start > label.start
        ):
            planned.start = label.start
            planned.locus = Locus(
                name=planned.name,
                location=files.location(label.file_id, byte_index=label.start),
            )
            planned.max_label_style = label.style
        return planned

    name: str = str(files.name(label.file_id))
    planned = PlannedFile(
        file_id=label.file_id,
        start=label.start,
        name=name,
        locus=Locus(
            name=name,
            location=files.location(label.file_id, byte_index=label.start),
        ),
        max_label_style=label.style,
    )
    planned_files.append(planned)
    return planned


def _line_range_or_none(
    files: FilesProtocol,
    file_id: Hashable,
    index: int,
) -> tuple[int, int] | None:
    try:
        return files.line_range(file_id, line_index=index)
    except FilesError:
        return None


def _add_context_lines(
    planned: PlannedFile,
    *,
    files: FilesProtocol,
    label: Label,
    start_index: int,
    start_number: int,
    end_index: int,
    end_number: int,
    config: RenderConfig,
) -> None:
    for offset in range(1, config.before_label_lines + 1):
        if start_index < offset:
            break
        line_range = _line_range_or_none(files, label.file_id, start_index - offset)
        if line_range is None:
            break
        planned.line(
            index=start_index - offset,
            line_range=line_range,
            number=start_number - offset,
        ).must_render = True

    for offset in range(1, config.after_label_lines + 1):
        line_range = _line_range_or_none(files, label.file_id, end_index + offset)
        if line_range is None:
            break
        planned.line(
            index=end_index + offset,
            line_range=line_range,
            number=end_number + offset,
        ).must_render = True


def plan_diagnostic(
    *,
    diagnostic: Diagnostic,
    files: FilesProtocol,
    config: RenderConfig,
) -> Plan:
    """
    Plan the rich rendering of ``diagnostic``.

    Files appear in the order they are first referenced by a label.
    Lookup failures from ``files`` propagate unchanged.

    Raises:
        IndexTooLargeError: If a label reaches past the end of its file.
        InvalidCharBoundaryError: If a label starts or ends inside a
            multi-byte character.
    """
    planned_files: list[PlannedFile] = []
    outer_padding: int = 0
    encoded: dict[Hashable, bytes] = {}

    for label in diagnostic.labels:
        file_id: Hashable = label.file_id
        if file_id not in encoded:
            encoded[file_id] = source_bytes(files, file_id)
        check_byte_range(encoded[file_id], label.start, label.end)

        start_index: int = files.line_index(file_id, byte_index=label.start)
        start_number: int = files.line_number(file_id, line_index=start_index)
        start_range: tuple[int, int] = files.line_range(file_id, line_index=start_index)
        end_index: int = files.line_index(file_id, byte_index=label.end)
        end_number: int = files.line_number(file_id, line_index=end_index)
        end_range: tuple[int, int] = files.line_range(file_id, line_index=end_index)

        outer_padding = max(
            outer_padding, count_digits(start_number), count_digits(end_number)
        )

        planned: PlannedFile = _planned_file_for(planned_files, files=files, label=label)
        _add_context_lines(
            planned,
            files=files,
            label=label,
            start_index=start_index,
            start_number=start_number,
            end_index=end_index,
            end_number=end_number,
            config=config,
        )

        if start_index == end_index:
            start: int = label.start - start_range[0]
            # At least one caret, even for an empty range.
            end: int = max(label.end - start_range[0], start + 1)
            line: PlannedLine = planned.line(
                index=start_index, line_range=start_range, number=start_number
            )
            line.single_labels.insert(
                _insertion_index(line.single_labels, start=start, end=end),
                SingleLabel(style=label.style, start=start, end=end, message=label.message),
            )
            line.must_render = True
            continue

        column: int = planned.num_multi_labels
        planned.num_multi_labels += 1

        top_line: PlannedLine = planned.line(
            index=start_index, line_range=start_range, number=start_number
        )
        top_line.multi_labels.append(
            MultiLabelEntry(column, label.style, Top(label.start - start_range[0]))
        )
        top_line.must_render = True

        for index in range(start_index + 1, end_index):
            number: int = files.line_number(file_id, line_index=index)
            outer_padding = max(outer_padding, count_digits(number))
            middle: PlannedLine = planned.line(
                index=index,
                line_range=files.line_range(file_id, line_index=index),
                number=number,
            )
            middle.multi_labels.append(MultiLabelEntry(column, label.style, Left()))
            middle.must_render = (
                middle.must_render
                or index - start_index <= config.start_context_lines
                or end_index - index <= config.end_context_lines
            )

        bottom_line: PlannedLine = planned.line(
            index=end_index, line_range=end_range, number=end_number
        )
        bottom_line.multi_labels.append(
            MultiLabelEntry(
                column,
                label.style,
                Bottom(label.end - end_range[0], label.message),
            )
        )
        bottom_line.must_render = True

    logger.debug(
        "Planned %d label(s) across %d file(s), outer padding %d",
        len(diagnostic.labels),
        len(planned_files),
        outer_padding,
    )
    return Plan(files=planned_files, outer_padding=outer_padding)

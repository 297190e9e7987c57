"""Line renderer: turns planned lines into styled text.

The parts of a rich diagnostic, as drawn by :class:`Renderer`::

                      ┌ outer gutter
                      │ ┌ left border
                      │ │ ┌ inner gutter
                      │ │ │   ┌──────────── source ─────────────┐
                      │ │ │   │                                 │
         header ── error[0001]: oh noes, a cupcake has occurred!
  snippet start ──    ┌─ test:9:0
  snippet empty ──    │
   snippet line ──  9 │   ╭ Cupcake ipsum dolor. Sit amet marshmallow
   snippet line ── 10 │   │ muffin. Halvah croissant candy canes bonbon
                      │ ╭─│─────────^
  snippet break ──    · │ │
   snippet line ── 33 │ │ │ Muffin danish chocolate soufflé pastry icing
                      │ │ ╰─────────────────────^ blah blah
  snippet break ──    · │
   snippet line ── 38 │ │   Brownie lemon drops chocolate jelly-o candy
                      │ │           ^^^^^^^^^^^^ ---------- blah blah
                      │ │           │
                      │ │           blah blah
                      │ ╰──────────^ blah blah
  snippet empty ──    │
   snippet note ──    = blah blah
                        blah blah

All offsets handed to the renderer are byte offsets relative to the start
of the line being drawn.
"""
from __future__ import annotations

import unicodedata
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Final

from diagspan.constants import LabelStyle, Severity
from diagspan.emitters import StyleEmitter
from diagspan.files import Locus
from diagspan.layout import (
    Bottom,
    Left,
    MultiLabelEntry,
    SingleLabel,
    Top,
    overlaps,
)
from diagspan.types import RenderConfig, Styles

_ZERO_WIDTH_CATEGORIES: Final[frozenset[str]] = frozenset({"Mn", "Me", "Cf"})

_WIDE_RANGES: Final[tuple[tuple[int, int], ...]] = (
    (0x1100, 0x115F),
    (0x2329, 0x232A),
    (0x2E80, 0xA4CF),
    (0xAC00, 0xD7A3),
    (0xF900, 0xFAFF),
    (0xFE10, 0xFE19),
    (0xFE30, 0xFE6F),
    (0xFF01, 0xFF60),
    (0xFFE0, 0xFFE6),
    (0x1F300, 0x1F64F),
    (0x1F900, 0x1F9FF),
    (0x20000, 0x2FFFD),
    (0x30000, 0x3FFFD),
)

# Code points with Emoji_Presentation=Yes (Unicode 15.0 emoji-data.txt).
_EMOJI_PRESENTATION_RANGES: Final[tuple[tuple[int, int], ...]] = (
    (0x231A, 0x231B), (0x23E9, 0x23EC), (0x23F0, 0x23F0), (0x23F3, 0x23F3),
    (0x25FD, 0x25FE), (0x2614, 0x2615), (0x2648, 0x2653), (0x267F, 0x267F),
    (0x2693, 0x2693), (0x26A1, 0x26A1), (0x26AA, 0x26AB), (0x26BD, 0x26BE),
    (0x26C4, 0x26C5), (0x26CE, 0x26CE), (0x26D4, 0x26D4), (0x26EA, 0x26EA),
    (0x26F2, 0x26F3), (0x26F5, 0x26F5), (0x26FA, 0x26FA), (0x26FD, 0x26FD),
    (0x2705, 0x2705), (0x270A, 0x270B), (0x2728, 0x2728), (0x274C, 0x274C),
    (0x274E, 0x274E), (0x2753, 0x2755), (0x2757, 0x2757), (0x2795, 0x2797),
    (0x27B0, 0x27B0), (0x27BF, 0x27BF), (0x2B1B, 0x2B1C), (0x2B50, 0x2B50),
    (0x2B55, 0x2B55), (0x1F004, 0x1F004), (0x1F0CF, 0x1F0CF), (0x1F18E, 0x1F18E),
    (0x1F191, 0x1F19A), (0x1F1E6, 0x1F1FF), (0x1F201, 0x1F201), (0x1F21A, 0x1F21A),
    (0x1F22F, 0x1F22F), (0x1F232, 0x1F236), (0x1F238, 0x1F23A), (0x1F250, 0x1F251),
    (0x1F300, 0x1F320), (0x1F32D, 0x1F335), (0x1F337, 0x1F37C), (0x1F37E, 0x1F393),
    (0x1F3A0, 0x1F3CA), (0x1F3CF, 0x1F3D3), (0x1F3E0, 0x1F3F0), (0x1F3F4, 0x1F3F4),
    (0x1F3F8, 0x1F43E), (0x1F440, 0x1F440), (0x1F442, 0x1F4FC), (0x1F4FF, 0x1F53D),
    (0x1F54B, 0x1F54E), (0x1F550, 0x1F567), (0x1F57A, 0x1F57A), (0x1F595, 0x1F596),
    (0x1F5A4, 0x1F5A4), (0x1F5FB, 0x1F64F), (0x1F680, 0x1F6C5), (0x1F6CC, 0x1F6CC),
    (0x1F6D0, 0x1F6D2), (0x1F6D5, 0x1F6D7), (0x1F6DC, 0x1F6DF), (0x1F6EB, 0x1F6EC),
    (0x1F6F4, 0x1F6FC), (0x1F7E0, 0x1F7EB), (0x1F7F0, 0x1F7F0), (0x1F90C, 0x1F93A),
    (0x1F93C, 0x1F945), (0x1F947, 0x1F9FF), (0x1FA70, 0x1FA7C), (0x1FA80, 0x1FA88),
    (0x1FA90, 0x1FABD), (0x1FABF, 0x1FAC5), (0x1FACE, 0x1FADB), (0x1FAE0, 0x1FAE8),
    (0x1FAF0, 0x1FAF8),
)

_TRIMMED_TRAILING: Final[str] = "\n\r\0"


@dataclass(frozen=True, slots=True)
class CharMetrics:
    byte_index: int
    width: int
    byte_length: int

    @property
    def byte_range(self) -> tuple[int, int]:
        return (self.byte_index, self.byte_index + self.byte_length)


def char_width(char: str) -> int:
    """Terminal columns taken by a single code point (tabs excluded)."""
    code_point: int = ord(char)
    if code_point < 0x20 or 0x7F <= code_point <= 0x9F:
        return 0
    if unicodedata.category(char) in _ZERO_WIDTH_CATEGORIES:
        return 0
    if _in_ranges(code_point, _EMOJI_PRESENTATION_RANGES):
        return 2
    if _in_ranges(code_point, _WIDE_RANGES):
        return 2
    return 1


def _in_ranges(code_point: int, ranges: Sequence[tuple[int, int]]) -> bool:
    return any(low <= code_point <= high for low, high in ranges)


def char_indices(line: str) -> list[tuple[int, str]]:
    """Pair each character of ``line`` with its UTF-8 byte offset."""
    indices: list[tuple[int, str]] = []
    offset: int = 0
    for char in line:
        indices.append((offset, char))
        offset += len(char.encode("utf-8"))
    return indices


def char_metrics(
    chars: Sequence[tuple[int, str]],
    *,
    tab_width: int,
) -> list[tuple[CharMetrics, str]]:
    """
    Attach display widths to characters, expanding tabs to the next stop.

    Assumes ``chars`` begins at the start of a line.
    """
    metrics: list[tuple[CharMetrics, str]] = []
    column: int = 0
    for byte_index, char in chars:
        if char == "\t":
            width: int = tab_width - column % tab_width if tab_width > 0 else 0
        else:
            width = char_width(char)
        metrics.append((CharMetrics(byte_index, width, len(char.encode("utf-8"))), char))
        column += width
    return metrics


def trim_trailing(line: str) -> str:
    return line.rstrip(_TRIMMED_TRAILING)


def leading_whitespace_bytes(line: str) -> int:
    """Bytes of leading spaces and tabs (both single-byte)."""
    return len(line) - len(line.lstrip(" \t"))


def _max_style(styles: Sequence[LabelStyle]) -> LabelStyle | None:
    if not styles:
        return None
    return max(styles, key=lambda style: style.priority)


class Renderer:
    """Draws the individual parts of a diagnostic through a style emitter."""

    def __init__(
        self,
        *,
        config: RenderConfig,
        styles: Styles,
        emitter: StyleEmitter,
    ) -> None:
        self.config: RenderConfig = config
        self.styles: Styles = styles
        self.emitter: StyleEmitter = emitter

    def render_header(
        self,
        *,
        locus: Locus | None,
        severity: Severity,
        code: str | None,
        message: str,
    ) -> None:
        """
        Diagnostic header, with severity, code, and message::

            test:2:9: error[E0001]: unexpected type in `+` application
        """
        if locus is not None:
            self.emitter.write(str(locus))
            self.emitter.write(": ")

        self.emitter.set_header(severity, self.styles.header(severity))
        self.emitter.write(severity.value)
        if code:
            self.emitter.write(f"[{code}]")

        self.emitter.set_header_message(self.styles.header_message)
        self.emitter.write(f": {message}")
        self.emitter.reset()

        self.render_empty()

    def render_empty(self) -> None:
        self.emitter.write("\n")

    def render_snippet_start(self, *, outer_padding: int, locus: Locus) -> None:
        """Top left border and locus, e.g. ``┌─ test:2:9``."""
        self._outer_gutter(outer_padding)
        self.emitter.set_source_border(self.styles.source_border)
        self.emitter.write(self.config.chars.snippet_start)
        self.emitter.reset()
        self.emitter.write(" ")
        self.emitter.write(str(locus))
        self.render_empty()

    def render_snippet_source(
        self,
        *,
        outer_padding: int,
        line_number: int,
        source: str,
        severity: Severity,
        single_labels: Sequence[SingleLabel],
        num_multi_labels: int,
        multi_labels: Sequence[MultiLabelEntry],
    ) -> None:
        """A line of source code followed by its caret and bracket rows."""
        line: str = trim_trailing(source)

        self._source_line(
            outer_padding=outer_padding,
            line_number=line_number,
            line=line,
            severity=severity,
            single_labels=single_labels,
            num_multi_labels=num_multi_labels,
            multi_labels=multi_labels,
        )
        if single_labels:
            self._single_label_rows(
                outer_padding=outer_padding,
                line=line,
                severity=severity,
                single_labels=single_labels,
                num_multi_labels=num_multi_labels,
                multi_labels=multi_labels,
            )
        self._multi_label_rows(
            outer_padding=outer_padding,
            line=line,
            severity=severity,
            num_multi_labels=num_multi_labels,
            multi_labels=multi_labels,
        )

    def render_snippet_empty(
        self,
        *,
        outer_padding: int,
        severity: Severity,
        num_multi_labels: int,
        multi_labels: Sequence[MultiLabelEntry],
    ) -> None:
        """An empty source line, for spacing around a snippet."""
        self._outer_gutter(outer_padding)
        self._border_left()
        self._inner_gutter(severity, num_multi_labels, multi_labels)
        self.render_empty()

    def render_snippet_break(
        self,
        *,
        outer_padding: int,
        severity: Severity,
        num_multi_labels: int,
        multi_labels: Sequence[MultiLabelEntry],
    ) -> None:
        """A broken border marking skipped source lines."""
        self._outer_gutter(outer_padding)
        self.emitter.set_source_border(self.styles.source_border)
        self.emitter.write(self.config.chars.source_border_left_break)
        self.emitter.reset()
        self._inner_gutter(severity, num_multi_labels, multi_labels)
        self.render_empty()

    def render_snippet_note(self, *, outer_padding: int, message: str) -> None:
        """
        A note; continuation lines are aligned under the first::

            = expected type `Int`
                 found type `String`
        """
        for index, text in enumerate(message.split("\n")):
            self._outer_gutter(outer_padding)
            if index == 0:
                self.emitter.set_note_bullet(self.styles.note_bullet)
                self.emitter.write(self.config.chars.note_bullet)
                self.emitter.reset()
            else:
                self.emitter.write(" ")
            self.emitter.write(" ")
            self.emitter.write(text)
            self.render_empty()

    def _source_line(
        self,
        *,
        outer_padding: int,
        line_number: int,
        line: str,
        severity: Severity,
        single_labels: Sequence[SingleLabel],
        num_multi_labels: int,
        multi_labels: Sequence[MultiLabelEntry],
    ) -> None:
        self._outer_gutter_number(line_number, outer_padding)
        self._border_left()

        indent: int = leading_whitespace_bytes(line)
        by_column: dict[int, MultiLabelEntry] = _entries_by_column(multi_labels)
        for column in range(num_multi_labels):
            entry: MultiLabelEntry | None = by_column.get(column)
            if entry is None:
                self._inner_gutter_space()
            elif isinstance(entry.part, Top):
                if entry.part.start <= indent:
                    self._multi_top_left(severity, entry.style)
                else:
                    self._inner_gutter_space()
            else:
                self._multi_left(severity, entry.style, underline=None)

        self.emitter.write(" ")
        in_primary: bool = False
        for metrics, char in char_metrics(char_indices(line), tab_width=self.config.tab_width):
            is_primary: bool = _in_primary(metrics, single_labels, multi_labels)
            if is_primary and not in_primary:
                self._set_label(severity, LabelStyle.PRIMARY)
                in_primary = True
            elif not is_primary and in_primary:
                self.emitter.reset()
                in_primary = False

            if char == "\t":
                self.emitter.write(" " * metrics.width)
            else:
                self.emitter.write(char)
        if in_primary:
            self.emitter.reset()
        self.render_empty()

    def _single_label_rows(
        self,
        *,
        outer_padding: int,
        line: str,
        severity: Severity,
        single_labels: Sequence[SingleLabel],
        num_multi_labels: int,
        multi_labels: Sequence[MultiLabelEntry],
    ) -> None:
        """
        Carets under the source, then messages for labels that could not be
        printed on the caret row::

            │     - ---- ^^^ second mutable borrow occurs here
            │     │ │
            │     │ first mutable borrow occurs here
            │     first borrow later used by call
        """
        num_messages: int = 0
        max_label_start: int = 0
        max_label_end: int = 0
        trailing: int | None = None

        for index, label in enumerate(single_labels):
            if label.message:
                num_messages += 1
            max_label_start = max(max_label_start, label.start)
            max_label_end = max(max_label_end, label.end)
            if label.end == max_label_end:
                trailing = index if label.message else None

        # A trailing message would be drawn across an overlapping caret.
        if trailing is not None and any(
            overlaps(single_labels[trailing].range, other.range)
            for index, other in enumerate(single_labels)
            if index != trailing
        ):
            trailing = None

        chars: list[tuple[int, str]] = char_indices(line)
        all_metrics: list[tuple[CharMetrics, str]] = char_metrics(
            chars, tab_width=self.config.tab_width
        )
        # Placeholder column so a caret can point just past the line end.
        all_metrics.append((CharMetrics(len(line.encode("utf-8")), 1, 1), "\0"))

        self._label_row_prefix(outer_padding, severity, num_multi_labels, multi_labels)
        previous: LabelStyle | None = None
        for metrics, _ in all_metrics:
            current: LabelStyle | None = _max_style([
                label.style
                for label in single_labels
                if overlaps(label.range, metrics.byte_range)
            ])
            if current != previous:
                if current is not None:
                    self._set_label(severity, current)
                else:
                    self.emitter.reset()
                previous = current

            if current == LabelStyle.PRIMARY:
                self.emitter.write(self.config.chars.single_primary_caret * metrics.width)
            elif current == LabelStyle.SECONDARY:
                self.emitter.write(self.config.chars.single_secondary_caret * metrics.width)
            elif metrics.byte_index < max_label_end:
                self.emitter.write(" " * metrics.width)
        if previous is not None:
            self.emitter.reset()

        if trailing is not None:
            self.emitter.write(" ")
            self._set_label(severity, single_labels[trailing].style)
            self.emitter.write(single_labels[trailing].message)
            self.emitter.reset()
        self.render_empty()

        if num_messages <= (0 if trailing is None else 1):
            return

        hanging: list[SingleLabel] = [
            label
            for index, label in enumerate(single_labels)
            if label.message and index != trailing
        ]

        self._label_row_prefix(outer_padding, severity, num_multi_labels, multi_labels)
        self._caret_pointers(severity, max_label_start, hanging, chars)
        self.render_empty()

        for label in reversed(hanging):
            self._label_row_prefix(outer_padding, severity, num_multi_labels, multi_labels)
            self._caret_pointers(
                severity,
                max_label_start,
                hanging,
                [(byte_index, char) for byte_index, char in chars if byte_index < label.start],
            )
            self._set_label(severity, label.style)
            self.emitter.write(label.message)
            self.emitter.reset()
            self.render_empty()

    def _multi_label_rows(
        self,
        *,
        outer_padding: int,
        line: str,
        severity: Severity,
        num_multi_labels: int,
        multi_labels: Sequence[MultiLabelEntry],
    ) -> None:
        """
        Horizontal brackets joining a multi-line label to its gutter column::

            │ ╭─│─────────^
            │ ╰──────────^ blah blah
        """
        indent: int = leading_whitespace_bytes(line)
        for multi_index, entry in enumerate(multi_labels):
            part = entry.part
            if isinstance(part, Left):
                continue
            # The gutter corner already marks a top starting in the indentation.
            if isinstance(part, Top) and part.start <= indent:
                continue

            self._outer_gutter(outer_padding)
            self._border_left()

            underline: tuple[LabelStyle, str] | None = None
            by_column: dict[int, tuple[int, MultiLabelEntry]] = {
                other.column: (offset, other) for offset, other in enumerate(multi_labels)
            }
            for column in range(num_multi_labels):
                found: tuple[int, MultiLabelEntry] | None = by_column.get(column)
                if found is None:
                    self._inner_gutter_column(severity, underline)
                    continue
                offset, other = found
                underline_style: LabelStyle | None = underline[0] if underline else None
                if isinstance(other.part, Left):
                    self._multi_left(severity, other.style, underline=underline_style)
                elif isinstance(other.part, Top) and multi_index > offset:
                    self._multi_left(severity, other.style, underline=underline_style)
                elif isinstance(other.part, Bottom) and multi_index < offset:
                    self._multi_left(severity, other.style, underline=underline_style)
                elif isinstance(other.part, Top) and multi_index == offset:
                    underline = (other.style, self.config.chars.multi_top)
                    self._multi_top_left(severity, entry.style)
                elif isinstance(other.part, Bottom) and multi_index == offset:
                    underline = (other.style, self.config.chars.multi_bottom)
                    self._multi_bottom_left(severity, entry.style)
                else:
                    self._inner_gutter_column(severity, underline)

            if isinstance(part, Bottom):
                self._multi_bottom_caret(severity, entry.style, line, part.end, part.message)
            else:
                self._multi_top_caret(severity, entry.style, line, part.start)

    def _multi_top_caret(
        self,
        severity: Severity,
        label_style: LabelStyle,
        line: str,
        start: int,
    ) -> None:
        self._set_label(severity, label_style)
        for metrics, _ in char_metrics(char_indices(line), tab_width=self.config.tab_width):
            if metrics.byte_index >= start + 1:
                break
            self.emitter.write(self.config.chars.multi_top * metrics.width)
        self.emitter.write(self._multi_caret(label_style))
        self.emitter.reset()
        self.render_empty()

    def _multi_bottom_caret(
        self,
        severity: Severity,
        label_style: LabelStyle,
        line: str,
        end: int,
        message: str,
    ) -> None:
        self._set_label(severity, label_style)
        for metrics, _ in char_metrics(char_indices(line), tab_width=self.config.tab_width):
            if metrics.byte_index >= end:
                break
            self.emitter.write(self.config.chars.multi_bottom * metrics.width)
        self.emitter.write(self._multi_caret(label_style))
        if message:
            self.emitter.write(f" {message}")
        self.emitter.reset()
        self.render_empty()

    def _multi_caret(self, label_style: LabelStyle) -> str:
        if label_style == LabelStyle.PRIMARY:
            return self.config.chars.multi_primary_caret_start
        return self.config.chars.multi_secondary_caret_start

    def _caret_pointers(
        self,
        severity: Severity,
        max_label_start: int,
        hanging: Sequence[SingleLabel],
        chars: Sequence[tuple[int, str]],
    ) -> None:
        """Vertical bars under the start of each hanging label."""
        for metrics, _ in char_metrics(chars, tab_width=self.config.tab_width):
            low, high = metrics.byte_range
            style: LabelStyle | None = _max_style([
                label.style for label in hanging if low <= label.start < high
            ])
            if style is not None:
                self._set_label(severity, style)
                self.emitter.write(self.config.chars.pointer_left)
                self.emitter.reset()
                if metrics.byte_index <= max_label_start and metrics.width > 1:
                    self.emitter.write(" " * (metrics.width - 1))
            elif metrics.byte_index <= max_label_start:
                self.emitter.write(" " * metrics.width)

    def _label_row_prefix(
        self,
        outer_padding: int,
        severity: Severity,
        num_multi_labels: int,
        multi_labels: Sequence[MultiLabelEntry],
    ) -> None:
        self._outer_gutter(outer_padding)
        self._border_left()
        self._inner_gutter(severity, num_multi_labels, multi_labels)
        self.emitter.write(" ")

    def _outer_gutter(self, outer_padding: int) -> None:
        if outer_padding > 0:
            self.emitter.write(" " * outer_padding)
        self.emitter.write(" ")

    def _outer_gutter_number(self, line_number: int, outer_padding: int) -> None:
        self.emitter.set_line_number(self.styles.line_number)
        self.emitter.write(str(line_number).rjust(outer_padding))
        self.emitter.reset()
        self.emitter.write(" ")

    def _border_left(self) -> None:
        self.emitter.set_source_border(self.styles.source_border)
        self.emitter.write(self.config.chars.source_border_left)
        self.emitter.reset()

    def _inner_gutter(
        self,
        severity: Severity,
        num_multi_labels: int,
        multi_labels: Sequence[MultiLabelEntry],
    ) -> None:
        by_column: dict[int, MultiLabelEntry] = _entries_by_column(multi_labels)
        for column in range(num_multi_labels):
            entry: MultiLabelEntry | None = by_column.get(column)
            if entry is None or isinstance(entry.part, Top):
                self._inner_gutter_space()
            else:
                self._multi_left(severity, entry.style, underline=None)

    def _inner_gutter_space(self) -> None:
        self.emitter.write("  ")

    def _inner_gutter_column(
        self,
        severity: Severity,
        underline: tuple[LabelStyle, str] | None,
    ) -> None:
        if underline is None:
            self._inner_gutter_space()
            return
        label_style, glyph = underline
        self._set_label(severity, label_style)
        self.emitter.write(glyph * 2)
        self.emitter.reset()

    def _multi_left(
        self,
        severity: Severity,
        label_style: LabelStyle,
        *,
        underline: LabelStyle | None,
    ) -> None:
        if underline is None:
            self.emitter.write(" ")
        else:
            self._set_label(severity, underline)
            self.emitter.write(self.config.chars.multi_top)
            self.emitter.reset()
        self._set_label(severity, label_style)
        self.emitter.write(self.config.chars.multi_left)
        self.emitter.reset()

    def _multi_top_left(self, severity: Severity, label_style: LabelStyle) -> None:
        self.emitter.write(" ")
        self._set_label(severity, label_style)
        self.emitter.write(self.config.chars.multi_top_left)
        self.emitter.reset()

    def _multi_bottom_left(self, severity: Severity, label_style: LabelStyle) -> None:
        self.emitter.write(" ")
        self._set_label(severity, label_style)
        self.emitter.write(self.config.chars.multi_bottom_left)
        self.emitter.reset()

    def _set_label(self, severity: Severity, label_style: LabelStyle) -> None:
        self.emitter.set_label(severity, label_style, self.styles.label(severity, label_style))


def _entries_by_column(
    multi_labels: Sequence[MultiLabelEntry],
) -> dict[int, MultiLabelEntry]:
    return {entry.column: entry for entry in multi_labels}


def _in_primary(
    metrics: CharMetrics,
    single_labels: Sequence[SingleLabel],
    multi_labels: Sequence[MultiLabelEntry],
) -> bool:
    """Whether a source character is covered by a primary label."""
    low, high = metrics.byte_range
    for label in single_labels:
        if label.style == LabelStyle.PRIMARY and overlaps(label.range, (low, high)):
            return True
    for entry in multi_labels:
        if entry.style != LabelStyle.PRIMARY:
            continue
        part = entry.part
        if isinstance(part, Left):
            return True
        if isinstance(part, Top) and low >= part.start:
            return True
        if isinstance(part, Bottom) and high <= part.end:
            return True
    return False

"""Style backends that turn output roles into markup around written text.

Every emitter writes to the text sink it was created with and owns the
"current style" for that sink. Setting the style that is already active,
or resetting when nothing is active, writes nothing.
"""
from __future__ import annotations

from typing import Final, Protocol, TextIO

from diagspan.constants import Color, EmitterKind, LabelStyle, Severity
from diagspan.files import FormatError
from diagspan.types import Style

_EMPTY: Final[Style] = Style()

_ANSI_COLOR_OFFSETS: Final[dict[Color, int]] = {
    color: offset for offset, color in enumerate(Color)
}
_ANSI_RESET: Final[str] = "\x1b[0m"

_MARKUP_ESCAPES: Final[dict[int, str]] = {
    ord("<"): "&lt;",
    ord(">"): "&gt;",
    ord("&"): "&amp;",
}


class StyleEmitter(Protocol):
    """Applies styling for the different parts of a rendered diagnostic."""

    def write(self, text: str) -> None: ...

    def set_header(self, severity: Severity, style: Style) -> None: ...

    def set_header_message(self, style: Style) -> None: ...

    def set_line_number(self, style: Style) -> None: ...

    def set_note_bullet(self, style: Style) -> None: ...

    def set_source_border(self, style: Style) -> None: ...

    def set_label(self, severity: Severity, label_style: LabelStyle, style: Style) -> None: ...

    def reset(self) -> None: ...


def _write(writer: TextIO, text: str) -> None:
    try:
        writer.write(text)
    except OSError as e:
        raise FormatError(f"error writing output: {e}") from e


class PlainStyleEmitter:
    """Writes text without any styling."""

    def __init__(self, writer: TextIO) -> None:
        self.writer: TextIO = writer

    def write(self, text: str) -> None:
        _write(self.writer, text)

    def set_header(self, severity: Severity, style: Style) -> None:
        pass

    def set_header_message(self, style: Style) -> None:
        pass

    def set_line_number(self, style: Style) -> None:
        pass

    def set_note_bullet(self, style: Style) -> None:
        pass

    def set_source_border(self, style: Style) -> None:
        pass

    def set_label(self, severity: Severity, label_style: LabelStyle, style: Style) -> None:
        pass

    def reset(self) -> None:
        pass


class AnsiStyleEmitter:
    """Emits ANSI SGR escape sequences, one merged sequence per style."""

    def __init__(self, writer: TextIO) -> None:
        self.writer: TextIO = writer
        self._current: Style = _EMPTY

    def write(self, text: str) -> None:
        _write(self.writer, text)

    def set_header(self, severity: Severity, style: Style) -> None:
        self._start(style)

    def set_header_message(self, style: Style) -> None:
        self._start(style)

    def set_line_number(self, style: Style) -> None:
        self._start(style)

    def set_note_bullet(self, style: Style) -> None:
        self._start(style)

    def set_source_border(self, style: Style) -> None:
        self._start(style)

    def set_label(self, severity: Severity, label_style: LabelStyle, style: Style) -> None:
        self._start(style)

    def reset(self) -> None:
        if self._current == _EMPTY:
            return
        _write(self.writer, _ANSI_RESET)
        self._current = _EMPTY

    def _start(self, style: Style) -> None:
        if style == self._current:
            return
        self.reset()
        if style == _EMPTY:
            return
        _write(self.writer, f"\x1b[{';'.join(str(code) for code in ansi_codes(style))}m")
        self._current = style


def ansi_codes(style: Style) -> list[int]:
    """SGR parameters for a style, in foreground/background/bold/underline order."""
    intense: int = 60 if style.intense else 0
    codes: list[int] = []
    if style.foreground is not None:
        codes.append(30 + _ANSI_COLOR_OFFSETS[style.foreground] + intense)
    if style.background is not None:
        codes.append(40 + _ANSI_COLOR_OFFSETS[style.background] + intense)
    if style.bold:
        codes.append(1)
    if style.underline:
        codes.append(4)
    return codes


class MarkupStyleEmitter:
    """
    Wraps styled text in ``<span class="...">`` elements for SVG or HTML.

    Class names are ``header-<severity>``, ``header-message``,
    ``line-number``, ``note-bullet``, ``source-border`` and
    ``label-<primary|secondary>-<severity>``; the colors themselves are
    expected to come from CSS.
    """

    def __init__(self, writer: TextIO) -> None:
        self.writer: TextIO = writer
        self._current: Style = _EMPTY

    def write(self, text: str) -> None:
        _write(self.writer, text.translate(_MARKUP_ESCAPES))

    def set_header(self, severity: Severity, style: Style) -> None:
        self._open(f"header-{severity.value}", style)

    def set_header_message(self, style: Style) -> None:
        self._open("header-message", style)

    def set_line_number(self, style: Style) -> None:
        self._open("line-number", style)

    def set_note_bullet(self, style: Style) -> None:
        self._open("note-bullet", style)

    def set_source_border(self, style: Style) -> None:
        self._open("source-border", style)

    def set_label(self, severity: Severity, label_style: LabelStyle, style: Style) -> None:
        self._open(f"label-{label_style.value}-{severity.value}", style)

    def reset(self) -> None:
        if self._current == _EMPTY:
            return
        _write(self.writer, "</span>")
        self._current = _EMPTY

    def _open(self, class_name: str, style: Style) -> None:
        if style == self._current:
            return
        self.reset()
        if style == _EMPTY:
            return
        _write(self.writer, f'<span class="{class_name}">')
        self._current = style


class DebugStyleEmitter:
    """
    Writes styles as visible tags so colored output can be compared as text.

    A style is written as ``{fg:Red bg:Blue bold underline bright}`` with
    absent attributes omitted, and a reset as ``{/}``.
    """

    def __init__(self, writer: TextIO) -> None:
        self.writer: TextIO = writer
        self._current: Style = _EMPTY

    def write(self, text: str) -> None:
        _write(self.writer, text)

    def set_header(self, severity: Severity, style: Style) -> None:
        self._set(style)

    def set_header_message(self, style: Style) -> None:
        self._set(style)

    def set_line_number(self, style: Style) -> None:
        self._set(style)

    def set_note_bullet(self, style: Style) -> None:
        self._set(style)

    def set_source_border(self, style: Style) -> None:
        self._set(style)

    def set_label(self, severity: Severity, label_style: LabelStyle, style: Style) -> None:
        self._set(style)

    def reset(self) -> None:
        if self._current == _EMPTY:
            return
        _write(self.writer, "{/}")
        self._current = _EMPTY

    def _set(self, style: Style) -> None:
        if style == self._current:
            return
        self._current = style
        if style == _EMPTY:
            _write(self.writer, "{/}")
            return
        _write(self.writer, "{" + " ".join(debug_attributes(style)) + "}")


def debug_attributes(style: Style) -> list[str]:
    parts: list[str] = []
    if style.foreground is not None:
        parts.append(f"fg:{style.foreground.value.capitalize()}")
    if style.background is not None:
        parts.append(f"bg:{style.background.value.capitalize()}")
    if style.bold:
        parts.append("bold")
    if style.underline:
        parts.append("underline")
    if style.intense:
        parts.append("bright")
    return parts


def get_emitter(*, kind: EmitterKind, writer: TextIO) -> StyleEmitter:
    """Create the style backend of the given kind over ``writer``."""
    if kind == EmitterKind.ANSI:
        return AnsiStyleEmitter(writer)
    if kind == EmitterKind.MARKUP:
        return MarkupStyleEmitter(writer)
    if kind == EmitterKind.DEBUG:
        return DebugStyleEmitter(writer)
    return PlainStyleEmitter(writer)

"""Common types and dataclasses for diagspan."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from diagspan.constants import (
    DEFAULT_AFTER_LABEL_LINES,
    DEFAULT_BEFORE_LABEL_LINES,
    DEFAULT_END_CONTEXT_LINES,
    DEFAULT_START_CONTEXT_LINES,
    DEFAULT_TAB_WIDTH,
    CharSet,
    Color,
    ColorMode,
    DisplayStyle,
    EmitterKind,
    LabelStyle,
    Severity,
)


@dataclass(frozen=True, slots=True)
class Chars:
    """Glyphs used when drawing a snippet."""

    snippet_start: str
    source_border_left: str
    source_border_left_break: str
    note_bullet: str
    single_primary_caret: str
    single_secondary_caret: str
    multi_primary_caret_start: str
    multi_primary_caret_end: str
    multi_secondary_caret_start: str
    multi_secondary_caret_end: str
    multi_top_left: str
    multi_top: str
    multi_bottom_left: str
    multi_bottom: str
    multi_left: str
    pointer_left: str

    @classmethod
    def box_drawing(cls) -> Chars:
        """Unicode box drawing characters."""
        return cls(
            snippet_start="┌─",
            source_border_left="│",
            source_border_left_break="·",
            note_bullet="=",
            single_primary_caret="^",
            single_secondary_caret="-",
            multi_primary_caret_start="^",
            multi_primary_caret_end="^",
            multi_secondary_caret_start="'",
            multi_secondary_caret_end="'",
            multi_top_left="╭",
            multi_top="─",
            multi_bottom_left="╰",
            multi_bottom="─",
            multi_left="│",
            pointer_left="│",
        )

    @classmethod
    def ascii(cls) -> Chars:
        """
        ASCII-only characters.

        Useful when a terminal font renders box drawing characters poorly;
        the result looks close to rustc's output.
        """
        return cls(
            snippet_start="-->",
            source_border_left="|",
            source_border_left_break=".",
            note_bullet="=",
            single_primary_caret="^",
            single_secondary_caret="-",
            multi_primary_caret_start="^",
            multi_primary_caret_end="^",
            multi_secondary_caret_start="'",
            multi_secondary_caret_end="'",
            multi_top_left="/",
            multi_top="-",
            multi_bottom_left="\\",
            multi_bottom="-",
            multi_left="|",
            pointer_left="|",
        )

    @classmethod
    def for_char_set(cls, char_set: CharSet) -> Chars:
        if char_set == CharSet.ASCII:
            return cls.ascii()
        return cls.box_drawing()


@dataclass(frozen=True, slots=True)
class Style:
    """Visual attributes for one output role. The default is unstyled."""

    foreground: Color | None = None
    background: Color | None = None
    bold: bool = False
    underline: bool = False
    intense: bool = False

    @property
    def is_empty(self) -> bool:
        return self == _EMPTY_STYLE


_EMPTY_STYLE: Style = Style()


def _uniform_headers(style: Style) -> MappingProxyType[Severity, Style]:
    return MappingProxyType({severity: style for severity in Severity})


def _uniform_labels(style: Style) -> MappingProxyType[tuple[Severity, LabelStyle], Style]:
    return MappingProxyType({
        (severity, label_style): style
        for severity in Severity
        for label_style in LabelStyle
    })


@dataclass(frozen=True, slots=True)
class Styles:
    """Maps each output role to the style it is rendered with."""

    headers: MappingProxyType[Severity, Style] = field(
        default_factory=lambda: _uniform_headers(_EMPTY_STYLE)
    )
    header_message: Style = field(default_factory=Style)
    labels: MappingProxyType[tuple[Severity, LabelStyle], Style] = field(
        default_factory=lambda: _uniform_labels(_EMPTY_STYLE)
    )
    line_number: Style = field(default_factory=Style)
    source_border: Style = field(default_factory=Style)
    note_bullet: Style = field(default_factory=Style)

    def header(self, severity: Severity) -> Style:
        return self.headers.get(severity, _EMPTY_STYLE)

    def label(self, severity: Severity, label_style: LabelStyle) -> Style:
        return self.labels.get((severity, label_style), _EMPTY_STYLE)

    @classmethod
    def no_color(cls) -> Styles:
        return cls()

    @classmethod
    def standard(cls) -> Styles:
        return cls.no_color()

    @classmethod
    def standard_color(cls) -> Styles:
        cyan: Style = Style(foreground=Color.CYAN)
        labels: dict[tuple[Severity, LabelStyle], Style] = {}
        for severity in Severity:
            labels[(severity, LabelStyle.PRIMARY)] = Style(foreground=severity.color)
            labels[(severity, LabelStyle.SECONDARY)] = cyan
        return cls(
            headers=MappingProxyType({
                severity: Style(foreground=severity.color, bold=True, intense=True)
                for severity in Severity
            }),
            header_message=Style(bold=True, intense=True),
            labels=MappingProxyType(labels),
            line_number=cyan,
            source_border=cyan,
            note_bullet=cyan,
        )


@dataclass(frozen=True, slots=True)
class RenderConfig:
    """Options controlling how a diagnostic is laid out."""

    display_style: DisplayStyle = DisplayStyle.RICH
    tab_width: int = DEFAULT_TAB_WIDTH
    chars: Chars = field(default_factory=Chars.box_drawing)
    start_context_lines: int = DEFAULT_START_CONTEXT_LINES
    end_context_lines: int = DEFAULT_END_CONTEXT_LINES
    before_label_lines: int = DEFAULT_BEFORE_LABEL_LINES
    after_label_lines: int = DEFAULT_AFTER_LABEL_LINES

    def __post_init__(self) -> None:
        if not isinstance(self.display_style, DisplayStyle):
            raise ValueError(f"unknown display style: {self.display_style!r}")
        if not isinstance(self.chars, Chars):
            raise ValueError(f"unknown glyph set: {self.chars!r}")
        for name in (
            "tab_width",
            "start_context_lines",
            "end_context_lines",
            "before_label_lines",
            "after_label_lines",
        ):
            value: object = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {value!r}")


@dataclass(frozen=True, slots=True)
class DiagspanConfig:
    """Complete diagspan configuration, as loaded from pyproject.toml."""

    config_path: Path | None = None
    render: RenderConfig = field(default_factory=RenderConfig)
    char_set: CharSet = CharSet.BOX_DRAWING
    color: ColorMode = ColorMode.AUTO
    emitter: EmitterKind | None = None


class ConfigError(Exception):
    """Error during configuration loading or validation."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        self.path: Path | None = path
        super().__init__(message)

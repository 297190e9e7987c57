"""Constants and enums for diagspan."""
from __future__ import annotations

from enum import Enum
from functools import total_ordering
from typing import Final

__version__: Final[str] = "0.1.0"


@total_ordering
class Severity(Enum):
    """Diagnostic severity levels, ordered from least to most severe."""

    HELP = "help"
    NOTE = "note"
    WARNING = "warning"
    ERROR = "error"
    BUG = "bug"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANKS[self]

    @property
    def color(self) -> Color:
        """Terminal color conventionally used for this severity."""
        if self in (Severity.BUG, Severity.ERROR):
            return Color.RED
        if self == Severity.WARNING:
            return Color.YELLOW
        if self == Severity.NOTE:
            return Color.GREEN
        return Color.CYAN

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank


_SEVERITY_RANKS: Final[dict[Severity, int]] = {
    Severity.HELP: 0,
    Severity.NOTE: 1,
    Severity.WARNING: 2,
    Severity.ERROR: 3,
    Severity.BUG: 4,
}


class LabelStyle(Enum):
    """Label styles. Primary labels outrank secondary ones."""

    PRIMARY = "primary"
    SECONDARY = "secondary"

    @property
    def priority(self) -> int:
        return 1 if self == LabelStyle.PRIMARY else 0


class DisplayStyle(Enum):
    """How much of a diagnostic to render."""

    RICH = "rich"
    MEDIUM = "medium"
    SHORT = "short"


class Color(Enum):
    """The eight base terminal colors."""

    BLACK = "black"
    RED = "red"
    GREEN = "green"
    YELLOW = "yellow"
    BLUE = "blue"
    MAGENTA = "magenta"
    CYAN = "cyan"
    WHITE = "white"


class ColorMode(Enum):
    """Color output modes."""

    AUTO = "auto"
    ALWAYS = "always"
    NEVER = "never"


class EmitterKind(Enum):
    """Available style backends."""

    PLAIN = "plain"
    ANSI = "ansi"
    MARKUP = "markup"
    DEBUG = "debug"


class CharSet(Enum):
    """Named glyph sets for drawing snippets."""

    BOX_DRAWING = "box_drawing"
    ASCII = "ascii"


DEFAULT_TAB_WIDTH: Final[int] = 4
DEFAULT_START_CONTEXT_LINES: Final[int] = 3
DEFAULT_END_CONTEXT_LINES: Final[int] = 1
DEFAULT_BEFORE_LABEL_LINES: Final[int] = 0
DEFAULT_AFTER_LABEL_LINES: Final[int] = 0

CONFIG_TABLE: Final[str] = "diagspan"

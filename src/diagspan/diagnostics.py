"""Diagnostic data model for diagspan."""
from __future__ import annotations

from collections.abc import Hashable, Iterable
from dataclasses import dataclass, field, replace

from diagspan.constants import LabelStyle, Severity


@dataclass(frozen=True, slots=True)
class Label:
    """A styled, half-open byte range ``[start, end)`` in one source file.

    Zero-length ranges are valid and mark a single point. The message is
    printed next to the underline and must not contain line breaks.
    """

    style: LabelStyle
    file_id: Hashable
    start: int
    end: int
    message: str = ""

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"label start must not be negative, got {self.start}")
        if self.start > self.end:
            raise ValueError(
                f"label start ({self.start}) must not exceed its end ({self.end})"
            )
        if "\n" in self.message or "\r" in self.message:
            raise ValueError("label messages must not contain line breaks")

    @classmethod
    def primary(
        cls,
        file_id: Hashable,
        start: int,
        end: int,
        message: str = "",
    ) -> Label:
        """Create a label marking the primary cause of a diagnostic."""
        return cls(LabelStyle.PRIMARY, file_id, start, end, message)

    @classmethod
    def secondary(
        cls,
        file_id: Hashable,
        start: int,
        end: int,
        message: str = "",
    ) -> Label:
        """Create a label providing additional context."""
        return cls(LabelStyle.SECONDARY, file_id, start, end, message)

    @property
    def range(self) -> tuple[int, int]:
        return (self.start, self.end)

    def with_message(self, message: str) -> Label:
        return replace(self, message=message)


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A diagnostic (error, warning, ...) to be rendered against source files.

    The order of ``labels`` carries no meaning: labels are always rendered
    in the order they appear in the source. ``notes`` may contain line
    breaks.
    """

    severity: Severity
    code: str | None = None
    message: str = ""
    labels: tuple[Label, ...] = field(default_factory=tuple)
    notes: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "labels", tuple(self.labels))
        object.__setattr__(self, "notes", tuple(self.notes))

    @classmethod
    def bug(
        cls,
        *,
        code: str | None = None,
        message: str = "",
        labels: Iterable[Label] = (),
        notes: Iterable[str] = (),
    ) -> Diagnostic:
        return cls(Severity.BUG, code, message, tuple(labels), tuple(notes))

    @classmethod
    def error(
        cls,
        *,
        code: str | None = None,
        message: str = "",
        labels: Iterable[Label] = (),
        notes: Iterable[str] = (),
    ) -> Diagnostic:
        return cls(Severity.ERROR, code, message, tuple(labels), tuple(notes))

    @classmethod
    def warning(
        cls,
        *,
        code: str | None = None,
        message: str = "",
        labels: Iterable[Label] = (),
        notes: Iterable[str] = (),
    ) -> Diagnostic:
        return cls(Severity.WARNING, code, message, tuple(labels), tuple(notes))

    @classmethod
    def note(
        cls,
        *,
        code: str | None = None,
        message: str = "",
        labels: Iterable[Label] = (),
        notes: Iterable[str] = (),
    ) -> Diagnostic:
        return cls(Severity.NOTE, code, message, tuple(labels), tuple(notes))

    @classmethod
    def help(
        cls,
        *,
        code: str | None = None,
        message: str = "",
        labels: Iterable[Label] = (),
        notes: Iterable[str] = (),
    ) -> Diagnostic:
        return cls(Severity.HELP, code, message, tuple(labels), tuple(notes))

    def with_code(self, code: str | None) -> Diagnostic:
        return replace(self, code=code)

    def with_message(self, message: str) -> Diagnostic:
        return replace(self, message=message)

    def with_labels(self, labels: Iterable[Label]) -> Diagnostic:
        """Return a copy with ``labels`` appended."""
        return replace(self, labels=(*self.labels, *labels))

    def with_notes(self, notes: Iterable[str]) -> Diagnostic:
        """Return a copy with ``notes`` appended."""
        return replace(self, notes=(*self.notes, *notes))

    @property
    def primary_labels(self) -> tuple[Label, ...]:
        return tuple(
            label for label in self.labels if label.style == LabelStyle.PRIMARY
        )

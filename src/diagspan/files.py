"""Source file database and byte-offset to line/column lookups.

All offsets are byte offsets into the UTF-8 encoding of a file's source.
Line and column *indices* are 0-based; line and column *numbers* are the
user-facing, 1-based values printed in diagnostics.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from bisect import bisect_right
from collections.abc import Hashable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable


class FilesErrorKind(Enum):
    """The kinds of failure a file lookup or render can report."""

    FILE_MISSING = "file_missing"
    INDEX_TOO_LARGE = "index_too_large"
    LINE_TOO_LARGE = "line_too_large"
    COLUMN_TOO_LARGE = "column_too_large"
    INVALID_CHAR_BOUNDARY = "invalid_char_boundary"
    FORMAT_ERROR = "format_error"


class FilesError(Exception):
    """Base error for failed file lookups and failed rendering."""

    kind: FilesErrorKind = FilesErrorKind.FORMAT_ERROR


class FileMissingError(FilesError):
    """A required file is not in the file database."""

    kind = FilesErrorKind.FILE_MISSING

    def __init__(self, file_id: Hashable | None = None) -> None:
        self.file_id: Hashable | None = file_id
        super().__init__(f"file missing: {file_id!r}")


class IndexTooLargeError(FilesError):
    """The file does not contain the given byte index."""

    kind = FilesErrorKind.INDEX_TOO_LARGE

    def __init__(self, *, given: int, max: int) -> None:
        self.given: int = given
        self.max: int = max
        super().__init__(f"invalid index {given}, maximum index is {max}")


class LineTooLargeError(FilesError):
    """The file does not contain the given line index."""

    kind = FilesErrorKind.LINE_TOO_LARGE

    def __init__(self, *, given: int, max: int) -> None:
        self.given: int = given
        self.max: int = max
        super().__init__(f"invalid line {given}, maximum line is {max}")


class ColumnTooLargeError(FilesError):
    """The line does not contain the given column index."""

    kind = FilesErrorKind.COLUMN_TOO_LARGE

    def __init__(self, *, given: int, max: int) -> None:
        self.given: int = given
        self.max: int = max
        super().__init__(f"invalid column {given}, maximum column {max}")


class InvalidCharBoundaryError(FilesError):
    """The byte index falls inside a multi-byte code point."""

    kind = FilesErrorKind.INVALID_CHAR_BOUNDARY

    def __init__(self, *, given: int) -> None:
        self.given: int = given
        super().__init__(f"index is not a code point boundary: {given}")


class FormatError(FilesError):
    """Writing to the output sink failed."""

    kind = FilesErrorKind.FORMAT_ERROR

    def __init__(self, message: str = "error writing output") -> None:
        super().__init__(message)


@dataclass(frozen=True, slots=True)
class Location:
    """A user-facing location. Both values are 1-based."""

    line_number: int
    column_number: int


@dataclass(frozen=True, slots=True)
class Locus:
    """File name and location used to anchor a diagnostic or snippet."""

    name: str
    location: Location

    def __str__(self) -> str:
        return f"{self.name}:{self.location.line_number}:{self.location.column_number}"


def line_starts(source: str | bytes) -> list[int]:
    """Return the starting byte index of each line in ``source``."""
    data: bytes = source.encode("utf-8") if isinstance(source, str) else source
    starts: list[int] = [0]
    starts.extend(index + 1 for index, byte in enumerate(data) if byte == 0x0A)
    return starts


def line_index(*, line_starts: Sequence[int], byte_index: int) -> int:
    """
    Find the line containing ``byte_index`` by binary search.

    Returns the previous line when the index is not exactly a line start,
    and the last line when the index is past the end of the file.
    """
    return max(bisect_right(line_starts, byte_index) - 1, 0)


def is_char_boundary(data: bytes, index: int) -> bool:
    """Check that ``index`` does not split a UTF-8 code point."""
    if index == len(data):
        return True
    if index < 0 or index > len(data):
        return False
    return (data[index] & 0xC0) != 0x80


def column_index(
    *,
    source: str | bytes,
    line_range: tuple[int, int],
    byte_index: int,
) -> int:
    """
    Count the code points between the start of a line and ``byte_index``.

    Returns 0 when the byte index is before the line start, and the column
    index of the last character plus one when it is past the line end.
    """
    data: bytes = source.encode("utf-8") if isinstance(source, str) else source
    line_start, line_end = line_range
    end: int = min(byte_index, line_end, len(data))
    if line_start >= end:
        return 0
    return sum(1 for index in range(line_start, end) if is_char_boundary(data, index + 1))


def check_byte_range(data: bytes, start: int, end: int) -> None:
    """Raise unless ``start`` and ``end`` lie within ``data`` on code point boundaries."""
    length: int = len(data)
    if start > length or end > length:
        raise IndexTooLargeError(given=max(start, end), max=length - 1 if length > 0 else 0)
    if not is_char_boundary(data, start):
        raise InvalidCharBoundaryError(given=start)
    if not is_char_boundary(data, end):
        raise InvalidCharBoundaryError(given=end)


def slice_source(data: bytes, start: int, end: int) -> str:
    """Decode ``data[start:end]``, validating both endpoints."""
    check_byte_range(data, start, end)
    return data[start:end].decode("utf-8")


def source_bytes(files: FilesProtocol, file_id: Hashable) -> bytes:
    """UTF-8 source of a file, reusing the encoding ``files`` caches if any."""
    encoded_source = getattr(files, "encoded_source", None)
    if encoded_source is not None:
        return encoded_source(file_id)
    return files.source(file_id).encode("utf-8")


@runtime_checkable
class FilesProtocol(Protocol):
    """Structural interface for the source files a diagnostic refers to."""

    def name(self, file_id: Hashable) -> str: ...

    def source(self, file_id: Hashable) -> str: ...

    def line_index(self, file_id: Hashable, *, byte_index: int) -> int: ...

    def line_number(self, file_id: Hashable, *, line_index: int) -> int: ...

    def column_number(
        self,
        file_id: Hashable,
        *,
        line_index: int,
        byte_index: int,
    ) -> int: ...

    def line_range(self, file_id: Hashable, *, line_index: int) -> tuple[int, int]: ...

    def location(self, file_id: Hashable, *, byte_index: int) -> Location: ...


class FilesMixin(ABC):
    """Default derivations for implementers of :class:`FilesProtocol`.

    Subclasses provide ``name``, ``source``, ``line_index`` and
    ``line_range``. ``line_number`` can be overridden to implement
    something like the C preprocessor's ``#line`` directive.
    """

    @abstractmethod
    def name(self, file_id: Hashable) -> str: ...

    @abstractmethod
    def source(self, file_id: Hashable) -> str: ...

    @abstractmethod
    def line_index(self, file_id: Hashable, *, byte_index: int) -> int: ...

    @abstractmethod
    def line_range(self, file_id: Hashable, *, line_index: int) -> tuple[int, int]: ...

    def encoded_source(self, file_id: Hashable) -> bytes:
        return self.source(file_id).encode("utf-8")

    def line_number(self, file_id: Hashable, *, line_index: int) -> int:
        return line_index + 1

    def column_number(
        self,
        file_id: Hashable,
        *,
        line_index: int,
        byte_index: int,
    ) -> int:
        line_range: tuple[int, int] = self.line_range(file_id, line_index=line_index)
        return column_index(
            source=self.encoded_source(file_id),
            line_range=line_range,
            byte_index=byte_index,
        ) + 1

    def location(self, file_id: Hashable, *, byte_index: int) -> Location:
        """Line and column number at the given byte index."""
        index: int = self.line_index(file_id, byte_index=byte_index)
        return Location(
            line_number=self.line_number(file_id, line_index=index),
            column_number=self.column_number(
                file_id, line_index=index, byte_index=byte_index
            ),
        )


@dataclass(slots=True)
class FileRecord:
    """A named source file with precomputed line starts."""

    name: str
    source: str
    line_starts: list[int] = field(init=False)
    encoded: bytes = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.update(self.source)

    def update(self, source: str) -> None:
        """Replace the source, recomputing the line starts."""
        self.source = source
        self.encoded = source.encode("utf-8")
        self.line_starts = line_starts(self.encoded)

    def line_start(self, line_index: int) -> int:
        """Starting byte index of the given line."""
        last_line_index: int = len(self.line_starts)
        if line_index < last_line_index:
            return self.line_starts[line_index]
        if line_index == last_line_index:
            return len(self.encoded)
        raise LineTooLargeError(given=line_index, max=last_line_index)

    def line_index(self, byte_index: int) -> int:
        return line_index(line_starts=self.line_starts, byte_index=byte_index)

    def line_range(self, line_index: int) -> tuple[int, int]:
        return (self.line_start(line_index), self.line_start(line_index + 1))


class Files(FilesMixin):
    """An in-memory database of source files addressed by integer ids."""

    def __init__(self) -> None:
        self._records: list[FileRecord] = []

    def add(self, name: str, source: str) -> int:
        """Add a file, returning the id used to refer to it."""
        file_id: int = len(self._records)
        self._records.append(FileRecord(name=name, source=source))
        return file_id

    def update(self, file_id: int, source: str) -> None:
        """
        Replace a file's source in place.

        Outstanding byte offsets into the old source become meaningless.
        """
        self.get(file_id).update(source)

    def get(self, file_id: Hashable) -> FileRecord:
        if not isinstance(file_id, int) or not 0 <= file_id < len(self._records):
            raise FileMissingError(file_id)
        return self._records[file_id]

    def name(self, file_id: Hashable) -> str:
        return self.get(file_id).name

    def source(self, file_id: Hashable) -> str:
        return self.get(file_id).source

    def encoded_source(self, file_id: Hashable) -> bytes:
        return self.get(file_id).encoded

    def line_starts(self, file_id: Hashable) -> list[int]:
        return list(self.get(file_id).line_starts)

    def line_index(self, file_id: Hashable, *, byte_index: int) -> int:
        return self.get(file_id).line_index(byte_index)

    def line_range(self, file_id: Hashable, *, line_index: int) -> tuple[int, int]:
        return self.get(file_id).line_range(line_index)

    def __len__(self) -> int:
        return len(self._records)

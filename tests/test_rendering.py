"""Exact-output tests for rendering diagnostics."""
from __future__ import annotations

import io
from collections.abc import Hashable

import pytest

from diagspan.constants import DisplayStyle, EmitterKind
from diagspan.diagnostics import Diagnostic, Label
from diagspan.example import make_example
from diagspan.files import (
    FileMissingError,
    Files,
    FilesErrorKind,
    FormatError,
    IndexTooLargeError,
    InvalidCharBoundaryError,
)
from diagspan.renderer import char_width
from diagspan.runner import emit, render_to_string
from diagspan.types import Chars, RenderConfig, Styles

_ONE_LINE: str = """\
fn main() {
    let mut v = vec![Some("foo"), Some("bar")];
    v.push(v.pop().unwrap());
}
"""
_TEN_LINES: str = "".join(f"line {n}\n" for n in range(1, 11))


def _render(
    files: Files,
    *diagnostics: Diagnostic,
    config: RenderConfig | None = None,
    styles: Styles | None = None,
    kind: EmitterKind = EmitterKind.PLAIN,
) -> str:
    return render_to_string(
        config=config,
        styles=styles,
        emitter_kind=kind,
        files=files,
        diagnostics=diagnostics,
    )


def _lines(*lines: str) -> str:
    return "\n".join(lines) + "\n"


def _offset(line_number: int, column: int = 0) -> int:
    return sum(len(f"line {n}\n") for n in range(1, line_number)) + column


class TestReadmeExample:
    def test_plain_output(self) -> None:
        example = make_example()

        output: str = _render(example.files, example.diagnostic, styles=Styles.standard())

        assert output == example.expected_output

    def test_debug_emitter_without_colors_matches_plain(self) -> None:
        example = make_example()

        output: str = _render(example.files, example.diagnostic, kind=EmitterKind.DEBUG)

        assert output == example.expected_output


class TestHeaders:
    def test_message_and_error_codes_rich(self) -> None:
        diagnostics: list[Diagnostic] = [
            Diagnostic.error(code="E0001", message="a message"),
            Diagnostic.warning(code="W001", message="a message"),
            Diagnostic.error(code="", message="where did my errorcode go?"),
            Diagnostic.help(message="where did my errorcode go?"),
        ]

        output: str = _render(Files(), *diagnostics)

        assert output == _lines(
            "error[E0001]: a message",
            "",
            "warning[W001]: a message",
            "",
            "error: where did my errorcode go?",
            "",
            "help: where did my errorcode go?",
            "",
        )

    def test_message_and_error_codes_short(self) -> None:
        diagnostics: list[Diagnostic] = [
            Diagnostic.note(code="N0815", message="a message"),
            Diagnostic.warning(code="", message="where did my errorcode go?"),
        ]

        output: str = _render(
            Files(), *diagnostics, config=RenderConfig(display_style=DisplayStyle.SHORT)
        )

        assert output == _lines(
            "note[N0815]: a message",
            "warning: where did my errorcode go?",
        )

    @pytest.mark.parametrize(
        ("display_style", "expected"),
        [
            (DisplayStyle.RICH, "bug: \n\nerror: \n\n"),
            (DisplayStyle.MEDIUM, "bug: \nerror: \n"),
            (DisplayStyle.SHORT, "bug: \nerror: \n"),
        ],
    )
    def test_empty_diagnostics(self, display_style: DisplayStyle, expected: str) -> None:
        output: str = _render(
            Files(),
            Diagnostic.bug(),
            Diagnostic.error(),
            config=RenderConfig(display_style=display_style),
        )

        assert output == expected


class TestSingleLineLabels:
    def test_trailing_and_hanging_labels(self) -> None:
        files: Files = Files()
        file_id: int = files.add("one_line.rs", _ONE_LINE)
        diagnostics: list[Diagnostic] = [
            Diagnostic.error(
                code="E0499",
                message="cannot borrow `v` as mutable more than once at a time",
                labels=[
                    Label.primary(file_id, 71, 72, "second mutable borrow occurs here"),
                    Label.secondary(file_id, 64, 65, "first borrow later used by call"),
                    Label.secondary(file_id, 66, 70, "first mutable borrow occurs here"),
                ],
            ),
            Diagnostic.error(
                message="aborting due to previous error",
                notes=["For more information about this error, try `rustc --explain E0499`."],
            ),
        ]

        output: str = _render(files, *diagnostics)

        assert output == _lines(
            "error[E0499]: cannot borrow `v` as mutable more than once at a time",
            "  ┌─ one_line.rs:3:12",
            "  │",
            "3 │     v.push(v.pop().unwrap());",
            "  │     - ---- ^ second mutable borrow occurs here",
            "  │     │ │     ",
            "  │     │ first mutable borrow occurs here",
            "  │     first borrow later used by call",
            "",
            "error: aborting due to previous error",
            " = For more information about this error, try `rustc --explain E0499`.",
            "",
        )

    def test_single_caret_with_trailing_message(self) -> None:
        files: Files = Files()
        file_id: int = files.add("one_line.rs", _ONE_LINE)

        output: str = _render(
            files, Diagnostic.error(message="m", labels=[Label.primary(file_id, 71, 72, "x")])
        )

        assert output == _lines(
            "error: m",
            "  ┌─ one_line.rs:3:12",
            "  │",
            "3 │     v.push(v.pop().unwrap());",
            "  │ " + " " * 11 + "^ x",
            "",
        )

    def test_same_start_shorter_range_first(self) -> None:
        files: Files = Files()
        file_id: int = files.add("b.rs", "let value = compute(a, b);\n")

        output: str = _render(
            files,
            Diagnostic.error(
                message="m",
                labels=[
                    Label.secondary(file_id, 12, 25, "call"),
                    Label.primary(file_id, 12, 19, "function"),
                ],
            ),
        )

        assert output == _lines(
            "error: m",
            "  ┌─ b.rs:1:13",
            "  │",
            "1 │ let value = compute(a, b);",
            "  │ " + " " * 12 + "^^^^^^^------",
            "  │ " + " " * 12 + "│",
            "  │ " + " " * 12 + "call",
            "  │ " + " " * 12 + "function",
            "",
        )

    def test_overlapping_trailing_candidate_is_demoted(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", "abcdef\n")

        output: str = _render(
            files,
            Diagnostic.error(
                message="m",
                labels=[
                    Label.primary(file_id, 0, 4, "outer"),
                    Label.secondary(file_id, 2, 4, "inner"),
                ],
            ),
        )

        assert output == _lines(
            "error: m",
            "  ┌─ t:1:1",
            "  │",
            "1 │ abcdef",
            "  │ ^^^^",
            "  │ │ │",
            "  │ │ inner",
            "  │ outer",
            "",
        )

    def test_empty_range_at_end_of_line(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", "Hello world!\n")

        output: str = _render(
            files, Diagnostic.error(message="m", labels=[Label.primary(file_id, 12, 12, "end")])
        )

        assert output == _lines(
            "error: m",
            "  ┌─ t:1:13",
            "  │",
            "1 │ Hello world!",
            "  │ " + " " * 12 + "^ end",
            "",
        )

    def test_label_without_message(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", "abc\n")

        output: str = _render(
            files, Diagnostic.error(message="m", labels=[Label.primary(file_id, 1, 3)])
        )

        assert output == _lines(
            "error: m",
            "  ┌─ t:1:2",
            "  │",
            "1 │ abc",
            "  │  ^^",
            "",
        )


class TestMultiLineLabels:
    def test_elided_lines_become_a_break(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", _TEN_LINES)

        output: str = _render(
            files,
            Diagnostic.error(
                message="m",
                labels=[Label.primary(file_id, _offset(1), _offset(10, 2), "span")],
            ),
        )

        assert output == _lines(
            "error: m",
            "   ┌─ t:1:1",
            "   │  ",
            " 1 │ ╭ line 1",
            " 2 │ │ line 2",
            " 3 │ │ line 3",
            " 4 │ │ line 4",
            "   · │",
            " 9 │ │ line 9",
            "10 │ │ line 10",
            "   │ ╰──^ span",
            "",
        )

    def test_single_hidden_line_is_shown(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", _TEN_LINES)

        output: str = _render(
            files,
            Diagnostic.error(
                message="m",
                labels=[Label.primary(file_id, _offset(1), _offset(7, 2), "span")],
            ),
        )

        assert output == _lines(
            "error: m",
            "  ┌─ t:1:1",
            "  │  ",
            "1 │ ╭ line 1",
            "2 │ │ line 2",
            "3 │ │ line 3",
            "4 │ │ line 4",
            "5 │ │ line 5",
            "6 │ │ line 6",
            "7 │ │ line 7",
            "  │ ╰──^ span",
            "",
        )

    def test_top_after_indentation_gets_a_bracket(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", "let x = foo(\n    a,\n);\n")

        output: str = _render(
            files,
            Diagnostic.error(message="m", labels=[Label.primary(file_id, 8, 21, "call")]),
        )

        assert output == _lines(
            "error: m",
            "  ┌─ t:1:9",
            "  │  ",
            "1 │   let x = foo(",
            "  │ ╭─────────^",
            "2 │ │     a,",
            "3 │ │ );",
            "  │ ╰─^ call",
            "",
        )

    def test_secondary_uses_secondary_caret(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", "a\nb\n")

        output: str = _render(
            files,
            Diagnostic.note(message="m", labels=[Label.secondary(file_id, 0, 3, "both")]),
        )

        assert output == _lines(
            "note: m",
            "  ┌─ t:1:1",
            "  │  ",
            "1 │ ╭ a",
            "2 │ │ b",
            "  │ ╰─' both",
            "",
        )


class TestColumnWidths:
    def test_tab_expands_to_next_stop(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", "\tX\n")

        output: str = _render(
            files, Diagnostic.error(message="m", labels=[Label.primary(file_id, 1, 2, "x")])
        )

        assert output == _lines(
            "error: m",
            "  ┌─ t:1:2",
            "  │",
            "1 │     X",
            "  │     ^ x",
            "",
        )

    def test_zero_tab_width_removes_tabs(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", "\tX\n")

        output: str = _render(
            files,
            Diagnostic.error(message="m", labels=[Label.primary(file_id, 1, 2, "x")]),
            config=RenderConfig(tab_width=0),
        )

        assert "1 │ X\n  │ ^ x\n" in output

    def test_wide_characters_get_two_carets(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", "日本語 ok\n")

        output: str = _render(
            files, Diagnostic.error(message="m", labels=[Label.primary(file_id, 3, 6, "wide")])
        )

        assert "1 │ 日本語 ok\n  │   ^^ wide\n" in output

    def test_combining_marks_take_no_columns(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", "e\u0301x\n")

        output: str = _render(
            files, Diagnostic.error(message="m", labels=[Label.primary(file_id, 3, 4, "x")])
        )

        assert "  │  ^ x\n" in output

    @pytest.mark.parametrize(
        ("char", "width"),
        [
            ("a", 1),
            ("日", 2),
            ("가", 2),
            ("⌚", 2),
            ("\U0001f680", 2),
            ("\U00017000", 1),
            ("\U0001b000", 1),
            ("\u0301", 0),
            ("\x07", 0),
        ],
    )
    def test_char_width(self, char: str, width: int) -> None:
        assert char_width(char) == width

    def test_tangut_is_one_column(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", "\U00017000x\n")

        output: str = _render(
            files, Diagnostic.error(message="m", labels=[Label.primary(file_id, 4, 5, "x")])
        )

        assert "  │  ^ x\n" in output


class TestFilesAndNotes:
    def test_border_between_files_only(self) -> None:
        files: Files = Files()
        a: int = files.add("a", "one\n")
        b: int = files.add("b", "two\n")

        output: str = _render(
            files,
            Diagnostic.error(
                message="m",
                labels=[Label.primary(a, 0, 3, "first"), Label.primary(b, 0, 3, "second")],
            ),
        )

        assert output == _lines(
            "error: m",
            "  ┌─ a:1:1",
            "  │",
            "1 │ one",
            "  │ ^^^ first",
            "  │",
            "  ┌─ b:1:1",
            "  │",
            "1 │ two",
            "  │ ^^^ second",
            "",
        )

    def test_notes_after_snippet(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", "abc\n")

        output: str = _render(
            files,
            Diagnostic.warning(
                message="m",
                labels=[Label.primary(file_id, 0, 1)],
                notes=["first", "second\n  more"],
            ),
        )

        assert output == _lines(
            "warning: m",
            "  ┌─ t:1:1",
            "  │",
            "1 │ abc",
            "  │ ^",
            "  │",
            "  = first",
            "  = second",
            "      more",
            "",
        )

    def test_ascii_glyphs(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", "abc\n")

        output: str = _render(
            files,
            Diagnostic.error(message="m", labels=[Label.primary(file_id, 0, 1, "x")]),
            config=RenderConfig(chars=Chars.ascii()),
        )

        assert output == _lines(
            "error: m",
            "  --> t:1:1",
            "  |",
            "1 | abc",
            "  | ^ x",
            "",
        )


class TestShortAndMedium:
    def test_no_primary_labels_gives_unlocated_header(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", _TEN_LINES)

        output: str = _render(
            files,
            Diagnostic.error(message="m", labels=[Label.secondary(file_id, 0, 1)]),
            config=RenderConfig(display_style=DisplayStyle.SHORT),
        )

        assert output == "error: m\n"

    def test_one_header_per_primary_label(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", _TEN_LINES)

        output: str = _render(
            files,
            Diagnostic.error(
                code="E1",
                message="m",
                labels=[
                    Label.primary(file_id, 0, 1),
                    Label.secondary(file_id, 7, 8),
                    Label.primary(file_id, _offset(3, 1), _offset(3, 2)),
                ],
                notes=["a note"],
            ),
            config=RenderConfig(display_style=DisplayStyle.SHORT),
        )

        assert output == _lines("t:1:1: error[E1]: m", "t:3:2: error[E1]: m")

    def test_medium_adds_notes(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", _TEN_LINES)

        output: str = _render(
            files,
            Diagnostic.error(
                message="m", labels=[Label.primary(file_id, 0, 1)], notes=["a note"]
            ),
            config=RenderConfig(display_style=DisplayStyle.MEDIUM),
        )

        assert output == _lines("t:1:1: error: m", " = a note")


class TestStyledOutput:
    def test_debug_emitter_with_standard_colors(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", "abc\n")

        output: str = _render(
            files,
            Diagnostic.error(code="E1", message="m", labels=[Label.primary(file_id, 1, 2, "here")]),
            styles=Styles.standard_color(),
            kind=EmitterKind.DEBUG,
        )

        assert output == _lines(
            "{fg:Red bold bright}error[E1]{bold bright}: m{/}",
            "  {fg:Cyan}┌─{/} t:1:2",
            "  {fg:Cyan}│{/}",
            "{fg:Cyan}1{/} {fg:Cyan}│{/} a{fg:Red}b{/}c",
            "  {fg:Cyan}│{/}  {fg:Red}^{/} {fg:Red}here{/}",
            "",
        )

    def test_ansi_output_ends_every_style(self) -> None:
        example = make_example()

        output: str = _render(
            example.files,
            example.diagnostic,
            styles=Styles.standard_color(),
            kind=EmitterKind.ANSI,
        )

        assert output.startswith("\x1b[91;1merror[E0308]\x1b[0m\x1b[1m: ")
        assert output.count("\x1b[0m") == output.count("\x1b[") - output.count("\x1b[0m")

    def test_markup_escapes_source(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", "a<b\n")

        output: str = _render(
            files,
            Diagnostic.error(message="m", labels=[Label.primary(file_id, 1, 2)]),
            kind=EmitterKind.MARKUP,
        )

        assert "1 │ a&lt;b\n" in output


class TestBehaviour:
    def test_rendering_is_idempotent(self) -> None:
        example = make_example()

        first: str = _render(example.files, example.diagnostic)
        second: str = _render(example.files, example.diagnostic)

        assert first == second

    def test_label_order_does_not_matter(self) -> None:
        example = make_example()
        shuffled: Diagnostic = Diagnostic.error(
            code=example.diagnostic.code,
            message=example.diagnostic.message,
            labels=[example.diagnostic.labels[0], *reversed(example.diagnostic.labels[1:])],
            notes=example.diagnostic.notes,
        )

        assert _render(example.files, shuffled) == example.expected_output

    def test_custom_line_numbers(self) -> None:
        class OffsetFiles(Files):
            def line_number(self, file_id: Hashable, *, line_index: int) -> int:
                return line_index + 100

        files: OffsetFiles = OffsetFiles()
        file_id: int = files.add("t", "abc\n")

        output: str = _render(
            files, Diagnostic.error(message="m", labels=[Label.primary(file_id, 0, 1)])
        )

        assert output == _lines(
            "error: m",
            "    ┌─ t:100:1",
            "    │",
            "100 │ abc",
            "    │ ^",
            "",
        )


class TestErrors:
    def test_missing_file(self) -> None:
        with pytest.raises(FileMissingError):
            _render(Files(), Diagnostic.error(labels=[Label.primary(3, 0, 1)]))

    def test_line_range_inside_code_point(self) -> None:
        class SplitFiles(Files):
            def line_range(self, file_id: Hashable, *, line_index: int) -> tuple[int, int]:
                return (1, 4)

        files: SplitFiles = SplitFiles()
        file_id: int = files.add("t", "→x\n")

        with pytest.raises(InvalidCharBoundaryError):
            _render(files, Diagnostic.error(labels=[Label.primary(file_id, 3, 4)]))

    @pytest.mark.parametrize("display_style", list(DisplayStyle))
    def test_label_past_end_of_file(self, display_style: DisplayStyle) -> None:
        files: Files = Files()
        file_id: int = files.add("t", "abc\n")

        with pytest.raises(IndexTooLargeError) as excinfo:
            _render(
                files,
                Diagnostic.error(message="m", labels=[Label.primary(file_id, 100, 101, "x")]),
                config=RenderConfig(display_style=display_style),
            )
        assert excinfo.value.kind == FilesErrorKind.INDEX_TOO_LARGE
        assert (excinfo.value.given, excinfo.value.max) == (101, 3)

    def test_label_end_past_end_of_file(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", "abc\n")

        with pytest.raises(IndexTooLargeError):
            _render(files, Diagnostic.error(labels=[Label.secondary(file_id, 2, 5)]))

    def test_label_at_end_of_file_is_allowed(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", "abc")

        output: str = _render(
            files, Diagnostic.error(message="m", labels=[Label.primary(file_id, 3, 3, "eof")])
        )

        assert "  │    ^ eof\n" in output

    @pytest.mark.parametrize("display_style", list(DisplayStyle))
    @pytest.mark.parametrize(("start", "end", "given"), [(1, 2, 1), (0, 2, 2)])
    def test_label_inside_code_point(
        self, display_style: DisplayStyle, start: int, end: int, given: int
    ) -> None:
        files: Files = Files()
        file_id: int = files.add("t", "→x\n")

        with pytest.raises(InvalidCharBoundaryError) as excinfo:
            _render(
                files,
                Diagnostic.error(message="m", labels=[Label.primary(file_id, start, end, "x")]),
                config=RenderConfig(display_style=display_style),
            )
        assert excinfo.value.given == given

    def test_nothing_written_before_range_error(self) -> None:
        files: Files = Files()
        file_id: int = files.add("t", "abc\n")
        buffer: io.StringIO = io.StringIO()

        with pytest.raises(IndexTooLargeError):
            emit(
                buffer,
                config=RenderConfig(),
                styles=Styles.no_color(),
                files=files,
                diagnostic=Diagnostic.error(labels=[Label.primary(file_id, 9, 9)]),
            )
        assert buffer.getvalue() == ""

    def test_sink_failure_is_format_error(self) -> None:
        class FullSink(io.StringIO):
            def write(self, text: str) -> int:
                raise OSError("no space left on device")

        with pytest.raises(FormatError):
            emit(
                FullSink(),
                config=RenderConfig(),
                styles=Styles.no_color(),
                files=Files(),
                diagnostic=Diagnostic.error(message="m"),
            )

"""The FizzBuzz example diagnostic, and an SVG page for markup output."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from diagspan.diagnostics import Diagnostic, Label
from diagspan.files import Files

SOURCE: Final[str] = """\
module FizzBuzz where

fizz₁ : Nat → String
fizz₁ num = case (mod num 5) (mod num 3) of
    0 0 => "FizzBuzz"
    0 _ => "Fizz"
    _ 0 => "Buzz"
    _ _ => num

fizz₂ : Nat → String
fizz₂ num =
    case (mod num 5) (mod num 3) of
        0 0 => "FizzBuzz"
        0 _ => "Fizz"
        _ 0 => "Buzz"
        _ _ => num"""

EXPECTED_OUTPUT: Final[str] = "\n".join([
    "error[E0308]: `case` clauses have incompatible types",
    "   ┌─ FizzBuzz.fun:16:16",
    "   │  ",
    "10 │   fizz₂ : Nat → String",
    "   │                 ------ expected type `String` found here",
    "11 │   fizz₂ num =",
    "12 │ ╭     case (mod num 5) (mod num 3) of",
    '13 │ │         0 0 => "FizzBuzz"',
    "   │ │                ---------- this is found to be of type `String`",
    '14 │ │         0 _ => "Fizz"',
    "   │ │                ------ this is found to be of type `String`",
    '15 │ │         _ 0 => "Buzz"',
    "   │ │                ------ this is found to be of type `String`",
    "16 │ │         _ _ => num",
    "   │ │                ^^^ expected `String`, found `Nat`",
    "   │ ╰──────────────────' `case` clauses have incompatible types",
    "   │  ",
    "   = expected type `String`",
    "        found type `Nat`",
    "",
    "",
])
"""Plain rendering of the example with the default configuration."""


@dataclass(frozen=True, slots=True)
class Example:
    files: Files
    diagnostic: Diagnostic
    expected_output: str


def make_example() -> Example:
    files: Files = Files()
    file_id: int = files.add("FizzBuzz.fun", SOURCE)
    found_string: str = "this is found to be of type `String`"

    diagnostic: Diagnostic = Diagnostic.error(
        code="E0308",
        message="`case` clauses have incompatible types",
        labels=[
            Label.primary(file_id, 328, 331, "expected `String`, found `Nat`"),
            Label.secondary(file_id, 211, 331, "`case` clauses have incompatible types"),
            Label.secondary(file_id, 258, 268, found_string),
            Label.secondary(file_id, 284, 290, found_string),
            Label.secondary(file_id, 306, 312, found_string),
            Label.secondary(file_id, 186, 192, "expected type `String` found here"),
        ],
        notes=["expected type `String`\n   found type `Nat`"],
    )
    return Example(files=files, diagnostic=diagnostic, expected_output=EXPECTED_OUTPUT)


SVG_PADDING: Final[int] = 10
SVG_FONT_SIZE: Final[int] = 12
SVG_LINE_SPACING: Final[int] = 3
SVG_WIDTH: Final[int] = 882

_SVG_TEMPLATE: Final[str] = """\
<svg viewBox="0 0 {width} {height}" xmlns="http://www.w3.org/2000/svg">
  <style>
    /* https://github.com/aaron-williamson/base16-alacritty/blob/master/colors/base16-tomorrow-night-256.yml */
    pre {{
      background: #1d1f21;
      margin: 0;
      padding: {padding}px;
      border-radius: 6px;
      color: #ffffff;
      font: {font_size}px SFMono-Regular, Consolas, Liberation Mono, Menlo, monospace;
    }}

    pre .bold {{
      font-weight: bold;
    }}

    pre .header-bug,
    pre .header-error {{
      color: #cc6666;
      font-weight: bold;
    }}

    pre .header-warning {{
      color: #f0c674;
      font-weight: bold;
    }}

    pre .header-note {{
      color: #b5bd68;
      font-weight: bold;
    }}

    pre .header-help {{
      color: #8abeb7;
      font-weight: bold;
    }}

    pre .header-message {{
      color: #c5c8c6;
      font-weight: bold;
    }}

    pre .line-number,
    pre .source-border,
    pre .note-bullet {{
      color: #81a2be;
    }}

    pre .label-primary-bug,
    pre .label-primary-error {{
      color: #cc6666;
    }}

    pre .label-primary-warning {{
      color: #f0c674;
    }}

    pre .label-primary-note {{
      color: #b5bd68;
    }}

    pre .label-primary-help {{
      color: #8abeb7;
    }}

    pre .label-secondary-bug,
    pre .label-secondary-error,
    pre .label-secondary-warning,
    pre .label-secondary-note,
    pre .label-secondary-help {{
      color: #81a2be;
    }}
  </style>

  <foreignObject x="0" y="0" width="{width}" height="{height}">
    <div xmlns="http://www.w3.org/1999/xhtml">
      <pre>{content}</pre>
    </div>
  </foreignObject>
</svg>
"""


def svg_page(content: str) -> str:
    """Wrap markup-emitter output in a standalone SVG document."""
    num_lines: int = len(content.split("\n"))
    height: int = SVG_PADDING + num_lines * (SVG_FONT_SIZE + SVG_LINE_SPACING) + SVG_PADDING
    return _SVG_TEMPLATE.format(
        width=SVG_WIDTH,
        height=height,
        padding=SVG_PADDING,
        font_size=SVG_FONT_SIZE,
        content=content,
    )

"""
Error Reporting

Diagnostics are rendered rustc-style:

    error[E0100]: Variable 'x' not declared
     --> main.lion:3:6
      |
    3 | roar x
      |      ^

The exception classes at the bottom are what the pipeline raises; the
``ErrorReporter`` collects them for the driver and the CLI.
"""

import os
import sys
from dataclasses import dataclass
from typing import Dict, List, Optional

from .source_location import SourceLocation


def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    explicit = os.environ.get("LIONCODE_COLOR", "").lower()
    if explicit in ("0", "false", "no", "never"):
        return False
    return True


_BOLD = "\033[1m"
_RED = "\033[31m"
_BLUE = "\033[34m"
_CYAN = "\033[36m"
_RESET = "\033[0m"


def _style(text: str, *codes: str, color: bool = True) -> str:
    if not color or not codes:
        return text
    return "".join(codes) + text + _RESET


@dataclass
class Error:
    """One collected diagnostic."""
    message: str
    location: Optional[SourceLocation]
    code: Optional[str] = None
    help: Optional[str] = None
    note: Optional[str] = None


def _caret_width(code_line: str, start: int, location: SourceLocation) -> int:
    if location.end_line == location.line and location.end_column > location.column:
        return location.end_column - location.column
    # Without an end position, underline up to the next space.
    rest = code_line[start:]
    width = len(rest) - len(rest.lstrip()) if rest[:1].isspace() else 0
    for ch in rest:
        if ch.isspace():
            break
        width += 1
    return max(1, width)


def _format_diagnostic(error: Error, source_files: Dict[str, str], color: bool = False) -> str:
    """Render a single diagnostic; the snippet is shown when the file's source is known."""
    code = f"[{error.code}]" if error.code else ""
    out: List[str] = [
        _style(f"error{code}", _BOLD, _RED, color=color)
        + _style(f": {error.message}", _BOLD, color=color)
    ]

    loc = error.location
    gutter = 1
    if loc is None:
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + "<unknown location>")
    else:
        source = source_files.get(loc.file)
        lines = source.split("\n") if source is not None else []
        if 1 <= loc.line <= len(lines):
            gutter = len(str(loc.line))
            code_line = lines[loc.line - 1]
            start = max(loc.column, 1) - 1
            bar = _style(" " * (gutter + 1) + "|", _BOLD, _BLUE, color=color)
            out.append(_style(" " * gutter + "--> ", _BOLD, _BLUE, color=color) + str(loc))
            out.append(bar)
            out.append(_style(f"{loc.line} | ", _BOLD, _BLUE, color=color) + code_line)
            carets = " " * start + "^" * _caret_width(code_line, start, loc)
            out.append(bar + " " + _style(carets, _BOLD, _RED, color=color))
        else:
            out.append(_style(" --> ", _BOLD, _BLUE, color=color) + str(loc))

    pad = " " * (gutter + 1)
    for kind, text in (("help", error.help), ("note", error.note)):
        if text:
            out.append(
                _style(f"{pad}= ", _BOLD, _CYAN, color=color)
                + _style(f"{kind}: ", _BOLD, color=color)
                + text
            )
    return "\n".join(out)


def _summary(count: int, color: bool) -> str:
    text = f"aborting due to {count} previous error{'s' if count != 1 else ''}"
    return _style("error", _BOLD, _RED, color=color) + _style(f": {text}", _BOLD, color=color)


class ErrorReporter:
    """Collects diagnostics for one compilation and formats them."""

    def __init__(self, source_files: Dict[str, str]):
        self.source_files = source_files
        self.errors: List[Error] = []

    def report_error(
        self,
        message: str,
        location: Optional[SourceLocation],
        code: Optional[str] = None,
        help: Optional[str] = None,
        note: Optional[str] = None,
    ) -> None:
        self.errors.append(Error(message=message, location=location, code=code, help=help, note=note))

    def report_exception(self, exc: "LionCodeError") -> None:
        """Record a pipeline exception as a diagnostic."""
        self.report_error(
            exc.message,
            exc.location,
            code=getattr(exc, "error_code", None),
            help=getattr(exc, "help_text", None),
        )

    def format_error(self, error: Error, color: Optional[bool] = None) -> str:
        use_color = color if color is not None else _use_color()
        return _format_diagnostic(error, self.source_files, color=use_color)

    def format_all_errors(self, color: Optional[bool] = None) -> str:
        use_color = color if color is not None else _use_color()
        parts = [self.format_error(e, color=use_color) for e in self.errors]
        parts.append(_summary(len(self.errors), use_color))
        return "\n\n".join(parts)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def print_errors(self) -> None:
        if self.errors:
            print(self.format_all_errors(), file=sys.stderr)


# ============================================================================
# Exception Classes
# ============================================================================

class LionCodeError(Exception):
    """Base exception for all LionCode errors"""

    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self):
        if self.location:
            return f"{self.message} ({self.location})"
        return self.message


class LionCodeSourceError(LionCodeError):
    """
    Error in the user's LionCode program, rendered as a diagnostic.

    ``source_code`` is optional; when given, ``str()`` includes the
    offending line with a caret underline.
    """
    error_code = "E0000"

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_code: Optional[str] = None,
        help: Optional[str] = None,
    ):
        super().__init__(message, location)
        self.source_code = source_code
        self.help_text = help

    def __str__(self):
        source_files: Dict[str, str] = {}
        if self.source_code is not None and self.location:
            source_files[self.location.file] = self.source_code
        err = Error(
            message=self.message,
            location=self.location,
            code=self.error_code,
            help=self.help_text,
        )
        return _format_diagnostic(err, source_files, color=False)


class ParseError(LionCodeSourceError):
    """Grammar mismatch. ``line`` and ``column`` are 1-based."""
    error_code = "E0001"

    def __init__(
        self,
        message: str,
        line: int,
        column: int,
        location: Optional[SourceLocation] = None,
        source_code: Optional[str] = None,
    ):
        super().__init__(message, location, source_code=source_code)
        self.line = line
        self.column = column


class SemanticError(LionCodeSourceError):
    """A language rule violated by an otherwise well-formed program."""
    error_code = "E0100"


class TypeCheckError(SemanticError):
    """Operand types rejected while building an expression node."""
    error_code = "E0308"


class UnsupportedTargetError(LionCodeError):
    """The generator was asked for a missing or unknown output target."""
    error_code = "E0601"


class LionCodeImplementationError(Exception):
    """
    Error in the compiler itself (not the user's program).

    Never use this for errors in user code - use LionCodeSourceError instead.
    """

    def __init__(self, message: str, error_code: str = "E9999"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def __str__(self):
        return f"[{self.error_code}] {self.message}"

"""
Parser

Drives the Lark grammar over LionCode source and returns the parse tree
(a ``lark.Tree``). Grammar mismatches become ``ParseError`` with a 1-based
position and an "Expected X but found Y" message.
"""

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Tuple

from lark import Lark, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from ..shared.errors import ParseError
from ..shared.source_location import SourceLocation
from ..utils.config import DEFAULT_PARSER_CACHE_FILE, DEFAULT_SOURCE_NAME, GRAMMAR_FILE_NAME
from .string_interpolation import InterpolationExpander

logger = logging.getLogger("lioncode.frontend.parser")

# Terminals whose pattern is a regex get a readable name in messages.
_TERMINAL_DESCRIPTIONS = {
    "$END": "end of input",
    "NAME": "identifier",
    "NUMBER": "number",
    "STRING": "string",
    "COMMENT": "comment",
    "COMPARE_OP": "comparison operator",
}

# "-(-x)" lexes as the string "-(-" followed by "x)".
_NEGATED_PAREN_RE = re.compile(r"-\(-")
_NEGATED_PAREN_HINT = "Note: '-(' before another '-' starts a -string-; write '- (-x)' or '-(0 - x)'"


def _end_position(source: str) -> Tuple[int, int]:
    lines = source.split("\n")
    return len(lines), len(lines[-1]) + 1


def _line_text(source: str, line: int) -> str:
    lines = source.split("\n")
    return lines[line - 1] if 0 < line <= len(lines) else ""


def _join_alternatives(items: List[str]) -> str:
    if len(items) <= 1:
        return "".join(items)
    return ", ".join(items[:-1]) + " or " + items[-1]


class Parser:
    """
    LionCode parser.

    The Lark parser is built once (LALR, cached on disk) and holds no
    per-parse state, so one instance can serve any number of parses.
    """

    def __init__(self, cache_file: str = DEFAULT_PARSER_CACHE_FILE):
        grammar_path = Path(__file__).parent / GRAMMAR_FILE_NAME
        self._lark = Lark.open(
            grammar_path,
            start=["program", "expression"],
            parser="lalr",
            cache=cache_file,
            propagate_positions=True,
            maybe_placeholders=False,
        )

    def parse(self, source: str, source_file: str = DEFAULT_SOURCE_NAME) -> Tree:
        """Parse a whole program."""
        tree = self._parse(source, "program", source_file)
        logger.debug("parsed %s: %d top-level statements", source_file, len(tree.children))
        return tree

    def parse_expression(self, source: str, source_file: str = DEFAULT_SOURCE_NAME) -> Tree:
        """Parse a single expression (used for interpolation spans)."""
        return self._parse(source, "expression", source_file)

    def _parse(self, source: str, start: str, source_file: str) -> Tree:
        try:
            tree = self._lark.parse(source, start=start)
        except UnexpectedInput as e:
            raise self._syntax_error(e, source, source_file) from None
        return InterpolationExpander(self, source_file).transform(tree)

    def _syntax_error(self, error: UnexpectedInput, source: str, source_file: str) -> ParseError:
        if isinstance(error, UnexpectedEOF) or (
            isinstance(error, UnexpectedToken) and error.token.type == "$END"
        ):
            line, column = _end_position(source)
            found = "end of input"
        elif isinstance(error, UnexpectedToken):
            line, column = error.line, error.column
            found = repr(str(error.token))
        elif isinstance(error, UnexpectedCharacters):
            line, column = error.line, error.column
            found = repr(error.char)
        else:
            line, column = _end_position(source)
            found = "end of input"

        expected = getattr(error, "expected", None) or getattr(error, "allowed", None) or ()
        message = f"Line {line}, col {column}: Expected {self._describe_expected(expected)} but found {found}"
        if _NEGATED_PAREN_RE.search(_line_text(source, line)):
            message += f". {_NEGATED_PAREN_HINT}"
        location = SourceLocation(file=source_file, line=line, column=column)
        logger.debug("syntax error in %s: %s", source_file, message)
        return ParseError(message, line, column, location=location, source_code=source)

    def _describe_expected(self, names: Iterable[str]) -> str:
        return _join_alternatives(sorted({self._describe_terminal(name) for name in names}))

    def _describe_terminal(self, name: str) -> str:
        if name in _TERMINAL_DESCRIPTIONS:
            return _TERMINAL_DESCRIPTIONS[name]
        try:
            terminal = self._lark.get_terminal(name)
        except KeyError:
            return name.lower()
        if terminal.pattern.type == "str":
            return repr(terminal.pattern.value)
        return name.lower()


@lru_cache(maxsize=None)
def default_parser() -> Parser:
    """Process-wide parser instance."""
    return Parser()


def parse(source: str, source_file: str = DEFAULT_SOURCE_NAME) -> Tree:
    """Parse LionCode source text into a parse tree."""
    return default_parser().parse(source, source_file)

"""
String interpolation.

A string literal ``-Hi $name, you owe $(total * 2)-`` is split into text
and expression segments. ``$name`` takes the longest identifier after the
marker, ``$(...)`` takes a parenthesized expression (nested parentheses
allowed) and ``$$`` is a literal ``$``. A ``$`` that starts neither form
is kept as text.

``InterpolationExpander`` rewrites every ``string_literal`` parse tree so
its children are a ``RAW`` token with the content between the dashes,
followed by ``TEXT`` tokens and ``interpolation`` subtrees holding the
parsed expressions, with positions pointing into the enclosing file.
"""

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

from lark import Token, Transformer, Tree, v_args

from ..utils.config import INTERPOLATION_MARKER

if TYPE_CHECKING:
    from .parser import Parser

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@dataclass(frozen=True)
class Segment:
    """One piece of string content; ``offset`` is its index in the content."""
    text: str
    offset: int
    is_expression: bool = False


def _closing_paren(content: str, open_pos: int) -> Optional[int]:
    depth = 0
    for pos in range(open_pos, len(content)):
        if content[pos] == "(":
            depth += 1
        elif content[pos] == ")":
            depth -= 1
            if depth == 0:
                return pos
    return None


def split_interpolations(content: str) -> List[Segment]:
    """Split string content (without the dashes) into segments."""
    segments: List[Segment] = []
    text: List[str] = []
    text_start = 0
    pos = 0

    def flush(next_start: int) -> None:
        nonlocal text_start
        if text:
            segments.append(Segment("".join(text), text_start))
            text.clear()
        text_start = next_start

    while pos < len(content):
        ch = content[pos]
        if ch != INTERPOLATION_MARKER:
            text.append(ch)
            pos += 1
            continue
        following = content[pos + 1:pos + 2]
        if following == INTERPOLATION_MARKER:
            text.append(INTERPOLATION_MARKER)
            pos += 2
            continue
        if following == "(":
            close = _closing_paren(content, pos + 1)
            if close is not None:
                flush(close + 1)
                segments.append(Segment(content[pos + 2:close], pos + 2, is_expression=True))
                pos = close + 1
                continue
        else:
            match = _NAME_RE.match(content, pos + 1)
            if match:
                flush(match.end())
                segments.append(Segment(match.group(), match.start(), is_expression=True))
                pos = match.end()
                continue
        text.append(ch)
        pos += 1

    flush(pos)
    return segments


class InterpolationExpander(Transformer):
    """Replaces raw STRING tokens with text tokens and parsed interpolation spans."""

    def __init__(self, parser: "Parser", source_file: str):
        super().__init__()
        self._parser = parser
        self._source_file = source_file

    @v_args(tree=True)
    def string_literal(self, tree: Tree) -> Tree:
        token = tree.children[0]
        content = str(token)[1:-1]
        children = [Token("RAW", content)]
        for segment in split_interpolations(content):
            if not segment.is_expression:
                children.append(Token("TEXT", segment.text))
                continue
            # Pad with the whitespace that precedes the span so the
            # sub-parse reports positions in the enclosing file.
            padding = "\n" * (token.line - 1) + " " * (token.column + segment.offset)
            expression = self._parser.parse_expression(padding + segment.text, self._source_file)
            children.append(Tree("interpolation", [expression]))
        return Tree("string_literal", children, meta=tree.meta)

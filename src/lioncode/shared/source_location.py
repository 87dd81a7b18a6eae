"""
Source Location (Span)

Positions are 1-based, as reported by the Lark parser.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class SourceLocation:
    """
    Source location of a parse-tree node or AST node.

    Immutable (frozen) for hashability. ``end_line``/``end_column`` are 0
    when the span end is unknown.
    """
    file: str
    line: int
    column: int
    end_line: int = 0
    end_column: int = 0

    def __str__(self) -> str:
        """Format as file:line:column"""
        return f"{self.file}:{self.line}:{self.column}"

    @classmethod
    def from_meta(cls, meta: Any, file: str) -> Optional["SourceLocation"]:
        """Build a location from a Lark ``Meta`` or ``Token``; None if positions are missing."""
        if getattr(meta, "empty", False):
            return None
        line = getattr(meta, "line", None)
        column = getattr(meta, "column", None)
        if line is None or column is None:
            return None
        return cls(
            file=file,
            line=line,
            column=column,
            end_line=getattr(meta, "end_line", None) or 0,
            end_column=getattr(meta, "end_column", None) or 0,
        )

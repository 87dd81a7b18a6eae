"""
Frontend: grammar, parser and string interpolation.
"""

from .parser import Parser, default_parser, parse

__all__ = ["Parser", "default_parser", "parse"]

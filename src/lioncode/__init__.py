"""
LionCode: a small toy language compiled to JavaScript.

    >>> from lioncode import compile_source
    >>> compile_source("roar 1 + 2").output
    'console.log(3);'
"""

from .frontend.parser import parse
from .analysis.analyzer import analyze
from .passes.optimizer import optimize
from .backends import generate
from .compiler.driver import CompilationResult, CompilerDriver, compile_source
from .shared.errors import (
    LionCodeError, LionCodeSourceError, ParseError, SemanticError, TypeCheckError,
    UnsupportedTargetError,
)

__version__ = "0.1.0"

__all__ = [
    "parse", "analyze", "optimize", "generate", "compile_source",
    "CompilationResult", "CompilerDriver",
    "LionCodeError", "LionCodeSourceError", "ParseError", "SemanticError",
    "TypeCheckError", "UnsupportedTargetError",
]

"""
Compiler Driver

Runs the stages in order: parse, analyze, optimize, generate. Each stage
output is kept on the ``CompilationResult``; a LionCode error stops the
pipeline and is recorded on the result's ``ErrorReporter``.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from lark import Tree

from ..analysis.analyzer import analyze
from ..backends import generate
from ..frontend.parser import Parser, default_parser
from ..passes.optimizer import optimize
from ..shared.errors import ErrorReporter, LionCodeError
from ..shared.nodes import Program
from ..shared.serialization import serialize_ast
from ..utils.config import DEFAULT_SOURCE_NAME, DEFAULT_TARGET, DUMP_AST_ENV_VAR, DUMP_DIR_NAME
from ..utils.io_utils import write_output_file

logger = logging.getLogger(__name__)


class CompilationResult:
    """Compilation result"""

    def __init__(
        self,
        reporter: ErrorReporter,
        tree: Optional[Tree] = None,
        ast: Optional[Program] = None,
        optimized: Optional[Program] = None,
        output: Optional[str] = None,
        error: Optional[LionCodeError] = None,
    ):
        self.reporter = reporter
        self.tree = tree
        self.ast = ast
        self.optimized = optimized
        self.output = output
        self.error = error

    @property
    def success(self) -> bool:
        return self.error is None and not self.reporter.has_errors()

    def has_errors(self) -> bool:
        return self.reporter.has_errors()

    def get_errors(self) -> list:
        if self.reporter.has_errors():
            return [self.reporter.format_all_errors(color=False)]
        return []


class CompilerDriver:
    """
    Orchestrates the pipeline for one source text at a time.

    The driver holds only the parser, which keeps no per-parse state, so a
    single driver can be shared across compilations.
    """

    def __init__(self, parser: Optional[Parser] = None):
        self.parser = parser or default_parser()

    def compile(
        self,
        source: str,
        source_file: str = DEFAULT_SOURCE_NAME,
        optimize_ast: bool = True,
        target: Optional[str] = DEFAULT_TARGET,
    ) -> CompilationResult:
        """
        Compile ``source``.

        With ``optimize_ast=False`` the analyzed AST is generated directly
        and ``result.optimized`` stays None.
        """
        reporter = ErrorReporter({source_file: source})
        result = CompilationResult(reporter)
        try:
            result.tree = self.parser.parse(source, source_file)
            result.ast = analyze(result.tree, source_file, source)
            self._dump(source_file, "ast", result.ast)

            program = result.ast
            if optimize_ast:
                result.optimized = optimize(result.ast)
                self._dump(source_file, "optimized", result.optimized)
                program = result.optimized

            result.output = generate(program, target)
        except LionCodeError as e:
            logger.debug("compilation of %s failed: %s", source_file, e.message)
            result.error = e
            reporter.report_exception(e)
        return result

    def _dump(self, source_file: str, stage: str, node: Program) -> None:
        if not os.environ.get(DUMP_AST_ENV_VAR):
            return
        stem = Path(source_file).stem.strip("<>") or "input"
        path = write_output_file(Path(DUMP_DIR_NAME) / f"{stem}.{stage}.sexpr", serialize_ast(node))
        logger.info("wrote %s", path)


def compile_source(
    source: str,
    source_file: str = DEFAULT_SOURCE_NAME,
    optimize_ast: bool = True,
    target: Optional[str] = DEFAULT_TARGET,
) -> CompilationResult:
    """Compile LionCode source text with a shared driver."""
    return CompilerDriver().compile(source, source_file, optimize_ast=optimize_ast, target=target)

"""
Test utilities for the LionCode test suite.

Helpers that drive the public pipeline functions, plus a runner that
executes generated JavaScript with ``node`` when it is installed.
"""

import shutil
import subprocess
import sys
from pathlib import Path
from typing import List

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from lioncode.analysis.analyzer import analyze
from lioncode.backends import generate
from lioncode.frontend.parser import parse
from lioncode.passes.optimizer import optimize
from lioncode.shared.nodes import Program

NODE = shutil.which("node")

requires_node = pytest.mark.skipif(NODE is None, reason="node is not installed")


def analyze_source(source: str, source_file: str = "<test>") -> Program:
    """parse + analyze, attaching the source so errors render a snippet."""
    return analyze(parse(source, source_file), source_file, source)


def optimize_source(source: str) -> Program:
    return optimize(analyze_source(source))


def compile_js(source: str, optimized: bool = True) -> str:
    program = analyze_source(source)
    if optimized:
        program = optimize(program)
    return generate(program)


def js_lines(source: str, optimized: bool = True) -> List[str]:
    return compile_js(source, optimized).split("\n")


def run_js(code: str, timeout: float = 10.0) -> List[str]:
    """Run JavaScript with node and return the printed lines."""
    if NODE is None:
        pytest.skip("node is not installed")
    completed = subprocess.run(
        [NODE, "-e", code], capture_output=True, text=True, timeout=timeout, check=True,
    )
    return completed.stdout.splitlines()


def first_statement(source: str, optimized: bool = False):
    program = optimize_source(source) if optimized else analyze_source(source)
    return program.statements[0]


def single_expression(source: str, optimized: bool = False):
    """Value of ``roar <expr>`` written as ``source``."""
    statement = first_statement(f"roar {source}", optimized)
    return statement.value


def kinds(nodes) -> List[str]:
    return [n.kind.value for n in nodes]


def message_of(excinfo) -> str:
    return excinfo.value.message

"""
Pytest configuration and shared fixtures for all LionCode tests.

The compiler driver and the Lark parser behind it hold no per-compilation
state, so one instance is shared by the whole session.
"""

import sys
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from lioncode.compiler.driver import CompilerDriver
from lioncode.frontend.parser import Parser


# =============================================================================
# Session-scoped fixtures (shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def session_parser():
    """Parser built once; Lark caches the LALR tables on disk."""
    return Parser()


@pytest.fixture(scope="session")
def session_compiler(session_parser):
    """Session-scoped stateless compiler instance shared across ALL tests."""
    return CompilerDriver(session_parser)


# =============================================================================
# Class-scoped fixtures (shared within a test class)
# =============================================================================

@pytest.fixture(scope="class")
def parser(session_parser):
    return session_parser


@pytest.fixture(scope="class")
def compiler(session_compiler):
    """Class-scoped compiler - shared across all tests in a class."""
    return session_compiler


# =============================================================================
# Environment isolation
# =============================================================================

@pytest.fixture(autouse=True)
def plain_diagnostics(monkeypatch):
    """Diagnostics without ANSI colors and no AST dumps unless a test asks."""
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.delenv("LIONCODE_DUMP_AST", raising=False)


def pytest_configure(config):
    """Register custom markers for test organization."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "node: needs the node executable to run generated code")

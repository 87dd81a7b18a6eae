"""
Code generation backends, selected by target name.
"""

from typing import Dict, Optional, Type

from ..shared.errors import UnsupportedTargetError
from ..shared.nodes import Program
from ..utils.config import DEFAULT_TARGET
from .base import Backend
from .javascript import JavaScriptBackend

BACKENDS: Dict[str, Type[Backend]] = {
    "js": JavaScriptBackend,
    "javascript": JavaScriptBackend,
}


def get_backend(target: Optional[str]) -> Backend:
    if not target:
        raise UnsupportedTargetError("Output type required")
    backend_cls = BACKENDS.get(target)
    if backend_cls is None:
        raise UnsupportedTargetError(f"Unknown output type: {target}")
    return backend_cls()


def generate(program: Program, target: Optional[str] = DEFAULT_TARGET) -> str:
    """Render ``program`` as source text for ``target``."""
    return get_backend(target).codegen(program)


__all__ = ["BACKENDS", "Backend", "JavaScriptBackend", "get_backend", "generate"]

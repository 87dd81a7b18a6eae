"""
Scope chain used by the analyzer.

Each ``Context`` is one lexical frame: a map name -> Binding, a parent link
and the ``in_loop`` / ``in_function`` flags. A frame that does not set a
flag inherits it from its parent, so ``break`` inside an ``if`` inside a
loop sees the loop, while a function frame sets both flags itself and
hides any loop around the declaration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from .defid import DefId
from .types import PrimitiveType, Type


class ScopeKind(Enum):
    BUILTIN = "builtin"
    MODULE = "module"
    FUNCTION = "function"
    BLOCK = "block"
    LOOP = "loop"


class BindingType(Enum):
    FUNCTION = "function"
    BUILTIN = "builtin"
    VARIABLE = "variable"
    PARAMETER = "parameter"
    LOOP_VARIABLE = "loop_variable"

    @property
    def is_callable(self) -> bool:
        return self in (BindingType.FUNCTION, BindingType.BUILTIN)


@dataclass
class Binding:
    """One name binding. ``type`` is a PrimitiveType, or a FunctionType for callables."""
    name: str
    binding_type: BindingType
    definition: Any
    defid: Optional[DefId]
    type: Type


@dataclass
class Context:
    """One scope frame."""

    parent: Optional[Context]
    kind: ScopeKind
    loop_flag: Optional[bool] = None
    function_flag: Optional[bool] = None
    _bindings: Dict[str, Binding] = field(default_factory=dict)
    return_types: List[PrimitiveType] = field(default_factory=list)

    def child(self, kind: ScopeKind, in_loop: Optional[bool] = None,
              in_function: Optional[bool] = None) -> Context:
        return Context(parent=self, kind=kind, loop_flag=in_loop, function_flag=in_function)

    def _frames(self) -> Iterator[Context]:
        frame: Optional[Context] = self
        while frame is not None:
            yield frame
            frame = frame.parent

    @property
    def in_loop(self) -> bool:
        for frame in self._frames():
            if frame.loop_flag is not None:
                return frame.loop_flag
        return False

    @property
    def in_function(self) -> bool:
        for frame in self._frames():
            if frame.function_flag is not None:
                return frame.function_flag
        return False

    def enclosing(self, kind: ScopeKind) -> Optional[Context]:
        """Nearest frame of the given kind, this one included."""
        for frame in self._frames():
            if frame.kind == kind:
                return frame
        return None

    def lookup(self, name: str) -> Optional[Binding]:
        """Resolve ``name`` innermost to outermost."""
        for frame in self._frames():
            if name in frame._bindings:
                return frame._bindings[name]
        return None

    def defined_in_this_scope(self, name: str) -> bool:
        return name in self._bindings

    def define(self, name: str, binding: Binding) -> None:
        self._bindings[name] = binding

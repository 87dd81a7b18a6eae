"""
AST Visitor

Kind-tagged dispatch: a visitor maps each ``NodeType`` to its
``visit_<kind>`` method once, at construction, and ``visit`` looks the
handler up by ``node.kind``. Subclasses implement only the kinds they
handle; anything else falls through to ``generic_visit``.
"""

from typing import Callable, Dict, Generic, TypeVar

from .errors import LionCodeImplementationError
from .nodes import ASTNode, NodeType

T = TypeVar('T')


class ASTVisitor(Generic[T]):
    """Base class for the optimizer and the backends."""

    def __init__(self) -> None:
        self._dispatch: Dict[NodeType, Callable[[ASTNode], T]] = {}
        for kind in NodeType:
            handler = getattr(self, f"visit_{kind.name.lower()}", None)
            if handler is not None:
                self._dispatch[kind] = handler

    def visit(self, node: ASTNode) -> T:
        handler = self._dispatch.get(node.kind)
        if handler is None:
            return self.generic_visit(node)
        return handler(node)

    def generic_visit(self, node: ASTNode) -> T:
        raise LionCodeImplementationError(
            f"{type(self).__name__} has no handler for {node.kind.value}"
        )

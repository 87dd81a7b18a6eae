"""
LionCode AST (Abstract Syntax Tree) Definitions

Every node is a frozen dataclass with a class-level ``kind`` tag; visitors
dispatch on ``kind`` (see ``ast_visitor.py``). Nodes are created by the
factories in ``builder.py`` and never mutated afterwards: the optimizer
rebuilds instead. ``location`` does not take part in equality, so two
nodes are equal when they have the same structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Optional, Tuple, Union

from .defid import DefId
from .source_location import SourceLocation
from .types import (
    BOOLEAN, NUMBER, STRING, UNKNOWN,
    BinaryOp, ComparisonOp, PrimitiveType, UnaryOp,
)


class NodeType(Enum):
    """AST node kinds"""
    PROGRAM = "Program"
    BLOCK = "Block"
    ASSIGNMENT_STATEMENT = "AssignmentStatement"
    PRINT_STATEMENT = "PrintStatement"
    FUNCTION_DECLARATION = "FunctionDeclaration"
    RETURN_STATEMENT = "ReturnStatement"
    IF_STATEMENT = "IfStatement"
    WHILE_STATEMENT = "WhileStatement"
    BREAK_STATEMENT = "BreakStatement"
    COMMENT = "Comment"
    BINARY_EXPRESSION = "BinaryExpression"
    COMPARISON_EXPRESSION = "ComparisonExpression"
    UNARY_EXPRESSION = "UnaryExpression"
    IDENTIFIER = "Identifier"
    NUMBER_LITERAL = "NumberLiteral"
    STRING_LITERAL = "StringLiteral"
    BOOLEAN_LITERAL = "BooleanLiteral"
    FUNCTION_CALL = "FunctionCall"
    RANGE_EXPRESSION = "RangeExpression"


@dataclass(frozen=True)
class ASTNode:
    kind: ClassVar[NodeType]
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False, kw_only=True)


@dataclass(frozen=True)
class Statement(ASTNode):
    pass


@dataclass(frozen=True)
class Expression(ASTNode):
    type: PrimitiveType = field(default=UNKNOWN, kw_only=True)


# ============================================
# Expressions
# ============================================

@dataclass(frozen=True)
class Identifier(Expression):
    """Name reference; ``defid`` points at the declaration it resolved to."""
    kind = NodeType.IDENTIFIER
    name: str
    defid: Optional[DefId] = None


@dataclass(frozen=True)
class NumberLiteral(Expression):
    kind = NodeType.NUMBER_LITERAL
    value: Union[int, float]
    type: PrimitiveType = field(default=NUMBER, kw_only=True)


@dataclass(frozen=True)
class StringLiteral(Expression):
    """
    String literal.

    ``parts`` is empty for plain strings. For interpolated strings it holds
    the segments in order: text segments as plain StringLiterals and every
    ``$name`` / ``$(expr)`` span as its analyzed expression. ``value`` is
    then the raw source text between the dashes.
    """
    kind = NodeType.STRING_LITERAL
    value: str
    parts: Tuple[Expression, ...] = ()
    type: PrimitiveType = field(default=STRING, kw_only=True)

    @property
    def is_interpolated(self) -> bool:
        return bool(self.parts)


@dataclass(frozen=True)
class BooleanLiteral(Expression):
    kind = NodeType.BOOLEAN_LITERAL
    value: bool
    type: PrimitiveType = field(default=BOOLEAN, kw_only=True)


@dataclass(frozen=True)
class BinaryExpression(Expression):
    kind = NodeType.BINARY_EXPRESSION
    operator: BinaryOp
    left: Expression
    right: Expression


@dataclass(frozen=True)
class ComparisonExpression(Expression):
    kind = NodeType.COMPARISON_EXPRESSION
    operator: ComparisonOp
    left: Expression
    right: Expression
    type: PrimitiveType = field(default=BOOLEAN, kw_only=True)


@dataclass(frozen=True)
class UnaryExpression(Expression):
    kind = NodeType.UNARY_EXPRESSION
    operator: UnaryOp
    operand: Expression


@dataclass(frozen=True)
class FunctionCall(Expression):
    """Call of a declared or built-in function; also usable as a statement."""
    kind = NodeType.FUNCTION_CALL
    name: str
    args: Tuple[Expression, ...] = ()
    defid: Optional[DefId] = None


@dataclass(frozen=True)
class RangeExpression(Expression):
    """Loop bound of ``range(value)``."""
    kind = NodeType.RANGE_EXPRESSION
    value: Expression
    type: PrimitiveType = field(default=NUMBER, kw_only=True)


Literal = Union[NumberLiteral, StringLiteral, BooleanLiteral]


# ============================================
# Statements
# ============================================

@dataclass(frozen=True)
class Program(ASTNode):
    kind = NodeType.PROGRAM
    statements: Tuple[ASTNode, ...] = ()


@dataclass(frozen=True)
class Block(Statement):
    kind = NodeType.BLOCK
    statements: Tuple[ASTNode, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.statements


@dataclass(frozen=True)
class AssignmentStatement(Statement):
    """``target = expression``; ``is_declaration`` marks the first assignment of a name."""
    kind = NodeType.ASSIGNMENT_STATEMENT
    target: Identifier
    expression: Expression
    is_declaration: bool = False


@dataclass(frozen=True)
class PrintStatement(Statement):
    kind = NodeType.PRINT_STATEMENT
    value: Expression


@dataclass(frozen=True)
class FunctionDeclaration(Statement):
    kind = NodeType.FUNCTION_DECLARATION
    name: str
    params: Tuple[Identifier, ...]
    body: Block
    return_type: Optional[PrimitiveType] = None
    defid: Optional[DefId] = None

    @property
    def param_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.params)


@dataclass(frozen=True)
class ReturnStatement(Statement):
    kind = NodeType.RETURN_STATEMENT
    expression: Expression


@dataclass(frozen=True)
class IfStatement(Statement):
    """
    One link of a conditional chain. ``alternate`` is another IfStatement
    for ``else (cond)`` branches, a Block for ``otherwise``, or None.
    """
    kind = NodeType.IF_STATEMENT
    condition: Expression
    consequent: Block
    alternate: Optional[Union[Block, IfStatement]] = None


@dataclass(frozen=True)
class WhileStatement(Statement):
    """``Prowl variable in range(n)``: counts ``variable`` from 0 to n - 1."""
    kind = NodeType.WHILE_STATEMENT
    variable: Identifier
    range: RangeExpression
    body: Block


@dataclass(frozen=True)
class BreakStatement(Statement):
    kind = NodeType.BREAK_STATEMENT


@dataclass(frozen=True)
class Comment(Statement):
    kind = NodeType.COMMENT
    value: str


LITERAL_KINDS = frozenset({
    NodeType.NUMBER_LITERAL,
    NodeType.STRING_LITERAL,
    NodeType.BOOLEAN_LITERAL,
})


def is_literal(node: Optional[ASTNode]) -> bool:
    """True for constant literals (interpolated strings are not constants)."""
    if node is None or node.kind not in LITERAL_KINDS:
        return False
    return not (node.kind == NodeType.STRING_LITERAL and node.parts)

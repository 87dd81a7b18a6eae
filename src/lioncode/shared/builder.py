"""
AST Builder

One factory per node kind. Factories take already-analyzed children and
compute the node's primitive ``type`` from its operands, rejecting operand
combinations the language never allows. They never consult scope; the
analyzer supplies resolved operand types.

Typing of binary operators:

    + - * /   number op number          -> number
    +         either operand a string   -> string
    + - * /   otherwise a boolean       -> error
    - * /     a string operand          -> error
    %         number % number           -> number, else error
    /         literal zero divisor      -> error
    and or    boolean op boolean        -> boolean, else error
    << >>     number op number          -> number

``unknown`` operands are accepted everywhere and propagate where the
result depends on them.
"""

from typing import Iterable, Optional, Sequence, Union

from .defid import DefId
from .errors import TypeCheckError
from .nodes import (
    ASTNode, AssignmentStatement, BinaryExpression, Block, BooleanLiteral,
    BreakStatement, Comment, ComparisonExpression, Expression, FunctionCall,
    FunctionDeclaration, Identifier, IfStatement, NodeType, NumberLiteral,
    PrintStatement, Program, RangeExpression, ReturnStatement, StringLiteral,
    UnaryExpression, WhileStatement,
)
from .source_location import SourceLocation
from .types import (
    BOOLEAN, NUMBER, STRING, UNKNOWN,
    BinaryOp, ComparisonOp, PrimitiveType, UnaryOp, primitive,
)

TypeLike = Union[str, PrimitiveType, None]


def _accepts(actual: PrimitiveType, *allowed: PrimitiveType) -> bool:
    return actual == UNKNOWN or actual in allowed


def _is_zero_literal(node: Expression) -> bool:
    return node.kind == NodeType.NUMBER_LITERAL and node.value == 0


def _binary_type(op: BinaryOp, left: Expression, right: Expression,
                 location: Optional[SourceLocation]) -> PrimitiveType:
    lt, rt = left.type, right.type

    def reject(message: Optional[str] = None):
        return TypeCheckError(message or f"Cannot apply {op.value} to {lt} and {rt}", location)

    if op == BinaryOp.DIV and _is_zero_literal(right):
        raise reject("Cannot divide by zero")
    if op == BinaryOp.MOD:
        if not (_accepts(lt, NUMBER) and _accepts(rt, NUMBER)):
            raise reject("Modulus requires number operands")
        return NUMBER
    if op.is_logical:
        if not (_accepts(lt, BOOLEAN) and _accepts(rt, BOOLEAN)):
            raise reject()
        return BOOLEAN
    if op.is_shift:
        if not (_accepts(lt, NUMBER) and _accepts(rt, NUMBER)):
            raise reject()
        return NUMBER
    if op == BinaryOp.ADD and STRING in (lt, rt):
        return STRING
    if BOOLEAN in (lt, rt):
        raise reject()
    if op == BinaryOp.ADD:
        return NUMBER if lt == rt == NUMBER else UNKNOWN
    if STRING in (lt, rt):
        raise reject()
    return NUMBER


# ============================================
# Expressions
# ============================================

def binary_expression(operator: Union[str, BinaryOp], left: Expression, right: Expression,
                      location: Optional[SourceLocation] = None) -> BinaryExpression:
    op = BinaryOp(operator)
    return BinaryExpression(
        operator=op,
        left=left,
        right=right,
        type=_binary_type(op, left, right, location),
        location=location,
    )


def comparison_expression(operator: Union[str, ComparisonOp], left: Expression, right: Expression,
                          location: Optional[SourceLocation] = None) -> ComparisonExpression:
    """Comparison; keyword phrases ("is less than") become their symbols."""
    return ComparisonExpression(
        operator=ComparisonOp.from_source(operator),
        left=left,
        right=right,
        location=location,
    )


def unary_expression(operator: Union[str, UnaryOp], operand: Expression,
                     location: Optional[SourceLocation] = None) -> UnaryExpression:
    op = UnaryOp(operator)
    if op == UnaryOp.NEG:
        if not _accepts(operand.type, NUMBER):
            raise TypeCheckError(f"Cannot apply - to {operand.type}", location)
        result = NUMBER
    else:
        result = BOOLEAN
    return UnaryExpression(operator=op, operand=operand, type=result, location=location)


def identifier(name: str, type: TypeLike = None, defid: Optional[DefId] = None,
               location: Optional[SourceLocation] = None) -> Identifier:
    return Identifier(name=name, type=primitive(type), defid=defid, location=location)


def number_literal(value: Union[int, float, str], location: Optional[SourceLocation] = None) -> NumberLiteral:
    if isinstance(value, str):
        value = float(value) if "." in value else int(value)
    return NumberLiteral(value=value, location=location)


def string_literal(value: str, parts: Iterable[Expression] = (),
                   location: Optional[SourceLocation] = None) -> StringLiteral:
    return StringLiteral(value=value, parts=tuple(parts), location=location)


def boolean_literal(value: bool, location: Optional[SourceLocation] = None) -> BooleanLiteral:
    return BooleanLiteral(value=bool(value), location=location)


def function_call(name: str, args: Iterable[Expression] = (), type: TypeLike = NUMBER,
                  defid: Optional[DefId] = None,
                  location: Optional[SourceLocation] = None) -> FunctionCall:
    return FunctionCall(name=name, args=tuple(args), type=primitive(type), defid=defid, location=location)


def range_expression(value: Expression, location: Optional[SourceLocation] = None) -> RangeExpression:
    return RangeExpression(value=value, location=location)


# ============================================
# Statements
# ============================================

def program(statements: Iterable[ASTNode] = (), location: Optional[SourceLocation] = None) -> Program:
    return Program(statements=tuple(statements), location=location)


def block(statements: Iterable[ASTNode] = (), location: Optional[SourceLocation] = None) -> Block:
    return Block(statements=tuple(statements), location=location)


def _as_block(body: Union[Block, Iterable[ASTNode]]) -> Block:
    if isinstance(body, Block):
        return body
    return block(body)


def assignment_statement(target: Union[Identifier, str], expression: Expression,
                         is_declaration: bool = False,
                         location: Optional[SourceLocation] = None) -> AssignmentStatement:
    if isinstance(target, str):
        target = identifier(target, expression.type)
    return AssignmentStatement(
        target=target,
        expression=expression,
        is_declaration=is_declaration,
        location=location,
    )


def print_statement(value: Expression, location: Optional[SourceLocation] = None) -> PrintStatement:
    return PrintStatement(value=value, location=location)


def function_declaration(name: str, params: Sequence[Union[Identifier, str]],
                         body: Union[Block, Iterable[ASTNode]],
                         return_type: TypeLike = None, defid: Optional[DefId] = None,
                         location: Optional[SourceLocation] = None) -> FunctionDeclaration:
    """Parameters given by name are number-typed identifiers."""
    params = tuple(identifier(p, NUMBER) if isinstance(p, str) else p for p in params)
    return FunctionDeclaration(
        name=name,
        params=params,
        body=_as_block(body),
        return_type=primitive(return_type) if return_type is not None else None,
        defid=defid,
        location=location,
    )


def return_statement(expression: Expression, location: Optional[SourceLocation] = None) -> ReturnStatement:
    return ReturnStatement(expression=expression, location=location)


def if_statement(condition: Expression, consequent: Union[Block, Iterable[ASTNode]],
                 alternate: Union[Block, IfStatement, Iterable[ASTNode], None] = None,
                 location: Optional[SourceLocation] = None) -> IfStatement:
    if alternate is not None and not isinstance(alternate, (Block, IfStatement)):
        alternate = block(alternate)
    return IfStatement(
        condition=condition,
        consequent=_as_block(consequent),
        alternate=alternate,
        location=location,
    )


def while_statement(variable: Union[Identifier, str], range: Union[RangeExpression, Expression],
                    body: Union[Block, Iterable[ASTNode]],
                    location: Optional[SourceLocation] = None) -> WhileStatement:
    if isinstance(variable, str):
        variable = identifier(variable, NUMBER)
    if range.kind != NodeType.RANGE_EXPRESSION:
        range = range_expression(range)
    return WhileStatement(variable=variable, range=range, body=_as_block(body), location=location)


def break_statement(location: Optional[SourceLocation] = None) -> BreakStatement:
    return BreakStatement(location=location)


def comment(value: str, location: Optional[SourceLocation] = None) -> Comment:
    return Comment(value=value, location=location)

"""
Optimizer

Bottom-up AST rewriter. Children are optimized first, then the node's
rewrite rules are tried in a fixed order against the current result:

    constant folding -> boolean short-circuit -> term combination
    -> identity elimination -> strength reduction

One pass only: a rewrite that would enable another rule on an already
visited sibling is not revisited.

Statement visitors may return a list instead of a node; containers splice
the list into their statement sequence (an empty list removes the
statement). Nothing is mutated: changed nodes are rebuilt with
``dataclasses.replace`` and unchanged subtrees are shared.

Folding follows JavaScript number semantics. Results that JavaScript would
render differently (negative zero, non-finite values, integers beyond
2**53) are left unfolded, as are divisions and remainders by zero.
"""

import logging
import math
from dataclasses import fields, replace
from typing import Any, List, Optional, Union

from ..shared import builder
from ..shared.ast_visitor import ASTVisitor
from ..shared.builtins import BUILTIN_FUNCTIONS, normalize_number
from ..shared.defid import is_builtin
from ..shared.nodes import (
    ASTNode, Block, Expression, IfStatement, NodeType, is_literal,
)
from ..shared.types import BOOLEAN, NUMBER, BinaryOp, ComparisonOp, UnaryOp

logger = logging.getLogger(__name__)

OptimizeResult = Union[ASTNode, List[ASTNode]]

_UNFOLDABLE = object()
_MAX_SAFE_INTEGER = 2 ** 53
_MAX_SHIFT = 31


def _is_number_value(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_number_literal(node: Expression, value: Optional[Union[int, float]] = None) -> bool:
    if node.kind != NodeType.NUMBER_LITERAL:
        return False
    return value is None or node.value == value


def _is_boolean_literal(node: Expression) -> bool:
    return node.kind == NodeType.BOOLEAN_LITERAL


def _is_pure(node: ASTNode) -> bool:
    """True when evaluating ``node`` cannot call a user function."""
    if node.kind == NodeType.FUNCTION_CALL and not _is_builtin_call(node):
        return False
    for f in fields(node):
        value = getattr(node, f.name)
        children = value if isinstance(value, tuple) else (value,)
        for child in children:
            if isinstance(child, ASTNode) and not _is_pure(child):
                return False
    return True


def _is_builtin_call(node: ASTNode) -> bool:
    if node.defid is not None:
        return is_builtin(node.defid)
    return node.name in BUILTIN_FUNCTIONS


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _power_of_two_exponent(node: Expression) -> Optional[int]:
    """k for a number literal 2**k with 1 <= k <= 31."""
    if not _is_number_literal(node):
        return None
    value = node.value
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if value < 2 or value & (value - 1):
        return None
    exponent = value.bit_length() - 1
    return exponent if exponent <= _MAX_SHIFT else None


def js_string(value: Any) -> Optional[str]:
    """How JavaScript stringifies a literal value; None if Python would differ."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if not math.isfinite(value):
        return None
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    if 1e-6 <= abs(value) < 1e21 and "e" not in repr(value):
        return repr(value)
    return None


def _checked_number(value: Union[int, float]) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return _UNFOLDABLE
    value = normalize_number(value)
    if isinstance(value, int) and abs(value) > _MAX_SAFE_INTEGER:
        return _UNFOLDABLE
    return value


def _eval_numbers(op: BinaryOp, a: Union[int, float], b: Union[int, float]) -> Any:
    if op == BinaryOp.ADD:
        return _checked_number(a + b)
    if op == BinaryOp.SUB:
        return _checked_number(a - b)
    if op == BinaryOp.MUL:
        if (a == 0 or b == 0) and (a < 0) != (b < 0):
            return _UNFOLDABLE  # -0
        return _checked_number(a * b)
    if op == BinaryOp.DIV:
        if b == 0 or (a == 0 and b < 0):
            return _UNFOLDABLE
        return _checked_number(a / b)
    if op == BinaryOp.MOD:
        if b == 0:
            return _UNFOLDABLE
        if isinstance(a, int) and isinstance(b, int):
            result = abs(a) % abs(b)
            result = result if a >= 0 else -result
        else:
            result = math.fmod(a, b)
        if result == 0 and a < 0:
            return _UNFOLDABLE  # -0
        return _checked_number(result)
    if op.is_shift and isinstance(a, int) and isinstance(b, int):
        shift = b & 0x1F
        if op == BinaryOp.SHL:
            return _to_int32(_to_int32(a) << shift)
        return _to_int32(a) >> shift
    return _UNFOLDABLE


def _eval_binary(op: BinaryOp, a: Any, b: Any) -> Any:
    if _is_number_value(a) and _is_number_value(b):
        return _eval_numbers(op, a, b)
    if isinstance(a, bool) and isinstance(b, bool):
        if op == BinaryOp.AND:
            return a and b
        if op == BinaryOp.OR:
            return a or b
        return _UNFOLDABLE
    if op == BinaryOp.ADD and (isinstance(a, str) or isinstance(b, str)):
        left, right = js_string(a), js_string(b)
        if left is None or right is None:
            return _UNFOLDABLE
        return left + right
    return _UNFOLDABLE


def _eval_comparison(op: ComparisonOp, a: Any, b: Any) -> Any:
    same_kind = (
        (_is_number_value(a) and _is_number_value(b))
        or (isinstance(a, str) and isinstance(b, str))
        or (isinstance(a, bool) and isinstance(b, bool))
    )
    if not same_kind:
        # Strict equality across kinds
        if op == ComparisonOp.EQ:
            return False
        if op == ComparisonOp.NE:
            return True
        return _UNFOLDABLE
    if isinstance(a, bool) and not op.is_equality:
        return _UNFOLDABLE
    return {
        ComparisonOp.EQ: lambda: a == b,
        ComparisonOp.NE: lambda: a != b,
        ComparisonOp.LT: lambda: a < b,
        ComparisonOp.LE: lambda: a <= b,
        ComparisonOp.GT: lambda: a > b,
        ComparisonOp.GE: lambda: a >= b,
    }[op]()


def _literal(value: Any, location) -> Expression:
    if isinstance(value, bool):
        return builder.boolean_literal(value, location)
    if isinstance(value, str):
        return builder.string_literal(value, location=location)
    return builder.number_literal(normalize_number(value), location)


class Optimizer(ASTVisitor[OptimizeResult]):
    """Single-pass optimizer; ``rewrite_count`` counts applied rewrites."""

    def __init__(self) -> None:
        super().__init__()
        self.rewrite_count = 0
        self._binary_rules = (
            self._fold_binary,
            self._short_circuit,
            self._combine_terms,
            self._eliminate_identity,
            self._reduce_strength,
        )

    def _rewrote(self, result):
        self.rewrite_count += 1
        return result

    # ------------------------------------------------------------------
    # statements
    # ------------------------------------------------------------------

    def _statements(self, statements) -> tuple:
        out: List[ASTNode] = []
        for statement in statements:
            result = self.visit(statement)
            if isinstance(result, list):
                out.extend(result)
            elif statement.kind == NodeType.FUNCTION_CALL and result.kind != NodeType.FUNCTION_CALL:
                # A call statement folded to a constant has no effect left.
                self.rewrite_count += 1
            else:
                out.append(result)
        return tuple(out)

    def visit_program(self, node):
        return replace(node, statements=self._statements(node.statements))

    def visit_block(self, node):
        return replace(node, statements=self._statements(node.statements))

    def visit_assignment_statement(self, node):
        expression = self.visit(node.expression)
        target = node.target
        if (expression.kind == NodeType.IDENTIFIER and expression.name == target.name
                and expression.defid == target.defid):
            return self._rewrote([])
        return replace(node, expression=expression)

    def visit_print_statement(self, node):
        return replace(node, value=self.visit(node.value))

    def visit_return_statement(self, node):
        return replace(node, expression=self.visit(node.expression))

    def visit_function_declaration(self, node):
        return replace(node, body=self.visit_block(node.body))

    def visit_break_statement(self, node):
        return node

    def visit_comment(self, node):
        return node

    def _visit_alternate(self, alternate) -> Optional[Union[Block, IfStatement]]:
        if alternate is None:
            return None
        if alternate.kind == NodeType.BLOCK:
            return self.visit_block(alternate)
        result = self.visit_if_statement(alternate)
        if isinstance(result, list):
            return builder.block(result, alternate.location) if result else None
        return result

    def visit_if_statement(self, node):
        condition = self.visit(node.condition)
        consequent = self.visit_block(node.consequent)
        alternate = self._visit_alternate(node.alternate)

        if _is_boolean_literal(condition):
            chosen = consequent if condition.value else alternate
            if chosen is None:
                return self._rewrote([])
            if chosen.kind == NodeType.BLOCK:
                return self._rewrote(list(chosen.statements))
            return self._rewrote([chosen])

        if consequent.is_empty and alternate is None and _is_pure(condition):
            return self._rewrote([])

        if (condition.kind == NodeType.COMPARISON_EXPRESSION and condition.operator == ComparisonOp.NE
                and alternate is not None and alternate.kind == NodeType.BLOCK):
            self.rewrite_count += 1
            condition = replace(condition, operator=ComparisonOp.EQ)
            consequent, alternate = alternate, consequent

        return replace(node, condition=condition, consequent=consequent, alternate=alternate)

    def visit_while_statement(self, node):
        range_node = self.visit(node.range)
        body = self.visit_block(node.body)
        bound = range_node.value
        if _is_number_literal(bound) and bound.value <= 0:
            return self._rewrote([])
        if body.is_empty and _is_pure(range_node):
            return self._rewrote([])
        return replace(node, range=range_node, body=body)

    # ------------------------------------------------------------------
    # expressions
    # ------------------------------------------------------------------

    def visit_range_expression(self, node):
        return replace(node, value=self.visit(node.value))

    def visit_identifier(self, node):
        return node

    def visit_number_literal(self, node):
        return node

    def visit_boolean_literal(self, node):
        return node

    def visit_string_literal(self, node):
        if not node.parts:
            return node
        parts: List[Expression] = []
        text: Optional[str] = None
        for part in (self.visit(p) for p in node.parts):
            rendered = js_string(part.value) if is_literal(part) else None
            if rendered is None:
                if text is not None:
                    parts.append(builder.string_literal(text))
                    text = None
                parts.append(part)
            else:
                text = rendered if text is None else text + rendered
        if text is not None:
            parts.append(builder.string_literal(text))

        if all(p.kind == NodeType.STRING_LITERAL and not p.parts for p in parts):
            return self._rewrote(builder.string_literal("".join(p.value for p in parts),
                                                        location=node.location))
        if tuple(parts) == node.parts:
            return node
        return replace(node, parts=tuple(parts))

    def visit_function_call(self, node):
        args = tuple(self.visit(a) for a in node.args)
        builtin = BUILTIN_FUNCTIONS.get(node.name) if _is_builtin_call(node) else None
        if (builtin is not None and len(args) == builtin.arity
                and all(_is_number_literal(a) for a in args)):
            result = builtin.fold(*(a.value for a in args))
            if result is not None:
                return self._rewrote(builder.number_literal(result, node.location))
        return replace(node, args=args)

    def visit_unary_expression(self, node):
        operand = self.visit(node.operand)
        if node.operator == UnaryOp.NEG and _is_number_literal(operand) and operand.value != 0:
            return self._rewrote(builder.number_literal(-operand.value, node.location))
        if node.operator == UnaryOp.NOT:
            if is_literal(operand):
                return self._rewrote(builder.boolean_literal(not operand.value, node.location))
            if (operand.kind == NodeType.UNARY_EXPRESSION and operand.operator == UnaryOp.NOT
                    and operand.operand.type == BOOLEAN):
                return self._rewrote(operand.operand)
        return replace(node, operand=operand)

    def visit_comparison_expression(self, node):
        left = self.visit(node.left)
        right = self.visit(node.right)
        if is_literal(left) and is_literal(right):
            value = _eval_comparison(node.operator, left.value, right.value)
            if value is not _UNFOLDABLE:
                return self._rewrote(builder.boolean_literal(value, node.location))
        elif left == right and _is_pure(left):
            reflexive = node.operator in (ComparisonOp.EQ, ComparisonOp.LE, ComparisonOp.GE)
            return self._rewrote(builder.boolean_literal(reflexive, node.location))
        return replace(node, left=left, right=right)

    def visit_binary_expression(self, node):
        current = replace(node, left=self.visit(node.left), right=self.visit(node.right))
        for rule in self._binary_rules:
            if current.kind != NodeType.BINARY_EXPRESSION:
                break
            rewritten = rule(current)
            if rewritten is not current:
                self.rewrite_count += 1
                current = rewritten
        return current

    # ------------------------------------------------------------------
    # binary rewrite rules; each returns its input when it does not apply
    # ------------------------------------------------------------------

    def _fold_binary(self, node):
        if not (is_literal(node.left) and is_literal(node.right)):
            return node
        value = _eval_binary(node.operator, node.left.value, node.right.value)
        if value is _UNFOLDABLE:
            return node
        return _literal(value, node.location)

    def _short_circuit(self, node):
        left, right = node.left, node.right
        if node.operator == BinaryOp.AND:
            if _is_boolean_literal(left):
                return right if left.value else left
            if _is_boolean_literal(right) and left.type == BOOLEAN:
                if right.value:
                    return left
                if _is_pure(left):
                    return right
        elif node.operator == BinaryOp.OR:
            if _is_boolean_literal(left):
                return left if left.value else right
            if _is_boolean_literal(right) and left.type == BOOLEAN:
                if not right.value:
                    return left
                if _is_pure(left):
                    return right
        return node

    def _combine_terms(self, node):
        inner = node.left
        if not (node.operator == BinaryOp.ADD and _is_number_literal(node.right)
                and inner.kind == NodeType.BINARY_EXPRESSION and inner.operator == BinaryOp.ADD
                and _is_number_literal(inner.right) and inner.left.type == NUMBER):
            return node
        total = _eval_numbers(BinaryOp.ADD, inner.right.value, node.right.value)
        if total is _UNFOLDABLE:
            return node
        return builder.binary_expression(BinaryOp.ADD, inner.left,
                                         builder.number_literal(total, node.right.location),
                                         node.location)

    def _eliminate_identity(self, node):
        left, right = node.left, node.right
        if node.operator == BinaryOp.ADD:
            if _is_number_literal(right, 0) and left.type == NUMBER:
                return left
            if _is_number_literal(left, 0) and right.type == NUMBER:
                return right
        elif node.operator == BinaryOp.MUL:
            if _is_number_literal(right, 1) and left.type == NUMBER:
                return left
            if _is_number_literal(left, 1) and right.type == NUMBER:
                return right
            if _is_number_literal(right, 0) and left.type == NUMBER and _is_pure(left):
                return right
            if _is_number_literal(left, 0) and right.type == NUMBER and _is_pure(right):
                return left
        return node

    def _reduce_strength(self, node):
        if node.operator == BinaryOp.MUL:
            for operand, factor in ((node.left, node.right), (node.right, node.left)):
                exponent = _power_of_two_exponent(factor)
                if exponent is not None:
                    return builder.binary_expression(
                        BinaryOp.SHL, operand, builder.number_literal(exponent, factor.location), node.location
                    )
        elif node.operator == BinaryOp.DIV:
            exponent = _power_of_two_exponent(node.right)
            if exponent is not None:
                return builder.binary_expression(
                    BinaryOp.SHR, node.left, builder.number_literal(exponent, node.right.location), node.location
                )
        return node


def optimize(node: Optional[ASTNode]) -> Optional[OptimizeResult]:
    """
    Optimize ``node``. Statements may come back as a list of replacement
    statements (empty when the statement was removed); ``None`` passes
    through.
    """
    if node is None:
        return None
    optimizer = Optimizer()
    result = optimizer.visit(node)
    logger.debug("optimizer applied %d rewrites to %s", optimizer.rewrite_count, node.kind.value)
    return result

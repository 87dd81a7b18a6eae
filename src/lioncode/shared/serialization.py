"""
AST Serialization to S-Expressions

Renders an AST as nested ``(kind field ...)`` forms for debugging dumps
and tests, e.g. the optimized ``x = 5 + 8`` becomes::

    (program (assignment-statement (identifier "x" number) (number-literal 13) declare))

Forms longer than a line are broken with one child per line.

Node kinds, operators and types are ``sexpdata.Symbol``s; names and string
values are quoted strings. ``parse_sexpr`` reads a dump back into nested
lists.
"""

import re
from typing import Any, List

import sexpdata

from .ast_visitor import ASTVisitor
from .nodes import ASTNode, NodeType


def _sym(text: str) -> sexpdata.Symbol:
    return sexpdata.Symbol(text)


_NIL = _sym("nil")


def _kind_symbol(kind: NodeType) -> sexpdata.Symbol:
    return _sym(re.sub(r"(?<!^)(?=[A-Z])", "-", kind.value).lower())


class ASTSerializer(ASTVisitor[List[Any]]):
    """Builds the structured sexpr (lists, Symbols, strings, numbers)."""

    def _form(self, node: ASTNode, *fields: Any) -> List[Any]:
        return [_kind_symbol(node.kind), *fields]

    def _opt(self, node: Any) -> Any:
        return _NIL if node is None else self.visit(node)

    def visit_program(self, node):
        return self._form(node, *(self.visit(s) for s in node.statements))

    def visit_block(self, node):
        return self._form(node, *(self.visit(s) for s in node.statements))

    def visit_assignment_statement(self, node):
        form = self._form(node, self.visit(node.target), self.visit(node.expression))
        if node.is_declaration:
            form.append(_sym("declare"))
        return form

    def visit_print_statement(self, node):
        return self._form(node, self.visit(node.value))

    def visit_function_declaration(self, node):
        params = [self.visit(p) for p in node.params]
        return_type = _sym(str(node.return_type)) if node.return_type is not None else _NIL
        return self._form(node, node.name, params, self.visit(node.body), return_type)

    def visit_return_statement(self, node):
        return self._form(node, self.visit(node.expression))

    def visit_if_statement(self, node):
        return self._form(node, self.visit(node.condition), self.visit(node.consequent),
                          self._opt(node.alternate))

    def visit_while_statement(self, node):
        return self._form(node, self.visit(node.variable), self.visit(node.range), self.visit(node.body))

    def visit_break_statement(self, node):
        return self._form(node)

    def visit_comment(self, node):
        return self._form(node, node.value)

    def visit_binary_expression(self, node):
        return self._form(node, _sym(node.operator.value), self.visit(node.left),
                          self.visit(node.right), _sym(str(node.type)))

    def visit_comparison_expression(self, node):
        return self._form(node, _sym(node.operator.value), self.visit(node.left), self.visit(node.right))

    def visit_unary_expression(self, node):
        return self._form(node, _sym(node.operator.value), self.visit(node.operand), _sym(str(node.type)))

    def visit_identifier(self, node):
        return self._form(node, node.name, _sym(str(node.type)))

    def visit_number_literal(self, node):
        return self._form(node, node.value)

    def visit_string_literal(self, node):
        return self._form(node, node.value, *(self.visit(p) for p in node.parts))

    def visit_boolean_literal(self, node):
        return self._form(node, _sym("true" if node.value else "false"))

    def visit_function_call(self, node):
        return self._form(node, node.name, [self.visit(a) for a in node.args], _sym(str(node.type)))

    def visit_range_expression(self, node):
        return self._form(node, self.visit(node.value))


def to_sexpr(node: ASTNode) -> List[Any]:
    return ASTSerializer().visit(node)


def _pretty_dumps(sexpr: Any, indent: int = 0, indent_str: str = "  ", max_line: int = 100) -> str:
    """Keeps short forms on one line; breaks only when needed."""
    if not isinstance(sexpr, list):
        return sexpdata.dumps(sexpr)
    if not sexpr:
        return "()"
    parts = [_pretty_dumps(e, indent + 1, indent_str, max_line) for e in sexpr]
    one_line = "(" + " ".join(parts) + ")"
    if len(one_line) + len(indent_str) * indent <= max_line and "\n" not in one_line:
        return one_line
    next_prefix = indent_str * (indent + 1)
    rest = "\n".join(next_prefix + p for p in parts[1:])
    return "(" + parts[0] + ("\n" + rest if rest else "") + ")"


def serialize_ast(node: ASTNode) -> str:
    """Pretty-printed S-expression text for ``node``."""
    return _pretty_dumps(to_sexpr(node))


def parse_sexpr(text: str) -> Any:
    """Read serialized text back into nested lists of Symbols and atoms."""
    return sexpdata.loads(text)

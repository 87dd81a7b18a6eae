"""
JavaScript backend

Renders each statement as one or more lines through a kind-dispatched
visitor; expressions render to strings. Binary and comparison expressions
are always parenthesized, so no precedence table is needed.

Names: the first declaration of a name keeps it, every later declaration
of a different entity gets ``name_2``, ``name_3``, ... and all references
use the emitted name of the declaration they resolved to (their DefId).
JavaScript reserved words count as taken.
"""

import json
import logging
from typing import Dict, Hashable, List, Optional

from ..shared.ast_visitor import ASTVisitor
from ..shared.builtins import BUILTIN_FUNCTIONS
from ..shared.defid import DefId, is_builtin
from ..shared.nodes import ASTNode, Identifier, NodeType, Program
from ..shared.types import BinaryOp, ComparisonOp
from ..utils.config import JS_INDENT, RENAMED_SUFFIX_START
from .base import Backend

logger = logging.getLogger(__name__)

JS_RESERVED_WORDS = frozenset({
    "await", "break", "case", "catch", "class", "const", "continue", "debugger",
    "default", "delete", "do", "else", "enum", "export", "extends", "false",
    "finally", "for", "function", "if", "implements", "import", "in",
    "instanceof", "interface", "let", "new", "null", "package", "private",
    "protected", "public", "return", "static", "super", "switch", "this",
    "throw", "true", "try", "typeof", "var", "void", "while", "with", "yield",
    "arguments", "eval", "undefined", "NaN", "Infinity", "console", "Math",
})

_BINARY_OPERATORS = {
    BinaryOp.AND: "&&",
    BinaryOp.OR: "||",
}

_COMPARISON_OPERATORS = {
    ComparisonOp.EQ: "===",
    ComparisonOp.NE: "!==",
}


def js_number(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value)


def _template_text(text: str) -> str:
    return text.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")


class _NameTable:
    """
    Emitted names for one generated program.

    Declarations are keyed by DefId; hand-built nodes without one get a
    fresh key per declaration site, and their references resolve to the
    most recent declaration of the same name.
    """

    def __init__(self) -> None:
        self._taken = set(JS_RESERVED_WORDS)
        self._emitted: Dict[Hashable, str] = {}
        self._latest: Dict[str, str] = {}

    def declare(self, name: str, defid: Optional[DefId]) -> str:
        key = defid if defid is not None else object()
        if key in self._emitted:
            return self._emitted[key]
        emitted = name
        suffix = RENAMED_SUFFIX_START
        while emitted in self._taken:
            emitted = f"{name}_{suffix}"
            suffix += 1
        if emitted != name:
            logger.debug("renamed declaration %s -> %s", name, emitted)
        self._taken.add(emitted)
        self._emitted[key] = emitted
        self._latest[name] = emitted
        return emitted

    def resolve(self, name: str, defid: Optional[DefId]) -> Optional[str]:
        if defid is not None and defid in self._emitted:
            return self._emitted[defid]
        return self._latest.get(name)

    def is_declared(self, node: Identifier) -> bool:
        return self.resolve(node.name, node.defid) is not None


class JavaScriptBackend(Backend, ASTVisitor):
    """Generates JavaScript source text."""

    target = "js"

    def __init__(self) -> None:
        ASTVisitor.__init__(self)
        self._names = _NameTable()

    def codegen(self, program: Program) -> str:
        self._names = _NameTable()
        return "\n".join(self.visit(program))

    # ------------------------------------------------------------------
    # statements: each returns a list of lines
    # ------------------------------------------------------------------

    def _lines(self, statements) -> List[str]:
        lines: List[str] = []
        for statement in statements:
            rendered = self.visit(statement)
            if isinstance(rendered, str):
                rendered = [f"{rendered};"]
            lines.extend(rendered)
        return lines

    def _indented(self, block: ASTNode) -> List[str]:
        return [JS_INDENT + line for line in self.visit(block)]

    def visit_program(self, node) -> List[str]:
        return self._lines(node.statements)

    def visit_block(self, node) -> List[str]:
        return self._lines(node.statements)

    def visit_assignment_statement(self, node) -> List[str]:
        expression = self.visit(node.expression)
        target = node.target
        if node.is_declaration or not self._names.is_declared(target):
            return [f"let {self._names.declare(target.name, target.defid)} = {expression};"]
        return [f"{self.visit(target)} = {expression};"]

    def visit_print_statement(self, node) -> List[str]:
        return [f"console.log({self.visit(node.value)});"]

    def visit_function_declaration(self, node) -> List[str]:
        name = self._names.declare(node.name, node.defid)
        params = ", ".join(self._names.declare(p.name, p.defid) for p in node.params)
        return [f"function {name}({params}) {{", *self._indented(node.body), "}"]

    def visit_return_statement(self, node) -> List[str]:
        return [f"return {self.visit(node.expression)};"]

    def visit_if_statement(self, node) -> List[str]:
        lines = [f"if ({self.visit(node.condition)}) {{", *self._indented(node.consequent)]
        alternate = node.alternate
        while alternate is not None and alternate.kind == NodeType.IF_STATEMENT:
            lines.append(f"}} else if ({self.visit(alternate.condition)}) {{")
            lines.extend(self._indented(alternate.consequent))
            alternate = alternate.alternate
        if alternate is not None:
            lines.append("} else {")
            lines.extend(self._indented(alternate))
        lines.append("}")
        return lines

    def visit_while_statement(self, node) -> List[str]:
        bound = self.visit(node.range)
        var = self._names.declare(node.variable.name, node.variable.defid)
        return [
            f"for (let {var} = 0; {var} < {bound}; {var}++) {{",
            *self._indented(node.body),
            "}",
        ]

    def visit_break_statement(self, node) -> List[str]:
        return ["break;"]

    def visit_comment(self, node) -> List[str]:
        return [f"// {line.strip()}".rstrip() for line in node.value.splitlines() or [""]]

    # ------------------------------------------------------------------
    # expressions: each returns a string
    # ------------------------------------------------------------------

    def visit_binary_expression(self, node) -> str:
        op = _BINARY_OPERATORS.get(node.operator, node.operator.value)
        return f"({self.visit(node.left)} {op} {self.visit(node.right)})"

    def visit_comparison_expression(self, node) -> str:
        op = _COMPARISON_OPERATORS.get(node.operator, node.operator.value)
        return f"({self.visit(node.left)} {op} {self.visit(node.right)})"

    def visit_unary_expression(self, node) -> str:
        op = node.operator.value
        operand = self.visit(node.operand)
        # "--5" would lex as a decrement
        if operand.startswith(op):
            return f"({op} {operand})"
        return f"({op}{operand})"

    def visit_identifier(self, node) -> str:
        return self._names.resolve(node.name, node.defid) or node.name

    def visit_number_literal(self, node) -> str:
        return js_number(node.value)

    def visit_boolean_literal(self, node) -> str:
        return "true" if node.value else "false"

    def visit_string_literal(self, node) -> str:
        if not node.parts:
            return json.dumps(node.value, ensure_ascii=False)
        pieces = []
        for part in node.parts:
            if part.kind == NodeType.STRING_LITERAL and not part.parts:
                pieces.append(_template_text(part.value))
            else:
                pieces.append("${" + self.visit(part) + "}")
        return "`" + "".join(pieces) + "`"

    def visit_function_call(self, node) -> str:
        args = ", ".join(self.visit(a) for a in node.args)
        return f"{self._callee(node)}({args})"

    def _callee(self, node) -> str:
        if is_builtin(node.defid):
            return BUILTIN_FUNCTIONS[node.name].js_name
        resolved = self._names.resolve(node.name, node.defid)
        if resolved is None and node.defid is None and node.name in BUILTIN_FUNCTIONS:
            return BUILTIN_FUNCTIONS[node.name].js_name
        return resolved or node.name

    def visit_range_expression(self, node) -> str:
        return self.visit(node.value)

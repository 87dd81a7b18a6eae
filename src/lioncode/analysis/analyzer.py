"""
Semantic Analyzer

Walks the parse tree top-down with a chain of ``Context`` frames,
resolving names, inferring types and enforcing the language rules. Nodes
are built with the factories in ``shared.builder``. The first violation
raises ``SemanticError`` and aborts the analysis; there is no recovery.

Names are declared by their first assignment. A later assignment to a
visible name reassigns it, so the value must keep the established type.
Functions are registered in the enclosing frame before their body is
analyzed, which makes recursion resolve.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple, Union

from lark import Token, Tree
from lark.visitors import Interpreter
from typing_extensions import TypeAlias

from ..shared import builder
from ..shared.builtins import BUILTIN_FUNCTIONS
from ..shared.defid import DefType, Resolver
from ..shared.errors import LionCodeImplementationError, SemanticError, TypeCheckError
from ..shared.nodes import (
    ASTNode, Block, Expression, NodeType, Program, UnaryExpression,
)
from ..shared.scope import Binding, BindingType, Context, ScopeKind
from ..shared.source_location import SourceLocation
from ..shared.types import (
    BOOLEAN, NUMBER, STRING, ComparisonOp, FunctionType, PrimitiveType, UNKNOWN,
    UnaryOp, unify_return_types,
)
from ..utils.config import DEFAULT_SOURCE_NAME, RESERVED_WORDS

logger = logging.getLogger(__name__)

ParseTree: TypeAlias = Tree
Positioned: TypeAlias = Union[Tree, Token]

_LITERAL_TYPES = {
    "number_literal": NUMBER,
    "string_literal": STRING,
    "boolean_literal": BOOLEAN,
}


def _is_negative_literal(node: Expression) -> bool:
    if node.kind == NodeType.NUMBER_LITERAL:
        return node.value < 0
    if node.kind == NodeType.UNARY_EXPRESSION and node.operator == UnaryOp.NEG:
        operand = node.operand
        return operand.kind == NodeType.NUMBER_LITERAL and operand.value > 0
    return False


def _orderable(left: PrimitiveType, right: PrimitiveType) -> bool:
    known = [t for t in (left, right) if t.is_known]
    return all(t in (NUMBER, STRING) and t == known[0] for t in known)


def _final_value(block: Block) -> Optional[Tuple[Tuple[str, ...], PrimitiveType]]:
    """What a branch produces last: an assignment to a name, or a returned value."""
    if not block.statements:
        return None
    last = block.statements[-1]
    if last.kind == NodeType.ASSIGNMENT_STATEMENT:
        return ("assign", last.target.name), last.expression.type
    if last.kind == NodeType.RETURN_STATEMENT:
        return ("return",), last.expression.type
    return None


class Analyzer(Interpreter):
    """
    One analysis run. Holds the current frame and the DefId allocator;
    create a new instance per program.
    """

    def __init__(self, source_file: str = DEFAULT_SOURCE_NAME, source_code: Optional[str] = None):
        self.source_file = source_file
        self.source_code = source_code
        self.resolver = Resolver()
        self.context = self._prelude()

    def _prelude(self) -> Context:
        root = Context(parent=None, kind=ScopeKind.BUILTIN)
        for name, function in BUILTIN_FUNCTIONS.items():
            defid = self.resolver.allocate(name, DefType.BUILTIN)
            root.define(name, Binding(name, BindingType.BUILTIN, function, defid, function.signature))
        return root.child(ScopeKind.MODULE, in_loop=False, in_function=False)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _location(self, item: Positioned) -> Optional[SourceLocation]:
        meta = item.meta if isinstance(item, Tree) else item
        return SourceLocation.from_meta(meta, self.source_file)

    def _error(self, message: str, item: Positioned) -> SemanticError:
        return SemanticError(message, self._location(item), source_code=self.source_code)

    @contextmanager
    def _scope(self, kind: ScopeKind, in_loop: Optional[bool] = None,
               in_function: Optional[bool] = None) -> Iterator[Context]:
        outer = self.context
        self.context = outer.child(kind, in_loop=in_loop, in_function=in_function)
        try:
            yield self.context
        finally:
            self.context = outer

    @contextmanager
    def _building(self) -> Iterator[None]:
        """Attach the program text to type errors raised by the builder."""
        try:
            yield
        except TypeCheckError as e:
            if e.source_code is None:
                e.source_code = self.source_code
            raise

    def _statements(self, trees: List[ParseTree]) -> List[ASTNode]:
        return [self.visit(tree) for tree in trees]

    def _block(self, tree: ParseTree, kind: ScopeKind = ScopeKind.BLOCK, **flags) -> Block:
        with self._scope(kind, **flags):
            statements = self._statements(tree.children)
        return builder.block(statements, self._location(tree))

    def _check_declarable(self, token: Token) -> str:
        name = str(token)
        if name in RESERVED_WORDS:
            raise self._error(f"'{name}' is a reserved word", token)
        return name

    def __default__(self, tree: ParseTree):
        raise LionCodeImplementationError(f"Analyzer has no rule for '{tree.data}'")

    # ------------------------------------------------------------------
    # statements
    # ------------------------------------------------------------------

    def program(self, tree: ParseTree) -> Program:
        return builder.program(self._statements(tree.children), self._location(tree))

    def print_statement(self, tree: ParseTree):
        return builder.print_statement(self.visit(tree.children[0]), self._location(tree))

    def assignment_statement(self, tree: ParseTree):
        name_token, expression_tree = tree.children
        expression = self.visit(expression_tree)
        name = str(name_token)
        binding = self.context.lookup(name)

        if binding is None:
            self._check_declarable(name_token)
            defid = self.resolver.allocate(name, DefType.VARIABLE)
            target = builder.identifier(name, expression.type, defid, self._location(name_token))
            self.context.define(name, Binding(name, BindingType.VARIABLE, target, defid, expression.type))
            return builder.assignment_statement(target, expression, is_declaration=True,
                                                location=self._location(tree))

        if binding.binding_type.is_callable:
            raise self._error("Assignment to immutable variable", name_token)
        if binding.binding_type == BindingType.LOOP_VARIABLE:
            raise self._error("Cannot reassign loop variable", name_token)
        if binding.type.is_known and expression.type.is_known and binding.type != expression.type:
            raise self._error("Operands must have the same type", tree)

        target = builder.identifier(name, binding.type, binding.defid, self._location(name_token))
        return builder.assignment_statement(target, expression, location=self._location(tree))

    def function_declaration(self, tree: ParseTree):
        name_token, block_tree = tree.children[0], tree.children[-1]
        param_tokens = tree.children[1].children if len(tree.children) == 3 else []
        name = self._check_declarable(name_token)
        if self.context.defined_in_this_scope(name):
            raise self._error(f"Variable already declared: {name}", name_token)

        defid = self.resolver.allocate(name, DefType.FUNCTION)
        signature = FunctionType((NUMBER,) * len(param_tokens), None)
        binding = Binding(name, BindingType.FUNCTION, None, defid, signature)
        self.context.define(name, binding)

        with self._scope(ScopeKind.FUNCTION, in_loop=False, in_function=True) as frame:
            params = []
            for token in param_tokens:
                param_name = self._check_declarable(token)
                if frame.defined_in_this_scope(param_name):
                    raise self._error(f"Variable already declared: {param_name}", token)
                param_defid = self.resolver.allocate(param_name, DefType.PARAMETER)
                param = builder.identifier(param_name, NUMBER, param_defid, self._location(token))
                frame.define(param_name, Binding(param_name, BindingType.PARAMETER, param, param_defid, NUMBER))
                params.append(param)
            body = builder.block(self._statements(block_tree.children), self._location(block_tree))
            return_type = unify_return_types(frame.return_types)

        binding.type = FunctionType(signature.param_types, return_type)
        declaration = builder.function_declaration(name, params, body, return_type, defid,
                                                   self._location(tree))
        binding.definition = declaration
        logger.debug("function %s%s", name, binding.type)
        return declaration

    def return_statement(self, tree: ParseTree):
        if not self.context.in_function:
            raise self._error("Return statement outside function", tree)
        expression = self.visit(tree.children[0])
        self.context.enclosing(ScopeKind.FUNCTION).return_types.append(expression.type)
        return builder.return_statement(expression, self._location(tree))

    def break_statement(self, tree: ParseTree):
        if not self.context.in_loop:
            raise self._error("Break can only appear in a loop", tree)
        return builder.break_statement(self._location(tree))

    def comment(self, tree: ParseTree):
        return builder.comment(str(tree.children[0])[1:-1].strip(), self._location(tree))

    def if_statement(self, tree: ParseTree):
        condition_tree, consequent_tree = tree.children[:2]
        branches = [(self.visit(condition_tree), self._block(consequent_tree), tree)]
        otherwise = None
        for clause in tree.children[2:]:
            if clause.data == "else_clause":
                clause_condition, clause_block = clause.children
                branches.append((self.visit(clause_condition), self._block(clause_block), clause))
            else:
                otherwise = self._block(clause.children[0])

        if otherwise is not None:
            self._check_branch_types([block for _, block, _ in branches], otherwise, tree)

        # Link the chain from the end: each else branch becomes the
        # alternate of the branch before it.
        alternate = otherwise
        for condition, consequent, node in reversed(branches):
            alternate = builder.if_statement(condition, consequent, alternate, self._location(node))
        return alternate

    def _check_branch_types(self, branches: List[Block], otherwise: Block, tree: ParseTree) -> None:
        final = _final_value(otherwise)
        if final is None:
            return
        key, final_type = final
        for block in branches:
            produced = _final_value(block)
            if produced is None or produced[0] != key:
                continue
            if produced[1].is_known and final_type.is_known and produced[1] != final_type:
                raise self._error("Mismatched types in if-else branches", tree)

    def while_statement(self, tree: ParseTree):
        variable_tree, range_tree, block_tree = tree.children
        token = variable_tree.children[0]
        if token.type != "NAME":
            raise self._error("Invalid loop variable", token)
        name = self._check_declarable(token)
        range_node = self.visit(range_tree)

        with self._scope(ScopeKind.LOOP, in_loop=True) as frame:
            defid = self.resolver.allocate(name, DefType.LOOP_VARIABLE)
            variable = builder.identifier(name, NUMBER, defid, self._location(token))
            frame.define(name, Binding(name, BindingType.LOOP_VARIABLE, variable, defid, NUMBER))
            body = builder.block(self._statements(block_tree.children), self._location(block_tree))
        return builder.while_statement(variable, range_node, body, self._location(tree))

    def range_expression(self, tree: ParseTree):
        value = self.visit(tree.children[0])
        if _is_negative_literal(value):
            raise self._error("Range requires non-negative value", tree)
        if value.type.is_known and value.type != NUMBER:
            raise self._error("Range requires a number", tree)
        return builder.range_expression(value, self._location(tree))

    # ------------------------------------------------------------------
    # expressions
    # ------------------------------------------------------------------

    def function_call(self, tree: ParseTree):
        name_token = tree.children[0]
        arg_trees = tree.children[1].children if len(tree.children) > 1 else []
        name = str(name_token)
        binding = self.context.lookup(name)
        if binding is None:
            raise self._error(f"Variable '{name}' not declared", name_token)
        if not binding.binding_type.is_callable:
            raise self._error("Not a function", name_token)
        signature = binding.type
        if len(arg_trees) != signature.arity:
            raise self._error(
                f"Expected {signature.arity} argument(s) but {len(arg_trees)} passed", tree
            )
        args = [self.visit(arg) for arg in arg_trees]
        return builder.function_call(name, args, signature.result_type, binding.defid, self._location(tree))

    def binary_expression(self, tree: ParseTree):
        left_tree, operator, right_tree = tree.children
        left = self.visit(left_tree)
        right = self.visit(right_tree)
        with self._building():
            return builder.binary_expression(str(operator), left, right, self._location(operator))

    def comparison_expression(self, tree: ParseTree):
        left_tree, operator, right_tree = tree.children
        self._check_function_comparison(left_tree, right_tree)
        left = self.visit(left_tree)
        right = self.visit(right_tree)
        op = ComparisonOp.from_source(str(operator))
        if not op.is_equality and not _orderable(left.type, right.type):
            raise self._error("Expected number or string", operator)
        return builder.comparison_expression(op, left, right, self._location(operator))

    def _check_function_comparison(self, left: ParseTree, right: ParseTree) -> None:
        for reference, other in ((left, right), (right, left)):
            if reference.data != "identifier" or other.data not in _LITERAL_TYPES:
                continue
            binding = self.context.lookup(str(reference.children[0]))
            if binding is not None and binding.binding_type.is_callable:
                raise self._error(f"Cannot compare function and {_LITERAL_TYPES[other.data]}", reference)

    def unary_expression(self, tree: ParseTree) -> UnaryExpression:
        operator, operand_tree = tree.children
        operand = self.visit(operand_tree)
        with self._building():
            return builder.unary_expression(str(operator), operand, self._location(operator))

    def identifier(self, tree: ParseTree):
        token = tree.children[0]
        name = str(token)
        binding = self.context.lookup(name)
        if binding is None:
            raise self._error(f"Variable '{name}' not declared", token)
        value_type = binding.type if isinstance(binding.type, PrimitiveType) else UNKNOWN
        return builder.identifier(name, value_type, binding.defid, self._location(token))

    def number_literal(self, tree: ParseTree):
        return builder.number_literal(str(tree.children[0]), self._location(tree))

    def boolean_literal(self, tree: ParseTree):
        return builder.boolean_literal(tree.children[0].type == "TRUE", self._location(tree))

    def string_literal(self, tree: ParseTree):
        raw, *segments = tree.children
        location = self._location(tree)
        if all(isinstance(segment, Token) for segment in segments):
            return builder.string_literal("".join(str(s) for s in segments), location=location)
        parts = []
        for segment in segments:
            if isinstance(segment, Token):
                parts.append(builder.string_literal(str(segment)))
            else:
                parts.append(self.visit(segment.children[0]))
        return builder.string_literal(str(raw), parts, location)


def analyze(tree: ParseTree, source_file: str = DEFAULT_SOURCE_NAME,
            source_code: Optional[str] = None) -> Program:
    """Validate a parse tree and build the typed AST."""
    if tree.data != "program":
        raise LionCodeImplementationError(f"analyze expects a program tree, got '{tree.data}'")
    analyzer = Analyzer(source_file, source_code)
    program = analyzer.visit(tree)
    logger.debug("analyzed %s: %d definitions", source_file, len(analyzer.resolver))
    return program

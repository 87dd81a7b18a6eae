"""
Analyzer tests: name resolution, typing and the language rules.
"""

import pytest

from lioncode.analysis.analyzer import Analyzer, analyze
from lioncode.frontend.parser import parse
from lioncode.shared.defid import BUILTIN_CRATE, LOCAL_CRATE
from lioncode.shared.errors import LionCodeImplementationError, SemanticError, TypeCheckError
from lioncode.shared.nodes import NodeType
from lioncode.shared.types import BOOLEAN, NUMBER, STRING, UNKNOWN, BinaryOp, ComparisonOp
from tests.test_utils import analyze_source, first_statement, single_expression


def _error(source: str) -> SemanticError:
    with pytest.raises(SemanticError) as excinfo:
        analyze_source(source)
    return excinfo.value


class TestProgramShape:
    def test_print_scenario(self):
        program = analyze_source("roar -Hello LMU!-")
        (statement,) = program.statements
        assert statement.kind == NodeType.PRINT_STATEMENT
        assert statement.value.kind == NodeType.STRING_LITERAL
        assert statement.value.value == "Hello LMU!"
        assert statement.value.type == STRING

    def test_string_that_looks_like_a_name_is_just_text(self):
        program = analyze_source("roar -x-")
        assert program.statements[0].value.value == "x"

    def test_locations_are_attached(self):
        program = analyze_source("x = 1\nroar x")
        reference = program.statements[1].value
        assert reference.location.line == 2
        assert reference.location.column == 6

    def test_comment_text_is_trimmed(self):
        statement = first_statement("~  keep me  ~")
        assert statement.kind == NodeType.COMMENT
        assert statement.value == "keep me"

    def test_rejects_non_program_tree(self):
        tree = parse("roar 1").children[0]
        with pytest.raises(LionCodeImplementationError):
            analyze(tree)


class TestAssignment:
    def test_first_assignment_declares(self):
        statement = first_statement("x = 5 + 8")
        assert statement.is_declaration
        assert statement.target.type == NUMBER
        assert statement.target.defid.krate == LOCAL_CRATE

    def test_reassignment_keeps_declaration_defid(self):
        program = analyze_source("x = 1 x = 2")
        first, second = program.statements
        assert not second.is_declaration
        assert second.target.defid == first.target.defid

    def test_reassignment_with_other_type(self):
        err = _error("x = 1 x = -one-")
        assert "Operands must have the same type" in err.message

    def test_reassigning_function(self):
        err = _error("ignite f() | serve 1 | f = 2")
        assert "Assignment to immutable variable" in err.message

    def test_reassigning_builtin(self):
        err = _error("sqrt = 2")
        assert "Assignment to immutable variable" in err.message

    def test_reassigning_loop_variable(self):
        err = _error("Prowl i in range(3) | i = 2 |")
        assert "Cannot reassign loop variable" in err.message

    def test_reserved_word_cannot_be_declared(self):
        err = _error("range = 3")
        assert "'range' is a reserved word" in err.message

    def test_declaration_inside_block_is_local(self):
        err = _error("if (true) | y = 1 | roar y")
        assert "Variable 'y' not declared" in err.message

    def test_outer_variable_is_reassigned_from_block(self):
        program = analyze_source("x = 1 if (true) | x = 2 |")
        inner = program.statements[1].consequent.statements[0]
        assert not inner.is_declaration
        assert inner.target.defid == program.statements[0].target.defid


class TestIdentifiers:
    def test_undeclared_reference(self):
        err = _error("roar x")
        assert "Variable 'x' not declared" in err.message
        assert err.location.column == 6

    def test_reference_type_comes_from_binding(self):
        program = analyze_source("name = -Leo- roar name")
        assert program.statements[1].value.type == STRING

    def test_interpolation_spans_are_resolved(self):
        err = _error("roar -Hi $who-")
        assert "Variable 'who' not declared" in err.message

    def test_interpolated_string_parts(self):
        program = analyze_source("n = 3 roar -n is $n!-")
        literal = program.statements[1].value
        assert literal.is_interpolated
        assert literal.value == "n is $n!"
        assert [p.kind for p in literal.parts] == [
            NodeType.STRING_LITERAL, NodeType.IDENTIFIER, NodeType.STRING_LITERAL,
        ]
        assert literal.parts[1].type == NUMBER


class TestExpressions:
    def test_divide_by_zero(self):
        err = _error("x = 5 / 0")
        assert isinstance(err, TypeCheckError)
        assert "Cannot divide by zero" in err.message

    def test_type_error_carries_snippet(self):
        with pytest.raises(TypeCheckError) as excinfo:
            analyze_source("x = true + 1")
        rendered = str(excinfo.value)
        assert "Cannot apply + to boolean and number" in rendered
        assert "error[E0308]" in rendered
        assert "x = true + 1" in rendered

    def test_string_concatenation(self):
        assert single_expression("-a- + 1").type == STRING

    def test_string_plus_boolean(self):
        program = analyze_source("ok = true\nroar -ready:- + ok")
        assert program.statements[-1].value.type == STRING
        assert single_expression("true + -!-").type == STRING

    def test_modulus_requires_numbers(self):
        err = _error("roar -a- % 2")
        assert "Modulus requires number operands" in err.message

    def test_logical_requires_booleans(self):
        err = _error("roar 1 and true")
        assert "Cannot apply and to number and boolean" in err.message

    def test_phrase_comparison_is_canonicalized(self):
        expression = single_expression("1 is less than 2")
        assert expression.operator == ComparisonOp.LT
        assert expression.type == BOOLEAN

    def test_equality_across_types_is_allowed(self):
        assert single_expression("1 == -one-").operator == ComparisonOp.EQ

    def test_ordering_needs_matching_types(self):
        err = _error("roar 1 < -two-")
        assert "Expected number or string" in err.message

    def test_ordering_strings(self):
        assert single_expression("-a- < -b-").type == BOOLEAN

    def test_comparing_function_with_literal(self):
        err = _error("ignite f() | serve 1 | roar f == 1")
        assert "Cannot compare function and number" in err.message

    def test_unary_minus_on_string(self):
        err = _error("x = -text-\nroar -x")
        assert "Cannot apply - to string" in err.message

    def test_unary_not(self):
        expression = single_expression("!true")
        assert expression.type == BOOLEAN

    def test_binary_operator_enum(self):
        assert single_expression("2 * 3").operator == BinaryOp.MUL


class TestFunctions:
    def test_declaration_and_call(self):
        program = analyze_source("ignite add(a, b) | serve a + b | roar add(1, 2)")
        declaration, printed = program.statements
        assert declaration.param_names == ("a", "b")
        assert declaration.return_type == NUMBER
        call = printed.value
        assert call.defid == declaration.defid
        assert call.type == NUMBER

    def test_return_type_from_serve(self):
        program = analyze_source("ignite greet() | serve -hi- | x = greet()")
        assert program.statements[1].target.type == STRING

    def test_disagreeing_returns_are_unknown(self):
        program = analyze_source(
            "ignite pick(n) | if (n > 0) | serve 1 | serve -none- |"
        )
        assert program.statements[0].return_type == UNKNOWN

    def test_without_serve_call_is_number(self):
        program = analyze_source("ignite shout() | roar 1 | x = shout()")
        assert program.statements[0].return_type is None
        assert program.statements[1].target.type == NUMBER

    def test_recursion_resolves(self):
        program = analyze_source("ignite fact(n) | if (n < 2) | serve 1 | serve n * fact(n - 1) |")
        assert program.statements[0].name == "fact"

    def test_parameters_are_numbers(self):
        err = _error("ignite f(a) | serve a + true |")
        assert "Cannot apply + to number and boolean" in err.message

    def test_redeclaration(self):
        err = _error("ignite f() | serve 1 | ignite f() | serve 2 |")
        assert "Variable already declared: f" in err.message

    def test_duplicate_parameter(self):
        err = _error("ignite f(a, a) | serve a |")
        assert "Variable already declared: a" in err.message

    def test_calling_a_variable(self):
        err = _error("x = 1 x()")
        assert "Not a function" in err.message

    def test_calling_undeclared(self):
        err = _error("missing()")
        assert "Variable 'missing' not declared" in err.message

    def test_arity(self):
        err = _error("ignite f(a) | serve a | roar f(1, 2)")
        assert "Expected 1 argument(s) but 2 passed" in err.message

    def test_builtin_call(self):
        call = single_expression("sqrt(16)")
        assert call.defid.krate == BUILTIN_CRATE
        assert call.type == NUMBER

    def test_builtin_arity(self):
        err = _error("roar pow(2)")
        assert "Expected 2 argument(s) but 1 passed" in err.message

    def test_return_outside_function(self):
        err = _error("serve 1")
        assert "Return statement outside function" in err.message

    def test_return_inside_loop_inside_function(self):
        program = analyze_source("ignite f(n) | Prowl i in range(n) | serve i | serve 0 |")
        assert program.statements[0].kind == NodeType.FUNCTION_DECLARATION


class TestControlFlow:
    def test_else_chain_is_nested(self):
        statement = analyze_source(
            "x = 1 if (x < 1) | roar 1 | else (x < 2) | roar 2 | otherwise | roar 3 |"
        ).statements[1]
        assert statement.kind == NodeType.IF_STATEMENT
        nested = statement.alternate
        assert nested.kind == NodeType.IF_STATEMENT
        assert nested.alternate.kind == NodeType.BLOCK

    def test_mismatched_branch_types(self):
        err = _error("x = 1 if (x < 1) | y = 1 | otherwise | y = -one- |")
        assert "Mismatched types in if-else branches" in err.message

    def test_matching_branch_types(self):
        program = analyze_source("x = 1 if (x < 1) | y = 1 | otherwise | y = 2 |")
        assert program.statements[1].alternate.kind == NodeType.BLOCK

    def test_break_outside_loop(self):
        err = _error("break")
        assert "Break can only appear in a loop" in err.message

    def test_break_inside_if_inside_loop(self):
        program = analyze_source("Prowl i in range(5) | if (i == 3) | break | |")
        assert program.statements[0].kind == NodeType.WHILE_STATEMENT

    def test_loop_flag_does_not_reach_nested_function(self):
        err = _error("Prowl i in range(5) | ignite f() | break | |")
        assert "Break can only appear in a loop" in err.message

    def test_loop_variable_binding(self):
        loop = first_statement("Prowl i in range(3) | roar i |")
        assert loop.variable.type == NUMBER
        assert loop.body.statements[0].value.defid == loop.variable.defid

    def test_negative_range(self):
        err = _error("Prowl i in range(-1) | roar i |")
        assert "Range requires non-negative value" in err.message

    def test_string_range(self):
        err = _error("Prowl i in range(-ten-) | roar i |")
        assert "Range requires a number" in err.message

    def test_literal_loop_variable(self):
        err = _error("Prowl 5 in range(3) | |")
        assert "Invalid loop variable" in err.message

    def test_loop_variable_is_scoped_to_loop(self):
        err = _error("Prowl i in range(3) | | roar i")
        assert "Variable 'i' not declared" in err.message


class TestAnalyzerInstances:
    def test_each_run_allocates_fresh_defids(self):
        first = analyze_source("x = 1")
        second = analyze_source("x = 1")
        assert first.statements[0].target.defid == second.statements[0].target.defid

    def test_resolver_counts_prelude_and_program(self):
        analyzer = Analyzer("<test>", "x = 1")
        before = len(analyzer.resolver)
        analyzer.visit(parse("x = 1"))
        assert len(analyzer.resolver) == before + 1

"""
Scope chain, DefIds and types.
"""

import pytest

from lioncode.shared.defid import BUILTIN_CRATE, LOCAL_CRATE, DefId, DefType, Resolver, is_builtin
from lioncode.shared.scope import Binding, BindingType, Context, ScopeKind
from lioncode.shared.types import (
    NUMBER, STRING, UNKNOWN, ComparisonOp, FunctionType, primitive, unify_return_types,
)


def _binding(name: str, binding_type=BindingType.VARIABLE) -> Binding:
    return Binding(name, binding_type, None, None, NUMBER)


class TestContext:
    def test_lookup_walks_parents(self):
        root = Context(None, ScopeKind.MODULE)
        root.define("x", _binding("x"))
        inner = root.child(ScopeKind.BLOCK).child(ScopeKind.BLOCK)
        assert inner.lookup("x").name == "x"
        assert not inner.defined_in_this_scope("x")
        assert inner.lookup("y") is None

    def test_inner_binding_shadows(self):
        root = Context(None, ScopeKind.MODULE)
        root.define("x", _binding("x"))
        inner = root.child(ScopeKind.FUNCTION)
        inner.define("x", _binding("x", BindingType.PARAMETER))
        assert inner.lookup("x").binding_type == BindingType.PARAMETER

    def test_flags_are_inherited(self):
        root = Context(None, ScopeKind.MODULE, loop_flag=False, function_flag=False)
        loop = root.child(ScopeKind.LOOP, in_loop=True)
        block = loop.child(ScopeKind.BLOCK)
        assert block.in_loop and not block.in_function

    def test_function_frame_hides_enclosing_loop(self):
        loop = Context(None, ScopeKind.LOOP, loop_flag=True)
        function = loop.child(ScopeKind.FUNCTION, in_loop=False, in_function=True)
        assert not function.child(ScopeKind.BLOCK).in_loop
        assert function.in_function

    def test_flags_default_to_false(self):
        assert not Context(None, ScopeKind.MODULE).in_loop

    def test_enclosing(self):
        function = Context(None, ScopeKind.FUNCTION)
        block = function.child(ScopeKind.LOOP).child(ScopeKind.BLOCK)
        assert block.enclosing(ScopeKind.FUNCTION) is function
        assert block.enclosing(ScopeKind.BUILTIN) is None

    def test_callable_binding_types(self):
        assert BindingType.FUNCTION.is_callable and BindingType.BUILTIN.is_callable
        assert not BindingType.LOOP_VARIABLE.is_callable


class TestResolver:
    def test_indices_increase_per_crate(self):
        resolver = Resolver()
        a = resolver.allocate("a", DefType.VARIABLE)
        sqrt = resolver.allocate("sqrt", DefType.BUILTIN)
        b = resolver.allocate("b", DefType.FUNCTION)
        assert (a, b) == (DefId(LOCAL_CRATE, 0), DefId(LOCAL_CRATE, 1))
        assert sqrt == DefId(BUILTIN_CRATE, 0)
        assert is_builtin(sqrt) and not is_builtin(a) and not is_builtin(None)

    def test_query(self):
        resolver = Resolver()
        defid = resolver.allocate("i", DefType.LOOP_VARIABLE)
        assert resolver.query(defid) == (DefType.LOOP_VARIABLE, "i")
        assert resolver.query(DefId(5, 5)) is None
        assert len(resolver) == 1


class TestTypes:
    def test_primitive_lookup(self):
        assert primitive("number") is NUMBER
        assert primitive(None) is UNKNOWN
        with pytest.raises(ValueError):
            primitive("tuple")

    def test_function_type(self):
        signature = FunctionType((NUMBER, NUMBER), None)
        assert signature.arity == 2
        assert signature.result_type == NUMBER
        assert str(signature) == "(number, number) -> number"

    def test_unify_return_types(self):
        assert unify_return_types([]) is None
        assert unify_return_types([STRING, STRING]) == STRING
        assert unify_return_types([STRING, NUMBER]) == UNKNOWN

    @pytest.mark.parametrize("source, op", [
        ("is less than", ComparisonOp.LT),
        ("is\tgreater  than", ComparisonOp.GT),
        ("is equal to", ComparisonOp.EQ),
        (">=", ComparisonOp.GE),
    ])
    def test_comparison_from_source(self, source, op):
        assert ComparisonOp.from_source(source) == op

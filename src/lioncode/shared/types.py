"""
Type System

LionCode values have one of three primitive types; ``unknown`` marks
expressions whose type cannot be determined statically (e.g. a function
whose ``serve`` statements disagree). Functions carry a ``FunctionType``
in the scope chain but are never values of an expression.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class TypeKind(Enum):
    PRIMITIVE = "primitive"
    FUNCTION = "function"


@dataclass(frozen=True)
class Type:
    """Base of all types; immutable and hashable."""
    kind: TypeKind


@dataclass(frozen=True)
class PrimitiveType(Type):
    """number, string, boolean or unknown"""
    name: str

    def __init__(self, name: str):
        super().__init__(kind=TypeKind.PRIMITIVE)
        object.__setattr__(self, 'name', name)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return self.name

    @property
    def is_known(self) -> bool:
        return self.name != "unknown"


NUMBER = PrimitiveType("number")
STRING = PrimitiveType("string")
BOOLEAN = PrimitiveType("boolean")
UNKNOWN = PrimitiveType("unknown")

_PRIMITIVES = {t.name: t for t in (NUMBER, STRING, BOOLEAN, UNKNOWN)}


def primitive(name: Union[str, PrimitiveType, None]) -> PrimitiveType:
    """Resolve a type name ("number", ...) to its singleton; None means unknown."""
    if name is None:
        return UNKNOWN
    if isinstance(name, PrimitiveType):
        return name
    try:
        return _PRIMITIVES[name]
    except KeyError:
        raise ValueError(f"Unknown primitive type: {name}") from None


@dataclass(frozen=True)
class FunctionType(Type):
    """
    Signature of a declared or built-in function.

    ``return_type`` is None while the function has no ``serve`` statement
    (callers then treat the result as a number).
    """
    param_types: Tuple[PrimitiveType, ...]
    return_type: Optional[PrimitiveType]

    def __init__(self, param_types: Tuple[PrimitiveType, ...], return_type: Optional[PrimitiveType]):
        super().__init__(kind=TypeKind.FUNCTION)
        object.__setattr__(self, 'param_types', tuple(param_types))
        object.__setattr__(self, 'return_type', return_type)

    @property
    def arity(self) -> int:
        return len(self.param_types)

    @property
    def result_type(self) -> PrimitiveType:
        return self.return_type if self.return_type is not None else NUMBER

    def __str__(self) -> str:
        params = ", ".join(str(t) for t in self.param_types)
        return f"({params}) -> {self.result_type}"


def unify_return_types(types) -> Optional[PrimitiveType]:
    """
    Common type of a function's ``serve`` expressions.

    None when there are none, ``unknown`` when they disagree.
    """
    distinct = set(types)
    if not distinct:
        return None
    if len(distinct) == 1:
        return distinct.pop()
    return UNKNOWN


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------

class BinaryOp(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    AND = "and"
    OR = "or"
    SHL = "<<"
    SHR = ">>"

    @property
    def is_logical(self) -> bool:
        return self in (BinaryOp.AND, BinaryOp.OR)

    @property
    def is_shift(self) -> bool:
        return self in (BinaryOp.SHL, BinaryOp.SHR)


class ComparisonOp(Enum):
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="

    @property
    def is_equality(self) -> bool:
        return self in (ComparisonOp.EQ, ComparisonOp.NE)

    @classmethod
    def from_source(cls, text: Union[str, "ComparisonOp"]) -> "ComparisonOp":
        """Canonical operator for a symbol or a keyword phrase ("is less than")."""
        if isinstance(text, ComparisonOp):
            return text
        phrase = " ".join(str(text).split())
        return _COMPARISON_PHRASES.get(phrase) or cls(phrase)


_COMPARISON_PHRASES = {
    "is less than": ComparisonOp.LT,
    "is greater than": ComparisonOp.GT,
    "is equal to": ComparisonOp.EQ,
}


class UnaryOp(Enum):
    NEG = "-"
    NOT = "!"

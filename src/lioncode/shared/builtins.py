"""
Built-in function prelude.

Every program sees these names in the root scope. They take and return
numbers, are emitted as ``Math.<name>`` calls and are folded by the
optimizer when every argument is a number literal.
"""

import math
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union

from .types import NUMBER, FunctionType

Number = Union[int, float]


def normalize_number(value: Number) -> Number:
    """Integral floats become ints, so 4.0 prints and compares like 4."""
    if isinstance(value, float) and value.is_integer() and abs(value) < 2 ** 53:
        return int(value)
    return value


def _js_round(x: Number) -> Optional[Number]:
    # Halves round up; x - floor(x) is exact, x + 0.5 is not.
    if -0.5 <= x < 0:
        return None
    down = math.floor(x)
    return down + 1 if x - down >= 0.5 else down


def _js_ceil(x: Number) -> Optional[Number]:
    return None if -1 < x < 0 else math.ceil(x)


def _js_pow(base: Number, exponent: Number) -> Optional[Number]:
    try:
        return math.pow(base, exponent)
    except (ValueError, OverflowError):
        return None


def _js_sqrt(x: Number) -> Optional[Number]:
    return math.sqrt(x) if x >= 0 else None


@dataclass(frozen=True)
class BuiltinFunction:
    name: str
    arity: int
    js_name: str
    evaluate: Callable[..., Optional[Number]]

    @property
    def signature(self) -> FunctionType:
        return FunctionType((NUMBER,) * self.arity, NUMBER)

    def fold(self, *args: Number) -> Optional[Number]:
        """Result for literal arguments, or None when JavaScript would print it differently."""
        result = self.evaluate(*args)
        if result is None or not math.isfinite(result):
            return None
        if result == 0 and math.copysign(1.0, result) < 0:
            return None
        if isinstance(result, int) and abs(result) > 2 ** 53:
            return None
        return normalize_number(result)


BUILTIN_FUNCTIONS: Dict[str, BuiltinFunction] = {
    fn.name: fn for fn in (
        BuiltinFunction("sqrt", 1, "Math.sqrt", _js_sqrt),
        BuiltinFunction("abs", 1, "Math.abs", abs),
        BuiltinFunction("floor", 1, "Math.floor", math.floor),
        BuiltinFunction("ceil", 1, "Math.ceil", _js_ceil),
        BuiltinFunction("round", 1, "Math.round", _js_round),
        BuiltinFunction("pow", 2, "Math.pow", _js_pow),
        BuiltinFunction("min", 2, "Math.min", min),
        BuiltinFunction("max", 2, "Math.max", max),
    )
}


"""
Backend Interface

A backend renders an optimized ``Program`` as source text of one target
dialect. Backends only read the AST.
"""

from abc import ABC, abstractmethod

from ..shared.nodes import Program


class Backend(ABC):
    """Code generator for a single target dialect."""

    target: str = ""

    @abstractmethod
    def codegen(self, program: Program) -> str:
        """
        Generate target code for ``program``.

        Must not raise for a program that passed analysis.
        """
        raise NotImplementedError

"""
AST-to-AST optimization.
"""

from .optimizer import Optimizer, optimize

__all__ = ["Optimizer", "optimize"]

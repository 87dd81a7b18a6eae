"""
Semantic analysis: name resolution, type inference and language rules.
"""

from .analyzer import Analyzer, analyze

__all__ = ["Analyzer", "analyze"]

from .driver import CompilationResult, CompilerDriver, compile_source

__all__ = ["CompilationResult", "CompilerDriver", "compile_source"]

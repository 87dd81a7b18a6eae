"""
Shared components: AST nodes and their factories, types, scopes, DefIds
and diagnostics used by every stage of the pipeline.
"""

from .defid import DefId, DefType, Resolver
from .source_location import SourceLocation
from .errors import (
    Error, ErrorReporter, LionCodeError, LionCodeSourceError, LionCodeImplementationError,
    ParseError, SemanticError, TypeCheckError, UnsupportedTargetError,
)
from .types import (
    Type, TypeKind, PrimitiveType, FunctionType,
    NUMBER, STRING, BOOLEAN, UNKNOWN,
    BinaryOp, ComparisonOp, UnaryOp,
)
from .nodes import (
    ASTNode, Expression, Statement, NodeType,
    Program, Block, AssignmentStatement, PrintStatement, FunctionDeclaration,
    ReturnStatement, IfStatement, WhileStatement, BreakStatement, Comment,
    BinaryExpression, ComparisonExpression, UnaryExpression, Identifier,
    NumberLiteral, StringLiteral, BooleanLiteral, FunctionCall, RangeExpression,
)
from .ast_visitor import ASTVisitor

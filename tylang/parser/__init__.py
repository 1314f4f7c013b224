"""
tylang Parser Package

Recursive descent parser with precedence climbing for binary operators.
Produces the closed expression AST consumed by the backends.

Author: xwest
"""

from .ast_nodes import *
from .parser import Parser, parse_expression_string, parse_prototype_string
from .errors import ParseError, Diagnostic

__all__ = [
    # Core parser
    "Parser",
    "parse_expression_string",
    "parse_prototype_string",

    # AST nodes
    "ASTNode", "ASTNodeType", "ASTVisitor", "Expression",
    "NumberLiteral", "VariableRef", "BinaryOp", "Call",
    "Prototype", "FunctionDef",
    "ANONYMOUS_FUNCTION_NAME", "EXPRESSION_TYPES", "format_ast",

    # Error handling
    "ParseError", "Diagnostic",
]

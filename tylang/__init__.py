"""
tylang Language Package

A small expression language with a streaming lexer, a precedence-climbing
parser and an incremental top-level driver that compiles every unit with
LLVM (or evaluates it in Python) as soon as it is read.

Architecture:
    tylang/
    ├── lexer/           # Character stream -> tokens
    ├── parser/          # Tokens -> AST, precedence climbing
    ├── session.py       # Operator precedences and known prototypes
    ├── backend/         # LLVM code generation and tree-walking evaluator
    ├── jit/             # MCJIT engine for handed-off units
    └── driver/          # Read-parse-codegen-execute loop

Author: xwest
License: MIT
"""

__version__ = "0.1.0"
__author__ = "xwest"
__license__ = "MIT"

from .lexer import Lexer, Token, TokenType
from .parser import Parser, ParseError, format_ast
from .session import Session
from .backend import Backend, LLVMBackend, EvaluatorBackend, CodegenError, ExecutionError
from .driver import TopLevelDriver, DriverOptions, run_source

__all__ = [
    # Front end
    "Lexer",
    "Token",
    "TokenType",
    "Parser",
    "ParseError",
    "format_ast",
    "Session",

    # Backends
    "Backend",
    "LLVMBackend",
    "EvaluatorBackend",
    "CodegenError",
    "ExecutionError",

    # Driver
    "TopLevelDriver",
    "DriverOptions",
    "run_source",

    # Version info
    "__version__",
]

"""
Error types raised at the backend boundary.

CodegenError covers resolution problems found while turning an AST into
code (unknown names, arity mismatches, redefinitions). ExecutionError
covers problems running compiled code.
"""

from typing import Optional

from ..lexer.tokens import SourceLocation
from ..parser.errors import Diagnostic


class BackendError(Exception):
    """Base class for backend failures; carries a Diagnostic like ParseError."""

    def __init__(self, message: str, code: Optional[str] = None,
                 location: Optional[SourceLocation] = None,
                 help_text: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.diagnostic = Diagnostic(
            message=message,
            location=location,
            severity="error",
            code=code,
            help_text=help_text,
        )

    @property
    def code(self) -> Optional[str]:
        return self.diagnostic.code

    def __str__(self) -> str:
        return str(self.diagnostic)


class CodegenError(BackendError):
    """Raised when an AST cannot be compiled."""
    pass


class ExecutionError(BackendError):
    """Raised when compiled code cannot be run."""
    pass


BACKEND_ERROR_CODES = {
    "C000": "Module verification failed",
    "C001": "Unknown variable name",
    "C002": "Unknown function referenced",
    "C003": "Incorrect number of arguments passed",
    "C004": "Invalid binary operator",
    "C005": "Function cannot be redefined",
    "C006": "Duplicate parameter name",
    "C007": "Conflicting declaration",
    "E001": "Unresolved external symbol",
    "E002": "Evaluation failed",
}


def unknown_variable(name: str, location: Optional[SourceLocation] = None) -> CodegenError:
    return CodegenError(
        f"Unknown variable name '{name}'", "C001", location,
        help_text="Only the parameters of the enclosing function are in scope."
    )


def unknown_function(name: str, location: Optional[SourceLocation] = None) -> CodegenError:
    return CodegenError(
        f"Unknown function referenced '{name}'", "C002", location,
        help_text="Define it with 'def' or declare it with 'extern' first."
    )


def arity_mismatch(name: str, expected: int, got: int,
                   location: Optional[SourceLocation] = None) -> CodegenError:
    return CodegenError(
        f"Incorrect number of arguments passed to '{name}': expected {expected}, got {got}",
        "C003", location
    )


def invalid_operator(op: str, location: Optional[SourceLocation] = None) -> CodegenError:
    return CodegenError(
        f"Invalid binary operator '{op}'", "C004", location,
        help_text="Only '+', '-', '*' and '<' have a meaning."
    )


def redefinition(name: str, location: Optional[SourceLocation] = None) -> CodegenError:
    return CodegenError(f"Function '{name}' cannot be redefined", "C005", location)


def duplicate_parameter(function: str, param: str,
                        location: Optional[SourceLocation] = None) -> CodegenError:
    return CodegenError(
        f"Duplicate parameter name '{param}' in prototype of '{function}'", "C006", location
    )


def conflicting_declaration(name: str, existing: int, requested: int,
                            location: Optional[SourceLocation] = None) -> CodegenError:
    return CodegenError(
        f"Conflicting declaration of '{name}': already declared with "
        f"{existing} parameter(s), now {requested}", "C007", location
    )


def unresolved_symbols(names, function: Optional[str] = None) -> ExecutionError:
    listed = ", ".join(f"'{n}'" for n in sorted(names))
    where = f" needed by '{function}'" if function else ""
    return ExecutionError(
        f"Unresolved external symbol(s) {listed}{where}", "E001",
        help_text="Define the function with 'def' before evaluating code that calls it."
    )

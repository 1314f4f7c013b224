"""
Error handling for the tylang parser.

Parse failures raise ParseError carrying a Diagnostic with the source
location, an error code and help text. The driver reports the diagnostic
and carries on with the next top-level unit.

Author: xwest
"""

from typing import Optional, List
from dataclasses import dataclass

from ..lexer.tokens import Token, SourceLocation


@dataclass
class Diagnostic:
    """A single error/warning message with its location."""
    message: str
    location: Optional[SourceLocation]
    severity: str  # "error", "warning", "info"
    code: Optional[str] = None
    help_text: Optional[str] = None
    suggestions: Optional[List[str]] = None

    def __str__(self) -> str:
        severity_prefix = self.severity.upper()
        code = f"[{self.code}]" if self.code else ""
        result = f"{severity_prefix}{code}: {self.message}\n"
        if self.location is not None:
            result += f"  --> {self.location}\n"

        if self.help_text:
            result += f"  help: {self.help_text}\n"

        if self.suggestions:
            result += "  suggestions:\n"
            for suggestion in self.suggestions:
                result += f"    - {suggestion}\n"

        return result


class ParseError(Exception):
    """
    Exception raised when the parser cannot build a node.

    The token position is left wherever the failure was detected.
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation],
        token: Optional[Token] = None,
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(message)
        self.message = message
        self.diagnostic = Diagnostic(
            message=message,
            location=location,
            severity="error",
            code=code,
            help_text=help_text,
            suggestions=suggestions
        )
        self.token = token

    @property
    def code(self) -> Optional[str]:
        return self.diagnostic.code

    def __str__(self) -> str:
        return str(self.diagnostic)


# Parser error codes
PARSER_ERROR_CODES = {
    "P001": "Unexpected token where an expression was expected",
    "P002": "Expected ')'",
    "P003": "Expected ')' or ',' in argument list",
    "P004": "Expected function name in prototype",
    "P005": "Expected '(' in prototype",
    "P006": "Expected ')' in prototype",
}


# Helper functions for creating common parser errors

def create_unexpected_token_error(found: Token) -> ParseError:
    """Create an error for a token that cannot start an expression."""
    return ParseError(
        message="Unknown token when expecting an expression",
        location=found.location,
        token=found,
        code="P001",
        help_text=f"Found {found}; an expression starts with a number, an identifier or '('."
    )


def create_missing_paren_error(found: Token) -> ParseError:
    """Create an error for a parenthesized expression that is not closed."""
    return ParseError(
        message="Expected ')'",
        location=found.location,
        token=found,
        code="P002",
        help_text=f"Found {found} after the parenthesized expression.",
        suggestions=["Add a closing ')'"]
    )


def create_bad_argument_list_error(found: Token) -> ParseError:
    """Create an error for a malformed call argument list."""
    return ParseError(
        message="Expected ')' or ',' in argument list",
        location=found.location,
        token=found,
        code="P003",
        help_text="Call arguments are separated by commas.",
        suggestions=["Separate arguments with ','", "Close the call with ')'"]
    )


def create_prototype_error(code: str, found: Token) -> ParseError:
    """Create an error for a malformed prototype."""
    help_texts = {
        "P004": "A prototype starts with the function name, e.g. foo(a b).",
        "P005": "The function name must be followed by '('.",
        "P006": "Parameter names are identifiers separated by whitespace, not commas.",
    }
    return ParseError(
        message=f"{PARSER_ERROR_CODES[code]}",
        location=found.location,
        token=found,
        code=code,
        help_text=help_texts.get(code)
    )

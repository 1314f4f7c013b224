"""
Token definitions for the tylang lexer.

The language has very few token kinds:
- end of input
- the two command keywords (``def``, ``extern``)
- identifiers and number literals
- single characters (operators, parentheses, comma, semicolon, ...)

Author: xwest
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """Enumeration of all token types in tylang."""

    EOF = auto()                    # End of input

    # Commands
    DEF = auto()                    # def
    EXTERN = auto()                 # extern

    # Primary
    IDENTIFIER = auto()             # foo, x1
    NUMBER = auto()                 # 1, 2.5, .5

    # Any other single character, returned verbatim (+, (, ;, ...)
    CHAR = auto()


@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in the source code.

    Used for error reporting and debugging information.
    """
    filename: str
    line: int
    column: int
    offset: int  # Character offset from start of input

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"

    def __repr__(self) -> str:
        return f"SourceLocation({self.filename!r}, {self.line}, {self.column}, {self.offset})"


@dataclass(frozen=True)
class Token:
    """
    Represents a lexical token.

    Contains the token type, lexeme (raw text), semantic value
    and source location.
    """
    type: TokenType
    lexeme: str                     # Raw text from source
    value: Any                      # float for NUMBER, str for IDENTIFIER and CHAR
    location: SourceLocation

    def __str__(self) -> str:
        if self.type == TokenType.CHAR:
            return repr(self.lexeme)
        if self.type == TokenType.EOF:
            return "end of input"
        return f"{self.type.name.lower()} {self.lexeme!r}"

    def __repr__(self) -> str:
        return (f"Token({self.type.name}, {self.lexeme!r}, "
                f"{self.value!r}, {self.location!r})")

    def is_char(self, char: Optional[str] = None) -> bool:
        """Check if this is a single-character token (optionally a specific one)."""
        if self.type != TokenType.CHAR:
            return False
        return char is None or self.lexeme == char

    @property
    def is_identifier(self) -> bool:
        return self.type == TokenType.IDENTIFIER


KEYWORDS = {
    "def": TokenType.DEF,
    "extern": TokenType.EXTERN,
}

COMMENT_CHAR = "#"

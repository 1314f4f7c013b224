"""
tylang Lexer Package

Streaming lexical analyzer for tylang. Reads one character at a time so
it can sit directly on an interactive stdin.

Author: xwest
"""

from .tokens import Token, TokenType, SourceLocation, KEYWORDS
from .lexer import Lexer, tokenize_string, tokenize_file, parse_number_lexeme

__all__ = [
    "Lexer",
    "Token",
    "TokenType",
    "SourceLocation",
    "KEYWORDS",
    "tokenize_string",
    "tokenize_file",
    "parse_number_lexeme",
]

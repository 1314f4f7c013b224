"""
tylang Lexer - turns a character stream into tokens

The lexer is a one-directional cursor: it reads one character at a time
from a text stream and keeps exactly one character of lookahead. This lets
the driver work on an interactive stdin where the rest of the input does
not exist yet.

xwest
"""

import re
from io import StringIO
from typing import List, Optional, TextIO

from .tokens import Token, TokenType, SourceLocation, KEYWORDS, COMMENT_CHAR


# Longest prefix a C strtod() would accept for the [0-9.]+ runs we collect
_NUMBER_PREFIX = re.compile(r'\d+\.?\d*|\.\d+')


def _is_alpha(char: str) -> bool:
    return char.isascii() and char.isalpha()


def _is_digit(char: str) -> bool:
    return char.isascii() and char.isdigit()


def parse_number_lexeme(lexeme: str) -> float:
    """
    Convert an accumulated run of digits and dots to a float.

    Runs like ``3.4.5`` are over-accepted: the longest valid prefix wins
    (3.4), and a run with no valid prefix (``.``) is 0.0.
    """
    match = _NUMBER_PREFIX.match(lexeme)
    if not match:
        return 0.0
    return float(match.group(0))


class Lexer:
    """
    tylang lexical analyzer.

    Call ``next_token()`` to advance; the last returned token is also
    available as ``current``.
    """

    def __init__(self, stream: TextIO, filename: str = "<stdin>"):
        """
        Initialize the lexer over a text stream.

        Args:
            stream: Any object with a ``read(1)`` method
            filename: Name of the input for error reporting
        """
        self.stream = stream
        self.filename = filename
        self.line = 1
        self.column = 0
        self.offset = -1
        self.current: Optional[Token] = None

        # One character of lookahead; '' means end of input
        self._last_char = ' '

    @classmethod
    def from_string(cls, source: str, filename: str = "<string>") -> 'Lexer':
        return cls(StringIO(source), filename)

    def _read_char(self) -> str:
        """Read the next character from the stream, tracking the location."""
        char = self.stream.read(1)
        if not char:
            return ''

        self.offset += 1
        if self._last_char == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return char

    def _location(self) -> SourceLocation:
        return SourceLocation(self.filename, self.line, self.column, self.offset)

    def next_token(self) -> Token:
        """Advance the stream and return the next token."""
        self.current = self._lex()
        return self.current

    def _skip_whitespace_and_comments(self):
        """Skip whitespace runs and '#' comments up to end of line."""
        while True:
            while self._last_char and self._last_char.isspace():
                self._last_char = self._read_char()

            if self._last_char != COMMENT_CHAR:
                return

            while self._last_char not in ('', '\n', '\r'):
                self._last_char = self._read_char()

    def _lex(self) -> Token:
        self._skip_whitespace_and_comments()
        location = self._location()

        # Identifier: [a-zA-Z][a-zA-Z0-9]*
        if _is_alpha(self._last_char):
            chars = [self._last_char]
            self._last_char = self._read_char()
            while _is_alpha(self._last_char) or _is_digit(self._last_char):
                chars.append(self._last_char)
                self._last_char = self._read_char()

            lexeme = ''.join(chars)
            token_type = KEYWORDS.get(lexeme, TokenType.IDENTIFIER)
            value = lexeme if token_type == TokenType.IDENTIFIER else None
            return Token(token_type, lexeme, value, location)

        # Number: [0-9.]+
        if _is_digit(self._last_char) or self._last_char == '.':
            chars = []
            while _is_digit(self._last_char) or self._last_char == '.':
                chars.append(self._last_char)
                self._last_char = self._read_char()

            lexeme = ''.join(chars)
            return Token(TokenType.NUMBER, lexeme, parse_number_lexeme(lexeme), location)

        if not self._last_char:
            return Token(TokenType.EOF, "", None, location)

        this_char = self._last_char
        self._last_char = self._read_char()
        return Token(TokenType.CHAR, this_char, this_char, location)

    def tokenize(self) -> List[Token]:
        """
        Drain the rest of the stream.

        Returns:
            List of tokens including the final EOF token
        """
        tokens = [self.next_token()]
        while tokens[-1].type != TokenType.EOF:
            tokens.append(self.next_token())
        return tokens


def tokenize_string(source: str, filename: str = "<string>") -> List[Token]:
    """
    Convenience function to tokenize a source string.

    Args:
        source: Source code string
        filename: Filename for error reporting

    Returns:
        List of tokens
    """
    return Lexer.from_string(source, filename).tokenize()


def tokenize_file(filepath: str) -> List[Token]:
    """Convenience function to tokenize a source file."""
    with open(filepath, 'r', encoding='utf-8') as f:
        return Lexer(f, filepath).tokenize()

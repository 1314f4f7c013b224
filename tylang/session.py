"""
Session state for one tylang run.

Holds the binary operator precedence table and the registry of known
prototypes. A Session is created by the driver and shared with the parser
(precedence lookups) and the backend (function resolution).
"""

from typing import Dict, Optional

from .lexer.tokens import Token, TokenType
from .parser.ast_nodes import Prototype


DEFAULT_PRECEDENCE = {
    '<': 10,
    '+': 20,
    '-': 30,
    '*': 40,
}

# Characters the grammar already gives a meaning to
_RESERVED_CHARS = set("(),;#.")


class Session:
    """Mutable context threaded through parsing and driving."""

    def __init__(self, precedence: Optional[Dict[str, int]] = None):
        self.precedence: Dict[str, int] = dict(DEFAULT_PRECEDENCE)
        self.prototypes: Dict[str, Prototype] = {}

        for op, prec in (precedence or {}).items():
            self.register_operator(op, prec)

    def register_operator(self, op: str, precedence: int):
        """
        Add or replace the precedence of a binary operator.

        Raises:
            ValueError: If ``op`` is not a usable single character or
                ``precedence`` is not a positive integer
        """
        if not isinstance(op, str) or len(op) != 1:
            raise ValueError(f"operator must be a single character, got {op!r}")
        if op.isalnum() or op.isspace() or op in _RESERVED_CHARS:
            raise ValueError(f"{op!r} cannot be used as a binary operator")
        if isinstance(precedence, bool) or not isinstance(precedence, int) or precedence <= 0:
            raise ValueError(f"precedence must be a positive integer, got {precedence!r}")
        self.precedence[op] = precedence

    def token_precedence(self, token: Token) -> int:
        """Precedence of ``token`` as a binary operator, or -1 if it is not one."""
        if token.type != TokenType.CHAR:
            return -1
        return self.precedence.get(token.lexeme, -1)

    def record_prototype(self, prototype: Prototype):
        """Remember the latest prototype for ``prototype.name``."""
        self.prototypes[prototype.name] = prototype

    def find_prototype(self, name: str) -> Optional[Prototype]:
        return self.prototypes.get(name)

"""
tylang Parser Implementation

Recursive descent for primaries and top-level units, precedence climbing
for binary expressions. Precedences come from the Session, so operators
registered at run time take part in parsing immediately.

Author: xwest
"""

from typing import List, Optional, TYPE_CHECKING

from ..lexer.lexer import Lexer
from ..lexer.tokens import Token, TokenType
from .ast_nodes import (
    Expression, NumberLiteral, VariableRef, BinaryOp, Call, Prototype, FunctionDef
)
from .errors import (
    ParseError, create_unexpected_token_error, create_missing_paren_error,
    create_bad_argument_list_error, create_prototype_error
)

if TYPE_CHECKING:
    from ..session import Session


class Parser:
    """
    tylang parser.

    Works directly on a Lexer: ``current`` is the token being looked at and
    ``advance()`` moves to the next one. Each ``parse_*`` method either
    returns a node or raises ParseError, leaving the position wherever the
    problem was found.
    """

    def __init__(self, lexer: Lexer, session: Optional['Session'] = None):
        """
        Initialize the parser and prime the first token.

        Args:
            lexer: Token source
            session: Session providing operator precedences; a fresh one
                is created if omitted
        """
        if session is None:
            from ..session import Session
            session = Session()

        self.lexer = lexer
        self.session = session
        self.current: Token = lexer.next_token()

    def advance(self) -> Token:
        """Consume the current token and return the next one."""
        self.current = self.lexer.next_token()
        return self.current

    # Expressions

    def parse_expression(self) -> Expression:
        """expression ::= primary binoprhs"""
        lhs = self.parse_primary()
        return self.parse_binop_rhs(0, lhs)

    def parse_primary(self) -> Expression:
        """primary ::= identifierexpr | numberexpr | parenexpr"""
        token = self.current
        if token.type == TokenType.IDENTIFIER:
            return self.parse_identifier_expr()
        if token.type == TokenType.NUMBER:
            return self.parse_number_expr()
        if token.is_char('('):
            return self.parse_paren_expr()
        raise create_unexpected_token_error(token)

    def parse_number_expr(self) -> NumberLiteral:
        """numberexpr ::= number"""
        token = self.current
        self.advance()
        return NumberLiteral(token.value, token.location)

    def parse_paren_expr(self) -> Expression:
        """parenexpr ::= '(' expression ')'"""
        self.advance()  # Consume (

        expr = self.parse_expression()

        if not self.current.is_char(')'):
            raise create_missing_paren_error(self.current)
        self.advance()  # Consume )

        return expr

    def parse_identifier_expr(self) -> Expression:
        """
        identifierexpr
          ::= identifier
          ::= identifier '(' expression* ')'
        """
        name_token = self.current
        self.advance()  # Consume identifier

        if not self.current.is_char('('):
            return VariableRef(name_token.value, name_token.location)

        self.advance()  # Consume (
        args: List[Expression] = []
        if not self.current.is_char(')'):
            while True:
                args.append(self.parse_expression())

                if self.current.is_char(')'):
                    break

                if not self.current.is_char(','):
                    raise create_bad_argument_list_error(self.current)
                self.advance()

        self.advance()  # Consume )

        return Call(name_token.value, args, name_token.location)

    def parse_binop_rhs(self, min_precedence: int, lhs: Expression) -> Expression:
        """
        binoprhs ::= (binop primary)*

        Folds operators binding at least as tightly as ``min_precedence``
        into ``lhs``. Equal precedence associates to the left.
        """
        while True:
            token_precedence = self.session.token_precedence(self.current)

            if token_precedence < min_precedence:
                return lhs

            operator_token = self.current
            self.advance()  # Consume operator

            rhs = self.parse_primary()

            # If the next operator binds tighter, let it take rhs first
            next_precedence = self.session.token_precedence(self.current)
            if token_precedence < next_precedence:
                rhs = self.parse_binop_rhs(token_precedence + 1, rhs)

            lhs = BinaryOp(operator_token.lexeme, lhs, rhs, operator_token.location)

    # Top-level units

    def parse_prototype(self) -> Prototype:
        """prototype ::= id '(' id* ')'"""
        name_token = self.current
        if name_token.type != TokenType.IDENTIFIER:
            raise create_prototype_error("P004", name_token)
        self.advance()

        if not self.current.is_char('('):
            raise create_prototype_error("P005", self.current)

        params: List[str] = []
        while self.advance().type == TokenType.IDENTIFIER:
            params.append(self.current.value)

        if not self.current.is_char(')'):
            raise create_prototype_error("P006", self.current)
        self.advance()  # Consume )

        return Prototype(name_token.value, params, name_token.location)

    def parse_definition(self) -> FunctionDef:
        """definition ::= 'def' prototype expression"""
        def_token = self.current
        self.advance()  # Consume def
        prototype = self.parse_prototype()
        body = self.parse_expression()
        return FunctionDef(prototype, body, def_token.location)

    def parse_extern(self) -> Prototype:
        """external ::= 'extern' prototype"""
        self.advance()  # Consume extern
        return self.parse_prototype()

    def parse_toplevel_expr(self) -> FunctionDef:
        """toplevelexpr ::= expression"""
        return FunctionDef.anonymous(self.parse_expression())


def parse_expression_string(source: str, session: Optional['Session'] = None) -> Expression:
    """
    Convenience function to parse a single expression.

    Raises:
        ParseError: If the text does not start with a valid expression
    """
    parser = Parser(Lexer.from_string(source), session)
    return parser.parse_expression()


def parse_prototype_string(source: str) -> Prototype:
    """Convenience function to parse a prototype such as ``foo(a b)``."""
    parser = Parser(Lexer.from_string(source))
    return parser.parse_prototype()

"""
Unit tests for the tylang lexer.

Author: xwest
"""

import unittest
import sys
import os
from io import StringIO

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from tylang.lexer.lexer import Lexer, tokenize_string, parse_number_lexeme
from tylang.lexer.tokens import TokenType


class TestLexer(unittest.TestCase):
    """Test tokenization of tylang source."""

    def _types(self, source):
        return [token.type for token in tokenize_string(source)]

    def test_definition_tokens(self):
        tokens = tokenize_string("def foo(x y) x+y")
        self.assertEqual([t.type for t in tokens], [
            TokenType.DEF, TokenType.IDENTIFIER, TokenType.CHAR,
            TokenType.IDENTIFIER, TokenType.IDENTIFIER, TokenType.CHAR,
            TokenType.IDENTIFIER, TokenType.CHAR, TokenType.IDENTIFIER,
            TokenType.EOF,
        ])
        self.assertEqual(tokens[1].value, "foo")
        self.assertEqual(tokens[2].lexeme, "(")
        self.assertEqual(tokens[7].lexeme, "+")

    def test_keywords(self):
        tokens = tokenize_string("def extern define externs")
        self.assertEqual(tokens[0].type, TokenType.DEF)
        self.assertEqual(tokens[1].type, TokenType.EXTERN)
        self.assertEqual(tokens[2].type, TokenType.IDENTIFIER)
        self.assertEqual(tokens[3].type, TokenType.IDENTIFIER)
        self.assertEqual(tokens[3].value, "externs")

    def test_identifiers_with_digits(self):
        tokens = tokenize_string("x1 1x")
        self.assertEqual(tokens[0].type, TokenType.IDENTIFIER)
        self.assertEqual(tokens[0].value, "x1")
        self.assertEqual(tokens[1].type, TokenType.NUMBER)
        self.assertEqual(tokens[1].value, 1.0)
        self.assertEqual(tokens[2].type, TokenType.IDENTIFIER)
        self.assertEqual(tokens[2].value, "x")

    def test_numbers(self):
        tokens = tokenize_string("42 3.25 .5 1.")
        self.assertEqual([t.value for t in tokens[:-1]], [42.0, 3.25, 0.5, 1.0])
        self.assertTrue(all(t.type == TokenType.NUMBER for t in tokens[:-1]))

    def test_malformed_numbers_are_over_accepted(self):
        tokens = tokenize_string("3.4.5")
        self.assertEqual(len(tokens), 2)
        self.assertEqual(tokens[0].type, TokenType.NUMBER)
        self.assertEqual(tokens[0].lexeme, "3.4.5")
        self.assertEqual(tokens[0].value, 3.4)

        self.assertEqual(parse_number_lexeme("."), 0.0)
        self.assertEqual(parse_number_lexeme("..7"), 0.0)
        self.assertEqual(parse_number_lexeme("12..3"), 12.0)

    def test_comments(self):
        self.assertEqual(self._types("# only a comment"), [TokenType.EOF])

        tokens = tokenize_string("1 # one\n2 # two\r3")
        self.assertEqual([t.value for t in tokens[:-1]], [1.0, 2.0, 3.0])

    def test_comment_between_tokens(self):
        tokens = tokenize_string("a #x\n#y\n  b")
        self.assertEqual([t.value for t in tokens[:-1]], ["a", "b"])

    def test_single_characters(self):
        tokens = tokenize_string("(),;<*-%")
        self.assertEqual([t.lexeme for t in tokens[:-1]], list("(),;<*-%"))
        self.assertTrue(all(t.type == TokenType.CHAR for t in tokens[:-1]))
        self.assertTrue(tokens[0].is_char("("))
        self.assertFalse(tokens[0].is_char(")"))

    def test_end_of_input_repeats(self):
        lexer = Lexer.from_string("x")
        self.assertEqual(lexer.next_token().type, TokenType.IDENTIFIER)
        self.assertEqual(lexer.next_token().type, TokenType.EOF)
        self.assertEqual(lexer.next_token().type, TokenType.EOF)

    def test_locations(self):
        tokens = tokenize_string("a\n  bc", filename="test.ty")
        self.assertEqual(tokens[0].location.line, 1)
        self.assertEqual(tokens[0].location.column, 1)
        self.assertEqual(tokens[1].location.line, 2)
        self.assertEqual(tokens[1].location.column, 3)
        self.assertEqual(str(tokens[1].location), "test.ty:2:3")

    def test_reads_one_character_ahead(self):
        stream = StringIO("abc+def")
        lexer = Lexer(stream)

        token = lexer.next_token()
        self.assertEqual(token.value, "abc")
        # Only the '+' lookahead has been consumed past the identifier
        self.assertEqual(stream.tell(), 4)
        self.assertIs(lexer.current, token)

        self.assertTrue(lexer.next_token().is_char("+"))
        self.assertEqual(lexer.next_token().type, TokenType.DEF)


if __name__ == '__main__':
    unittest.main()

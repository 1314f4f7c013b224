"""
Top-level driver for tylang.

Runs the incremental read-parse-codegen-execute loop: every top-level unit
(definition, extern or bare expression) is parsed, handed to the backend
and, for expressions, executed right away. Failures are reported on the
error channel and the loop carries on with the next unit.

Author: xwest
"""

import logging
import sys
from dataclasses import dataclass
from typing import List, Optional, TextIO

from ..lexer.lexer import Lexer
from ..lexer.tokens import TokenType
from ..parser.errors import ParseError
from ..parser.parser import Parser
from ..backend.base import Backend
from ..backend.errors import BackendError
from ..session import Session

logger = logging.getLogger(__name__)


@dataclass
class DriverOptions:
    """Driver configuration"""
    prompt: Optional[str] = "READY> "               # None disables the prompt
    echo_ir: bool = False                           # Print generated code per unit
    report_format: str = "Evaluated to {value:f}"   # Used for every evaluated expression


class TopLevelDriver:
    """
    The interactive loop.

    ``results`` collects the value of every evaluated expression and
    ``errors`` every exception that was reported, in order.
    """

    def __init__(self, lexer: Lexer, backend: Backend,
                 session: Optional[Session] = None,
                 options: Optional[DriverOptions] = None,
                 err: Optional[TextIO] = None):
        self.lexer = lexer
        self.backend = backend
        self.session = session if session is not None else backend.session
        self.options = options or DriverOptions()
        self.err = err if err is not None else sys.stderr

        self.parser: Optional[Parser] = None
        self.results: List[float] = []
        self.errors: List[Exception] = []

    def _write(self, text: str):
        self.err.write(text)
        self.err.flush()

    def _report(self, error: Exception):
        self.errors.append(error)
        message = str(error)
        if not message.endswith("\n"):
            message += "\n"
        self._write(message)

    def _prompt(self):
        if self.options.prompt:
            self._write(self.options.prompt)

    def run(self) -> List[float]:
        """Process top-level units until end of input."""
        while self.step():
            pass
        return self.results

    def step(self) -> bool:
        """
        Process exactly one top-level unit.

        Returns:
            False once end of input is reached, True otherwise
        """
        self._prompt()
        if self.parser is None:
            # Reading the first token blocks, so only do it after the prompt
            self.parser = Parser(self.lexer, self.session)

        token = self.parser.current
        if token.type == TokenType.EOF:
            return False
        if token.is_char(';'):
            self.parser.advance()  # Ignore top-level semicolons
        elif token.type == TokenType.DEF:
            self.handle_definition()
        elif token.type == TokenType.EXTERN:
            self.handle_extern()
        else:
            self.handle_toplevel_expression()
        return True

    def _skip_after_parse_error(self, error: ParseError):
        self._report(error)
        # Skip token for error recovery
        self.parser.advance()

    def _echo(self, handle):
        if self.options.echo_ir:
            text = self.backend.dump(handle)
            self._write(text if text.endswith("\n") else text + "\n")

    def handle_definition(self):
        try:
            function = self.parser.parse_definition()
        except ParseError as e:
            self._skip_after_parse_error(e)
            return
        logger.info("Parsed a function definition")

        try:
            handle = self.backend.define(function)
            self._echo(handle)
            self.backend.finalize_unit()
        except BackendError as e:
            self._report(e)
            return

        self.session.record_prototype(function.prototype)

    def handle_extern(self):
        try:
            prototype = self.parser.parse_extern()
        except ParseError as e:
            self._skip_after_parse_error(e)
            return
        logger.info("Parsed an extern")

        try:
            handle = self.backend.declare(prototype)
        except BackendError as e:
            self._report(e)
            return

        self._echo(handle)
        self.session.record_prototype(prototype)

    def handle_toplevel_expression(self) -> Optional[float]:
        # Evaluate a top-level expression into an anonymous function
        try:
            function = self.parser.parse_toplevel_expr()
        except ParseError as e:
            self._skip_after_parse_error(e)
            return None
        logger.info("Parsed a top-level expr")

        try:
            handle = self.backend.define(function)
            self._echo(handle)
            unit = self.backend.finalize_unit()
        except BackendError as e:
            self._report(e)
            return None

        try:
            value = self.backend.execute(handle)
        except BackendError as e:
            self._report(e)
            return None
        finally:
            # The anonymous unit is only needed for this one call
            self.backend.release(unit)

        self.results.append(value)
        self._write(self.options.report_format.format(value=value) + "\n")
        return value


def run_source(source: str, backend: Backend, options: Optional[DriverOptions] = None,
               err: Optional[TextIO] = None) -> TopLevelDriver:
    """Run every top-level unit of ``source`` and return the finished driver."""
    driver = TopLevelDriver(Lexer.from_string(source), backend, options=options, err=err)
    driver.run()
    return driver

"""
Command line interface for tylang.

Usage:
    tylang [FILE] [--backend llvm|eval] [-O 0-3] [--emit-ir] [--emit-ast] [-v...]

Reads FILE, or standard input when no file is given, and runs every
top-level unit as it is read. Results and diagnostics go to stderr.
"""

import logging
import sys
from typing import TextIO

import click

from .lexer.lexer import Lexer
from .lexer.tokens import TokenType
from .parser.ast_nodes import format_ast
from .parser.errors import ParseError
from .parser.parser import Parser
from .session import Session
from .backend.evaluator import EvaluatorBackend
from .backend.llvm_backend import LLVMBackend
from .jit.jit_compiler import OptimizationLevel
from .driver.toplevel import TopLevelDriver, DriverOptions

LOG_LEVELS = [logging.WARNING, logging.INFO, logging.DEBUG]


def configure_logging(verbose: int):
    level = LOG_LEVELS[min(verbose, len(LOG_LEVELS) - 1)]
    logging.basicConfig(level=level, stream=sys.stderr,
                        format="%(levelname)s %(name)s: %(message)s")


def print_ast_units(lexer: Lexer, session: Session, out: TextIO, err: TextIO) -> int:
    """Print every top-level unit as an S-expression; returns the number of parse errors."""
    parser = Parser(lexer, session)
    failures = 0

    while parser.current.type != TokenType.EOF:
        token = parser.current
        if token.is_char(';'):
            parser.advance()
            continue

        try:
            if token.type == TokenType.DEF:
                node = parser.parse_definition()
            elif token.type == TokenType.EXTERN:
                node = parser.parse_extern()
                out.write(f"(extern {format_ast(node)})\n")
                continue
            else:
                node = parser.parse_toplevel_expr()
        except ParseError as e:
            failures += 1
            err.write(str(e))
            parser.advance()
            continue

        out.write(format_ast(node) + "\n")

    return failures


@click.command()
@click.argument('source', type=click.File('r'), default='-', required=False)
@click.option('--backend', type=click.Choice(['llvm', 'eval']), default='llvm', show_default=True,
              help='Code generation backend.')
@click.option('-O', 'opt_level', type=click.IntRange(0, 3), default=2, show_default=True,
              help='Optimization level for the LLVM backend.')
@click.option('--emit-ir', is_flag=True, help='Print the generated code of every top-level unit.')
@click.option('--emit-ast', is_flag=True, help='Only parse; print every top-level unit as an S-expression.')
@click.option('--prompt/--no-prompt', default=None,
              help='Show the READY> prompt (default: only when reading a terminal).')
@click.option('--verbose', '-v', default=0, count=True, help='Increase logging verbosity (can be repeated).')
@click.version_option(package_name='tylang')
def main(source: TextIO, backend: str, opt_level: int, emit_ir: bool, emit_ast: bool,
         prompt, verbose: int):
    """Run a tylang program from SOURCE, or interactively from stdin."""
    configure_logging(verbose)

    filename = getattr(source, 'name', '<stdin>')
    lexer = Lexer(source, filename=filename)
    session = Session()

    if emit_ast:
        failures = print_ast_units(lexer, session, sys.stdout, sys.stderr)
        sys.exit(1 if failures else 0)

    if prompt is None:
        prompt = source.isatty()

    if backend == 'eval':
        code_backend = EvaluatorBackend(session)
    else:
        code_backend = LLVMBackend(session, OptimizationLevel(opt_level))

    options = DriverOptions(prompt="READY> " if prompt else None, echo_ir=emit_ir)
    driver = TopLevelDriver(lexer, code_backend, session, options, err=sys.stderr)
    driver.run()

    if prompt:
        sys.stderr.write("\n")


if __name__ == "__main__":
    main()

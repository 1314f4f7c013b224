"""
Tests for the tylang command line interface.

Author: xwest
"""

import unittest
import sys
import os

from click.testing import CliRunner

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from tylang.cli import main

EXAMPLE_FILE = os.path.join(project_root, "examples", "demo.ty")


class TestCommandLine(unittest.TestCase):

    def setUp(self):
        self.runner = CliRunner()

    def invoke(self, args, source=None):
        return self.runner.invoke(main, args, input=source)

    def test_stdin_with_evaluator(self):
        result = self.invoke(["--backend", "eval", "--no-prompt"], "3+4*2;\n")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Evaluated to 11.000000", result.output)
        self.assertNotIn("READY>", result.output)

    def test_stdin_with_llvm(self):
        result = self.invoke(["--no-prompt"], "def sq(x) x*x;\nsq(4);\n")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Evaluated to 16.000000", result.output)

    def test_prompt(self):
        result = self.invoke(["--backend", "eval", "--prompt"], "1;\n")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("READY> ", result.output)

    def test_errors_do_not_change_exit_status(self):
        result = self.invoke(["--backend", "eval"], "y;\n2;\n")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Unknown variable name 'y'", result.output)
        self.assertIn("Evaluated to 2.000000", result.output)

    def test_file_argument(self):
        for backend in ("eval", "llvm"):
            result = self.invoke([EXAMPLE_FILE, "--backend", backend])
            self.assertEqual(result.exit_code, 0, result.output)
            self.assertNotIn("READY>", result.output)
            self.assertIn("Evaluated to 25.000000", result.output)
            self.assertIn("Evaluated to 1.000000", result.output)
            self.assertIn("Evaluated to 10.000000", result.output)
            self.assertNotIn("ERROR", result.output)

    def test_missing_file(self):
        result = self.invoke(["does-not-exist.ty"])
        self.assertNotEqual(result.exit_code, 0)

    def test_emit_ir(self):
        result = self.invoke(["--emit-ir", "--no-prompt"], "def f(x) x+1;\n")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("define double", result.output)
        self.assertIn("fadd", result.output)

    def test_optimization_level(self):
        result = self.invoke(["-O", "0", "--no-prompt"], "(1+2)*(3+4);\n")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Evaluated to 21.000000", result.output)

        result = self.invoke(["-O", "5"], "1;\n")
        self.assertEqual(result.exit_code, 2)

    def test_emit_ast(self):
        source = "extern sin(x); def f(x) x*2; f(1+2);\n"
        result = self.invoke(["--emit-ast"], source)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("(extern (sin x))", result.output)
        self.assertIn("(def (f x) (* x 2))", result.output)
        self.assertIn("(def (__anon_expr) (call f (+ 1 2)))", result.output)
        self.assertNotIn("Evaluated", result.output)

    def test_emit_ast_reports_parse_errors(self):
        result = self.invoke(["--emit-ast"], "def (x) x; 1+2;\n")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("P004", result.output)
        self.assertIn("(+ 1 2)", result.output)


if __name__ == '__main__':
    unittest.main()

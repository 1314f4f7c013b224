"""
End-to-end tests for the tylang top-level driver.

Every scenario runs against both backends: source text goes through the
lexer, parser, backend and execution exactly as in an interactive session.

Author: xwest
"""

import math
import unittest
import sys
import os
from io import StringIO

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from tylang.lexer.lexer import Lexer
from tylang.session import Session
from tylang.backend.evaluator import EvaluatorBackend
from tylang.backend.llvm_backend import LLVMBackend
from tylang.driver.toplevel import TopLevelDriver, DriverOptions, run_source


class DriverTestMixin:
    """Driver scenarios shared by all backends."""

    def make_backend(self, session):
        raise NotImplementedError

    def run_program(self, source, **options):
        options.setdefault("prompt", None)
        self.err = StringIO()
        backend = self.make_backend(Session())
        return run_source(source, backend, DriverOptions(**options), err=self.err)

    def error_codes(self, driver):
        return [error.code for error in driver.errors]

    def test_evaluates_expression(self):
        driver = self.run_program("3+4*2;")
        self.assertEqual(driver.results, [11.0])
        self.assertEqual(driver.errors, [])
        self.assertIn("Evaluated to 11.000000", self.err.getvalue())

    def test_left_associative_subtraction(self):
        self.assertEqual(self.run_program("8-4-2").results, [2.0])

    def test_several_expressions(self):
        driver = self.run_program("1; 2+2; (1+2)*3;;")
        self.assertEqual(driver.results, [1.0, 4.0, 9.0])

    def test_definition_and_call(self):
        driver = self.run_program("def square(x) x*x; square(12);")
        self.assertEqual(driver.results, [144.0])

    def test_redefinition_is_rejected(self):
        driver = self.run_program("def f(x) x; def f(x) x+1; f(5);")
        self.assertEqual(self.error_codes(driver), ["C005"])
        self.assertEqual(driver.results, [5.0])
        self.assertIn("cannot be redefined", self.err.getvalue())

    def test_extern_then_definition(self):
        driver = self.run_program("extern foo(x); def foo(x) x*2; foo(3);")
        self.assertEqual(driver.errors, [])
        self.assertEqual(driver.results, [6.0])

    def test_forward_reference(self):
        source = """
        extern twice(x);
        def quad(x) twice(twice(x));
        def twice(x) x+x;
        quad(2.5);
        """
        self.assertEqual(self.run_program(source).results, [10.0])

    def test_host_externs(self):
        driver = self.run_program("extern sin(x); extern cos(x); sin(0); cos(0);")
        self.assertEqual(driver.results, [0.0, 1.0])

    def test_unknown_variable_does_not_stop_the_loop(self):
        driver = self.run_program("y; 1+1;")
        self.assertEqual(self.error_codes(driver), ["C001"])
        self.assertEqual(driver.results, [2.0])
        self.assertIn("Unknown variable name 'y'", self.err.getvalue())

    def test_unknown_function(self):
        driver = self.run_program("foo(1); 4;")
        self.assertEqual(self.error_codes(driver), ["C002"])
        self.assertEqual(driver.results, [4.0])

    def test_wrong_argument_count(self):
        driver = self.run_program("def f(x) x; f(1, 2); f(7);")
        self.assertEqual(self.error_codes(driver), ["C003"])
        self.assertEqual(driver.results, [7.0])

    def test_conflicting_arity(self):
        driver = self.run_program("def f(x) x; def f(x y) x; f(3);")
        self.assertEqual(self.error_codes(driver), ["C007"])
        self.assertEqual(driver.results, [3.0])

    def test_extern_arity_cannot_change(self):
        source = """
        extern foo(x);
        def bar(y) foo(y);
        extern foo(a b);
        def foo(a b) a+b;
        bar(1);
        7;
        """
        driver = self.run_program(source)
        self.assertEqual(self.error_codes(driver), ["C007", "C007", "E001"])
        self.assertEqual(driver.results, [7.0])
        self.assertEqual(driver.session.find_prototype("foo").params, ["x"])

    def test_host_math_results(self):
        driver = self.run_program("extern log(x); log(0); log(0-1); log(1);")
        self.assertEqual(driver.errors, [])
        self.assertEqual(len(driver.results), 3)
        self.assertEqual(driver.results[0], -math.inf)
        self.assertTrue(math.isnan(driver.results[1]))
        self.assertEqual(driver.results[2], 0.0)

    def test_reserved_anonymous_name_is_not_an_identifier(self):
        driver = self.run_program("def __anon_expr() 1; 1+1;")
        self.assertEqual(self.error_codes(driver)[0], "P004")
        self.assertEqual(driver.results[-1], 2.0)

    def test_duplicate_parameter(self):
        driver = self.run_program("def f(x x) x; def f(x) x; f(2);")
        self.assertEqual(self.error_codes(driver), ["C006"])
        self.assertEqual(driver.results, [2.0])

    def test_failed_body_is_not_registered(self):
        driver = self.run_program("def halve(x) y; halve(4);")
        self.assertEqual(self.error_codes(driver), ["C001", "E001"])
        self.assertEqual(driver.results, [])
        self.assertIsNone(driver.session.find_prototype("halve"))

    def test_parse_error_skips_one_token(self):
        # The prototype fails at '1'; only that token is skipped, so '2' is
        # read as the next top-level expression
        driver = self.run_program("def 1 2; 3+4;")
        self.assertEqual(self.error_codes(driver), ["P004"])
        self.assertEqual(driver.results, [2.0, 7.0])

    def test_bad_extern_skips_one_token(self):
        # "extern (x)" fails at "(", leaving "x" and ")" behind as stray units
        driver = self.run_program("extern; extern (x); 5;")
        self.assertEqual(self.error_codes(driver), ["P004", "P004", "C001", "P001"])
        self.assertEqual(driver.results, [5.0])

    def test_unexpected_token(self):
        driver = self.run_program(") 1")
        self.assertEqual(self.error_codes(driver), ["P001"])
        self.assertEqual(driver.results, [1.0])

    def test_comparison_and_comments(self):
        source = """
        # comments are ignored
        def lt(a b) a < b;   # 1.0 or 0.0
        lt(1, 2) + lt(2, 1);
        """
        self.assertEqual(self.run_program(source).results, [1.0])

    def test_prompt_before_every_unit(self):
        self.run_program("1;", prompt="READY> ")
        output = self.err.getvalue()
        self.assertTrue(output.startswith("READY> "))
        self.assertEqual(output.count("READY> "), 3)

    def test_report_format(self):
        self.run_program("2*3", report_format="=> {value:g}")
        self.assertIn("=> 6\n", self.err.getvalue())

    def test_step(self):
        err = StringIO()
        backend = self.make_backend(Session())
        driver = TopLevelDriver(Lexer.from_string("def f(x) x+1; f(1)"), backend,
                                options=DriverOptions(prompt=None), err=err)
        self.assertTrue(driver.step())   # def
        self.assertEqual(driver.session.find_prototype("f").params, ["x"])
        self.assertTrue(driver.step())   # ;
        self.assertTrue(driver.step())   # f(1)
        self.assertEqual(driver.results, [2.0])
        self.assertFalse(driver.step())
        self.assertFalse(driver.step())

    def test_session_is_shared_with_backend(self):
        session = Session()
        backend = self.make_backend(session)
        driver = TopLevelDriver(Lexer.from_string(""), backend, err=StringIO())
        self.assertIs(driver.session, session)
        self.assertEqual(driver.run(), [])


class TestEvaluatorDriver(DriverTestMixin, unittest.TestCase):

    def make_backend(self, session):
        return EvaluatorBackend(session)

    def test_echo_ir(self):
        self.run_program("def f(x) x*2; extern sin(a);", echo_ir=True)
        output = self.err.getvalue()
        self.assertIn("(def (f x) (* x 2))", output)
        self.assertIn("(extern (sin a))", output)


class TestLLVMDriver(DriverTestMixin, unittest.TestCase):

    def make_backend(self, session):
        return LLVMBackend(session)

    def test_echo_ir(self):
        self.run_program("def f(x) x*2; extern sin(a);", echo_ir=True)
        output = self.err.getvalue()
        self.assertIn('define double @"f"', output)
        self.assertIn('declare double @"sin"', output)

    def test_units_are_released(self):
        driver = self.run_program("def f(x) x; f(1); f(2); f(3);")
        self.assertEqual(driver.results, [1.0, 2.0, 3.0])
        stats = driver.backend.jit.get_stats()
        self.assertEqual(stats["materialized_units"], 1)
        self.assertEqual(stats["pending_units"], 0)


if __name__ == '__main__':
    unittest.main()

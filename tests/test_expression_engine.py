#!/usr/bin/env python3
"""
End-to-end tests for evaluate_expression / format_rounded / ExpressionEngine.

Covers the documented arithmetic properties, error surfacing, the rounding
configuration, and the trace recorded by the engine.
"""
import os
import sys
import unittest

from mpmath import mp

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from eval_errors import (EvalError, MalformedNumber, MissingOperator,
                         UnbalancedParentheses)
from expression_engine import ExpressionEngine, evaluate_expression, format_rounded
from operator_table import OperatorSpec, OperatorTable
from utils import settings


class ArithmeticSuite(unittest.TestCase):
    def test_precedence(self):
        self.assertEqual(evaluate_expression("1+2*3"), 7)
        self.assertEqual(evaluate_expression("3*4-5+1+6/2+2"), 13)

    def test_left_associativity(self):
        self.assertEqual(evaluate_expression("10-2-3"), 5)

    def test_redundant_parentheses(self):
        self.assertEqual(evaluate_expression("((4))"), 4)
        self.assertEqual(evaluate_expression("(1+2)*3"), 9)

    def test_leading_unary_minus(self):
        self.assertEqual(evaluate_expression("-5+2"), -3)

    def test_power_binds_tightest(self):
        self.assertEqual(evaluate_expression("2+3^2"), 11)
        self.assertEqual(evaluate_expression("2*3**2"), 18)

    def test_deep_nesting(self):
        self.assertEqual(evaluate_expression("(((2+3)*4)-5)/2"), mp.mpf('7.5'))
        self.assertEqual(evaluate_expression("(((10/2)*3)+4)*2"), 38)
        self.assertEqual(evaluate_expression("(((8-3)+2)*4)-6"), 22)
        self.assertEqual(evaluate_expression("(((2**3)-5)+1)**2"), 16)

    def test_functions_inside_expression(self):
        self.assertEqual(evaluate_expression("sqrt(9) * (1 + 1)"), 6)

    def test_long_chains(self):
        self.assertEqual(evaluate_expression("+".join(["1"] * 250)), 250)
        self.assertEqual(evaluate_expression("-".join(["1"] * 2500)), -2498)
        self.assertEqual(evaluate_expression("*".join(["2"] * 600)), mp.mpf(2) ** 600)


class ErrorSuite(unittest.TestCase):
    def test_unbalanced(self):
        with self.assertRaises(UnbalancedParentheses):
            evaluate_expression("(1+2")
        with self.assertRaises(UnbalancedParentheses):
            evaluate_expression("1+2)")

    def test_missing_operator(self):
        with self.assertRaises(MissingOperator):
            evaluate_expression("1 2")

    def test_errors_share_a_base(self):
        for bad in ["", "1..2", "*2", "2-", "nosuchfn(1)", "1/0"]:
            with self.subTest(expr=bad):
                with self.assertRaises(EvalError):
                    evaluate_expression(bad)

    def test_error_carries_expression(self):
        with self.assertRaises(MalformedNumber) as ctx:
            evaluate_expression("1.2.3")
        self.assertEqual(ctx.exception.expr, "1.2.3")
        self.assertEqual(ctx.exception.kind, 'MalformedNumber')


class FormatRoundedSuite(unittest.TestCase):
    def tearDown(self):
        settings.reset()

    def test_fixed_digits(self):
        self.assertEqual(format_rounded(3.14159, 2), "3.14")
        self.assertEqual(format_rounded(mp.mpf(2), 3), "2.000")

    def test_integer_rounding(self):
        self.assertEqual(format_rounded(3.6, 0), "4")
        self.assertEqual(format_rounded(-3.6, -1), "-4")

    def test_default_precision_setting(self):
        self.assertEqual(format_rounded(1 / 3), "0.33")
        settings.set_rounding_precision(4)
        self.assertEqual(format_rounded(1 / 3), "0.3333")
        with self.assertRaises(ValueError):
            settings.set_rounding_precision("4")

    def test_round_trip(self):
        for value, digits in [(3.14159, 2), (-2.5, 1), (3.6, 0), (1234.5678, 3)]:
            with self.subTest(value=value, digits=digits):
                text = format_rounded(value, digits)
                self.assertEqual(evaluate_expression(text), mp.mpf(text))

    def test_large_magnitudes_stay_positional(self):
        value = evaluate_expression("10^5000")
        text = format_rounded(value, 0)
        self.assertNotIn(".", text)
        self.assertNotIn("e", text)
        self.assertGreaterEqual(len(text), 5000)
        self.assertEqual(mp.mpf(text), value)

        value = evaluate_expression("10^400")
        text = format_rounded(value, 2)
        self.assertNotEqual(text, "inf")
        self.assertTrue(text.endswith(".00"))
        self.assertEqual(mp.mpf(text), value)
        self.assertEqual(format_rounded(-value, 0), "-" + format_rounded(value, 0))

    def test_small_values_keep_leading_zeros(self):
        self.assertEqual(format_rounded(mp.mpf("0.005"), 3), "0.005")
        self.assertEqual(format_rounded(mp.mpf("-0.25"), 2), "-0.25")
        self.assertEqual(format_rounded(mp.mpf("0.0001"), 2), "0.00")
        self.assertEqual(format_rounded(0, 0), "0")

    def test_infinities(self):
        self.assertEqual(format_rounded(mp.inf, 2), "inf")
        self.assertEqual(format_rounded(-mp.inf, 0), "-inf")


class EngineSuite(unittest.TestCase):
    def test_trace_records_each_stage(self):
        engine = ExpressionEngine()
        engine.compute("1+2")
        steps = [ev['step'] for ev in engine.traceback_info]
        self.assertEqual(steps, ['compute_start', 'tokenize', 'build', 'evaluate'])

    def test_trace_records_errors(self):
        engine = ExpressionEngine()
        with self.assertRaises(MissingOperator):
            engine.compute("1 2")
        self.assertEqual(engine.traceback_info[-1]['step'], 'error')

    def test_compute_rounded(self):
        self.assertEqual(ExpressionEngine().compute_rounded("10/4", 1), "2.5")

    def test_custom_operator(self):
        table = OperatorTable.with_defaults()
        table.register('%', OperatorSpec(rank=1, apply=lambda a: mp.fmod(a[0], a[1])))
        engine = ExpressionEngine(table=table)
        self.assertEqual(engine.compute("7%4+1"), 4)
        self.assertTrue(table.frozen)


if __name__ == "__main__":
    unittest.main()

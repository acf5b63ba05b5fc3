"""
Evaluator tests: operator application, resolvers, division modes and
arithmetic faults.
"""
import os
import sys
import unittest

from mpmath import mp

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from eval_errors import MathDomainError, UnknownOperator
from evaluator import Evaluator, MathNamespaceResolver, NamespaceResolver, evaluate
from operator_table import OperatorSpec, OperatorTable
from tokenizer import tokenize
from tree_builder import build
from utils import settings


def run(expr, resolver=None):
    return evaluate(build(tokenize(expr)), resolver)


class EvaluatorSuite(unittest.TestCase):
    def tearDown(self):
        settings.reset()

    # ── built-in operators ──────────────────────────────────────────
    def test_arithmetic(self):
        self.assertEqual(run("1+2*3"), 7)
        self.assertEqual(run("2**10"), 1024)
        self.assertEqual(run("-(2+3)"), -5)
        self.assertAlmostEqual(float(run("1/3")), 1 / 3, delta=1e-15)

    def test_real_division_is_default(self):
        self.assertEqual(run("7/2"), mp.mpf('3.5'))

    def test_floor_division_mode(self):
        settings.set_division_mode('floor')
        self.assertEqual(run("7/2"), 3)
        self.assertEqual(run("-7/2"), -4)

    # ── function calls ──────────────────────────────────────────────
    def test_mpmath_functions(self):
        self.assertEqual(run("sqrt(16)"), 4)
        self.assertAlmostEqual(float(run("sin(0)+cos(0)")), 1.0, delta=1e-15)
        self.assertAlmostEqual(float(run("log10(1000)")), 3.0, delta=1e-12)

    def test_sympy_fallback(self):
        # mpmath only has 'catalan' as a constant; sympy has the function
        self.assertEqual(run("catalan(5)"), 42)
        self.assertEqual(run("totient(12)"), 4)

    def test_injected_resolver(self):
        resolver = NamespaceResolver({'double': lambda x: 2 * x})
        self.assertEqual(run("double(21)", resolver), 42)
        with self.assertRaises(UnknownOperator):
            run("sqrt(4)", resolver)

    def test_unknown_function(self):
        with self.assertRaises(UnknownOperator):
            run("frobnicate(3)")
        with self.assertRaises(UnknownOperator):
            run("%(3)")

    def test_resolver_rejects_non_functions(self):
        resolver = MathNamespaceResolver()
        self.assertIsNone(resolver('pi'))
        self.assertIsNone(resolver('_private'))
        self.assertIsNotNone(resolver('exp'))

    def test_non_scalar_helpers_are_not_callable(self):
        for name in ['plot', 'splot', 'cplot', 'memoize', 'quad', 'diff', 'findroot']:
            with self.subTest(name=name):
                with self.assertRaises(UnknownOperator):
                    run(f"{name}(1)")

    # ── arithmetic faults ───────────────────────────────────────────
    def test_division_by_zero(self):
        with self.assertRaises(MathDomainError):
            run("1/0")

    def test_complex_result_rejected(self):
        with self.assertRaises(MathDomainError):
            run("sqrt(-1)")
        with self.assertRaises(MathDomainError):
            run("(0-8)^(1/3)")

    def test_function_failures_become_domain_errors(self):
        def broken(x):
            raise RuntimeError("backend exploded")

        resolver = NamespaceResolver({'broken': broken, 'text': lambda x: 'abc'})
        with self.assertRaises(MathDomainError) as ctx:
            run("broken(1)", resolver)
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)
        with self.assertRaises(MathDomainError):
            run("text(1)", resolver)

    def test_operator_failures_become_domain_errors(self):
        def clash(operands):
            raise TypeError("unsupported operands")

        table = OperatorTable.with_defaults()
        table.register('@', OperatorSpec(rank=1, apply=clash))
        with self.assertRaises(MathDomainError):
            evaluate(build(tokenize("2", table), table))

    def test_evaluator_is_reusable(self):
        ev = Evaluator()
        self.assertEqual(ev.evaluate(build(tokenize("2+2"))), 4)
        self.assertEqual(ev.evaluate(build(tokenize("3*3"))), 9)


if __name__ == "__main__":
    unittest.main()

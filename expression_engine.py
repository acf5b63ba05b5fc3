"""
Entry points of the calculator.

    evaluate_expression("1+2*3")          -> mpf('7.0')
    format_rounded(mpf('3.14159'), 2)     -> '3.14'

`ExpressionEngine` runs the same tokenize -> build -> evaluate pipeline and
keeps a step-wise trace in `traceback_info` (see utils.trace_helpers).
"""
from __future__ import annotations
from typing import List

from mpmath import mp

from eval_errors import EvalError
from evaluator import Evaluator, Resolver
from operator_table import DEFAULT_TABLE, OperatorTable
from tokenizer import Tokenizer
from tree_builder import Node, TreeBuilder, to_infix
from utils.settings import get_max_depth, get_rounding_precision
from utils.trace_helpers import add_traceback


class ExpressionEngine:
    """Evaluates one flat arithmetic expression per `compute()` call."""

    def __init__(self, table: OperatorTable | None = None, resolver: Resolver | None = None):
        self.table = (table or DEFAULT_TABLE).freeze()
        self.evaluator = Evaluator(resolver)
        self.traceback_info: List[dict] = []

    def _add_traceback(self, step: str, info: str):
        add_traceback(self, step, info)

    def tree(self, expr: str) -> Node:
        """Tokenize and rebalance `expr` without evaluating it."""
        max_depth = get_max_depth()
        tokens = Tokenizer(self.table, max_depth).run(expr)
        self._add_traceback('tokenize', str(tokens))
        node = TreeBuilder(self.table, max_depth).build(tokens.children)
        self._add_traceback('build', to_infix(node))
        return node

    def compute(self, expr: str) -> mp.mpf:
        self._add_traceback('compute_start', f'Expr: {expr}')
        try:
            node = self.tree(expr)
            result = self.evaluator.evaluate(node)
        except EvalError as e:
            self._add_traceback('error', f'{e.kind}: {e}')
            e.expr = expr
            raise
        self._add_traceback('evaluate', f'Result = {result}')
        return result

    def compute_rounded(self, expr: str, digits: int | None = None) -> str:
        return format_rounded(self.compute(expr), digits)


def evaluate_expression(text: str, *, table: OperatorTable | None = None,
                        resolver: Resolver | None = None) -> mp.mpf:
    """Full tokenize/build/evaluate pipeline; raises EvalError on failure."""
    return ExpressionEngine(table, resolver).compute(text)


def format_rounded(value, digits: int | None = None) -> str:
    """
    `digits > 0`  -> fixed-point with `digits` decimals ('3.14')
    `digits <= 0` -> nearest integer, no decimal point ('4')
    `None`        -> the configured default rounding precision
    """
    if digits is None:
        digits = get_rounding_precision()
    value = mp.mpf(value)
    if mp.isnan(value):
        return 'nan'
    if mp.isinf(value):
        return 'inf' if value > 0 else '-inf'
    if digits <= 0:
        return _integer_text(mp.nint(value))
    with mp.workprec(mp.prec + int(digits * 3.33) + 10):
        scaled = mp.nint(value * mp.mpf(10) ** digits)
    text = _integer_text(scaled)
    sign, body = ('-', text[1:]) if text.startswith('-') else ('', text)
    body = body.rjust(digits + 1, '0')
    return f"{sign}{body[:-digits]}.{body[-digits:]}"


def _integer_text(q: mp.mpf) -> str:
    """All digits of the integer-valued `q` in plain positional notation."""
    if not q:
        return '0'
    n = int(mp.mag(q) * 0.30103) + 2
    text = mp.nstr(q, n, min_fixed=-mp.inf, max_fixed=mp.inf)
    return text.partition('.')[0]

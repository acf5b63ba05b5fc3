"""
Evaluator: walk an operation tree bottom-up and return an mp.mpf.

Symbols that are not in the operator table are called by name.  The name is
looked up through a *resolver*, any callable `resolve(name) -> fn | None`:

    MathNamespaceResolver()          scalar mpmath functions, then sympy functions
    NamespaceResolver({'double': f}) a plain mapping

A resolver returning None makes evaluation fail with UnknownOperator; any
failure inside a resolved function surfaces as MathDomainError.
"""
from __future__ import annotations
import numbers
from typing import Callable, Dict, FrozenSet, Iterable, Mapping, Optional

import sympy as sp
from sympy.core.function import FunctionClass
from mpmath import mp

from eval_errors import EvalError, MathDomainError, UnknownOperator
from tree_builder import Leaf, Node, OperationNode, left_spine
from utils.settings import get_dps

Resolver = Callable[[str], Optional[Callable]]

# One-argument real functions of the mpmath context. Plotting, quadrature
# and the other non-scalar helpers are not listed.
MPMATH_FUNCTIONS: FrozenSet[str] = frozenset({
    # elementary
    'sqrt', 'cbrt', 'exp', 'expm1', 'ln', 'log', 'log10', 'log1p',
    'fabs', 'floor', 'ceil', 'nint', 'frac', 'sign',
    # trigonometry
    'sin', 'cos', 'tan', 'sec', 'csc', 'cot',
    'asin', 'acos', 'atan', 'asec', 'acsc', 'acot',
    'sinh', 'cosh', 'tanh', 'sech', 'csch', 'coth',
    'asinh', 'acosh', 'atanh', 'sinpi', 'cospi', 'sinc', 'degrees', 'radians',
    # special functions
    'gamma', 'rgamma', 'loggamma', 'factorial', 'fac', 'digamma', 'harmonic',
    'erf', 'erfc', 'erfi', 'zeta', 'lambertw', 'fib', 'fibonacci',
    'li', 'ei', 'e1', 'ci', 'si', 'ellipk', 'ellipe', 'agm',
})

# sympy modules whose function classes evaluate numerically
SYMPY_MODULES = ('sympy.functions', 'sympy.ntheory')


def to_real(value, origin: str) -> mp.mpf:
    """Coerce a function/operator result to mp.mpf, rejecting complex values."""
    if isinstance(value, mp.mpc) or isinstance(value, complex):
        if value.imag != 0:
            raise MathDomainError(f"{origin} has no real result ({value})")
        value = value.real
    if isinstance(value, bool) or not isinstance(value, (mp.mpf, numbers.Real)):
        raise MathDomainError(f"{origin} did not return a number ({value!r})")
    result = mp.mpf(value)
    if mp.isnan(result):
        raise MathDomainError(f"{origin} is undefined (nan)")
    return result


class NamespaceResolver:
    """Resolve function names from a mapping of name -> callable."""

    def __init__(self, namespace: Mapping[str, Callable]):
        self.namespace: Dict[str, Callable] = dict(namespace)

    def __call__(self, name: str) -> Optional[Callable]:
        fn = self.namespace.get(name)
        return fn if callable(fn) else None


class MathNamespaceResolver:
    """
    Resolve against the scalar mpmath functions first (sin, sqrt, log,
    gamma, …) and fall back to sympy function classes (catalan, totient, …).
    """

    def __init__(self, functions: Iterable[str] = MPMATH_FUNCTIONS):
        self.functions = frozenset(functions)

    def __call__(self, name: str) -> Optional[Callable]:
        if not name.isidentifier() or name.startswith('_'):
            return None
        if name in self.functions:
            fn = getattr(mp, name, None)
            if callable(fn):
                return fn
        sym_fn = getattr(sp, name, None)
        if isinstance(sym_fn, FunctionClass) and sym_fn.__module__.startswith(SYMPY_MODULES):
            return self._wrap_sympy(name, sym_fn)
        return None

    @staticmethod
    def _wrap_sympy(name: str, sym_fn):
        def call(x):
            arg = sp.Integer(int(x)) if x == mp.floor(x) else sp.Float(mp.nstr(x, get_dps()), get_dps())
            value = sym_fn(arg).evalf(get_dps())
            if not value.is_number:
                raise MathDomainError(f"{name}({x}) did not evaluate to a number")
            if not value.is_real:
                raise MathDomainError(f"{name}({x}) has no real result")
            return mp.mpf(str(value))
        call.__name__ = name
        return call


DEFAULT_RESOLVER = MathNamespaceResolver()


class Evaluator:
    def __init__(self, resolver: Resolver | None = None):
        self.resolver = resolver or DEFAULT_RESOLVER

    def evaluate(self, node: Node) -> mp.mpf:
        # the left spine of a long same-rank chain is folded in a loop
        base, spine = left_spine(node)
        if isinstance(base, Leaf):
            value = base.value
        else:
            value = self._apply(base, [self.evaluate(base.right)])
        for op in spine:
            value = self._apply(op, [value, self.evaluate(op.right)])
        return value

    def _apply(self, node: OperationNode, operands) -> mp.mpf:
        if node.spec.call_by_name:
            return self._call(node.symbol, operands[-1])
        try:
            result = node.spec.apply(operands)
        except EvalError:
            raise
        except ZeroDivisionError as e:
            raise MathDomainError(f"Division by zero in '{node.symbol}'") from e
        except Exception as e:
            raise MathDomainError(f"'{node.symbol}' failed on {operands}: {e}") from e
        return to_real(result, f"'{node.symbol}'")

    def _call(self, name: str, operand: mp.mpf) -> mp.mpf:
        fn = self.resolver(name)
        if fn is None:
            raise UnknownOperator(f"Unknown operator or function '{name}'")
        try:
            result = fn(operand)
        except EvalError:
            raise
        except ZeroDivisionError as e:
            raise MathDomainError(f"Division by zero in {name}({operand})") from e
        except Exception as e:
            raise MathDomainError(f"{name}({operand}) failed: {e}") from e
        return to_real(result, f"{name}({operand})")


def evaluate(node: Node, resolver: Resolver | None = None) -> mp.mpf:
    return Evaluator(resolver).evaluate(node)

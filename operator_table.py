"""
Operator table: symbol -> OperatorSpec.

Rank decides split order in the tree builder, *larger first*:

    '+' '-'      : 2   (loosest binding, becomes the tree root)
    '*' '/'      : 1
    '^' '**'     : 0   (tightest binding)
    <other>      : 0   (called by name as a one-argument function)

A table accepts `register()` until it is frozen, either explicitly or by
handing it to a Tokenizer, TreeBuilder or ExpressionEngine; after that it is
read-only and safe to share between threads.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from mpmath import mp

from eval_errors import TableFrozenError
from utils.settings import get_division_mode

Operands = List[mp.mpf]


@dataclass(frozen=True)
class OperatorSpec:
    rank: int
    apply: Optional[Callable[[Operands], mp.mpf]]
    min_left: int = 1
    min_right: int = 1
    call_by_name: bool = False   # fallback row: resolve the symbol as a function

    @property
    def allows_prefix(self) -> bool:
        return self.min_left <= 0


# ---- canonical operations ------------------------------------------- #
def _multiply(args: Operands):
    return args[0] * args[1]


def _divide(args: Operands):
    quotient = args[0] / args[1]
    if get_division_mode() == 'floor':
        return mp.floor(quotient)
    return quotient


def _add(args: Operands):
    return args[0] + args[1]


def _subtract(args: Operands):
    # one operand when used prefix: negation
    if len(args) == 1:
        return -args[0]
    return args[0] - args[1]


def _power(args: Operands):
    return mp.power(args[0], args[1])


FUNCTION_CALL = OperatorSpec(rank=0, apply=None, min_left=-1, min_right=1, call_by_name=True)

CANONICAL_OPERATORS: Dict[str, OperatorSpec] = {
    '*':  OperatorSpec(rank=1, apply=_multiply),
    '/':  OperatorSpec(rank=1, apply=_divide),
    '+':  OperatorSpec(rank=2, apply=_add),
    '-':  OperatorSpec(rank=2, apply=_subtract, min_left=-1),
    '^':  OperatorSpec(rank=0, apply=_power),
    '**': OperatorSpec(rank=0, apply=_power),
}


class OperatorTable:
    """Registry of operator symbols, total over strings via FUNCTION_CALL."""

    def __init__(self, operators: Dict[str, OperatorSpec] | None = None,
                 fallback: OperatorSpec = FUNCTION_CALL):
        self._operators: Dict[str, OperatorSpec] = dict(operators or {})
        self._fallback = fallback
        self._frozen = False

    @classmethod
    def with_defaults(cls) -> 'OperatorTable':
        """Fresh, still-open table holding the canonical rows."""
        return cls(CANONICAL_OPERATORS)

    # ––– registration phase –––
    def register(self, symbol: str, spec: OperatorSpec) -> None:
        if self._frozen:
            raise TableFrozenError(f"cannot register {symbol!r}: operator table already in use")
        if not symbol or any(ch.isspace() or ch in '()' for ch in symbol):
            raise ValueError(f"invalid operator symbol {symbol!r}")
        if symbol[0].isdigit() or symbol[0] == '.':
            raise ValueError(f"operator symbol {symbol!r} may not start like a number")
        self._operators[symbol] = spec

    def freeze(self) -> 'OperatorTable':
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ––– read side –––
    def lookup(self, symbol: str) -> OperatorSpec:
        return self._operators.get(symbol, self._fallback)

    def is_registered(self, symbol: str) -> bool:
        return symbol in self._operators

    def extends_registered(self, prefix: str) -> bool:
        """True iff some registered symbol starts with `prefix`."""
        return any(sym.startswith(prefix) for sym in self._operators)

    def symbols(self) -> List[str]:
        return sorted(self._operators)

    def rank_of(self, symbol: str) -> int:
        return self.lookup(symbol).rank


DEFAULT_TABLE = OperatorTable.with_defaults().freeze()

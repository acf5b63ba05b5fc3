"""
Tokenizer: turn an expression string into a nested token sequence.

Key ideas
=========

• A token is one of
    Number(value)     a literal, parsed to mp.mpf
    Symbol(text)      an operator or an identifier used as a prefix function
    Group(children)   the contents of one matched "( … )" pair

• The whole expression comes back as one outer Group.

• Single left-to-right pass with a stack of the sibling sequences of every
  still-open parenthesis, so "(1+2)*3" becomes

      Group(Group(1 + 2) * 3)

• Digits glue onto an identifier that is not a registered operator, which
  keeps names like "log10" or "atan2" in one piece.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from typing import List, Tuple, Union

from mpmath import mp

from eval_errors import ExpressionTooDeep, MalformedNumber, UnbalancedParentheses
from operator_table import DEFAULT_TABLE, OperatorTable
from utils.settings import get_max_depth

SEPARATORS = frozenset(' \t\r\n\f\v,;')
_NUMBER_RE = re.compile(r'\d+\.?\d*|\.\d+')


@dataclass(frozen=True)
class Number:
    value: mp.mpf
    text: str = ''

    def __str__(self) -> str:
        return self.text or str(self.value)


@dataclass(frozen=True)
class Symbol:
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Group:
    children: Tuple['Token', ...] = ()

    def __len__(self) -> int:
        return len(self.children)

    def __str__(self) -> str:
        return '(' + ' '.join(str(c) for c in self.children) + ')'


Token = Union[Number, Symbol, Group]


def parse_number(text: str) -> mp.mpf:
    """Parse one numeric literal; at most one decimal point, at least one digit."""
    if not _NUMBER_RE.fullmatch(text):
        raise MalformedNumber(f"Invalid number format: {text!r}")
    try:
        return mp.mpf(text)
    except ValueError as e:
        raise MalformedNumber(f"Invalid number format: {text!r}") from e


def _is_word(ch: str) -> bool:
    return ch.isalnum() or ch == '_'


class Tokenizer:
    """Single-use scanner; call `run(text)` once per expression."""

    def __init__(self, table: OperatorTable = DEFAULT_TABLE, max_depth: int | None = None):
        self.table = table.freeze()
        self.max_depth = max_depth if max_depth is not None else get_max_depth()
        self._buffer: List[str] = []
        self._in_number = False
        self._current: List[Token] = []
        self._stack: List[List[Token]] = []

    # -------------------------------------------------------------- #
    # buffer handling
    # -------------------------------------------------------------- #
    def _pending(self) -> str:
        return ''.join(self._buffer)

    def _flush(self) -> None:
        if not self._buffer:
            return
        text = self._pending()
        if self._in_number:
            token: Token = Number(parse_number(text), text)
        else:
            token = Symbol(text)
        self._buffer = []
        self._in_number = False
        self._current.append(token)

    def _ends_symbol(self, pending: str, ch: str) -> bool:
        """Whether `ch` must start a new symbol instead of extending `pending`."""
        if self.table.extends_registered(pending + ch):
            return False
        if self.table.is_registered(pending):
            return True
        return _is_word(pending[-1]) != _is_word(ch)

    # -------------------------------------------------------------- #
    # per-character rules
    # -------------------------------------------------------------- #
    def _digit(self, ch: str) -> None:
        if not self._in_number:
            pending = self._pending()
            if pending and not self.table.is_registered(pending):
                # identifier such as "log1" -> "log10"
                self._buffer.append(ch)
                return
            self._flush()
            self._in_number = True
        self._buffer.append(ch)

    def _open(self) -> None:
        self._flush()
        if len(self._stack) >= self.max_depth:
            raise ExpressionTooDeep(f"Parentheses nested deeper than {self.max_depth}")
        self._stack.append(self._current)
        self._current = []

    def _close(self) -> None:
        self._flush()
        if not self._stack:
            raise UnbalancedParentheses("Unmatched ')' in expression")
        parent = self._stack.pop()
        parent.append(Group(tuple(self._current)))
        self._current = parent

    def _other(self, ch: str) -> None:
        if self._in_number:
            self._flush()
        elif self._buffer and self._ends_symbol(self._pending(), ch):
            self._flush()
        self._buffer.append(ch)

    def run(self, text: str) -> Group:
        for ch in text:
            if ch.isdigit() or ch == '.':
                self._digit(ch)
            elif ch == '(':
                self._open()
            elif ch == ')':
                self._close()
            elif ch in SEPARATORS:
                self._flush()
            else:
                self._other(ch)
        self._flush()
        if self._stack:
            raise UnbalancedParentheses(f"{len(self._stack)} unmatched '(' in expression")
        return Group(tuple(self._current))


def tokenize(text: str, table: OperatorTable = DEFAULT_TABLE, max_depth: int | None = None) -> Group:
    """Tokenize `text` into one outer Group (see module docstring)."""
    return Tokenizer(table, max_depth).run(text)

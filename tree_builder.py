"""
Tree builder ("rebalancer"): flat token sequence -> fully parenthesised tree.

The split point of a sequence is the *rightmost* operator among those with
the highest rank.  Everything before it becomes the left subtree, everything
after it the right subtree, and both halves are rebuilt the same way.  Since
'+'/'-' outrank '*'/'/' which outrank '^', the loosest-binding operator ends
up at the root and is evaluated last, and picking the rightmost one of equal
rank makes `10-2-3` group as `(10-2)-3`.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from mpmath import mp

from eval_errors import (EmptyExpression, ExpressionTooDeep, MissingLeftOperand,
                         MissingOperator, MissingRightOperand)
from operator_table import DEFAULT_TABLE, OperatorSpec, OperatorTable
from tokenizer import Group, Number, Symbol, Token
from utils.settings import get_max_depth


@dataclass(frozen=True)
class Leaf:
    value: mp.mpf


@dataclass(frozen=True)
class OperationNode:
    symbol: str
    spec: OperatorSpec
    left: Optional['Node']
    right: 'Node'

    @property
    def is_prefix(self) -> bool:
        return self.left is None


Node = Union[Leaf, OperationNode]


def _fold_leading_minus(tokens: Sequence[Token]) -> Sequence[Token]:
    if (len(tokens) >= 2 and tokens[0] == Symbol('-')
            and isinstance(tokens[1], Number)):
        negated = Number(-tokens[1].value, '-' + tokens[1].text)
        return (negated,) + tuple(tokens[2:])
    return tokens


def _describe(tokens: Sequence[Token]) -> str:
    return ' '.join(str(t) for t in tokens)


class TreeBuilder:
    """
    Same-rank chains such as `1-1-1-…` grow down the left spine; that spine
    is walked in a loop, so only parenthesis nesting costs recursion depth.
    """

    def __init__(self, table: OperatorTable = DEFAULT_TABLE, max_depth: int | None = None):
        self.table = table.freeze()
        self.max_depth = max_depth if max_depth is not None else get_max_depth()

    def find_split(self, tokens: Sequence[Token]) -> Optional[int]:
        """Index of the rightmost highest-rank symbol, or None if there is no symbol."""
        best_rank = float('-inf')
        split_index = None
        for i, token in enumerate(tokens):
            if isinstance(token, Symbol):
                rank = self.table.lookup(token.text).rank
                if rank >= best_rank:
                    best_rank = rank
                    split_index = i
        return split_index

    def _prepare(self, tokens: Sequence[Token], depth: int) -> Tuple[Sequence[Token], int]:
        """Unwrap singleton groups (one nesting level each) and fold a leading '-'."""
        while len(tokens) == 1 and isinstance(tokens[0], Group):
            tokens = tokens[0].children
            depth += 1
        if depth > self.max_depth:
            raise ExpressionTooDeep(f"Parentheses nested deeper than {self.max_depth}")
        tokens = _fold_leading_minus(tokens)
        if not tokens:
            raise EmptyExpression("Empty expression")
        return tokens, depth

    def _split(self, tokens: Sequence[Token]):
        split = self.find_split(tokens)
        if split is None:
            raise MissingOperator(f"No operator between operands in '{_describe(tokens)}'")

        symbol = tokens[split].text
        spec = self.table.lookup(symbol)
        left, right = tokens[:split], tokens[split + 1:]

        if not right:
            raise MissingRightOperand(f"Operator '{symbol}' has nothing on its right")
        if not left and not spec.allows_prefix:
            raise MissingLeftOperand(f"Operator '{symbol}' has nothing on its left")
        if left and spec.call_by_name:
            raise MissingOperator(f"No operator between '{_describe(left)}' and '{symbol}'")
        return symbol, spec, left, right

    def build(self, tokens: Sequence[Token], depth: int = 0) -> Node:
        spine = []  # (symbol, spec, right tokens, depth), outermost first
        while True:
            tokens, depth = self._prepare(tokens, depth)
            if len(tokens) == 1 and isinstance(tokens[0], Number):
                node: Node = Leaf(tokens[0].value)
                break
            symbol, spec, left, right = self._split(tokens)
            if not left:
                node = OperationNode(symbol, spec, None, self.build(right, depth))
                break
            spine.append((symbol, spec, right, depth))
            tokens = left

        for symbol, spec, right, level in reversed(spine):
            node = OperationNode(symbol, spec, node, self.build(right, level))
        return node


def build(tokens: Sequence[Token] | Group, table: OperatorTable = DEFAULT_TABLE,
          max_depth: int | None = None) -> Node:
    if isinstance(tokens, Group):
        tokens = tokens.children
    return TreeBuilder(table, max_depth).build(tokens)


def left_spine(node: Node) -> Tuple[Node, List[OperationNode]]:
    """Split `node` into its leftmost operand and the binary nodes above it, innermost first."""
    spine: List[OperationNode] = []
    while isinstance(node, OperationNode) and node.left is not None:
        spine.append(node)
        node = node.left
    spine.reverse()
    return node, spine


def to_infix(node: Node) -> str:
    """Render `node` fully parenthesised, e.g. '(1 + (2 * 3))'."""
    base, spine = left_spine(node)
    if isinstance(base, Leaf):
        text = mp.nstr(base.value, 15)
    elif base.spec.call_by_name:
        text = f"{base.symbol}({to_infix(base.right)})"
    else:
        text = f"({base.symbol}{to_infix(base.right)})"
    for op in spine:
        text = f"({text} {op.symbol} {to_infix(op.right)})"
    return text

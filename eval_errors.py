"""
Error hierarchy for the expression calculator.

Every stage (tokenize, build, evaluate) raises one of these; the entry points
let the first one propagate unchanged. Catch ``EvalError`` to handle any
malformed-input or arithmetic failure:

    try:
        value = evaluate_expression(text)
    except EvalError as e:
        print(f"Error: {e}")
"""


class EvalError(ValueError):
    """Base class for all expression evaluation failures."""

    kind = 'EvalError'

    def __init__(self, message: str, *, expr: str | None = None):
        super().__init__(message)
        self.expr = expr


class UnbalancedParentheses(EvalError):
    kind = 'UnbalancedParentheses'


class MissingOperator(EvalError):
    kind = 'MissingOperator'


class MissingLeftOperand(EvalError):
    kind = 'MissingLeftOperand'


class MissingRightOperand(EvalError):
    kind = 'MissingRightOperand'


class UnknownOperator(EvalError):
    kind = 'UnknownOperator'


class MalformedNumber(EvalError):
    kind = 'MalformedNumber'


class ExpressionTooDeep(EvalError):
    kind = 'ExpressionTooDeep'


class EmptyExpression(EvalError):
    kind = 'EmptyExpression'


class MathDomainError(EvalError):
    """Division by zero, a non-real result, or a function rejecting its argument."""
    kind = 'MathDomainError'


class TableFrozenError(RuntimeError):
    """Raised when registering an operator after the table went into use."""

"""
Central settings switch for the calculator.
REPL (or tests) may call the setters to change behaviour; the operator
table, evaluator and formatter only *read* the current values through the
getters.
"""
from typing import List
from mpmath import mp

_DIVISION_MODES: List[str] = ['real', 'floor']
_MAX_DEPTH_LIMIT = 500                 # stays well under the interpreter's recursion limit

_DPS = mp.dps                          # seed from mpmath import (double-equivalent)
_ROUNDING_PRECISION = 2                # defaultRoundingPrecision
_DIVISION_MODE = 'real'
_MAX_DEPTH = 200


def get_dps() -> int:
    """Return the working decimal-places setting."""
    return _DPS


def get_rounding_precision() -> int:
    """Digits used by format_rounded when the caller gives none."""
    return _ROUNDING_PRECISION


def set_rounding_precision(value: int) -> None:
    global _ROUNDING_PRECISION
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"rounding precision must be an int, got {value!r}")
    _ROUNDING_PRECISION = value


def get_division_mode() -> str:
    return _DIVISION_MODE


def set_division_mode(mode: str) -> None:
    """Select 'real' division (default) or 'floor' (integral) division."""
    global _DIVISION_MODE
    if mode not in _DIVISION_MODES:
        raise ValueError(f"division mode {mode!r} not allowed; choose one of {_DIVISION_MODES}")
    _DIVISION_MODE = mode


def division_modes() -> List[str]:
    return _DIVISION_MODES.copy()


def get_max_depth() -> int:
    """Nesting/recursion depth beyond which ExpressionTooDeep is raised."""
    return _MAX_DEPTH


def set_max_depth(value: int) -> None:
    global _MAX_DEPTH
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= _MAX_DEPTH_LIMIT:
        raise ValueError(f"max depth must be an int in 1..{_MAX_DEPTH_LIMIT}, got {value!r}")
    _MAX_DEPTH = value


def reset() -> None:
    """Restore every setting to its default."""
    global _ROUNDING_PRECISION, _DIVISION_MODE, _MAX_DEPTH
    _ROUNDING_PRECISION = 2
    _DIVISION_MODE = 'real'
    _MAX_DEPTH = 200

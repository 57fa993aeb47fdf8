"""
Checked uint256 arithmetic.

Python integers never wrap, so these helpers enforce the 256-bit unsigned
range explicitly. Any result outside ``[0, UINT256_MAX]`` raises
``ArithmeticOverflowError``.
"""

from __future__ import annotations

from typing import Any

from .exceptions import ArithmeticOverflowError, InvalidParameterError

UINT256_MAX: int = 2**256 - 1


def _check(value: int, op: str) -> int:
    if value < 0:
        raise ArithmeticOverflowError(f"SafeMath: {op} underflow", details={"result": value})
    if value > UINT256_MAX:
        raise ArithmeticOverflowError(f"SafeMath: {op} overflow", details={"result": value})
    return value


def checked_add(a: int, b: int) -> int:
    return _check(a + b, "addition")


def checked_sub(a: int, b: int) -> int:
    return _check(a - b, "subtraction")


def checked_mul(a: int, b: int) -> int:
    return _check(a * b, "multiplication")


def checked_div(a: int, b: int) -> int:
    """Floor division; division by zero is reported as an arithmetic fault."""
    if b == 0:
        raise ArithmeticOverflowError("SafeMath: division by zero")
    return _check(a // b, "division")


def require_uint256(value: Any, field: str) -> int:
    """Validate that ``value`` is a plain int inside the uint256 range."""
    # bool is an int subclass but never a meaningful amount
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameterError(
            f"{field} must be an integer",
            details={"field": field, "value": repr(value)},
        )
    if value < 0 or value > UINT256_MAX:
        raise InvalidParameterError(
            f"{field} out of uint256 range",
            details={"field": field, "value": value},
        )
    return value

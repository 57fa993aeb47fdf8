"""
Unit tests for checked uint256 arithmetic.
"""

import pytest

from tokenvest.core.exceptions import ArithmeticOverflowError, InvalidParameterError
from tokenvest.core.safe_math import (
    UINT256_MAX,
    checked_add,
    checked_div,
    checked_mul,
    checked_sub,
    require_uint256,
)


def test_in_range_results_pass_through():
    assert checked_add(2, 3) == 5
    assert checked_sub(5, 3) == 2
    assert checked_mul(4, 5) == 20
    assert checked_div(7, 2) == 3


def test_add_overflow_raises():
    with pytest.raises(ArithmeticOverflowError):
        checked_add(UINT256_MAX, 1)


def test_sub_underflow_raises():
    with pytest.raises(ArithmeticOverflowError, match="underflow"):
        checked_sub(1, 2)


def test_mul_overflow_raises():
    with pytest.raises(ArithmeticOverflowError):
        checked_mul(2**128, 2**128)


def test_division_by_zero_is_arithmetic_fault():
    with pytest.raises(ArithmeticOverflowError):
        checked_div(1, 0)


def test_boundary_values_allowed():
    assert checked_add(UINT256_MAX - 1, 1) == UINT256_MAX
    assert checked_sub(0, 0) == 0


@pytest.mark.parametrize("value", [-1, UINT256_MAX + 1, 1.5, "10", True, None])
def test_require_uint256_rejects(value):
    with pytest.raises(InvalidParameterError):
        require_uint256(value, "amount")


def test_require_uint256_returns_value():
    assert require_uint256(0, "x") == 0
    assert require_uint256(UINT256_MAX, "x") == UINT256_MAX

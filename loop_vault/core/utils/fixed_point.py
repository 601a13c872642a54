"""Checked unsigned fixed-point helpers.

All values are plain Python ints constrained to the uint256 range. Ratios are
evaluated multiply-before-divide; ``//`` floors.
"""

from __future__ import annotations

from loop_vault.core.constants.base import MAX_UINT256
from loop_vault.core.errors import (
    ArithmeticOverflow,
    ArithmeticUnderflow,
    DivisionByZero,
)


def checked(value: int) -> int:
    """Return *value* if it fits in a uint256."""
    if value < 0:
        raise ArithmeticUnderflow(f"{value} is below zero")
    if value > MAX_UINT256:
        raise ArithmeticOverflow(f"{value} exceeds uint256")
    return value


def checked_add(a: int, b: int) -> int:
    return checked(checked(a) + checked(b))


def checked_sub(a: int, b: int) -> int:
    a, b = checked(a), checked(b)
    if b > a:
        raise ArithmeticUnderflow(f"{a} - {b} underflows")
    return a - b


def checked_mul(a: int, b: int) -> int:
    return checked(checked(a) * checked(b))


def mul_div(a: int, b: int, denominator: int) -> int:
    """``a * b // denominator`` with the product range-checked first."""
    if denominator == 0:
        raise DivisionByZero(f"{a} * {b} / 0")
    return checked_mul(a, b) // checked(denominator)


def mul_div_up(a: int, b: int, denominator: int) -> int:
    """Like :func:`mul_div` but rounds toward +inf."""
    if denominator == 0:
        raise DivisionByZero(f"{a} * {b} / 0")
    product = checked_mul(a, b)
    denominator = checked(denominator)
    return -(-product // denominator)

from __future__ import annotations

from loop_vault.core.constants.base import PRECISION
from loop_vault.core.errors import SlippageExceeded
from loop_vault.core.utils.fixed_point import checked_mul, checked_sub, mul_div


def check_slippage(actual_out: int, min_out: int, tolerance_bp: int) -> None:
    """Reject a realized swap output that falls outside the caller's bound.

    ``min_out == 0`` disables the check entirely; callers that pass it accept
    any execution price. An output below ``min_out`` always fails. Otherwise the
    relative deviation above ``min_out`` (scaled by ``PRECISION``) must stay
    strictly below ``tolerance_bp * PRECISION``.
    """
    if min_out == 0:
        return
    if actual_out < min_out:
        raise SlippageExceeded(actual_out, min_out, tolerance_bp)

    deviation = mul_div(checked_sub(actual_out, min_out), PRECISION, min_out)
    if deviation >= checked_mul(tolerance_bp, PRECISION):
        raise SlippageExceeded(actual_out, min_out, tolerance_bp)

import pytest

from loop_vault.core.constants.base import MAX_UINT256
from loop_vault.core.engine.slippage import check_slippage
from loop_vault.core.errors import ArithmeticOverflow, InvariantError, SlippageExceeded


@pytest.mark.parametrize("actual_out", [0, 1, 10**18])
def test_zero_min_out_never_fails(actual_out):
    check_slippage(actual_out, 0, 0)


def test_below_min_out_fails():
    with pytest.raises(SlippageExceeded) as exc_info:
        check_slippage(99, 100, 10_000)
    assert exc_info.value.actual_out == 99
    assert exc_info.value.min_out == 100
    assert exc_info.value.tolerance_bp == 10_000


def test_zero_tolerance_rejects_any_positive_floor():
    with pytest.raises(SlippageExceeded):
        check_slippage(100, 100, 0)


def test_deviation_inside_tolerance_passes():
    # deviation of 0.5 scaled by PRECISION is far below 1 * PRECISION
    check_slippage(150, 100, 1)


def test_deviation_at_tolerance_fails():
    # deviation exactly 2 * PRECISION against a 2bp tolerance
    with pytest.raises(SlippageExceeded):
        check_slippage(300, 100, 2)
    check_slippage(299, 100, 2)


def test_is_an_invariant_error():
    assert issubclass(SlippageExceeded, InvariantError)


def test_out_of_range_amounts_use_checked_arithmetic():
    with pytest.raises(ArithmeticOverflow):
        check_slippage(MAX_UINT256 + 1, 1, 10_000)
    with pytest.raises(ArithmeticOverflow):
        check_slippage(2, 1, MAX_UINT256)

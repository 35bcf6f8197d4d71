from decimal import Decimal

import pytest

from pm_pricing.engine.errors import InvalidInputError, NumericOverflowError
from pm_pricing.engine.log_sum_exp import log_sum_exp, shifted_exp_terms, sum_exp
from pm_pricing.engine.numeric import pricing_context

TOLERANCE = Decimal('1e-75')


def test_sum_exp_zeros():
    with pricing_context():
        assert sum_exp([Decimal(0)] * 3) == 3


def test_log_sum_exp_two_zeros_is_ln2():
    with pricing_context():
        assert log_sum_exp([Decimal(0), Decimal(0)]) == Decimal(2).ln()


def test_shifted_matches_unshifted():
    values = [Decimal('1.5'), Decimal('-2.25'), Decimal('3'), Decimal('0.125')]
    with pricing_context():
        plain = log_sum_exp(values)
        shifted = log_sum_exp(values, shifted=True)
    assert abs(plain - shifted) < TOLERANCE


def test_log_sum_exp_bounds():
    # max(v) <= LSE(v) <= max(v) + ln(n)
    values = [Decimal(-4), Decimal(7), Decimal(2)]
    with pricing_context():
        lse = log_sum_exp(values)
        assert Decimal(7) < lse <= Decimal(7) + Decimal(3).ln()


def test_shifted_exp_terms():
    with pricing_context():
        m, terms = shifted_exp_terms([Decimal(1), Decimal(3)])
        assert m == 3
        assert terms[1] == 1
        assert terms[0] == Decimal(-2).exp()


def test_shifted_survives_large_inputs():
    with pricing_context():
        assert log_sum_exp([Decimal(10**7), Decimal(0)], shifted=True) == Decimal(10**7)


def test_unshifted_overflows_on_large_inputs():
    with pytest.raises(NumericOverflowError):
        with pricing_context():
            log_sum_exp([Decimal(10**7), Decimal(0)])


def test_unshifted_underflow_is_reported():
    # exp(-10**7) is below the smallest representable exponent
    with pytest.raises(NumericOverflowError, match="underflow"):
        with pricing_context():
            log_sum_exp([Decimal(-10**7), Decimal(-10**7)])
    with pricing_context():
        assert log_sum_exp([Decimal(-10**7), Decimal(-10**7)], shifted=True) == Decimal(-10**7) + Decimal(2).ln()


def test_empty_input():
    with pytest.raises(InvalidInputError):
        log_sum_exp([])
    with pytest.raises(InvalidInputError):
        log_sum_exp([], shifted=True)

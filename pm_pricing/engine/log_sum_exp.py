from decimal import Decimal
from typing import List, Sequence, Tuple

from .errors import InvalidInputError, NumericOverflowError
from .numeric import ZERO, exp, ln


def sum_exp(values: Sequence[Decimal]) -> Decimal:
    """Σ exp(v_i), accumulated left to right from zero."""
    total = ZERO
    for v in values:
        total += exp(v)
    return total


def shifted_exp_terms(values: Sequence[Decimal]) -> Tuple[Decimal, List[Decimal]]:
    """Returns m = max(values) and the terms exp(v_i - m), each in (0, 1]."""
    if not values:
        raise InvalidInputError("Cannot exponentiate an empty sequence.")
    m = max(values)
    return m, [exp(v - m) for v in values]


def log_sum_exp(values: Sequence[Decimal], shifted: bool = False) -> Decimal:
    """
    Computes ln(Σ exp(v_i)) in the active decimal context.

    The unshifted form exponentiates the inputs directly and overflows once any
    v_i exceeds the context's exponent range. The shifted form subtracts the
    maximum first and adds it back after the logarithm, which keeps every
    exponent <= 0. When every unshifted term underflows to zero there is no
    logarithm to take, which is reported like an overflow.
    """
    if not values:
        raise InvalidInputError("Cannot take log-sum-exp of an empty sequence.")
    if shifted:
        m, terms = shifted_exp_terms(values)
        return m + ln(sum(terms, ZERO))
    total = sum_exp(values)
    if total == ZERO:
        raise NumericOverflowError("Exponent underflow: every term of the sum vanished at working precision.")
    return ln(total)

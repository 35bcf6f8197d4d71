from decimal import Decimal

import numpy as np
import pytest

from pm_pricing.engine.errors import InvalidInputError
from pm_pricing.engine.params import (
    as_decimal,
    as_integral_decimal,
    normalize_budget_query,
    normalize_price_query,
    normalize_trade_query,
    validate_cost,
    validate_fee_factor,
    validate_funding,
    validate_outcome_index,
    validate_outcome_vector,
    validate_token_count,
)


@pytest.fixture
def trade_query():
    return {
        'net_outcome_tokens_sold': [5, -3],
        'funding': 100,
        'outcome_token_index': 0,
        'outcome_token_count': 7,
    }


def test_normalize_trade_query_defaults_fee(trade_query):
    sold, funding, index, count, fee_factor = normalize_trade_query(trade_query)
    assert sold == [Decimal(5), Decimal(-3)]
    assert funding == Decimal(100)
    assert index == 0
    assert count == Decimal(7)
    assert fee_factor == Decimal(0)


def test_normalize_budget_query_accepts_fractional_cost():
    sold, funding, index, cost, fee_factor = normalize_budget_query({
        'net_outcome_tokens_sold': [0, 0, 0],
        'funding': 10,
        'outcome_token_index': 2,
        'cost': '1.25',
        'fee_factor': 50000,
    })
    assert cost == Decimal('1.25')
    assert fee_factor == Decimal(50000)
    assert index == 2


def test_normalize_price_query():
    sold, funding, index = normalize_price_query({
        'net_outcome_tokens_sold': (1, 2),
        'funding': 0,
        'outcome_token_index': 1,
    })
    assert sold == [Decimal(1), Decimal(2)]
    assert funding == 0
    assert index == 1


def test_missing_field(trade_query):
    del trade_query['outcome_token_count']
    with pytest.raises(InvalidInputError, match="Missing required field: outcome_token_count"):
        normalize_trade_query(trade_query)


def test_numpy_inputs():
    sold = validate_outcome_vector(np.array([10, -20, 30], dtype=np.int64))
    assert sold == [Decimal(10), Decimal(-20), Decimal(30)]
    assert validate_outcome_index(np.int32(2), 3) == 2
    assert validate_funding(np.int64(10**18)) == Decimal(10**18)


def test_outcome_vector_too_short():
    with pytest.raises(InvalidInputError, match="at least 2 outcomes"):
        validate_outcome_vector([1])
    with pytest.raises(InvalidInputError):
        validate_outcome_vector([])


def test_outcome_vector_must_be_sequence():
    with pytest.raises(InvalidInputError, match="must be a sequence"):
        validate_outcome_vector("12")
    with pytest.raises(InvalidInputError, match="must be a sequence"):
        validate_outcome_vector({0: 1, 1: 2})
    with pytest.raises(InvalidInputError, match="one-dimensional"):
        validate_outcome_vector(np.zeros((2, 2), dtype=np.int64))


def test_outcome_vector_rejects_fractional():
    with pytest.raises(InvalidInputError, match=r"net_outcome_tokens_sold\[1\]"):
        validate_outcome_vector([1, 1.5])


def test_integral_coercions():
    assert as_integral_decimal(3.0, 'x') == 3
    assert as_integral_decimal('42', 'x') == 42
    assert as_integral_decimal(Decimal('1E+3'), 'x') == 1000
    with pytest.raises(InvalidInputError, match="Must be an integer"):
        as_integral_decimal(Decimal('0.5'), 'x')


def test_as_decimal_rejects_garbage():
    with pytest.raises(InvalidInputError, match="Booleans"):
        as_decimal(True, 'x')
    with pytest.raises(InvalidInputError, match="Not a number"):
        as_decimal('abc', 'x')
    with pytest.raises(InvalidInputError, match="finite"):
        as_decimal(float('inf'), 'x')
    with pytest.raises(InvalidInputError, match="Unsupported type"):
        as_decimal(None, 'x')


def test_outcome_index_range():
    with pytest.raises(InvalidInputError, match="out of range"):
        validate_outcome_index(2, 2)
    with pytest.raises(InvalidInputError, match="out of range"):
        validate_outcome_index(-1, 2)
    with pytest.raises(InvalidInputError, match="Must be an int"):
        validate_outcome_index(True, 2)
    with pytest.raises(InvalidInputError, match="Must be an int"):
        validate_outcome_index(1.0, 2)


def test_negative_amounts_rejected():
    with pytest.raises(InvalidInputError, match="Invalid funding"):
        validate_funding(-1)
    with pytest.raises(InvalidInputError, match="Invalid outcome_token_count"):
        validate_token_count(-5)
    with pytest.raises(InvalidInputError, match="Invalid cost"):
        validate_cost(Decimal('-0.01'))


def test_fee_factor_bounds():
    assert validate_fee_factor(0) == 0
    assert validate_fee_factor(999_999) == 999_999
    with pytest.raises(InvalidInputError, match="fee_factor must be in"):
        validate_fee_factor(1_000_000)
    with pytest.raises(InvalidInputError, match="fee_factor must be in"):
        validate_fee_factor(-1)
    with pytest.raises(InvalidInputError, match="Must be an integer"):
        validate_fee_factor(0.5)


def test_errors_are_value_errors():
    with pytest.raises(ValueError):
        validate_fee_factor(1_000_000)

from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping, Sequence, Tuple

import numpy as np

from .errors import InvalidInputError

FEE_DENOMINATOR = 1_000_000
MIN_OUTCOMES = 2


def as_decimal(value: Any, name: str) -> Decimal:
    """Coerces a caller-supplied amount into a finite Decimal without rounding."""
    if isinstance(value, (bool, np.bool_)):
        raise InvalidInputError(f"Invalid {name}: {value!r}. Booleans are not amounts.")
    if isinstance(value, (int, np.integer)):
        return Decimal(int(value))
    if isinstance(value, (float, np.floating)):
        d = Decimal(str(float(value)))
    elif isinstance(value, Decimal):
        d = value
    elif isinstance(value, str):
        try:
            d = Decimal(value.strip())
        except InvalidOperation:
            raise InvalidInputError(f"Invalid {name}: {value!r}. Not a number.") from None
    else:
        raise InvalidInputError(f"Invalid {name}: {value!r}. Unsupported type {type(value).__name__}.")
    if not d.is_finite():
        raise InvalidInputError(f"Invalid {name}: {value!r}. Must be finite.")
    return d


def as_integral_decimal(value: Any, name: str) -> Decimal:
    d = as_decimal(value, name)
    if d != d.to_integral_value():
        raise InvalidInputError(f"Invalid {name}: {value!r}. Must be an integer.")
    return d


def validate_outcome_vector(values: Any) -> List[Decimal]:
    if isinstance(values, np.ndarray):
        if values.ndim != 1:
            raise InvalidInputError(f"net_outcome_tokens_sold must be one-dimensional, got shape {values.shape}.")
        values = values.tolist()
    if isinstance(values, (str, bytes, Mapping)) or not isinstance(values, Sequence):
        raise InvalidInputError(f"net_outcome_tokens_sold must be a sequence, got {type(values).__name__}.")
    if len(values) < MIN_OUTCOMES:
        raise InvalidInputError(f"An LMSR market needs at least {MIN_OUTCOMES} outcomes, got {len(values)}.")
    return [as_integral_decimal(v, f"net_outcome_tokens_sold[{i}]") for i, v in enumerate(values)]


def validate_funding(funding: Any) -> Decimal:
    d = as_integral_decimal(funding, "funding")
    if d < 0:
        raise InvalidInputError(f"Invalid funding: {funding}. Must be non-negative.")
    return d


def validate_outcome_index(index: Any, n_outcomes: int) -> int:
    if isinstance(index, (bool, np.bool_)) or not isinstance(index, (int, np.integer)):
        raise InvalidInputError(f"Invalid outcome_token_index: {index!r}. Must be an int.")
    index = int(index)
    if not (0 <= index < n_outcomes):
        raise InvalidInputError(f"outcome_token_index {index} out of range [0, {n_outcomes}).")
    return index


def validate_fee_factor(fee_factor: Any) -> Decimal:
    d = as_integral_decimal(fee_factor, "fee_factor")
    if not (0 <= d < FEE_DENOMINATOR):
        raise InvalidInputError(f"fee_factor must be in [0,{FEE_DENOMINATOR}), got {fee_factor}.")
    return d


def validate_token_count(count: Any) -> Decimal:
    d = as_integral_decimal(count, "outcome_token_count")
    if d < 0:
        raise InvalidInputError(f"Invalid outcome_token_count: {count}. Must be non-negative.")
    return d


def validate_cost(cost: Any) -> Decimal:
    d = as_decimal(cost, "cost")
    if d < 0:
        raise InvalidInputError(f"Invalid cost: {cost}. Must be non-negative.")
    return d


def _require(query: Mapping[str, Any], key: str) -> Any:
    try:
        return query[key]
    except KeyError:
        raise InvalidInputError(f"Missing required field: {key}") from None


def normalize_market_state(state: Mapping[str, Any]) -> Tuple[List[Decimal], Decimal]:
    sold = validate_outcome_vector(_require(state, 'net_outcome_tokens_sold'))
    funding = validate_funding(_require(state, 'funding'))
    return sold, funding


def normalize_trade_query(query: Mapping[str, Any]) -> Tuple[List[Decimal], Decimal, int, Decimal, Decimal]:
    """Returns (sold, funding, index, count, fee_factor) for cost and profit."""
    sold, funding = normalize_market_state(query)
    index = validate_outcome_index(_require(query, 'outcome_token_index'), len(sold))
    count = validate_token_count(_require(query, 'outcome_token_count'))
    fee_factor = validate_fee_factor(query.get('fee_factor', 0))
    return sold, funding, index, count, fee_factor


def normalize_budget_query(query: Mapping[str, Any]) -> Tuple[List[Decimal], Decimal, int, Decimal, Decimal]:
    """Returns (sold, funding, index, cost, fee_factor) for the inverse."""
    sold, funding = normalize_market_state(query)
    index = validate_outcome_index(_require(query, 'outcome_token_index'), len(sold))
    cost = validate_cost(_require(query, 'cost'))
    fee_factor = validate_fee_factor(query.get('fee_factor', 0))
    return sold, funding, index, cost, fee_factor


def normalize_price_query(query: Mapping[str, Any]) -> Tuple[List[Decimal], Decimal, int]:
    sold, funding = normalize_market_state(query)
    index = validate_outcome_index(_require(query, 'outcome_token_index'), len(sold))
    return sold, funding, index

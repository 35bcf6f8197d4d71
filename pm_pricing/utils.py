import json
import time
from decimal import Decimal
from typing import Any, Dict

import numpy as np

from pm_pricing.engine.numeric import FIXED_POINT_SLACK, to_decimal

QUOTE_AMOUNT_FIELDS = ('outcome_token_count', 'collateral')


def get_current_ms() -> int:
    return int(time.time() * 1000)


def is_close(a: Decimal, b: Decimal, rel_tol: Decimal = FIXED_POINT_SLACK, abs_tol: Decimal = Decimal(0)) -> bool:
    """Relative comparison at the same tolerance the fixed-point bias compensates for."""
    a, b = to_decimal(a), to_decimal(b)
    return abs(a - b) <= max(rel_tol * max(abs(a), abs(b)), abs_tol)


def to_settlement_amount(amount: Decimal) -> int:
    """Whole collateral/token units as an int, which is what a ledger accepts."""
    d = Decimal(amount)
    if not d.is_finite() or d != d.to_integral_value():
        raise ValueError(f"Settlement amount must be a whole number of units, got {amount}.")
    return int(d)


def settlement_payload(quote: Dict[str, Any]) -> Dict[str, Any]:
    payload = dict(quote)
    for key in QUOTE_AMOUNT_FIELDS:
        payload[key] = to_settlement_amount(payload[key])
    return payload


def serialize_quote(quote: Dict[str, Any]) -> str:
    def default_handler(obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, (np.float64, np.float32)):
            return float(obj)
        raise TypeError(f"Object of type {type(obj)} is not JSON serializable")
    return json.dumps(quote, default=default_handler)


def deserialize_quote(json_str: str) -> Dict[str, Any]:
    quote = json.loads(json_str)
    for key in QUOTE_AMOUNT_FIELDS:
        if key in quote:
            quote[key] = Decimal(str(quote[key]))
    return quote

from decimal import Decimal
from typing import List, Sequence

from .errors import InvalidInputError, NumericOverflowError, UndefinedInverseError
from .log_sum_exp import log_sum_exp, shifted_exp_terms, sum_exp
from .numeric import (
    FIXED_POINT_BIAS, ONE, ZERO, ceil, floor, ln, pricing_context,
)
from .params import (
    FEE_DENOMINATOR,
    normalize_budget_query,
    normalize_market_state,
    normalize_price_query,
    normalize_trade_query,
    validate_funding,
)
from . import MarketState, TradeQuery, BudgetQuery, PriceQuery


def liquidity_parameter(funding: int | Decimal, n_outcomes: int) -> Decimal:
    """b = funding / ln(n). Only defined for funded markets."""
    funding = validate_funding(funding)
    if funding == ZERO:
        raise InvalidInputError("Liquidity parameter is undefined for an unfunded market.")
    if n_outcomes < 2:
        raise InvalidInputError(f"An LMSR market needs at least 2 outcomes, got {n_outcomes}.")
    with pricing_context():
        return _b(funding, n_outcomes)


def max_market_maker_loss(funding: int | Decimal) -> Decimal:
    """Worst-case loss b * ln(n), which for b = funding / ln(n) is the funding itself."""
    return validate_funding(funding)


def _b(funding: Decimal, n_outcomes: int) -> Decimal:
    return funding / ln(Decimal(n_outcomes))


def _fee_rate(fee_factor: Decimal) -> Decimal:
    return fee_factor / Decimal(FEE_DENOMINATOR)


def _scaled(sold: Sequence[Decimal], b: Decimal) -> List[Decimal]:
    return [s / b for s in sold]


def calc_lmsr_cost(query: TradeQuery, stabilize: bool = False) -> Decimal:
    """
    Estimates the collateral needed to buy outcome_token_count tokens of one outcome.

    Unfunded markets sell at 1:1 plus fee. The fee-adjusted cost is scaled by
    FIXED_POINT_BIAS and rounded up to a whole unit.
    With stabilize=True both log-sum-exp terms use the max-shifted form; the
    default reproduces the unshifted on-chain evaluation, overflow included.
    """
    sold, funding, index, count, fee_factor = normalize_trade_query(query)

    with pricing_context():
        if funding == ZERO:
            base_cost = count
        else:
            b = _b(funding, len(sold))
            bought = [(s + count if i == index else s) / b for i, s in enumerate(sold)]
            base_cost = b * (log_sum_exp(bought, shifted=stabilize) - log_sum_exp(_scaled(sold, b), shifted=stabilize))

        return ceil(base_cost * (ONE + _fee_rate(fee_factor)) * FIXED_POINT_BIAS)


def calc_lmsr_profit(query: TradeQuery, stabilize: bool = False) -> Decimal:
    """
    Estimates the collateral refunded for selling outcome_token_count tokens back.

    Unfunded markets never buy back and return 0. The fee-reduced refund is
    divided by FIXED_POINT_BIAS and rounded down.
    """
    sold, funding, index, count, fee_factor = normalize_trade_query(query)

    if funding == ZERO:
        return Decimal('0')

    with pricing_context():
        b = _b(funding, len(sold))
        sold_back = [(s - count if i == index else s) / b for i, s in enumerate(sold)]
        base_profit = b * (log_sum_exp(_scaled(sold, b), shifted=stabilize) - log_sum_exp(sold_back, shifted=stabilize))

        return floor(base_profit * (ONE - _fee_rate(fee_factor)) / FIXED_POINT_BIAS)


def calc_lmsr_outcome_token_count(query: BudgetQuery, stabilize: bool = False) -> Decimal:
    """
    Estimates how many tokens of one outcome a collateral budget buys.

    Inverts the cost function analytically:
        count = b * ln(Σ_j exp((q_j + c)/b) - Σ_{j≠i} exp(q_j/b)) - q_i
    where c is the budget net of fee. Rounded down so the count is never
    overstated, and never below zero. Unfunded markets are not invertible and
    must be special-cased by the caller.
    """
    sold, funding, index, cost, fee_factor = normalize_budget_query(query)

    if funding == ZERO:
        raise InvalidInputError("Cannot invert the cost of an unfunded market.")

    with pricing_context():
        b = _b(funding, len(sold))
        net_cost = cost / (ONE + _fee_rate(fee_factor))
        funded = [(s + net_cost) / b for s in sold]
        others = [s / b for i, s in enumerate(sold) if i != index]

        if stabilize:
            m = max(funded)
            arg = sum_exp([v - m for v in funded]) - sum_exp([v - m for v in others])
        else:
            m = ZERO
            funded_total = sum_exp(funded)
            if funded_total == ZERO:
                raise NumericOverflowError("Exponent underflow: every term of the sum vanished at working precision.")
            arg = funded_total - sum_exp(others)

        if arg <= ZERO:
            raise UndefinedInverseError(
                f"Cost {cost} is not achievable for outcome {index}: logarithm argument {arg} is not positive."
            )

        # ln(exp(x)) round-off can floor a zero budget to -1
        return max(floor(b * (m + ln(arg)) - sold[index]), ZERO)


def calc_lmsr_marginal_price(query: PriceQuery) -> Decimal:
    """
    Instantaneous price of one outcome, ignoring fee and trade size.

    An unfunded market with nothing sold has the uniform price 1/n. Always
    evaluated with the max-shifted exponentials, so large token counts do not
    overflow. The result is not rounded.
    """
    sold, funding, index = normalize_price_query(query)
    return _marginal_prices(sold, funding)[index]


def calc_lmsr_marginal_prices(state: MarketState) -> List[Decimal]:
    """Marginal prices of every outcome from a single evaluation; they sum to 1."""
    sold, funding = normalize_market_state(state)
    return _marginal_prices(sold, funding)


def _marginal_prices(sold: List[Decimal], funding: Decimal) -> List[Decimal]:
    n = len(sold)
    with pricing_context():
        if funding == ZERO:
            if all(s == ZERO for s in sold):
                uniform = ONE / Decimal(n)
                return [uniform] * n
            raise InvalidInputError("Marginal price is undefined for an unfunded market with tokens outstanding.")

        b = _b(funding, n)
        _, terms = shifted_exp_terms(_scaled(sold, b))
        total = sum(terms, ZERO)
        return [t / total for t in terms]

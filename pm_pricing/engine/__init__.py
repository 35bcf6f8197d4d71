from decimal import Decimal
from typing import Sequence, Union
from typing_extensions import NotRequired, TypedDict

Amount = Union[int, str, Decimal]


class MarketState(TypedDict):
    """
    Snapshot of an LMSR market as supplied by a market-state provider.
    net_outcome_tokens_sold[i] = tokens of outcome i sold by the market maker minus tokens bought back.
    """
    net_outcome_tokens_sold: Sequence[Amount]
    funding: Amount


class TradeQuery(TypedDict):
    net_outcome_tokens_sold: Sequence[Amount]
    funding: Amount
    outcome_token_index: int
    outcome_token_count: Amount
    fee_factor: NotRequired[Amount]  # parts per million, defaults to 0


class BudgetQuery(TypedDict):
    net_outcome_tokens_sold: Sequence[Amount]
    funding: Amount
    outcome_token_index: int
    cost: Amount
    fee_factor: NotRequired[Amount]


class PriceQuery(TypedDict):
    net_outcome_tokens_sold: Sequence[Amount]
    funding: Amount
    outcome_token_index: int


from .errors import InvalidInputError, UndefinedInverseError, NumericOverflowError
from .lmsr import (
    calc_lmsr_cost,
    calc_lmsr_profit,
    calc_lmsr_outcome_token_count,
    calc_lmsr_marginal_price,
    calc_lmsr_marginal_prices,
    liquidity_parameter,
    max_market_maker_loss,
)

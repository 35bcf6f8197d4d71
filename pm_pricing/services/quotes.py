import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional
from typing_extensions import Protocol, TypedDict

from pm_pricing.config import PricingConfig, get_active_pricing_config
from pm_pricing.engine import (
    BudgetQuery, MarketState, TradeQuery,
    calc_lmsr_cost, calc_lmsr_marginal_prices, calc_lmsr_outcome_token_count, calc_lmsr_profit,
)
from pm_pricing.engine.numeric import FIXED_POINT_BIAS, floor, pricing_context
from pm_pricing.engine.params import (
    FEE_DENOMINATOR, validate_cost, validate_fee_factor, validate_funding, validate_token_count,
)
from pm_pricing.utils import get_current_ms, settlement_payload

logger = logging.getLogger(__name__)


class Quote(TypedDict):
    market_id: str
    side: str  # 'BUY' or 'SELL'
    outcome_token_index: int
    outcome_token_count: Decimal
    collateral: Decimal  # cost for BUY, refund for SELL
    fee_factor: int
    ts_ms: int


class MarketStateProvider(Protocol):
    def fetch_market_state(self, market_id: str) -> MarketState:
        ...


class SettlementLayer(Protocol):
    def settle(self, payload: Dict[str, Any]) -> None:
        ...


class InMemoryMarketStateProvider:
    """Dict-backed provider for tests and offline quoting."""

    def __init__(self, markets: Optional[Dict[str, MarketState]] = None):
        self._markets: Dict[str, MarketState] = dict(markets or {})

    def register_market(self, market_id: str, state: MarketState) -> None:
        self._markets[market_id] = state

    def fetch_market_state(self, market_id: str) -> MarketState:
        try:
            state = self._markets[market_id]
        except KeyError:
            raise ValueError(f"Market not found: {market_id}") from None
        return MarketState(
            net_outcome_tokens_sold=list(state['net_outcome_tokens_sold']),
            funding=state['funding'],
        )


def _stabilize(config: Optional[PricingConfig]) -> bool:
    return (config or get_active_pricing_config())['stabilize_all']


def _trade_query(state: MarketState, outcome_token_index: int, outcome_token_count: Any, fee_factor: Any) -> TradeQuery:
    return TradeQuery(
        net_outcome_tokens_sold=state['net_outcome_tokens_sold'],
        funding=state['funding'],
        outcome_token_index=outcome_token_index,
        outcome_token_count=outcome_token_count,
        fee_factor=fee_factor,
    )


def quote_buy(provider: MarketStateProvider, market_id: str, outcome_token_index: int,
              outcome_token_count: Any, fee_factor: int = 0, config: Optional[PricingConfig] = None) -> Quote:
    state = provider.fetch_market_state(market_id)
    try:
        cost = calc_lmsr_cost(_trade_query(state, outcome_token_index, outcome_token_count, fee_factor),
                              stabilize=_stabilize(config))
    except (ValueError, OverflowError) as e:
        logger.error(f"Buy quote failed for market {market_id}, outcome {outcome_token_index}: {e}")
        raise

    logger.debug(f"Market {market_id}: buy {outcome_token_count} of outcome {outcome_token_index} costs {cost}")
    return Quote(
        market_id=market_id,
        side='BUY',
        outcome_token_index=outcome_token_index,
        outcome_token_count=validate_token_count(outcome_token_count),
        collateral=cost,
        fee_factor=fee_factor,
        ts_ms=get_current_ms(),
    )


def quote_sell(provider: MarketStateProvider, market_id: str, outcome_token_index: int,
               outcome_token_count: Any, fee_factor: int = 0, config: Optional[PricingConfig] = None) -> Quote:
    state = provider.fetch_market_state(market_id)
    try:
        profit = calc_lmsr_profit(_trade_query(state, outcome_token_index, outcome_token_count, fee_factor),
                                  stabilize=_stabilize(config))
    except (ValueError, OverflowError) as e:
        logger.error(f"Sell quote failed for market {market_id}, outcome {outcome_token_index}: {e}")
        raise

    logger.debug(f"Market {market_id}: sell {outcome_token_count} of outcome {outcome_token_index} refunds {profit}")
    return Quote(
        market_id=market_id,
        side='SELL',
        outcome_token_index=outcome_token_index,
        outcome_token_count=validate_token_count(outcome_token_count),
        collateral=profit,
        fee_factor=fee_factor,
        ts_ms=get_current_ms(),
    )


def quote_buy_with_budget(provider: MarketStateProvider, market_id: str, outcome_token_index: int,
                          cost: Any, fee_factor: int = 0, config: Optional[PricingConfig] = None) -> Quote:
    """
    Buy quote sized by a collateral budget. The budget is rounded down to whole
    units and carried as the collateral the buyer commits. Unfunded markets sell
    at 1:1 plus fee, so the count there is the fee-net budget rounded down.
    """
    state = provider.fetch_market_state(market_id)
    try:
        budget = floor(validate_cost(cost))
        if validate_funding(state['funding']) == 0:
            count = _unfunded_count_for_cost(budget, validate_fee_factor(fee_factor))
        else:
            query = BudgetQuery(
                net_outcome_tokens_sold=state['net_outcome_tokens_sold'],
                funding=state['funding'],
                outcome_token_index=outcome_token_index,
                cost=budget,
                fee_factor=fee_factor,
            )
            count = calc_lmsr_outcome_token_count(query, stabilize=_stabilize(config))
    except (ValueError, OverflowError) as e:
        logger.error(f"Budget quote failed for market {market_id}, outcome {outcome_token_index}: {e}")
        raise

    logger.debug(f"Market {market_id}: budget {budget} buys {count} of outcome {outcome_token_index}")
    return Quote(
        market_id=market_id,
        side='BUY',
        outcome_token_index=outcome_token_index,
        outcome_token_count=count,
        collateral=budget,
        fee_factor=fee_factor,
        ts_ms=get_current_ms(),
    )


def _unfunded_count_for_cost(cost: Decimal, fee_factor: Decimal) -> Decimal:
    # Inverse of ceil(count * (1 + fee) * bias) at the unfunded 1:1 price.
    with pricing_context():
        return floor(cost / ((1 + fee_factor / FEE_DENOMINATOR) * FIXED_POINT_BIAS))


def quote_marginal_prices(provider: MarketStateProvider, market_id: str) -> List[Decimal]:
    state = provider.fetch_market_state(market_id)
    try:
        return calc_lmsr_marginal_prices(state)
    except ValueError as e:
        logger.error(f"Price quote failed for market {market_id}: {e}")
        raise


def submit_quote(settlement: SettlementLayer, quote: Quote) -> Dict[str, Any]:
    """Hands a quote to the settlement layer with amounts as whole-unit ints."""
    payload = settlement_payload(quote)
    settlement.settle(payload)
    logger.info(
        f"Submitted {quote['side']} quote for market {quote['market_id']}: "
        f"{payload['outcome_token_count']} tokens of outcome {quote['outcome_token_index']} "
        f"for {payload['collateral']}"
    )
    return payload

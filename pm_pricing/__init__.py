from .engine import (
    MarketState,
    TradeQuery,
    BudgetQuery,
    PriceQuery,
    InvalidInputError,
    UndefinedInverseError,
    NumericOverflowError,
    calc_lmsr_cost,
    calc_lmsr_profit,
    calc_lmsr_outcome_token_count,
    calc_lmsr_marginal_price,
    calc_lmsr_marginal_prices,
    liquidity_parameter,
    max_market_maker_loss,
)
from .config import PricingConfig, apply_pricing_config, get_active_pricing_config, load_pricing_config

from .quotes import (
    InMemoryMarketStateProvider,
    MarketStateProvider,
    Quote,
    SettlementLayer,
    quote_buy,
    quote_buy_with_budget,
    quote_marginal_prices,
    quote_sell,
    submit_quote,
)

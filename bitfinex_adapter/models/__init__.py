"""Domain models for the trading adapter."""

from .shared import BookPrecision, Exchange, OrderStatus, Side, TakerOrMaker, Timeframe
from .trading import (
    OHLCV,
    Balance,
    BalanceAccount,
    BookLevel,
    Fee,
    Market,
    MarketLimits,
    MarketPrecision,
    MinMax,
    Order,
    OrderBook,
    PlatformStatus,
    Ticker,
    Trade,
)

__all__ = [
    "BookPrecision",
    "Exchange",
    "OrderStatus",
    "Side",
    "TakerOrMaker",
    "Timeframe",
    "OHLCV",
    "Balance",
    "BalanceAccount",
    "BookLevel",
    "Fee",
    "Market",
    "MarketLimits",
    "MarketPrecision",
    "MinMax",
    "Order",
    "OrderBook",
    "PlatformStatus",
    "Ticker",
    "Trade",
]

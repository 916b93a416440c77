"""Bitfinex v2 REST trading adapter.

This module exposes the public API for the trading contract, normalized models,
the error taxonomy and the helper utilities shared by the venue adapter. The
adapter itself lives in ``bitfinex_adapter.exchanges.bitfinex.spot`` and
registers itself with the registry on import.
"""

from .contracts.trading.interface import TradingExchange
from .core.config import BitfinexSettings
from .core.coordinator import TradingClient
from .core.errors import (
    ArgumentsRequired,
    AuthenticationError,
    BadSymbol,
    ErrorKind,
    ExchangeError,
    ExchangeTransientError,
    InsufficientFunds,
    InvalidOrder,
    NotSupported,
    OnMaintenance,
    OrderNotFound,
    ResponseParseError,
)
from .core.queries import CandleWindow, MyTradesQuery, TradeWindow
from .core.registry import create_trading_exchange, register_trading_exchange
from .core.signer import Credentials
from .models.shared import BookPrecision, Exchange, OrderStatus, Side, TakerOrMaker, Timeframe
from .models.trading import Balance, Market, Order, OrderBook, PlatformStatus, Ticker, Trade

__all__ = [
    "TradingExchange",
    "TradingClient",
    "BitfinexSettings",
    "Credentials",
    "TradeWindow",
    "CandleWindow",
    "MyTradesQuery",
    "BookPrecision",
    "Exchange",
    "OrderStatus",
    "Side",
    "TakerOrMaker",
    "Timeframe",
    "Balance",
    "Market",
    "Order",
    "OrderBook",
    "PlatformStatus",
    "Ticker",
    "Trade",
    "register_trading_exchange",
    "create_trading_exchange",
    "ErrorKind",
    "ExchangeError",
    "ExchangeTransientError",
    "ArgumentsRequired",
    "AuthenticationError",
    "BadSymbol",
    "InsufficientFunds",
    "InvalidOrder",
    "NotSupported",
    "OnMaintenance",
    "OrderNotFound",
    "ResponseParseError",
]

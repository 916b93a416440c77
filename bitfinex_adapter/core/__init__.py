"""Core utilities for the trading adapter."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "TradingClient",
    "TradeWindow",
    "CandleWindow",
    "MyTradesQuery",
    "BitfinexSettings",
    "Credentials",
    "RequestSigner",
    "NonceGenerator",
    "OrderLifecycleResolver",
    "classify_error",
    "register_trading_exchange",
    "create_trading_exchange",
    "ExchangeError",
    "ExchangeTransientError",
]

_lazy_targets = {
    "TradingClient": ("coordinator", "TradingClient"),
    "TradeWindow": ("queries", "TradeWindow"),
    "CandleWindow": ("queries", "CandleWindow"),
    "MyTradesQuery": ("queries", "MyTradesQuery"),
    "BitfinexSettings": ("config", "BitfinexSettings"),
    "Credentials": ("signer", "Credentials"),
    "RequestSigner": ("signer", "RequestSigner"),
    "NonceGenerator": ("signer", "NonceGenerator"),
    "OrderLifecycleResolver": ("resolver", "OrderLifecycleResolver"),
    "classify_error": ("classifier", "classify_error"),
    "register_trading_exchange": ("registry", "register_trading_exchange"),
    "create_trading_exchange": ("registry", "create_trading_exchange"),
    "ExchangeError": ("errors", "ExchangeError"),
    "ExchangeTransientError": ("errors", "ExchangeTransientError"),
}


def __getattr__(name: str) -> Any:
    try:
        module_name, attr_name = _lazy_targets[name]
    except KeyError as exc:
        raise AttributeError(f"module 'bitfinex_adapter.core' has no attribute {name!r}") from exc
    module = import_module(f"{__name__}.{module_name}")
    value = getattr(module, attr_name)
    globals()[name] = value
    return value

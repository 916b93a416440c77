"""Process-wide table of trading adapter factories keyed by venue."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import MappingProxyType

from ..contracts.trading.interface import TradingExchange
from ..models.shared import Exchange
from .errors import NotSupported

TradingExchangeFactory = Callable[[], TradingExchange]

_factories: dict[Exchange, TradingExchangeFactory] = {}


def register_trading_exchange(
    exchange: Exchange | str,
    factory: TradingExchangeFactory,
    *,
    replace: bool = False,
) -> None:
    """Register the factory used for ``exchange``; adapters call this on import."""

    venue = Exchange(exchange)
    if venue in _factories and not replace:
        raise ValueError(f"Trading adapter for {venue} already registered")
    _factories[venue] = factory


def create_trading_exchange(exchange: Exchange | str) -> TradingExchange:
    """Build a fresh adapter for a venue given by enum member or name."""

    try:
        factory = _factories[Exchange(exchange)]
    except (KeyError, ValueError) as exc:
        raise NotSupported(f"No trading adapter registered for {exchange!r}") from exc
    return factory()


def registered_trading_exchanges() -> Mapping[Exchange, TradingExchangeFactory]:
    return MappingProxyType(_factories)

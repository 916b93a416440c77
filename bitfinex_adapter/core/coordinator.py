"""High-level coordinator that routes calls to concrete trading adapters."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from decimal import Decimal
from typing import Any

from ..contracts.trading.interface import TradingExchange
from ..models.shared import Exchange, Side
from ..models.trading import OHLCV, Balance, Market, Order, OrderBook, PlatformStatus, Ticker, Trade
from .queries import CandleWindow, MyTradesQuery, TradeWindow
from .registry import create_trading_exchange

SourceResolver = Callable[[Exchange], TradingExchange]


class TradingClient:
    """Entry point consumed by SDK/CLI callers."""

    def __init__(
        self,
        *,
        source_overrides: Mapping[Exchange, TradingExchange] | None = None,
        resolver: SourceResolver = create_trading_exchange,
    ) -> None:
        self._resolver = resolver
        self._sources: dict[Exchange, TradingExchange] = {}
        if source_overrides:
            self._sources.update(source_overrides)

    # Market data -------------------------------------------------------
    def fetch_status(self, exchange: Exchange) -> PlatformStatus:
        return self._get_source(exchange).fetch_status()

    def fetch_markets(self, exchange: Exchange) -> Sequence[Market]:
        return self._get_source(exchange).fetch_markets()

    def fetch_ticker(self, exchange: Exchange, symbol: str) -> Ticker:
        return self._get_source(exchange).fetch_ticker(symbol)

    def fetch_tickers(self, exchange: Exchange, symbols: Sequence[str] | None = None) -> dict[str, Ticker]:
        return self._get_source(exchange).fetch_tickers(symbols)

    def fetch_trades(self, exchange: Exchange, query: TradeWindow) -> Sequence[Trade]:
        return self._get_source(exchange).fetch_trades(query)

    def fetch_ohlcv(self, exchange: Exchange, query: CandleWindow) -> Sequence[OHLCV]:
        return self._get_source(exchange).fetch_ohlcv(query)

    def fetch_order_book(
        self,
        exchange: Exchange,
        symbol: str,
        limit: int | None = None,
        precision: str | None = None,
    ) -> OrderBook:
        return self._get_source(exchange).fetch_order_book(symbol, limit, precision)

    # Account -----------------------------------------------------------
    def fetch_balance(self, exchange: Exchange, account_type: str = "exchange") -> Balance:
        return self._get_source(exchange).fetch_balance(account_type)

    def create_order(
        self,
        exchange: Exchange,
        symbol: str,
        order_type: str,
        side: Side,
        amount: Decimal,
        price: Decimal | None = None,
        params: dict[str, Any] | None = None,
    ) -> Order:
        return self._get_source(exchange).create_order(symbol, order_type, side, amount, price, params)

    def cancel_order(self, exchange: Exchange, order_id: str, symbol: str | None = None) -> Order:
        return self._get_source(exchange).cancel_order(order_id, symbol)

    def cancel_all_orders(self, exchange: Exchange) -> Sequence[Order]:
        return self._get_source(exchange).cancel_all_orders()

    def fetch_order(self, exchange: Exchange, order_id: str, symbol: str | None = None) -> Order:
        """Return one order with trades and the aggregated fee attached."""

        return self._get_source(exchange).fetch_order(order_id, symbol)

    def fetch_open_orders(self, exchange: Exchange, symbol: str) -> Sequence[Order]:
        return self._get_source(exchange).fetch_open_orders(symbol)

    def fetch_closed_orders(self, exchange: Exchange, symbol: str) -> Sequence[Order]:
        return self._get_source(exchange).fetch_closed_orders(symbol)

    def fetch_order_trades(self, exchange: Exchange, order_id: str, symbol: str) -> Sequence[Trade]:
        return self._get_source(exchange).fetch_order_trades(order_id, symbol)

    def fetch_my_trades(self, exchange: Exchange, query: MyTradesQuery) -> Sequence[Trade]:
        return self._get_source(exchange).fetch_my_trades(query)

    # Internal ----------------------------------------------------------
    def _get_source(self, exchange: Exchange) -> TradingExchange:
        try:
            return self._sources[exchange]
        except KeyError:
            source = self._resolver(exchange)
            self._sources[exchange] = source
            return source

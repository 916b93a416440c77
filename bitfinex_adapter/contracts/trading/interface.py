"""Protocols describing spot trading exchange adapters."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, ClassVar, Protocol, Sequence, runtime_checkable

from ...core.queries import CandleWindow, MyTradesQuery, TradeWindow
from ...models.shared import Exchange, Side
from ...models.trading import OHLCV, Balance, Market, Order, OrderBook, PlatformStatus, Ticker, Trade


@runtime_checkable
class TradingExchange(Protocol):
    """Exchange adapter serving public market data and private account calls."""

    exchange: ClassVar[Exchange]

    # Public ------------------------------------------------------------
    def fetch_status(self) -> PlatformStatus:
        """Return whether the venue is operating or on maintenance."""

    def fetch_markets(self) -> Sequence[Market]:
        """Return normalized metadata for every listed market."""

    def fetch_ticker(self, symbol: str) -> Ticker:
        """Return the latest ticker for one market."""

    def fetch_tickers(self, symbols: Sequence[str] | None = None) -> dict[str, Ticker]:
        """Return tickers keyed by canonical symbol."""

    def fetch_trades(self, query: TradeWindow) -> Sequence[Trade]:
        """Return public trades ordered by timestamp."""

    def fetch_ohlcv(self, query: CandleWindow) -> Sequence[OHLCV]:
        """Return candles as ``(ts, open, high, low, close, volume)`` rows."""

    def fetch_order_book(self, symbol: str, limit: int | None = None, precision: str | None = None) -> OrderBook:
        """Return an order book snapshot with sorted sides."""

    # Private -----------------------------------------------------------
    def fetch_balance(self, account_type: str = "exchange") -> Balance:
        """Return per-currency balances of one wallet type."""

    def create_order(
        self,
        symbol: str,
        order_type: str,
        side: Side,
        amount: Decimal,
        price: Decimal | None = None,
        params: dict[str, Any] | None = None,
    ) -> Order:
        """Submit an order and return its acknowledged state."""

    def cancel_order(self, order_id: str, symbol: str | None = None) -> Order:
        """Cancel one order."""

    def cancel_all_orders(self) -> Sequence[Order]:
        """Cancel every open order of the account."""

    def fetch_open_orders(self, symbol: str, *, ids: Sequence[str] | None = None) -> Sequence[Order]:
        """Return open orders of one market."""

    def fetch_closed_orders(self, symbol: str, *, ids: Sequence[str] | None = None) -> Sequence[Order]:
        """Return recently closed or canceled orders of one market."""

    def fetch_order_trades(self, order_id: str, symbol: str) -> Sequence[Trade]:
        """Return the fills of one order."""

    def fetch_order(self, order_id: str, symbol: str | None = None) -> Order:
        """Return one order with its trades and aggregated fee attached."""

    def fetch_my_trades(self, query: MyTradesQuery) -> Sequence[Trade]:
        """Return the account's trade history."""

"""Bitfinex v2 spot trading implementation."""

from __future__ import annotations

import logging
import time
from decimal import Decimal
from typing import Any, Sequence

import requests

from ...contracts.trading.interface import TradingExchange
from ...core.classifier import check_message, classify_error
from ...core.config import BitfinexSettings
from ...core.errors import (
    ArgumentsRequired,
    ExchangeTransientError,
    InvalidOrder,
    NotSupported,
    ResponseParseError,
)
from ...core.queries import CandleWindow, MyTradesQuery, TradeWindow
from ...core.registry import register_trading_exchange
from ...core.resolver import OrderLifecycleResolver
from ...core.signer import ApiSection, Credentials, RequestSigner
from ...models.shared import BookPrecision, Exchange, Side, Timeframe
from ...models.trading import OHLCV, Balance, Market, Order, OrderBook, PlatformStatus, Ticker, Trade
from .catalog import MarketCatalog, build_catalog
from .parsers import (
    candle_timestamp,
    fee_to_precision,
    filter_by_since_limit,
    native_order_type,
    parse_balance,
    parse_notification,
    parse_ohlcv,
    parse_order,
    parse_order_book,
    parse_orders,
    parse_ticker,
    parse_trades,
)

logger = logging.getLogger(__name__)

STATUS_ENDPOINT = "platform/status"
SYMBOLS_DETAILS_ENDPOINT = "symbols_details"
TICKER_ENDPOINT = "ticker/{symbol}"
TICKERS_ENDPOINT = "tickers"
TRADES_ENDPOINT = "trades/{symbol}/hist"
BOOK_ENDPOINT = "book/{symbol}/{precision}"
CANDLES_ENDPOINT = "candles/trade:{timeframe}:{symbol}/hist"
WALLETS_ENDPOINT = "auth/r/wallets"
ORDER_SUBMIT_ENDPOINT = "auth/w/order/submit"
ORDER_CANCEL_ENDPOINT = "auth/w/order/cancel"
ORDER_CANCEL_MULTI_ENDPOINT = "auth/w/order/cancel/multi"
OPEN_ORDERS_ENDPOINT = "auth/r/orders/{symbol}"
CLOSED_ORDERS_ENDPOINT = "auth/r/orders/{symbol}/hist"
ORDER_TRADES_ENDPOINT = "auth/r/order/{symbol}:{id}/trades"
MY_TRADES_ENDPOINT = "auth/r/trades/hist"
MY_TRADES_SYMBOL_ENDPOINT = "auth/r/trades/{symbol}/hist"

STATUS_OK = 1
ALL_SYMBOLS = "ALL"
SORT_ASCENDING = 1
SORT_DESCENDING = -1

TIMEFRAME_MAP: dict[Timeframe, str] = {
    Timeframe.MINUTE_1: "1m",
    Timeframe.MINUTE_5: "5m",
    Timeframe.MINUTE_15: "15m",
    Timeframe.MINUTE_30: "30m",
    Timeframe.HOUR_1: "1h",
    Timeframe.HOUR_3: "3h",
    Timeframe.HOUR_6: "6h",
    Timeframe.HOUR_12: "12h",
    Timeframe.DAY_1: "1D",
    Timeframe.WEEK_1: "7D",
    Timeframe.WEEK_2: "14D",
    Timeframe.MONTH_1: "1M",
}

TIMEFRAME_SECONDS: dict[Timeframe, int] = {
    Timeframe.MINUTE_1: 60,
    Timeframe.MINUTE_5: 300,
    Timeframe.MINUTE_15: 900,
    Timeframe.MINUTE_30: 1800,
    Timeframe.HOUR_1: 3600,
    Timeframe.HOUR_3: 10800,
    Timeframe.HOUR_6: 21600,
    Timeframe.HOUR_12: 43200,
    Timeframe.DAY_1: 86400,
    Timeframe.WEEK_1: 604800,
    Timeframe.WEEK_2: 1209600,
    Timeframe.MONTH_1: 2592000,
}


class BitfinexDataSource(TradingExchange):
    """Requests-backed implementation for Bitfinex spot markets."""

    exchange = Exchange.BITFINEX

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        catalog: MarketCatalog | None = None,
        credentials: Credentials | None = None,
        settings: BitfinexSettings | None = None,
        signer: RequestSigner | None = None,
    ) -> None:
        self._settings = settings or BitfinexSettings()
        if credentials is None and self._settings.api_key and self._settings.api_secret:
            credentials = Credentials(self._settings.api_key, self._settings.api_secret)
        self._signer = signer or RequestSigner(
            credentials,
            public_url=self._settings.public_url,
            private_url=self._settings.private_url,
            v1_url=self._settings.v1_url,
            version=self._settings.version,
        )
        self._session = session or requests.Session()
        self._owns_session = session is None
        self._timeout = self._settings.timeout
        self._catalog = catalog
        self._resolver = OrderLifecycleResolver(self, fee_precision=self._fee_to_precision)

    @property
    def catalog(self) -> MarketCatalog:
        """The market catalog, loaded from the venue on first use when not injected."""

        if self._catalog is None:
            return self.load_markets()
        return self._catalog

    # ------------------------------------------------------------------
    # Public endpoints
    def fetch_status(self) -> PlatformStatus:
        payload = self._public(STATUS_ENDPOINT)
        if not isinstance(payload, list) or not payload:
            raise ResponseParseError(f"Unexpected bitfinex status payload: {payload!r}")
        status = "ok" if payload[0] == STATUS_OK else "maintenance"
        return PlatformStatus(status=status, updated=_now_ms())

    def fetch_markets(self) -> list[Market]:
        payload = self._request(ApiSection.V1, SYMBOLS_DETAILS_ENDPOINT)
        if not isinstance(payload, list):
            raise ResponseParseError("Unexpected bitfinex symbols_details payload structure")
        return list(build_catalog(payload))

    def load_markets(self) -> MarketCatalog:
        """Fetch the listing and replace the current catalog with a fresh one."""

        catalog = MarketCatalog(self.fetch_markets())
        logger.info("Loaded %d bitfinex markets", len(catalog))
        self._catalog = catalog
        return catalog

    def fetch_ticker(self, symbol: str) -> Ticker:
        market = self.catalog.market(symbol)
        payload = self._public(TICKER_ENDPOINT, {"symbol": market.id})
        return parse_ticker(self._expect_list(payload, "ticker"), market)

    def fetch_tickers(self, symbols: Sequence[str] | None = None) -> dict[str, Ticker]:
        catalog = self.catalog
        ids = ",".join(catalog.market_ids(symbols)) if symbols is not None else ALL_SYMBOLS
        payload = self._expect_list(self._public(TICKERS_ENDPOINT, {"symbols": ids}), "tickers")
        result: dict[str, Ticker] = {}
        for row in payload:
            market = catalog.by_id(row[0]) if row else None
            if market is None:
                continue
            result[market.symbol] = parse_ticker(row, market)
        return result

    def fetch_trades(self, query: TradeWindow) -> list[Trade]:
        market = self.catalog.market(query.symbol)
        params: dict[str, Any] = {"symbol": market.id, "sort": SORT_DESCENDING}
        if query.since is not None:
            params["start"] = query.since
            params["sort"] = SORT_ASCENDING
        if query.limit is not None:
            params["limit"] = query.limit
        payload = self._expect_list(self._public(TRADES_ENDPOINT, params), "trades")
        return parse_trades(payload, self.catalog, market, since=query.since, limit=query.limit)

    def fetch_ohlcv(self, query: CandleWindow) -> list[OHLCV]:
        market = self.catalog.market(query.symbol)
        since = query.since
        if since is None:
            since = _now_ms() - TIMEFRAME_SECONDS[query.timeframe] * query.limit * 1000
        params = {
            "symbol": market.id,
            "timeframe": TIMEFRAME_MAP[query.timeframe],
            "sort": SORT_ASCENDING,
            "start": since,
            "limit": query.limit,
        }
        payload = self._expect_list(self._public(CANDLES_ENDPOINT, params), "candles")
        candles = sorted((parse_ohlcv(row) for row in payload), key=candle_timestamp)
        return filter_by_since_limit(candles, query.since, query.limit, key=candle_timestamp)

    def fetch_order_book(
        self,
        symbol: str,
        limit: int | None = None,
        precision: BookPrecision | str | None = None,
    ) -> OrderBook:
        level = BookPrecision(precision or self._settings.book_precision)
        market = self.catalog.market(symbol)
        params: dict[str, Any] = {"symbol": market.id, "precision": level.value}
        if limit is not None:
            params["len"] = limit
        payload = self._expect_list(self._public(BOOK_ENDPOINT, params), "order book")
        return parse_order_book(payload, market.symbol, level)

    # ------------------------------------------------------------------
    # Private endpoints
    def fetch_balance(self, account_type: str = "exchange") -> Balance:
        payload = self._expect_list(self._private(WALLETS_ENDPOINT), "wallets")
        return parse_balance(payload, account_type)

    def create_order(
        self,
        symbol: str,
        order_type: str,
        side: Side | str,
        amount: Decimal,
        price: Decimal | None = None,
        params: dict[str, Any] | None = None,
    ) -> Order:
        native_type = native_order_type(order_type)
        if native_type is None:
            raise InvalidOrder(f"bitfinex does not support order type {order_type!r}")
        is_market = order_type == "market"
        if not is_market and price is None:
            raise ArgumentsRequired(f"bitfinex {order_type} orders require a price")
        market = self.catalog.market(symbol)
        quantity = _format_decimal(abs(Decimal(str(amount))))
        if Side(side) is Side.SELL:
            quantity = "-" + quantity
        request: dict[str, Any] = {"symbol": market.id, "type": native_type, "amount": quantity}
        if not is_market:
            request["price"] = _format_decimal(Decimal(str(price)))
        request.update(params or {})
        payload = parse_notification(self._private(ORDER_SUBMIT_ENDPOINT, request))
        if not isinstance(payload, list) or not payload:
            raise ResponseParseError("bitfinex order submission acknowledged without an order")
        order = parse_order(payload[0], self.catalog, market)
        logger.info("Submitted bitfinex order %s %s %s %s", order.id, order_type, side, symbol)
        if self._settings.fetch_order_on_create:
            return self.fetch_order(order.id, symbol)
        return order

    def cancel_order(self, order_id: str, symbol: str | None = None) -> Order:
        market = self.catalog.market(symbol) if symbol is not None else None
        payload = parse_notification(self._private(ORDER_CANCEL_ENDPOINT, {"id": _order_id(order_id)}))
        return parse_order(payload, self.catalog, market)

    def cancel_all_orders(self) -> list[Order]:
        payload = parse_notification(self._private(ORDER_CANCEL_MULTI_ENDPOINT, {"all": 1}))
        return parse_orders(payload or [], self.catalog)

    def fetch_open_orders(
        self,
        symbol: str,
        *,
        ids: Sequence[str] | None = None,
        since: int | None = None,
        limit: int | None = None,
    ) -> list[Order]:
        return self._fetch_orders(OPEN_ORDERS_ENDPOINT, symbol, ids, since, limit)

    def fetch_closed_orders(
        self,
        symbol: str,
        *,
        ids: Sequence[str] | None = None,
        since: int | None = None,
        limit: int | None = None,
    ) -> list[Order]:
        # the venue keeps roughly two weeks of closed and canceled orders
        return self._fetch_orders(CLOSED_ORDERS_ENDPOINT, symbol, ids, since, limit)

    def fetch_order_trades(self, order_id: str, symbol: str) -> list[Trade]:
        market = self.catalog.market(symbol)
        params = {"symbol": market.id, "id": order_id}
        payload = self._expect_list(self._private(ORDER_TRADES_ENDPOINT, params), "order trades")
        return parse_trades(payload, self.catalog, market)

    def fetch_order(self, order_id: str, symbol: str | None = None) -> Order:
        return self._resolver.resolve(order_id, symbol)

    def fetch_my_trades(self, query: MyTradesQuery) -> list[Trade]:
        request: dict[str, Any] = {"end": _now_ms()}
        if query.since is not None:
            request["start"] = query.since
        if query.limit is not None:
            request["limit"] = query.limit
        market = None
        endpoint = MY_TRADES_ENDPOINT
        if query.symbol is not None:
            market = self.catalog.market(query.symbol)
            request["symbol"] = market.id
            endpoint = MY_TRADES_SYMBOL_ENDPOINT
        payload = self._expect_list(self._private(endpoint, request), "trades")
        return parse_trades(payload, self.catalog, market, since=query.since, limit=query.limit)

    # ------------------------------------------------------------------
    # Unsupported
    def fetch_deposit_address(self, code: str) -> Any:
        raise NotSupported("bitfinex fetch_deposit_address is not implemented yet")

    def withdraw(self, code: str, amount: Decimal, address: str, tag: str | None = None) -> Any:
        raise NotSupported("bitfinex withdraw is not implemented yet")

    # ------------------------------------------------------------------
    # Internal helpers
    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def _fetch_orders(
        self,
        endpoint: str,
        symbol: str,
        ids: Sequence[str] | None,
        since: int | None,
        limit: int | None,
    ) -> list[Order]:
        if not symbol:
            raise ArgumentsRequired("bitfinex order queries require a symbol argument")
        market = self.catalog.market(symbol)
        request: dict[str, Any] = {"symbol": market.id}
        if ids:
            request["id"] = [_order_id(order_id) for order_id in ids]
        payload = self._expect_list(self._private(endpoint, request), "orders")
        return parse_orders(payload, self.catalog, market, since=since, limit=limit)

    def _fee_to_precision(self, symbol: str, cost: Decimal) -> Decimal:
        market = self.catalog.market(symbol) if symbol in self.catalog else None
        return fee_to_precision(cost, market)

    def _public(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self._request(ApiSection.PUBLIC, path, params)

    def _private(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self._request(ApiSection.PRIVATE, path, params, method="POST")

    def _request(
        self,
        api: ApiSection,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        method: str = "GET",
    ) -> Any:
        signed = self._signer.sign(path, api=api, method=method, params=params)
        logger.debug("bitfinex %s %s", method, signed.url)
        try:
            response = self._session.request(
                method,
                signed.url,
                data=signed.body,
                headers=dict(signed.headers),
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise ExchangeTransientError(f"bitfinex request to {signed.path} failed") from exc
        body = self._decode(response)
        error = classify_error(response.status_code, body)
        if error is None:
            error = check_message(body)
        if error is not None:
            logger.debug("bitfinex %s %s failed: %s", method, signed.path, error)
            raise error
        return body

    def _decode(self, response: Any) -> Any:
        if not response.text:
            return ""
        try:
            return response.json()
        except ValueError as exc:
            if response.status_code >= 400:
                return response.text
            raise ResponseParseError("bitfinex returned a non-JSON payload") from exc

    def _expect_list(self, payload: Any, what: str) -> list[Any]:
        if not isinstance(payload, list):
            raise ResponseParseError(f"Unexpected bitfinex {what} payload structure")
        return payload


def _order_id(order_id: str | int) -> int:
    try:
        return int(order_id)
    except (TypeError, ValueError) as exc:
        raise InvalidOrder(f"bitfinex order ids are integers, got {order_id!r}") from exc


def _format_decimal(value: Decimal) -> str:
    return format(value.normalize(), "f")


def _now_ms() -> int:
    return int(time.time() * 1000)


def register(*, replace: bool = False) -> None:
    """Register the Bitfinex data source with the global registry."""

    register_trading_exchange(
        Exchange.BITFINEX,
        lambda: BitfinexDataSource(settings=BitfinexSettings.from_env()),
        replace=replace,
    )


register()

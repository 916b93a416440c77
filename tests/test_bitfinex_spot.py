from __future__ import annotations

from decimal import Decimal

import pytest
import requests

from bitfinex_adapter.core.config import BitfinexSettings
from bitfinex_adapter.core.errors import (
    ArgumentsRequired,
    AuthenticationError,
    BadSymbol,
    ExchangeError,
    ExchangeTransientError,
    InsufficientFunds,
    InvalidOrder,
    NotSupported,
    OnMaintenance,
    OrderNotFound,
    ResponseParseError,
)
from bitfinex_adapter.core.queries import CandleWindow, MyTradesQuery, TradeWindow
from bitfinex_adapter.core.registry import registered_trading_exchanges
from bitfinex_adapter.core.signer import NONCE_HEADER, SIGNATURE_HEADER
from bitfinex_adapter.exchanges.bitfinex import spot as bitfinex_module
from bitfinex_adapter.exchanges.bitfinex.spot import BitfinexDataSource
from bitfinex_adapter.models.shared import BookPrecision, Exchange, OrderStatus, Side, Timeframe
from tests.stubs import CREDENTIALS, LISTING, StubSession, ack, make_catalog, order_row, private_trade_row

TICKER = [7000.0, 12.5, 7001.0, 9.1, -50.0, -0.0071, 7000.5, 1234.5, 7100.0, 6900.0]


@pytest.fixture()
def session_and_source():
    session = StubSession()
    source = BitfinexDataSource(session=session, catalog=make_catalog(), credentials=CREDENTIALS)
    return session, source


def test_source_is_registered():
    assert Exchange.BITFINEX in registered_trading_exchanges()


# Public ---------------------------------------------------------------
def test_fetch_status(session_and_source):
    session, source = session_and_source
    session.queue([1])
    session.queue([0])

    assert source.fetch_status().status == "ok"
    assert source.fetch_status().status == "maintenance"
    assert session.calls[0]["url"] == "https://api-pub.bitfinex.com/v2/platform/status"
    assert session.calls[0]["method"] == "GET"


def test_load_markets_builds_catalog():
    session = StubSession()
    source = BitfinexDataSource(session=session)
    session.queue(LISTING)

    assert source.catalog.market("BTC/USD").id == "tBTCUSD"
    assert source.catalog.market("ETH/USD").id == "tETHUSD"
    assert len(session.calls) == 1
    assert session.calls[0]["url"] == "https://api.bitfinex.com/v1/symbols_details"


def test_fetch_ticker(session_and_source):
    session, source = session_and_source
    session.queue(TICKER)

    ticker = source.fetch_ticker("BTC/USD")

    assert ticker.symbol == "BTC/USD"
    assert ticker.last == Decimal("7000.5")
    assert session.calls[0]["url"].endswith("/v2/ticker/tBTCUSD")


def test_fetch_ticker_unknown_symbol_fails_locally(session_and_source):
    session, source = session_and_source

    with pytest.raises(BadSymbol):
        source.fetch_ticker("DOGE/EUR")
    assert session.calls == []


def test_fetch_tickers_keeps_known_markets(session_and_source):
    session, source = session_and_source
    session.queue([["tBTCUSD", *TICKER], ["tXYZUSD", *TICKER], ["fUSD", *TICKER, 1, 2, 3]])

    tickers = source.fetch_tickers()

    assert list(tickers) == ["BTC/USD"]
    assert session.calls[0]["url"].endswith("/v2/tickers?symbols=ALL")


def test_fetch_tickers_for_symbols(session_and_source):
    session, source = session_and_source
    session.queue([["tETHUSD", *TICKER]])

    tickers = source.fetch_tickers(["BTC/USD", "ETH/USD"])

    assert tickers["ETH/USD"].bid == Decimal("7000.0")
    assert session.calls[0]["url"].endswith("/v2/tickers?symbols=tBTCUSD%2CtETHUSD")


def test_fetch_trades_with_since_sorts_ascending(session_and_source):
    session, source = session_and_source
    session.queue([[2, 2000, 1.0, 10.0], [1, 1000, -1.0, 10.0], [3, 3000, 0.5, 11.0]])

    trades = source.fetch_trades(TradeWindow("BTC/USD", since=1500, limit=5))

    assert [trade.id for trade in trades] == ["2", "3"]
    url = session.calls[0]["url"]
    assert "/v2/trades/tBTCUSD/hist?" in url
    assert "sort=1" in url and "start=1500" in url and "limit=5" in url


def test_fetch_trades_without_since_requests_newest_first(session_and_source):
    session, source = session_and_source
    session.queue([[1, 1000, 1.0, 10.0]])

    source.fetch_trades(TradeWindow("BTC/USD"))

    assert session.calls[0]["url"].endswith("/v2/trades/tBTCUSD/hist?sort=-1")


def test_fetch_ohlcv(session_and_source):
    session, source = session_and_source
    session.queue([[2000, 2, 3, 4, 1, 10], [1000, 1, 2, 3, 0.5, 5]])

    candles = source.fetch_ohlcv(CandleWindow("BTC/USD", Timeframe.DAY_1, since=1000, limit=2))

    assert [candle[0] for candle in candles] == [1000, 2000]
    assert candles[1] == (2000, Decimal("2"), Decimal("4"), Decimal("1"), Decimal("3"), Decimal("10"))
    assert "/v2/candles/trade:1D:tBTCUSD/hist?" in session.calls[0]["url"]


def test_fetch_ohlcv_defaults_since_from_limit(session_and_source, monkeypatch):
    session, source = session_and_source
    monkeypatch.setattr(bitfinex_module, "_now_ms", lambda: 10_000_000)
    session.queue([])

    source.fetch_ohlcv(CandleWindow("BTC/USD", Timeframe.MINUTE_1, limit=100))

    assert "start=4000000" in session.calls[0]["url"]


def test_fetch_ohlcv_trims_to_since_and_limit(session_and_source):
    session, source = session_and_source
    session.queue([[3000, 1, 1, 1, 1, 1], [2000, 1, 1, 1, 1, 1], [1000, 1, 1, 1, 1, 1], [500, 1, 1, 1, 1, 1]])

    candles = source.fetch_ohlcv(CandleWindow("BTC/USD", Timeframe.MINUTE_1, since=1000, limit=2))

    assert [candle[0] for candle in candles] == [1000, 2000]


def test_fetch_order_book(session_and_source):
    session, source = session_and_source
    session.queue([[1, 99.0, 1.0], [2, 101.0, -1.0], [3, 100.0, 2.0]])

    book = source.fetch_order_book("BTC/USD", limit=25)

    assert book.symbol == "BTC/USD"
    assert book.bids[0][0] == Decimal("100.0")
    assert book.asks[0][0] == Decimal("101.0")
    assert session.calls[0]["url"].endswith("/v2/book/tBTCUSD/R0?len=25")


def test_fetch_order_book_precision_override(session_and_source):
    session, source = session_and_source
    session.queue([[100.0, 2, 1.0]])

    source.fetch_order_book("BTC/USD", precision=BookPrecision.P2)

    assert session.calls[0]["url"].endswith("/v2/book/tBTCUSD/P2")


# Private --------------------------------------------------------------
def test_private_calls_are_signed_posts(session_and_source):
    session, source = session_and_source
    session.queue([["exchange", "USD", 100.0, 0, 40.0], ["margin", "BTC", 1.0, 0, 1.0]])

    balance = source.fetch_balance()

    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://api.bitfinex.com/v2/auth/r/wallets"
    assert call["body"] == {}
    assert SIGNATURE_HEADER in call["headers"]
    assert balance["USD"].used == Decimal("60.0")
    assert "BTC" not in balance


def test_nonces_increase_between_calls(session_and_source):
    session, source = session_and_source
    session.queue([])
    session.queue([])

    source.fetch_balance()
    source.fetch_balance()

    first, second = (int(call["headers"][NONCE_HEADER]) for call in session.calls)
    assert second > first


def test_private_call_without_credentials_fails_locally():
    session = StubSession()
    source = BitfinexDataSource(session=session, catalog=make_catalog())

    with pytest.raises(AuthenticationError):
        source.fetch_balance()
    assert session.calls == []


def test_credentials_from_settings():
    session = StubSession()
    settings = BitfinexSettings(api_key="k", api_secret="s")
    source = BitfinexDataSource(session=session, catalog=make_catalog(), settings=settings)
    session.queue([])

    source.fetch_balance()

    assert session.calls[0]["headers"]["bfx-apikey"] == "k"


def test_create_limit_sell_order(session_and_source):
    session, source = session_and_source
    session.queue(ack([order_row(9, amount=-0.5, remaining=-0.5, price=7000.0)]))

    order = source.create_order("BTC/USD", "limit", Side.SELL, Decimal("0.5"), Decimal("7000"))

    assert session.calls[0]["url"].endswith("/v2/auth/w/order/submit")
    assert session.calls[0]["body"] == {
        "symbol": "tBTCUSD",
        "type": "EXCHANGE LIMIT",
        "amount": "-0.5",
        "price": "7000",
    }
    assert order.id == "9"
    assert order.side is Side.SELL
    assert order.status is OrderStatus.OPEN


def test_create_market_order_omits_price(session_and_source):
    session, source = session_and_source
    session.queue(ack([order_row(10, order_type="EXCHANGE MARKET", price=None)]))

    order = source.create_order("BTC/USD", "market", "buy", Decimal("1"))

    assert "price" not in session.calls[0]["body"]
    assert session.calls[0]["body"]["amount"] == "1"
    assert order.type == "market"


def test_create_order_validation_is_local(session_and_source):
    session, source = session_and_source

    with pytest.raises(InvalidOrder):
        source.create_order("BTC/USD", "trailing", Side.BUY, Decimal("1"), Decimal("1"))
    with pytest.raises(ArgumentsRequired):
        source.create_order("BTC/USD", "limit", Side.BUY, Decimal("1"))
    assert session.calls == []


def test_create_order_error_acknowledgment(session_and_source):
    session, source = session_and_source
    session.queue(ack(None, status="ERROR", code=10001, text="Invalid price"))

    with pytest.raises(ExchangeError) as excinfo:
        source.create_order("BTC/USD", "limit", Side.BUY, Decimal("1"), Decimal("1"))
    assert excinfo.value.text == "Invalid price"


def test_create_order_refetches_when_configured():
    session = StubSession()
    settings = BitfinexSettings(fetch_order_on_create=True)
    source = BitfinexDataSource(session=session, catalog=make_catalog(), credentials=CREDENTIALS, settings=settings)
    session.queue(ack([order_row(11)]))
    session.queue([order_row(11)])
    session.queue([private_trade_row(order_id=11)])

    order = source.create_order("BTC/USD", "limit", Side.BUY, Decimal("1"), Decimal("100"))

    assert order.trades is not None and len(order.trades) == 1
    assert session.calls[1]["url"].endswith("/v2/auth/r/orders/tBTCUSD")
    assert session.calls[2]["url"].endswith("/v2/auth/r/order/tBTCUSD:11/trades")


def test_cancel_order(session_and_source):
    session, source = session_and_source
    session.queue(ack(order_row(12, status="CANCELED")))

    order = source.cancel_order("12", "BTC/USD")

    assert session.calls[0]["body"] == {"id": 12}
    assert order.status is OrderStatus.CANCELED


def test_non_numeric_order_ids_fail_locally(session_and_source):
    session, source = session_and_source

    with pytest.raises(InvalidOrder):
        source.cancel_order("abc", "BTC/USD")
    with pytest.raises(InvalidOrder):
        source.fetch_open_orders("BTC/USD", ids=["x1"])
    assert session.calls == []


def test_cancel_all_orders(session_and_source):
    session, source = session_and_source
    session.queue(ack([order_row(1, status="CANCELED"), order_row(2, "tETHUSD", status="CANCELED")]))

    orders = source.cancel_all_orders()

    assert session.calls[0]["body"] == {"all": 1}
    assert [order.symbol for order in orders] == ["BTC/USD", "ETH/USD"]


def test_fetch_open_orders_with_id_filter(session_and_source):
    session, source = session_and_source
    session.queue([order_row(5)])

    orders = source.fetch_open_orders("BTC/USD", ids=["5"])

    assert session.calls[0]["body"] == {"id": [5]}
    assert orders[0].id == "5"


def test_fetch_closed_orders(session_and_source):
    session, source = session_and_source
    session.queue([order_row(6, status="EXECUTED @ 100.0(1.0)", remaining=0)])

    orders = source.fetch_closed_orders("BTC/USD")

    assert session.calls[0]["url"].endswith("/v2/auth/r/orders/tBTCUSD/hist")
    assert orders[0].status is OrderStatus.CLOSED


def test_fetch_order_resolves_open_then_closed(session_and_source):
    session, source = session_and_source
    session.queue([])
    session.queue([order_row(8, status="EXECUTED @ 100.0(1.0)", remaining=0)])
    session.queue([private_trade_row(1, order_id=8, fee=-0.1), private_trade_row(2, order_id=8, fee=-0.05)])

    order = source.fetch_order("8", "BTC/USD")

    assert [call["url"].rsplit("/v2/", 1)[1] for call in session.calls] == [
        "auth/r/orders/tBTCUSD",
        "auth/r/orders/tBTCUSD/hist",
        "auth/r/order/tBTCUSD:8/trades",
    ]
    assert order.fee.cost == Decimal("0.15")
    assert order.fee.currency == "USD"


def test_fetch_order_not_found(session_and_source):
    session, source = session_and_source
    session.queue([])
    session.queue([])

    with pytest.raises(OrderNotFound):
        source.fetch_order("8", "BTC/USD")


def test_fetch_order_requires_symbol(session_and_source):
    session, source = session_and_source

    with pytest.raises(ArgumentsRequired):
        source.fetch_order("8")
    assert session.calls == []


def test_fetch_my_trades_for_symbol(session_and_source, monkeypatch):
    session, source = session_and_source
    monkeypatch.setattr(bitfinex_module, "_now_ms", lambda: 5_000)
    session.queue([private_trade_row(1, mts=1000), private_trade_row(2, mts=3000)])

    trades = source.fetch_my_trades(MyTradesQuery("BTC/USD", since=2000, limit=10))

    assert session.calls[0]["url"].endswith("/v2/auth/r/trades/tBTCUSD/hist")
    assert session.calls[0]["body"] == {"end": 5_000, "start": 2000, "limit": 10}
    assert [trade.id for trade in trades] == ["2"]


def test_fetch_my_trades_all_markets(session_and_source):
    session, source = session_and_source
    session.queue([private_trade_row(1), private_trade_row(2, "tETHUSD")])

    trades = source.fetch_my_trades(MyTradesQuery())

    assert session.calls[0]["url"].endswith("/v2/auth/r/trades/hist")
    assert "symbol" not in session.calls[0]["body"]
    assert {trade.symbol for trade in trades} == {"BTC/USD", "ETH/USD"}


def test_unsupported_operations(session_and_source):
    session, source = session_and_source

    with pytest.raises(NotSupported):
        source.fetch_deposit_address("BTC")
    with pytest.raises(NotSupported):
        source.withdraw("BTC", Decimal("1"), "addr")
    assert session.calls == []


# Transport errors -----------------------------------------------------
def test_venue_error_is_classified(session_and_source):
    session, source = session_and_source
    session.queue(["error", 10001, "Invalid order: not enough exchange balance for 1 BTCUSD"], status_code=500)

    with pytest.raises(InsufficientFunds):
        source.create_order("BTC/USD", "limit", Side.BUY, Decimal("1"), Decimal("100"))


def test_maintenance_error(session_and_source):
    session, source = session_and_source
    session.queue(["error", 20060, "maintenance"], status_code=500)

    with pytest.raises(OnMaintenance):
        source.fetch_ticker("BTC/USD")


def test_message_body_is_an_error(session_and_source):
    session, source = session_and_source
    session.queue({"message": "Nonce is too small."})

    with pytest.raises(ExchangeError, match="Nonce is too small"):
        source.fetch_balance()


def test_empty_body_is_an_error(session_and_source):
    session, source = session_and_source
    session.queue(None, text="")

    with pytest.raises(ExchangeError, match="empty response"):
        source.fetch_balance()


def test_non_json_success_body(session_and_source):
    session, source = session_and_source
    session.queue(None, text="<html>")

    with pytest.raises(ResponseParseError):
        source.fetch_ticker("BTC/USD")


def test_rate_limit_is_transient(session_and_source):
    session, source = session_and_source
    session.queue(None, status_code=429, text="Too many requests")

    with pytest.raises(ExchangeTransientError):
        source.fetch_ticker("BTC/USD")


def test_network_failure_is_transient():
    class FailingSession(StubSession):
        def request(self, *args, **kwargs):
            raise requests.ConnectionError("boom")

    source = BitfinexDataSource(session=FailingSession(), catalog=make_catalog())

    with pytest.raises(ExchangeTransientError):
        source.fetch_status()


def test_close_only_closes_owned_session(session_and_source):
    session, source = session_and_source

    source.close()

    assert session.closed is False

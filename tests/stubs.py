from __future__ import annotations

import json
from typing import Any

from bitfinex_adapter.core.signer import Credentials
from bitfinex_adapter.exchanges.bitfinex.catalog import MarketCatalog, build_catalog

LISTING: list[dict[str, Any]] = [
    {
        "pair": "btcusd",
        "price_precision": 5,
        "initial_margin": "20.0",
        "minimum_margin": "10.0",
        "maximum_order_size": "2000.0",
        "minimum_order_size": "0.0006",
        "expiration": "NA",
        "margin": True,
    },
    {
        "pair": "ethusd",
        "price_precision": 5,
        "maximum_order_size": "5000.0",
        "minimum_order_size": "0.04",
    },
    {
        "pair": "testbtc:testusd",
        "price_precision": 3,
        "maximum_order_size": "100.0",
        "minimum_order_size": "0.001",
    },
    {
        "pair": "ustusd",
        "price_precision": 5,
        "maximum_order_size": "250000.0",
        "minimum_order_size": "6.0",
    },
]

CREDENTIALS = Credentials("test-key", "test-secret")


def make_catalog() -> MarketCatalog:
    return build_catalog(LISTING)


def order_row(
    order_id: int = 1001,
    symbol: str = "tBTCUSD",
    *,
    remaining: float = 0.5,
    amount: float = 1.0,
    order_type: str = "EXCHANGE LIMIT",
    status: str = "ACTIVE",
    price: float | None = 100.0,
    average: float | None = 0.0,
    mts_create: int = 1_700_000_000_000,
) -> list[Any]:
    row: list[Any] = [None] * 32
    row[0] = order_id
    row[1] = None
    row[2] = 42
    row[3] = symbol
    row[4] = mts_create
    row[5] = mts_create + 5
    row[6] = remaining
    row[7] = amount
    row[8] = order_type
    row[9] = None
    row[13] = status
    row[16] = price
    row[17] = average
    return row


def private_trade_row(
    trade_id: int = 501,
    symbol: str = "tBTCUSD",
    *,
    order_id: int = 1001,
    amount: float = 0.25,
    price: float = 100.0,
    mts: int = 1_700_000_000_100,
    maker: int = 1,
    fee: float | None = -0.0123456,
    fee_currency: str | None = "USD",
    order_type: str = "EXCHANGE LIMIT",
) -> list[Any]:
    return [trade_id, symbol, mts, order_id, amount, price, order_type, price, maker, fee, fee_currency]


def ack(payload: Any, *, status: str = "SUCCESS", code: Any = None, text: str = "Submitting 1 orders.") -> list[Any]:
    return [1_700_000_000_000, "on-req", None, None, payload, code, status, text]


class StubResponse:
    def __init__(self, payload, status_code: int = 200, text: str | None = None):
        self._payload = payload
        self.status_code = status_code
        self.text = json.dumps(payload) if text is None else text

    def json(self):
        if self.text and self._payload is None:
            raise ValueError("not json")
        return self._payload


class StubSession:
    def __init__(self) -> None:
        self.calls: list[dict] = []
        self._responses: list[StubResponse] = []
        self.closed = False

    def queue(self, payload, status_code: int = 200, text: str | None = None) -> None:
        self._responses.append(StubResponse(payload, status_code, text))

    def request(self, method, url, data=None, headers=None, timeout=0):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "body": json.loads(data) if data else None,
                "raw_body": data,
                "headers": dict(headers or {}),
                "timeout": timeout,
            }
        )
        if not self._responses:
            raise AssertionError("No queued response left for stub session")
        return self._responses.pop(0)

    def close(self) -> None:
        self.closed = True

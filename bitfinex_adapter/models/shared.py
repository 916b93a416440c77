"""Shared enumerations used across the trading domain models."""

from __future__ import annotations

from enum import StrEnum


class Exchange(StrEnum):
    """Supported exchanges.

    Values are string based so that additional venues can be appended without
    breaking callers.
    """

    BITFINEX = "bitfinex"


class Side(StrEnum):
    BUY = "buy"
    SELL = "sell"


class TakerOrMaker(StrEnum):
    TAKER = "taker"
    MAKER = "maker"


class OrderStatus(StrEnum):
    """Canonical order states.

    Parsers may also return a raw venue string when it matches none of these.
    """

    OPEN = "open"
    CLOSED = "closed"
    CANCELED = "canceled"
    REJECTED = "rejected"


class Timeframe(StrEnum):
    """Standardized candlestick timeframes."""

    MINUTE_1 = "1m"
    MINUTE_5 = "5m"
    MINUTE_15 = "15m"
    MINUTE_30 = "30m"
    HOUR_1 = "1h"
    HOUR_3 = "3h"
    HOUR_6 = "6h"
    HOUR_12 = "12h"
    DAY_1 = "1d"
    WEEK_1 = "1w"
    WEEK_2 = "2w"
    MONTH_1 = "1M"


class BookPrecision(StrEnum):
    """Order book aggregation levels (``R0`` is raw, ``P0``..``P3`` bucketed)."""

    R0 = "R0"
    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"

"""Parsers turning Bitfinex positional arrays into normalized records.

Each parser receives the read-only :class:`MarketCatalog` (or an already
resolved :class:`Market`) explicitly; nothing here performs I/O.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, TypeVar

from ...core.errors import ExchangeError, ResponseParseError
from ...models.shared import BookPrecision, OrderStatus, Side, TakerOrMaker
from ...models.trading import (
    OHLCV,
    Balance,
    BalanceAccount,
    BookLevel,
    Fee,
    Market,
    Order,
    OrderBook,
    Ticker,
    Trade,
)
from .catalog import MarketCatalog, safe_currency_code

logger = logging.getLogger(__name__)

# Native order type -> canonical type. Margin types have no canonical form.
ORDER_TYPES: dict[str, str | None] = {
    "MARKET": None,
    "EXCHANGE MARKET": "market",
    "LIMIT": None,
    "EXCHANGE LIMIT": "limit",
    "STOP": None,
    "EXCHANGE STOP": "stopOrLoss",
    "TRAILING STOP": None,
    "EXCHANGE TRAILING STOP": None,
    "FOK": None,
    "EXCHANGE FOK": "limit FOK",
    "STOP LIMIT": None,
    "EXCHANGE STOP LIMIT": "limit stop",
    "IOC": None,
    "EXCHANGE IOC": "limit ioc",
}

# First matching prefix wins.
ORDER_STATUS_PREFIXES: tuple[tuple[str, OrderStatus], ...] = (
    ("PARTIALLY FILLED", OrderStatus.OPEN),
    ("EXECUTED", OrderStatus.CLOSED),
    ("CANCELED", OrderStatus.CANCELED),
    ("INSUFFICIENT MARGIN", OrderStatus.REJECTED),
    ("RSN_DUST", OrderStatus.REJECTED),
    ("RSN_PAUSE", OrderStatus.REJECTED),
)

TICKER_MIN_LENGTH = 10
PUBLIC_TRADE_MIN_LENGTH = 4
PRIVATE_TRADE_MIN_LENGTH = 11
PRIVATE_TRADE_THRESHOLD = 5
ORDER_MIN_LENGTH = 18
BOOK_ENTRY_MIN_LENGTH = 3
OHLCV_MIN_LENGTH = 6
NOTIFICATION_MIN_LENGTH = 8
SUCCESS_STATUS = "SUCCESS"

_T = TypeVar("_T")


def candle_timestamp(candle: OHLCV) -> int:
    return candle[0]


def _timestamp_of(item: Any) -> int | None:
    return item.timestamp


def native_order_type(order_type: str) -> str | None:
    """Reverse lookup of :data:`ORDER_TYPES` for order submission."""

    for native, canonical in ORDER_TYPES.items():
        if canonical is not None and canonical == order_type:
            return native
    return None


def fee_to_precision(cost: Decimal, market: Market | None) -> Decimal:
    if market is None or market.precision.price is None:
        return cost
    quantum = Decimal(1).scaleb(-market.precision.price)
    return cost.quantize(quantum, rounding=ROUND_HALF_UP)


def parse_ticker(raw: Sequence[Any], market: Market | None = None, timestamp: int | None = None) -> Ticker:
    """Parse a ticker by offsets from the end of the array.

    Trading tickers arrive with or without the leading symbol element, so only
    the trailing ten fields are addressed.
    """

    length = len(raw)
    if length < TICKER_MIN_LENGTH:
        raise ResponseParseError(f"Unexpected bitfinex ticker payload structure (length {length})")
    percentage = to_decimal(raw[length - 5])
    return Ticker(
        symbol=market.symbol if market is not None else None,
        timestamp=timestamp if timestamp is not None else _now_ms(),
        bid=to_decimal(raw[length - 10]),
        ask=to_decimal(raw[length - 8]),
        last=to_decimal(raw[length - 4]),
        high=to_decimal(raw[length - 2]),
        low=to_decimal(raw[length - 1]),
        change=to_decimal(raw[length - 6]),
        percentage=percentage * 100 if percentage is not None else None,
        base_volume=to_decimal(raw[length - 3]),
        info=list(raw),
    )


def parse_trade(raw: Sequence[Any], catalog: MarketCatalog, market: Market | None = None) -> Trade:
    """Parse a public ``[ID, MTS, AMOUNT, PRICE]`` or a private trade record."""

    is_private = len(raw) > PRIVATE_TRADE_THRESHOLD
    min_length = PRIVATE_TRADE_MIN_LENGTH if is_private else PUBLIC_TRADE_MIN_LENGTH
    if len(raw) < min_length:
        raise ResponseParseError(f"Unexpected bitfinex trade payload structure (length {len(raw)})")
    amount = to_decimal(raw[4] if is_private else raw[2])
    price = to_decimal(raw[5] if is_private else raw[3])
    timestamp = _to_int(raw[2] if is_private else raw[1])
    symbol: str | None = None
    order_id: str | None = None
    taker_or_maker: TakerOrMaker | None = None
    order_type: str | None = None
    fee: Fee | None = None
    if is_private:
        market_id = raw[1]
        if market_id is not None:
            resolved = catalog.by_id(market_id)
            if resolved is not None:
                market = resolved
                symbol = resolved.symbol
            else:
                symbol = str(market_id)
        order_id = _to_str(raw[3])
        taker_or_maker = TakerOrMaker.MAKER if raw[8] == 1 else TakerOrMaker.TAKER
        fee_cost = to_decimal(raw[9])
        if fee_cost is not None:
            fee = Fee(currency=safe_currency_code(raw[10]), cost=fee_to_precision(abs(fee_cost), market))
        order_type = ORDER_TYPES.get(raw[6]) if isinstance(raw[6], str) else None
    if symbol is None and market is not None:
        symbol = market.symbol
    side: Side | None = None
    cost: Decimal | None = None
    if amount is not None:
        side = Side.SELL if amount < 0 else Side.BUY
        amount = abs(amount)
        if price is not None:
            cost = price * amount
    return Trade(
        id=str(raw[0]),
        timestamp=timestamp,
        symbol=symbol,
        side=side,
        price=price,
        amount=amount,
        cost=cost,
        order=order_id,
        type=order_type,
        taker_or_maker=taker_or_maker,
        fee=fee,
        info=list(raw),
    )


def parse_trades(
    rows: Iterable[Sequence[Any]],
    catalog: MarketCatalog,
    market: Market | None = None,
    *,
    since: int | None = None,
    limit: int | None = None,
) -> list[Trade]:
    trades = [parse_trade(row, catalog, market) for row in rows]
    trades.sort(key=lambda trade: trade.timestamp or 0)
    return filter_by_since_limit(trades, since, limit)


def parse_order_status(status: str) -> OrderStatus | str:
    """Map a native status string such as ``EXECUTED @ 107.6(-0.2)``.

    Unknown strings are returned unchanged.
    """

    if status == "ACTIVE":
        return OrderStatus.OPEN
    for prefix, canonical in ORDER_STATUS_PREFIXES:
        if status.startswith(prefix):
            return canonical
    logger.debug("Passing through unknown bitfinex order status %r", status)
    return status


def parse_order(raw: Sequence[Any], catalog: MarketCatalog, market: Market | None = None) -> Order:
    if len(raw) < ORDER_MIN_LENGTH:
        raise ResponseParseError(f"Unexpected bitfinex order payload structure (length {len(raw)})")
    resolved = catalog.by_id(raw[3]) if isinstance(raw[3], str) else None
    if resolved is not None:
        market = resolved
    signed_amount = to_decimal(raw[7])
    remaining_raw = to_decimal(raw[6])
    if signed_amount is None or remaining_raw is None:
        raise ResponseParseError(f"bitfinex order {raw[0]} is missing its amount fields")
    amount = abs(signed_amount)
    remaining = abs(remaining_raw)
    filled = amount - remaining
    price = to_decimal(raw[16])
    native_type = raw[8]
    status = raw[13]
    return Order(
        id=str(raw[0]),
        symbol=market.symbol if market is not None else None,
        timestamp=_to_int(raw[5]),
        side=Side.SELL if signed_amount < 0 else Side.BUY,
        type=ORDER_TYPES.get(native_type) if isinstance(native_type, str) else None,
        status=parse_order_status(status) if isinstance(status, str) else status,
        price=price,
        average=to_decimal(raw[17]),
        amount=amount,
        remaining=remaining,
        filled=filled,
        cost=price * filled if price is not None else None,
        info=list(raw),
    )


def parse_orders(
    rows: Iterable[Sequence[Any]],
    catalog: MarketCatalog,
    market: Market | None = None,
    *,
    since: int | None = None,
    limit: int | None = None,
) -> list[Order]:
    orders = [parse_order(row, catalog, market) for row in rows]
    return filter_by_since_limit(orders, since, limit)


def parse_balance(raw: Iterable[Sequence[Any]], account_type: str = "exchange") -> Balance:
    """Parse ``auth/r/wallets`` rows ``[TYPE, CURRENCY, BALANCE, _, AVAILABLE]``.

    ``AVAILABLE`` is ``null`` when the venue has not computed it yet; that
    case is reported as fully free, while an explicit zero is fully used.
    """

    rows = list(raw)
    accounts: dict[str, BalanceAccount] = {}
    for row in rows:
        if len(row) < 3:
            raise ResponseParseError(f"Unexpected bitfinex wallet payload structure: {row!r}")
        if row[0] != account_type:
            continue
        code = safe_currency_code(row[1])
        total = to_decimal(row[2]) or Decimal("0")
        available = to_decimal(row[4]) if len(row) > 4 else None
        if available is None:
            free, used = total, Decimal("0")
        elif available == 0:
            free, used = Decimal("0"), total
        else:
            free, used = available, total - available
        accounts[code] = BalanceAccount(free=free, used=used, total=total)
    return Balance(accounts=accounts, info=rows)


def parse_order_book(
    raw: Iterable[Sequence[Any]],
    symbol: str | None,
    precision: BookPrecision | str = BookPrecision.R0,
    timestamp: int | None = None,
) -> OrderBook:
    """Split ``[PRICE_OR_ID, PRICE_OR_COUNT, AMOUNT]`` rows into sorted sides.

    Raw books (``R0``) carry the order id first and the price second.
    """

    level = BookPrecision(precision)
    price_index = 1 if level is BookPrecision.R0 else 0
    bids: list[BookLevel] = []
    asks: list[BookLevel] = []
    for row in raw:
        if len(row) < BOOK_ENTRY_MIN_LENGTH:
            raise ResponseParseError(f"Unexpected bitfinex book entry structure: {row!r}")
        price = to_decimal(row[price_index])
        signed_amount = to_decimal(row[2])
        if price is None or signed_amount is None:
            logger.warning("Dropping incomplete bitfinex book entry %r", row)
            continue
        entry = (price, abs(signed_amount))
        if signed_amount > 0:
            bids.append(entry)
        else:
            asks.append(entry)
    # the venue does not guarantee ordering
    bids.sort(key=lambda entry: entry[0], reverse=True)
    asks.sort(key=lambda entry: entry[0])
    return OrderBook(
        symbol=symbol,
        bids=tuple(bids),
        asks=tuple(asks),
        timestamp=timestamp if timestamp is not None else _now_ms(),
    )


def parse_ohlcv(raw: Sequence[Any]) -> OHLCV:
    """Reorder a ``[MTS, OPEN, CLOSE, HIGH, LOW, VOLUME]`` candle."""

    if len(raw) < OHLCV_MIN_LENGTH:
        raise ResponseParseError("Unexpected bitfinex candle payload structure")
    return (
        int(raw[0]),
        _decimal_or_zero(raw[1]),
        _decimal_or_zero(raw[3]),
        _decimal_or_zero(raw[4]),
        _decimal_or_zero(raw[2]),
        _decimal_or_zero(raw[5]),
    )


def parse_notification(raw: Sequence[Any]) -> Any:
    """Unwrap a write acknowledgment and return its payload element.

    Layout: ``[MTS, TYPE, MESSAGE_ID, _, PAYLOAD, CODE, STATUS, TEXT]``.
    """

    if not isinstance(raw, Sequence) or isinstance(raw, str) or len(raw) < NOTIFICATION_MIN_LENGTH:
        raise ResponseParseError(f"Unexpected bitfinex notification structure: {raw!r}")
    status = raw[6]
    if status != SUCCESS_STATUS:
        code = raw[5]
        text = raw[7]
        raise ExchangeError(f"bitfinex {status}: {text} (#{code})", code=code, text=text)
    return raw[4]


def filter_by_since_limit(
    items: list[_T],
    since: int | None,
    limit: int | None,
    key: Callable[[_T], int | None] = _timestamp_of,
) -> list[_T]:
    """Keep entries at or after ``since``, then the first ``limit`` of them."""

    if since is not None:
        items = [item for item in items if (stamp := key(item)) is not None and stamp >= since]
    if limit is not None:
        items = items[:limit]
    return items


def to_decimal(value: Any) -> Decimal | None:
    if value in ("", None):
        return None
    return Decimal(str(value))


def _decimal_or_zero(value: Any) -> Decimal:
    result = to_decimal(value)
    return result if result is not None else Decimal("0")


def _to_int(value: Any) -> int | None:
    if value is None:
        return None
    return int(value)


def _to_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _now_ms() -> int:
    return int(time.time() * 1000)

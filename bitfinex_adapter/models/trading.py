"""Normalized trading records produced by the response parsers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, TypeAlias

from .shared import OrderStatus, Side, TakerOrMaker

# ``(timestamp_ms, open, high, low, close, volume)``
OHLCV: TypeAlias = tuple[int, Decimal, Decimal, Decimal, Decimal, Decimal]

# ``(price, amount)``
BookLevel: TypeAlias = tuple[Decimal, Decimal]


def iso8601(timestamp: int | None) -> str | None:
    """Render a millisecond timestamp the way the venue docs print them."""

    if timestamp is None:
        return None
    value = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{timestamp % 1000:03d}Z"


@dataclass(frozen=True, slots=True)
class MinMax:
    min: Decimal | None = None
    max: Decimal | None = None


@dataclass(frozen=True, slots=True)
class MarketPrecision:
    """Decimal digits accepted for prices and amounts."""

    price: int | None
    amount: int | None


@dataclass(frozen=True, slots=True)
class MarketLimits:
    amount: MinMax
    price: MinMax
    cost: MinMax


@dataclass(frozen=True, slots=True)
class Market:
    """Canonical market record built from one venue listing entry."""

    id: str
    symbol: str
    base: str
    quote: str
    base_id: str
    quote_id: str
    precision: MarketPrecision
    limits: MarketLimits
    active: bool = True
    info: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True, slots=True)
class Ticker:
    symbol: str | None
    timestamp: int
    bid: Decimal | None
    ask: Decimal | None
    last: Decimal | None
    high: Decimal | None
    low: Decimal | None
    change: Decimal | None
    percentage: Decimal | None
    base_volume: Decimal | None
    info: Sequence[Any] = field(default=(), compare=False, repr=False)

    @property
    def close(self) -> Decimal | None:
        return self.last

    @property
    def datetime(self) -> str | None:
        return iso8601(self.timestamp)


@dataclass(frozen=True, slots=True)
class Fee:
    currency: str | None
    cost: Decimal


@dataclass(frozen=True, slots=True)
class Trade:
    id: str
    timestamp: int | None
    symbol: str | None
    side: Side | None
    price: Decimal | None
    amount: Decimal | None
    cost: Decimal | None
    order: str | None = None
    type: str | None = None
    taker_or_maker: TakerOrMaker | None = None
    fee: Fee | None = None
    info: Sequence[Any] = field(default=(), compare=False, repr=False)

    @property
    def datetime(self) -> str | None:
        return iso8601(self.timestamp)


@dataclass(frozen=True, slots=True)
class Order:
    """Order snapshot.

    ``fee`` and ``trades`` stay ``None`` until the lifecycle resolver attaches
    them with :func:`dataclasses.replace`.
    """

    id: str
    symbol: str | None
    timestamp: int | None
    side: Side
    type: str | None
    status: OrderStatus | str
    price: Decimal | None
    average: Decimal | None
    amount: Decimal
    remaining: Decimal
    filled: Decimal
    cost: Decimal | None
    fee: Fee | None = None
    trades: tuple[Trade, ...] | None = None
    info: Sequence[Any] = field(default=(), compare=False, repr=False)

    @property
    def datetime(self) -> str | None:
        return iso8601(self.timestamp)


@dataclass(frozen=True, slots=True)
class BalanceAccount:
    free: Decimal
    used: Decimal
    total: Decimal


@dataclass(frozen=True, slots=True)
class Balance:
    """Per-currency accounts for a single wallet type."""

    accounts: Mapping[str, BalanceAccount]
    info: Sequence[Any] = field(default=(), compare=False, repr=False)

    def __getitem__(self, code: str) -> BalanceAccount:
        return self.accounts[code]

    def __contains__(self, code: object) -> bool:
        return code in self.accounts

    @property
    def free(self) -> dict[str, Decimal]:
        return {code: account.free for code, account in self.accounts.items()}

    @property
    def used(self) -> dict[str, Decimal]:
        return {code: account.used for code, account in self.accounts.items()}

    @property
    def total(self) -> dict[str, Decimal]:
        return {code: account.total for code, account in self.accounts.items()}


@dataclass(frozen=True, slots=True)
class OrderBook:
    """Order book snapshot; bids best-first (descending), asks ascending."""

    symbol: str | None
    bids: tuple[BookLevel, ...]
    asks: tuple[BookLevel, ...]
    timestamp: int

    @property
    def datetime(self) -> str | None:
        return iso8601(self.timestamp)


@dataclass(frozen=True, slots=True)
class PlatformStatus:
    status: str
    updated: int

"""Locate a single order across the open and closed order books of an account."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace
from decimal import Decimal
from typing import Protocol

from ..models.trading import Fee, Order, Trade
from .errors import ArgumentsRequired, OrderNotFound

logger = logging.getLogger(__name__)


class OrderQuerySource(Protocol):
    """The three lookups the resolver needs from a venue data source."""

    def fetch_open_orders(self, symbol: str, *, ids: Sequence[str] | None = None) -> Sequence[Order]:
        ...

    def fetch_closed_orders(self, symbol: str, *, ids: Sequence[str] | None = None) -> Sequence[Order]:
        ...

    def fetch_order_trades(self, order_id: str, symbol: str) -> Sequence[Trade]:
        ...


class FeePrecision(Protocol):
    def __call__(self, symbol: str, cost: Decimal) -> Decimal:
        ...


def aggregate_fee(trades: Sequence[Trade]) -> Fee | None:
    """Sum trade fees under the currency of the first charged trade."""

    charged = [trade.fee for trade in trades if trade.fee is not None]
    if not charged:
        return None
    currency = charged[0].currency
    others = sorted({str(fee.currency) for fee in charged if fee.currency != currency})
    if others:
        logger.warning(
            "Summing bitfinex trade fees charged in %s under %s",
            ", ".join(others),
            currency,
        )
    total = sum((fee.cost for fee in charged), Decimal("0"))
    return Fee(currency=currency, cost=total)


class OrderLifecycleResolver:
    """Resolve an order id by checking open orders first, then closed ones.

    The two lookups run strictly one after the other; the closed book is only
    consulted when the open book has no match.
    """

    def __init__(self, source: OrderQuerySource, fee_precision: FeePrecision | None = None) -> None:
        self._source = source
        self._fee_precision = fee_precision

    def resolve(self, order_id: str, symbol: str | None) -> Order:
        if not symbol:
            raise ArgumentsRequired("bitfinex fetch_order requires a symbol argument")
        order_id = str(order_id)
        ids = [order_id]
        for book, lookup in (
            ("open", self._source.fetch_open_orders),
            ("closed", self._source.fetch_closed_orders),
        ):
            order = _first_match(lookup(symbol, ids=ids), order_id)
            if order is not None:
                logger.debug("Resolved bitfinex order %s in %s orders", order_id, book)
                return self._enrich(order, symbol)
        raise OrderNotFound(f"bitfinex order {order_id} not found")

    def _enrich(self, order: Order, symbol: str) -> Order:
        trades = tuple(self._source.fetch_order_trades(order.id, symbol))
        fee = aggregate_fee(trades)
        if fee is not None and self._fee_precision is not None:
            fee = Fee(currency=fee.currency, cost=self._fee_precision(order.symbol or symbol, fee.cost))
        return replace(order, trades=trades, fee=fee)


def _first_match(orders: Sequence[Order], order_id: str) -> Order | None:
    for order in orders:
        if order.id == order_id:
            return order
    return None

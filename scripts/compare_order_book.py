"""Compare top-of-book levels against CCXT."""
from __future__ import annotations

from typing import Iterable

import sys

import ccxt  # type: ignore

from compare_utils import iso_ms, iter_symbols, make_ccxt, make_source
from bitfinex_adapter.core.errors import ExchangeError

DEPTH = 25


def main(targets: Iterable[str] | None = None) -> None:
    source = make_source()
    exchange = make_ccxt()
    try:
        for symbol in iter_symbols(targets):
            print(f"\n=== {symbol} order book ===")
            try:
                book = source.fetch_order_book(symbol, limit=DEPTH)
                print(
                    "adapter",
                    f"ts={iso_ms(book.timestamp)}",
                    f"best_bid={book.bids[0] if book.bids else None}",
                    f"best_ask={book.asks[0] if book.asks else None}",
                    f"levels={len(book.bids)}/{len(book.asks)}",
                )
            except ExchangeError as exc:
                print(f"adapter error: {exc}")
            try:
                theirs = exchange.fetch_order_book(symbol, DEPTH)
                bids = theirs.get("bids") or []
                asks = theirs.get("asks") or []
                print(
                    "ccxt",
                    f"best_bid={bids[0] if bids else None}",
                    f"best_ask={asks[0] if asks else None}",
                    f"levels={len(bids)}/{len(asks)}",
                )
            except ccxt.BaseError as exc:
                print(f"ccxt error: {exc}")
    finally:
        source.close()


if __name__ == "__main__":  # pragma: no cover
    main(sys.argv[1:] or None)

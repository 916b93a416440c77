"""Compare market metadata against CCXT market definitions."""
from __future__ import annotations

from typing import Iterable

import sys

import ccxt  # type: ignore

from compare_utils import iter_symbols, make_ccxt, make_source
from bitfinex_adapter.core.errors import ExchangeError


def main(targets: Iterable[str] | None = None) -> None:
    source = make_source()
    exchange = make_ccxt()
    try:
        catalog = source.load_markets()
        print(f"adapter lists {len(catalog)} markets, ccxt lists {len(exchange.markets)}")
        for symbol in iter_symbols(targets):
            print(f"\n=== {symbol} market ===")
            try:
                market = catalog.market(symbol)
                print(
                    "adapter",
                    {
                        "id": market.id,
                        "base": market.base,
                        "quote": market.quote,
                        "precision": market.precision.price,
                        "amount_min": market.limits.amount.min,
                        "price_min": market.limits.price.min,
                    },
                )
            except ExchangeError as exc:
                print(f"adapter error: {exc}")
            try:
                theirs = exchange.market(symbol)
                print(
                    "ccxt",
                    {
                        "id": theirs.get("id"),
                        "base": theirs.get("base"),
                        "quote": theirs.get("quote"),
                        "precision": theirs.get("precision", {}).get("price"),
                        "amount_min": theirs.get("limits", {}).get("amount", {}).get("min"),
                        "price_min": theirs.get("limits", {}).get("price", {}).get("min"),
                    },
                )
            except ccxt.BaseError as exc:
                print(f"ccxt error: {exc}")
    finally:
        source.close()


if __name__ == "__main__":  # pragma: no cover
    main(sys.argv[1:] or None)

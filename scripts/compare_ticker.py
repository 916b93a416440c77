"""Compare latest ticker snapshots against CCXT tickers."""
from __future__ import annotations

from typing import Iterable

import sys

import ccxt  # type: ignore

from compare_utils import iso_ms, iter_symbols, make_ccxt, make_source
from bitfinex_adapter.core.errors import ExchangeError


def main(targets: Iterable[str] | None = None) -> None:
    source = make_source()
    exchange = make_ccxt()
    try:
        for symbol in iter_symbols(targets):
            print(f"\n=== {symbol} ticker ===")
            try:
                ticker = source.fetch_ticker(symbol)
                print(
                    "adapter",
                    f"ts={iso_ms(ticker.timestamp)}",
                    f"bid={ticker.bid}",
                    f"ask={ticker.ask}",
                    f"last={ticker.last}",
                    f"change%={ticker.percentage}",
                )
            except ExchangeError as exc:
                print(f"adapter error: {exc}")
            try:
                theirs = exchange.fetch_ticker(symbol)
                print(
                    "ccxt",
                    f"ts={theirs.get('datetime')}",
                    f"bid={theirs.get('bid')}",
                    f"ask={theirs.get('ask')}",
                    f"last={theirs.get('last')}",
                    f"change%={theirs.get('percentage')}",
                )
            except ccxt.BaseError as exc:
                print(f"ccxt error: {exc}")
    finally:
        source.close()


if __name__ == "__main__":  # pragma: no cover
    main(sys.argv[1:] or None)

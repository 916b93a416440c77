"""Compare one-minute candles against CCXT."""
from __future__ import annotations

from typing import Iterable

import sys

import ccxt  # type: ignore

from compare_utils import iso_ms, iter_symbols, make_ccxt, make_source
from bitfinex_adapter.core.errors import ExchangeError
from bitfinex_adapter.core.queries import CandleWindow
from bitfinex_adapter.models.shared import Timeframe


def _print_series(label: str, series: list[tuple]) -> None:
    print(label)
    for ts, open_px, high, low, close, vol in series[-5:]:
        print(f"  {iso_ms(ts)} o={open_px} h={high} l={low} c={close} vol={vol}")


def main(targets: Iterable[str] | None = None) -> None:
    source = make_source()
    exchange = make_ccxt()
    try:
        for symbol in iter_symbols(targets):
            print(f"\n=== {symbol} 1m candles ===")
            try:
                _print_series("adapter", source.fetch_ohlcv(CandleWindow(symbol, Timeframe.MINUTE_1, limit=10)))
            except ExchangeError as exc:
                print(f"adapter error: {exc}")
            try:
                _print_series("ccxt", [tuple(row[:6]) for row in exchange.fetch_ohlcv(symbol, "1m", limit=10)])
            except ccxt.BaseError as exc:
                print(f"ccxt error: {exc}")
    finally:
        source.close()


if __name__ == "__main__":  # pragma: no cover
    main(sys.argv[1:] or None)

"""Shared helpers for manual adapter-vs-CCXT comparisons."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
import sys
from typing import Iterable

import ccxt  # type: ignore

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bitfinex_adapter.core.config import BitfinexSettings
from bitfinex_adapter.exchanges.bitfinex.spot import BitfinexDataSource

DEFAULT_SYMBOLS: tuple[str, ...] = ("BTC/USD", "ETH/USD")


def make_source() -> BitfinexDataSource:
    return BitfinexDataSource(settings=BitfinexSettings.from_env())


def make_ccxt() -> ccxt.Exchange:
    exchange = ccxt.bitfinex({"enableRateLimit": True})
    exchange.load_markets()
    return exchange


def iter_symbols(targets: Iterable[str] | None = None) -> Iterable[str]:
    if not targets:
        yield from DEFAULT_SYMBOLS
        return
    for target in targets:
        yield target.upper()


def iso_ms(ts_ms: int | float | None) -> str:
    if ts_ms is None:
        return "<missing>"
    return datetime.fromtimestamp(float(ts_ms) / 1000, tz=timezone.utc).isoformat()

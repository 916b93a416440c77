"""Market catalog normalization for Bitfinex symbol listings."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from decimal import Decimal
from types import MappingProxyType
from typing import Any

from ...core.errors import BadSymbol, ResponseParseError
from ...models.trading import Market, MarketLimits, MarketPrecision, MinMax

TRADING_MARKER = "t"
FUNDING_MARKER = "f"
PAIR_DELIMITER = ":"

# Venue aliases that differ from the codes used everywhere else.
COMMON_CURRENCIES: dict[str, str] = {
    "ABS": "ABYSS",
    "AIO": "AION",
    "ALG": "ALGO",
    "AMP": "AMPL",
    "ATM": "ATMI",
    "ATO": "ATOM",
    "BAB": "BCH",
    "BCC": "BCH",
    "CTX": "CTXC",
    "DAD": "DADI",
    "DAT": "DATA",
    "DSH": "DASH",
    "DRK": "DASH",
    "GSD": "GUSD",
    "IOS": "IOST",
    "IOT": "IOTA",
    "IQX": "IQ",
    "MIT": "MITH",
    "MNA": "MANA",
    "NCA": "NCASH",
    "POY": "POLY",
    "QSH": "QASH",
    "QTM": "QTUM",
    "SEE": "SEER",
    "SNG": "SNGLS",
    "SPK": "SPANK",
    "STJ": "STORJ",
    "TSD": "TUSD",
    "UDC": "USDC",
    "UST": "USDT",
    "VSY": "VSYS",
    "XBT": "BTC",
    "XCH": "XCHF",
    "YYW": "YOYOW",
}


def strip_marker(code: str) -> str:
    """Drop a lowercase ``t``/``f`` wallet marker (``fUSD`` -> ``USD``)."""

    if len(code) > 1 and code[0] in (TRADING_MARKER, FUNDING_MARKER) and code[1:].isupper():
        return code[1:]
    return code


def safe_currency_code(currency_id: str | None) -> str | None:
    if currency_id is None:
        return None
    code = strip_marker(str(currency_id)).upper()
    return COMMON_CURRENCIES.get(code, code)


def currency_id(code: str) -> str:
    return FUNDING_MARKER + code


def parse_market(raw: Mapping[str, Any]) -> Market:
    """Normalize one ``v1/symbols_details`` entry."""

    pair = raw.get("pair")
    if not isinstance(pair, str) or not pair:
        raise ResponseParseError(f"bitfinex market listing is missing a pair identifier: {raw!r}")
    pair = pair.upper()
    if PAIR_DELIMITER in pair:
        base_id, quote_id = pair.split(PAIR_DELIMITER, 1)
    else:
        base_id, quote_id = pair[:3], pair[3:6]
    if not base_id or not quote_id:
        raise ResponseParseError(f"bitfinex market pair {pair!r} cannot be split into base and quote")
    base = safe_currency_code(base_id)
    quote = safe_currency_code(quote_id)
    precision = _to_int(raw.get("price_precision"))

    amount_limits = MinMax(
        min=_to_decimal(raw.get("minimum_order_size")),
        max=_to_decimal(raw.get("maximum_order_size")),
    )
    price_limits = MinMax()
    if precision is not None:
        price_limits = MinMax(min=Decimal(1).scaleb(-precision), max=Decimal(1).scaleb(precision))
    cost_min = None
    if amount_limits.min is not None and price_limits.min is not None:
        cost_min = amount_limits.min * price_limits.min
    return Market(
        id=TRADING_MARKER + pair,
        symbol=f"{base}/{quote}",
        base=base,
        quote=quote,
        base_id=currency_id(base_id),
        quote_id=currency_id(quote_id),
        # the venue publishes a single precision per pair
        precision=MarketPrecision(price=precision, amount=precision),
        limits=MarketLimits(amount=amount_limits, price=price_limits, cost=MinMax(min=cost_min, max=None)),
        active=True,
        info=dict(raw),
    )


class MarketCatalog:
    """Read-only lookup table of markets indexed by venue id and by symbol."""

    def __init__(self, markets: Iterable[Market] = ()) -> None:
        by_id: dict[str, Market] = {}
        by_symbol: dict[str, Market] = {}
        for market in markets:
            if market.id in by_id:
                raise ValueError(f"duplicate market id {market.id}")
            by_id[market.id] = market
            by_symbol[market.symbol] = market
        self._by_id = MappingProxyType(by_id)
        self._by_symbol = MappingProxyType(by_symbol)

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[Market]:
        return iter(self._by_id.values())

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._by_symbol

    @property
    def symbols(self) -> list[str]:
        return sorted(self._by_symbol)

    @property
    def markets_by_id(self) -> Mapping[str, Market]:
        return self._by_id

    def market(self, symbol: str) -> Market:
        try:
            return self._by_symbol[symbol]
        except KeyError as exc:
            raise BadSymbol(f"bitfinex does not have market symbol {symbol}") from exc

    def by_id(self, market_id: str | None) -> Market | None:
        if market_id is None:
            return None
        return self._by_id.get(market_id)

    def market_ids(self, symbols: Iterable[str]) -> list[str]:
        return [self.market(symbol).id for symbol in symbols]


def build_catalog(listing: Iterable[Mapping[str, Any]]) -> MarketCatalog:
    return MarketCatalog(parse_market(entry) for entry in listing)


def _to_decimal(value: Any) -> Decimal | None:
    if value in ("", None):
        return None
    return Decimal(str(value))


def _to_int(value: Any) -> int | None:
    if value in ("", None):
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ResponseParseError(f"bitfinex market precision {value!r} is not an integer") from exc

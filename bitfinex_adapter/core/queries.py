"""Query helper objects shared across data sources."""

from __future__ import annotations

from dataclasses import dataclass

from ..models.shared import Timeframe

DEFAULT_CANDLE_LIMIT = 100
MAX_CANDLE_LIMIT = 10000


@dataclass(frozen=True, slots=True)
class TradeWindow:
    """Public trade history query; ``since`` is an inclusive ms timestamp."""

    symbol: str
    since: int | None = None
    limit: int | None = None

    def __post_init__(self) -> None:
        if not self.symbol:
            raise ValueError("symbol must be a non-empty string")
        if self.limit is not None and self.limit <= 0:
            raise ValueError("limit must be a positive integer")
        if self.since is not None and self.since < 0:
            raise ValueError("since must be a non-negative millisecond timestamp")


@dataclass(frozen=True, slots=True)
class CandleWindow:
    """Represents an OHLCV historical query window."""

    symbol: str
    timeframe: Timeframe = Timeframe.MINUTE_1
    since: int | None = None
    limit: int = DEFAULT_CANDLE_LIMIT

    def __post_init__(self) -> None:
        if not self.symbol:
            raise ValueError("symbol must be a non-empty string")
        if self.limit <= 0 or self.limit > MAX_CANDLE_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_CANDLE_LIMIT}")
        if self.since is not None and self.since < 0:
            raise ValueError("since must be a non-negative millisecond timestamp")


@dataclass(frozen=True, slots=True)
class MyTradesQuery:
    """Account trade history; ``symbol=None`` spans every market."""

    symbol: str | None = None
    since: int | None = None
    limit: int | None = None

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit <= 0:
            raise ValueError("limit must be a positive integer")
        if self.since is not None and self.since < 0:
            raise ValueError("since must be a non-negative millisecond timestamp")

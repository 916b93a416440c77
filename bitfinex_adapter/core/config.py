"""Runtime settings for the Bitfinex data source."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from ..models.shared import BookPrecision

PUBLIC_URL = "https://api-pub.bitfinex.com"
PRIVATE_URL = "https://api.bitfinex.com"
V1_URL = "https://api.bitfinex.com"
API_VERSION = "v2"
DEFAULT_TIMEOUT = 10.0

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class BitfinexSettings:
    """Connection and behaviour settings.

    Credentials are optional; public endpoints work without them and private
    endpoints fail locally with ``AuthenticationError``.
    """

    api_key: str | None = None
    api_secret: str | None = None
    public_url: str = PUBLIC_URL
    private_url: str = PRIVATE_URL
    v1_url: str = V1_URL
    version: str = API_VERSION
    timeout: float = DEFAULT_TIMEOUT
    book_precision: BookPrecision = BookPrecision.R0
    fetch_order_on_create: bool = False

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> BitfinexSettings:
        """Build settings from ``BITFINEX_*`` environment variables."""

        env = os.environ if environ is None else environ
        return cls(
            api_key=env.get("BITFINEX_API_KEY") or None,
            api_secret=env.get("BITFINEX_API_SECRET") or None,
            timeout=float(env.get("BITFINEX_TIMEOUT") or DEFAULT_TIMEOUT),
            book_precision=BookPrecision(env.get("BITFINEX_BOOK_PRECISION") or BookPrecision.R0),
            fetch_order_on_create=(env.get("BITFINEX_FETCH_ORDER_ON_CREATE") or "").lower() in _TRUE_VALUES,
        )

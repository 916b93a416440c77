"""Custom exception hierarchy for the trading adapter.

Every exception carries a :class:`ErrorKind` tag plus the venue's ``code`` and
``text`` when the error was classified from a response body.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, ClassVar


class ErrorKind(StrEnum):
    EXCHANGE = "exchange"
    AUTHENTICATION = "authentication"
    ON_MAINTENANCE = "on_maintenance"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INVALID_ORDER = "invalid_order"
    ORDER_NOT_FOUND = "order_not_found"
    BAD_SYMBOL = "bad_symbol"
    NOT_SUPPORTED = "not_supported"
    ARGUMENTS_REQUIRED = "arguments_required"
    PARSE = "parse"
    TRANSIENT = "transient"


class ExchangeError(RuntimeError):
    """Base class for all domain-specific exceptions; also the generic variant."""

    kind: ClassVar[ErrorKind] = ErrorKind.EXCHANGE

    def __init__(self, message: str, *, code: Any = None, text: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.text = text


class AuthenticationError(ExchangeError):
    """Raised for missing or rejected API credentials."""

    kind = ErrorKind.AUTHENTICATION


class InsufficientFunds(ExchangeError):
    kind = ErrorKind.INSUFFICIENT_FUNDS


class InvalidOrder(ExchangeError):
    kind = ErrorKind.INVALID_ORDER


class OrderNotFound(InvalidOrder):
    kind = ErrorKind.ORDER_NOT_FOUND


class BadSymbol(ExchangeError):
    """Raised when the venue or the market catalog does not list a symbol."""

    kind = ErrorKind.BAD_SYMBOL


class NotSupported(ExchangeError):
    """Raised for features the venue does not expose."""

    kind = ErrorKind.NOT_SUPPORTED


class ArgumentsRequired(ExchangeError):
    """Raised when the caller omitted a mandatory parameter."""

    kind = ErrorKind.ARGUMENTS_REQUIRED


class ResponseParseError(ExchangeError):
    """Raised when a payload does not have the documented structure."""

    kind = ErrorKind.PARSE


class ExchangeTransientError(ExchangeError):
    """Represents temporary issues such as rate limiting or network failures."""

    kind = ErrorKind.TRANSIENT


class OnMaintenance(ExchangeTransientError):
    kind = ErrorKind.ON_MAINTENANCE

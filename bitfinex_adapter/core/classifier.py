"""Map raw HTTP status codes and response bodies to the error taxonomy.

The functions here never raise; they return the exception instance so that the
transport raises it exactly once at the boundary.
"""

from __future__ import annotations

import json
from typing import Any

from .errors import (
    AuthenticationError,
    BadSymbol,
    ExchangeError,
    ExchangeTransientError,
    InsufficientFunds,
    InvalidOrder,
    OnMaintenance,
    OrderNotFound,
)

VENUE = "bitfinex"
VENUE_ERROR_STATUS = 500
INVALID_API_KEY_CODE = 10100
MAINTENANCE_CODE = 20060
INSUFFICIENT_BALANCE_MARKER = "not enough exchange balance"
TRANSIENT_STATUS_CODES = {429, 502, 503, 504}

# Checked in order; the balance prefix must precede the generic "Invalid order".
TEXT_PREFIXES: tuple[tuple[str, type[ExchangeError]], ...] = (
    ("Invalid order: " + INSUFFICIENT_BALANCE_MARKER, InsufficientFunds),
    ("Invalid order", InvalidOrder),
    ("Order not found", OrderNotFound),
    ("symbol: invalid", BadSymbol),
)


def classify_error(status_code: int, body: Any) -> ExchangeError | None:
    """Return the error described by a failed response, or ``None`` on success.

    Only status 500 carries venue error semantics, with a body shaped
    ``["error", code, text]``. Other failing statuses fall back to a generic
    transient/permanent split.
    """

    if status_code == VENUE_ERROR_STATUS:
        return _classify_venue_error(body)
    if status_code in TRANSIENT_STATUS_CODES:
        return ExchangeTransientError(f"{VENUE} temporary HTTP error: {status_code}", code=status_code)
    if status_code >= 400:
        return ExchangeError(f"{VENUE} HTTP {status_code}: {_snippet(body)}", code=status_code)
    return None


def check_message(body: Any) -> ExchangeError | None:
    """Inspect a successful body for an embedded ``message`` error."""

    if body == "" or body is None:
        return ExchangeError(f"{VENUE} returned empty response")
    if isinstance(body, dict) and "message" in body:
        message = str(body["message"])
        if INSUFFICIENT_BALANCE_MARKER in message:
            return InsufficientFunds(f"{VENUE} {_snippet(body)}", text=message)
        return ExchangeError(f"{VENUE} {_snippet(body)}", text=message)
    return None


def _classify_venue_error(body: Any) -> ExchangeError:
    code, text = _error_fields(body)
    if code == INVALID_API_KEY_CODE:
        return AuthenticationError(f"{VENUE} {text}", code=code, text=text)
    if code == MAINTENANCE_CODE:
        return OnMaintenance(f"{VENUE} exchange on maintenance", code=code, text=text)
    for prefix, error_cls in TEXT_PREFIXES:
        if text.startswith(prefix):
            return error_cls(f"{VENUE} {text}", code=code, text=text)
    return ExchangeError(f"{VENUE} {text} (#{code})", code=code, text=text)


def _error_fields(body: Any) -> tuple[Any, str]:
    if isinstance(body, (list, tuple)) and len(body) >= 3:
        code = body[1]
        if isinstance(code, str) and code.lstrip("-").isdigit():
            code = int(code)
        return code, str(body[2] if body[2] is not None else "")
    return None, _snippet(body)


def _snippet(body: Any) -> str:
    if isinstance(body, str):
        return body
    try:
        return json.dumps(body, separators=(",", ":"))
    except (TypeError, ValueError):
        return repr(body)

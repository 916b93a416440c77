"""Authenticated request envelopes for the Bitfinex REST API.

Private calls are signed with ``HMAC-SHA384(secret, "/api/" + path + nonce +
body)`` and carry the nonce, API key and hex signature as ``bfx-*`` headers.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import re
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any
from urllib.parse import urlencode

from .config import API_VERSION, PRIVATE_URL, PUBLIC_URL, V1_URL
from .errors import ArgumentsRequired, AuthenticationError

logger = logging.getLogger(__name__)

NONCE_HEADER = "bfx-nonce"
API_KEY_HEADER = "bfx-apikey"
SIGNATURE_HEADER = "bfx-signature"
SENSITIVE_HEADERS = {API_KEY_HEADER, SIGNATURE_HEADER}

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


class ApiSection(StrEnum):
    PUBLIC = "public"
    PRIVATE = "private"
    V1 = "v1"


@dataclass(frozen=True, slots=True)
class Credentials:
    api_key: str
    secret: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.api_key or not self.secret:
            raise ValueError("api_key and secret must be non-empty strings")


@dataclass(frozen=True, slots=True)
class SignedRequest:
    """Everything the transport needs to send one request."""

    method: str
    url: str
    path: str
    body: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    nonce: str | None = None
    signature: str | None = None


def _now_ms() -> int:
    return int(time.time() * 1000)


class NonceGenerator:
    """Strictly increasing millisecond nonces, safe to share between threads.

    A clock that stalls or steps backwards still yields ``last + 1``.
    """

    def __init__(self, clock: Callable[[], int] | None = None) -> None:
        self._clock = clock or _now_ms
        self._last = 0
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            candidate = int(self._clock())
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return candidate


_generators: dict[str, NonceGenerator] = {}
_generators_lock = threading.Lock()


def nonce_generator_for(api_key: str) -> NonceGenerator:
    """Return the process-wide generator bound to one API key."""

    with _generators_lock:
        generator = _generators.get(api_key)
        if generator is None:
            generator = NonceGenerator()
            _generators[api_key] = generator
        return generator


def implode_path(template: str, params: Mapping[str, Any]) -> tuple[str, dict[str, Any]]:
    """Fill ``{name}`` placeholders and return the path plus the unused params."""

    names = _PLACEHOLDER.findall(template)
    missing = [name for name in names if params.get(name) is None]
    if missing:
        raise ArgumentsRequired(f"{template} requires {', '.join(missing)}")
    path = _PLACEHOLDER.sub(lambda match: str(params[match.group(1)]), template)
    remaining = {key: value for key, value in params.items() if key not in names}
    return path, remaining


def mask_headers(headers: Mapping[str, str]) -> dict[str, str]:
    masked: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS and value:
            masked[key] = value[:4] + "***"
        else:
            masked[key] = value
    return masked


class RequestSigner:
    """Build URLs, bodies and authentication headers for each API section."""

    def __init__(
        self,
        credentials: Credentials | None = None,
        *,
        public_url: str = PUBLIC_URL,
        private_url: str = PRIVATE_URL,
        v1_url: str = V1_URL,
        version: str = API_VERSION,
        nonce: NonceGenerator | None = None,
    ) -> None:
        self._credentials = credentials
        self._urls = {
            ApiSection.PUBLIC: public_url.rstrip("/"),
            ApiSection.PRIVATE: private_url.rstrip("/"),
            ApiSection.V1: v1_url.rstrip("/"),
        }
        self._version = version
        self._nonce = nonce

    def sign(
        self,
        path: str,
        api: ApiSection = ApiSection.PUBLIC,
        method: str = "GET",
        params: Mapping[str, Any] | None = None,
    ) -> SignedRequest:
        filled, query = implode_path(path, params or {})
        prefix = "v1" if api is ApiSection.V1 else self._version
        request_path = f"{prefix}/{filled}"
        url = f"{self._urls[api]}/{request_path}"
        if api is not ApiSection.PRIVATE:
            if query:
                url = f"{url}?{urlencode(query, doseq=True)}"
            return SignedRequest(method=method, url=url, path=request_path)
        return self._sign_private(method, url, request_path, query)

    def _sign_private(
        self,
        method: str,
        url: str,
        request_path: str,
        query: Mapping[str, Any],
    ) -> SignedRequest:
        if self._credentials is None:
            raise AuthenticationError("bitfinex requires apiKey and secret credentials for private endpoints")
        generator = self._nonce or nonce_generator_for(self._credentials.api_key)
        nonce = str(generator.next())
        body = json.dumps(query, separators=(",", ":"))
        payload = f"/api/{request_path}{nonce}{body}"
        signature = hmac.new(
            self._credentials.secret.encode(),
            payload.encode(),
            hashlib.sha384,
        ).hexdigest()
        headers = {
            NONCE_HEADER: nonce,
            API_KEY_HEADER: self._credentials.api_key,
            SIGNATURE_HEADER: signature,
            "Content-Type": "application/json",
        }
        logger.debug("Signed %s %s nonce=%s headers=%s", method, request_path, nonce, mask_headers(headers))
        return SignedRequest(
            method=method,
            url=url,
            path=request_path,
            body=body,
            headers=headers,
            nonce=nonce,
            signature=signature,
        )

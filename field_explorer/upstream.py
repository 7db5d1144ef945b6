"""Single-shot GET against a third-party finance API.

Applies caller headers, injects provider credentials for recognised hosts,
enforces a hard timeout and normalises every failure into a GatewayError.
Secrets never appear in log lines or error messages.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from typing import Any
from urllib.parse import parse_qs, quote, quote_plus, urlencode, urlsplit, urlunsplit

import requests
from requests.structures import CaseInsensitiveDict

from .config import UPSTREAM_MAX_WORKERS, UPSTREAM_TIMEOUT_SECONDS, USER_AGENT, load_provider_keys
from .errors import (
    NonJsonResponse,
    UpstreamHttpError,
    UpstreamRateLimited,
    UpstreamTimeout,
    UpstreamTransportError,
)
from .logging import HIDDEN_VALUE, get_logger, log_event

logger = get_logger(__name__)

HIDDEN = HIDDEN_VALUE
PROVIDER_NOTICE_KEYS = ("Note", "Information", "Error Message")
READ_CHUNK_BYTES = 8192

# provider -> (hostnames, how the secret is sent, header or query parameter name)
PROVIDER_CREDENTIALS = {
    "indianapi": (("stock.indianapi.in",), "header", "X-Api-Key"),
    "finnhub": (("finnhub.io", "api.finnhub.io"), "header", "X-Finnhub-Token"),
    "alphavantage": (("alphavantage.co", "www.alphavantage.co"), "query", "apikey"),
}


def redact_secrets(text: str, secrets: Iterable[str]) -> str:
    """Replace each secret, raw or URL-encoded, with HIDDEN_KEY."""
    for secret in secrets:
        if not secret:
            continue
        for form in dict.fromkeys((secret, quote_plus(secret), quote(secret, safe=""))):
            text = text.replace(form, HIDDEN)
    return text


def build_headers(custom_headers: list[dict[str, str]] | None) -> CaseInsensitiveDict:
    headers = CaseInsensitiveDict({"Accept": "application/json", "User-Agent": USER_AGENT})
    for header in custom_headers or []:
        key, value = header.get("key"), header.get("value")
        if key and value:
            headers[key] = value
    return headers


def _append_query_param(url: str, name: str, value: str) -> str:
    parts = urlsplit(url)
    extra = urlencode({name: value})
    query = f"{parts.query}&{extra}" if parts.query else extra
    return urlunsplit(parts._replace(query=query))


def inject_credentials(url: str, headers: CaseInsensitiveDict, provider_keys: dict[str, str]) -> str:
    """Add provider secrets for recognised hosts; returns the URL to fetch.

    A secret is only added when one is configured and the caller did not
    already supply the header or query parameter.
    """
    hostname = (urlsplit(url).hostname or "").lower()
    for provider, (hosts, placement, name) in PROVIDER_CREDENTIALS.items():
        secret = provider_keys.get(provider)
        if not secret or hostname not in hosts:
            continue
        if placement == "header":
            if name not in headers:
                headers[name] = secret
        elif name not in parse_qs(urlsplit(url).query, keep_blank_values=True):
            url = _append_query_param(url, name, secret)
    return url


def _log_provider_notice(hostname: str, data: Any) -> None:
    if isinstance(data, dict):
        notices = {k: data[k] for k in PROVIDER_NOTICE_KEYS if k in data}
        if notices:
            logger.info("Provider notice from %s: %s", hostname, notices)


def parse_body(response: requests.Response, body: bytes) -> Any:
    content_type = response.headers.get("content-type", "")
    try:
        if "application/json" in content_type:
            return json.loads(body)
        return json.loads(body.decode(response.encoding or "utf-8", errors="replace"))
    except ValueError:
        raise NonJsonResponse() from None


class UpstreamClient:
    """Fetches upstream JSON under a hard deadline.

    Each fetch runs on a worker thread and the caller stops waiting after
    `timeout` seconds, even when the server keeps trickling bytes. An
    abandoned worker stops reading at its next chunk.
    """

    def __init__(
        self,
        timeout: float = UPSTREAM_TIMEOUT_SECONDS,
        key_loader: Callable[[], dict[str, str]] = load_provider_keys,
        max_workers: int = UPSTREAM_MAX_WORKERS,
    ) -> None:
        self.timeout = timeout
        self._key_loader = key_loader
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="upstream")

    def fetch(self, url: str, custom_headers: list[dict[str, str]] | None = None) -> Any:
        """GET `url` and return its parsed JSON body, or raise a GatewayError."""
        provider_keys = self._key_loader()
        secrets = list(provider_keys.values())
        headers = build_headers(custom_headers)
        target = inject_credentials(url, headers, provider_keys)
        hostname = urlsplit(target).hostname or ""

        logger.debug("Fetching %s", redact_secrets(target, secrets))
        cancelled = threading.Event()
        future = self._executor.submit(self._request, target, headers, hostname, secrets, cancelled)
        try:
            data = future.result(timeout=self.timeout)
        except FuturesTimeout:
            cancelled.set()
            log_event("upstream.timeout", host=hostname, timeout=self.timeout)
            raise UpstreamTimeout(self.timeout) from None

        _log_provider_notice(hostname, data)
        return data

    def _request(
        self,
        target: str,
        headers: CaseInsensitiveDict,
        hostname: str,
        secrets: list[str],
        cancelled: threading.Event,
    ) -> Any:
        try:
            return self._get_json(target, headers, hostname, cancelled)
        except requests.Timeout:
            log_event("upstream.timeout", host=hostname, timeout=self.timeout)
            raise UpstreamTimeout(self.timeout) from None
        except requests.RequestException as exc:
            message = redact_secrets(str(exc), secrets) or exc.__class__.__name__
            log_event("upstream.transport_error", host=hostname, error=message)
            raise UpstreamTransportError(message) from None

    def _get_json(
        self, target: str, headers: CaseInsensitiveDict, hostname: str, cancelled: threading.Event
    ) -> Any:
        response = requests.get(target, headers=dict(headers), timeout=self.timeout, stream=True)
        try:
            if response.status_code == 429:
                log_event("upstream.rate_limited", host=hostname)
                raise UpstreamRateLimited()
            if not response.ok:
                log_event("upstream.http_error", host=hostname, status=response.status_code)
                raise UpstreamHttpError(response.status_code, response.reason or "")

            chunks = []
            for chunk in response.iter_content(chunk_size=READ_CHUNK_BYTES):
                if cancelled.is_set():
                    raise UpstreamTimeout(self.timeout)
                chunks.append(chunk)
            return parse_body(response, b"".join(chunks))
        finally:
            response.close()

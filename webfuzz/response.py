"""Responses handed to matchers and filters, and redirect handling."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from urllib.parse import SplitResult, unquote, urljoin, urlsplit

from webfuzz.request import Request

_DEFAULT_PORTS = {"http": "80", "https": "443"}


@dataclass
class Response:
    """The meaningful data returned for a request, as seen by matchers and filters."""

    status_code: int = 0
    headers: dict[str, list[str]] = field(default_factory=dict)
    data: bytes = b""
    content_length: int = 0
    content_words: int = 0
    content_lines: int = 0
    content_type: str = ""
    cancelled: bool = False
    request: Request | None = None
    raw: str = ""
    result_file: str = ""
    scraper_data: dict[str, list[str]] = field(default_factory=dict)
    time: timedelta = field(default_factory=timedelta)

    def get_redirect_location(self, absolute: bool) -> str:
        """Return the Location of a 3xx response, resolved against the request URL if absolute."""
        location = ""
        if 300 <= self.status_code <= 399:
            values = self.headers.get("Location")
            if values:
                location = values[0]
        if not absolute:
            return location

        base_text = self.request.url if self.request is not None else ""
        try:
            redirect = urlsplit(location)
            base = urlsplit(base_text)
            if redirect.scheme and url_equal(redirect, base):
                return f"{redirect.scheme}://{_host(base)}{unquote(redirect.path)}"
            return urljoin(base_text, location)
        except ValueError:
            return location


def _split(url: str | SplitResult) -> SplitResult:
    return urlsplit(url) if isinstance(url, str) else url


def _host(parts: SplitResult) -> str:
    return parts.netloc.rpartition("@")[2]


def url_equal(url1: str | SplitResult, url2: str | SplitResult) -> bool:
    """Return True if both URLs share host name, scheme and (default-aware) port."""
    first, second = _split(url1), _split(url2)
    if (first.hostname or "") != (second.hostname or ""):
        return False
    if first.scheme != second.scheme:
        return False
    return get_url_port(first) == get_url_port(second)


def get_url_port(url: str | SplitResult) -> str:
    """Return the URL's port, or the scheme's default port, or an empty string."""
    parts = _split(url)
    try:
        port = parts.port
    except ValueError:
        port = None
    if port is None:
        return _DEFAULT_PORTS.get(parts.scheme, "")
    return str(port)
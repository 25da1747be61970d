"""Requests handed to the runner, and sniper-mode template handling."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

KEYWORD = "FUZZ"


@dataclass
class Request:
    """The data a runner needs to make a query."""

    method: str = ""
    host: str = ""
    url: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    data: bytes = b""
    input: dict[str, bytes] = field(default_factory=dict)
    position: int = 0
    raw: str = ""

    def copy(self) -> Request:
        """Return a deep copy of the request."""
        return Request(
            method=self.method,
            host=self.host,
            url=self.url,
            headers=dict(self.headers),
            data=bytes(self.data),
            input=dict(self.input),
            position=self.position,
            raw=self.raw,
        )


def new_request(conf: Any) -> Request:
    """Return a request with the configured method and URL and no headers."""
    return Request(method=conf.method, url=conf.url)


def base_request(conf: Any) -> Request:
    """Return a base request populated from the configuration."""
    req = new_request(conf)
    req.headers = conf.headers
    req.data = conf.data.encode("utf-8")
    return req


def recursion_request(conf: Any, path: str) -> Request:
    """Return a base request aimed at a recursion target."""
    req = base_request(conf)
    req.url = path
    return req


def template_locations(template: str, text: str) -> list[int]:
    """Return the character positions of the template marker in text."""
    marker = template[0]
    return [index for index, char in enumerate(text) if char == marker]


def inject_keyword(text: str, keyword: str, start: int, end: int) -> str:
    """Replace text[start:end+1] by keyword; return text unchanged if the offsets make no sense."""
    if start < 0 or start > len(text) or end > len(text) or start > end:
        return text
    return text[:start] + keyword + text[end + 1 :]


def _paired(text: str, template: str) -> bool:
    count = text.count(template)
    return count > 0 and count % 2 == 0


def _variants(text: str, template: str) -> Iterator[str]:
    """Yield text once per template pair, with that pair replaced by the keyword."""
    if not _paired(text, template):
        return
    tokens = template_locations(template, text)
    for start, end in zip(tokens[::2], tokens[1::2]):
        yield inject_keyword(text, KEYWORD, start, end)


def scrub_templates(req: Request, template: str) -> None:
    """Remove every template marker from the request, in place."""
    req.method = req.method.replace(template, "")
    req.url = req.url.replace(template, "")
    req.data = req.data.replace(template.encode("utf-8"), b"")
    headers: dict[str, str] = {}
    for key, value in req.headers.items():
        if _paired(key, template):
            key = key.replace(template, "")
        if _paired(value, template):
            value = value.replace(template, "")
        headers[key] = value
    req.headers = headers


def sniper_requests(basereq: Request, template: str) -> list[Request]:
    """Return one request per templated location, that location replaced by the keyword."""
    reqs: list[Request] = []

    def finish(req: Request) -> None:
        scrub_templates(req, template)
        reqs.append(req)

    for method in _variants(basereq.method, template):
        req = basereq.copy()
        req.method = method
        finish(req)

    for url in _variants(basereq.url, template):
        req = basereq.copy()
        req.url = url
        finish(req)

    data = basereq.data.decode("utf-8", "surrogateescape")
    for new_data in _variants(data, template):
        req = basereq.copy()
        req.data = new_data.encode("utf-8", "surrogateescape")
        finish(req)

    for key, value in basereq.headers.items():
        for new_key in _variants(key, template):
            req = basereq.copy()
            del req.headers[key]
            req.headers[new_key] = value
            finish(req)
        for new_value in _variants(value, template):
            req = basereq.copy()
            req.headers[key] = new_value
            finish(req)

    return reqs
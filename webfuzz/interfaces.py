"""Abstract interfaces tying the fuzzing job together, and shared result records."""

from __future__ import annotations

import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from webfuzz.request import Request


class MatcherManager(ABC):
    """Manages the matchers and filters applied to responses."""

    @abstractmethod
    def set_calibrated(self, calibrated: bool) -> None: ...

    @abstractmethod
    def set_calibrated_for_host(self, host: str, calibrated: bool) -> None: ...

    @abstractmethod
    def add_filter(self, name: str, option: str, replace: bool) -> None: ...

    @abstractmethod
    def add_per_domain_filter(self, domain: str, name: str, option: str) -> None: ...

    @abstractmethod
    def remove_filter(self, name: str) -> None: ...

    @abstractmethod
    def add_matcher(self, name: str, option: str) -> None: ...

    @abstractmethod
    def get_filters(self) -> dict[str, FilterProvider]: ...

    @abstractmethod
    def get_matchers(self) -> dict[str, FilterProvider]: ...

    @abstractmethod
    def filters_for_domain(self, domain: str) -> dict[str, FilterProvider]: ...

    @abstractmethod
    def calibrated_for_domain(self, domain: str) -> bool: ...

    @abstractmethod
    def is_calibrated(self) -> bool: ...


class FilterProvider(ABC):
    """A matcher or a filter applied to a response."""

    @abstractmethod
    def filter(self, response: Any) -> bool: ...

    @abstractmethod
    def repr(self) -> str: ...

    @abstractmethod
    def repr_verbose(self) -> str: ...


class RunnerProvider(ABC):
    """Prepares and executes requests."""

    @abstractmethod
    def prepare(self, inputs: dict[str, bytes], basereq: Request) -> Request: ...

    @abstractmethod
    def execute(self, req: Request) -> Any: ...

    @abstractmethod
    def dump(self, req: Request) -> bytes: ...


class InputProvider(ABC):
    """Provides the input values fed into requests."""

    @abstractmethod
    def activate_keywords(self, keywords: list[str]) -> None: ...

    @abstractmethod
    def add_provider(self, provider: Any) -> None: ...

    @abstractmethod
    def keywords(self) -> list[str]: ...

    @abstractmethod
    def next(self) -> bool: ...

    @abstractmethod
    def position(self) -> int: ...

    @abstractmethod
    def set_position(self, pos: int) -> None: ...

    @abstractmethod
    def reset(self) -> None: ...

    @abstractmethod
    def value(self) -> dict[str, bytes]: ...

    @abstractmethod
    def total(self) -> int: ...


class OutputProvider(ABC):
    """Presents progress and results."""

    @abstractmethod
    def banner(self) -> None: ...

    @abstractmethod
    def finalize(self) -> None: ...

    @abstractmethod
    def progress(self, status: Progress) -> None: ...

    @abstractmethod
    def info(self, text: str) -> None: ...

    @abstractmethod
    def error(self, text: str) -> None: ...

    @abstractmethod
    def raw(self, text: str) -> None: ...

    @abstractmethod
    def warning(self, text: str) -> None: ...

    @abstractmethod
    def result(self, resp: Any) -> None: ...

    @abstractmethod
    def print_result(self, res: Result) -> None: ...

    @abstractmethod
    def save_file(self, filename: str, fmt: str) -> None: ...

    @abstractmethod
    def get_current_results(self) -> list[Result]: ...

    @abstractmethod
    def set_current_results(self, results: list[Result]) -> None: ...

    @abstractmethod
    def reset(self) -> None: ...

    @abstractmethod
    def cycle(self) -> None: ...


@dataclass
class ScraperResult:
    """Data extracted from a response by a scraper rule."""

    name: str = ""
    type: str = ""
    action: list[str] = field(default_factory=list)
    results: list[str] = field(default_factory=list)


class Scraper(ABC):
    """Extracts data from responses."""

    @abstractmethod
    def execute(self, resp: Any, matched: bool) -> list[ScraperResult]: ...

    @abstractmethod
    def append_from_file(self, path: str) -> None: ...


def _nanoseconds(delta: timedelta) -> int:
    return (delta.days * 86400 + delta.seconds) * 10**9 + delta.microseconds * 1000


@dataclass
class Result:
    """A matched response as reported to the user."""

    input: dict[str, bytes] = field(default_factory=dict)
    position: int = 0
    status_code: int = 0
    content_length: int = 0
    content_words: int = 0
    content_lines: int = 0
    content_type: str = ""
    redirect_location: str = ""
    url: str = ""
    duration: timedelta = field(default_factory=timedelta)
    scraper_data: dict[str, list[str]] = field(default_factory=dict)
    result_file: str = ""
    host: str = ""
    html_color: str = ""

    def to_json_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form; inputs are base64 and the duration is in nanoseconds."""
        return {
            "input": {k: base64.b64encode(v).decode("ascii") for k, v in self.input.items()},
            "position": self.position,
            "status": self.status_code,
            "length": self.content_length,
            "words": self.content_words,
            "lines": self.content_lines,
            "content-type": self.content_type,
            "redirectlocation": self.redirect_location,
            "url": self.url,
            "duration": _nanoseconds(self.duration),
            "scraper": {k: list(v) for k, v in self.scraper_data.items()},
            "resultfile": self.result_file,
            "host": self.host,
        }


@dataclass
class Progress:
    """A snapshot of how far the current job has come."""

    started_at: datetime = field(default_factory=datetime.now)
    req_count: int = 0
    req_total: int = 0
    req_sec: int = 0
    queue_pos: int = 0
    queue_total: int = 0
    error_count: int = 0
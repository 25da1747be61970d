"""User-facing option sets, and reading them from TOML configuration files."""

from __future__ import annotations

import copy
import logging
import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from webfuzz.util import check_or_create_config_dir, config_dir, file_exists

_log = logging.getLogger(__name__)

CONFIG_FILE_NAME = "webfuzzrc"
DEFAULT_MATCHER_STATUS = "200,204,301,302,307,401,403,405,500"


def _opt(kind: type, default: Any, json_key: str | None, *, toml: bool = True) -> Any:
    """Declare an option field with its value kind, JSON key and TOML visibility."""
    meta = {"kind": kind, "json": json_key, "toml": toml}
    if kind is list:
        return field(default_factory=list, metadata=meta)
    return field(default=default, metadata=meta)


def _check(value: Any, kind: type, key: str) -> Any:
    """Return value if it has the expected kind, raise ValueError otherwise."""
    if kind is list:
        if value is None:
            return []
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return list(value)
    elif kind is bool:
        if isinstance(value, bool):
            return value
    elif kind is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    elif kind is str:
        if isinstance(value, str):
            return value
    raise ValueError(
        f"option {key!r}: expected {kind.__name__}, got {type(value).__name__}"
    )


class _Section:
    """Shared loading and dumping for the option dataclasses."""

    def _to_json(self) -> dict[str, Any]:
        return {
            f.metadata["json"]: copy.copy(getattr(self, f.name))
            for f in fields(self)  # type: ignore[arg-type]
            if f.metadata["json"]
        }

    def _load_json(self, data: Any) -> None:
        if not isinstance(data, dict):
            raise ValueError("option section must be a JSON object")
        for f in fields(self):  # type: ignore[arg-type]
            key = f.metadata["json"]
            if key and key in data:
                setattr(self, f.name, _check(data[key], f.metadata["kind"], key))

    def _load_toml(self, data: dict[str, Any]) -> None:
        by_key = {
            f.name.replace("_", "").lower(): f
            for f in fields(self)  # type: ignore[arg-type]
            if f.metadata["toml"]
        }
        for key, value in data.items():
            target = by_key.get(key.lower())
            if target is None:
                continue
            setattr(self, target.name, _check(value, target.metadata["kind"], key))


@dataclass
class HTTPOptions(_Section):
    """Options controlling the HTTP request and its parts."""

    cookies: list[str] = _opt(list, None, None)
    data: str = _opt(str, "", "data")
    follow_redirects: bool = _opt(bool, False, "follow_redirects")
    headers: list[str] = _opt(list, None, "headers")
    ignore_body: bool = _opt(bool, False, "ignore_body")
    method: str = _opt(str, "", "method")
    proxy_url: str = _opt(str, "", "proxy_url")
    recursion: bool = _opt(bool, False, "recursion")
    recursion_depth: int = _opt(int, 0, "recursion_depth")
    recursion_strategy: str = _opt(str, "default", "recursion_strategy")
    replay_proxy_url: str = _opt(str, "", "replay_proxy_url")
    sni: str = _opt(str, "", "sni")
    timeout: int = _opt(int, 10, "timeout")
    url: str = _opt(str, "", "url")
    http2: bool = _opt(bool, False, "http2")


@dataclass
class GeneralOptions(_Section):
    """General behaviour of the fuzzing run."""

    auto_calibration: bool = _opt(bool, False, "autocalibration")
    auto_calibration_keyword: str = _opt(str, "FUZZ", "autocalibration_keyword")
    auto_calibration_per_host: bool = _opt(bool, False, "autocalibration_per_host")
    auto_calibration_strategy: str = _opt(str, "basic", "autocalibration_strategy")
    auto_calibration_strings: list[str] = _opt(list, None, "autocalibration_strings")
    colors: bool = _opt(bool, False, "colors")
    config_file: str = _opt(str, "", "config_file", toml=False)
    delay: str = _opt(str, "", "delay")
    json: bool = _opt(bool, False, "json")
    max_time: int = _opt(int, 0, "maxtime")
    max_time_job: int = _opt(int, 0, "maxtime_job")
    noninteractive: bool = _opt(bool, False, "noninteractive")
    quiet: bool = _opt(bool, False, "quiet")
    rate: int = _opt(int, 0, "rate")
    scraper_file: str = _opt(str, "", "scraperfile")
    scrapers: str = _opt(str, "all", "scrapers")
    searchhash: str = _opt(str, "", None)
    show_version: bool = _opt(bool, False, None, toml=False)
    stop_on_403: bool = _opt(bool, False, "stop_on_403")
    stop_on_all: bool = _opt(bool, False, "stop_on_all")
    stop_on_errors: bool = _opt(bool, False, "stop_on_errors")
    threads: int = _opt(int, 40, "threads")
    verbose: bool = _opt(bool, False, "verbose")


@dataclass
class InputOptions(_Section):
    """Options for the input data: wordlists and input commands."""

    dir_search_compat: bool = _opt(bool, False, "dirsearch_compat")
    extensions: str = _opt(str, "", "extensions")
    ignore_wordlist_comments: bool = _opt(bool, False, "ignore_wordlist_comments")
    input_mode: str = _opt(str, "clusterbomb", "input_mode")
    input_num: int = _opt(int, 100, "input_num")
    input_shell: str = _opt(str, "", "input_shell")
    input_commands: list[str] = _opt(list, None, "input_commands")
    request: str = _opt(str, "", "request_file")
    request_proto: str = _opt(str, "https", "request_proto")
    wordlists: list[str] = _opt(list, None, "wordlists")


@dataclass
class OutputOptions(_Section):
    """Options for output files and the debug log."""

    debug_log: str = _opt(str, "", "debug_log")
    output_directory: str = _opt(str, "", "output_directory")
    output_file: str = _opt(str, "", "output_file")
    output_format: str = _opt(str, "json", "output_format")
    output_skip_empty_file: bool = _opt(bool, False, "output_skip_empty")


@dataclass
class _ResponseCriteria(_Section):
    mode: str = _opt(str, "or", "mode")
    lines: str = _opt(str, "", "lines")
    regexp: str = _opt(str, "", "regexp")
    size: str = _opt(str, "", "size")
    status: str = _opt(str, "", "status")
    time: str = _opt(str, "", "time")
    words: str = _opt(str, "", "words")


@dataclass
class FilterOptions(_ResponseCriteria):
    """Criteria that drop responses from the results."""


@dataclass
class MatcherOptions(_ResponseCriteria):
    """Criteria that select responses for the results."""

    status: str = _opt(str, DEFAULT_MATCHER_STATUS, "status")


_SECTIONS = (
    ("filter", "filters"),
    ("general", "general"),
    ("http", "http"),
    ("input", "input"),
    ("matcher", "matchers"),
    ("output", "output"),
)
_SECTION_NAMES = {name for name, _ in _SECTIONS}


@dataclass
class ConfigOptions:
    """Every option the user can set, grouped by section, with their defaults."""

    filter: FilterOptions = field(default_factory=FilterOptions)
    general: GeneralOptions = field(default_factory=GeneralOptions)
    http: HTTPOptions = field(default_factory=HTTPOptions)
    input: InputOptions = field(default_factory=InputOptions)
    matcher: MatcherOptions = field(default_factory=MatcherOptions)
    output: OutputOptions = field(default_factory=OutputOptions)

    def to_json_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form of the options."""
        return {key: getattr(self, name)._to_json() for name, key in _SECTIONS}

    @classmethod
    def from_json_dict(cls, data: Any) -> ConfigOptions:
        """Build options from the form made by to_json_dict; missing values keep defaults."""
        if not isinstance(data, dict):
            raise ValueError("options must be a JSON object")
        opts = cls()
        for name, key in _SECTIONS:
            section = data.get(key)
            if section is not None:
                getattr(opts, name)._load_json(section)
        return opts

    def update_from_toml(self, data: dict[str, Any] | str) -> None:
        """Overwrite options with those found in parsed TOML data or TOML text."""
        if isinstance(data, str):
            data = tomllib.loads(data)
        for key, value in data.items():
            name = key.lower()
            if name not in _SECTION_NAMES:
                continue
            if not isinstance(value, dict):
                raise ValueError(f"configuration section {key!r} must be a table")
            getattr(self, name)._load_toml(value)


def read_config(config_file: str | os.PathLike[str]) -> ConfigOptions:
    """Return the defaults overridden by the TOML file; raise OSError or ValueError."""
    opts = ConfigOptions()
    with open(config_file, "rb") as handle:
        data = tomllib.load(handle)
    opts.update_from_toml(data)
    return opts


def read_default_config() -> ConfigOptions:
    """Read the user's default configuration file, falling back to plain defaults."""
    try:
        check_or_create_config_dir()
    except OSError:
        pass
    path = config_dir() / CONFIG_FILE_NAME
    if not file_exists(path):
        try:
            path = Path.home() / f".{CONFIG_FILE_NAME}"
        except RuntimeError:
            pass
    try:
        return read_config(path)
    except (OSError, ValueError) as err:
        _log.info("Error while opening default config file: %s", err)
        return ConfigOptions()
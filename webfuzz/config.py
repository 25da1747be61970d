"""The validated run configuration, and its conversion back to options."""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass, field
from typing import Any

from webfuzz.interfaces import MatcherManager
from webfuzz.optrange import OptRange
from webfuzz.options import ConfigOptions, FilterOptions, MatcherOptions

_CRITERIA_FIELDS = {
    "line": "lines",
    "regexp": "regexp",
    "size": "size",
    "status": "status",
    "time": "time",
    "words": "words",
}


@dataclass
class InputProviderConfig:
    """Describes one source of input values."""

    name: str = ""
    keyword: str = ""
    value: str = ""
    template: str = ""


@dataclass
class Config:
    """The configuration a job runs with."""

    auto_calibration: bool = False
    auto_calibration_keyword: str = "FUZZ"
    auto_calibration_per_host: bool = False
    auto_calibration_strategy: str = "basic"
    auto_calibration_strings: list[str] = field(default_factory=list)
    colors: bool = False
    command_keywords: list[str] = field(default_factory=list)
    command_line: str = ""
    config_file: str = ""
    context: threading.Event = field(
        default_factory=threading.Event, repr=False, compare=False
    )
    data: str = ""
    debug_log: str = ""
    delay: OptRange = field(default_factory=OptRange)
    dir_search_compat: bool = False
    extensions: list[str] = field(default_factory=list)
    filter_mode: str = "or"
    follow_redirects: bool = False
    headers: dict[str, str] = field(default_factory=dict)
    ignore_body: bool = False
    ignore_wordlist_comments: bool = False
    input_mode: str = "clusterbomb"
    input_num: int = 0
    input_providers: list[InputProviderConfig] = field(default_factory=list)
    input_shell: str = ""
    json: bool = False
    matcher_manager: MatcherManager | None = None
    matcher_mode: str = "or"
    max_time: int = 0
    max_time_job: int = 0
    method: str = "GET"
    noninteractive: bool = False
    output_directory: str = ""
    output_file: str = ""
    output_format: str = ""
    output_skip_empty_file: bool = False
    progress_frequency: int = 125
    proxy_url: str = ""
    quiet: bool = False
    rate: int = 0
    recursion: bool = False
    recursion_depth: int = 0
    recursion_strategy: str = "default"
    replay_proxy_url: str = ""
    request_file: str = ""
    request_proto: str = "https"
    scraper_file: str = ""
    scrapers: str = "all"
    sni: str = ""
    stop_on_403: bool = False
    stop_on_all: bool = False
    stop_on_errors: bool = False
    threads: int = 0
    timeout: int = 10
    url: str = ""
    verbose: bool = False
    wordlists: list[str] = field(default_factory=list)
    http2: bool = False

    def _delay_option(self) -> str:
        if not self.delay.has_delay:
            return ""
        if self.delay.is_range:
            return f"{self.delay.min:.2f}-{self.delay.max:.2f}"
        return f"{self.delay.min:.2f}"

    def to_options(self) -> ConfigOptions:
        """Return the options that would produce this configuration."""
        opts = ConfigOptions()

        http = opts.http
        http.cookies = []
        http.data = self.data
        http.follow_redirects = self.follow_redirects
        http.headers = [f"{key}: {value}" for key, value in self.headers.items()]
        http.ignore_body = self.ignore_body
        http.method = self.method
        http.proxy_url = self.proxy_url
        http.recursion = self.recursion
        http.recursion_depth = self.recursion_depth
        http.recursion_strategy = self.recursion_strategy
        http.replay_proxy_url = self.replay_proxy_url
        http.sni = self.sni
        http.timeout = self.timeout
        http.url = self.url
        http.http2 = self.http2

        general = opts.general
        general.auto_calibration = self.auto_calibration
        general.auto_calibration_keyword = self.auto_calibration_keyword
        general.auto_calibration_per_host = self.auto_calibration_per_host
        general.auto_calibration_strategy = self.auto_calibration_strategy
        general.auto_calibration_strings = list(self.auto_calibration_strings)
        general.colors = self.colors
        general.config_file = ""
        general.delay = self._delay_option()
        general.json = self.json
        general.max_time = self.max_time
        general.max_time_job = self.max_time_job
        general.noninteractive = self.noninteractive
        general.quiet = self.quiet
        general.rate = int(self.rate)
        general.scraper_file = self.scraper_file
        general.scrapers = self.scrapers
        general.stop_on_403 = self.stop_on_403
        general.stop_on_all = self.stop_on_all
        general.stop_on_errors = self.stop_on_errors
        general.threads = self.threads
        general.verbose = self.verbose

        inp = opts.input
        inp.dir_search_compat = self.dir_search_compat
        inp.extensions = ",".join(self.extensions)
        inp.ignore_wordlist_comments = self.ignore_wordlist_comments
        inp.input_mode = self.input_mode
        inp.input_num = self.input_num
        inp.input_shell = self.input_shell
        inp.input_commands = [
            f"{provider.value}:{provider.keyword}"
            for provider in self.input_providers
            if provider.name == "command"
        ]
        inp.request = self.request_file
        inp.request_proto = self.request_proto
        inp.wordlists = list(self.wordlists)

        out = opts.output
        out.debug_log = self.debug_log
        out.output_directory = self.output_directory
        out.output_file = self.output_file
        out.output_format = self.output_format
        out.output_skip_empty_file = self.output_skip_empty_file

        opts.filter = FilterOptions(mode=self.filter_mode)
        opts.matcher = MatcherOptions(mode=self.matcher_mode, status="")
        if self.matcher_manager is not None:
            for name, provider in self.matcher_manager.get_filters().items():
                attr = _CRITERIA_FIELDS.get(name)
                if attr:
                    setattr(opts.filter, attr, provider.repr())
            for name, provider in self.matcher_manager.get_matchers().items():
                attr = _CRITERIA_FIELDS.get(name)
                if attr:
                    setattr(opts.matcher, attr, provider.repr())
        return opts

    def _matchers_json(self) -> dict[str, dict[str, str]] | None:
        if self.matcher_manager is None:
            return None
        return {
            "matchers": {k: v.repr() for k, v in self.matcher_manager.get_matchers().items()},
            "filters": {k: v.repr() for k, v in self.matcher_manager.get_filters().items()},
        }

    def to_json_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form of the configuration."""
        return {
            "autocalibration": self.auto_calibration,
            "autocalibration_keyword": self.auto_calibration_keyword,
            "autocalibration_perhost": self.auto_calibration_per_host,
            "autocalibration_strategy": self.auto_calibration_strategy,
            "autocalibration_strings": list(self.auto_calibration_strings),
            "colors": self.colors,
            "cmdline": self.command_line,
            "configfile": self.config_file,
            "postdata": self.data,
            "debuglog": self.debug_log,
            "delay": self.delay.to_json(),
            "dirsearch_compatibility": self.dir_search_compat,
            "extensions": list(self.extensions),
            "fmode": self.filter_mode,
            "follow_redirects": self.follow_redirects,
            "headers": dict(self.headers),
            "ignorebody": self.ignore_body,
            "ignore_wordlist_comments": self.ignore_wordlist_comments,
            "inputmode": self.input_mode,
            "cmd_inputnum": self.input_num,
            "inputproviders": [asdict(p) for p in self.input_providers],
            "inputshell": self.input_shell,
            "json": self.json,
            "matchers": self._matchers_json(),
            "mmode": self.matcher_mode,
            "maxtime": self.max_time,
            "maxtime_job": self.max_time_job,
            "method": self.method,
            "noninteractive": self.noninteractive,
            "outputdirectory": self.output_directory,
            "outputfile": self.output_file,
            "outputformat": self.output_format,
            "OutputSkipEmptyFile": self.output_skip_empty_file,
            "proxyurl": self.proxy_url,
            "quiet": self.quiet,
            "rate": self.rate,
            "recursion": self.recursion,
            "recursion_depth": self.recursion_depth,
            "recursion_strategy": self.recursion_strategy,
            "replayproxyurl": self.replay_proxy_url,
            "requestfile": self.request_file,
            "requestproto": self.request_proto,
            "scraperfile": self.scraper_file,
            "scrapers": self.scrapers,
            "sni": self.sni,
            "stop_403": self.stop_on_403,
            "stop_all": self.stop_on_all,
            "stop_errors": self.stop_on_errors,
            "threads": self.threads,
            "timeout": self.timeout,
            "url": self.url,
            "verbose": self.verbose,
            "wordlists": list(self.wordlists),
            "http2": self.http2,
        }
"""Turning user options into a validated run configuration."""

from __future__ import annotations

import os
import re
import sys
import threading
from collections.abc import Iterable
from urllib.parse import urlsplit

from webfuzz.config import Config, InputProviderConfig
from webfuzz.errors import ErrorCollector, MultiError
from webfuzz.options import ConfigOptions
from webfuzz.util import file_exists

SNIPER_TEMPLATE = "§"
INPUT_MODES = ("clusterbomb", "pitchfork", "sniper")
OUTPUT_FORMATS = ("all", "json", "ejson", "html", "md", "csv", "ecsv")
OPERATOR_MODES = ("and", "or")
PROXY_SCHEMES = frozenset({"http", "https", "socks5"})
REPLAY_PROXY_SCHEMES = PROXY_SCHEMES | {"socks5h"}

_DELAY_ERROR = (
    'Delay needs to be either a single float: "0.1" or a range of floats, '
    'delimited by dash: "0.1-0.8"'
)
_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*):(.*)$", re.S)
_TOKEN_CHARS = frozenset(
    "!#$%&'*+-.^_`|~0123456789"
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
)


class ConfigError(MultiError):
    """The options could not be turned into a valid configuration."""

    def __init__(self, errors: Iterable[BaseException | str], config: Config | None = None) -> None:
        super().__init__(errors)
        self.config = config


def _canonical_header_key(key: str) -> str:
    """Capitalise each dash-separated part; leave keys with non-token characters alone."""
    if not key or any(char not in _TOKEN_CHARS for char in key):
        return key
    return "-".join(part[:1].upper() + part[1:].lower() for part in key.split("-"))


def _split_location(value: str) -> list[str]:
    """Split "path:KEYWORD" into its parts, minding drive letters on Windows."""
    if sys.platform != "win32":
        return value.split(":", 1)
    if file_exists(value):
        return [value]
    cut = value.rfind(":")
    filepart = value[:cut] if cut >= 0 else value
    if file_exists(filepart):
        return [filepart, value[cut + 1 :]]
    return [value]


def _valid_proxy_url(raw: str, schemes: frozenset[str]) -> bool:
    match = _SCHEME_RE.match(raw)
    if not match:
        return False
    scheme, rest = match.group(1).lower(), match.group(2)
    if scheme not in schemes or not rest.startswith("/"):
        return False
    if any(ord(char) < 0x20 or ord(char) == 0x7F for char in raw):
        return False
    try:
        urlsplit(raw).port
    except ValueError:
        return False
    return True


def _add_providers(opts: ConfigOptions, conf: Config, errs: ErrorCollector, template: str) -> None:
    wordlists: list[str] = []
    for value in opts.input.wordlists:
        parts = _split_location(value)
        if parts[0] != "-":
            parts[0] = os.path.abspath(parts[0])
        if len(parts) == 2:
            if conf.input_mode == "sniper":
                errs.add("sniper mode does not support wordlist keywords")
            else:
                conf.input_providers.append(
                    InputProviderConfig(name="wordlist", value=parts[0], keyword=parts[1])
                )
        else:
            conf.input_providers.append(
                InputProviderConfig(
                    name="wordlist", value=parts[0], keyword="FUZZ", template=template
                )
            )
        wordlists.append(":".join(parts))
    conf.wordlists = wordlists

    for value in opts.input.input_commands:
        parts = value.split(":", 1)
        if len(parts) == 2:
            if conf.input_mode == "sniper":
                errs.add("sniper mode does not support command keywords")
            else:
                conf.input_providers.append(
                    InputProviderConfig(name="command", value=parts[0], keyword=parts[1])
                )
                conf.command_keywords.append(parts[0])
        else:
            conf.input_providers.append(
                InputProviderConfig(
                    name="command", value=parts[0], keyword="FUZZ", template=template
                )
            )
            conf.command_keywords.append("FUZZ")


def _add_headers(headers: Iterable[str], conf: Config, errs: ErrorCollector) -> None:
    for header in headers:
        name, sep, value = header.partition(":")
        if not sep:
            errs.add(
                'Header defined by -H needs to have a value. ":" should be used as a separator'
            )
            continue
        keywords = [*conf.command_keywords, *(p.keyword for p in conf.input_providers)]
        if any(keyword in name for keyword in keywords):
            key = name.strip()
        else:
            key = _canonical_header_key(name.strip())
        conf.headers[key] = value.strip()


def config_from_options(opts: ConfigOptions, context: threading.Event | None = None) -> Config:
    """Validate the options and build a Config; raise ConfigError listing every problem."""
    errs = ErrorCollector()
    conf = Config(context=context if context is not None else threading.Event())

    if not opts.http.url and not opts.input.request:
        errs.add("-u flag or -request flag is required")

    if opts.input.extensions:
        conf.extensions = opts.input.extensions.split(",")

    headers = list(opts.http.headers)
    if opts.http.cookies:
        headers.append("Cookie: " + "; ".join(opts.http.cookies))

    conf.input_mode = opts.input.input_mode
    if conf.input_mode not in INPUT_MODES:
        errs.add(f"Input mode (-mode) {conf.input_mode} not recognized")

    template = ""
    if conf.input_mode == "sniper":
        template = SNIPER_TEMPLATE
        if len(opts.input.wordlists) > 1:
            errs.add("sniper mode only supports one wordlist")
        if len(opts.input.input_commands) > 1:
            errs.add("sniper mode only supports one input command")

    _add_providers(opts, conf, errs, template)
    if not conf.input_providers:
        errs.add("Either -w or --input-cmd flag is required")

    if opts.input.request:
        try:
            parse_raw_request(opts, conf)
        except ValueError as err:
            errs.add(f"Could not parse raw request: {err}")

    if opts.http.url:
        conf.url = opts.http.url
    if opts.http.sni:
        conf.sni = opts.http.sni

    _add_headers(headers, conf, errs)

    try:
        conf.delay.initialize(opts.general.delay)
    except ValueError as err:
        errs.add(str(err))

    if opts.http.proxy_url:
        if _valid_proxy_url(opts.http.proxy_url, PROXY_SCHEMES):
            conf.proxy_url = opts.http.proxy_url
        else:
            errs.add("Bad proxy url (-x) format. Expected http, https or socks5 url")

    if opts.http.replay_proxy_url:
        if _valid_proxy_url(opts.http.replay_proxy_url, REPLAY_PROXY_SCHEMES):
            conf.replay_proxy_url = opts.http.replay_proxy_url
        else:
            errs.add(
                "Bad replay-proxy url (-replay-proxy) format. Expected http, https or socks5 url"
            )

    if opts.output.output_file:
        if opts.output.output_format in OUTPUT_FORMATS:
            conf.output_format = opts.output.output_format
        else:
            errs.add(f"Unknown output file format (-of): {opts.output.output_format}")

    if opts.general.auto_calibration_strings:
        conf.auto_calibration_strings = list(opts.general.auto_calibration_strings)

    conf.rate = max(opts.general.rate, 0)

    if not conf.method:
        conf.method = opts.http.method or "GET"
    elif opts.http.method:
        conf.method = opts.http.method

    if opts.http.data:
        conf.data = opts.http.data

    conf.ignore_wordlist_comments = opts.input.ignore_wordlist_comments
    conf.dir_search_compat = opts.input.dir_search_compat
    conf.colors = opts.general.colors
    conf.input_num = opts.input.input_num
    conf.input_shell = opts.input.input_shell
    conf.output_file = opts.output.output_file
    conf.output_directory = opts.output.output_directory
    conf.output_skip_empty_file = opts.output.output_skip_empty_file
    conf.ignore_body = opts.http.ignore_body
    conf.quiet = opts.general.quiet
    conf.scraper_file = opts.general.scraper_file
    conf.scrapers = opts.general.scrapers
    conf.stop_on_403 = opts.general.stop_on_403
    conf.stop_on_all = opts.general.stop_on_all
    conf.stop_on_errors = opts.general.stop_on_errors
    conf.follow_redirects = opts.http.follow_redirects
    conf.recursion = opts.http.recursion
    conf.recursion_depth = opts.http.recursion_depth
    conf.recursion_strategy = opts.http.recursion_strategy
    conf.auto_calibration = opts.general.auto_calibration
    conf.auto_calibration_per_host = opts.general.auto_calibration_per_host
    conf.auto_calibration_strategy = opts.general.auto_calibration_strategy
    conf.threads = opts.general.threads
    conf.timeout = opts.http.timeout
    conf.max_time = opts.general.max_time
    conf.max_time_job = opts.general.max_time_job
    conf.noninteractive = opts.general.noninteractive
    conf.verbose = opts.general.verbose
    conf.json = opts.general.json
    conf.http2 = opts.http.http2

    if opts.filter.mode not in OPERATOR_MODES:
        errs.add(
            f"Unrecognized value for parameter fmode: {opts.filter.mode}, "
            "valid values are: and, or"
        )
    if opts.matcher.mode not in OPERATOR_MODES:
        errs.add(
            f"Unrecognized value for parameter mmode: {opts.matcher.mode}, "
            "valid values are: and, or"
        )
    conf.filter_mode = opts.filter.mode
    conf.matcher_mode = opts.matcher.mode

    if conf.auto_calibration_per_host:
        conf.auto_calibration = True

    if conf.data and conf.method == "GET" and not opts.input.request:
        conf.method = "POST"

    conf.command_line = " ".join(sys.argv)

    for provider in conf.input_providers:
        if provider.template:
            if not template_present(provider.template, conf):
                errs.add(
                    f"Template {provider.template} defined, but not found in pairs in "
                    "headers, method, URL or POST data."
                )
        elif not keyword_present(provider.keyword, conf):
            errs.add(
                f"Keyword {provider.keyword} defined, but not found in headers, "
                "method, URL or POST data."
            )

    if conf.input_mode == "sniper" and keyword_present("FUZZ", conf):
        errs.add("FUZZ keyword defined, but we are using sniper mode.")

    if opts.http.recursion and not conf.url.endswith("FUZZ"):
        errs.add("When using -recursion the URL (-u) must end with FUZZ keyword.")

    if opts.general.verbose and opts.general.json:
        errs.add("Cannot have -json and -v")

    if len(errs):
        raise ConfigError(errs, conf)
    return conf


def parse_raw_request(opts: ConfigOptions, conf: Config) -> None:
    """Fill method, URL, headers and body of conf from the raw request file; raise ValueError."""
    conf.request_file = opts.input.request
    conf.request_proto = opts.input.request_proto
    try:
        handle = open(opts.input.request, "rb")
    except OSError as err:
        raise ValueError(f"could not open request file: {err}") from err

    with handle:
        first = handle.readline()
        if not first.endswith(b"\n"):
            raise ValueError("could not read request: unexpected end of file")
        parts = first.decode("utf-8", "replace").split(" ")
        if len(parts) < 3:
            raise ValueError("malformed request supplied")
        conf.method = parts[0]

        while True:
            raw_line = handle.readline()
            line = raw_line.decode("utf-8", "replace").strip()
            if not raw_line.endswith(b"\n") or not line:
                break
            name, sep, value = line.partition(":")
            if not sep or name.lower() == "content-length":
                continue
            conf.headers[name.strip()] = value.strip()

        target = parts[1]
        if target.startswith("http"):
            try:
                parsed = urlsplit(target)
            except ValueError as err:
                raise ValueError(f"could not parse request URL: {err}") from err
            conf.url = target
            conf.headers["Host"] = parsed.netloc
        else:
            conf.url = f"{opts.input.request_proto}://{conf.headers.get('Host', '')}{target}"

        try:
            body = handle.read().decode("utf-8", "replace")
        except OSError as err:
            raise ValueError(f"could not read request body: {err}") from err

    if body.endswith("\r\n"):
        body = body[:-2]
    elif body.endswith("\n"):
        body = body[:-1]
    conf.data = body


def keyword_present(keyword: str, conf: Config) -> bool:
    """Return True if keyword appears in the method, URL, POST data or headers."""
    if keyword in conf.method or keyword in conf.url or keyword in conf.data:
        return True
    return any(keyword in key or keyword in value for key, value in conf.headers.items())


def template_present(template: str, conf: Config) -> bool:
    """Return True if template markers exist, and every field holding them has them in pairs."""
    fields = [conf.method, conf.url, conf.data]
    for key, value in conf.headers.items():
        fields.extend((key, value))
    sane = False
    for text in fields:
        count = text.count(template)
        if count:
            if count % 2:
                return False
            sane = True
    return sane
# webfuzz

The engine of a web fuzzer. It checks a set of user options and turns them
into a job configuration, expands sniper-mode templates into requests, and
drives the fuzzing loop: threading, rate limiting, pausing, stop conditions,
recursion, auto-calibration of filters and a history of past jobs.

It needs nothing outside the standard library (Python 3.11 or later).

## Modules

| Module | Purpose |
| --- | --- |
| `webfuzz.options` | `ConfigOptions` and its sections (`HTTPOptions`, `GeneralOptions`, `InputOptions`, `OutputOptions`, `FilterOptions`, `MatcherOptions`) with their defaults; `read_config` and `read_default_config` load TOML files |
| `webfuzz.parser` | `config_from_options` validates options and builds a `Config`, raising `ConfigError` that lists every problem; `parse_raw_request`, `keyword_present`, `template_present` |
| `webfuzz.config` | `Config`, `InputProviderConfig`, and `Config.to_options` for the way back |
| `webfuzz.request` | `Request`, `new_request`, `base_request`, `recursion_request`, and sniper templating: `sniper_requests`, `template_locations`, `inject_keyword`, `scrub_templates` |
| `webfuzz.response` | `Response`, `Response.get_redirect_location`, `url_equal`, `get_url_port` |
| `webfuzz.job` | `Job` and `QueueJob`: the job queue, pause and resume, stop conditions, recursion |
| `webfuzz.autocalibration` | `CalibrationMixin`: filter calibration from responses to random inputs, globally or per host |
| `webfuzz.rate` | `RateThrottle`: paces requests and measures requests per second |
| `webfuzz.history` | `write_history_entry`, `search_hash`, `history_replayable`, `config_from_history` |
| `webfuzz.interfaces` | Abstract base classes for runners, input, output, matchers and filters, and scrapers; the `Result`, `ScraperResult` and `Progress` records |
| `webfuzz.valuerange` | `ValueRange` and `value_range_from_string` for `200` or `200-299` |
| `webfuzz.optrange` | `OptRange` for delays such as `0.1` or `0.1-2.0` |
| `webfuzz.errors` | `MultiError` and `ErrorCollector` |
| `webfuzz.util` | Random strings, keyword lookup in requests, configuration directories, `version()` |

## Building a configuration

```python
from webfuzz.options import ConfigOptions
from webfuzz.parser import ConfigError, config_from_options

opts = ConfigOptions()
opts.http.url = "https://example.com/FUZZ"
opts.input.wordlists = ["/path/to/wordlist.txt"]

try:
    conf = config_from_options(opts, None)
except ConfigError as exc:
    print(exc)          # every problem found, one per line
```

Among the checks: a URL or a raw request file is required, as is at least one
wordlist or input command; each keyword must appear in the method, URL, POST
data or headers; the input mode must be `clusterbomb`, `pitchfork` or
`sniper`; a proxy URL must use `http`, `https` or `socks5` (the replay proxy
also accepts `socks5h`); filter and matcher modes must be `and` or `or`;
recursion needs a URL ending in `FUZZ`; `json` and `verbose` cannot both be
set. POST data with the `GET` method switches the method to `POST` unless a
raw request file is used.

`read_config(path)` returns the defaults overridden by a TOML file and raises
`OSError` or `ValueError`. `read_default_config()` first makes sure the
configuration directories exist, then reads `webfuzzrc` from the configuration
directory, or `~/.webfuzzrc` if that file is missing; on any error it returns
the defaults. The configuration directory is `webfuzz` under
`$XDG_CONFIG_HOME` (or the platform's usual location), with `history` and
`scraper` below it.

## Sniper mode templating

Each pair of `§` markers marks one place to fuzz. `sniper_requests` returns
one request per marked place, with that place replaced by `FUZZ` and all
other markers removed:

```python
from webfuzz.request import inject_keyword, template_locations

positions = template_locations("§", "id=§a§&sort=desc")
inject_keyword("id=§a§&sort=desc", "FUZZ", positions[0], positions[1])
# 'id=FUZZ&sort=desc'
```

## Ranges

```python
from webfuzz.optrange import OptRange
from webfuzz.valuerange import value_range_from_string

value_range_from_string("200-299")   # ValueRange(min=200, max=299)
value_range_from_string("42")        # ValueRange(min=42, max=42)

delay = OptRange()
delay.initialize("0.1-2.0")          # random delay between 0.1 and 2.0 seconds
```

Bad input raises `ValueError`, including a range whose minimum is not smaller
than its maximum.

## History

Each queued job is stored under the history directory, named by the SHA-256
of its options. Every request carries a `FFUFHASH` input: the first five
characters of that name followed by the input position in hex.
`search_hash(value)` returns the matching stored options and the position.

## Running a job

`Job(config, input_provider, runner, output, replay_runner=None, scraper=None)`
runs with `Job.start()`. The config must have a `matcher_manager`, and the
other collaborators are implementations of the abstract classes in
`webfuzz.interfaces`.

## What the package does not do

It ships no implementations of those interfaces: no HTTP client that sends
requests, no wordlist or command input reader, no console or file output, no
matcher and filter implementations, and no scraper. It has no command-line
program either; it is a library to build one on.

## Running the tests

Install the `test` extra and run `pytest` from the project directory.
import pytest

from webfuzz.config import Config, InputProviderConfig
from webfuzz.options import ConfigOptions
from webfuzz.parser import (
    ConfigError,
    config_from_options,
    keyword_present,
    parse_raw_request,
    template_present,
)

TEMPLATE = "§"
GOOD_URL = "https://example.com/fooo/bar?test=§value§&order[§0§]=§foo§"
GOOD_DATA = (
    "line=Can we pull back the §veil§ of §static§ and reach in to the source of "
    "§all§ being?&commit=true"
)
BAD_DATA_TAIL = (
    "line=Can we pull back the §veil§ of §static§ and reach in to the source of "
    "§all§ being?&commit=§true§"
)


def base_headers():
    return {"foo": "§bar§", "omg": "bbq", "§world§": "Ooo"}


def test_template_present_good():
    conf = Config(url=GOOD_URL, method="PO§ST§", headers=base_headers(), data=GOOD_DATA)
    assert template_present(TEMPLATE, conf) is True


def test_template_present_bad_method():
    conf = Config(url=GOOD_URL, method="POST§", headers=base_headers(), data=BAD_DATA_TAIL)
    assert template_present(TEMPLATE, conf) is False


def test_template_present_bad_url():
    conf = Config(
        url="https://example.com/fooo/bar?test=§value§&order[0§]=§foo§",
        method="§POST§",
        headers=base_headers(),
        data=BAD_DATA_TAIL,
    )
    assert template_present(TEMPLATE, conf) is False


def test_template_present_bad_data():
    conf = Config(
        url=GOOD_URL,
        method="§POST§",
        headers=base_headers(),
        data=(
            "line=Can we pull back the §veil of §static§ and reach in to the source of "
            "§all§ being?&commit=§true§"
        ),
    )
    assert template_present(TEMPLATE, conf) is False


def test_template_present_bad_header_value():
    headers = base_headers()
    headers["kingdom"] = "§candy"
    conf = Config(url=GOOD_URL, method="PO§ST§", headers=headers, data=GOOD_DATA)
    assert template_present(TEMPLATE, conf) is False


def test_template_present_bad_header_key():
    headers = base_headers()
    headers["kingdom"] = "candy"
    headers["§kingdom"] = "candy"
    conf = Config(url=GOOD_URL, method="PO§ST§", headers=headers, data=GOOD_DATA)
    assert template_present(TEMPLATE, conf) is False


def test_template_present_without_markers():
    conf = Config(url="https://example.com/", method="GET")
    assert template_present(TEMPLATE, conf) is False


PROXY_ERROR = "Bad proxy url (-x) format. Expected http, https or socks5 url"
REPLAY_ERROR = (
    "Bad replay-proxy url (-replay-proxy) format. Expected http, https or socks5 url"
)


def error_text(opts):
    with pytest.raises(ConfigError) as excinfo:
        config_from_options(opts, None)
    return str(excinfo.value)


@pytest.mark.parametrize(
    "proxy", ["http://127.0.0.1:8080", "https://127.0.0.1", "socks5://127.0.0.1"]
)
def test_proxy_parsing_accepts(proxy):
    opts = ConfigOptions()
    opts.http.proxy_url = proxy
    assert PROXY_ERROR not in error_text(opts)


@pytest.mark.parametrize(
    "proxy", ["Y0 y0 it's GREASE", "http:sixhours@dungeon", "imap://127.0.0.1"]
)
def test_proxy_parsing_rejects(proxy):
    opts = ConfigOptions()
    opts.http.proxy_url = proxy
    assert PROXY_ERROR in error_text(opts)


@pytest.mark.parametrize(
    "proxy", ["http://127.0.0.1:8080", "https://127.0.0.1", "socks5://127.0.0.1"]
)
def test_replay_proxy_parsing_accepts(proxy):
    opts = ConfigOptions()
    opts.http.replay_proxy_url = proxy
    assert REPLAY_ERROR not in error_text(opts)


@pytest.mark.parametrize(
    "proxy", ["Y0 y0 it's GREASE", "http:sixhours@dungeon", "imap://127.0.0.1"]
)
def test_replay_proxy_parsing_rejects(proxy):
    opts = ConfigOptions()
    opts.http.replay_proxy_url = proxy
    assert REPLAY_ERROR in error_text(opts)


@pytest.fixture
def wordlist(tmp_path):
    path = tmp_path / "words.txt"
    path.write_text("admin\nlogin\n")
    return path


def valid_options(wordlist):
    opts = ConfigOptions()
    opts.http.url = "https://example.org/FUZZ"
    opts.input.wordlists = [str(wordlist)]
    return opts


def test_valid_options_build_config(wordlist):
    conf = config_from_options(valid_options(wordlist))
    assert conf.url == "https://example.org/FUZZ"
    assert conf.method == "GET"
    assert conf.threads == 40
    assert conf.input_providers == [
        InputProviderConfig(name="wordlist", value=str(wordlist), keyword="FUZZ", template="")
    ]
    assert conf.wordlists == [str(wordlist)]


def test_wordlist_keyword(wordlist):
    opts = ConfigOptions()
    opts.http.url = "https://example.org/?q=WORD"
    opts.input.wordlists = [f"{wordlist}:WORD"]
    conf = config_from_options(opts)
    assert conf.input_providers[0].keyword == "WORD"
    assert conf.wordlists == [f"{wordlist}:WORD"]


def test_missing_url_and_wordlist():
    text = error_text(ConfigOptions())
    assert "-u flag or -request flag is required" in text
    assert "Either -w or --input-cmd flag is required" in text


def test_error_carries_partial_config(wordlist):
    opts = valid_options(wordlist)
    opts.general.verbose = True
    opts.general.json = True
    with pytest.raises(ConfigError) as excinfo:
        config_from_options(opts)
    assert "Cannot have -json and -v" in str(excinfo.value)
    assert excinfo.value.config.url == "https://example.org/FUZZ"


def test_headers_canonicalised(wordlist):
    opts = valid_options(wordlist)
    opts.http.headers = ["content-type:  application/json "]
    conf = config_from_options(opts)
    assert conf.headers == {"Content-Type": "application/json"}


def test_header_with_keyword_kept_as_is(wordlist):
    opts = ConfigOptions()
    opts.http.url = "https://example.org/"
    opts.input.wordlists = [f"{wordlist}:HDR"]
    opts.http.headers = ["x-HDR-name: value"]
    conf = config_from_options(opts)
    assert conf.headers == {"x-HDR-name": "value"}


def test_header_without_separator(wordlist):
    opts = valid_options(wordlist)
    opts.http.headers = ["novalue"]
    assert 'Header defined by -H needs to have a value' in error_text(opts)


def test_cookies_become_header(wordlist):
    opts = valid_options(wordlist)
    opts.http.cookies = ["a=1", "b=2"]
    conf = config_from_options(opts)
    assert conf.headers["Cookie"] == "a=1; b=2"
    assert opts.http.headers == []


def test_data_implies_post(wordlist):
    opts = valid_options(wordlist)
    opts.http.data = "x=1"
    conf = config_from_options(opts)
    assert conf.method == "POST"
    assert conf.data == "x=1"


def test_explicit_method_kept(wordlist):
    opts = valid_options(wordlist)
    opts.http.data = "x=1"
    opts.http.method = "PUT"
    assert config_from_options(opts).method == "PUT"


def test_delay_range(wordlist):
    opts = valid_options(wordlist)
    opts.general.delay = "0.1-0.5"
    conf = config_from_options(opts)
    assert conf.delay.is_range and conf.delay.has_delay
    assert (conf.delay.min, conf.delay.max) == (0.1, 0.5)


def test_bad_delay(wordlist):
    opts = valid_options(wordlist)
    opts.general.delay = "1-2-3"
    assert "Delay needs to be either a single float" in error_text(opts)


def test_unknown_input_mode(wordlist):
    opts = valid_options(wordlist)
    opts.input.input_mode = "spray"
    assert "Input mode (-mode) spray not recognized" in error_text(opts)


def test_sniper_mode(wordlist):
    opts = ConfigOptions()
    opts.http.url = "https://example.org/§page§"
    opts.input.wordlists = [str(wordlist)]
    opts.input.input_mode = "sniper"
    conf = config_from_options(opts)
    assert conf.input_providers[0].template == "§"


def test_sniper_mode_rejects_fuzz(wordlist):
    opts = valid_options(wordlist)
    opts.http.url = "https://example.org/§page§/FUZZ"
    opts.input.input_mode = "sniper"
    assert "FUZZ keyword defined, but we are using sniper mode." in error_text(opts)


def test_sniper_mode_rejects_keywords(wordlist):
    opts = ConfigOptions()
    opts.http.url = "https://example.org/§page§"
    opts.input.wordlists = [f"{wordlist}:KW"]
    opts.input.input_mode = "sniper"
    assert "sniper mode does not support wordlist keywords" in error_text(opts)


def test_recursion_requires_fuzz_suffix(wordlist):
    opts = valid_options(wordlist)
    opts.http.url = "https://example.org/FUZZ/x"
    opts.http.recursion = True
    assert "When using -recursion the URL (-u) must end with FUZZ keyword." in error_text(opts)


def test_bad_operator_modes(wordlist):
    opts = valid_options(wordlist)
    opts.filter.mode = "xor"
    opts.matcher.mode = "nand"
    text = error_text(opts)
    assert "Unrecognized value for parameter fmode: xor, valid values are: and, or" in text
    assert "Unrecognized value for parameter mmode: nand, valid values are: and, or" in text


def test_negative_rate_and_extensions(wordlist):
    opts = valid_options(wordlist)
    opts.general.rate = -5
    opts.input.extensions = ".php,.html"
    conf = config_from_options(opts)
    assert conf.rate == 0
    assert conf.extensions == [".php", ".html"]


def test_unknown_output_format(wordlist):
    opts = valid_options(wordlist)
    opts.output.output_file = "out.txt"
    opts.output.output_format = "xml"
    assert "Unknown output file format (-of): xml" in error_text(opts)


def test_per_host_implies_calibration(wordlist):
    opts = valid_options(wordlist)
    opts.general.auto_calibration_per_host = True
    assert config_from_options(opts).auto_calibration is True


def test_missing_keyword(wordlist):
    opts = valid_options(wordlist)
    opts.http.url = "https://example.org/"
    assert "Keyword FUZZ defined, but not found" in error_text(opts)


def test_keyword_present():
    conf = Config(url="https://example.org/", method="GET", headers={"X-A": "FUZZ"})
    assert keyword_present("FUZZ", conf) is True
    assert keyword_present("NOPE", conf) is False


def test_parse_raw_request(tmp_path):
    path = tmp_path / "req.txt"
    path.write_bytes(
        b"POST /api/FUZZ HTTP/1.1\r\nHost: example.org\r\nContent-Length: 10\r\n"
        b"X-Test: yes\r\n\r\n{\"a\":1}\n"
    )
    opts = ConfigOptions()
    opts.input.request = str(path)
    conf = Config()
    parse_raw_request(opts, conf)
    assert conf.method == "POST"
    assert conf.url == "https://example.org/api/FUZZ"
    assert conf.headers == {"Host": "example.org", "X-Test": "yes"}
    assert conf.data == '{"a":1}'
    assert conf.request_file == str(path)


def test_parse_raw_request_full_url(tmp_path):
    path = tmp_path / "req.txt"
    path.write_bytes(b"GET http://example.org:8080/FUZZ HTTP/1.1\nHost: other\n\n")
    opts = ConfigOptions()
    opts.input.request = str(path)
    conf = Config()
    parse_raw_request(opts, conf)
    assert conf.url == "http://example.org:8080/FUZZ"
    assert conf.headers["Host"] == "example.org:8080"
    assert conf.data == ""


def test_parse_raw_request_malformed(tmp_path):
    path = tmp_path / "req.txt"
    path.write_bytes(b"GET /\n")
    opts = ConfigOptions()
    opts.input.request = str(path)
    with pytest.raises(ValueError, match="malformed request supplied"):
        parse_raw_request(opts, Config())


def test_parse_raw_request_missing_file(tmp_path):
    opts = ConfigOptions()
    opts.input.request = str(tmp_path / "missing.txt")
    with pytest.raises(ValueError, match="could not open request file"):
        parse_raw_request(opts, Config())


def test_request_file_keeps_method(tmp_path, wordlist):
    path = tmp_path / "req.txt"
    path.write_bytes(b"GET /FUZZ HTTP/1.1\nHost: example.org\n\nbody\n")
    opts = ConfigOptions()
    opts.input.request = str(path)
    opts.input.request_proto = "http"
    opts.input.wordlists = [str(wordlist)]
    conf = config_from_options(opts)
    assert conf.method == "GET"
    assert conf.data == "body"
    assert conf.url == "http://example.org/FUZZ"
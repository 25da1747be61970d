import random
import string

import pytest

from webfuzz.request import Request
from webfuzz.util import (
    check_or_create_config_dir,
    config_dir,
    create_config_dir,
    file_exists,
    history_dir,
    host_url_from_request,
    random_string,
    request_contains_keyword,
    scraper_dir,
    uniq_strings,
    version,
)


def test_random_string_length():
    length = 1 + random.randrange(65535)
    result = random_string(length)
    assert len(result) == length


def test_random_string_only_letters():
    result = random_string(200)
    assert set(result) <= set(string.ascii_letters)


def test_random_string_negative():
    with pytest.raises(ValueError):
        random_string(-1)


def test_uniq_strings():
    items = ["foo", "foo", "bar", "baz", "baz", "foo", "baz", "baz", "foo"]
    result = uniq_strings(items)
    assert len(result) == 3
    assert set(result) == {"foo", "bar", "baz"}


def test_file_exists(tmp_path):
    target = tmp_path / "words.txt"
    target.write_text("a\n")
    assert file_exists(target) is True
    assert file_exists(tmp_path) is False
    assert file_exists(tmp_path / "missing") is False


@pytest.mark.parametrize(
    "request_kwargs",
    [
        {"url": "http://example.com/FUZZ"},
        {"host": "FUZZ.example.com"},
        {"method": "FUZZ"},
        {"data": b"a=FUZZ"},
        {"headers": {"X-FUZZ": "v"}},
        {"headers": {"X-Test": "FUZZ"}},
    ],
)
def test_request_contains_keyword(request_kwargs):
    req = Request(**request_kwargs)
    assert request_contains_keyword(req, "FUZZ") is True


def test_request_without_keyword():
    req = Request(method="GET", url="http://example.com/", headers={"A": "b"}, data=b"x")
    assert request_contains_keyword(req, "FUZZ") is False


def test_host_url_from_request():
    req = Request(url="http://example.com/foo/bar", host="example.com")
    assert host_url_from_request(req) == "example.com/foo"


def test_host_url_uses_request_host():
    req = Request(url="http://example.com/dir/", host="other.example.com")
    assert host_url_from_request(req) == "other.example.com/dir"


def test_version():
    assert version() == "2.0.0-dev"


def test_config_dirs_follow_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    base = config_dir()
    assert base.parent == tmp_path
    assert history_dir() == base / "history"
    assert scraper_dir() == base / "scraper"


def test_create_config_dir(tmp_path):
    target = tmp_path / "a" / "b"
    create_config_dir(target)
    assert target.is_dir()
    create_config_dir(target)
    assert target.is_dir()


def test_check_or_create_config_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    check_or_create_config_dir()
    assert history_dir().is_dir()
    assert scraper_dir().is_dir()
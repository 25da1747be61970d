from types import SimpleNamespace

from webfuzz.request import (
    Request,
    base_request,
    inject_keyword,
    new_request,
    recursion_request,
    scrub_templates,
    sniper_requests,
    template_locations,
)


def _conf(**kwargs):
    defaults = {"method": "GET", "url": "", "headers": {}, "data": ""}
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def test_base_request():
    headers = {"foo": "bar", "baz": "wibble", "Content-Type": "application/json"}
    data = "{\"quote\":\"I'll still be here tomorrow to high five you yesterday, my friend. Peace.\"}"
    expected = Request(method="POST", url="http://example.com/aaaa", headers=headers, data=data.encode())
    conf = _conf(method="POST", url="http://example.com/aaaa", headers=headers, data=data)
    assert base_request(conf) == expected


def test_new_request_has_no_headers():
    conf = _conf(method="PUT", url="http://example.com/x", headers={"A": "b"})
    req = new_request(conf)
    assert req == Request(method="PUT", url="http://example.com/x")


def test_recursion_request_replaces_url():
    conf = _conf(url="http://example.com/FUZZ", headers={"A": "b"}, data="x=1")
    req = recursion_request(conf, "http://example.com/dir/FUZZ")
    assert req.url == "http://example.com/dir/FUZZ"
    assert req.headers == {"A": "b"}
    assert req.data == b"x=1"


def test_copy_request():
    headers = {"foo": "bar", "omg": "bbq"}
    data = "line=Is+that+where+creativity+comes+from?+From+sad+biz?"
    inputs = {
        "matthew": "If you are the head that floats atop the §ziggurat§, then the stairs "
        "that lead to you must be infinite.".encode()
    }
    basereq = Request(
        method="POST",
        host="testhost.local",
        url="http://example.com/aaaa",
        headers=headers,
        data=data.encode(),
        input=inputs,
        position=2,
        raw="We're not oil and water, we're oil and vinegar! It's good. It's yummy.",
    )
    copied = basereq.copy()
    assert copied == basereq


def test_copy_request_is_independent():
    basereq = Request(headers={"foo": "bar"}, input={"k": b"v"})
    copied = basereq.copy()
    copied.headers["new"] = "x"
    copied.input["other"] = b"y"
    assert basereq.headers == {"foo": "bar"}
    assert basereq.input == {"k": b"v"}


def _sniper_input():
    return Request(
        method="§POST§",
        url="http://example.com/aaaa?param=§lemony§",
        headers={"foo": "§bar§", "§omg§": "bbq"},
        data="line=§yo yo, it's grease§".encode(),
    )


def test_sniper_requests_count():
    assert len(sniper_requests(_sniper_input(), "§")) == 5


def test_sniper_requests_contents():
    requests = sniper_requests(_sniper_input(), "§")
    plain_headers = {"foo": "bar", "omg": "bbq"}
    expected = [
        Request(
            method="FUZZ",
            url="http://example.com/aaaa?param=lemony",
            headers=plain_headers,
            data=b"line=yo yo, it's grease",
        ),
        Request(
            method="POST",
            url="http://example.com/aaaa?param=FUZZ",
            headers=plain_headers,
            data=b"line=yo yo, it's grease",
        ),
        Request(
            method="POST",
            url="http://example.com/aaaa?param=lemony",
            headers=plain_headers,
            data=b"line=FUZZ",
        ),
        Request(
            method="POST",
            url="http://example.com/aaaa?param=lemony",
            headers={"foo": "FUZZ", "omg": "bbq"},
            data=b"line=yo yo, it's grease",
        ),
        Request(
            method="POST",
            url="http://example.com/aaaa?param=lemony",
            headers={"foo": "bar", "FUZZ": "bbq"},
            data=b"line=yo yo, it's grease",
        ),
    ]
    for item in expected:
        assert item in requests


def test_sniper_requests_leave_base_untouched():
    basereq = _sniper_input()
    sniper_requests(basereq, "§")
    assert basereq == _sniper_input()


def test_template_locations():
    assert template_locations("§", "this is my 1§template locator§ test") == [12, 29]
    assert template_locations("§", "§template locator§") == [0, 17]
    assert len(template_locations("§", "te§st2")) == 1


def test_inject_keyword():
    text = "§Greetings, creator§"
    offsets = template_locations("§", text)
    assert inject_keyword(text, "FUZZ", offsets[0], offsets[1]) == "FUZZ"

    assert inject_keyword(text, "FUZZ", -32, 44) == text
    assert inject_keyword(text, "FUZZ", 12, 2) == text
    assert inject_keyword(text, "FUZZ", 0, 25) == text

    text = "id=§a§&sort=desc"
    offsets = template_locations("§", text)
    assert inject_keyword(text, "FUZZ", offsets[0], offsets[1]) == "id=FUZZ&sort=desc"

    text = "feature=aaa&thingie=bbb&array[§0§]=baz"
    offsets = template_locations("§", text)
    assert inject_keyword(text, "FUZZ", offsets[0], offsets[1]) == (
        "feature=aaa&thingie=bbb&array[FUZZ]=baz"
    )


def test_scrub_templates():
    req = _sniper_input()
    expected = Request(
        method="POST",
        url="http://example.com/aaaa?param=lemony",
        headers={"foo": "bar", "omg": "bbq"},
        data=b"line=yo yo, it's grease",
    )
    scrub_templates(req, "§")
    assert req == expected


def test_scrub_templates_keeps_unpaired_header():
    req = Request(headers={"kingdom": "§candy"})
    scrub_templates(req, "§")
    assert req.headers == {"kingdom": "§candy"}
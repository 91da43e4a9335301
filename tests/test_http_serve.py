import io

import pytest

from sockrelay.http_serve import (
    BAD_METHOD,
    BAD_REQUEST,
    BAD_URI_FORMAT,
    NOT_FOUND,
    NOT_FOUND2,
    choose_reply,
    http_serve,
    static_file_header,
)
from sockrelay.options import StaticFile


@pytest.fixture
def index(tmp_path):
    path = tmp_path / "index.html"
    path.write_bytes(b"<p>hello</p>")
    return StaticFile("/index.html", path, "text/html")


def test_static_file_header_format():
    assert static_file_header(5, "text/plain") == (
        b"HTTP/1.1 200 OK\r\nServer: sockrelay\r\nContent-Type: text/plain\r\n"
        b"Content-Length: 5\r\n\r\n"
    )


def test_static_file_header_without_length():
    header = static_file_header(None, "text/html")
    assert b"Content-Length" not in header
    assert header.endswith(b"Content-Type: text/html\r\n\r\n")


def test_choose_reply_serves_file(index):
    reply, handle = choose_reply("GET", "/index.html", [index])
    try:
        assert reply == static_file_header(len(b"<p>hello</p>"), "text/html")
        assert handle.read() == b"<p>hello</p>"
    finally:
        handle.close()


@pytest.mark.parametrize(
    "method, uri, expected",
    [
        ("POST", "/index.html", BAD_METHOD),
        ("GET", "*", BAD_URI_FORMAT),
        ("GET", "/other", NOT_FOUND),
    ],
)
def test_choose_reply_errors(index, method, uri, expected):
    assert choose_reply(method, uri, [index]) == (expected, None)


def test_choose_reply_missing_file(tmp_path):
    sf = StaticFile("/x", tmp_path / "missing", "text/plain")
    assert choose_reply("GET", "/x", [sf]) == (NOT_FOUND2, None)


def test_http_serve_writes_header_and_body(index):
    out = io.BytesIO()
    total = http_serve(out, ("GET", "/index.html"), [index])
    expected = static_file_header(len(b"<p>hello</p>"), "text/html") + b"<p>hello</p>"
    assert out.getvalue() == expected
    assert total == len(expected)


def test_http_serve_without_static_files():
    out = io.BytesIO()
    http_serve(out, ("GET", "/index.html"), [])
    assert out.getvalue() == BAD_REQUEST


def test_http_serve_unparsed_request(index):
    out = io.BytesIO()
    http_serve(out, None, [index])
    assert out.getvalue() == BAD_REQUEST


def test_http_serve_not_found(index):
    out = io.BytesIO()
    assert http_serve(out, ("GET", "/nope"), [index]) == len(NOT_FOUND)
    assert out.getvalue() == NOT_FOUND
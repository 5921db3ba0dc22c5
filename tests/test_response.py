from __future__ import annotations

from hostreg.protocol import Response, serialize_response


def _parse_head(raw: bytes) -> tuple[list[str], list[tuple[str, str]], bytes]:
    head, _, rest = raw.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")
    start = lines[0].split(" ", 2)
    headers = [tuple(line.split(": ", 1)) for line in lines[1:]]
    return start, headers, rest


def test_serialize_exact_bytes() -> None:
    resp = Response(
        "HTTP/1.1", 200, "OK",
        [("content-type", "text/plain"), ("content-length", "3")],
        b"abc",
    )
    assert serialize_response(resp) == (
        b"HTTP/1.1 200 OK\r\n"
        b"content-type: text/plain\r\n"
        b"content-length: 3\r\n"
        b"\r\n"
        b"abc\r\n"
    )


def test_serialize_without_headers_or_body() -> None:
    assert serialize_response(Response.not_found()) == b"HTTP/1.1 404 Not Found\r\n\r\n\r\n"


def test_head_round_trips_in_order_with_duplicates() -> None:
    headers = [("x-b", "2"), ("x-a", "1"), ("x-b", "3"), ("set-cookie", "a=b; Path=/")]
    resp = Response("HTTP/1.0", 418, "I'm a teapot", headers, b"short and stout")
    start, parsed_headers, rest = _parse_head(serialize_response(resp))
    assert start == ["HTTP/1.0", "418", "I'm a teapot"]
    assert parsed_headers == headers
    assert rest == b"short and stout\r\n"


def test_canned_responses() -> None:
    assert (Response.ok().status, Response.ok().reason) == (200, "OK")
    assert (Response.bad_request().status, Response.bad_request().reason) == (400, "Bad Request")
    assert Response.forbidden().status == 403
    assert Response.server_error().status == 500
    assert (Response.not_implemented().status, Response.not_implemented().reason) == (501, "Not Implemented")
    assert all(r.version == "HTTP/1.1" and r.content == b"" for r in (Response.ok(), Response.not_found()))

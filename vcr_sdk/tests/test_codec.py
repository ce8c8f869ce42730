"""Tests for vcr_sdk.codec module."""

import gzip
import http.client
import io

import pytest
import requests
import responses
from requests import PreparedRequest, Response
from requests.structures import CaseInsensitiveDict
from urllib3 import HTTPResponse
from urllib3._collections import HTTPHeaderDict

from vcr_sdk.codec import (
    FixtureResponse,
    decode_response,
    encode_response,
    header_items,
)
from vcr_sdk.errors import EncodingError, MalformedFixtureError


def make_response(status=200, reason="OK", headers=None, body=b""):
    response = Response()
    response.status_code = status
    response.reason = reason
    response.headers = CaseInsensitiveDict(headers or {})
    response._content = body
    return response


class FakeSocket:
    """Just enough of a socket for http.client.HTTPResponse."""

    def __init__(self, data):
        self._data = data

    def makefile(self, mode):
        return io.BytesIO(self._data)


class TestEncode:
    """Tests for response serialization."""

    def test_status_headers_body(self):
        response = make_response(
            headers={"Content-Type": "text/plain", "X-Id": "7"},
            body=b"hello",
        )

        data = encode_response(response)

        assert data == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"X-Id: 7\r\n"
            b"\r\n"
            b"hello"
        )

    def test_no_headers(self):
        response = make_response(status=204, reason="No Content")
        assert encode_response(response) == b"HTTP/1.1 204 No Content\r\n\r\n"

    def test_reason_falls_back_to_standard_phrase(self):
        response = make_response(status=404, reason=None)
        assert encode_response(response).startswith(b"HTTP/1.1 404 Not Found\r\n")

    def test_unknown_status_without_reason(self):
        response = make_response(status=599, reason=None)
        assert encode_response(response).startswith(b"HTTP/1.1 599\r\n")

    def test_binary_body_preserved(self):
        body = bytes(range(256))
        response = make_response(body=body)
        assert encode_response(response).endswith(b"\r\n\r\n" + body)

    def test_missing_status_code(self):
        response = Response()
        with pytest.raises(EncodingError):
            encode_response(response)

    def test_header_with_line_break(self):
        response = make_response(headers={"X-Bad": "a\r\nInjected: 1"})
        with pytest.raises(EncodingError):
            encode_response(response)

    @responses.activate
    def test_repeated_headers_from_transport(self):
        responses.add(
            responses.GET,
            "https://api.example.com/cookies",
            body="ok",
            headers=[("Set-Cookie", "a=1"), ("Set-Cookie", "b=2")],
        )

        response = requests.get("https://api.example.com/cookies")
        data = encode_response(response)

        assert b"Set-Cookie: a=1\r\n" in data
        assert b"Set-Cookie: b=2\r\n" in data
        assert data.index(b"a=1") < data.index(b"b=2")
        assert data.endswith(b"\r\n\r\nok")

    def test_transport_groups_repeated_fields_by_name(self):
        response = make_response(body=b"")
        response.raw = HTTPResponse(
            body=b"",
            headers=HTTPHeaderDict([("A", "1"), ("B", "2"), ("A", "3")]),
            status=200,
            preload_content=False,
        )

        data = encode_response(response)

        assert data == b"HTTP/1.1 200 OK\r\nA: 1\r\nA: 3\r\nB: 2\r\n\r\n"


class TestFraming:
    """Tests that stored framing headers describe the stored body."""

    def test_chunked_becomes_content_length(self):
        response = make_response(
            headers={"Content-Type": "text/plain", "Transfer-Encoding": "chunked"},
            body=b"hello",
        )

        data = encode_response(response)

        assert data == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 5\r\n"
            b"\r\n"
            b"hello"
        )

    def test_decoded_content_encoding_dropped(self):
        response = make_response(
            headers={"Content-Encoding": "gzip", "Content-Length": "3"},
            body=b"decompressed body",
        )

        data = encode_response(response)

        assert b"Content-Encoding" not in data
        assert b"Content-Length: 17\r\n" in data
        assert decode_response(data).content == b"decompressed body"

    def test_unknown_content_encoding_kept(self):
        response = make_response(
            headers={"Content-Encoding": "x-custom", "Content-Length": "4"},
            body=b"blob",
        )

        data = encode_response(response)

        assert b"Content-Encoding: x-custom\r\n" in data
        assert b"Content-Length: 4\r\n" in data

    def test_head_response_keeps_content_length(self):
        response = make_response(headers={"Content-Length": "42"})
        request = PreparedRequest()
        request.method = "HEAD"
        request.url = "https://api.example.com/data"
        response.request = request

        assert b"Content-Length: 42\r\n" in encode_response(response)

    @responses.activate
    def test_gzip_transport_parses_with_http_client(self):
        responses.add(
            responses.GET,
            "https://api.example.com/gz",
            body=gzip.compress(b'{"x": 1}'),
            headers={"Content-Encoding": "gzip"},
            content_type="application/json",
        )

        response = requests.get("https://api.example.com/gz")
        assert response.content == b'{"x": 1}'

        data = encode_response(response)
        parsed = http.client.HTTPResponse(FakeSocket(data))
        parsed.begin()

        assert parsed.status == 200
        assert parsed.getheader("Content-Encoding") is None
        assert parsed.read() == b'{"x": 1}'
        assert decode_response(data).json() == {"x": 1}


class TestDecode:
    """Tests for response parsing."""

    def test_basic(self):
        data = (
            b"HTTP/1.1 201 Created\r\n"
            b"Content-Type: application/json; charset=utf-8\r\n"
            b"Content-Length: 11\r\n"
            b"\r\n"
            b'{"id": 123}'
        )

        response = decode_response(data)

        assert isinstance(response, FixtureResponse)
        assert response.status_code == 201
        assert response.reason == "Created"
        assert response.headers["content-type"] == "application/json; charset=utf-8"
        assert response.encoding == "utf-8"
        assert response.json() == {"id": 123}
        assert response.ok

    def test_repeated_headers(self):
        data = (
            b"HTTP/1.1 200 OK\r\n"
            b"Set-Cookie: a=1\r\n"
            b"Vary: Accept\r\n"
            b"Set-Cookie: b=2\r\n"
            b"\r\n"
        )

        response = decode_response(data)

        assert response.header_items == [
            ("Set-Cookie", "a=1"),
            ("Vary", "Accept"),
            ("Set-Cookie", "b=2"),
        ]
        assert response.headers["Set-Cookie"] == "a=1, b=2"
        assert response.raw.headers.getlist("Set-Cookie") == ["a=1", "b=2"]

    def test_body_containing_blank_line(self):
        data = b"HTTP/1.1 200 OK\r\n\r\nfirst\r\n\r\nsecond"
        assert decode_response(data).content == b"first\r\n\r\nsecond"

    def test_status_without_reason(self):
        response = decode_response(b"HTTP/1.0 200\r\n\r\n")

        assert response.status_code == 200
        assert response.reason == ""
        assert response.raw.version == 10

    def test_request_attached(self):
        request = PreparedRequest()
        request.method = "GET"
        request.url = "https://api.example.com/data"

        response = decode_response(b"HTTP/1.1 200 OK\r\n\r\n", request=request)

        assert response.request is request
        assert response.url == "https://api.example.com/data"

    def test_error_status_raises_for_status(self):
        response = decode_response(b"HTTP/1.1 500 Internal Server Error\r\n\r\n")

        with pytest.raises(requests.HTTPError):
            response.raise_for_status()


class TestMalformed:
    """Tests for rejecting bytes that are not a response dump."""

    @pytest.mark.parametrize(
        "data",
        [
            b"",
            b"HTTP/1.1 200 OK\r\nContent-Type: text/plain\r\n",
            b"HTTP/1.1 200 OK",
            b"HTTP/1.1 2000 OK\r\n\r\n",
            b"HTTX/1.1 200 OK\r\n\r\n",
            b"garbage\r\n\r\n",
            b"HTTP/1.1 200 OK\r\nno colon here\r\n\r\n",
            b"HTTP/1.1 200 OK\r\n: empty name\r\n\r\n",
        ],
    )
    def test_rejected(self, data):
        with pytest.raises(MalformedFixtureError):
            decode_response(data)

    def test_truncated_body(self):
        data = b"HTTP/1.1 200 OK\r\nContent-Length: 10\r\n\r\nhello"

        with pytest.raises(MalformedFixtureError) as exc_info:
            decode_response(data)

        assert "Content-Length" in str(exc_info.value)

    def test_bad_content_length(self):
        with pytest.raises(MalformedFixtureError):
            decode_response(b"HTTP/1.1 200 OK\r\nContent-Length: ten\r\n\r\n")

    def test_body_longer_than_content_length(self):
        data = b"HTTP/1.1 200 OK\r\nContent-Length: 2\r\n\r\nhello"

        with pytest.raises(MalformedFixtureError) as exc_info:
            decode_response(data)

        assert "declares 2" in str(exc_info.value)

    def test_content_encoding_does_not_skip_length_check(self):
        data = (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Encoding: gzip\r\n"
            b"Content-Length: 3\r\n"
            b"\r\n"
            b"decompressed body"
        )

        with pytest.raises(MalformedFixtureError):
            decode_response(data)

    def test_head_response_without_body(self):
        request = PreparedRequest()
        request.method = "HEAD"
        request.url = "https://api.example.com/data"
        data = b"HTTP/1.1 200 OK\r\nContent-Length: 42\r\n\r\n"

        assert decode_response(data, request=request).content == b""

    def test_not_modified_without_body(self):
        data = b"HTTP/1.1 304 Not Modified\r\nContent-Length: 42\r\n\r\n"
        assert decode_response(data).status_code == 304


class TestRoundTrip:
    """Tests that decode(encode(r)) reproduces r."""

    def test_response_round_trip(self):
        original = make_response(
            status=202,
            reason="Accepted",
            headers={"Content-Type": "text/html", "Content-Length": "6"},
            body=b"<p>ok!",
        )

        restored = decode_response(encode_response(original))

        assert restored.status_code == original.status_code
        assert restored.reason == original.reason
        assert header_items(restored) == header_items(original)
        assert restored.content == original.content

    def test_bytes_round_trip(self):
        data = (
            b"HTTP/1.1 200 OK\r\n"
            b"Set-Cookie: a=1\r\n"
            b"Content-Type: text/plain\r\n"
            b"Set-Cookie: b=2\r\n"
            b"\r\n"
            b"\x00\xffbody"
        )
        assert encode_response(decode_response(data)) == data

    def test_header_whitespace_normalized(self):
        data = b"HTTP/1.1 200 OK\r\nX-Name:value  \r\n\r\n"

        response = decode_response(data)

        assert response.headers["X-Name"] == "value"
        assert encode_response(response) == b"HTTP/1.1 200 OK\r\nX-Name: value\r\n\r\n"

    @responses.activate
    def test_transport_response_round_trip(self):
        responses.add(
            responses.GET,
            "https://api.example.com/data",
            json={"result": "real"},
            status=200,
            headers=[("X-Trace", "1"), ("X-Trace", "2")],
        )

        original = requests.get("https://api.example.com/data")
        restored = decode_response(encode_response(original))

        assert restored.status_code == 200
        assert restored.json() == {"result": "real"}
        assert header_items(restored) == header_items(original)
        assert restored.raw.headers.getlist("X-Trace") == ["1", "2"]

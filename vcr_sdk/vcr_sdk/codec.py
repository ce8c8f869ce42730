"""
Fixture codec: byte-exact HTTP response dumps.

A fixture file is the response as it would appear on the wire:

    HTTP/1.1 200 OK\\r\\n
    Content-Type: application/json\\r\\n
    Set-Cookie: a=1\\r\\n
    Set-Cookie: b=2\\r\\n
    \\r\\n
    <body bytes>

Header fields keep their repetition and, for fixtures read back from disk,
their exact order; live responses come through urllib3, which groups
repeated fields by name. The body is the content requests handed to the
caller, i.e. after any transfer or content decoding, so replay returns
exactly what the recorded call returned. The framing headers are rewritten
to match: Transfer-Encoding and decoded Content-Encoding are dropped and
Content-Length states the stored length, so any HTTP/1.1 reader can parse
the file.
"""

import io
import re
from http import HTTPStatus
from typing import List, Optional, Tuple

from requests import PreparedRequest, Response
from requests.exceptions import RequestException
from requests.structures import CaseInsensitiveDict
from requests.utils import get_encoding_from_headers
from urllib3 import HTTPResponse
from urllib3._collections import HTTPHeaderDict
from urllib3.exceptions import HTTPError

from vcr_sdk.errors import EncodingError, MalformedFixtureError


CRLF = b"\r\n"
HEADER_TERMINATOR = CRLF + CRLF

_STATUS_LINE = re.compile(r"^HTTP/(\d)\.(\d) (\d{3})(?: (.*))?$")

_VERSION_STRINGS = {
    10: "HTTP/1.0",
    11: "HTTP/1.1",
}

# Responses that never carry a body, whatever Content-Length says.
_BODYLESS_STATUSES = {204, 304}

# Content codings urllib3 removes before requests sees the body.
_DECODED_CODINGS = {"gzip", "x-gzip", "deflate", "br", "zstd", "identity"}


class FixtureResponse(Response):
    """
    A requests Response rebuilt from a fixture file.

    header_items holds the header fields exactly as stored, so encoding the
    response again yields the same bytes.
    """

    def __init__(self) -> None:
        super().__init__()
        self.header_items: List[Tuple[str, str]] = []


# =========================================================================
# Encoding
# =========================================================================

def encode_response(response: Response) -> bytes:
    """
    Serialize a response to its fixture representation.

    Args:
        response: Response to dump; its body is read if not read yet

    Returns:
        Status line, headers and body as bytes

    Raises:
        EncodingError: If the response has no status code, its body cannot
            be read, or a header cannot be written on a single line
    """
    if not isinstance(response.status_code, int):
        raise EncodingError(f"response has no status code: {response.status_code!r}")

    try:
        body = response.content
    except (RequestException, RuntimeError) as e:
        raise EncodingError(f"could not read response body: {e}") from e
    if body is None:
        body = b""

    buf = io.BytesIO()
    buf.write(_latin1(_status_line(response)))
    buf.write(CRLF)
    for name, value in _framed_headers(response, header_items(response), body):
        line = f"{name}: {value}"
        if "\r" in line or "\n" in line:
            raise EncodingError(f"header {name!r} contains a line break")
        buf.write(_latin1(line))
        buf.write(CRLF)
    buf.write(CRLF)
    buf.write(body)
    return buf.getvalue()


def header_items(response: Response) -> List[Tuple[str, str]]:
    """
    Return the response's header fields in wire order, repeats included.

    requests folds repeated fields into one comma-joined value, so the
    urllib3 header container is preferred when it is available.
    """
    items = getattr(response, "header_items", None)
    if items is not None:
        return list(items)

    raw_headers = getattr(response.raw, "headers", None)
    if isinstance(raw_headers, HTTPHeaderDict):
        return list(raw_headers.iteritems())

    return list(response.headers.items())


def _framed_headers(
    response: Response,
    fields: List[Tuple[str, str]],
    body: bytes,
) -> List[Tuple[str, str]]:
    """
    Rewrite the message framing to describe the stored body.

    The stored body has already been de-chunked and decompressed, so
    Transfer-Encoding and any content coding urllib3 decodes are dropped,
    and Content-Length is set to the stored length. Fields that do not
    describe framing are left in place.
    """
    framed = []
    length_seen = False
    reframed = False

    for name, value in fields:
        key = name.lower()
        if key == "transfer-encoding":
            reframed = True
            continue
        if key == "content-encoding" and _is_decoded_coding(value):
            reframed = True
            continue
        if key == "content-length":
            if length_seen:
                continue
            length_seen = True
            if _carries_body(response):
                value = str(len(body))
        framed.append((name, value))

    if reframed and not length_seen and _carries_body(response):
        framed.append(("Content-Length", str(len(body))))
    return framed


def _is_decoded_coding(value: str) -> bool:
    codings = [c.strip().lower() for c in value.split(",") if c.strip()]
    return all(c in _DECODED_CODINGS for c in codings)


def _carries_body(response: Response) -> bool:
    """False for responses whose Content-Length does not describe a body."""
    if response.status_code < 200 or response.status_code in _BODYLESS_STATUSES:
        return False
    request = response.request
    return request is None or (request.method or "").upper() != "HEAD"


def _status_line(response: Response) -> str:
    version = _VERSION_STRINGS.get(getattr(response.raw, "version", None), "HTTP/1.1")

    reason = response.reason
    if isinstance(reason, bytes):
        reason = reason.decode("latin-1")
    if reason is None:
        try:
            reason = HTTPStatus(response.status_code).phrase
        except ValueError:
            reason = ""

    line = f"{version} {response.status_code:03d}"
    if reason:
        line += f" {reason}"
    return line


def _latin1(text: str) -> bytes:
    try:
        return text.encode("latin-1")
    except UnicodeEncodeError as e:
        raise EncodingError(f"cannot encode {text!r} as latin-1") from e


# =========================================================================
# Decoding
# =========================================================================

def decode_response(
    data: bytes,
    request: Optional[PreparedRequest] = None,
) -> FixtureResponse:
    """
    Rebuild a response from its fixture representation.

    Args:
        data: Bytes produced by encode_response
        request: Request the response answers; sets response.url and
            response.request when given

    Returns:
        FixtureResponse with status, reason, headers and body restored

    Raises:
        MalformedFixtureError: If data is not a valid response dump
    """
    if not data:
        raise MalformedFixtureError("fixture is empty")

    head, sep, body = data.partition(HEADER_TERMINATOR)
    if not sep:
        raise MalformedFixtureError("header block is not terminated by a blank line")

    lines = head.decode("latin-1").split("\r\n")
    match = _STATUS_LINE.match(lines[0])
    if match is None:
        raise MalformedFixtureError(f"bad status line: {lines[0][:80]!r}")

    major, minor, status, reason = match.groups()
    status_code = int(status)

    fields = []
    for line in lines[1:]:
        name, colon, value = line.partition(":")
        if not colon or not name.strip():
            raise MalformedFixtureError(f"bad header line: {line[:80]!r}")
        fields.append((name, value.strip(" \t")))

    raw_headers = HTTPHeaderDict(fields)
    _check_body_length(raw_headers, body, status_code, request)

    response = FixtureResponse()
    response.status_code = status_code
    response.reason = reason or ""
    response.header_items = fields
    response.headers = CaseInsensitiveDict(raw_headers)
    response.encoding = get_encoding_from_headers(response.headers)
    try:
        response.raw = HTTPResponse(
            body=io.BytesIO(body),
            headers=raw_headers,
            status=status_code,
            reason=reason,
            version=int(major) * 10 + int(minor),
            preload_content=False,
            decode_content=False,
        )
    except HTTPError as e:
        raise MalformedFixtureError(f"invalid headers: {e}") from e
    response._content = body
    response._content_consumed = True

    if request is not None:
        response.request = request
        response.url = request.url

    return response


def _check_body_length(
    headers: HTTPHeaderDict,
    body: bytes,
    status_code: int,
    request: Optional[PreparedRequest],
) -> None:
    """Detect fixtures truncated mid-write or carrying trailing bytes.

    Skipped for responses that never carry a body.
    """
    declared = headers.getlist("Content-Length")
    if not declared:
        return
    if status_code < 200 or status_code in _BODYLESS_STATUSES:
        return
    if request is not None and (request.method or "").upper() == "HEAD":
        return

    try:
        expected = int(declared[0])
    except ValueError:
        raise MalformedFixtureError(f"bad Content-Length: {declared[0]!r}")

    if len(body) != expected:
        raise MalformedFixtureError(
            f"body is {len(body)} bytes but Content-Length declares {expected}"
        )

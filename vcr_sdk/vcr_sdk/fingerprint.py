"""
Request fingerprinting for fixture file names.

Each operation kind hashes its own canonical bytes:

- do:       the full wire dump of the prepared request (method, target,
            headers, body)
- get:      the raw URL, exactly as given
- postform: the URL followed by the sorted, url-encoded form data

No normalization is applied beyond form-field sorting: two URLs that differ
only in query order are different requests.
"""

import hashlib
from collections.abc import Iterable, Mapping
from typing import Any, List, Tuple, Union
from urllib.parse import urlencode, urlsplit

from requests import PreparedRequest

from vcr_sdk.errors import EncodingError


FormData = Union[Mapping, Iterable]


def digest(data: bytes) -> str:
    """Lowercase hex SHA-256 of data."""
    return hashlib.sha256(data).hexdigest()


def fingerprint_do(request: PreparedRequest) -> str:
    """
    Fingerprint a fully prepared request.

    The request body is materialized as a side effect (see dump_request),
    so the request can still be sent afterwards.
    """
    return digest(dump_request(request))


def fingerprint_get(url: str) -> str:
    """Fingerprint a GET by its URL alone."""
    if not isinstance(url, str):
        raise EncodingError(f"url must be a string, got {type(url).__name__}")
    return digest(url.encode("utf-8"))


def fingerprint_post_form(url: str, data: FormData) -> str:
    """
    Fingerprint a form POST by URL and form data.

    Field insertion order does not affect the result.
    """
    return fingerprint_post_form_encoded(url, encode_form(data))


def fingerprint_post_form_encoded(url: str, body: str) -> str:
    """Fingerprint a form POST whose data is already encoded by encode_form."""
    if not isinstance(url, str):
        raise EncodingError(f"url must be a string, got {type(url).__name__}")
    return digest(url.encode("utf-8") + body.encode("utf-8"))


# =========================================================================
# Form encoding
# =========================================================================

def encode_form(data: FormData) -> str:
    """
    Encode form data as key=value&key=value, sorted by key then value.

    Args:
        data: Mapping of field name to value (or list of values), or a
            sequence of (name, value) pairs

    Returns:
        application/x-www-form-urlencoded string

    Raises:
        EncodingError: If data is not a mapping or a sequence of pairs
    """
    return urlencode(sorted(_form_pairs(data)))


def _form_pairs(data: Any) -> List[Tuple[str, str]]:
    if data is None:
        return []

    if isinstance(data, Mapping):
        items = data.items()
    elif isinstance(data, Iterable) and not isinstance(data, (str, bytes)):
        items = data
    else:
        raise EncodingError(f"unsupported form data: {type(data).__name__}")

    pairs = []
    try:
        for key, value in items:
            values = value if isinstance(value, (list, tuple)) else [value]
            for item in values:
                pairs.append((_text(key), _text(item)))
    except (TypeError, ValueError) as e:
        raise EncodingError(f"form data must be name/value pairs: {e}") from e
    return pairs


def _text(value: Any) -> str:
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError(f"form value is not valid UTF-8: {value!r}") from e
    if isinstance(value, str):
        return value
    return str(value)


# =========================================================================
# Request dump
# =========================================================================

def dump_request(request: PreparedRequest) -> bytes:
    """
    Dump a prepared request in HTTP/1.1 wire format.

    A streamed body (file-like object or iterable of chunks) is read in
    full and put back on the request as bytes, with Content-Length set and
    Transfer-Encoding dropped, so the request stays sendable.

    Raises:
        EncodingError: If the request is incomplete or its body cannot be read
    """
    if not isinstance(request, PreparedRequest):
        raise EncodingError(
            f"expected a prepared request, got {type(request).__name__}"
        )
    if not request.method or not request.url:
        raise EncodingError("request has no method or url")

    parts = urlsplit(request.url)
    if not parts.scheme or not parts.netloc:
        raise EncodingError(f"request url is not absolute: {request.url!r}")

    body = materialize_body(request)

    target = parts.path or "/"
    if parts.query:
        target += "?" + parts.query

    lines = [f"{request.method} {target} HTTP/1.1"]
    if "Host" not in request.headers:
        lines.append(f"Host: {parts.netloc.rpartition('@')[2]}")
    for name, value in request.headers.items():
        if isinstance(value, bytes):
            value = value.decode("latin-1")
        lines.append(f"{name}: {value}")

    head = "\r\n".join(lines) + "\r\n\r\n"
    return head.encode("utf-8") + body


def materialize_body(request: PreparedRequest) -> bytes:
    """
    Return the request body as bytes, consuming a streamed body if needed.

    Streamed bodies are replaced on the request by the bytes read.
    """
    body = request.body
    if body is None:
        return b""
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")

    try:
        if hasattr(body, "read"):
            data = body.read()
        elif isinstance(body, Iterable):
            data = b"".join(
                chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk)
                for chunk in body
            )
        else:
            raise EncodingError(f"unsupported request body: {type(body).__name__}")
    except (OSError, TypeError, ValueError) as e:
        raise EncodingError(f"could not read request body: {e}") from e

    if isinstance(data, str):
        data = data.encode("utf-8")

    request.body = data
    request.headers.pop("Transfer-Encoding", None)
    request.prepare_content_length(data)
    return data

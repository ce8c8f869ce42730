"""
vcr_sdk - record and replay HTTP responses for deterministic tests

This package provides an HTTP client that can:
- Replay previously recorded responses without touching the network
- Record live responses to fixture files for later replay
- Pass requests through to the network unchanged
"""

from vcr_sdk.client import VCR
from vcr_sdk.codec import FixtureResponse, decode_response, encode_response
from vcr_sdk.config import VCRConfig, load_config
from vcr_sdk.context import VCRMode, VCRSession
from vcr_sdk.errors import (
    EncodingError,
    FixtureNotFoundError,
    InvalidModeError,
    MalformedFixtureError,
    StorageError,
    TransportError,
    VCRError,
)
from vcr_sdk.fingerprint import (
    dump_request,
    encode_form,
    fingerprint_do,
    fingerprint_get,
    fingerprint_post_form,
    fingerprint_post_form_encoded,
)
from vcr_sdk.store import FixtureId, FixtureStore, fixture_path

__version__ = "0.1.0"

__all__ = [
    # Client
    "VCR",
    # Context
    "VCRMode",
    "VCRSession",
    # Config
    "VCRConfig",
    "load_config",
    # Codec
    "FixtureResponse",
    "encode_response",
    "decode_response",
    # Fingerprint
    "fingerprint_do",
    "fingerprint_get",
    "fingerprint_post_form",
    "fingerprint_post_form_encoded",
    "dump_request",
    "encode_form",
    # Store
    "FixtureId",
    "FixtureStore",
    "fixture_path",
    # Errors
    "VCRError",
    "InvalidModeError",
    "FixtureNotFoundError",
    "MalformedFixtureError",
    "StorageError",
    "EncodingError",
    "TransportError",
]

"""
Error taxonomy for the VCR client.

Transport failures are not wrapped: whatever requests raises reaches the
caller unchanged. TransportError is exported as an alias so callers can
catch it without importing requests directly.
"""

from pathlib import Path
from typing import Any, Optional

from requests.exceptions import RequestException


TransportError = RequestException


class VCRError(Exception):
    """Base class for all errors raised by vcr_sdk."""


class InvalidModeError(VCRError, ValueError):
    """Raised when a mode value is not one of replay, record or live."""

    def __init__(self, mode: Any):
        self.mode = mode
        super().__init__(
            f"invalid mode {mode!r} (expected one of: replay, record, live)"
        )


class FixtureNotFoundError(VCRError):
    """Raised in replay mode when no fixture file exists for a call.

    Attributes:
        path: Where the fixture was expected.
        fixture_id: The FixtureId that resolved to path, if known.
    """

    def __init__(self, path: Path, fixture_id: Any = None):
        self.path = path
        self.fixture_id = fixture_id
        super().__init__(f"No recorded fixture at {path}")


class MalformedFixtureError(VCRError):
    """Raised when stored bytes do not parse as an HTTP response."""

    def __init__(self, reason: str, path: Optional[Path] = None):
        self.reason = reason
        self.path = path
        msg = f"Malformed fixture: {reason}"
        if path is not None:
            msg += f"\n  File: {path}"
        super().__init__(msg)


class StorageError(VCRError):
    """Raised when reading or writing a fixture file fails for a reason
    other than the file being absent (permissions, disk full, ...)."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(message)


class EncodingError(VCRError):
    """Raised when a request cannot be dumped or hashed, or a response
    cannot be serialized."""

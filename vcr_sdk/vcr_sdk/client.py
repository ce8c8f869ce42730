"""
VCR client: record and replay HTTP responses.

Three operating modes:
- Replay: return the recorded response from the fixture directory, never
  touching the network
- Record: call the real endpoint, save the response, return it unchanged
- Live: call the real endpoint without saving anything

Every call, whatever its mode or outcome, advances the session sequence
number by one. The sequence number is part of the fixture file name, so
the same request issued twice in a run maps to two distinct fixtures.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Union

import requests
from requests import PreparedRequest, Response

from vcr_sdk.config import VCRConfig, load_config
from vcr_sdk.context import VCRMode, VCRSession
from vcr_sdk.errors import EncodingError, InvalidModeError
from vcr_sdk.fingerprint import (
    FormData,
    encode_form,
    fingerprint_do,
    fingerprint_get,
    fingerprint_post_form_encoded,
)
from vcr_sdk.store import KIND_DO, KIND_GET, KIND_POST_FORM, FixtureId, FixtureStore

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class VCR:
    """
    HTTP client that can record and play back responses to requests.

    Starts in replay mode. The transport is a requests.Session; pass your
    own to configure timeouts, adapters or authentication.

    Example:
        vcr = VCR("tests/fixtures").record()
        resp = vcr.get("https://api.example.com/data")

        vcr.play()
        resp = vcr.get("https://api.example.com/data")  # read from disk
    """

    def __init__(
        self,
        directory: Union[str, Path],
        mode: Union[VCRMode, str] = VCRMode.REPLAY,
        session: Optional[requests.Session] = None,
        debug: bool = False,
    ):
        self._mode = VCRMode.coerce(mode)
        self._session = VCRSession(Path(directory))
        self._owns_http = session is None
        self.http = session if session is not None else requests.Session()
        self.debug = debug

    @classmethod
    def from_config(
        cls,
        config: Optional[VCRConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> "VCR":
        """Build a client from a VCRConfig (loaded from vcr.yaml/env if omitted)."""
        if config is None:
            config = load_config()
        return cls(
            config.directory,
            mode=config.mode,
            session=session,
            debug=config.debug,
        )

    def __repr__(self) -> str:
        return (
            f"VCR(directory={str(self.directory)!r}, mode={self._mode.value!r}, "
            f"seqno={self.seqno})"
        )

    # =========================================================================
    # State
    # =========================================================================

    @property
    def mode(self) -> VCRMode:
        return self._mode

    @property
    def directory(self) -> Path:
        return self._session.directory

    @property
    def seqno(self) -> int:
        """Number of calls made since the last replay switch or directory change."""
        return self._session.seqno

    def play(self) -> "VCR":
        """Switch to replay mode and restart the sequence."""
        self._mode = VCRMode.REPLAY
        self._session.reset()
        return self

    def record(self) -> "VCR":
        """Switch to record mode."""
        self._mode = VCRMode.RECORD
        return self

    def live(self) -> "VCR":
        """Switch to live mode."""
        self._mode = VCRMode.LIVE
        return self

    def set_mode(self, mode: Union[VCRMode, str]) -> "VCR":
        """Switch to the given mode, with the same effects as play/record/live."""
        switches = {
            VCRMode.REPLAY: self.play,
            VCRMode.RECORD: self.record,
            VCRMode.LIVE: self.live,
        }
        return switches[VCRMode.coerce(mode)]()

    def set_dir(self, directory: Union[str, Path]) -> None:
        """Change the fixture directory and restart the sequence."""
        self._session.set_directory(directory)

    # =========================================================================
    # Operations
    # =========================================================================

    def do(self, request: Union[PreparedRequest, requests.Request]) -> Response:
        """
        Send a request.

        Args:
            request: A PreparedRequest, or a Request which is prepared with
                the client's session first

        Raises:
            FixtureNotFoundError: Replay mode, nothing recorded for this call
            MalformedFixtureError: Replay mode, the fixture does not parse
            StorageError: The fixture could not be read or written
            EncodingError: The request could not be dumped
            requests.RequestException: The live call failed
        """
        try:
            if isinstance(request, requests.Request):
                request = self.http.prepare_request(request)
            fixture_id = FixtureId(KIND_DO, fingerprint_do(request), self.seqno)
            return self._dispatch(fixture_id, request, lambda: self.http.send(request))
        finally:
            self._session.advance()

    def get(self, url: str) -> Response:
        """Issue a GET request to url. Raises as do()."""
        try:
            fixture_id = FixtureId(KIND_GET, fingerprint_get(url), self.seqno)
            return self._dispatch(
                fixture_id,
                _describe_request("GET", url),
                lambda: self.http.get(url),
            )
        finally:
            self._session.advance()

    def post_form(self, url: str, data: FormData) -> Response:
        """
        POST url-encoded form data to url. Raises as do().

        Fields are sent sorted by name, the same encoding that is hashed.
        """
        try:
            body = encode_form(data)
            fixture_id = FixtureId(
                KIND_POST_FORM, fingerprint_post_form_encoded(url, body), self.seqno
            )
            return self._dispatch(
                fixture_id,
                _describe_request("POST", url),
                lambda: self.http.post(
                    url, data=body, headers={"Content-Type": FORM_CONTENT_TYPE}
                ),
            )
        finally:
            self._session.advance()

    # =========================================================================
    # Dispatch
    # =========================================================================

    def _dispatch(
        self,
        fixture_id: FixtureId,
        request: PreparedRequest,
        send: Callable[[], Response],
    ) -> Response:
        mode = self._mode
        logger.debug("%s %s", getattr(mode, "value", mode), fixture_id.filename)

        if mode is VCRMode.REPLAY:
            store = FixtureStore(self.directory, debug=self.debug)
            return store.load_response(fixture_id, request=request)

        if mode is VCRMode.RECORD:
            # A transport error propagates before anything is written.
            response = send()
            store = FixtureStore(self.directory, debug=self.debug)
            store.save_response(fixture_id, response)
            return response

        if mode is VCRMode.LIVE:
            return send()

        raise InvalidModeError(mode)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Close the transport session if the client created it."""
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> "VCR":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def _describe_request(method: str, url: str) -> PreparedRequest:
    """Build the request attached to replayed get/post_form responses."""
    if not isinstance(url, str):
        raise EncodingError(f"url must be a string, got {type(url).__name__}")
    request = PreparedRequest()
    request.method = method
    request.url = url
    return request

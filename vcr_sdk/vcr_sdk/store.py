"""
Fixture store for reading and writing recorded responses.

Directory structure (flat):
    directory/
        do_<sha256>_<seqno>.vcr
        get_<sha256>_<seqno>.vcr
        postform_<sha256>_<seqno>.vcr

The store never creates or cleans up the directory itself.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from requests import PreparedRequest, Response

from vcr_sdk.codec import FixtureResponse, decode_response, encode_response
from vcr_sdk.errors import FixtureNotFoundError, MalformedFixtureError, StorageError

logger = logging.getLogger(__name__)

FIXTURE_SUFFIX = ".vcr"

KIND_DO = "do"
KIND_GET = "get"
KIND_POST_FORM = "postform"
KINDS = (KIND_DO, KIND_GET, KIND_POST_FORM)

_FILENAME = re.compile(rf"^({'|'.join(KINDS)})_([0-9a-f]+)_(\d+)\.vcr$")


@dataclass(frozen=True)
class FixtureId:
    """Identity of one recorded call: operation kind, content hash, sequence number."""

    kind: str
    digest: str
    seqno: int

    @property
    def filename(self) -> str:
        return f"{self.kind}_{self.digest}_{self.seqno}{FIXTURE_SUFFIX}"

    @classmethod
    def from_filename(cls, name: str) -> "FixtureId":
        """Parse a fixture file name back into its parts.

        Raises:
            ValueError: If name does not follow the fixture naming layout
        """
        match = _FILENAME.match(name)
        if match is None:
            raise ValueError(f"not a fixture file name: {name!r}")
        kind, digest, seqno = match.groups()
        return cls(kind=kind, digest=digest, seqno=int(seqno))


def fixture_path(
    directory: Union[str, Path],
    kind: str,
    digest: str,
    seqno: int,
) -> Path:
    """Compose the path of a fixture file. Performs no I/O."""
    return Path(directory) / FixtureId(kind, digest, seqno).filename


class FixtureStore:
    """
    Filesystem access to the fixtures of one directory.

    Args:
        directory: Directory holding fixture files (must already exist
            for writes)
        debug: When True, overwriting an existing fixture logs a warning
            with the old and new contents
    """

    def __init__(self, directory: Union[str, Path], debug: bool = False):
        self.directory = Path(directory)
        self.debug = debug

    def path_for(self, fixture_id: FixtureId) -> Path:
        return fixture_path(
            self.directory, fixture_id.kind, fixture_id.digest, fixture_id.seqno
        )

    def exists(self, fixture_id: FixtureId) -> bool:
        return self.path_for(fixture_id).exists()

    # =========================================================================
    # Raw bytes
    # =========================================================================

    def read(self, fixture_id: FixtureId) -> bytes:
        """
        Read a fixture file.

        Raises:
            FixtureNotFoundError: If the file does not exist
            StorageError: If the file exists but cannot be read
        """
        path = self.path_for(fixture_id)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise FixtureNotFoundError(path, fixture_id) from None
        except OSError as e:
            raise StorageError(f"Failed to read fixture {path}: {e}", path) from e

    def write(self, fixture_id: FixtureId, data: bytes) -> Path:
        """
        Write a fixture file, replacing any previous content.

        Returns:
            Path to the written file

        Raises:
            StorageError: If the file cannot be written
        """
        path = self.path_for(fixture_id)

        if self.debug:
            self._report_overwrite(path, data)

        try:
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to write fixture {path}: {e}", path) from e

        logger.debug("Wrote fixture %s (%d bytes)", path.name, len(data))
        return path

    def _report_overwrite(self, path: Path, data: bytes) -> None:
        if not path.exists():
            return
        try:
            existing = path.read_bytes()
        except OSError as e:
            logger.warning(
                "Fixture %s exists and will be overwritten; existing content "
                "is unreadable: %s",
                path,
                e,
            )
            return

        logger.warning("Fixture %s exists and will be overwritten", path)
        logger.warning(
            "Existing content:\n%s", existing.decode("utf-8", errors="replace")
        )
        logger.warning("New content:\n%s", data.decode("utf-8", errors="replace"))

    # =========================================================================
    # Responses
    # =========================================================================

    def load_response(
        self,
        fixture_id: FixtureId,
        request: Optional[PreparedRequest] = None,
    ) -> FixtureResponse:
        """
        Load and decode a recorded response.

        Raises:
            FixtureNotFoundError: If no fixture was recorded
            MalformedFixtureError: If the file does not parse as a response
            StorageError: If the file cannot be read
        """
        data = self.read(fixture_id)
        try:
            return decode_response(data, request=request)
        except MalformedFixtureError as e:
            raise MalformedFixtureError(e.reason, self.path_for(fixture_id)) from e

    def save_response(self, fixture_id: FixtureId, response: Response) -> Path:
        """Encode and write a response. Returns the fixture path."""
        return self.write(fixture_id, encode_response(response))

    # =========================================================================
    # Listing
    # =========================================================================

    def list_fixtures(self) -> List[FixtureId]:
        """List the fixtures in the directory, sorted by file name."""
        if not self.directory.is_dir():
            return []

        fixtures = []
        for path in sorted(self.directory.glob(f"*{FIXTURE_SUFFIX}")):
            try:
                fixtures.append(FixtureId.from_filename(path.name))
            except ValueError:
                logger.debug("Skipping non-fixture file %s", path.name)
        return fixtures

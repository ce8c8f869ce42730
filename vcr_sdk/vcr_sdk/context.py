"""
VCR operating mode and per-client session state.

Session state is owned by a single VCR instance. There is no process-wide
context, so several recorders can run side by side without interfering.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Union

from vcr_sdk.errors import InvalidModeError


class VCRMode(Enum):
    """VCR operating modes."""
    REPLAY = "replay"
    RECORD = "record"
    LIVE = "live"

    @classmethod
    def coerce(cls, value: Any) -> "VCRMode":
        """
        Convert a mode or its string value into a VCRMode.

        Raises:
            InvalidModeError: If value does not name a known mode
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidModeError(value)


@dataclass
class VCRSession:
    """
    Storage directory plus the call sequence counter.

    Attributes:
        directory: Directory holding fixture files (assumed to exist)
        seqno: Number of calls completed since the last reset; used only to
            disambiguate identical requests issued more than once in a run
    """
    directory: Path
    seqno: int = 0

    def __post_init__(self) -> None:
        self.directory = Path(self.directory)

    def advance(self) -> int:
        """Increment the counter and return the new value."""
        self.seqno += 1
        return self.seqno

    def reset(self) -> None:
        self.seqno = 0

    def set_directory(self, directory: Union[str, Path]) -> None:
        """Point the session at another directory and restart the sequence."""
        self.directory = Path(directory)
        self.reset()

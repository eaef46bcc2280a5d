"""
Data models for session log records.

Records are derived from the append-only session logs on every scan and are
never persisted or modified.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class UsageRecord:
    """One assistant message found in a session log.

    model_key combines provider and model family as `provider/family`.
    date is the local calendar day of the message, `YYYY-MM-DD`.
    """
    model_key: str
    cost: float
    tokens: int
    date: str

    def __post_init__(self):
        """Validate usage values are non-negative."""
        if self.cost < 0:
            raise ValueError("cost cannot be negative")
        if self.tokens < 0:
            raise ValueError("tokens cannot be negative")


@dataclass(frozen=True)
class LogFile:
    """A parsed session log; records are in file (chronological) order."""
    path: str
    records: Tuple[UsageRecord, ...]


class ScanPhase(Enum):
    """Stages of the collection pipeline, in order."""
    SCAN = "scan"
    PARSE = "parse"
    FINALIZE = "finalize"


@dataclass(frozen=True)
class ScanProgress:
    """Directory walk is under way."""
    found_files: int
    phase = ScanPhase.SCAN


@dataclass(frozen=True)
class ParseProgress:
    """Candidate files are being parsed."""
    parsed_files: int
    total_files: int
    current_file: Optional[str] = None
    phase = ScanPhase.PARSE


@dataclass(frozen=True)
class FinalizeProgress:
    """All files parsed; results are being handed back."""
    phase = ScanPhase.FINALIZE


ProgressEvent = Union[ScanProgress, ParseProgress, FinalizeProgress]


@dataclass
class ProgressState:
    """Latest known progress, folded from progress events for display."""
    phase: ScanPhase = ScanPhase.SCAN
    found_files: int = 0
    parsed_files: int = 0
    total_files: int = 0
    current_file: Optional[str] = None

    def apply(self, event: ProgressEvent) -> None:
        self.phase = event.phase
        if isinstance(event, ScanProgress):
            self.found_files = event.found_files
        elif isinstance(event, ParseProgress):
            self.parsed_files = event.parsed_files
            self.total_files = event.total_files
            self.found_files = max(self.found_files, event.total_files)
            self.current_file = event.current_file
        elif isinstance(event, FinalizeProgress):
            self.current_file = None
        else:
            raise TypeError(f"Unknown progress event: {event!r}")


class ScanCancelled(Exception):
    """Raised when collection stops because cancellation was requested."""

"""Data models for the pipe client."""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ReadStatus(Enum):
    """Outcome kind of a non-blocking read attempt."""

    DATA = "data"
    WOULD_BLOCK = "would_block"
    END_OF_INPUT = "end_of_input"
    ERROR = "error"


@dataclass(frozen=True)
class ReadOutcome:
    """Result of a single non-blocking read attempt."""

    status: ReadStatus
    data: bytes = b""

    @classmethod
    def would_block(cls) -> "ReadOutcome":
        return cls(ReadStatus.WOULD_BLOCK)

    @classmethod
    def end_of_input(cls) -> "ReadOutcome":
        return cls(ReadStatus.END_OF_INPUT)

    @classmethod
    def error(cls) -> "ReadOutcome":
        return cls(ReadStatus.ERROR)


@dataclass
class TransferState:
    """Paused/resumed status of the one in-flight upload.

    ``awaiting_input`` is true exactly when the last body request had no
    data ready and no resume has been issued since.
    """

    awaiting_input: bool = False
    transfer: Optional[Any] = None
    body_complete: bool = False
    pauses: int = 0
    resumes: int = 0


@dataclass
class TransferResult:
    """Outcome of one upload."""

    url: str
    ok: bool
    status_code: Optional[int] = None
    error_message: Optional[str] = None
    bytes_sent: int = 0
    bytes_received: int = 0
    pauses: int = 0
    resumes: int = 0
    duration_seconds: float = 0.0
    timestamp: str = field(default_factory=lambda: time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp,
            "url": self.url,
            "status": "ok" if self.ok else "failed",
            "status_code": self.status_code,
            "error_message": self.error_message,
            "bytes_sent": self.bytes_sent,
            "bytes_received": self.bytes_received,
            "pauses": self.pauses,
            "resumes": self.resumes,
            "duration_seconds": self.duration_seconds,
        }

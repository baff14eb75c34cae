from __future__ import annotations

from enum import Enum
from typing import Optional


class FailureKind(str, Enum):
    INVALID_ARGUMENT = "InvalidArgument"
    BROKER_INSERT_FAILED = "BrokerInsertFailed"
    STREAM_OPEN_FAILED = "StreamOpenFailed"
    WRITE_FAILED = "WriteFailed"
    COMMIT_FAILED = "CommitFailed"
    DIRECTORY_CREATE_FAILED = "DirectoryCreateFailed"
    IO_ERROR = "IOError"


class PublishError(Exception):
    """
    Storage fault raised inside a publisher.

    locator is set when the failed attempt left something behind
    (an orphan pending entry, or bytes written but not committed).
    """

    kind: FailureKind = FailureKind.IO_ERROR

    def __init__(self, message: str, locator: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.locator = locator

    def __str__(self) -> str:
        return self.message


class BrokerInsertFailed(PublishError):
    kind = FailureKind.BROKER_INSERT_FAILED


class StreamOpenFailed(PublishError):
    kind = FailureKind.STREAM_OPEN_FAILED


class WriteFailed(PublishError):
    kind = FailureKind.WRITE_FAILED


class CommitFailed(PublishError):
    kind = FailureKind.COMMIT_FAILED


class DirectoryCreateFailed(PublishError):
    kind = FailureKind.DIRECTORY_CREATE_FAILED

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional, Union

from downloads.errors import FailureKind
from providers.content_broker import DIRECTORY_DOWNLOADS, MediaColumns

DEFAULT_MIME_TYPE = "application/json"


@dataclass(frozen=True)
class PublishRequest:
    filename: str
    data: bytes
    mime_type: str = DEFAULT_MIME_TYPE


@dataclass(frozen=True)
class Success:
    locator: str


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str
    # Set when the attempt left an entry or file behind.
    locator: Optional[str] = None


PublishResult = Union[Success, Failure]


class EntryState(str, Enum):
    PENDING = "pending"
    COMMITTED = "committed"


@dataclass(frozen=True)
class PendingEntry:
    """
    A Downloads entry registered with the content broker.

    Lifecycle: built PENDING (no handle) -> registered (handle from insert)
    -> committed() once every byte has been flushed. Only the last step
    clears is_pending on the broker side.
    """
    display_name: str
    mime_type: str
    relative_path: str = DIRECTORY_DOWNLOADS
    state: EntryState = EntryState.PENDING
    handle: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.state is EntryState.PENDING

    def to_content_values(self) -> Dict[str, Any]:
        return {
            MediaColumns.DISPLAY_NAME: self.display_name,
            MediaColumns.MIME_TYPE: self.mime_type,
            MediaColumns.RELATIVE_PATH: self.relative_path,
            MediaColumns.IS_PENDING: 1 if self.is_pending else 0,
        }

    def registered(self, handle: str) -> "PendingEntry":
        return replace(self, handle=handle)

    def committed(self) -> "PendingEntry":
        if not self.handle:
            raise ValueError("cannot commit an entry that was never registered")
        return replace(self, state=EntryState.COMMITTED)

    @staticmethod
    def commit_values() -> Dict[str, Any]:
        return {MediaColumns.IS_PENDING: 0}

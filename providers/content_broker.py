from __future__ import annotations

from typing import Protocol, runtime_checkable, Optional, Dict, Any, BinaryIO


# Collection that holds entries published into the shared Downloads area.
DOWNLOADS_COLLECTION = "content://media/external/downloads"

# Relative directory every Downloads entry is filed under.
DIRECTORY_DOWNLOADS = "Downloads"


class MediaColumns:
    DISPLAY_NAME = "_display_name"
    MIME_TYPE = "mime_type"
    RELATIVE_PATH = "relative_path"
    IS_PENDING = "is_pending"
    SIZE = "_size"
    DATA = "_data"


@runtime_checkable
class ContentBroker(Protocol):
    """
    Broker-mediated content store (Indexed storage regime).

    Entries are addressed by opaque content URIs returned from insert().
    A row flagged is_pending=1 is private to its writer until updated to 0.
    """

    def insert(self, collection: str, values: Dict[str, Any]) -> Optional[str]: ...

    def open_output_stream(self, uri: str) -> Optional[BinaryIO]: ...

    def open_input_stream(self, uri: str) -> Optional[BinaryIO]: ...

    def update(self, uri: str, values: Dict[str, Any]) -> int: ...

    def query(self, uri: str) -> Optional[Dict[str, Any]]: ...

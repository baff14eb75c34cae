from __future__ import annotations

from concurrent.futures import Future
from typing import Protocol, runtime_checkable, Optional, Callable, Sequence


# on_completed(path, uri); uri is None when the path could not be indexed.
ScanCallback = Callable[[str, Optional[str]], None]


@runtime_checkable
class MediaScanner(Protocol):
    """
    Platform media index (Direct storage regime).

    scan_file() asks the index to pick up files written outside the broker.
    It returns immediately; the rescan itself happens in the background.
    """

    def scan_file(
        self,
        paths: Sequence[str],
        mime_types: Optional[Sequence[Optional[str]]] = None,
        on_completed: Optional[ScanCallback] = None,
    ) -> Optional[Future]: ...

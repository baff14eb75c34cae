from __future__ import annotations

import logging

from downloads.errors import (
    BrokerInsertFailed,
    CommitFailed,
    PublishError,
    StreamOpenFailed,
    WriteFailed,
)
from downloads.models import Failure, PendingEntry, PublishRequest, PublishResult, Success
from downloads.publisher import Publisher
from providers.content_broker import ContentBroker, DOWNLOADS_COLLECTION

log = logging.getLogger(__name__)


class IndexedPublisher(Publisher):
    """
    Publishes through the content broker with a pending-then-commit protocol.

    1. insert the entry with is_pending=1
    2. open an output stream on the returned handle
    3. write every byte, closing the stream on all paths
    4. update is_pending=0

    A failure at 2 or 3 leaves the entry pending (orphan); it is reported with
    its handle as Failure.locator and never retried here. A failure at 4 means
    the bytes are on disk but the entry is still pending (CommitFailed).
    """

    def __init__(self, broker: ContentBroker, collection: str = DOWNLOADS_COLLECTION):
        self.broker = broker
        self.collection = collection

    def publish(self, req: PublishRequest) -> PublishResult:
        entry = PendingEntry(display_name=req.filename, mime_type=req.mime_type)
        try:
            entry = self._register(entry)
            self._flush(entry, req.data)
            entry = self._commit(entry)
        except PublishError as e:
            log.warning(
                "[Indexed] publish failed kind=%s filename=%s locator=%s: %s",
                e.kind.value, req.filename, e.locator, e.message,
            )
            return Failure(kind=e.kind, message=e.message, locator=e.locator)

        log.info("[Indexed] published filename=%s uri=%s bytes=%s", req.filename, entry.handle, len(req.data))
        return Success(locator=entry.handle)

    def _register(self, entry: PendingEntry) -> PendingEntry:
        try:
            handle = self.broker.insert(self.collection, entry.to_content_values())
        except Exception as e:
            raise BrokerInsertFailed(f"Insert MediaStore failed: {e}") from e
        if not handle:
            raise BrokerInsertFailed("Insert MediaStore failed")
        return entry.registered(handle)

    def _flush(self, entry: PendingEntry, data: bytes) -> None:
        try:
            stream = self.broker.open_output_stream(entry.handle)
        except Exception as e:
            raise StreamOpenFailed(f"OpenOutputStream failed: {e}", locator=entry.handle) from e
        if stream is None:
            raise StreamOpenFailed("OpenOutputStream failed", locator=entry.handle)

        try:
            with stream:
                written = stream.write(data)
                if written is not None and written != len(data):
                    raise IOError(f"short write ({written}/{len(data)} bytes)")
        except Exception as e:
            raise WriteFailed(f"Write failed: {e}", locator=entry.handle) from e

    def _commit(self, entry: PendingEntry) -> PendingEntry:
        try:
            updated = self.broker.update(entry.handle, entry.commit_values())
        except Exception as e:
            raise CommitFailed(f"Commit failed: {e}", locator=entry.handle) from e
        if not updated:
            raise CommitFailed("Commit failed: no entry updated", locator=entry.handle)
        return entry.committed()

import io
from typing import Any, Dict, List, Optional

from downloads.errors import FailureKind
from downloads.indexed import IndexedPublisher
from downloads.models import EntryState, Failure, PendingEntry, PublishRequest, Success
from providers.content_broker import DIRECTORY_DOWNLOADS, DOWNLOADS_COLLECTION, MediaColumns
from providers.impl.broker_local_files import LocalFilesContentBroker


class _CapturingStream(io.BytesIO):
    def __init__(self, sink: Dict[str, Any], uri: str, fail_write: bool = False):
        super().__init__()
        self._sink = sink
        self._uri = uri
        self._fail_write = fail_write

    def write(self, b):
        if self._fail_write:
            raise OSError("disk full")
        return super().write(b)

    def close(self):
        if not self.closed:
            self._sink["closed"].append(self._uri)
            self._sink["content"][self._uri] = self.getvalue()
        super().close()


class FakeBroker:
    def __init__(
        self,
        insert_returns: Optional[str] = "content://media/external/downloads/7",
        open_returns_none: bool = False,
        open_raises: bool = False,
        fail_write: bool = False,
        update_rows: int = 1,
        update_raises: bool = False,
    ):
        self.insert_returns = insert_returns
        self.open_returns_none = open_returns_none
        self.open_raises = open_raises
        self.fail_write = fail_write
        self.update_rows = update_rows
        self.update_raises = update_raises

        self.inserts: List[Dict[str, Any]] = []
        self.opened: List[str] = []
        self.updates: List[Dict[str, Any]] = []
        self.sink: Dict[str, Any] = {"closed": [], "content": {}}

    def insert(self, collection: str, values: Dict[str, Any]) -> Optional[str]:
        self.inserts.append({"collection": collection, "values": dict(values)})
        return self.insert_returns

    def open_output_stream(self, uri: str):
        self.opened.append(uri)
        if self.open_raises:
            raise FileNotFoundError(uri)
        if self.open_returns_none:
            return None
        return _CapturingStream(self.sink, uri, fail_write=self.fail_write)

    def update(self, uri: str, values: Dict[str, Any]) -> int:
        self.updates.append({"uri": uri, "values": dict(values)})
        if self.update_raises:
            raise RuntimeError("broker gone")
        return self.update_rows


def _req(data=b'{"ok": true}'):
    return PublishRequest(filename="report.json", data=data, mime_type="application/json")


def test_pending_then_commit_protocol():
    broker = FakeBroker()
    result = IndexedPublisher(broker).publish(_req())

    assert result == Success(locator="content://media/external/downloads/7")

    assert len(broker.inserts) == 1
    insert = broker.inserts[0]
    assert insert["collection"] == DOWNLOADS_COLLECTION
    assert insert["values"] == {
        MediaColumns.DISPLAY_NAME: "report.json",
        MediaColumns.MIME_TYPE: "application/json",
        MediaColumns.RELATIVE_PATH: DIRECTORY_DOWNLOADS,
        MediaColumns.IS_PENDING: 1,
    }

    assert broker.sink["content"]["content://media/external/downloads/7"] == b'{"ok": true}'
    assert broker.sink["closed"] == ["content://media/external/downloads/7"]

    assert broker.updates == [
        {"uri": "content://media/external/downloads/7", "values": {MediaColumns.IS_PENDING: 0}},
    ]


def test_insert_without_handle_fails_before_any_write():
    broker = FakeBroker(insert_returns=None)
    result = IndexedPublisher(broker).publish(_req())

    assert isinstance(result, Failure)
    assert result.kind is FailureKind.BROKER_INSERT_FAILED
    assert "Insert MediaStore" in result.message
    assert result.locator is None
    assert broker.opened == []
    assert broker.updates == []


def test_insert_exception_is_broker_insert_failed():
    class _Raising(FakeBroker):
        def insert(self, collection, values):
            raise PermissionError("denied")

    broker = _Raising()
    result = IndexedPublisher(broker).publish(_req())

    assert result.kind is FailureKind.BROKER_INSERT_FAILED
    assert "denied" in result.message
    assert broker.opened == []


def test_stream_open_none_leaves_entry_pending():
    broker = FakeBroker(open_returns_none=True)
    result = IndexedPublisher(broker).publish(_req())

    assert result.kind is FailureKind.STREAM_OPEN_FAILED
    assert result.locator == "content://media/external/downloads/7"
    assert broker.updates == []


def test_stream_open_exception_leaves_entry_pending():
    broker = FakeBroker(open_raises=True)
    result = IndexedPublisher(broker).publish(_req())

    assert result.kind is FailureKind.STREAM_OPEN_FAILED
    assert result.locator == "content://media/external/downloads/7"
    assert broker.updates == []


def test_write_failure_closes_stream_and_never_commits():
    broker = FakeBroker(fail_write=True)
    result = IndexedPublisher(broker).publish(_req())

    assert result.kind is FailureKind.WRITE_FAILED
    assert "disk full" in result.message
    assert result.locator == "content://media/external/downloads/7"
    assert broker.sink["closed"] == ["content://media/external/downloads/7"]
    assert broker.updates == []


def test_short_write_is_write_failed():
    class _ShortStream(io.BytesIO):
        def write(self, b):
            return super().write(b[:1])

    class _ShortBroker(FakeBroker):
        def open_output_stream(self, uri):
            self.opened.append(uri)
            return _ShortStream()

    broker = _ShortBroker()
    result = IndexedPublisher(broker).publish(_req(b"abcdef"))

    assert result.kind is FailureKind.WRITE_FAILED
    assert broker.updates == []


def test_commit_zero_rows_is_commit_failed():
    broker = FakeBroker(update_rows=0)
    result = IndexedPublisher(broker).publish(_req())

    assert result.kind is FailureKind.COMMIT_FAILED
    assert result.locator == "content://media/external/downloads/7"
    # bytes were flushed even though the entry is still pending
    assert broker.sink["content"]["content://media/external/downloads/7"] == b'{"ok": true}'


def test_commit_exception_is_commit_failed():
    broker = FakeBroker(update_raises=True)
    result = IndexedPublisher(broker).publish(_req())

    assert result.kind is FailureKind.COMMIT_FAILED
    assert "broker gone" in result.message


def test_pending_entry_transition():
    entry = PendingEntry(display_name="a.txt", mime_type="text/plain")
    assert entry.is_pending
    assert entry.to_content_values()[MediaColumns.IS_PENDING] == 1

    registered = entry.registered("content://media/external/downloads/1")
    committed = registered.committed()

    assert committed.state is EntryState.COMMITTED
    assert not committed.is_pending
    assert committed.to_content_values()[MediaColumns.IS_PENDING] == 0
    # original stays untouched
    assert registered.is_pending


def test_unregistered_entry_cannot_commit():
    entry = PendingEntry(display_name="a.txt", mime_type="text/plain")
    try:
        entry.committed()
    except ValueError:
        pass
    else:
        raise AssertionError("expected ValueError")


def test_with_local_broker_entry_is_committed_with_content(tmp_path):
    broker = LocalFilesContentBroker(str(tmp_path / "media"))
    result = IndexedPublisher(broker).publish(_req(b"\x00\x01payload"))

    assert isinstance(result, Success)
    row = broker.query(result.locator)
    assert row[MediaColumns.IS_PENDING] == 0
    assert row[MediaColumns.DISPLAY_NAME] == "report.json"
    with broker.open_input_stream(result.locator) as f:
        assert f.read() == b"\x00\x01payload"


def test_with_local_broker_write_failure_keeps_row_pending(tmp_path, monkeypatch):
    broker = LocalFilesContentBroker(str(tmp_path / "media"))

    class _Boom(io.BytesIO):
        def write(self, b):
            raise OSError("io error")

    monkeypatch.setattr(broker, "open_output_stream", lambda uri: _Boom())
    result = IndexedPublisher(broker).publish(_req())

    assert result.kind is FailureKind.WRITE_FAILED
    row = broker.query(result.locator)
    assert row[MediaColumns.IS_PENDING] == 1
    assert row[MediaColumns.DATA].endswith(".pending-1-report.json")

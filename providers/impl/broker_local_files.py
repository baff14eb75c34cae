from __future__ import annotations

import json
import logging
import os
import threading
from typing import Any, BinaryIO, Dict, Optional

from core.settings import StorageSettings
from providers.content_broker import (
    ContentBroker,
    DIRECTORY_DOWNLOADS,
    DOWNLOADS_COLLECTION,
    MediaColumns,
)

log = logging.getLogger(__name__)


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def _safe_name(name: Any) -> str:
    name = str(name or "").strip()
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        return ""
    return name


def _safe_relative_path(raw: Any) -> str:
    parts = [p for p in str(raw or "").replace("\\", "/").split("/") if p.strip()]
    if not parts or any(p in (".", "..") for p in parts):
        return ""
    return os.path.join(*parts)


class LocalFilesContentBroker(ContentBroker):
    """
    Directory-backed content broker.

    Layout under root:
      media_index.json             rows keyed by id
      <relative_path>/<name>       committed entries
      <relative_path>/.pending-<id>-<name>   entries still flagged is_pending=1

    Committing an entry renames its file to the display name. If that name is
    already taken in the directory, " (n)" is appended before the extension,
    which is the only collision handling this store performs.
    """

    INDEX_FILE = "media_index.json"

    def __init__(self, root: str):
        root = (root or "").strip()
        if not root:
            raise RuntimeError("CONTENT_ROOT is required for the local content broker")
        self.root = os.path.abspath(root)
        self._index_path = os.path.join(self.root, self.INDEX_FILE)
        self._lock = threading.RLock()

    @classmethod
    def from_settings(cls, storage: StorageSettings) -> "LocalFilesContentBroker":
        return cls(root=storage.content_root)

    # -----------------------------
    # Index persistence
    # -----------------------------

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self._index_path):
            return {"next_id": 1, "rows": {}}
        with open(self._index_path, "r", encoding="utf-8") as f:
            state = json.load(f)
        state.setdefault("next_id", 1)
        state.setdefault("rows", {})
        return state

    def _save(self, state: Dict[str, Any]) -> None:
        os.makedirs(self.root, exist_ok=True)
        tmp = self._index_path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(state, f, indent=2, sort_keys=True)
        os.replace(tmp, self._index_path)

    def _row_id(self, uri: str) -> Optional[str]:
        prefix = DOWNLOADS_COLLECTION + "/"
        uri = (uri or "").strip()
        if not uri.startswith(prefix):
            return None
        row_id = uri[len(prefix):]
        return row_id if row_id.isdigit() else None

    def _row(self, state: Dict[str, Any], uri: str) -> Optional[Dict[str, Any]]:
        row_id = self._row_id(uri)
        if row_id is None:
            return None
        return state["rows"].get(row_id)

    # -----------------------------
    # Naming
    # -----------------------------

    @staticmethod
    def _pending_name(row_id: Any, display_name: str) -> str:
        return f".pending-{row_id}-{display_name}"

    @staticmethod
    def _unique_name(directory: str, display_name: str) -> str:
        if not os.path.exists(os.path.join(directory, display_name)):
            return display_name
        base, ext = os.path.splitext(display_name)
        n = 1
        while True:
            candidate = f"{base} ({n}){ext}"
            if not os.path.exists(os.path.join(directory, candidate)):
                return candidate
            n += 1

    # -----------------------------
    # ContentBroker
    # -----------------------------

    def insert(self, collection: str, values: Dict[str, Any]) -> Optional[str]:
        if collection != DOWNLOADS_COLLECTION:
            log.warning("[Broker] insert into unknown collection=%s", collection)
            return None

        display_name = _safe_name(values.get(MediaColumns.DISPLAY_NAME))
        relative_path = _safe_relative_path(values.get(MediaColumns.RELATIVE_PATH) or DIRECTORY_DOWNLOADS)
        if not display_name or not relative_path:
            log.warning(
                "[Broker] insert rejected display_name=%r relative_path=%r",
                values.get(MediaColumns.DISPLAY_NAME),
                values.get(MediaColumns.RELATIVE_PATH),
            )
            return None

        pending = _truthy(values.get(MediaColumns.IS_PENDING, 0))

        with self._lock:
            state = self._load()
            row_id = str(state["next_id"])
            state["next_id"] = int(state["next_id"]) + 1

            directory = os.path.join(self.root, relative_path)
            os.makedirs(directory, exist_ok=True)

            if pending:
                file_name = self._pending_name(row_id, display_name)
            else:
                file_name = self._unique_name(directory, display_name)
                display_name = file_name
            data_path = os.path.join(directory, file_name)

            # Placeholder so the entry owns its path from the start
            with open(data_path, "wb"):
                pass

            state["rows"][row_id] = {
                "id": int(row_id),
                MediaColumns.DISPLAY_NAME: display_name,
                MediaColumns.MIME_TYPE: values.get(MediaColumns.MIME_TYPE) or "application/octet-stream",
                MediaColumns.RELATIVE_PATH: relative_path,
                MediaColumns.IS_PENDING: 1 if pending else 0,
                MediaColumns.SIZE: 0,
                MediaColumns.DATA: data_path,
            }
            self._save(state)

        uri = f"{collection}/{row_id}"
        log.info("[Broker] inserted uri=%s display_name=%s pending=%s", uri, display_name, pending)
        return uri

    def open_output_stream(self, uri: str) -> Optional[BinaryIO]:
        with self._lock:
            row = self._row(self._load(), uri)
        if row is None:
            raise FileNotFoundError(f"No entry for {uri}")
        return open(row[MediaColumns.DATA], "wb")

    def open_input_stream(self, uri: str) -> Optional[BinaryIO]:
        with self._lock:
            row = self._row(self._load(), uri)
        if row is None:
            raise FileNotFoundError(f"No entry for {uri}")
        return open(row[MediaColumns.DATA], "rb")

    def update(self, uri: str, values: Dict[str, Any]) -> int:
        with self._lock:
            state = self._load()
            row = self._row(state, uri)
            if row is None:
                return 0

            data_path = row[MediaColumns.DATA]
            directory = os.path.dirname(data_path)
            was_pending = bool(row[MediaColumns.IS_PENDING])
            pending = was_pending
            if MediaColumns.IS_PENDING in values:
                pending = _truthy(values[MediaColumns.IS_PENDING])

            display_name = row[MediaColumns.DISPLAY_NAME]
            if MediaColumns.DISPLAY_NAME in values:
                display_name = _safe_name(values[MediaColumns.DISPLAY_NAME]) or display_name

            if MediaColumns.MIME_TYPE in values and values[MediaColumns.MIME_TYPE]:
                row[MediaColumns.MIME_TYPE] = values[MediaColumns.MIME_TYPE]

            if was_pending and not pending:
                final_name = self._unique_name(directory, display_name)
            elif pending and not was_pending:
                final_name = self._pending_name(row["id"], display_name)
            elif pending:
                final_name = os.path.basename(data_path)
            elif display_name != row[MediaColumns.DISPLAY_NAME]:
                final_name = self._unique_name(directory, display_name)
            else:
                final_name = os.path.basename(data_path)

            target = os.path.join(directory, final_name)
            if target != data_path:
                os.replace(data_path, target)

            if not pending:
                display_name = final_name
            row[MediaColumns.DISPLAY_NAME] = display_name
            row[MediaColumns.IS_PENDING] = 1 if pending else 0
            row[MediaColumns.DATA] = target
            row[MediaColumns.SIZE] = os.path.getsize(target) if os.path.exists(target) else 0
            self._save(state)

        log.info("[Broker] updated uri=%s pending=%s data=%s", uri, pending, target)
        return 1

    def query(self, uri: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            row = self._row(self._load(), uri)
        return dict(row) if row is not None else None

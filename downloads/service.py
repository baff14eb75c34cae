from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Optional, Union

from downloads.direct import DirectPublisher
from downloads.errors import FailureKind
from downloads.indexed import IndexedPublisher
from downloads.models import DEFAULT_MIME_TYPE, Failure, PublishRequest, PublishResult
from downloads.publisher import Publisher
from downloads.regime import StorageRegime, detect
from providers.factory import Providers

log = logging.getLogger(__name__)


class DownloadsService:
    """
    Single entry point for publishing bytes into Downloads.

    Validates the request, detects the storage regime for the current
    platform version (on every call), dispatches to that regime's publisher
    and always hands back a PublishResult; nothing escapes as an exception.

    Calls are independent. Two concurrent publishes of the same filename are
    not serialized here; their ordering is whatever the storage provides.
    """

    def __init__(
        self,
        platform_version: Union[int, Callable[[], int]],
        indexed: Publisher,
        direct: Publisher,
    ):
        self._platform_version = platform_version
        self.publishers = {
            StorageRegime.INDEXED: indexed,
            StorageRegime.DIRECT: direct,
        }

    @classmethod
    def from_providers(cls, providers: Providers) -> "DownloadsService":
        settings = providers.settings
        return cls(
            platform_version=settings.platform.version,
            indexed=IndexedPublisher(providers.broker),
            direct=DirectPublisher(Path(settings.storage.downloads_dir), providers.scanner),
        )

    @property
    def platform_version(self) -> int:
        v = self._platform_version
        return v() if callable(v) else v

    def regime(self) -> StorageRegime:
        return detect(self.platform_version)

    def publish(
        self,
        filename: Optional[str],
        mime_type: Optional[str] = None,
        data: Optional[Any] = None,
    ) -> PublishResult:
        if not isinstance(filename, str) or not filename or data is None:
            return Failure(kind=FailureKind.INVALID_ARGUMENT, message="filename/bytes missing")
        if not isinstance(data, (bytes, bytearray, memoryview)):
            return Failure(kind=FailureKind.INVALID_ARGUMENT, message="bytes must be a byte sequence")

        req = PublishRequest(
            filename=filename,
            data=bytes(data),
            mime_type=mime_type or DEFAULT_MIME_TYPE,
        )

        try:
            regime = self.regime()
            log.debug("[Downloads] publish filename=%s mime=%s regime=%s", req.filename, req.mime_type, regime.value)
            return self.publishers[regime].publish(req)
        except Exception as e:
            log.exception("[Downloads] unexpected failure publishing filename=%s", req.filename)
            return Failure(kind=FailureKind.IO_ERROR, message=str(e) or e.__class__.__name__)

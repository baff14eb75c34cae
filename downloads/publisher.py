from __future__ import annotations

from typing import Protocol, runtime_checkable

from downloads.models import PublishRequest, PublishResult


@runtime_checkable
class Publisher(Protocol):
    """
    Writes one request into the shared Downloads area.

    Implementations never raise for storage faults; they return Failure.
    """

    def publish(self, req: PublishRequest) -> PublishResult: ...

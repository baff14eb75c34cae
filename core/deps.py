from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from core.providers import providers_from_request
from downloads.service import DownloadsService
from providers.factory import Providers


# -----------------------------
# Canonical provider access
# -----------------------------

def get_providers(request: Request) -> Providers:
    """
    Canonical runtime provider resolver.

    Source of truth: request.app.state.providers
    """
    return providers_from_request(request)


ProvidersDep = Annotated[Providers, Depends(get_providers)]


# -----------------------------
# Canonical service deps
# -----------------------------

def get_downloads_service(request: Request) -> DownloadsService:
    """
    Built per request so the storage regime follows the current settings.
    """
    return DownloadsService.from_providers(get_providers(request))


DownloadsServiceDep = Annotated[DownloadsService, Depends(get_downloads_service)]

# health/router.py
from fastapi import APIRouter

from core.deps import ProvidersDep
from downloads.regime import detect

router = APIRouter(tags=["health"])


@router.get("/health")
def health(providers: ProvidersDep):
    # Keep this super simple and always unauthenticated
    version = providers.settings.platform.version
    return {
        "ok": True,
        "platformVersion": version,
        "regime": detect(version).value,
    }

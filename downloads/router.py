from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from core.deps import DownloadsServiceDep, ProvidersDep
from downloads.errors import FailureKind
from downloads.models import Failure, PublishResult

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------

router = APIRouter(
    prefix="/channel",
    tags=["downloads"],
)

SAVE_TO_DOWNLOADS = "saveToDownloads"

ERROR_CODE_ARG = "ARG"
ERROR_CODE_IO = "IO"


# ---------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------

class MethodCallModel(BaseModel):
    method: str = Field(..., min_length=1)
    arguments: Optional[Dict[str, Any]] = None


class SaveToDownloadsArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    filename: Optional[str] = None
    mime: Optional[str] = None
    # base64 text, or a JSON array of byte values
    payload: Optional[Union[str, List[int]]] = Field(default=None, alias="bytes")


class ChannelErrorModel(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class MethodResultModel(BaseModel):
    success: Optional[str] = None
    error: Optional[ChannelErrorModel] = None
    notImplemented: Optional[bool] = None


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def _decode_payload(payload: Union[str, List[int], None]) -> Optional[bytes]:
    if payload is None:
        return None
    if isinstance(payload, str):
        return base64.b64decode(payload, validate=True)
    return bytes(payload)


def _error_code(kind: FailureKind) -> str:
    return ERROR_CODE_ARG if kind is FailureKind.INVALID_ARGUMENT else ERROR_CODE_IO


def _to_method_result(result: PublishResult) -> MethodResultModel:
    if isinstance(result, Failure):
        details: Dict[str, Any] = {"kind": result.kind.value}
        if result.locator:
            details["locator"] = result.locator
        return MethodResultModel(
            error=ChannelErrorModel(
                code=_error_code(result.kind),
                message=result.message,
                details=details,
            )
        )
    return MethodResultModel(success=result.locator)


def _save_to_downloads(arguments: Dict[str, Any], service) -> MethodResultModel:
    try:
        args = SaveToDownloadsArgs.model_validate(arguments)
        data = _decode_payload(args.payload)
    except (ValueError, binascii.Error) as exc:
        log.info("[Channel] rejected %s arguments: %s", SAVE_TO_DOWNLOADS, exc)
        return MethodResultModel(
            error=ChannelErrorModel(
                code=ERROR_CODE_ARG,
                message=f"Invalid {SAVE_TO_DOWNLOADS} arguments",
                details={"kind": FailureKind.INVALID_ARGUMENT.value},
            )
        )

    result = service.publish(args.filename, args.mime, data)
    return _to_method_result(result)


# ---------------------------------------------------------------------
# POST /channel/{name}
# ---------------------------------------------------------------------

@router.post(
    "/{channel:path}",
    response_model=MethodResultModel,
    response_model_exclude_none=True,
)
def invoke_method(
    channel: str,
    call: MethodCallModel,
    providers: ProvidersDep,
    service: DownloadsServiceDep,
):
    """
    Method-channel style entry point.

    Always answers 200 with exactly one of success / error / notImplemented,
    unless the channel name is unknown (404).
    """
    if channel.strip("/") != providers.settings.channel.name:
        raise HTTPException(status_code=404, detail=f"Unknown channel: {channel}")

    if call.method != SAVE_TO_DOWNLOADS:
        return MethodResultModel(notImplemented=True)

    return _save_to_downloads(call.arguments or {}, service)

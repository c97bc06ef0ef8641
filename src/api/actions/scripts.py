"""Script file management and perusal endpoints."""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool

from api.deps import client_ip, get_services, require_role
from persistence.models import ProfileRecord
from schemas.requests import PerusalRequestCreate
from schemas.responses import (
    MessageResponse,
    PerusalDownloadResponse,
    PerusalRequestCreated,
    PerusalRequestList,
    PerusalRequestSummary,
    ScriptFiles,
    ScriptUploadResponse,
)
from services.container import Services
from services.delivery import DeliveryRequest

router = APIRouter(prefix="/scripts", tags=["Scripts"])

WATERMARK_NOTICE = "This perusal copy is watermarked and not for performance."

Playwright = Annotated[ProfileRecord, Depends(require_role("playwright"))]
TheaterCompany = Annotated[ProfileRecord, Depends(require_role("theater_company"))]
ServicesDep = Annotated[Services, Depends(get_services)]


@router.post("/{script_id}/upload", response_model=ScriptUploadResponse)
async def upload_script_file(
    script_id: str,
    script: Annotated[UploadFile, File()],
    caller: Playwright,
    services: ServicesDep,
):
    """Store a script PDF and derive its perusal copy."""
    # One byte past the limit is enough to reject oversized uploads.
    data = await script.read(services.uploads.max_upload_bytes + 1)
    record = await run_in_threadpool(
        services.uploads.upload_script_file,
        script_id,
        caller.profile_id,
        filename=script.filename,
        content_type=script.content_type,
        data=data,
    )
    return ScriptUploadResponse(
        message="Script file uploaded successfully",
        script=ScriptFiles.from_record(record),
    )


@router.delete("/{script_id}/file", response_model=MessageResponse)
async def delete_script_file(script_id: str, caller: Playwright, services: ServicesDep):
    await run_in_threadpool(
        services.uploads.delete_script_files, script_id, caller.profile_id
    )
    return MessageResponse(message="Script files deleted successfully")


@router.post("/{script_id}/perusal", response_model=PerusalRequestCreated, status_code=201)
async def request_perusal(
    script_id: str,
    caller: TheaterCompany,
    services: ServicesDep,
    payload: Optional[PerusalRequestCreate] = None,
):
    payload = payload or PerusalRequestCreate()
    record = await run_in_threadpool(
        services.perusal_requests.create_request,
        script_id,
        caller,
        company_name=payload.company_name,
        purpose=payload.purpose,
    )
    return PerusalRequestCreated(
        request_id=record.request_id,
        expires_at=record.expires_at,
        message="Perusal request approved. You can now download the perusal script.",
    )


@router.get("/my/perusal-requests", response_model=PerusalRequestList)
async def list_my_perusal_requests(
    caller: TheaterCompany,
    services: ServicesDep,
    status: Optional[str] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
):
    records, total = await run_in_threadpool(
        services.perusal_requests.list_requests,
        caller.profile_id,
        status=status,
        limit=limit,
        offset=offset,
    )
    return PerusalRequestList(
        requests=[PerusalRequestSummary.from_record(record) for record in records],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/perusal/{request_id}/download", response_model=PerusalDownloadResponse)
async def download_perusal_script(
    request_id: str,
    request: Request,
    caller: TheaterCompany,
    services: ServicesDep,
):
    """Issue a short-lived URL to a freshly watermarked perusal copy."""
    result = await run_in_threadpool(
        services.delivery.deliver,
        DeliveryRequest(
            kind="perusal",
            entitlement_id=request_id,
            caller_id=caller.profile_id,
            ip_address=client_ip(request),
        ),
    )
    return PerusalDownloadResponse(
        download_url=result.download_url,
        expires_in=result.expires_in,
        script_title=result.script_title,
        filename=result.filename,
        watermark_notice=WATERMARK_NOTICE,
    )

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool

from api.deps import client_ip, get_services, require_role
from persistence.models import ProfileRecord
from schemas.responses import DownloadResponse
from services.container import Services
from services.delivery import DeliveryRequest

router = APIRouter(prefix="/licenses", tags=["Licenses"])


@router.get("/{license_id}/download", response_model=DownloadResponse)
async def download_licensed_script(
    license_id: str,
    request: Request,
    caller: Annotated[ProfileRecord, Depends(require_role("theater_company"))],
    services: Annotated[Services, Depends(get_services)],
):
    """Issue a short-lived URL to a licensee-stamped copy of the full script."""
    result = await run_in_threadpool(
        services.delivery.deliver,
        DeliveryRequest(
            kind="license",
            entitlement_id=license_id,
            caller_id=caller.profile_id,
            ip_address=client_ip(request),
        ),
    )
    return DownloadResponse(
        download_url=result.download_url,
        expires_in=result.expires_in,
        script_title=result.script_title,
        filename=result.filename,
    )

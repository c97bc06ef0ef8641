"""Presigned object access."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response
from fastapi.concurrency import run_in_threadpool

from api.deps import get_services
from core.errors import BlobNotFoundError, ForbiddenError, NotFoundError
from services.container import Services

router = APIRouter(tags=["Files"])


@router.get("/files/{bucket}/{key:path}")
async def fetch_object(
    bucket: str,
    key: str,
    services: Annotated[Services, Depends(get_services)],
    expires: Annotated[int, Query()],
    signature: Annotated[str, Query(min_length=1)],
):
    if not services.blobs.verify(bucket, key, expires=expires, signature=signature):
        raise ForbiddenError("Invalid or expired download link")
    try:
        data, metadata = await run_in_threadpool(services.blobs.read, bucket, key)
    except BlobNotFoundError as exc:
        raise NotFoundError("File not found") from exc

    filename = key.rsplit("/", 1)[-1]
    return Response(
        content=data,
        media_type=metadata.get("content_type") or "application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

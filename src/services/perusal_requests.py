"""Perusal request creation and listing."""

from __future__ import annotations

import logging
from datetime import timedelta

from core.clock import Clock, utcnow
from core.errors import NotFoundError
from persistence.contracts import RecordStore
from persistence.models import PerusalRequestRecord, ProfileRecord

logger = logging.getLogger(__name__)

DEFAULT_TTL_DAYS = 7


class PerusalRequestService:
    def __init__(
        self,
        records: RecordStore,
        *,
        ttl_days: int = DEFAULT_TTL_DAYS,
        clock: Clock | None = None,
    ) -> None:
        self._records = records
        self._ttl = timedelta(days=ttl_days)
        self._clock = clock or utcnow

    def create_request(
        self,
        script_id: str,
        caller: ProfileRecord,
        *,
        company_name: str | None = None,
        purpose: str | None = None,
    ) -> PerusalRequestRecord:
        """Open an auto-approved perusal request for a published script."""
        script = self._records.get_script(script_id)
        if script is None or script.status != "published":
            raise NotFoundError("Script not found or not available")
        if not script.perusal_url:
            raise NotFoundError("Perusal copy not available for this script")

        request = self._records.create_perusal_request(
            script_id=script.script_id,
            requester_id=caller.profile_id,
            company_name=company_name or caller.company_name,
            purpose=purpose,
            status="approved",
            expires_at=self._clock() + self._ttl,
        )
        logger.info("Approved perusal request %s for %s", request.request_id, caller.profile_id)
        return request

    def list_requests(
        self,
        caller_id: str,
        *,
        status: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[PerusalRequestRecord], int]:
        return self._records.list_perusal_requests(
            requester_id=caller_id, status=status, limit=limit, offset=offset
        )


__all__ = ["DEFAULT_TTL_DAYS", "PerusalRequestService"]

"""Request-time authorization for script downloads.

Nothing here is cached: every download re-reads the entitlement and the
script, then applies the ownership, status and expiry rules.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from core.clock import as_utc
from core.errors import ForbiddenError, InvalidTransitionError, NotFoundError
from persistence.contracts import RecordStore
from persistence.models import LicenseRecord, PerusalRequestRecord, ScriptRecord

_LICENSE_TRANSITIONS: dict[tuple[str, str], str] = {
    ("pending", "payment_confirmed"): "active",
    ("pending", "payment_failed"): "failed",
    ("active", "expiry_elapsed"): "expired",
}


@dataclass(frozen=True)
class LicenseGrant:
    license: LicenseRecord
    script: ScriptRecord

    @property
    def source_url(self) -> str:
        return self.script.file_url or ""


@dataclass(frozen=True)
class PerusalGrant:
    request: PerusalRequestRecord
    script: ScriptRecord

    @property
    def source_url(self) -> str:
        return self.script.perusal_url or ""


def is_expired(expires_at: datetime | None, now: datetime) -> bool:
    """An entitlement is usable only while ``expires_at`` is strictly in the future."""
    if expires_at is None:
        return False
    return as_utc(expires_at) <= as_utc(now)


def authorize_license_download(
    records: RecordStore, *, license_id: str, caller_id: str, now: datetime
) -> LicenseGrant:
    license_record = records.get_license(license_id)
    # Someone else's license reads as missing so ids do not leak.
    if license_record is None or license_record.licensee_id != caller_id:
        raise NotFoundError("License not found")
    if license_record.status != "active":
        raise ForbiddenError("License is not active")
    if is_expired(license_record.expires_at, now):
        raise ForbiddenError("License has expired")

    script = records.get_script(license_record.script_id)
    if script is None or not script.file_url:
        raise NotFoundError("Script file not available")
    return LicenseGrant(license=license_record, script=script)


def authorize_perusal_download(
    records: RecordStore, *, request_id: str, caller_id: str, now: datetime
) -> PerusalGrant:
    request = records.get_perusal_request(request_id)
    if request is None or request.requester_id != caller_id:
        raise NotFoundError("Perusal request not found")
    if request.status != "approved":
        raise ForbiddenError("Perusal request not approved")
    if is_expired(request.expires_at, now):
        raise ForbiddenError("Perusal request has expired")

    script = records.get_script(request.script_id)
    if script is None or not script.perusal_url:
        raise NotFoundError("Perusal script not available")
    return PerusalGrant(request=request, script=script)


def transition_license(status: str, event: str) -> str:
    """Return the status a license moves to on ``event``."""
    try:
        return _LICENSE_TRANSITIONS[(status, event)]
    except KeyError:
        raise InvalidTransitionError(
            f"License cannot handle {event!r} while {status!r}"
        ) from None


__all__ = [
    "LicenseGrant",
    "PerusalGrant",
    "authorize_license_download",
    "authorize_perusal_download",
    "is_expired",
    "transition_license",
]

from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import FIXED_NOW, seed_catalog
from core.errors import ForbiddenError, InvalidTransitionError, NotFoundError
from persistence.sqlite_store import SqliteStore
from services.entitlements import (
    authorize_license_download,
    authorize_perusal_download,
    is_expired,
    transition_license,
)


def _license(store: SqliteStore, catalog, **overrides):
    fields = {
        "script_id": catalog.script.script_id,
        "licensee_id": catalog.theater.profile_id,
        "license_type": "standard",
        "status": "active",
        "expires_at": FIXED_NOW + timedelta(days=1),
    }
    fields.update(overrides)
    return store.create_license(**fields)


def _perusal(store: SqliteStore, catalog, **overrides):
    fields = {
        "script_id": catalog.script.script_id,
        "requester_id": catalog.theater.profile_id,
        "company_name": "Globe Players",
        "purpose": None,
        "status": "approved",
        "expires_at": FIXED_NOW + timedelta(days=7),
    }
    fields.update(overrides)
    return store.create_perusal_request(**fields)


def test_active_license_is_granted(store: SqliteStore) -> None:
    catalog = seed_catalog(store)
    license_record = _license(store, catalog)

    grant = authorize_license_download(
        store, license_id=license_record.license_id, caller_id=catalog.theater.profile_id, now=FIXED_NOW
    )

    assert grant.license == license_record
    assert grant.script.script_id == catalog.script.script_id
    assert grant.source_url == catalog.script.file_url


def test_license_without_expiry_is_granted(store: SqliteStore) -> None:
    catalog = seed_catalog(store)
    license_record = _license(store, catalog, expires_at=None)

    authorize_license_download(
        store, license_id=license_record.license_id, caller_id=catalog.theater.profile_id, now=FIXED_NOW
    )


def test_unknown_license_is_not_found(store: SqliteStore) -> None:
    catalog = seed_catalog(store)

    with pytest.raises(NotFoundError, match="License not found"):
        authorize_license_download(
            store, license_id="lic_missing", caller_id=catalog.theater.profile_id, now=FIXED_NOW
        )


def test_other_callers_cannot_use_a_license(store: SqliteStore) -> None:
    catalog = seed_catalog(store)
    license_record = _license(store, catalog)

    for caller in (catalog.rival.profile_id, catalog.playwright.profile_id):
        with pytest.raises(NotFoundError, match="License not found"):
            authorize_license_download(
                store, license_id=license_record.license_id, caller_id=caller, now=FIXED_NOW
            )


@pytest.mark.parametrize("status", ["pending", "failed", "expired", "cancelled"])
def test_inactive_license_is_forbidden(store: SqliteStore, status: str) -> None:
    catalog = seed_catalog(store)
    license_record = _license(store, catalog, status=status)

    with pytest.raises(ForbiddenError, match="License is not active"):
        authorize_license_download(
            store, license_id=license_record.license_id, caller_id=catalog.theater.profile_id, now=FIXED_NOW
        )


@pytest.mark.parametrize("offset", [timedelta(0), timedelta(seconds=-1), timedelta(days=-30)])
def test_expired_license_is_forbidden(store: SqliteStore, offset: timedelta) -> None:
    catalog = seed_catalog(store)
    license_record = _license(store, catalog, expires_at=FIXED_NOW + offset)

    with pytest.raises(ForbiddenError, match="License has expired"):
        authorize_license_download(
            store, license_id=license_record.license_id, caller_id=catalog.theater.profile_id, now=FIXED_NOW
        )


def test_license_for_script_without_file_is_not_found(store: SqliteStore) -> None:
    catalog = seed_catalog(store, file_url=None)
    license_record = _license(store, catalog)

    with pytest.raises(NotFoundError, match="Script file not available"):
        authorize_license_download(
            store, license_id=license_record.license_id, caller_id=catalog.theater.profile_id, now=FIXED_NOW
        )


def test_approved_perusal_is_granted(store: SqliteStore) -> None:
    catalog = seed_catalog(store)
    request = _perusal(store, catalog)

    grant = authorize_perusal_download(
        store, request_id=request.request_id, caller_id=catalog.theater.profile_id, now=FIXED_NOW
    )

    assert grant.request == request
    assert grant.source_url == catalog.script.perusal_url


def test_perusal_of_another_requester_is_not_found(store: SqliteStore) -> None:
    catalog = seed_catalog(store)
    request = _perusal(store, catalog)

    with pytest.raises(NotFoundError, match="Perusal request not found"):
        authorize_perusal_download(
            store, request_id=request.request_id, caller_id=catalog.rival.profile_id, now=FIXED_NOW
        )


def test_unapproved_perusal_is_forbidden(store: SqliteStore) -> None:
    catalog = seed_catalog(store)
    request = _perusal(store, catalog, status="pending")

    with pytest.raises(ForbiddenError, match="Perusal request not approved"):
        authorize_perusal_download(
            store, request_id=request.request_id, caller_id=catalog.theater.profile_id, now=FIXED_NOW
        )


def test_perusal_expired_yesterday_is_forbidden(store: SqliteStore) -> None:
    catalog = seed_catalog(store)
    request = _perusal(store, catalog, expires_at=FIXED_NOW - timedelta(days=1))

    with pytest.raises(ForbiddenError, match="Perusal request has expired"):
        authorize_perusal_download(
            store, request_id=request.request_id, caller_id=catalog.theater.profile_id, now=FIXED_NOW
        )


def test_perusal_without_copy_is_not_found(store: SqliteStore) -> None:
    catalog = seed_catalog(store, perusal_url=None)
    request = _perusal(store, catalog)

    with pytest.raises(NotFoundError, match="Perusal script not available"):
        authorize_perusal_download(
            store, request_id=request.request_id, caller_id=catalog.theater.profile_id, now=FIXED_NOW
        )


def test_is_expired_treats_naive_values_as_utc() -> None:
    naive_past = (FIXED_NOW - timedelta(minutes=1)).replace(tzinfo=None)

    assert is_expired(naive_past, FIXED_NOW)
    assert not is_expired(None, FIXED_NOW)
    assert not is_expired(FIXED_NOW + timedelta(seconds=1), FIXED_NOW)


def test_license_transitions() -> None:
    assert transition_license("pending", "payment_confirmed") == "active"
    assert transition_license("pending", "payment_failed") == "failed"
    assert transition_license("active", "expiry_elapsed") == "expired"

    with pytest.raises(InvalidTransitionError):
        transition_license("expired", "payment_confirmed")
    with pytest.raises(InvalidTransitionError):
        transition_license("failed", "expiry_elapsed")

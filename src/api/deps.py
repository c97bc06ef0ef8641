"""Request dependencies: service container and bearer-token callers."""

from __future__ import annotations

import threading
from typing import Annotated, Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.errors import AuthenticationError, ForbiddenError
from persistence.models import ProfileRecord
from services.container import Services, build_services

_bearer = HTTPBearer(auto_error=False)
_services_lock = threading.Lock()


def get_services(request: Request) -> Services:
    """Build the service container on first use and keep it on the app."""
    state = request.app.state
    services = getattr(state, "services", None)
    if services is None:
        with _services_lock:
            services = getattr(state, "services", None)
            if services is None:
                services = build_services(state.settings, clock=state.clock)
                state.services = services
    return services


def get_current_profile(
    services: Annotated[Services, Depends(get_services)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> ProfileRecord:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")
    profile = services.records.get_profile_by_token(credentials.credentials)
    if profile is None:
        raise AuthenticationError("Invalid or expired token")
    return profile


def require_role(*roles: str) -> Callable[[ProfileRecord], ProfileRecord]:
    def _check(
        profile: Annotated[ProfileRecord, Depends(get_current_profile)],
    ) -> ProfileRecord:
        if profile.role not in roles:
            raise ForbiddenError("Insufficient permissions")
        return profile

    return _check


def client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


__all__ = ["client_ip", "get_current_profile", "get_services", "require_role"]

"""Error hierarchy shared by services, stores and the HTTP layer."""

from __future__ import annotations


class ScriptVaultError(Exception):
    """Base error carrying an HTTP status and a message safe to show callers."""

    status_code = 500
    public = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def public_message(self) -> str:
        return self.message if self.public else "Internal Server Error"


class NotFoundError(ScriptVaultError):
    status_code = 404
    public = True


class ForbiddenError(ScriptVaultError):
    status_code = 403
    public = True


class AuthenticationError(ScriptVaultError):
    status_code = 401
    public = True


class InvalidRequestError(ScriptVaultError):
    status_code = 400
    public = True


class MalformedDocumentError(ScriptVaultError):
    """Source bytes are not a PDF the transform engine can parse."""


class StorageError(ScriptVaultError):
    """The blob backend is unreachable or rejected an operation."""


class BlobNotFoundError(StorageError):
    pass


class RecordStoreError(ScriptVaultError):
    """The record store failed; distinct from a record being absent."""


class InvalidTransitionError(ScriptVaultError):
    pass


class DeliveryError(ScriptVaultError):
    """Operational failure while producing a download, with a generic message."""

    public = True


__all__ = [
    "AuthenticationError",
    "BlobNotFoundError",
    "DeliveryError",
    "ForbiddenError",
    "InvalidRequestError",
    "InvalidTransitionError",
    "MalformedDocumentError",
    "NotFoundError",
    "RecordStoreError",
    "ScriptVaultError",
    "StorageError",
]

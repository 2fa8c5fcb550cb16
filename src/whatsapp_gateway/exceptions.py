"""
Gateway errors

Each error carries the HTTP status the API layer answers with.
Provider failures live in ``providers.base.ProviderError``.
"""


class GatewayError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(GatewayError):
    """Request is well-formed but cannot be routed or applied."""

    status_code = 400


class InvalidPhoneNumberError(BadRequestError):
    """Phone number has no digits left after normalization."""


class NotFoundError(GatewayError):
    """Session, message or tenant does not exist."""

    status_code = 404


class ConflictError(GatewayError):
    """Uniqueness violation (duplicate phone, message id or client id)."""

    status_code = 409


class SessionInactiveError(ConflictError):
    """Session exists but is not connected."""


class UnauthorizedError(GatewayError):
    """Missing/invalid credentials or tenant mismatch."""

    status_code = 401


class ForbiddenError(GatewayError):
    """Request authenticated but refused (webhook verification)."""

    status_code = 403

from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class AuthError(AppError):
    """Missing, invalid or expired credential; the connection is refused."""


class AuthorizationError(AppError):
    """Caller is not allowed to act on the target conversation."""


class NotFoundError(AppError):
    pass


class ValidationError(AppError):
    pass


class StoreError(AppError):
    """The persistent store failed; nothing was committed."""

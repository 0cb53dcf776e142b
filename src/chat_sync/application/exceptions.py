from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class FetchError(AppError):
    """A read failed; the view shows an empty/error state."""


class PersistError(AppError):
    """A write failed; optimistic state must be rolled back."""


class ConflictError(PersistError):
    """Uniqueness or foreign-key violation reported by the store."""


class ValidationError(AppError):
    pass


class AuthRequiredError(AppError):
    pass


class ForbiddenError(AppError):
    pass


class NotFoundError(AppError):
    pass

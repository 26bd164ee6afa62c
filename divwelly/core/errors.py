# core/errors.py
from __future__ import annotations
from typing import Optional


class ApiError(Exception):
    """The household API answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @property
    def unauthorized(self) -> bool:
        return self.status_code == 401


class ApiUnavailable(ApiError):
    """The household API could not be reached at all."""

    def __init__(self, message: str = "The household service is unavailable"):
        super().__init__(503, message)


class FormError(ValueError):
    """Input rejected before any request was sent."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class LoginRequired(Exception):
    """No valid session; the page must redirect to /login."""


class HouseholdUnavailable(Exception):
    def __init__(self, household_id: str, message: str, status_code: int = 502):
        super().__init__(message)
        self.household_id = household_id
        self.message = message
        self.status_code = status_code

    @property
    def not_found(self) -> bool:
        return self.status_code == 404

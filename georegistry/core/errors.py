"""
Error taxonomy shared by the identity and location services.

Every error carries the HTTP status it maps to so the application-level
exception handlers can render it without inspecting the concrete type.
"""

from typing import Dict, List, Optional


class RegistryError(Exception):
    """Base class for errors reported at a service boundary."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict:
        return {"success": False, "message": self.message}


class ValidationError(RegistryError):
    """
    Malformed, missing or out-of-range input.

    Collects every violated field instead of stopping at the first one.
    """

    status_code = 400
    default_message = "Validation error"

    def __init__(self, errors: List[Dict[str, str]], message: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(message)

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}])

    @property
    def fields(self) -> List[str]:
        return [error["field"] for error in self.errors]

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class ConflictError(RegistryError):
    """Uniqueness violation, e.g. an email that is already registered."""

    status_code = 409
    default_message = "Resource already exists"


class AuthenticationError(RegistryError):
    """Missing, invalid or expired credential, or a failed login."""

    status_code = 401
    default_message = "Invalid credentials"


class AuthorizationError(RegistryError):
    """Authenticated but not permitted to perform the operation."""

    status_code = 403
    default_message = "Not allowed to perform this operation"


class NotFoundError(RegistryError):
    status_code = 404
    default_message = "Resource not found"


class TransientError(RegistryError):
    """
    Store unavailable or timed out.

    Safe to retry for reads; creating records is not idempotent.
    """

    status_code = 503
    default_message = "Service temporarily unavailable, please retry"

"""
core/errors.py -- Domain error taxonomy for the Catalog API.

Stores and the token layer raise these; api/main.py maps every CatalogError to
the same ErrorResponse envelope using the class-level code and status_code.
None of them is retriable -- each one is surfaced to the caller as-is.

Layer rule: no imports from api/, auth/ or catalog/. The HTTP status lives
here as plain data so auth/ and catalog/ never import FastAPI to raise.
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for every error the API surfaces to callers."""

    code: str = "catalog_error"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class MissingFieldError(CatalogError):
    """One or more required inputs were absent or empty."""

    code = "missing_field"
    status_code = 400

    def __init__(self, fields: list[str]) -> None:
        self.fields = fields
        super().__init__(f"Missing required fields: {', '.join(fields)}")


class DuplicateEmailError(CatalogError):
    code = "duplicate_email"
    status_code = 409

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__("User with this email already exists.")


class InvalidCredentialsError(CatalogError):
    """Unknown email and wrong password share this error (no enumeration)."""

    code = "invalid_credentials"
    status_code = 401

    def __init__(self) -> None:
        super().__init__("Invalid email or password.")


class RegistrationDisabledError(CatalogError):
    code = "registration_disabled"
    status_code = 403

    def __init__(self) -> None:
        super().__init__("Self-registration is disabled.")


class UnauthenticatedError(CatalogError):
    """No usable bearer token.

    reason is for server-side logs only. The response message is identical for
    every subclass so a client cannot tell a forged token from an expired one.
    """

    code = "unauthenticated"
    status_code = 401
    reason = "unauthenticated"

    def __init__(self, message: str = "Authentication required.") -> None:
        super().__init__(message)


class TokenMissingError(UnauthenticatedError):
    reason = "missing"


class TokenInvalidError(UnauthenticatedError):
    reason = "invalid"


class TokenExpiredError(UnauthenticatedError):
    reason = "expired"


class UnauthorizedError(CatalogError):
    """Valid token, but its role does not permit the operation."""

    code = "forbidden"
    status_code = 403

    def __init__(self, required_role: str) -> None:
        self.required_role = required_role
        super().__init__(f"Access denied. Requires role '{required_role}'.")


class NotFoundError(CatalogError):
    code = "not_found"
    status_code = 404

    def __init__(self, resource: str, resource_id: int) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} with ID {resource_id} not found.")

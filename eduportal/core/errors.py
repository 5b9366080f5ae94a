# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Error taxonomy for the portal aggregation layer.

This module defines the exception hierarchy raised by domain services:
- PortalError: Base exception for all portal errors
- UnauthorizedError: No resolvable or authorized caller (401)
- NotFoundError: Referenced entity absent or outside the caller's scope (404)
- ValidationError: Malformed input such as an inverted date range (400)
- InternalError: Collaborator or storage failure (500)

Domain code never builds HTTP responses; the API layer maps these errors
to status codes through ``status_code``.
"""

from fastapi import status


class PortalError(Exception):
    """Base exception for all portal errors.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code.
        status_code: HTTP status the boundary should answer with.
        details: Optional dictionary with additional error context.
        original_error: The underlying exception, if any.
    """

    code = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        original_error: Exception | None = None,
    ):
        """Initialize portal error.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional error context.
            original_error: The underlying exception that caused this error.
        """
        self.message = message
        self.details = details or {}
        self.original_error = original_error
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with details if available."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class UnauthorizedError(PortalError):
    """Raised when the caller has no resolvable or authorized identity."""

    code = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized", details: dict | None = None):
        super().__init__(message, details)


class NotFoundError(PortalError):
    """Raised when an entity does not exist or is outside the caller's scope.

    Attributes:
        entity_type: Kind of entity that was looked up.
        entity_id: Identifier that was looked up.
    """

    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity_type: str, entity_id: str):
        super().__init__(
            f"{entity_type.capitalize()} not found: {entity_id}",
            details={"entity_type": entity_type, "entity_id": entity_id},
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class ValidationError(PortalError):
    """Raised for malformed input (inverted date range, negative horizon...)."""

    code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class InternalError(PortalError):
    """Raised when a collaborator or the storage layer fails."""

    code = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

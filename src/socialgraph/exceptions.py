"""Social graph exceptions.

Domain-specific exceptions raised by the graph stores. Each exception carries
a stable ``kind`` so the transport layer can map failures to its own codes
without inspecting messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Failure classification exposed to callers."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    INTERNAL = "internal"


class SocialGraphError(Exception):
    """Base exception for social graph errors.

    Attributes:
        message: Human-readable error message
        details: Additional error context

    Example:
        >>> raise SocialGraphError("Operation failed", details={"reason": "timeout"})
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(SocialGraphError):
    """Raised when a referenced user or post does not exist.

    Example:
        >>> raise NotFoundError("User 'user-123' not found")
    """

    kind = ErrorKind.NOT_FOUND


class ConflictError(SocialGraphError):
    """Raised when a uniqueness constraint is violated."""

    kind = ErrorKind.CONFLICT


class ValidationError(SocialGraphError):
    """Raised when caller-supplied values break a graph invariant.

    Example:
        >>> raise ValidationError("User cannot follow themselves")
    """

    kind = ErrorKind.VALIDATION


class GraphOperationError(SocialGraphError):
    """Raised when a graph statement or transaction fails."""


class GraphConfigurationError(SocialGraphError):
    """Raised when connection settings are missing at startup."""


class GraphUnavailableError(SocialGraphError):
    """Raised when the database cannot be reached at startup."""

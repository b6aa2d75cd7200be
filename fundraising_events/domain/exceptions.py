"""Domain-specific exceptions. Pure domain layer; no infrastructure."""

from typing import Any, List, Optional


class DomainError(Exception):
    """Base for all domain-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class EventValidationError(DomainError):
    """Raised when an event payload does not satisfy the schema registered for its type."""

    def __init__(self, message: str, errors: Optional[List[Any]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class UnregisteredEventTypeError(EventValidationError):
    """Raised when no payload schema is registered for an event type."""


class MigrationPathNotFoundError(DomainError):
    """Raised when no chain of migrations connects two versions of an event type."""


class InvalidStatusTransitionError(DomainError):
    """Raised when a saga or payout status transition is not allowed."""


class SlugConflictError(DomainError):
    """Raised when a campaign slug is already taken by another campaign."""

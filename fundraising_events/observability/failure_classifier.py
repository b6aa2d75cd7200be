"""Failure categorization for logs and metrics. Maps exceptions to the event pipeline taxonomy."""

from enum import Enum

import httpx
from redis.exceptions import RedisError

from fundraising_events.application.exceptions import (
    ApplicationError,
    EventStoreError,
    RemoteTriggerError,
    SagaFailedError,
)
from fundraising_events.domain.exceptions import (
    DomainError,
    EventValidationError,
    MigrationPathNotFoundError,
)
from fundraising_events.scalability.circuit_breaker import CircuitOpenError
from fundraising_events.security.exceptions import AuthorizationError, SecurityError


class FailureCategory(str, Enum):
    """Taxonomy for failure classification."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    TRANSIENT_REMOTE = "TRANSIENT_REMOTE"
    CIRCUIT_OPEN = "CIRCUIT_OPEN"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    PROCESSOR_FAILURE = "PROCESSOR_FAILURE"
    SAGA_FAILURE = "SAGA_FAILURE"
    MIGRATION_FAILURE = "MIGRATION_FAILURE"
    AUTHORIZATION = "AUTHORIZATION"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


class FailureClassifier:
    """
    Classifies exceptions into FailureCategory. Callers attach the category to
    log records and metrics.
    """

    @staticmethod
    def classify(exception: BaseException) -> FailureCategory:
        """Map exception to FailureCategory. Unknown -> UNEXPECTED_ERROR."""
        if isinstance(exception, EventValidationError):
            return FailureCategory.VALIDATION_ERROR
        if isinstance(exception, CircuitOpenError):
            return FailureCategory.CIRCUIT_OPEN
        if isinstance(exception, (RemoteTriggerError, httpx.HTTPError, RedisError)):
            return FailureCategory.TRANSIENT_REMOTE
        if isinstance(exception, EventStoreError):
            return FailureCategory.PERSISTENCE_ERROR
        if isinstance(exception, SagaFailedError):
            return FailureCategory.SAGA_FAILURE
        if isinstance(exception, MigrationPathNotFoundError):
            return FailureCategory.MIGRATION_FAILURE
        if isinstance(exception, (AuthorizationError, SecurityError)):
            return FailureCategory.AUTHORIZATION
        if isinstance(exception, (DomainError, ApplicationError)):
            return FailureCategory.PROCESSOR_FAILURE
        return FailureCategory.UNEXPECTED_ERROR

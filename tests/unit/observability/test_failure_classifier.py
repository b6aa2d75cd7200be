"""FailureClassifier maps pipeline exceptions to categories."""

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from fundraising_events.application.exceptions import (
    EventStoreError,
    RecordNotFoundError,
    RemoteTriggerError,
    SagaFailedError,
)
from fundraising_events.domain.exceptions import (
    EventValidationError,
    InvalidStatusTransitionError,
    MigrationPathNotFoundError,
)
from fundraising_events.observability.failure_classifier import FailureCategory, FailureClassifier
from fundraising_events.scalability.circuit_breaker import CircuitOpenError
from fundraising_events.security.exceptions import AuthorizationError


@pytest.mark.parametrize(
    "error,category",
    [
        (EventValidationError("bad"), FailureCategory.VALIDATION_ERROR),
        (CircuitOpenError("remote"), FailureCategory.CIRCUIT_OPEN),
        (RemoteTriggerError("500"), FailureCategory.TRANSIENT_REMOTE),
        (httpx.ConnectError("down"), FailureCategory.TRANSIENT_REMOTE),
        (RedisConnectionError("down"), FailureCategory.TRANSIENT_REMOTE),
        (EventStoreError("disk"), FailureCategory.PERSISTENCE_ERROR),
        (SagaFailedError("x", saga_id="s", failed_step="a"), FailureCategory.SAGA_FAILURE),
        (MigrationPathNotFoundError("x"), FailureCategory.MIGRATION_FAILURE),
        (AuthorizationError("no"), FailureCategory.AUTHORIZATION),
        (InvalidStatusTransitionError("x"), FailureCategory.PROCESSOR_FAILURE),
        (RecordNotFoundError("x"), FailureCategory.PROCESSOR_FAILURE),
        (KeyError("x"), FailureCategory.UNEXPECTED_ERROR),
    ],
)
def test_classify(error, category):
    assert FailureClassifier.classify(error) == category

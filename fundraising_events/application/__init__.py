# Application layer: bus, middleware, processors and sagas that orchestrate domain and infrastructure.

from fundraising_events.application.exceptions import (
    ApplicationError,
    EventBusNotConnectedError,
    EventStoreError,
    RecordNotFoundError,
    RemoteTriggerError,
    ReplayNotEnabledError,
    SagaFailedError,
)
from fundraising_events.application.ports import (
    AuditSink,
    ChangeFeed,
    EventHandler,
    EventStore,
    FunctionInvoker,
    InvocationResult,
    RowStore,
)

__all__ = [
    "ApplicationError",
    "AuditSink",
    "ChangeFeed",
    "EventBusNotConnectedError",
    "EventHandler",
    "EventStore",
    "EventStoreError",
    "FunctionInvoker",
    "InvocationResult",
    "RecordNotFoundError",
    "RemoteTriggerError",
    "ReplayNotEnabledError",
    "RowStore",
    "SagaFailedError",
]

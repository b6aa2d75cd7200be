"""Application-layer exceptions. Do not reuse domain exceptions."""


class ApplicationError(Exception):
    """Base for all application-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class EventBusNotConnectedError(ApplicationError):
    """Raised when publishing on a bus that is not connected."""


class ReplayNotEnabledError(ApplicationError):
    """Raised when replay is requested but the bus has replay disabled or no event store."""


class EventStoreError(ApplicationError):
    """Raised when the event store cannot persist or read events. Publishing fails with it."""


class RemoteTriggerError(ApplicationError):
    """Raised when the remote processing function returns an error."""


class RecordNotFoundError(ApplicationError):
    """Raised when a row a processor must update does not exist."""


class SagaFailedError(ApplicationError):
    """Raised after a saga step failed and compensation has run."""

    def __init__(self, message: str, saga_id: str, failed_step: str) -> None:
        super().__init__(message)
        self.saga_id = saga_id
        self.failed_step = failed_step

"""Saga orchestration: ordered steps, persisted progress, reverse compensation."""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from fundraising_events.application.exceptions import SagaFailedError
from fundraising_events.application.ports import RowStore
from fundraising_events.domain.models.event import utc_now
from fundraising_events.domain.models.saga import SagaStatus, SagaStepStatus, validate_saga_transition
from fundraising_events.observability.metrics import EventMetricsCollector

logger = logging.getLogger(__name__)

SAGA_INSTANCES = "saga_instances"
SAGA_STEPS = "saga_steps"

StepAction = Callable[[], Awaitable[None]]


async def _noop() -> None:
    return None


@dataclass(frozen=True)
class SagaStep:
    name: str
    execute: StepAction
    compensate: StepAction = _noop


class SagaOrchestrator:
    """
    Runs steps strictly in declared order. Each step gets a saga_steps row that moves
    pending -> completed | failed. On failure, completed steps are compensated in reverse
    (a failing compensation is logged and the rest still run), the saga ends `failed` and
    SagaFailedError is raised with the step error as its cause.
    """

    def __init__(
        self,
        store: RowStore,
        saga_type: str,
        aggregate_id: str,
        data: Optional[Dict[str, Any]] = None,
        steps: Sequence[SagaStep] = (),
        *,
        metrics: Optional[EventMetricsCollector] = None,
    ) -> None:
        self._store = store
        self._saga_type = saga_type
        self._aggregate_id = aggregate_id
        self._data = dict(data or {})
        self._steps = list(steps)
        self._metrics = metrics
        self._saga_id: Optional[str] = None
        self._status = SagaStatus.PENDING
        self._completed: List[Tuple[SagaStep, str]] = []

    @property
    def saga_id(self) -> Optional[str]:
        return self._saga_id

    @property
    def status(self) -> SagaStatus:
        return self._status

    async def _set_status(self, new: SagaStatus, **values: Any) -> None:
        validate_saga_transition(self._status, new)
        self._status = new
        await self._store.update(
            SAGA_INSTANCES,
            {"status": new.value, "updated_at": utc_now(), **values},
            {"id": self._saga_id},
        )

    async def execute(self) -> str:
        """Run the saga to completion. Returns the saga id."""
        rows = await self._store.insert(
            SAGA_INSTANCES,
            {
                "saga_type": self._saga_type,
                "aggregate_id": self._aggregate_id,
                "current_step": 0,
                "status": SagaStatus.PENDING.value,
                "data": self._data,
                "started_at": utc_now(),
            },
        )
        self._saga_id = rows[0]["id"]
        if self._metrics is not None:
            self._metrics.record_saga_started()
        logger.info(
            "saga_started",
            extra={"saga_id": self._saga_id, "saga_type": self._saga_type, "aggregate_id": self._aggregate_id},
        )
        await self._set_status(SagaStatus.IN_PROGRESS)

        for number, step in enumerate(self._steps, start=1):
            step_rows = await self._store.insert(
                SAGA_STEPS,
                {
                    "saga_id": self._saga_id,
                    "step_name": step.name,
                    "step_number": number,
                    "status": SagaStepStatus.PENDING.value,
                },
            )
            step_id = step_rows[0]["id"]
            try:
                await step.execute()
            except Exception as e:
                await self._store.update(
                    SAGA_STEPS,
                    {"status": SagaStepStatus.FAILED.value, "error_message": str(e), "executed_at": utc_now()},
                    {"id": step_id},
                )
                logger.error(
                    "saga_step_failed",
                    extra={"saga_id": self._saga_id, "step": step.name, "error": str(e)},
                )
                await self._compensate(str(e))
                raise SagaFailedError(
                    f"Saga {self._saga_type} failed at step '{step.name}': {e}",
                    saga_id=self._saga_id,
                    failed_step=step.name,
                ) from e
            await self._store.update(
                SAGA_STEPS,
                {"status": SagaStepStatus.COMPLETED.value, "executed_at": utc_now()},
                {"id": step_id},
            )
            self._completed.append((step, step_id))
            await self._store.update(
                SAGA_INSTANCES, {"current_step": number, "updated_at": utc_now()}, {"id": self._saga_id}
            )

        await self._set_status(SagaStatus.COMPLETED, completed_at=utc_now())
        if self._metrics is not None:
            self._metrics.record_saga_completed(len(self._steps))
        logger.info("saga_completed", extra={"saga_id": self._saga_id, "saga_type": self._saga_type})
        return self._saga_id

    async def _compensate(self, error_message: str) -> None:
        await self._set_status(SagaStatus.COMPENSATING, error_message=error_message)
        all_compensated = True
        for step, step_id in reversed(self._completed):
            try:
                await step.compensate()
            except Exception as e:
                all_compensated = False
                logger.error(
                    "saga_compensation_failed",
                    extra={"saga_id": self._saga_id, "step": step.name, "error": str(e)},
                )
                continue
            await self._store.update(
                SAGA_STEPS,
                {"status": SagaStepStatus.COMPENSATED.value, "compensated_at": utc_now()},
                {"id": step_id},
            )
            logger.info("saga_step_compensated", extra={"saga_id": self._saga_id, "step": step.name})
        await self._set_status(SagaStatus.FAILED, completed_at=utc_now())
        if self._metrics is not None:
            self._metrics.record_saga_failed(len(self._completed), all_compensated)

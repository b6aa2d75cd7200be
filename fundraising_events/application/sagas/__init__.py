from fundraising_events.application.sagas.base import SagaOrchestrator, SagaStep
from fundraising_events.application.sagas.campaign_creation import (
    CampaignCreationSaga,
    CampaignCreationSagaHandler,
)

__all__ = ["CampaignCreationSaga", "CampaignCreationSagaHandler", "SagaOrchestrator", "SagaStep"]

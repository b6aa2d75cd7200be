# fundraising_events/core/context.py

import contextvars

correlation_id_ctx = contextvars.ContextVar("correlation_id", default=None)
event_id_ctx = contextvars.ContextVar("event_id", default=None)

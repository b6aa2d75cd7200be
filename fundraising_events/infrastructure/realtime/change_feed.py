# fundraising_events/infrastructure/realtime/change_feed.py

import logging
from typing import Dict, List

from fundraising_events.application.ports import Row, RowCallback, Unsubscribe

logger = logging.getLogger(__name__)


class InProcessChangeFeed:
    """
    Insert notifications inside one process. The row store calls notify() after
    every committed insert; subscribers receive a copy of each row.
    A failing subscriber is logged and does not affect the others.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[RowCallback]] = {}

    async def subscribe(self, table: str, callback: RowCallback) -> Unsubscribe:
        self._subscribers.setdefault(table, []).append(callback)

        async def unsubscribe() -> None:
            callbacks = self._subscribers.get(table, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    async def notify(self, table: str, row: Row) -> None:
        for callback in list(self._subscribers.get(table, [])):
            try:
                await callback(dict(row))
            except Exception as e:
                logger.error(
                    "change_feed_subscriber_failed",
                    extra={"table": table, "error": str(e)},
                )

    def subscriber_count(self, table: str) -> int:
        return len(self._subscribers.get(table, []))

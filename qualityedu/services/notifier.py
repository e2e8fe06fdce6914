"""Fire-and-forget email notifications.

Services depend on the ``Notifier`` protocol; the production
implementation only enqueues onto the ``email`` task queue and the
worker does the SMTP work.  A failed enqueue is logged and swallowed:
a notification must never turn a successful registration, approval or
reset request into an error.
"""

from __future__ import annotations

import logging
from typing import Protocol

from qualityedu.core.metrics import NOTIFICATIONS_ENQUEUED
from qualityedu.services.task_queue import TaskQueue, task_queue

logger = logging.getLogger(__name__)

EMAIL_QUEUE = "email"


class Notifier(Protocol):
    async def notify(self, template: str, to: str, params: dict[str, str]) -> None: ...


class QueueNotifier:
    def __init__(self, queue: TaskQueue) -> None:
        self._queue = queue

    async def notify(self, template: str, to: str, params: dict[str, str]) -> None:
        try:
            task = await self._queue.enqueue(
                EMAIL_QUEUE, {"template": template, "to": to, "params": params}
            )
        except Exception:
            NOTIFICATIONS_ENQUEUED.labels(template=template, outcome="failed").inc()
            logger.exception("Failed to enqueue %s notification", template)
            return
        NOTIFICATIONS_ENQUEUED.labels(template=template, outcome="queued").inc()
        logger.info("Queued %s notification task=%s", template, task.id)


notifier: Notifier = QueueNotifier(task_queue)

"""Background worker process.

RUN:  python -m qualityedu.worker

Same image as the API, different command.  Polls every registered queue,
hands each task to its handler, and logs the outcome.  A failing handler
is logged with its traceback and the loop moves on.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from qualityedu.core.config import SETTINGS
from qualityedu.core.logging import setup_logging
from qualityedu.core.metrics import QUEUE_DEPTH
from qualityedu.services import mailer
from qualityedu.services.notifier import EMAIL_QUEUE
from qualityedu.services.task_queue import task_queue

TaskHandler = Callable[[dict], Coroutine[Any, Any, None]]

logger = logging.getLogger("qualityedu.worker")

HANDLERS: dict[str, TaskHandler] = {}


def register_handler(queue: str):
    """Decorator: register a coroutine as the handler for a queue."""

    def decorator(func):
        HANDLERS[queue] = func
        return func

    return decorator


@register_handler(EMAIL_QUEUE)
async def handle_email(payload: dict) -> None:
    subject, body = mailer.render(payload["template"], payload.get("params") or {})
    # smtplib blocks; keep it off the event loop.
    await asyncio.to_thread(mailer.send_email, payload["to"], subject, body)


async def process_one(queue_name: str, timeout: int = 1) -> bool:
    """Dequeue and handle a single task.  Returns False when the queue was empty."""
    task = await task_queue.dequeue(queue_name, timeout=timeout)
    if task is None:
        return False

    handler = HANDLERS[queue_name]
    try:
        await handler(task.payload)
        logger.info("Task %s on [%s] completed", task.id, queue_name)
    except Exception:
        logger.exception("Task %s on [%s] failed", task.id, queue_name)
    QUEUE_DEPTH.labels(queue_name=queue_name).set(await task_queue.queue_length(queue_name))
    return True


async def run_worker() -> None:
    queues = list(HANDLERS.keys())
    logger.info("Worker started, listening on queues: %s", queues)

    while True:
        handled = False
        for queue_name in queues:
            handled = await process_one(queue_name) or handled
        if not handled:
            # The in-memory queue returns immediately; avoid a hot loop.
            await asyncio.sleep(0.5)


if __name__ == "__main__":
    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
    asyncio.run(run_worker())

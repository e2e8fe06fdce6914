"""Notifications go onto the email queue; the worker renders and sends them."""

from __future__ import annotations

import asyncio
import logging

import pytest

from qualityedu import worker
from qualityedu.services import mailer
from qualityedu.services.notifier import EMAIL_QUEUE, QueueNotifier
from qualityedu.services.task_queue import InMemoryTaskQueue, task_queue


class BrokenQueue(InMemoryTaskQueue):
    async def enqueue(self, queue: str, payload: dict):
        raise ConnectionError("redis down")


def test_notifier_enqueues_email_task() -> None:
    queue = InMemoryTaskQueue()
    asyncio.run(QueueNotifier(queue).notify("welcome", "a@example.com", {"name": "Ana"}))

    task = asyncio.run(queue.dequeue(EMAIL_QUEUE))
    assert task is not None
    assert task.payload == {"template": "welcome", "to": "a@example.com", "params": {"name": "Ana"}}


def test_notifier_swallows_enqueue_failure(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="qualityedu.services.notifier"):
        asyncio.run(QueueNotifier(BrokenQueue()).notify("welcome", "a@example.com", {}))
    assert "Failed to enqueue welcome notification" in caplog.text


def test_in_memory_queue_is_fifo() -> None:
    queue = InMemoryTaskQueue()

    async def scenario() -> list[int]:
        for i in range(3):
            await queue.enqueue("q", {"n": i})
        assert await queue.queue_length("q") == 3
        out = []
        while (task := await queue.dequeue("q")) is not None:
            out.append(task.payload["n"])
        return out

    assert asyncio.run(scenario()) == [0, 1, 2]


def test_render_fills_params_and_blanks_missing() -> None:
    subject, body = mailer.render("lesson_reviewed", {"name": "Tess", "lesson_title": "Greetings"})
    assert subject == "Lesson Review: Greetings"
    assert "Hello Tess" in body
    assert "{decision}" not in body


def test_render_unknown_template_raises() -> None:
    with pytest.raises(KeyError):
        mailer.render("no_such_template", {})


def test_worker_processes_email_task(monkeypatch: pytest.MonkeyPatch) -> None:
    sent: list[tuple[str, str, str]] = []
    monkeypatch.setattr(mailer, "send_email", lambda to, subject, body: sent.append((to, subject, body)))

    async def scenario() -> tuple[bool, bool]:
        await QueueNotifier(task_queue).notify(
            "password_reset", "a@example.com", {"name": "Ana", "reset_link": "https://x/reset"}
        )
        return await worker.process_one(EMAIL_QUEUE), await worker.process_one(EMAIL_QUEUE)

    handled, handled_again = asyncio.run(scenario())
    assert (handled, handled_again) == (True, False)
    assert sent[0][0] == "a@example.com"
    assert sent[0][1] == "Password Reset Request"
    assert "https://x/reset" in sent[0][2]


def test_worker_survives_failing_handler(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    async def scenario() -> bool:
        await task_queue.enqueue(EMAIL_QUEUE, {"template": "no_such_template", "to": "a@example.com"})
        return await worker.process_one(EMAIL_QUEUE)

    with caplog.at_level(logging.ERROR, logger="qualityedu.worker"):
        assert asyncio.run(scenario()) is True
    assert "failed" in caplog.text


def test_send_email_without_smtp_is_a_no_op() -> None:
    settings = mailer.SETTINGS
    assert settings.smtp_configured is False
    assert mailer.send_email("a@example.com", "s", "b") is False

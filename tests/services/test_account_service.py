from __future__ import annotations

import asyncio

import pytest

from qualityedu.core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from qualityedu.repos.store import memory_store as store
from qualityedu.services import account_service as svc
from qualityedu.services import lesson_service
from qualityedu.services.auth_service import verify_password
from tests.conftest import add_course, add_lesson, add_module, add_principal, identity_for


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, dict]] = []

    async def notify(self, template: str, to: str, params: dict[str, str]) -> None:
        self.sent.append((template, to, params))


def test_approve_pending_teacher() -> None:
    async def scenario() -> None:
        supervisor = identity_for(await add_principal("SUPERVISOR", status="ACTIVE"))
        teacher = await add_principal("TEACHER")
        notifier = RecordingNotifier()

        approved = await svc.approve_account(store, supervisor, notifier, teacher.id)
        assert approved.status == "APPROVED"
        assert str(approved.approved_by) == supervisor.principal_id
        assert approved.approved_at is not None
        assert notifier.sent[0][:2] == ("account_approved", teacher.email)

        with pytest.raises(Conflict):
            await svc.approve_account(store, supervisor, notifier, teacher.id)

    asyncio.run(scenario())


def test_students_are_not_moderated() -> None:
    async def scenario() -> None:
        supervisor = identity_for(await add_principal("SUPERVISOR", status="ACTIVE"))
        student = await add_principal("STUDENT")
        with pytest.raises(ValidationFailed):
            await svc.approve_account(store, supervisor, RecordingNotifier(), student.id)

    asyncio.run(scenario())


def test_reject_requires_reason_and_records_it() -> None:
    async def scenario() -> None:
        supervisor = identity_for(await add_principal("SUPERVISOR", status="ACTIVE"))
        teacher = await add_principal("TEACHER")
        notifier = RecordingNotifier()
        with pytest.raises(ValidationFailed):
            await svc.reject_account(store, supervisor, notifier, teacher.id, "  ")

        rejected = await svc.reject_account(store, supervisor, notifier, teacher.id, "No CV")
        assert rejected.status == "REJECTED"
        assert rejected.rejection_reason == "No CV"
        assert notifier.sent[-1][2]["reason"] == "No CV"

    asyncio.run(scenario())


def test_suspend_and_reactivate() -> None:
    async def scenario() -> None:
        supervisor = identity_for(await add_principal("SUPERVISOR", status="ACTIVE"))
        student = await add_principal("STUDENT")
        teacher = await add_principal("TEACHER", status="ACTIVE")
        notifier = RecordingNotifier()

        suspended = await svc.suspend_account(store, supervisor, notifier, student.id)
        assert suspended.status == "SUSPENDED"
        with pytest.raises(Conflict):
            await svc.suspend_account(store, supervisor, notifier, student.id)
        assert (await svc.reactivate_account(store, supervisor, student.id)).status == "ACTIVE"

        await svc.suspend_account(store, supervisor, notifier, teacher.id)
        assert (await svc.reactivate_account(store, supervisor, teacher.id)).status == "APPROVED"

        with pytest.raises(Conflict):
            await svc.reactivate_account(store, supervisor, teacher.id)

    asyncio.run(scenario())


def test_cannot_suspend_self() -> None:
    async def scenario() -> None:
        me = await add_principal("SUPERVISOR", status="ACTIVE")
        with pytest.raises(Forbidden):
            await svc.suspend_account(store, identity_for(me), RecordingNotifier(), me.id)

    asyncio.run(scenario())


def test_list_accounts_filters_status_case_insensitively() -> None:
    async def scenario() -> None:
        await add_principal("TEACHER")
        await add_principal("TEACHER", status="APPROVED")
        assert len(await svc.list_accounts(store, "TEACHER")) == 2
        assert len(await svc.list_accounts(store, "TEACHER", "pending")) == 1
        with pytest.raises(ValidationFailed):
            await svc.list_accounts(store, "TEACHER", "sleeping")

    asyncio.run(scenario())


def test_profile_access() -> None:
    async def scenario() -> None:
        student = await add_principal("STUDENT")
        other = await add_principal("STUDENT")
        teacher = await add_principal("TEACHER")

        own = await svc.get_profile(
            store, identity_for(student), student.id, kind="STUDENT", readers={"TEACHER"}
        )
        assert own.id == student.id
        assert (
            await svc.get_profile(
                store, identity_for(teacher), student.id, kind="STUDENT", readers={"TEACHER"}
            )
        ).id == student.id
        with pytest.raises(Forbidden):
            await svc.get_profile(
                store, identity_for(other), student.id, kind="STUDENT", readers={"TEACHER"}
            )
        with pytest.raises(NotFound):
            await svc.get_profile(
                store, identity_for(teacher), teacher.id, kind="STUDENT", readers={"TEACHER"}
            )

    asyncio.run(scenario())


def test_update_profile_self_only_and_whitelisted() -> None:
    async def scenario() -> None:
        student = await add_principal("STUDENT")
        updated = await svc.update_profile(
            store,
            identity_for(student),
            student.id,
            {"bio": "Hi", "specialization": ["Spanish"], "status": "SUSPENDED", "email": "x@y.z"},
        )
        assert updated.bio == "Hi"
        assert updated.specialization == ("Spanish",)
        assert updated.status == student.status
        assert updated.email == student.email

        other = await add_principal("SUPERVISOR")
        with pytest.raises(Forbidden):
            await svc.update_profile(store, identity_for(other), student.id, {"bio": "x"})

    asyncio.run(scenario())


def test_seed_dev_supervisor_is_idempotent() -> None:
    async def scenario() -> None:
        created = await svc.seed_dev_supervisor(store, "dev-password-123")
        assert created is not None
        assert created.status == "ACTIVE"
        assert verify_password("dev-password-123", created.password_hash)
        assert await svc.seed_dev_supervisor(store, "dev-password-123") is None

    asyncio.run(scenario())


def test_supervisor_stats_keep_reviews_after_status_changes() -> None:
    async def scenario() -> None:
        supervisor = identity_for(await add_principal("SUPERVISOR", status="ACTIVE"))
        teacher = await add_principal("TEACHER", status="ACTIVE")
        owner = identity_for(teacher)
        module = await add_module(await add_course(teacher))
        approved = await add_lesson(module, order=1, status="UNDER_REVIEW")
        rejected = await add_lesson(module, order=2, status="UNDER_REVIEW")
        await add_lesson(module, order=3, status="UNDER_REVIEW")
        notifier = RecordingNotifier()

        await lesson_service.review_lesson(store, supervisor, notifier, approved.id, approve=True)
        await lesson_service.review_lesson(
            store, supervisor, notifier, rejected.id, approve=False, reason="Too short"
        )
        # the teacher takes the approved lesson back to draft and resubmits the other
        await lesson_service.set_status(store, owner, approved.id, "DRAFT")
        await lesson_service.set_status(store, owner, rejected.id, "UNDER_REVIEW")

        stats = await svc.supervisor_stats(store, supervisor)
        assert stats.completed_reviews == 2
        assert stats.approval_rate == 50.0
        assert stats.pending_reviews == 2
        assert stats.courses_overseen == 1

        other = identity_for(await add_principal("SUPERVISOR", status="ACTIVE"))
        assert (await svc.supervisor_stats(store, other)).completed_reviews == 0

    asyncio.run(scenario())

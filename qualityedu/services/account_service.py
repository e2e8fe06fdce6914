"""Account moderation, profiles, and supervisor statistics."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from uuid import UUID

from qualityedu.core.config import SETTINGS
from qualityedu.core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from qualityedu.models.identity import Identity
from qualityedu.models.principal import ACCOUNT_STATUSES, Principal
from qualityedu.repos.store import Store
from qualityedu.services.access import (
    check_self_or_role,
    model_fields,
    now_ts,
    principal_uuid,
)
from qualityedu.services.auth_service import hash_password
from qualityedu.services.notifier import Notifier

logger = logging.getLogger(__name__)

SEED_SUPERVISOR_EMAIL = "supervisor@qualityedu.dev"

PROFILE_FIELDS = frozenset(
    {
        "first_name",
        "last_name",
        "phone",
        "bio",
        "institution",
        "department",
        "qualifications",
        "experience",
        "specialization",
        "language_to_learn",
        "language_known",
        "profile_image",
    }
)

# Kinds that go through supervisor approval.
MODERATED_KINDS = frozenset({"TEACHER", "SUPERVISOR"})


@dataclass(frozen=True, slots=True)
class SupervisorStats:
    teachers_supervised: int
    courses_overseen: int
    students_impacted: int
    completed_reviews: int
    pending_reviews: int
    approval_rate: float


async def get_account(store: Store, principal_id: UUID) -> Principal:
    principal = await store.principals.get_by_id(principal_id)
    if principal is None:
        raise NotFound("Account not found")
    return principal


async def list_accounts(store: Store, kind: str, status: str | None = None) -> list[Principal]:
    if status is not None:
        status = status.upper()
        if status not in ACCOUNT_STATUSES:
            raise ValidationFailed(
                f"status must be one of {'|'.join(ACCOUNT_STATUSES)} (got {status!r})"
            )
    return await store.principals.list_by_kind(kind, status)


async def get_profile(
    store: Store,
    identity: Identity,
    principal_id: UUID,
    *,
    kind: str,
    readers: set[str],
) -> Principal:
    """A principal's own profile, or anyone's if the caller holds a reader role."""
    check_self_or_role(identity, principal_id, readers)
    principal = await get_account(store, principal_id)
    if principal.kind != kind:
        raise NotFound("Account not found")
    return principal


async def update_profile(
    store: Store, identity: Identity, principal_id: UUID, changes: dict
) -> Principal:
    if not identity.owns(principal_id):
        raise Forbidden("You can only update your own profile")
    principal = await get_account(store, principal_id)
    changes = {k: v for k, v in model_fields(changes).items() if k in PROFILE_FIELDS}
    updated = replace(principal, **changes, updated_at=now_ts())
    await store.principals.save(updated)
    logger.info("Profile updated principal_id=%s fields=%s", principal_id, sorted(changes))
    return updated


async def _moderated(store: Store, principal_id: UUID) -> Principal:
    principal = await get_account(store, principal_id)
    if principal.kind not in MODERATED_KINDS:
        raise ValidationFailed(f"{principal.kind.lower()} accounts are not moderated")
    return principal


async def approve_account(
    store: Store, identity: Identity, notifier: Notifier, principal_id: UUID
) -> Principal:
    principal = await _moderated(store, principal_id)
    if principal.status != "PENDING":
        raise Conflict(f"Only pending accounts can be approved (status is {principal.status})")

    now = now_ts()
    updated = replace(
        principal,
        status="APPROVED",
        approved_by=principal_uuid(identity),
        approved_at=now,
        rejection_reason=None,
        updated_at=now,
    )
    await store.principals.save(updated)
    logger.info("Account approved principal_id=%s by=%s", principal.id, identity.principal_id)
    await notifier.notify(
        "account_approved",
        principal.email,
        {
            "name": principal.display_name,
            "kind": principal.kind.lower(),
            "login_url": f"{SETTINGS.frontend_url}/login",
        },
    )
    return updated


async def reject_account(
    store: Store, identity: Identity, notifier: Notifier, principal_id: UUID, reason: str
) -> Principal:
    if not reason or not reason.strip():
        raise ValidationFailed("A reason is required to reject an account")
    principal = await _moderated(store, principal_id)
    if principal.status == "REJECTED":
        raise Conflict("Account is already rejected")

    updated = replace(
        principal, status="REJECTED", rejection_reason=reason.strip(), updated_at=now_ts()
    )
    await store.principals.save(updated)
    logger.info("Account rejected principal_id=%s by=%s", principal.id, identity.principal_id)
    await notifier.notify(
        "account_rejected",
        principal.email,
        {
            "name": principal.display_name,
            "kind": principal.kind.lower(),
            "reason": updated.rejection_reason or "",
        },
    )
    return updated


async def suspend_account(
    store: Store, identity: Identity, notifier: Notifier, principal_id: UUID
) -> Principal:
    principal = await get_account(store, principal_id)
    if identity.owns(principal.id):
        raise Forbidden("You cannot suspend your own account")
    if principal.status == "SUSPENDED":
        raise Conflict("Account is already suspended")

    updated = replace(principal, status="SUSPENDED", updated_at=now_ts())
    await store.principals.save(updated)
    logger.info("Account suspended principal_id=%s by=%s", principal.id, identity.principal_id)
    await notifier.notify("account_suspended", principal.email, {"name": principal.display_name})
    return updated


async def reactivate_account(store: Store, identity: Identity, principal_id: UUID) -> Principal:
    principal = await get_account(store, principal_id)
    if principal.status not in ("SUSPENDED", "INACTIVE"):
        raise Conflict(
            f"Only suspended or inactive accounts can be reactivated (status is {principal.status})"
        )

    status = "ACTIVE" if principal.kind == "STUDENT" else "APPROVED"
    updated = replace(principal, status=status, updated_at=now_ts())  # type: ignore[arg-type]
    await store.principals.save(updated)
    logger.info("Account reactivated principal_id=%s by=%s", principal.id, identity.principal_id)
    return updated


async def supervisor_stats(store: Store, identity: Identity) -> SupervisorStats:
    supervisor_id = principal_uuid(identity)

    teachers = await store.principals.list_by_kind("TEACHER")
    courses = await store.courses.list_all()
    students: set[UUID] = set()
    for course in courses:
        students.update(e.student_id for e in await store.enrollments.list_by_course(course.id))

    # Counted whatever the lesson's current status; only a rejection sets
    # rejection_reason.
    reviewed = []
    for course in courses:
        reviewed.extend(
            x for x in await store.lessons.list_by_course(course.id) if x.reviewed_by == supervisor_id
        )
    approved = sum(1 for x in reviewed if x.rejection_reason is None)
    pending = await store.lessons.list_by_status("UNDER_REVIEW")

    return SupervisorStats(
        teachers_supervised=sum(1 for t in teachers if t.approved_by == supervisor_id),
        courses_overseen=len(courses),
        students_impacted=len(students),
        completed_reviews=len(reviewed),
        pending_reviews=len(pending),
        approval_rate=round(approved * 100 / len(reviewed), 1) if reviewed else 0.0,
    )


async def seed_dev_supervisor(store: Store, password: str) -> Principal | None:
    """Create the development supervisor if missing.  Returns it when created."""
    if await store.principals.get_by_email(SEED_SUPERVISOR_EMAIL) is not None:
        return None
    principal = replace(
        Principal.new(
            kind="SUPERVISOR",
            email=SEED_SUPERVISOR_EMAIL,
            password_hash=hash_password(password),
            created_at=now_ts(),
            first_name="Dev",
            last_name="Supervisor",
        ),
        status="ACTIVE",
    )
    await store.principals.add(principal)
    logger.info("Seeded dev supervisor principal_id=%s", principal.id)
    return principal

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, status

from qualityedu.api.auth import login_principal, register_principal
from qualityedu.api.dependencies import (
    AuthenticatorDep,
    NotifierDep,
    StoreDep,
    SupervisorOnly,
)
from qualityedu.api.envelope import ApiResponse, ok
from qualityedu.api.schemas import (
    LessonOut,
    LoginIn,
    PrincipalOut,
    ProfileUpdateIn,
    RegisterIn,
    RejectIn,
    SupervisorStatsOut,
)
from qualityedu.services import account_service, lesson_service

router = APIRouter(prefix="/api/supervisor", tags=["supervisor"])


# --- public -------------------------------------------------------------------


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterIn, auth: AuthenticatorDep) -> ApiResponse:
    return ok(
        await register_principal(auth, payload, "SUPERVISOR"),
        "Registration received. Your application is under review.",
    )


@router.post("/login")
async def login(payload: LoginIn, auth: AuthenticatorDep) -> ApiResponse:
    return ok(await login_principal(auth, payload, "SUPERVISOR"), "Login successful")


# --- profile ------------------------------------------------------------------


@router.get("/profile/{supervisor_id}")
async def get_profile(
    supervisor_id: UUID, identity: SupervisorOnly, store: StoreDep
) -> ApiResponse:
    principal = await account_service.get_profile(
        store, identity, supervisor_id, kind="SUPERVISOR", readers={"SUPERVISOR"}
    )
    return ok(PrincipalOut.model_validate(principal))


@router.put("/profile/{supervisor_id}")
async def update_profile(
    supervisor_id: UUID, payload: ProfileUpdateIn, identity: SupervisorOnly, store: StoreDep
) -> ApiResponse:
    principal = await account_service.update_profile(
        store, identity, supervisor_id, payload.model_dump(exclude_none=True)
    )
    return ok(PrincipalOut.model_validate(principal), "Profile updated")


@router.get("/stats")
async def stats(identity: SupervisorOnly, store: StoreDep) -> ApiResponse:
    stats_ = await account_service.supervisor_stats(store, identity)
    return ok(SupervisorStatsOut.model_validate(stats_))


# --- account moderation -------------------------------------------------------


@router.get("/teachers")
async def list_teachers(
    _identity: SupervisorOnly,
    store: StoreDep,
    status_: str | None = Query(default=None, alias="status"),
) -> ApiResponse:
    teachers = await account_service.list_accounts(store, "TEACHER", status_)
    return ok([PrincipalOut.model_validate(t) for t in teachers])


@router.get("/supervisors")
async def list_supervisors(
    _identity: SupervisorOnly,
    store: StoreDep,
    status_: str | None = Query(default=None, alias="status"),
) -> ApiResponse:
    supervisors = await account_service.list_accounts(store, "SUPERVISOR", status_)
    return ok([PrincipalOut.model_validate(s) for s in supervisors])


@router.post("/accounts/{principal_id}/approve")
async def approve_account(
    principal_id: UUID, identity: SupervisorOnly, store: StoreDep, notifier: NotifierDep
) -> ApiResponse:
    principal = await account_service.approve_account(store, identity, notifier, principal_id)
    return ok(PrincipalOut.model_validate(principal), "Account approved")


@router.post("/accounts/{principal_id}/reject")
async def reject_account(
    principal_id: UUID,
    payload: RejectIn,
    identity: SupervisorOnly,
    store: StoreDep,
    notifier: NotifierDep,
) -> ApiResponse:
    principal = await account_service.reject_account(
        store, identity, notifier, principal_id, payload.reason
    )
    return ok(PrincipalOut.model_validate(principal), "Account rejected")


@router.post("/accounts/{principal_id}/suspend")
async def suspend_account(
    principal_id: UUID, identity: SupervisorOnly, store: StoreDep, notifier: NotifierDep
) -> ApiResponse:
    principal = await account_service.suspend_account(store, identity, notifier, principal_id)
    return ok(PrincipalOut.model_validate(principal), "Account suspended")


@router.post("/accounts/{principal_id}/reactivate")
async def reactivate_account(
    principal_id: UUID, identity: SupervisorOnly, store: StoreDep
) -> ApiResponse:
    principal = await account_service.reactivate_account(store, identity, principal_id)
    return ok(PrincipalOut.model_validate(principal), "Account reactivated")


# --- lesson review ------------------------------------------------------------


@router.get("/lessons/pending")
async def pending_lessons(_identity: SupervisorOnly, store: StoreDep) -> ApiResponse:
    lessons = await lesson_service.pending_reviews(store)
    return ok([LessonOut.model_validate(x) for x in lessons])


@router.post("/lessons/{lesson_id}/approve")
async def approve_lesson(
    lesson_id: UUID, identity: SupervisorOnly, store: StoreDep, notifier: NotifierDep
) -> ApiResponse:
    lesson = await lesson_service.review_lesson(
        store, identity, notifier, lesson_id, approve=True
    )
    return ok(LessonOut.model_validate(lesson), "Lesson approved")


@router.post("/lessons/{lesson_id}/reject")
async def reject_lesson(
    lesson_id: UUID,
    payload: RejectIn,
    identity: SupervisorOnly,
    store: StoreDep,
    notifier: NotifierDep,
) -> ApiResponse:
    lesson = await lesson_service.review_lesson(
        store, identity, notifier, lesson_id, approve=False, reason=payload.reason
    )
    return ok(LessonOut.model_validate(lesson), "Lesson rejected")

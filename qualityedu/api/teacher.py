from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, status

from qualityedu.api.auth import login_principal, register_principal
from qualityedu.api.dependencies import AuthenticatorDep, Staff, StoreDep
from qualityedu.api.envelope import ApiResponse, ok
from qualityedu.api.schemas import (
    AtRiskIn,
    EnrollmentOut,
    ForgotPasswordIn,
    LoginIn,
    PrincipalOut,
    ProfileUpdateIn,
    RegisterIn,
    TeacherStudentOut,
)
from qualityedu.services import account_service, enrollment_service
from qualityedu.services.auth_service import FORGOT_PASSWORD_MESSAGE

router = APIRouter(prefix="/api/teacher", tags=["teacher"])


# --- public -------------------------------------------------------------------


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterIn, auth: AuthenticatorDep) -> ApiResponse:
    """Teacher application; the account stays PENDING until a supervisor approves it."""
    return ok(
        await register_principal(auth, payload, "TEACHER"),
        "Registration received. Your application is under review.",
    )


@router.post("/login")
async def login(payload: LoginIn, auth: AuthenticatorDep) -> ApiResponse:
    return ok(await login_principal(auth, payload, "TEACHER"), "Login successful")


@router.post("/forgot-password")
async def forgot_password(payload: ForgotPasswordIn, auth: AuthenticatorDep) -> ApiResponse:
    await auth.forgot_password(payload.email.strip(), kind="TEACHER")
    return ok(message=FORGOT_PASSWORD_MESSAGE)


# --- teacher / supervisor -----------------------------------------------------


@router.get("/profile/{teacher_id}")
async def get_profile(teacher_id: UUID, identity: Staff, store: StoreDep) -> ApiResponse:
    principal = await account_service.get_profile(
        store, identity, teacher_id, kind="TEACHER", readers={"SUPERVISOR"}
    )
    return ok(PrincipalOut.model_validate(principal))


@router.put("/profile/{teacher_id}")
async def update_profile(
    teacher_id: UUID, payload: ProfileUpdateIn, identity: Staff, store: StoreDep
) -> ApiResponse:
    principal = await account_service.update_profile(
        store, identity, teacher_id, payload.model_dump(exclude_none=True)
    )
    return ok(PrincipalOut.model_validate(principal), "Profile updated")


@router.get("/students")
async def list_students(identity: Staff, store: StoreDep) -> ApiResponse:
    students = await enrollment_service.teacher_students(store, identity)
    return ok([TeacherStudentOut.model_validate(s) for s in students])


@router.get("/students/{student_id}")
async def student_details(student_id: UUID, identity: Staff, store: StoreDep) -> ApiResponse:
    details = await enrollment_service.student_details(store, identity, student_id)
    return ok(TeacherStudentOut.model_validate(details))


@router.put("/enrollments/{enrollment_id}/at-risk")
async def flag_at_risk(
    enrollment_id: UUID, payload: AtRiskIn, identity: Staff, store: StoreDep
) -> ApiResponse:
    enrollment = await enrollment_service.set_at_risk(
        store, identity, enrollment_id, payload.at_risk
    )
    return ok(EnrollmentOut.model_validate(enrollment), "Enrollment updated")

"""Account endpoints shared by every principal kind (/api/auth).

``/login`` here is the polymorphic login: any kind may sign in with it.
The teacher and supervisor routers expose kind-restricted variants.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, status

from qualityedu.api.dependencies import AnyRole, AuthenticatorDep, StoreDep
from qualityedu.api.envelope import ApiResponse, ok
from qualityedu.api.schemas import (
    ChangePasswordIn,
    ForgotPasswordIn,
    LoginIn,
    LoginOut,
    PrincipalOut,
    RegisterIn,
    ResetPasswordIn,
)
from qualityedu.models.principal import PrincipalKind
from qualityedu.services import account_service
from qualityedu.services.access import model_fields, principal_uuid
from qualityedu.services.auth_service import FORGOT_PASSWORD_MESSAGE, Authenticator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


async def register_principal(
    auth: Authenticator, payload: RegisterIn, kind: PrincipalKind
) -> PrincipalOut:
    principal = await auth.register(
        kind=kind,
        email=payload.email.strip(),
        password=payload.password,
        confirm_password=payload.confirm_password,
        username=(payload.username or "").strip() or None,
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
        profile=model_fields(payload.profile()),
    )
    return PrincipalOut.model_validate(principal)


async def login_principal(
    auth: Authenticator, payload: LoginIn, kind: PrincipalKind | None
) -> LoginOut:
    result = await auth.login(payload.email.strip(), payload.password, kind=kind)
    return LoginOut(
        token=result.token,
        expires_at=result.expires_at,
        user=PrincipalOut.model_validate(result.principal),
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterIn, auth: AuthenticatorDep) -> ApiResponse:
    """Student registration; the account is active immediately."""
    return ok(await register_principal(auth, payload, "STUDENT"), "Registration successful")


@router.post("/login")
async def login(payload: LoginIn, auth: AuthenticatorDep) -> ApiResponse:
    return ok(await login_principal(auth, payload, None), "Login successful")


@router.post("/forgot-password")
async def forgot_password(payload: ForgotPasswordIn, auth: AuthenticatorDep) -> ApiResponse:
    await auth.forgot_password(payload.email.strip())
    return ok(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password")
async def reset_password(payload: ResetPasswordIn, auth: AuthenticatorDep) -> ApiResponse:
    await auth.reset_password(payload.token, payload.new_password, payload.confirm_password)
    return ok(message="Password has been reset successfully")


@router.post("/change-password")
async def change_password(
    payload: ChangePasswordIn, identity: AnyRole, auth: AuthenticatorDep
) -> ApiResponse:
    await auth.change_password(
        principal_uuid(identity),
        payload.current_password,
        payload.new_password,
        payload.confirm_password,
    )
    return ok(message="Password changed successfully")


@router.get("/me")
async def me(identity: AnyRole, store: StoreDep) -> ApiResponse:
    principal = await account_service.get_account(store, principal_uuid(identity))
    return ok(PrincipalOut.model_validate(principal))

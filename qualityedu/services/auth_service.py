"""Credential verification, registration, and password reset.

``Authenticator`` receives its collaborators (principal repo, token
codec, notifier) through the constructor; the API builds one per request
around the request's Store.

Login gating order matters and is fixed:
  1. unknown email (or wrong principal kind for a role-specific login)
     -> InvalidCredentials, so existence is never revealed
  2. status not APPROVED/ACTIVE -> AccountNotActive with a status message
  3. password mismatch -> InvalidCredentials
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, replace
from uuid import UUID

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError

from qualityedu.core.config import SETTINGS
from qualityedu.core.errors import (
    AccountNotActive,
    DuplicateAccount,
    InvalidCredentials,
    InvalidOrExpiredResetCode,
    NotFound,
    PasswordMismatch,
)
from qualityedu.core.metrics import AUTH_LOGINS
from qualityedu.models.principal import Principal, PrincipalKind
from qualityedu.repos.principal_repo import PrincipalRepo
from qualityedu.services.notifier import Notifier
from qualityedu.services.token_service import TokenCodec

logger = logging.getLogger(__name__)

_ph = PasswordHasher()

# Verified against when the email is unknown so both failure paths pay
# the same hashing cost.
_DUMMY_HASH = _ph.hash("qualityedu-timing-equalizer")

STATUS_MESSAGES: dict[str, str] = {
    "PENDING": "Your application is still under review. Please wait for approval.",
    "REJECTED": "Your application has been rejected. Please contact support.",
    "SUSPENDED": "Your account has been suspended. Please contact support.",
}
DEFAULT_STATUS_MESSAGE = "Your account is not active. Please contact support."

FORGOT_PASSWORD_MESSAGE = "If an account exists for this email, a reset link has been sent"


def hash_password(plain_password: str) -> str:
    if not plain_password:
        raise ValueError("password must be non-empty")
    return _ph.hash(plain_password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not plain_password or not password_hash:
        return False
    try:
        return _ph.verify(password_hash, plain_password)
    except (VerifyMismatchError, VerificationError, InvalidHash):
        return False


def status_message(status: str) -> str:
    return STATUS_MESSAGES.get(status, DEFAULT_STATUS_MESSAGE)


@dataclass(frozen=True, slots=True)
class LoginResult:
    token: str
    expires_at: int
    principal: Principal


class Authenticator:
    def __init__(
        self,
        repo: PrincipalRepo,
        codec: TokenCodec,
        notifier: Notifier,
        *,
        reset_code_ttl_seconds: int = SETTINGS.reset_code_ttl_seconds,
        frontend_url: str = SETTINGS.frontend_url,
    ) -> None:
        self._repo = repo
        self._codec = codec
        self._notifier = notifier
        self._reset_ttl = reset_code_ttl_seconds
        self._frontend_url = frontend_url

    # --- login -------------------------------------------------------------

    async def login(
        self,
        email: str,
        password: str,
        *,
        kind: PrincipalKind | None = None,
        now: int | None = None,
    ) -> LoginResult:
        now = int(now if now is not None else time.time())
        principal = await self._repo.get_by_email(email)

        if principal is None or (kind is not None and principal.kind != kind):
            verify_password(password, _DUMMY_HASH)
            AUTH_LOGINS.labels(outcome="invalid_credentials").inc()
            logger.info("Login failed: unknown principal kind=%s", kind or "any")
            raise InvalidCredentials()

        if not principal.can_log_in:
            AUTH_LOGINS.labels(outcome="not_active").inc()
            logger.info(
                "Login refused principal_id=%s status=%s", principal.id, principal.status
            )
            raise AccountNotActive(status_message(principal.status))

        if not verify_password(password, principal.password_hash):
            AUTH_LOGINS.labels(outcome="invalid_credentials").inc()
            logger.info("Login failed: bad password principal_id=%s", principal.id)
            raise InvalidCredentials()

        updated = replace(principal, last_login_at=now)
        if principal.kind in ("STUDENT", "TEACHER") and principal.status != "ACTIVE":
            updated = replace(updated, status="ACTIVE", updated_at=now)
        if _ph.check_needs_rehash(principal.password_hash):
            updated = replace(updated, password_hash=_ph.hash(password))
            logger.info("Rehashed password for principal_id=%s", principal.id)
        await self._repo.save(updated)

        token = self._codec.issue(
            subject=updated.email,
            principal_id=str(updated.id),
            principal_type=updated.kind,
            display={"firstName": updated.first_name, "lastName": updated.last_name},
            now=now,
        )
        AUTH_LOGINS.labels(outcome="success").inc()
        logger.info("Login succeeded principal_id=%s kind=%s", updated.id, updated.kind)
        return LoginResult(
            token=token,
            expires_at=now + self._codec.ttl_seconds,
            principal=updated,
        )

    # --- registration ------------------------------------------------------

    async def register(
        self,
        *,
        kind: PrincipalKind,
        email: str,
        password: str,
        confirm_password: str | None = None,
        username: str | None = None,
        first_name: str = "",
        last_name: str = "",
        profile: dict | None = None,
        now: int | None = None,
    ) -> Principal:
        now = int(now if now is not None else time.time())

        if confirm_password is not None and password != confirm_password:
            raise PasswordMismatch("Password confirmation does not match")
        if await self._repo.get_by_email(email) is not None:
            raise DuplicateAccount("Email already registered")
        if username and await self._repo.get_by_username(username) is not None:
            raise DuplicateAccount("Username already taken")

        principal = Principal.new(
            kind=kind,
            email=email,
            password_hash=hash_password(password),
            created_at=now,
            first_name=first_name,
            last_name=last_name,
            username=username or None,
            **(profile or {}),
        )
        try:
            await self._repo.add(principal)
        except ValueError:
            # Lost a race with a concurrent registration for the same email.
            raise DuplicateAccount("Email already registered") from None

        logger.info(
            "Registered principal_id=%s kind=%s status=%s",
            principal.id,
            principal.kind,
            principal.status,
        )

        params = {"name": principal.display_name, "kind": kind.lower()}
        if principal.status == "PENDING":
            await self._notifier.notify("registration_received", principal.email, params)
        else:
            await self._notifier.notify("welcome", principal.email, params)
        return principal

    # --- password reset ----------------------------------------------------

    async def forgot_password(
        self, email: str, *, kind: PrincipalKind | None = None, now: int | None = None
    ) -> None:
        """Issue a reset code if the account exists.  Silent otherwise."""
        now = int(now if now is not None else time.time())
        principal = await self._repo.get_by_email(email)
        if principal is None or (kind is not None and principal.kind != kind):
            logger.info("Password reset requested for unknown account")
            return

        code = str(uuid.uuid4())
        await self._repo.save(
            replace(
                principal,
                reset_code=code,
                reset_code_expires_at=now + self._reset_ttl,
                updated_at=now,
            )
        )
        await self._notifier.notify(
            "password_reset",
            principal.email,
            {
                "name": principal.display_name,
                "reset_link": f"{self._frontend_url}/reset-password?token={code}",
            },
        )
        logger.info("Password reset code issued principal_id=%s", principal.id)

    async def reset_password(
        self,
        code: str,
        new_password: str,
        confirm_password: str | None = None,
        *,
        now: int | None = None,
    ) -> None:
        now = int(now if now is not None else time.time())
        if confirm_password is not None and new_password != confirm_password:
            raise PasswordMismatch()

        principal = await self._repo.get_by_reset_code(code) if code else None
        if principal is None:
            raise InvalidOrExpiredResetCode()

        if principal.reset_code_expires_at is None or principal.reset_code_expires_at < now:
            await self._repo.save(
                replace(principal, reset_code=None, reset_code_expires_at=None)
            )
            raise InvalidOrExpiredResetCode()

        await self._repo.save(
            replace(
                principal,
                password_hash=hash_password(new_password),
                reset_code=None,
                reset_code_expires_at=None,
                updated_at=now,
            )
        )
        logger.info("Password reset completed principal_id=%s", principal.id)

    async def change_password(
        self,
        principal_id: UUID,
        current_password: str,
        new_password: str,
        confirm_password: str | None = None,
    ) -> None:
        principal = await self._repo.get_by_id(principal_id)
        if principal is None:
            raise NotFound("Account not found")
        if not verify_password(current_password, principal.password_hash):
            raise InvalidCredentials("Current password is incorrect")
        if confirm_password is not None and new_password != confirm_password:
            raise PasswordMismatch()

        await self._repo.save(
            replace(
                principal,
                password_hash=hash_password(new_password),
                updated_at=int(time.time()),
            )
        )
        logger.info("Password changed principal_id=%s", principal.id)

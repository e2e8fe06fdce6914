"""Ownership and resource-level access checks.

Plain functions rather than FastAPI dependencies: they need both the
caller's Identity and the loaded resource, so services call them right
after the lookup.  Supervisors may manage any teacher's content.
"""

from __future__ import annotations

import datetime
from uuid import UUID

from qualityedu.core.errors import Forbidden
from qualityedu.models.identity import Identity


def now_ts() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


def principal_uuid(identity: Identity) -> UUID:
    """The caller's principal id as a UUID; Forbidden if the token had none."""
    try:
        return UUID(str(identity.principal_id))
    except ValueError:
        raise Forbidden("Token does not identify a principal") from None


def check_owner_or_supervisor(
    identity: Identity, owner_id: UUID, *, noun: str = "content"
) -> None:
    if identity.has_role("SUPERVISOR"):
        return
    if identity.has_role("TEACHER") and identity.owns(owner_id):
        return
    raise Forbidden(f"You can only manage your own {noun}")


def check_self_or_role(identity: Identity, principal_id: UUID, roles: set[str]) -> None:
    """Allow a principal to act on its own record, or anyone holding ``roles``."""
    if identity.owns(principal_id):
        return
    if identity.has_any_role(roles):
        return
    raise Forbidden("You can only access your own profile")


def model_fields(changes: dict) -> dict:
    """Convert request lists to the tuples the frozen models store."""
    return {k: tuple(v) if isinstance(v, list) else v for k, v in changes.items()}

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from qualityedu.models.identity import Identity
from qualityedu.repos.store import Store, get_store
from qualityedu.services.auth_service import Authenticator
from qualityedu.services.notifier import Notifier, notifier
from qualityedu.services.token_service import token_codec

logger = logging.getLogger(__name__)


def require_identity(request: Request) -> Identity:
    """Return the Identity installed by IdentityMiddleware, or 401.

    An expired or tampered token never produced an identity, so it lands
    here as anonymous too.
    """
    identity = getattr(request.state, "identity", None)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity


def require_any_role(roles: set[str]):
    """Dependency factory: demand at least one of the given roles.

    Usage: Depends(require_any_role({"TEACHER", "SUPERVISOR"}))
    """

    def _guard(
        identity: Annotated[Identity, Depends(require_identity)],
    ) -> Identity:
        if not identity.has_any_role(roles):
            logger.warning(
                "Access denied: subject=%s role=%s required_any=%s",
                identity.subject,
                identity.role,
                sorted(roles),
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return identity

    return _guard


def require_role(role: str):
    return require_any_role({role})


def get_notifier() -> Notifier:
    return notifier


def get_authenticator(
    store: Annotated[Store, Depends(get_store)],
    notifier_: Annotated[Notifier, Depends(get_notifier)],
) -> Authenticator:
    return Authenticator(store.principals, token_codec, notifier_)


AnyRole = Annotated[Identity, Depends(require_identity)]
StudentOnly = Annotated[Identity, Depends(require_role("STUDENT"))]
SupervisorOnly = Annotated[Identity, Depends(require_role("SUPERVISOR"))]
Staff = Annotated[Identity, Depends(require_any_role({"TEACHER", "SUPERVISOR"}))]
StoreDep = Annotated[Store, Depends(get_store)]
NotifierDep = Annotated[Notifier, Depends(get_notifier)]
AuthenticatorDep = Annotated[Authenticator, Depends(get_authenticator)]

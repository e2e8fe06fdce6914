from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Role = Literal["STUDENT", "TEACHER", "SUPERVISOR"]

# principalType claim value (upper-cased) -> role.  USER is the legacy
# name for students.
_ROLE_BY_TYPE: dict[str, Role] = {
    "SUPERVISOR": "SUPERVISOR",
    "TEACHER": "TEACHER",
    "STUDENT": "STUDENT",
    "USER": "STUDENT",
}


def role_for_principal_type(principal_type: str | None) -> Role:
    """Map a token's principalType claim to exactly one role.

    Case-insensitive.  Absent or unrecognized values map to STUDENT, the
    least-privileged role.
    """
    if not principal_type:
        return "STUDENT"
    return _ROLE_BY_TYPE.get(principal_type.strip().upper(), "STUDENT")


@dataclass(frozen=True, slots=True)
class Identity:
    """Request-scoped identity installed by IdentityMiddleware.

    subject:      principal email (the token's ``sub``)
    role:         resolved role used by authorization guards
    principal_id: the principal's id from the token, when present
    """

    subject: str
    role: Role
    principal_id: str | None = None

    def has_role(self, role: str) -> bool:
        return self.role == role

    def has_any_role(self, roles: set[str]) -> bool:
        return self.role in roles

    def owns(self, owner_id: object) -> bool:
        return self.principal_id is not None and self.principal_id == str(owner_id)

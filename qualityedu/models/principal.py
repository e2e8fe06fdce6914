from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from uuid import UUID, uuid4

PrincipalKind = Literal["STUDENT", "TEACHER", "SUPERVISOR"]
AccountStatus = Literal[
    "PENDING", "APPROVED", "ACTIVE", "REJECTED", "SUSPENDED", "INACTIVE"
]

PRINCIPAL_KINDS: tuple[str, ...] = ("STUDENT", "TEACHER", "SUPERVISOR")
ACCOUNT_STATUSES: tuple[str, ...] = (
    "PENDING",
    "APPROVED",
    "ACTIVE",
    "REJECTED",
    "SUSPENDED",
    "INACTIVE",
)

# Only these statuses may log in.
LOGIN_STATUSES = frozenset({"APPROVED", "ACTIVE"})

# Students are live on registration; teachers and supervisors wait for review.
INITIAL_STATUS: dict[str, str] = {
    "STUDENT": "ACTIVE",
    "TEACHER": "PENDING",
    "SUPERVISOR": "PENDING",
}


@dataclass(frozen=True, slots=True)
class Principal:
    """A student, teacher, or supervisor account.

    One record type for all three kinds, discriminated by ``kind``, so a
    login resolves "who owns this email" with a single lookup.  Fields
    that only make sense for some kinds (username for students,
    institution/qualifications for staff) are simply left empty.
    """

    id: UUID
    kind: PrincipalKind
    email: str
    password_hash: str
    first_name: str = ""
    last_name: str = ""
    username: str | None = None
    status: AccountStatus = "ACTIVE"
    phone: str = ""
    bio: str = ""
    institution: str = ""
    department: str = ""
    qualifications: str = ""
    experience: str = ""
    specialization: tuple[str, ...] = ()
    language_to_learn: str = ""
    language_known: str = ""
    profile_image: str = ""
    created_at: int = 0
    updated_at: int | None = None
    last_login_at: int | None = None
    approved_by: UUID | None = None
    approved_at: int | None = None
    rejection_reason: str | None = None
    reset_code: str | None = None
    reset_code_expires_at: int | None = None

    @property
    def display_name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.username or self.email

    @property
    def can_log_in(self) -> bool:
        return self.status in LOGIN_STATUSES

    @staticmethod
    def new(
        *,
        kind: PrincipalKind,
        email: str,
        password_hash: str,
        created_at: int,
        first_name: str = "",
        last_name: str = "",
        username: str | None = None,
        **profile: object,
    ) -> Principal:
        return Principal(
            id=uuid4(),
            kind=kind,
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            username=username,
            status=INITIAL_STATUS[kind],  # type: ignore[arg-type]
            created_at=created_at,
            **profile,  # type: ignore[arg-type]
        )

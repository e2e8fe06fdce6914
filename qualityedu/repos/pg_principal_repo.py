"""PostgreSQL implementation of PrincipalRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from qualityedu.db.tables import PrincipalRow
from qualityedu.models.principal import Principal

_PROFILE_FIELDS = (
    "phone",
    "bio",
    "institution",
    "department",
    "qualifications",
    "experience",
    "language_to_learn",
    "language_known",
    "profile_image",
)


class PgPrincipalRepo:
    """Satisfies the PrincipalRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _one(self, stmt) -> Principal | None:
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_principal(row)

    async def get_by_id(self, principal_id: UUID) -> Principal | None:
        return await self._one(select(PrincipalRow).where(PrincipalRow.id == principal_id))

    async def get_by_email(self, email: str) -> Principal | None:
        return await self._one(select(PrincipalRow).where(PrincipalRow.email == email))

    async def get_by_username(self, username: str) -> Principal | None:
        return await self._one(
            select(PrincipalRow).where(PrincipalRow.username == username)
        )

    async def get_by_reset_code(self, code: str) -> Principal | None:
        return await self._one(
            select(PrincipalRow).where(PrincipalRow.reset_code == code)
        )

    async def add(self, principal: Principal) -> None:
        self._session.add(_principal_to_row(principal))
        try:
            await self._session.flush()
        except IntegrityError as exc:
            raise ValueError("email already exists") from exc

    async def save(self, principal: Principal) -> None:
        await self._session.merge(_principal_to_row(principal))
        await self._session.flush()

    async def list_by_kind(self, kind: str, status: str | None = None) -> list[Principal]:
        stmt = select(PrincipalRow).where(PrincipalRow.kind == kind)
        if status is not None:
            stmt = stmt.where(PrincipalRow.status == status)
        stmt = stmt.order_by(PrincipalRow.created_at)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_principal(r) for r in rows]


def _principal_to_row(p: Principal) -> PrincipalRow:
    profile: dict = {name: getattr(p, name) for name in _PROFILE_FIELDS}
    profile["specialization"] = list(p.specialization)
    return PrincipalRow(
        id=p.id,
        kind=p.kind,
        email=p.email,
        password_hash=p.password_hash,
        username=p.username,
        first_name=p.first_name,
        last_name=p.last_name,
        status=p.status,
        profile=profile,
        created_at=p.created_at,
        updated_at=p.updated_at,
        last_login_at=p.last_login_at,
        approved_by=p.approved_by,
        approved_at=p.approved_at,
        rejection_reason=p.rejection_reason,
        reset_code=p.reset_code,
        reset_code_expires_at=p.reset_code_expires_at,
    )


def _row_to_principal(row: PrincipalRow) -> Principal:
    profile = row.profile or {}
    return Principal(
        id=row.id,
        kind=row.kind,  # type: ignore[arg-type]
        email=row.email,
        password_hash=row.password_hash,
        first_name=row.first_name or "",
        last_name=row.last_name or "",
        username=row.username,
        status=row.status,  # type: ignore[arg-type]
        specialization=tuple(profile.get("specialization") or ()),
        created_at=row.created_at,
        updated_at=row.updated_at,
        last_login_at=row.last_login_at,
        approved_by=row.approved_by,
        approved_at=row.approved_at,
        rejection_reason=row.rejection_reason,
        reset_code=row.reset_code,
        reset_code_expires_at=row.reset_code_expires_at,
        **{name: profile.get(name) or "" for name in _PROFILE_FIELDS},
    )

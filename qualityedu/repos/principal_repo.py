from __future__ import annotations

from typing import Protocol
from uuid import UUID

from qualityedu.models.principal import Principal


class PrincipalRepo(Protocol):
    async def get_by_id(self, principal_id: UUID) -> Principal | None: ...
    async def get_by_email(self, email: str) -> Principal | None: ...
    async def get_by_username(self, username: str) -> Principal | None: ...
    async def get_by_reset_code(self, code: str) -> Principal | None: ...
    async def add(self, principal: Principal) -> None: ...
    async def save(self, principal: Principal) -> None: ...
    async def list_by_kind(
        self, kind: str, status: str | None = None
    ) -> list[Principal]: ...


class InMemoryPrincipalRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Principal] = {}
        self._by_email: dict[str, Principal] = {}

    async def get_by_id(self, principal_id: UUID) -> Principal | None:
        return self._by_id.get(principal_id)

    async def get_by_email(self, email: str) -> Principal | None:
        # Exact match: emails are compared as stored.
        return self._by_email.get(email)

    async def get_by_username(self, username: str) -> Principal | None:
        for p in self._by_id.values():
            if p.username is not None and p.username == username:
                return p
        return None

    async def get_by_reset_code(self, code: str) -> Principal | None:
        for p in self._by_id.values():
            if p.reset_code is not None and p.reset_code == code:
                return p
        return None

    async def add(self, principal: Principal) -> None:
        if principal.email in self._by_email:
            raise ValueError("email already exists")
        self._by_email[principal.email] = principal
        self._by_id[principal.id] = principal

    async def save(self, principal: Principal) -> None:
        previous = self._by_id.get(principal.id)
        if previous is None:
            raise KeyError("principal not found")
        if previous.email != principal.email:
            self._by_email.pop(previous.email, None)
        self._by_id[principal.id] = principal
        self._by_email[principal.email] = principal

    async def list_by_kind(self, kind: str, status: str | None = None) -> list[Principal]:
        found = [
            p
            for p in self._by_id.values()
            if p.kind == kind and (status is None or p.status == status)
        ]
        return sorted(found, key=lambda p: p.created_at)

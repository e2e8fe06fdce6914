from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, status

from qualityedu.api.dependencies import Staff, StoreDep
from qualityedu.api.envelope import ApiResponse, ok
from qualityedu.api.schemas import ModuleIn, ModuleOut, ModuleUpdateIn, ReorderIn, StatusIn
from qualityedu.services import course_service, module_service

router = APIRouter(prefix="/api/modules", tags=["modules"])


def _modules(modules: list) -> list[ModuleOut]:
    return [ModuleOut.model_validate(m) for m in modules]


@router.post("/course/{course_id}", status_code=status.HTTP_201_CREATED)
async def create_module(
    course_id: UUID, payload: ModuleIn, identity: Staff, store: StoreDep
) -> ApiResponse:
    module = await module_service.create_module(
        store, identity, course_id, payload.model_dump(exclude_none=True)
    )
    return ok(ModuleOut.model_validate(module), "Module created")


@router.get("/course/{course_id}")
async def course_modules(course_id: UUID, identity: Staff, store: StoreDep) -> ApiResponse:
    return ok(_modules(await module_service.list_course_modules(store, identity, course_id)))


@router.get("/course/{course_id}/next-order")
async def next_order(course_id: UUID, identity: Staff, store: StoreDep) -> ApiResponse:
    await course_service.get_owned_course(store, identity, course_id)
    return ok({"next_order": await module_service.next_order(store, course_id)})


@router.put("/course/{course_id}/reorder")
async def reorder_modules(
    course_id: UUID, payload: ReorderIn, identity: Staff, store: StoreDep
) -> ApiResponse:
    modules = await module_service.reorder_modules(store, identity, course_id, payload.ids)
    return ok(_modules(modules), "Modules reordered")


@router.get("/teacher")
async def my_modules(identity: Staff, store: StoreDep) -> ApiResponse:
    return ok(_modules(await module_service.list_my_modules(store, identity)))


@router.get("/{module_id}")
async def get_module(module_id: UUID, identity: Staff, store: StoreDep) -> ApiResponse:
    module = await module_service.get_owned_module(store, identity, module_id)
    return ok(ModuleOut.model_validate(module))


@router.put("/{module_id}")
async def update_module(
    module_id: UUID, payload: ModuleUpdateIn, identity: Staff, store: StoreDep
) -> ApiResponse:
    module = await module_service.update_module(
        store, identity, module_id, payload.model_dump(exclude_none=True)
    )
    return ok(ModuleOut.model_validate(module), "Module updated")


@router.patch("/{module_id}/status")
async def module_status(
    module_id: UUID, payload: StatusIn, identity: Staff, store: StoreDep
) -> ApiResponse:
    module = await module_service.set_module_status(
        store, identity, module_id, payload.status.upper()
    )
    return ok(ModuleOut.model_validate(module), "Module status updated")


@router.delete("/{module_id}")
async def delete_module(module_id: UUID, identity: Staff, store: StoreDep) -> ApiResponse:
    await module_service.delete_module(store, identity, module_id)
    return ok(message="Module deleted")

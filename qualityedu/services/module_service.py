from __future__ import annotations

import logging
from dataclasses import replace
from uuid import UUID

from qualityedu.core.errors import Conflict, NotFound, ValidationFailed
from qualityedu.models.course import CONTENT_STATUSES, CourseModule
from qualityedu.models.identity import Identity
from qualityedu.repos.store import Store
from qualityedu.services import course_service
from qualityedu.services.access import (
    check_owner_or_supervisor,
    model_fields,
    now_ts,
    principal_uuid,
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "duration",
        "order",
        "status",
        "cover_image",
        "learning_objectives",
        "prerequisites",
    }
)


def _validate_status(status: str | None) -> None:
    if status is not None and status not in CONTENT_STATUSES:
        raise ValidationFailed(
            f"status must be one of {'|'.join(CONTENT_STATUSES)} (got {status!r})"
        )


async def get_owned_module(store: Store, identity: Identity, module_id: UUID) -> CourseModule:
    module = await store.modules.get(module_id)
    if module is None:
        raise NotFound("Module not found")
    check_owner_or_supervisor(identity, module.teacher_id, noun="modules")
    return module


async def next_order(store: Store, course_id: UUID) -> int:
    modules = await store.modules.list_by_course(course_id)
    return max((m.order for m in modules), default=0) + 1


async def _check_order_free(
    store: Store, course_id: UUID, order: int, *, exclude: UUID | None = None
) -> None:
    for m in await store.modules.list_by_course(course_id):
        if m.order == order and m.id != exclude:
            raise Conflict(f"A module with order {order} already exists")


async def create_module(
    store: Store, identity: Identity, course_id: UUID, fields: dict
) -> CourseModule:
    course = await course_service.get_owned_course(store, identity, course_id)
    fields = {k: v for k, v in model_fields(fields).items() if k in UPDATABLE_FIELDS}
    _validate_status(fields.get("status"))

    order = fields.pop("order", None) or await next_order(store, course.id)
    await _check_order_free(store, course.id, order)

    # The module belongs to the course's teacher even when a supervisor creates it.
    module = CourseModule.new(
        course_id=course.id,
        teacher_id=course.teacher_id,
        order=order,
        created_at=now_ts(),
        **fields,
    )
    await store.modules.add(module)
    await course_service.recount_modules(store, course.id)
    logger.info("Module created module_id=%s course_id=%s order=%d", module.id, course.id, order)
    return module


async def list_course_modules(
    store: Store, identity: Identity, course_id: UUID
) -> list[CourseModule]:
    await course_service.get_owned_course(store, identity, course_id)
    return await store.modules.list_by_course(course_id)


async def list_my_modules(store: Store, identity: Identity) -> list[CourseModule]:
    return await store.modules.list_by_teacher(principal_uuid(identity))


async def update_module(
    store: Store, identity: Identity, module_id: UUID, changes: dict
) -> CourseModule:
    module = await get_owned_module(store, identity, module_id)
    changes = {k: v for k, v in model_fields(changes).items() if k in UPDATABLE_FIELDS}
    _validate_status(changes.get("status"))

    new_order = changes.get("order")
    if new_order is not None and new_order != module.order:
        await _check_order_free(store, module.course_id, new_order, exclude=module.id)

    updated = replace(module, **changes, updated_at=now_ts())
    await store.modules.save(updated)
    return updated


async def set_module_status(
    store: Store, identity: Identity, module_id: UUID, status: str
) -> CourseModule:
    return await update_module(store, identity, module_id, {"status": status})


async def delete_module(store: Store, identity: Identity, module_id: UUID) -> None:
    module = await get_owned_module(store, identity, module_id)
    if await store.lessons.list_by_module(module.id):
        raise Conflict("Cannot delete module with existing lessons")
    await store.modules.delete(module.id)
    await course_service.recount_modules(store, module.course_id)
    logger.info("Module deleted module_id=%s", module.id)


async def reorder_modules(
    store: Store, identity: Identity, course_id: UUID, module_ids: list[UUID]
) -> list[CourseModule]:
    """Assign order = position + 1 following ``module_ids``.

    ``module_ids`` must name every module of the course exactly once, so
    orders stay unique.
    """
    await course_service.get_owned_course(store, identity, course_id)
    if not module_ids:
        raise ValidationFailed("module_ids must not be empty")

    by_id = {m.id: m for m in await store.modules.list_by_course(course_id)}
    unknown = [str(mid) for mid in module_ids if mid not in by_id]
    if unknown:
        raise ValidationFailed(f"Modules not in this course: {', '.join(unknown)}")
    if len(set(module_ids)) != len(module_ids) or set(module_ids) != set(by_id):
        raise ValidationFailed("module_ids must list every module of the course exactly once")

    now = now_ts()
    for position, module_id in enumerate(module_ids):
        module = by_id[module_id]
        if module.order != position + 1:
            await store.modules.save(replace(module, order=position + 1, updated_at=now))
    return await store.modules.list_by_course(course_id)


async def recount_lessons(store: Store, module_id: UUID) -> None:
    module = await store.modules.get(module_id)
    if module is None:
        return
    count = len(await store.lessons.list_by_module(module_id))
    if count != module.total_lessons:
        await store.modules.save(replace(module, total_lessons=count))

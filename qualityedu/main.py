from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from qualityedu.api.auth import router as auth_router
from qualityedu.api.courses import router as courses_router
from qualityedu.api.envelope import install_exception_handlers
from qualityedu.api.health import router as health_router
from qualityedu.api.lessons import router as lessons_router
from qualityedu.api.metrics_endpoint import router as metrics_router
from qualityedu.api.modules import router as modules_router
from qualityedu.api.student import router as student_router
from qualityedu.api.supervisor import router as supervisor_router
from qualityedu.api.teacher import router as teacher_router
from qualityedu.core.config import SETTINGS
from qualityedu.core.logging import setup_logging
from qualityedu.db.engine import lifespan_db
from qualityedu.db.redis import lifespan_redis
from qualityedu.middleware.identity import IdentityMiddleware
from qualityedu.middleware.metrics import MetricsMiddleware
from qualityedu.middleware.request_context import RequestContextMiddleware
from qualityedu.repos.store import get_store
from qualityedu.services import account_service

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


async def _seed_dev_data() -> None:
    if not (SETTINGS.is_dev and SETTINGS.seed_supervisor_password):
        return
    async with asynccontextmanager(get_store)() as store:
        await account_service.seed_dev_supervisor(store, SETTINGS.seed_supervisor_password)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order even if one side fails.
    async with lifespan_db():
        async with lifespan_redis():
            await _seed_dev_data()
            yield


app = FastAPI(
    title="qualityedu-backend",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(SETTINGS.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last added runs first (outermost):
# RequestContext -> Identity -> Metrics -> CORS -> route handler
# The request id exists before identity resolution logs anything, and the
# completion line can read the identity back from request.state.
app.add_middleware(MetricsMiddleware)
app.add_middleware(IdentityMiddleware)
app.add_middleware(RequestContextMiddleware)

install_exception_handlers(app)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(teacher_router)
app.include_router(supervisor_router)
app.include_router(courses_router)
app.include_router(modules_router)
app.include_router(lessons_router)
app.include_router(student_router)

logger.info(
    "qualityedu-backend started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)

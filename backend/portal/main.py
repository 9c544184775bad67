from __future__ import annotations
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from portal.config import settings
from portal.errors import StoreError, PermissionDeniedError
from portal.logging_setup import configure_logging
from portal.schemas.result import ActionResult, PERMISSION_DENIED_MESSAGE, STORE_FAILURE_MESSAGE
from portal.routes.system import router as system_router
from portal.routes.competitions import router as competitions_router
from portal.routes.winners import router as winners_router
from portal.routes.announcements import router as announcements_router, admin_router as admin_announcements_router
from portal.routes.admin import auth_router as admin_auth_router, router as admin_router
from portal.routes.admin_winners import router as admin_winners_router
import structlog

configure_logging(settings.log_level, service=settings.app_name)
log = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    log.info("startup", env=settings.environment, version=settings.app_version, git_sha=settings.git_sha)
    yield
    # Shutdown
    log.info("shutdown")

app = FastAPI(
    title=f"{settings.app_display_name} API",
    version=settings.app_version,
    lifespan=lifespan,
    description=f"{settings.app_display_name} API for student competition submissions and results",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "dev" else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(system_router)
app.include_router(competitions_router)
app.include_router(winners_router)
app.include_router(announcements_router)
app.include_router(admin_auth_router)
app.include_router(admin_router)
app.include_router(admin_winners_router)
app.include_router(admin_announcements_router)

@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    # reads that are not wrapped in an ActionResult end up here
    if isinstance(exc, PermissionDeniedError):
        log.warning("store_permission_denied", path=request.url.path, error=str(exc))
        body = ActionResult.fail("permission_denied", PERMISSION_DENIED_MESSAGE)
        return JSONResponse(status_code=403, content=body.model_dump())
    log.error("store_error", path=request.url.path, error=str(exc), exc_info=exc)
    body = ActionResult.fail("store_error", STORE_FAILURE_MESSAGE)
    return JSONResponse(status_code=502, content=body.model_dump())

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    structlog.contextvars.bind_contextvars(request_id=rid)
    response: Response = await call_next(request)
    response.headers["X-Request-ID"] = rid
    structlog.contextvars.clear_contextvars()
    return response

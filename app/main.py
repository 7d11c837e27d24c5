from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from timing_asgi import TimingMiddleware, TimingClient  # type: ignore
from timing_asgi.integrations import StarletteScopeToName  # type: ignore

from app.core import config
from app.core.cache import close_cache
from app.core.database.engine import AsyncSessionLocal, init_db
from app.core.exceptions import ServiceError
from app.core.rate_limit import limiter
from app.features.users.routes import router as user_router
from app.features.groups.routes import router as group_router
from app.features.roles.routes import router as role_router
from app.features.permissions.routes import router as permission_router
from app.features.assignments.routes import router as assignment_router
from app.utils import get_logger


log = get_logger(__name__)
log.info("Initializing server")
app = FastAPI(
    title="RBAC Admin Backend",
    description="Role-based access control administration with cached effective permissions",
    version="0.1.0",
    docs_url="/docs" if config.ENABLE_DOCS else None,
    redoc_url="/redoc" if config.ENABLE_DOCS else None,
    openapi_url="/openapi.json" if config.ENABLE_DOCS else None
)
app.state.limiter = limiter


class PrintTimings(TimingClient):
    def timing(self, metric_name, timing, tags):
        log.debug(dict(route=metric_name.removeprefix("main.app.features."), timing=timing, tags=tags))


app.add_middleware(TimingMiddleware, client=PrintTimings(), metric_namer=StarletteScopeToName("main", app))

if config.ENABLE_DOCS:
    log.warning("Docs enabled")
if config.ALLOW_ORIGIN:
    log.warning("Setting allow origin to %s", config.ALLOW_ORIGIN)
    origins = [config.ALLOW_ORIGIN]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError):
    errors = dict()
    for error in exc.errors():
        if "loc" not in error or "msg" not in error:
            continue
        key = error["loc"][-1]
        if key == "__root__":
            key = "root"
        errors[key] = error["msg"]
    log.info("Request validation error %s", errors)
    return JSONResponse(status_code=400, content=jsonable_encoder(errors))


@app.exception_handler(ServiceError)
async def service_exception_handler(_request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    log.error("Database error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "An error occurred"})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    log.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "An unexpected error occurred"})


@app.exception_handler(RateLimitExceeded)
def rate_limit_exceeded_handler(_request: Request, _exc: RateLimitExceeded) -> Response:
    return JSONResponse({"error": "You are going too fast"}, status_code=429)


@app.on_event("startup")
async def startup():
    """Initialize database on application startup."""
    log.info("Initializing database...")
    await init_db()
    log.info("Database initialized successfully")

    if config.SEED_ON_STARTUP:
        from scripts.seed_data import seed_data

        async with AsyncSessionLocal() as db:
            await seed_data(db)


@app.on_event("shutdown")
async def shutdown():
    await close_cache()


@app.get("/")
async def root():
    """Root endpoint - API health check."""
    return {
        "message": "RBAC Admin Backend API",
        "version": "0.1.0",
        "status": "online",
        "docs": "/docs" if config.ENABLE_DOCS else None,
        "authentication": {
            "info": "All /api endpoints require a Bearer token carrying the needed permission claims",
            "issuing": "python -m scripts.issue_token --username <name>",
        },
        "features": {
            "users": "User management and effective permission lookup",
            "groups": "Group management; members inherit the roles of their groups",
            "roles": "Role management with attached permissions",
            "permissions": "Permission catalogue",
            "assignments": "User-role, group-role, user-group and role-permission assignment, single and bulk",
        }
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


# Include routers
app.include_router(user_router, prefix="/api/users", tags=["users"])
app.include_router(group_router, prefix="/api/groups", tags=["groups"])
app.include_router(role_router, prefix="/api/roles", tags=["roles"])
app.include_router(permission_router, prefix="/api/permissions", tags=["permissions"])
app.include_router(assignment_router, prefix="/api/assignments", tags=["assignments"])

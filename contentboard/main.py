import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from contentboard.config import settings
from contentboard.deps import init_db
from contentboard.errors import AdapterError, ConfigError, NotFoundError, ValidationError
from contentboard.log_config import configure_logging
from contentboard.services.scheduler import start_state_sweeper, stop_state_sweeper

# Routers
from contentboard.routers import admin, auth_google, dashboard, sync_api

logger = structlog.get_logger()

app = FastAPI(title="Content Dashboard API", version="0.1.0")


@app.on_event("startup")
def _startup():
    configure_logging(settings.log_level)
    settings.validate()  # ConfigError here aborts boot
    init_db()
    start_state_sweeper()
    logger.info("startup_complete", env=settings.app_env)


@app.on_event("shutdown")
def _shutdown():
    stop_state_sweeper()
    sync_api.shutdown_scheduler()


@app.exception_handler(NotFoundError)
def _not_found(request: Request, exc: NotFoundError):
    return JSONResponse({"detail": str(exc)}, status_code=404)


@app.exception_handler(ValidationError)
def _invalid(request: Request, exc: ValidationError):
    return JSONResponse({"detail": str(exc)}, status_code=400)


@app.exception_handler(AdapterError)
def _upstream(request: Request, exc: AdapterError):
    logger.warning("upstream_failure", path=request.url.path, error=str(exc))
    return JSONResponse({"detail": "Upstream platform request failed"}, status_code=502)


@app.exception_handler(ConfigError)
def _misconfigured(request: Request, exc: ConfigError):
    logger.error("config_error", path=request.url.path, error=str(exc))
    return JSONResponse({"detail": "Service is not configured"}, status_code=503)


@app.get("/api/health")
def health():
    return {"status": "ok", "env": settings.app_env}


# Mount routes
app.include_router(auth_google.router)   # /auth/google/*, /api/auth/*
app.include_router(dashboard.router)     # /api/metrics/*, /api/posts/*
app.include_router(sync_api.router)      # /api/sync/*, /api/platforms/*/validate
app.include_router(admin.router)         # /api/admin/*, /api/platforms

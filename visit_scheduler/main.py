import time
import uuid
from pathlib import Path

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from .api import legacy_router, router
from .config import settings
from .db import Base, SessionLocal, engine
from .errors import register_error_handlers
from .logging_config import setup_logging

logger = structlog.get_logger("visit_scheduler")

# Query parameters of the visit and slot routes that identify what a request is about.
_CONTEXT_QUERY_PARAMS = ("apartment_id", "day")


def _read_app_version() -> str:
    version_file = Path(__file__).resolve().parents[1] / "VERSION"
    try:
        value = version_file.read_text(encoding="utf-8").strip()
        return value or "0.1.0"
    except Exception:
        return "0.1.0"


if settings.DATABASE_URL.startswith("sqlite") or bool(settings.DB_AUTO_CREATE_ALL):
    Base.metadata.create_all(bind=engine)
setup_logging()

app = FastAPI(
    title="Visit Scheduler",
    description="Books apartment visits between tenants and runners",
    version=_read_app_version(),
)
register_error_handlers(app)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    request_id = (request.headers.get("x-request-id") or "").strip() or str(uuid.uuid4())

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        **{name: request.query_params[name] for name in _CONTEXT_QUERY_PARAMS if name in request.query_params},
    )

    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as exc:
        logger.error("request_failed", error=str(exc), duration_ms=round((time.perf_counter() - start) * 1000.0, 2))
        raise

    duration_ms = round((time.perf_counter() - start) * 1000.0, 2)
    status_code = int(response.status_code)
    log_event = logger.warning if status_code >= 500 else logger.info
    log_event(
        "request_finished",
        status_code=status_code,
        duration_ms=duration_ms,
        retryable="retry-after" in response.headers,
    )
    response.headers["X-Request-ID"] = request_id
    return response


@app.get("/ping")
def ping():
    return {"ok": True}


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/health/ready")
def ready():
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("readiness_db_check_failed", error=str(exc))
        return JSONResponse(status_code=503, content={"status": "not_ready", "checks": {"db": "error"}})
    return {"status": "ready", "checks": {"db": "ok"}}


app.include_router(router)
app.include_router(legacy_router)

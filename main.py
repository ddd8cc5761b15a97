# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Guild Parties Service
=====================
System of record for guild party composition: a roster of members, parties
of five slots (slot 0 is the leader) organised in groups, and the atomic
slot operations assign / remove / swap / clear.

Two party types exist side by side, ``kvm`` and ``gvg``. A member holds at
most one slot per type.

Port: 8010
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from guild_parties.controllers import (
    assignment_controller,
    group_controller,
    member_controller,
    party_controller,
    system_controller,
)
from guild_parties.core.config import settings
from guild_parties.core.dependencies import get_group_party_service, get_roster_service, get_store
from guild_parties.core.logging import get_logger
from guild_parties.metrics.prometheus import MEMBERS_TOTAL
from guild_parties.middleware import MetricsMiddleware, RequestIDMiddleware
from guild_parties.schemas.party import fail

logger = get_logger(__name__)

ERROR_CODES: dict[int, str] = {
    400: "validation_error",
    404: "not_found",
    409: "conflict",
    422: "invalid_request",
    503: "unavailable",
}


# ── Lifespan ──────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    store = get_store()
    store.init_schema()
    if settings.SEED_DEFAULT_PARTIES:
        get_group_party_service().seed_defaults()
    try:
        get_group_party_service().refresh_gauges()
        MEMBERS_TOTAL.set(get_roster_service().count())
        logger.info("Prometheus gauges loaded from DB")
    except Exception:
        logger.warning("Could not seed gauges - DB may not be ready yet")
    logger.info("%s v%s started", settings.SERVICE_NAME, settings.SERVICE_VERSION)
    yield
    store.dispose()
    logger.info("Shutting down - connection pool disposed")


# ── FastAPI App ───────────────────────────────────────────────────────────
app = FastAPI(
    title="Guild Parties Service",
    description="Party slot assignment and swaps for a guild roster.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(system_controller.router)
app.include_router(member_controller.router)
app.include_router(group_controller.router)
app.include_router(party_controller.router)
app.include_router(assignment_controller.router)


# ── Error envelopes ───────────────────────────────────────────────────────
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=fail(str(exc.detail), ERROR_CODES.get(exc.status_code)),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{location}: {first.get('msg', 'invalid request')}" if location else "invalid request"
    body = fail(message, ERROR_CODES[422])
    body["detail"] = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors]
    return JSONResponse(status_code=422, content=body)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception")
    return JSONResponse(status_code=500, content=fail("internal server error", "internal_error"))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=settings.SERVICE_PORT, log_level="info")

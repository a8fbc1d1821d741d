# procureflow/main.py
import time
import uuid
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from procureflow.config import settings
from procureflow.core.bootstrap import ensure_seed_user
from procureflow.core.clock import to_iso, utcnow
from procureflow.core.db import close_db, init_db, is_db_healthy
from procureflow.core.errors import AUTH_ERROR_MESSAGES, ProcureFlowError

from procureflow.api.routers import agent, auth, cart, checkout, items, settings as settings_router, usage

logger = logging.getLogger("uvicorn.error")

STARTED_AT = time.monotonic()
NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}

app = FastAPI(title=settings.APP_NAME, version=settings.VERSION)

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_body(code: str, message: str) -> dict:
    return {
        "error": code,
        "message": message,
        "correlationId": uuid.uuid4().hex,
        "timestamp": to_iso(utcnow()),
    }


@app.exception_handler(ProcureFlowError)
async def handle_domain_error(request: Request, exc: ProcureFlowError):
    body = _error_body(exc.code, exc.message)
    body.update(exc.to_dict())
    if exc.status_code >= 500:
        logger.error("[error] %s %s -> %s (%s)", request.method, request.url.path, exc.code, body["correlationId"])
    return JSONResponse(status_code=exc.status_code, content=body)


# Framework-level errors (401 from the auth dependencies, unknown routes, wrong methods)
HTTP_STATUS_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if isinstance(detail, str) and detail in AUTH_ERROR_MESSAGES:
        code, message = detail, AUTH_ERROR_MESSAGES[detail]
    else:
        code = HTTP_STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
        message = detail if isinstance(detail, str) else str(detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(code, message),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        problems.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(
        status_code=400,
        content=_error_body("VALIDATION_ERROR", f"Validation failed: {', '.join(problems)}"),
    )


@app.exception_handler(Exception)
async def handle_unexpected(request: Request, exc: Exception):
    body = _error_body("INTERNAL_ERROR", "An unexpected error occurred. Please try again.")
    logger.exception("[error] unhandled %s on %s %s (%s)",
                     type(exc).__name__, request.method, request.url.path, body["correlationId"])
    return JSONResponse(status_code=500, content=body)


@app.on_event("startup")
async def on_startup():
    await init_db()
    # Ensure there's an account to sign in with on first run
    await ensure_seed_user()

@app.on_event("shutdown")
async def on_shutdown():
    await close_db()

# REST
app.include_router(auth.router, prefix="/api")
app.include_router(items.router, prefix="/api")
app.include_router(cart.router, prefix="/api")
app.include_router(checkout.router, prefix="/api")
app.include_router(agent.router, prefix="/api")
app.include_router(usage.router, prefix="/api")
app.include_router(settings_router.router, prefix="/api")


@app.get("/api/health", tags=["meta"])
async def health():
    """Liveness plus database connectivity. 503 when the database is unreachable."""
    db_ok = await is_db_healthy()
    body = {
        "status": "ok" if db_ok else "degraded",
        "timestamp": to_iso(utcnow()),
        "service": settings.APP_NAME,
        "version": settings.VERSION,
        "environment": settings.env,
        "checks": {"api": "ok", "db": "ok" if db_ok else "error"},
        "uptime": round(time.monotonic() - STARTED_AT, 3),
    }
    return JSONResponse(status_code=200 if db_ok else 503, content=body, headers=NO_CACHE_HEADERS)


@app.get("/api/openapi", tags=["meta"])
async def openapi_schema():
    """Machine-readable API schema (same document FastAPI serves at /openapi.json)."""
    return app.openapi()

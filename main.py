"""
FastAPI application entry point.
"""

import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from errors import Internal, RequestTimeout, ServiceError, ValidationFailed
from models.database import close_db, init_db
from routes import users, teams, pull_request


logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s %s", settings.app_name, settings.app_version)
    await init_db()

    yield

    logger.info("Shutting down, closing database pool")
    await close_db()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

app.include_router(users.router, prefix="/api")
app.include_router(teams.router, prefix="/api")
app.include_router(pull_request.router, prefix="/api")


def error_response(error: ServiceError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content={"error": {"code": error.code, "message": error.message}},
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return error_response(exc)


HTTP_ERROR_CODES = {
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Routing errors (unknown path, wrong method) in the same envelope as domain errors."""
    code = HTTP_ERROR_CODES.get(exc.status_code, "BAD_REQUEST" if exc.status_code < 500 else "INTERNAL")
    logger.warning("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": code, "message": str(exc.detail).lower()}},
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors and errors[0].get("type") == "json_invalid":
        message = "invalid request body"
    elif errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"validation error: {location}: {first.get('msg')}"
    else:
        message = "validation error"
    logger.warning("%s %s bad request: %s", request.method, request.url.path, message)
    return error_response(ValidationFailed(message))


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Request id, per-request deadline, access log and last-resort 500 envelope."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    started = time.perf_counter()

    try:
        async with asyncio.timeout(settings.request_timeout_seconds):
            response = await call_next(request)
    except TimeoutError:
        logger.warning("[%s] %s %s exceeded %.1fs deadline", request_id, request.method,
                       request.url.path, settings.request_timeout_seconds)
        response = error_response(RequestTimeout())
    except Exception:
        logger.exception("[%s] %s %s unhandled error", request_id, request.method, request.url.path)
        response = error_response(Internal())

    response.headers["X-Request-ID"] = request_id
    logger.info("[%s] %s %s -> %d (%.1f ms)", request_id, request.method, request.url.path,
                response.status_code, (time.perf_counter() - started) * 1000)
    return response


@app.get("/health", tags=["health"])
async def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    uvicorn.run(
        app,
        host=settings.http_host,
        port=settings.http_port,
        timeout_graceful_shutdown=settings.shutdown_grace_seconds,
    )

"""
Quizory API Server

Entry point for the FastAPI application.
"""

from typing import Optional

import jwt
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.auth import SESSION_COOKIE, decode_jwt
from app.core.config import get_settings
from app.core.errors import QuizoryError
from app.core.i18n import resolve_language, translate
from app.core.log_config import configure_logging
from app.core.middleware import CSRFMiddleware, SecurityHeadersMiddleware
from app.core.redis import close_redis
from app.api.v1 import router as api_v1_router
from quizory_shared.schemas.common import Language

settings = get_settings()
log = structlog.get_logger()


def request_language(request: Request) -> Language:
    """Accept-Language first, then the ``lang`` claim of the session token."""
    claim: Optional[str] = None
    token = request.cookies.get(SESSION_COOKIE)
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer "):
        token = authorization[7:].strip()
    if token:
        try:
            claim = decode_jwt(token).get("lang")
        except jwt.PyJWTError:
            claim = None
    return resolve_language(request.headers.get("Accept-Language"), claim)


def error_response(status: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"error": {"code": code, "message": message, "status": status}},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Quizory",
        description="Multi-tenant quiz league management: teams, quizzes, scoring and rankings.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Middleware (order matters, outermost first)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CSRFMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-CSRF-Token", "Accept-Language"],
    )

    @app.exception_handler(QuizoryError)
    async def quizory_error_handler(request: Request, exc: QuizoryError):
        if exc.status_code >= 500:
            log.error("request.failed", code=exc.code, path=request.url.path)
        else:
            log.info("request.rejected", code=exc.code, status=exc.status_code, path=request.url.path)
        message = translate(exc.code, request_language(request), **exc.params)
        return error_response(exc.status_code, exc.code, message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        message = translate("validation_error", request_language(request))
        return JSONResponse(
            status_code=422,
            content={
                "error": {"code": "validation_error", "message": message, "status": 422},
                "detail": jsonable_errors(exc),
            },
        )

    # API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check endpoint for startup probes."""
        return {"status": "ready"}

    @app.on_event("startup")
    async def on_startup():
        log.info("Quizory starting", debug=settings.debug)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("Quizory shutting down")
        await close_redis()

    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


app = create_app()

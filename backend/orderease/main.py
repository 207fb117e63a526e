from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from orderease.api.router import router as api_router
from orderease.api.routes import health
from orderease.core.config import settings
from orderease.core.errors import AppError
from orderease.services.broadcaster import OrderBroadcaster
from orderease.services.rate_limit import RateLimiter
from orderease.worker.background_scheduler import lifespan_with_scheduler

log = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid input"
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query"))
    msg = str(first.get("msg") or "invalid value")
    return f"{loc}: {msg}" if loc else msg


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError):
        return _error(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        return _error(400, _validation_message(exc))

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        log.exception("[api] unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "internal error")


def create_app() -> FastAPI:
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan_with_scheduler)
    app.state.broadcaster = OrderBroadcaster(mailbox_size=settings.EVENT_MAILBOX_SIZE)
    app.state.rate_limiter = RateLimiter(settings.RATE_LIMIT_PER_MINUTE)

    origins = [o.strip() for o in (settings.CORS_ORIGINS or "*").split(",") if o.strip()] or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_exception_handlers(app)
    app.include_router(health.router, tags=["health"])
    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app


app = create_app()

from __future__ import annotations

import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from customer_intake.api.router import api_router
from customer_intake.core.config import get_settings
from customer_intake.core.errors import IntakeError
from customer_intake.core.logging import configure_logging

logger = structlog.get_logger()


async def intake_error_handler(request: Request, exc: IntakeError) -> JSONResponse:
    logger.info(
        "intake_request_rejected",
        path=request.url.path,
        error_type=type(exc).__name__,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()

    app = FastAPI(title=settings.app_name)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.secret_key,
        session_cookie=settings.session_cookie,
        same_site="lax",
        https_only=settings.environment == "prod",
    )
    app.add_exception_handler(IntakeError, intake_error_handler)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        # Every log line for a request carries its id
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(api_router, prefix=settings.api_prefix)
    return app


app = create_app()

"""BidEngine FastAPI application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bidengine.app.core.config import settings
from bidengine.app.core.errors import BidEngineError, UpstreamUnavailable, degraded_body
from bidengine.app.modules.bidgate.router import router as bidgate_router
from bidengine.app.modules.bidvault.router import router as bidvault_router
from bidengine.app.modules.bidwrite.router import router as bidwrite_router
from bidengine.app.modules.billing.router import router as billing_router
from bidengine.app.modules.clients.router import router as clients_router
from bidengine.app.modules.evidence.router import router as evidence_router
from bidengine.app.modules.invite.router import router as invite_router
from bidengine.app.modules.onboarding.router import router as onboarding_router

logger = logging.getLogger(__name__)


def _route_name(request: Request):
    route = request.scope.get("route")
    return getattr(route, "name", None)


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app = FastAPI(title=settings.app_name, version="0.1.0")

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    api_prefix = settings.api_prefix.rstrip("/")
    app.include_router(clients_router, prefix=api_prefix)
    app.include_router(evidence_router, prefix=api_prefix)
    app.include_router(bidwrite_router, prefix=api_prefix)
    app.include_router(bidvault_router, prefix=api_prefix)
    app.include_router(invite_router, prefix=api_prefix)
    app.include_router(onboarding_router, prefix=api_prefix)
    app.include_router(bidgate_router, prefix=api_prefix)
    app.include_router(billing_router, prefix=api_prefix)

    # Exception Handlers
    @app.exception_handler(BidEngineError)
    async def bidengine_error_handler(request: Request, exc: BidEngineError):
        if isinstance(exc, UpstreamUnavailable):
            body = degraded_body(_route_name(request))
            if body is not None:
                logger.warning("%s degraded after upstream failure: %s", request.url.path, exc.message)
                return JSONResponse(status_code=200, content=body)
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        content = {"error": "Invalid request"}
        if errors:
            content["details"] = str(errors[0].get("msg"))
        return JSONResponse(status_code=400, content=content)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()

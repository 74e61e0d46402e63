from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .config import settings
from .errors import (
    ConfigStoreError,
    InvalidFieldError,
    UnknownPortError,
    UnknownSubsystemError,
)
from .routes.config import router as config_router
from .routes.notifications import router as notifications_router
from .routes.ports import router as ports_router
from .routes.status import router as status_router
from .routes.wifi import router as wifi_router
from .services.engine import ConsoleEngine
from .utils.log import setup_logging


def create_app(engine: Optional[ConsoleEngine] = None) -> FastAPI:
    app = FastAPI(title="USB/IP Hub Console")
    app.state.engine = engine or ConsoleEngine()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"]
    )

    @app.on_event("startup")
    async def on_startup() -> None:
        await app.state.engine.start()

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await app.state.engine.stop()

    @app.exception_handler(ConfigStoreError)
    async def config_store_error(request: Request, exc: ConfigStoreError) -> JSONResponse:
        if isinstance(exc, (UnknownSubsystemError, UnknownPortError)):
            status = 404
        elif isinstance(exc, InvalidFieldError):
            status = 422
        else:
            status = 409
        return JSONResponse(status_code=status, content={"detail": str(exc)})

    # draft values that fail the subsystem model
    @app.exception_handler(ValidationError)
    async def invalid_draft(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    app.include_router(status_router, prefix="/api/console", tags=["status"])
    app.include_router(config_router, prefix="/api/console/config", tags=["config"])
    app.include_router(ports_router, prefix="/api/console/ports", tags=["ports"])
    app.include_router(notifications_router, prefix="/api/console/notifications", tags=["notifications"])
    app.include_router(wifi_router, prefix="/api/console/wifi", tags=["wifi"])
    return app


app = create_app()


def run() -> None:
    import uvicorn

    setup_logging()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())

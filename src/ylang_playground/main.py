import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from ylang_playground.api.v1.api import api_router
from ylang_playground.core.config import Settings, get_settings
from ylang_playground.core.error_handler import (
    ExceptionNormalizationMiddleware,
    global_exception_handler,
    setup_logging,
)
from ylang_playground.core.middleware import CorrelationIdMiddleware
from ylang_playground.services.playground import PlaygroundSession


logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the playground API around a single session.

    ``transport`` is handed to the compiler client, which lets tests stand in
    for the remote compiler.
    """
    settings = settings or get_settings()
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        session = PlaygroundSession.from_settings(settings, transport=transport)
        app.state.session = session
        logger.info(
            "Playground session ready: targets=%s backend=%s",
            ",".join(session.store.targets),
            settings.YLANG_API_BASE_URL,
        )
        try:
            yield
        finally:
            await session.aclose()
            app.state.session = None
            logger.info("Playground session closed")

    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Compile Y Language source to TypeScript and Rust as you type",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(ExceptionNormalizationMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.CORS_ORIGINS),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(HTTPException, global_exception_handler)
    app.add_exception_handler(RequestValidationError, global_exception_handler)

    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("ylang_playground.main:app", host="0.0.0.0", port=8000, reload=True)

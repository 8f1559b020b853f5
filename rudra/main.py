"""Main FastAPI application."""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rudra import __version__
from rudra.api.endpoints import router
from rudra.config import Settings
from rudra.runtime import Runtime, build_runtime
from rudra.utils.logging import LogConfig, setup_logging


def create_app(runtime: Runtime | None = None) -> FastAPI:
    """Create the application.

    Args:
        runtime: Prebuilt collaborators; when omitted the runtime is built from the
            environment at startup and closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if runtime is not None:
            yield
            return

        settings = Settings.from_env()
        setup_logging(LogConfig(level=settings.log_level))
        app.state.runtime = build_runtime(settings)
        try:
            yield
        finally:
            await app.state.runtime.aclose()

    app = FastAPI(
        title="Rudra AI",
        description=(
            "A conversational assistant that streams replies and calls weather, "
            "stock price and Formula 1 tools, with per-user chat history."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=[
            {
                "name": "Chat",
                "description": "Streaming generation for a conversation turn.",
            },
            {
                "name": "Conversations",
                "description": "Create, list, load and rename the caller's conversations.",
            },
            {
                "name": "Health",
                "description": "Service health monitoring and status checks.",
            },
        ],
    )

    if runtime is not None:
        app.state.runtime = runtime

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    host = os.getenv("RUDRA_HOST", "0.0.0.0")
    port = int(os.getenv("RUDRA_PORT", "8000"))
    uvicorn.run("rudra.main:app", host=host, port=port, log_level="info")


if __name__ == "__main__":
    run()

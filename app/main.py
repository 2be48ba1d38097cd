"""FastAPI application entry point."""

import logging
import os
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import Settings, settings as default_settings
from app.routes import runs
from app.services.registry import RunRegistry
from app.services.run_log import RunLog
from app.worker import StepExecutor

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    run_log: Optional[RunLog] = None,
    launcher: Optional[Callable] = None,
) -> FastAPI:
    """Build the application with its registry and executor.

    Args:
        settings: Settings override, defaults to the environment
        run_log: Durable log override, defaults to ``settings.LOG_FILE``
        launcher: Browser launcher override passed to the executor
    """
    settings = settings or default_settings

    app = FastAPI(
        title=settings.APP_NAME,
        description="Runs declarative UI test steps in a browser and reports live progress",
        version="0.1.0",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    run_log = run_log or RunLog(settings.LOG_FILE)
    registry = RunRegistry(ttl=settings.RUN_TTL_SECONDS)
    app.state.run_log = run_log
    app.state.registry = registry
    app.state.executor = StepExecutor(registry, run_log, settings=settings, launcher=launcher)

    app.include_router(runs.router)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        """Render HTTP errors as ``{"error": ...}``."""
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.on_event("startup")
    async def startup_event():
        msg = f"{settings.APP_NAME} server started on http://{settings.HOST}:{settings.PORT}"
        run_log.write(msg)
        run_log.write()
        logger.info(msg)
        logger.info(f"Logging runs to: {run_log.path}")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Shutting down application...")
        await app.state.executor.shutdown()
        registry.close()

    @app.get("/health")
    def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    # Serve static files (frontend)
    static_dir = settings.STATIC_DIR
    if os.path.isdir(static_dir):
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

        @app.get("/")
        def serve_frontend():
            """Serve frontend HTML."""
            return FileResponse(os.path.join(static_dir, "index.html"))
    else:
        @app.get("/")
        def root():
            """Root endpoint when no frontend."""
            return {
                "name": settings.APP_NAME,
                "version": "0.1.0",
                "status": "running",
            }

    return app


app = create_app()


def main():
    """Entry point for the standalone server."""
    uvicorn.run(app, host=default_settings.HOST, port=default_settings.PORT)


if __name__ == "__main__":
    main()

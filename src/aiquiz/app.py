"""Main FastAPI application module.

This module initializes the FastAPI application and registers all route handlers.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aiquiz import __version__
from aiquiz.config import API_HOST, API_PORT, CORS_ALLOWED_ORIGINS
from aiquiz.core.database import init_db
from aiquiz.core.logging_config import setup_logging
from aiquiz.api.routes import admin, system, users

logger = logging.getLogger(__name__)

# Setup logging
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and seed the default admin on startup."""
    init_db()
    yield


# Initialize FastAPI application
app = FastAPI(
    lifespan=lifespan,
    title="AI Quiz API",
    description="Accounts, sessions and AI usage accounting for the AI Quiz app.",
    version=__version__,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register route handlers
app.include_router(admin.router)
app.include_router(users.router)
app.include_router(system.router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": message},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@app.get("/", summary="API root", tags=["Info"])
def root() -> dict:
    """Return API information and documentation links."""
    return {
        "name": "AI Quiz API",
        "version": __version__,
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc",
        },
        "health": "/api/health",
    }


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    server_url = f"http://{API_HOST}:{API_PORT}"
    print(f"🌐 Server: {server_url}")
    print(f"📚 API docs: {server_url}/docs")
    print()
    uvicorn.run("aiquiz.app:app", host=API_HOST, port=API_PORT)


# --- Startup code for direct execution ---
if __name__ == "__main__":
    run()

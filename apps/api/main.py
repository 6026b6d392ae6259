"""
Research Hub - FastAPI Backend
Main application entry point with error handling and API routing.
"""

import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import is_production, settings, validate_security_settings
from database import Database
import models  # noqa: F401
from routers import auth, health, research
from services.errors import ResearchHubError

API_VERSION = "1.0.0"

logging.basicConfig(
    level=getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    print("🚀 Starting Research Hub API...")
    validate_security_settings()
    database: Database = app.state.database
    await database.connect()
    print("🗄️ Database connected.")
    if settings.AUTO_CREATE_DB_SCHEMA:
        await database.create_schema()
        print("🗄️ Database schema verified.")
    yield
    # Shutdown
    await database.dispose()
    print("👋 Shutting down API...")


app = FastAPI(
    title="Research Hub API",
    description="Publish research documents with optional PIN-gated access",
    version=API_VERSION,
    lifespan=lifespan,
)
app.state.database = Database(settings.DATABASE_URL, settings.DB_CONNECT_TIMEOUT_SECONDS)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(status_code: int, message: str, exc: BaseException) -> JSONResponse:
    """Uniform ``{message, stack?}`` body; the stack is hidden in production."""
    content = {"message": message or "Server error"}
    if not is_production():
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(ResearchHubError)
async def research_hub_error_handler(request: Request, exc: ResearchHubError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return error_response(exc.status_code, exc.message, exc)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = "Route not found"
    else:
        message = str(exc.detail)
    return error_response(exc.status_code, message, exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query"))
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    return error_response(400, message, exc)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, str(exc) or "Server error", exc)


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(research.router, prefix="/api/research", tags=["Research"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Research Hub API",
        "version": API_VERSION,
        "status": "running",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.API_HOST, port=settings.PORT)

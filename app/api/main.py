import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes import router
from app.core.logging_config import setup_logging
from app.data_access.database import create_db_and_tables
from app.domain.common import ErrorResponse


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handles system startup and shutdown events.

    Initializes logging and creates the SQL tables if they don't exist.
    """
    setup_logging()

    # Create database tables on startup
    create_db_and_tables()

    yield


# Define the FastAPI app with metadata for Swagger UI
app = FastAPI(
    title="Catalog Category API",
    description="Users and a hierarchical product-category tree backed by SQLModel",
    version="0.1.0",
    lifespan=lifespan
)


def _error_response(status_code: int, message: str, details: object = None, headers: dict | None = None) -> JSONResponse:
    body = ErrorResponse(status_code=status_code, message=message, error_details=details)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body.model_dump(by_alias=True, exclude_none=True)),
        headers=headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Renders AppError / HTTPException as the JSON error envelope."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error_response(422, "Validation error", details=exc.errors())


# Include our routes
app.include_router(router)


@app.get("/")
def read_root() -> dict[str, str]:
    """Landing endpoint for the API.

    Returns:
        Dict[str, str]: A welcome message.
    """
    return {"message": "Welcome to the Catalog Category API"}

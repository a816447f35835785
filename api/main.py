"""
FastAPI main application for the Books API.
"""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, FastAPI, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import config as api_config
from api.exceptions import BookNotFoundError, BookValidationError
from api.models import (
    Book, BookCreate, BookUpdate,
    ErrorResponse, HealthResponse, StorageStatus
)
from api.service import BookService, parse_book_id
from api.storage import BookStorage
from utilities.logger import RequestLogger, setup_logging

# Setup logging
logger = structlog.get_logger(__name__)

# Global book service
book_service: BookService = None

INTERNAL_ERROR = "Internal server error"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    setup_logging(
        log_level=api_config.log_level,
        log_format=api_config.log_format,
        log_file=api_config.get_log_file_path(),
        debug=api_config.debug
    )
    logger.info("Starting Books API")

    global book_service
    storage = BookStorage(api_config.get_books_file_path())
    book_service = BookService(storage, serialize_mutations=api_config.serialize_mutations)
    logger.info(
        "Book storage ready",
        books_file=str(storage.path),
        exists=storage.exists(),
        serialize_mutations=api_config.serialize_mutations
    )

    yield

    # Shutdown
    logger.info("Shutting down Books API")
    book_service = None


# Create FastAPI application
app = FastAPI(
    title=api_config.api_title,
    description=api_config.api_description,
    version=api_config.api_version,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.cors_origins,
    allow_credentials=api_config.cors_allow_credentials,
    allow_methods=api_config.cors_allow_methods,
    allow_headers=api_config.cors_allow_headers,
)

request_logger = RequestLogger()


@app.middleware("http")
async def log_requests(request, call_next):
    """Write an access log entry for every request."""
    started = time.perf_counter()
    response = await call_next(request)
    request_logger.log_request(
        request.method,
        request.url.path,
        response.status_code,
        time.perf_counter() - started
    )
    return response


def _error_content(error: str, detail: Optional[str] = None) -> dict:
    return ErrorResponse(error=error, detail=detail).model_dump(exclude_none=True)


# Exception handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(str(exc.detail)),
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    """Report malformed bodies as 400 instead of 422."""
    logger.warning("Invalid request body", path=request.url.path, errors=str(exc.errors()))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_content("Invalid request body", str(exc.errors()))
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_content(INTERNAL_ERROR, str(exc) if api_config.debug else None)
    )


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=INTERNAL_ERROR
    )


def get_book_service() -> BookService:
    """Dependency returning the service created at startup."""
    if book_service is None:
        logger.error("Book service not available")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INTERNAL_ERROR
        )
    return book_service


# Health check endpoint
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(service: BookService = Depends(get_book_service)):
    """
    Health check endpoint.

    A missing books file is still healthy: reads fall back to an empty collection.
    """
    try:
        storage_status = await service.storage.status()
    except Exception as e:
        logger.error("Health check failed", error=str(e))
        storage_status = StorageStatus.UNREADABLE

    return HealthResponse(
        status="degraded" if storage_status == StorageStatus.UNREADABLE else "healthy",
        timestamp=datetime.now(timezone.utc),
        version=api_config.api_version,
        storage_status=storage_status
    )


# Books endpoints
router = APIRouter(tags=["Books"])


@router.get("/books", response_model=List[Book])
async def list_books(service: BookService = Depends(get_book_service)):
    """Get every book in stored order."""
    try:
        books = await service.list_books()
        return JSONResponse(content=[book.to_dict() for book in books])
    except Exception as e:
        logger.error("Failed to list books", error=str(e))
        raise _internal_error()


@router.get("/books/available", response_model=List[Book])
async def list_available_books(service: BookService = Depends(get_book_service)):
    """Get the books whose `available` flag is true."""
    try:
        books = await service.list_available_books()
        return JSONResponse(content=[book.to_dict() for book in books])
    except Exception as e:
        logger.error("Failed to list available books", error=str(e))
        raise _internal_error()


@router.post(
    "/books",
    response_model=Book,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
async def create_book(
    payload: Optional[BookCreate] = None,
    service: BookService = Depends(get_book_service)
):
    """
    Create a book.

    - **title**: required, non-empty
    - **author**: required, non-empty
    - **available**: required, `true` or `false`
    """
    try:
        book = await service.create_book(payload or BookCreate())
        return JSONResponse(status_code=status.HTTP_201_CREATED, content=book.to_dict())
    except BookValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except Exception as e:
        logger.error("Failed to create book", error=str(e))
        raise _internal_error()


@router.put(
    "/books/{book_id}",
    response_model=Book,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
async def update_book(
    book_id: str,
    payload: Optional[BookUpdate] = None,
    service: BookService = Depends(get_book_service)
):
    """
    Update some fields of a book. Fields left out of the body are unchanged.

    - **book_id**: integer book id; a non-numeric id matches no book

    The body is checked before the id is looked up, so a body with wrongly
    typed fields gets 400 even when the id matches no book.
    """
    try:
        book = await service.update_book(parse_book_id(book_id), payload or BookUpdate())
        return JSONResponse(content=book.to_dict())
    except BookNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except Exception as e:
        logger.error("Failed to update book", book_id=book_id, error=str(e))
        raise _internal_error()


@router.delete(
    "/books/{book_id}",
    response_model=Book,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
async def delete_book(book_id: str, service: BookService = Depends(get_book_service)):
    """
    Delete a book and return it.

    - **book_id**: integer book id; a non-numeric id matches no book
    """
    try:
        book = await service.delete_book(parse_book_id(book_id))
        return JSONResponse(content=book.to_dict())
    except BookNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except Exception as e:
        logger.error("Failed to delete book", book_id=book_id, error=str(e))
        raise _internal_error()


for prefix in api_config.route_prefixes:
    app.include_router(router, prefix=prefix)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=api_config.debug,
        log_level=api_config.log_level.lower()
    )

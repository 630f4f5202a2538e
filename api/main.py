"""
FastAPI main application for the Book Recommender API.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import structlog
from fastapi import FastAPI, HTTPException, Depends, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.security import HTTPAuthorizationCredentials

from api.auth import is_valid_sync_key, optional_security, verify_admin_key
from api.models import (
    AdminMutationErrorResponse, AdminMutationResponse, BookListResponse,
    BookResponse, ErrorResponse, HealthResponse, SyncErrorResponse,
    SyncSuccessResponse
)
from catalog.errors import UserMutationError
from catalog.models import BookCreate, BookUpdate
from catalog.service import CatalogService, RECOMMENDATION_COUNT
from catalog.store import CatalogStore, create_store
from catalog.sync_job import build_sync_job
from utilities.config import config
from api.config import config as api_config

logger = structlog.get_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

SYNC_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Book Recommender API")

    store = create_store(config)
    try:
        await store.connect()
    except Exception as e:
        logger.error("Failed to connect to store", error=str(e))
        raise
    app.state.store = store
    logger.info("Store connection established", backend=config.store_backend)

    yield

    logger.info("Shutting down Book Recommender API")
    await store.disconnect()


app = FastAPI(
    title=api_config.api_title,
    description="""
    Book recommendations backed by a catalog refreshed from the Rakuten Books ranking.

    ## Features

    * **Recommendations**: three random books from the catalog
    * **Administration**: create, edit and delete catalog entries (bearer API key)
    * **Catalog sync**: replace the catalog with the latest ranking snapshot
    """,
    version=api_config.api_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.cors_origins,
    allow_credentials=api_config.cors_allow_credentials,
    allow_methods=api_config.cors_allow_methods,
    allow_headers=api_config.cors_allow_headers,
)


def get_store(request: Request) -> CatalogStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Catalog store not available"
        )
    return store


def get_catalog_service(store: CatalogStore = Depends(get_store)) -> CatalogService:
    return CatalogService(store)


# Exception handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=str(exc.detail),
            status_code=exc.status_code
        ).dict(),
        headers=exc.headers
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="Internal server error",
            detail=str(exc) if api_config.debug else None,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        ).dict()
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint."""
    store = getattr(request.app.state, "store", None)
    db_status = "unavailable"
    if store is not None:
        health_info = await store.health_check()
        db_status = health_info.get("status", "unknown")

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.utcnow(),
        version=api_config.api_version,
        database_status=db_status
    )


# Catalog sync trigger
def _sync_error_response(status_code: int, error: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=SyncErrorResponse(error=error).dict(),
        headers={**CORS_HEADERS, **(headers or {})}
    )


@app.api_route("/sync", methods=SYNC_METHODS, tags=["Sync"])
async def sync_catalog(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security)
):
    """
    Replace the catalog with the latest ranking snapshot.

    OPTIONS is answered without credentials. Every other method needs a
    sync (or admin) bearer key. Returns ``{"message": ...}`` with status 200
    on success and ``{"error": ...}`` on failure, with CORS headers either way.
    """
    if request.method == "OPTIONS":
        return PlainTextResponse("ok", headers=CORS_HEADERS)

    if not is_valid_sync_key(credentials.credentials if credentials else None):
        logger.warning("Unauthorized catalog sync request", method=request.method)
        return _sync_error_response(
            status.HTTP_401_UNAUTHORIZED,
            "Invalid API key",
            headers={"WWW-Authenticate": "Bearer"}
        )

    store = getattr(request.app.state, "store", None)
    if store is None:
        logger.error("Catalog sync requested without a store")
        return _sync_error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Catalog store not available")

    try:
        job = build_sync_job(store, config)
        result = await job.run()
    except Exception as e:
        logger.error("Catalog sync request failed", error=str(e), error_type=type(e).__name__)
        return _sync_error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=SyncSuccessResponse(message=result.message).dict(),
        headers=CORS_HEADERS
    )


# Read surface
@app.get("/books/recommendations", response_model=BookListResponse, tags=["Books"])
async def get_recommendations(
    count: int = Query(RECOMMENDATION_COUNT, ge=1, le=10),
    service: CatalogService = Depends(get_catalog_service)
):
    """
    Pick random books from the catalog.

    - **count**: Number of books to return (fewer if the catalog is smaller)
    """
    books = await service.recommend(count)
    return BookListResponse.from_books(books)


# Admin surface
def _mutation_response(result) -> AdminMutationResponse:
    return AdminMutationResponse(
        book=BookResponse.from_book(result.book) if result.book else None,
        affected=result.affected,
        books=[BookResponse.from_book(book) for book in result.books]
    )


def _mutation_error_response(error: UserMutationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=AdminMutationErrorResponse(
            error=str(error),
            books=[BookResponse.from_book(book) for book in error.books]
        ).dict()
    )


@app.get("/admin/books", response_model=BookListResponse, tags=["Admin"])
async def list_books(
    service: CatalogService = Depends(get_catalog_service),
    api_key: str = Depends(verify_admin_key)
):
    """List every book ordered by ranking, best first."""
    books = await service.list_books()
    return BookListResponse.from_books(books)


@app.post(
    "/admin/books",
    response_model=AdminMutationResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Admin"]
)
async def create_book(
    data: BookCreate,
    service: CatalogService = Depends(get_catalog_service),
    api_key: str = Depends(verify_admin_key)
):
    """Create a book; ranking defaults to 51 (below the top 50)."""
    try:
        result = await service.create_book(data)
    except UserMutationError as e:
        return _mutation_error_response(e)
    return _mutation_response(result)


@app.put("/admin/books/{book_id}", response_model=AdminMutationResponse, tags=["Admin"])
async def update_book(
    book_id: str,
    data: BookUpdate,
    service: CatalogService = Depends(get_catalog_service),
    api_key: str = Depends(verify_admin_key)
):
    """Update the provided fields of one book."""
    try:
        result = await service.update_book(book_id, data)
    except UserMutationError as e:
        return _mutation_error_response(e)

    if result.affected == 0:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Book with ID '{book_id}' not found"
        )
    return _mutation_response(result)


@app.delete("/admin/books/{book_id}", response_model=AdminMutationResponse, tags=["Admin"])
async def delete_book(
    book_id: str,
    service: CatalogService = Depends(get_catalog_service),
    api_key: str = Depends(verify_admin_key)
):
    """Delete one book; an unknown ID deletes nothing and still succeeds."""
    try:
        result = await service.delete_book(book_id)
    except UserMutationError as e:
        return _mutation_error_response(e)
    return _mutation_response(result)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )

"""
API models and schemas for the FastAPI application.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from catalog.models import Book


class BookResponse(BaseModel):
    """Book response model for API."""
    id: str = Field(..., description="Unique book identifier")
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Book author")
    cover_image_url: str = Field(..., description="Cover image URL, or the placeholder image")
    synopsis: Optional[str] = Field(None, description="Synopsis")
    purchase_link: Optional[str] = Field(None, description="Purchase page URL, absent when unknown")
    ranking: int = Field(..., description="Ranking, lower is better")

    @classmethod
    def from_book(cls, book: Book) -> "BookResponse":
        return cls(
            id=book.id,
            title=book.title,
            author=book.author,
            cover_image_url=book.display_cover_url,
            synopsis=book.synopsis,
            purchase_link=book.purchase_link if book.has_purchase_link else None,
            ranking=book.ranking,
        )


class BookListResponse(BaseModel):
    """Response model for a list of books."""
    books: List[BookResponse] = Field(..., description="List of books")
    count: int = Field(..., description="Number of books returned")

    @classmethod
    def from_books(cls, books: List[Book]) -> "BookListResponse":
        return cls(books=[BookResponse.from_book(book) for book in books], count=len(books))


class AdminMutationResponse(BaseModel):
    """Response model for admin create, update and delete."""
    book: Optional[BookResponse] = Field(None, description="Created book, if any")
    affected: int = Field(..., description="Number of records matched by the call")
    books: List[BookResponse] = Field(..., description="Catalog listing re-read after the call")


class AdminMutationErrorResponse(BaseModel):
    """Response model for a failed admin mutation."""
    error: str = Field(..., description="Error message")
    books: List[BookResponse] = Field(..., description="Catalog listing re-read after the call")


class SyncSuccessResponse(BaseModel):
    """Sync trigger success body."""
    message: str = Field(..., description="Summary of the inserted count")


class SyncErrorResponse(BaseModel):
    """Sync trigger failure body."""
    error: str = Field(..., description="Error message")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Store status")

"""
Pydantic models for book records, feed entries and sync results.
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, validator

DEFAULT_RANKING = 51
PLACEHOLDER_COVER_URL = "https://placehold.jp/200x300.png?text=NoImage"


class BookBase(BaseModel):
    """
    Fields shared by every book record, without the store identifier.
    """
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Book author")
    cover_image_url: Optional[str] = Field(None, description="Full-size cover image URL")
    synopsis: Optional[str] = Field(None, description="Synopsis or item caption")
    purchase_link: Optional[str] = Field(None, description="URL of the purchase page")
    ranking: int = Field(..., description="Ranking, lower is better")

    def to_document(self) -> dict:
        """Plain dict suitable for the store, without the identifier."""
        return {
            "title": self.title,
            "author": self.author,
            "cover_image_url": self.cover_image_url,
            "synopsis": self.synopsis,
            "purchase_link": self.purchase_link,
            "ranking": self.ranking,
        }


class Book(BookBase):
    """
    A catalog record as read back from the store.
    """
    id: str = Field(..., description="Store-assigned identifier")

    @property
    def display_cover_url(self) -> str:
        """Cover URL to render, falling back to the placeholder image."""
        return self.cover_image_url or PLACEHOLDER_COVER_URL

    @property
    def has_purchase_link(self) -> bool:
        return bool(self.purchase_link)

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "6650f1a2c3d4e5f601234567",
                "title": "Example Title",
                "author": "Example Author",
                "cover_image_url": "https://thumbnail.image.rakuten.co.jp/0_mall/book/cabinet/0000/9784000000000.jpg",
                "synopsis": "An example synopsis.",
                "purchase_link": "https://books.rakuten.co.jp/rb/00000000/",
                "ranking": 1
            }
        }
    }


class BookCreate(BookBase):
    """Admin input for a new book."""
    title: str = Field(..., min_length=1, description="Book title")
    author: str = Field(..., min_length=1, description="Book author")
    ranking: int = Field(DEFAULT_RANKING, ge=0, description="Ranking, lower is better")

    @validator('cover_image_url', 'synopsis', 'purchase_link')
    def blank_to_none(cls, v):
        """Treat empty form fields as absent."""
        if v is not None and not v.strip():
            return None
        return v


class BookUpdate(BaseModel):
    """Admin input for editing a book; only provided fields are changed."""
    title: Optional[str] = Field(None, min_length=1)
    author: Optional[str] = Field(None, min_length=1)
    cover_image_url: Optional[str] = None
    synopsis: Optional[str] = None
    purchase_link: Optional[str] = None
    ranking: Optional[int] = Field(None, ge=0)

    @validator('cover_image_url', 'synopsis', 'purchase_link')
    def blank_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    def changed_fields(self) -> dict:
        """Fields explicitly set by the caller; required fields are never cleared."""
        fields = self.dict(exclude_unset=True)
        for required in ("title", "author", "ranking"):
            if required in fields and fields[required] is None:
                del fields[required]
        return fields


class FeedItem(BaseModel):
    """
    One entry of the ranking feed, keyed by the feed's own field names.

    Title and author must be non-empty, like admin input, so every stored
    record has both.
    """
    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    large_image_url: Optional[str] = Field(None, alias="largeImageUrl")
    item_caption: Optional[str] = Field(None, alias="itemCaption")
    item_url: Optional[str] = Field(None, alias="itemUrl")
    rank: Optional[int] = None

    model_config = {"populate_by_name": True}


class SyncResult(BaseModel):
    """
    Outcome of a successful sync run.
    """
    inserted_count: int = Field(..., description="Records inserted by the load phase")
    purged_count: int = Field(..., description="Records removed by the purge phase")
    start_time: datetime = Field(..., description="Run start time")
    end_time: datetime = Field(..., description="Run end time")
    duration_seconds: float = Field(..., description="Total run duration in seconds")

    @property
    def message(self) -> str:
        return f"Successfully inserted {self.inserted_count} books."


class AdminMutationResult(BaseModel):
    """
    Outcome of an admin create, update or delete.

    ``books`` is always re-read from the store after the attempt.
    """
    success: bool
    books: List[Book] = Field(default_factory=list)
    book: Optional[Book] = None
    affected: int = 0

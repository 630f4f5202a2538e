"""
Read and admin operations on the catalog.
"""

import random
from typing import List, Optional

import structlog

from .errors import UserMutationError
from .models import AdminMutationResult, Book, BookCreate, BookUpdate
from .store import CatalogStore

logger = structlog.get_logger(__name__)

RECOMMENDATION_COUNT = 3


class CatalogService:
    """Service layer used by the HTTP API."""

    def __init__(self, store: CatalogStore, rng: Optional[random.Random] = None):
        self.store = store
        self.rng = rng or random.Random()

    async def recommend(self, count: int = RECOMMENDATION_COUNT) -> List[Book]:
        """
        Pick an unweighted random sample of books.

        Returns ``count`` distinct records, or the whole catalog in random
        order when it holds fewer than ``count``.
        """
        books = await self.store.select_all()
        return self.rng.sample(books, min(count, len(books)))

    async def list_books(self) -> List[Book]:
        """All books ordered by ranking, best first."""
        return await self.store.select_all(order_by="ranking", ascending=True)

    async def create_book(self, data: BookCreate) -> AdminMutationResult:
        try:
            book = await self.store.insert_one(data)
        except Exception as e:
            await self._raise_mutation_error("create", e)
        logger.info("Book created", book_id=book.id, title=book.title)
        return AdminMutationResult(success=True, book=book, affected=1, books=await self.list_books())

    async def update_book(self, book_id: str, data: BookUpdate) -> AdminMutationResult:
        """
        Apply the provided fields to one book.

        ``affected`` is 0 when no book has ``book_id``.
        """
        fields = data.changed_fields()
        try:
            if fields:
                matched = await self.store.update_by_id(book_id, fields)
            else:
                matched = sum(1 for book in await self.store.select_all() if book.id == book_id)
        except Exception as e:
            await self._raise_mutation_error("update", e, book_id=book_id)
        logger.info("Book updated", book_id=book_id, matched=matched, fields=sorted(fields))
        return AdminMutationResult(success=True, affected=matched, books=await self.list_books())

    async def delete_book(self, book_id: str) -> AdminMutationResult:
        """Delete one book; an unknown identifier matches zero rows and is not an error."""
        try:
            deleted = await self.store.delete_by_id(book_id)
        except Exception as e:
            await self._raise_mutation_error("delete", e, book_id=book_id)
        logger.info("Book deleted", book_id=book_id, deleted=deleted)
        return AdminMutationResult(success=True, affected=deleted, books=await self.list_books())

    async def _raise_mutation_error(self, operation: str, error: Exception, book_id: Optional[str] = None) -> None:
        """Raise UserMutationError carrying a listing re-read after the failed call."""
        logger.error("Admin mutation failed", operation=operation, book_id=book_id, error=str(error))
        try:
            books = await self.list_books()
        except Exception as e:
            logger.error("Failed to refresh books after mutation", error=str(e))
            books = []
        raise UserMutationError(f"Failed to {operation} book: {error}", books=books) from error

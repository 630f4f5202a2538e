"""
Catalog store implementations.

``CatalogStore`` is the CRUD contract shared by the sync job and the
read/admin service. ``MongoCatalogStore`` backs it with MongoDB through
motor; ``InMemoryCatalogStore`` keeps records in a dict and is used for tests
and local development. Every call is atomic on its own, but nothing is
transactional across calls.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorCollection
from pymongo.errors import ConnectionFailure

from .models import Book, BookBase

logger = structlog.get_logger(__name__)


class CatalogStore(ABC):
    """CRUD contract for the ``books`` table."""

    async def connect(self) -> None:
        """Open the underlying connection, if any."""

    async def disconnect(self) -> None:
        """Release the underlying connection, if any."""

    @abstractmethod
    async def select_all(self, order_by: Optional[str] = None, ascending: bool = True) -> List[Book]:
        """Return every record, optionally sorted by one field."""

    @abstractmethod
    async def insert_many(self, records: List[BookBase]) -> int:
        """Insert records in one call and return how many were inserted."""

    @abstractmethod
    async def insert_one(self, record: BookBase) -> Book:
        """Insert one record and return it with its new identifier."""

    @abstractmethod
    async def update_by_id(self, book_id: str, fields: Dict[str, Any]) -> int:
        """Set ``fields`` on the matching record; return the match count."""

    @abstractmethod
    async def delete_by_id(self, book_id: str) -> int:
        """Delete the matching record; return the delete count (0 if none)."""

    @abstractmethod
    async def delete_where_ranking_gte(self, threshold: int) -> int:
        """Delete every record whose ranking is >= ``threshold``."""

    @abstractmethod
    async def count(self) -> int:
        """Number of records in the catalog."""

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform a store health check.

        Returns:
            Dictionary with health status
        """
        try:
            books_count = await self.count()
            return {"status": "healthy", "books_count": books_count}
        except Exception as e:
            logger.error("Store health check failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}


class MongoCatalogStore(CatalogStore):
    """
    Async MongoDB catalog store.
    """

    def __init__(self, connection_url: str, database_name: str, collection_name: str = "books"):
        """
        Initialize the MongoDB store.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
            collection_name: Name of the collection
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.collection_name = collection_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.collection: Optional[AsyncIOMotorCollection] = None

    async def connect(self) -> None:
        """Establish connection to MongoDB."""
        try:
            self.client = AsyncIOMotorClient(self.connection_url)
            self.database = self.client[self.database_name]
            self.collection = self.database[self.collection_name]

            await self.client.admin.command('ping')
            logger.info("Successfully connected to MongoDB",
                        database=self.database_name,
                        collection=self.collection_name)

            # Listing and purging both filter or sort on ranking
            await self.collection.create_index("ranking")

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    @staticmethod
    def _to_book(document: Dict[str, Any]) -> Book:
        document = dict(document)
        document["id"] = str(document.pop("_id"))
        return Book(**document)

    @staticmethod
    def _object_id(book_id: str) -> Optional[ObjectId]:
        try:
            return ObjectId(book_id)
        except (InvalidId, TypeError):
            return None

    async def select_all(self, order_by: Optional[str] = None, ascending: bool = True) -> List[Book]:
        cursor = self.collection.find({})
        if order_by:
            cursor = cursor.sort(order_by, 1 if ascending else -1)
        documents = await cursor.to_list(length=None)
        return [self._to_book(document) for document in documents]

    async def insert_many(self, records: List[BookBase]) -> int:
        if not records:
            return 0
        result = await self.collection.insert_many([record.to_document() for record in records])
        logger.debug("Batch insert completed", total=len(records), inserted=len(result.inserted_ids))
        return len(result.inserted_ids)

    async def insert_one(self, record: BookBase) -> Book:
        document = record.to_document()
        result = await self.collection.insert_one(document)
        return Book(id=str(result.inserted_id), **record.to_document())

    async def update_by_id(self, book_id: str, fields: Dict[str, Any]) -> int:
        object_id = self._object_id(book_id)
        if object_id is None:
            logger.warning("Book not found for update", book_id=book_id)
            return 0
        result = await self.collection.update_one({"_id": object_id}, {"$set": fields})
        if result.matched_count == 0:
            logger.warning("Book not found for update", book_id=book_id)
        return result.matched_count

    async def delete_by_id(self, book_id: str) -> int:
        object_id = self._object_id(book_id)
        if object_id is None:
            return 0
        result = await self.collection.delete_one({"_id": object_id})
        return result.deleted_count

    async def delete_where_ranking_gte(self, threshold: int) -> int:
        result = await self.collection.delete_many({"ranking": {"$gte": threshold}})
        return result.deleted_count

    async def count(self) -> int:
        return await self.collection.count_documents({})

    async def health_check(self) -> Dict[str, Any]:
        try:
            await self.database.command("ping")
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}
        return await super().health_check()


class InMemoryCatalogStore(CatalogStore):
    """
    Dict-backed catalog store with the same matching semantics as MongoDB.
    """

    def __init__(self, records: Optional[List[BookBase]] = None):
        self._documents: Dict[str, Dict[str, Any]] = {}
        for record in records or []:
            self._documents[self._new_id()] = record.to_document()

    @staticmethod
    def _new_id() -> str:
        return uuid.uuid4().hex

    async def select_all(self, order_by: Optional[str] = None, ascending: bool = True) -> List[Book]:
        books = [Book(id=book_id, **document) for book_id, document in self._documents.items()]
        if order_by:
            books.sort(key=lambda book: self._sort_key(getattr(book, order_by)), reverse=not ascending)
        return books

    @staticmethod
    def _sort_key(value: Any) -> tuple:
        # None sorts before any value, as in MongoDB
        if value is None:
            return (0, 0)
        return (1, value)

    async def insert_many(self, records: List[BookBase]) -> int:
        for record in records:
            self._documents[self._new_id()] = record.to_document()
        return len(records)

    async def insert_one(self, record: BookBase) -> Book:
        book_id = self._new_id()
        self._documents[book_id] = record.to_document()
        return Book(id=book_id, **self._documents[book_id])

    async def update_by_id(self, book_id: str, fields: Dict[str, Any]) -> int:
        if book_id not in self._documents:
            return 0
        self._documents[book_id].update(fields)
        return 1

    async def delete_by_id(self, book_id: str) -> int:
        return 1 if self._documents.pop(book_id, None) is not None else 0

    async def delete_where_ranking_gte(self, threshold: int) -> int:
        doomed = [
            book_id for book_id, document in self._documents.items()
            if document["ranking"] >= threshold
        ]
        for book_id in doomed:
            del self._documents[book_id]
        return len(doomed)

    async def count(self) -> int:
        return len(self._documents)


def create_store(settings) -> CatalogStore:
    """
    Build the store selected by ``settings.store_backend``.

    Raises:
        ConfigurationError: If the MongoDB settings are incomplete
    """
    if settings.store_backend == "memory":
        return InMemoryCatalogStore()
    settings.require_store_settings()
    return MongoCatalogStore(
        connection_url=settings.mongodb_url,
        database_name=settings.mongodb_database,
        collection_name=settings.mongodb_collection,
    )

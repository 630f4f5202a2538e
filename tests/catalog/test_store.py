"""
Tests for the catalog store implementations.
"""

import pytest
from bson import ObjectId
from unittest.mock import AsyncMock, MagicMock

from catalog.errors import ConfigurationError
from catalog.models import BookBase
from catalog.store import InMemoryCatalogStore, MongoCatalogStore, create_store
from utilities.config import CatalogConfig


class TestInMemoryCatalogStore:
    """Test cases for the in-memory store."""

    @pytest.mark.asyncio
    async def test_purge_predicate_matches_every_record(self, populated_store):
        deleted = await populated_store.delete_where_ranking_gte(0)

        assert deleted == 5
        assert await populated_store.count() == 0

    @pytest.mark.asyncio
    async def test_purge_threshold(self, populated_store):
        deleted = await populated_store.delete_where_ranking_gte(4)

        assert deleted == 2
        assert [book.ranking for book in await populated_store.select_all(order_by="ranking")] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_insert_one_assigns_identifier(self, empty_store):
        book = await empty_store.insert_one(BookBase(title="T", author="A", ranking=9))

        assert book.id
        assert (await empty_store.select_all())[0].id == book.id

    @pytest.mark.asyncio
    async def test_descending_order(self, populated_store):
        books = await populated_store.select_all(order_by="ranking", ascending=False)

        assert [book.ranking for book in books] == [5, 4, 3, 2, 1]

    @pytest.mark.asyncio
    async def test_ordering_by_optional_field_puts_missing_values_first(self, populated_store):
        books = await populated_store.select_all(order_by="cover_image_url")

        covers = [book.cover_image_url for book in books]
        assert covers[:2] == [None, None]
        assert covers[2:] == sorted(covers[2:])

        descending = await populated_store.select_all(order_by="cover_image_url", ascending=False)
        assert [book.cover_image_url for book in descending][-2:] == [None, None]


class TestMongoCatalogStore:
    """Test cases for the MongoDB store against a mocked collection."""

    @pytest.fixture
    def store(self):
        store = MongoCatalogStore("mongodb://localhost:27017", "test_db", "books")
        store.collection = MagicMock()
        return store

    @pytest.mark.asyncio
    async def test_select_all_sorts_and_converts_ids(self, store):
        object_id = ObjectId()
        cursor = MagicMock()
        cursor.sort.return_value = cursor
        cursor.to_list = AsyncMock(return_value=[{
            "_id": object_id,
            "title": "T",
            "author": "A",
            "cover_image_url": None,
            "synopsis": None,
            "purchase_link": None,
            "ranking": 3,
        }])
        store.collection.find.return_value = cursor

        books = await store.select_all(order_by="ranking")

        cursor.sort.assert_called_once_with("ranking", 1)
        assert books[0].id == str(object_id)
        assert books[0].ranking == 3

    @pytest.mark.asyncio
    async def test_purge_uses_ranking_filter(self, store):
        store.collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=7))

        deleted = await store.delete_where_ranking_gte(0)

        store.collection.delete_many.assert_awaited_once_with({"ranking": {"$gte": 0}})
        assert deleted == 7

    @pytest.mark.asyncio
    async def test_insert_many_with_no_records_skips_call(self, store):
        store.collection.insert_many = AsyncMock()

        assert await store.insert_many([]) == 0
        store.collection.insert_many.assert_not_called()

    @pytest.mark.asyncio
    async def test_insert_many_returns_inserted_count(self, store):
        store.collection.insert_many = AsyncMock(return_value=MagicMock(inserted_ids=[1, 2]))
        records = [BookBase(title=f"T{i}", author="A", ranking=i) for i in (1, 2)]

        assert await store.insert_many(records) == 2
        documents = store.collection.insert_many.await_args.args[0]
        assert [document["title"] for document in documents] == ["T1", "T2"]

    @pytest.mark.asyncio
    async def test_delete_unknown_id_matches_zero_rows(self, store):
        store.collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=0))

        assert await store.delete_by_id(str(ObjectId())) == 0

    @pytest.mark.asyncio
    async def test_delete_invalid_id_matches_zero_rows(self, store):
        store.collection.delete_one = AsyncMock()

        assert await store.delete_by_id("not-an-object-id") == 0
        store.collection.delete_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_by_id_sets_fields(self, store):
        object_id = ObjectId()
        store.collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1))

        matched = await store.update_by_id(str(object_id), {"title": "New"})

        store.collection.update_one.assert_awaited_once_with({"_id": object_id}, {"$set": {"title": "New"}})
        assert matched == 1


class TestCreateStore:
    """Test cases for the store factory."""

    def test_memory_backend(self):
        store = create_store(CatalogConfig(store_backend="memory"))

        assert isinstance(store, InMemoryCatalogStore)

    def test_mongodb_backend_requires_settings(self):
        settings = CatalogConfig(store_backend="mongodb", mongodb_url=None, mongodb_database=None)

        with pytest.raises(ConfigurationError, match="MONGODB_URL"):
            create_store(settings)

    def test_mongodb_backend(self):
        settings = CatalogConfig(
            store_backend="mongodb",
            mongodb_url="mongodb://localhost:27017",
            mongodb_database="recommender"
        )

        store = create_store(settings)

        assert isinstance(store, MongoCatalogStore)
        assert store.database_name == "recommender"
        assert store.collection_name == "books"

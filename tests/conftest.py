"""
Pytest configuration and shared fixtures.
"""

import httpx
import pytest

from catalog.feed_client import RakutenFeedClient
from catalog.models import BookBase
from catalog.store import InMemoryCatalogStore
from catalog.sync_job import CatalogSyncJob


def make_feed_payload(items):
    """Wrap raw items in the ranking feed envelope."""
    return {"Items": [{"Item": item} for item in items]}


def make_feed_transport(payload=None, status_code=200, content=None, requests=None, exc=None):
    """
    Build an httpx transport answering every request with a canned response.

    Args:
        payload: JSON body to return
        status_code: HTTP status to return
        content: Raw body, used instead of ``payload`` when given
        requests: Optional list collecting every request seen
        exc: Exception to raise instead of responding
    """
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        if exc is not None:
            raise exc
        if content is not None:
            return httpx.Response(status_code, content=content)
        return httpx.Response(status_code, json=payload)

    return httpx.MockTransport(handler)


def make_sync_job(store, transport, restore_on_load_failure=False):
    feed_client = RakutenFeedClient(application_id="test-app-id", transport=transport)
    return CatalogSyncJob(store, feed_client, restore_on_load_failure=restore_on_load_failure)


@pytest.fixture
def feed_items():
    """Three raw feed items as the ranking API returns them."""
    return [
        {
            "title": "Book One",
            "author": "Author One",
            "largeImageUrl": "https://thumbnail.example.com/1.jpg?_ex=120x120",
            "itemCaption": "First caption",
            "itemUrl": "https://books.example.com/1",
            "rank": 1,
        },
        {
            "title": "Book Two",
            "author": "Author Two",
            "largeImageUrl": "https://thumbnail.example.com/2.jpg?_ex=120x120",
            "itemCaption": "Second caption",
            "itemUrl": "https://books.example.com/2",
            "rank": 2,
        },
        {
            "title": "Book Three",
            "author": "Author Three",
            "largeImageUrl": "https://thumbnail.example.com/3.jpg",
            "itemCaption": "",
            "itemUrl": "https://books.example.com/3",
            "rank": 3,
        },
    ]


@pytest.fixture
def feed_payload(feed_items):
    return make_feed_payload(feed_items)


@pytest.fixture
def sample_records():
    """Five catalog records with distinct rankings."""
    return [
        BookBase(
            title=f"Existing {ranking}",
            author=f"Writer {ranking}",
            cover_image_url=f"https://covers.example.com/{ranking}.jpg" if ranking % 2 else None,
            synopsis=f"Synopsis {ranking}",
            purchase_link=f"https://shop.example.com/{ranking}" if ranking != 5 else None,
            ranking=ranking,
        )
        for ranking in (4, 2, 5, 1, 3)
    ]


@pytest.fixture
def populated_store(sample_records):
    """In-memory store holding the five sample records."""
    return InMemoryCatalogStore(sample_records)


@pytest.fixture
def empty_store():
    return InMemoryCatalogStore()


@pytest.fixture
def feed_transport():
    """Factory for canned ranking-feed transports."""
    return make_feed_transport


@pytest.fixture
def feed_envelope():
    """Factory wrapping raw items in the feed envelope."""
    return make_feed_payload


@pytest.fixture
def sync_job_factory():
    """Factory for sync jobs wired to an in-test transport."""
    return make_sync_job

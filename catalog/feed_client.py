"""
Client for the Rakuten Books ranking feed.
Issues one request per call and maps the response into book records.
"""

from typing import List, Optional

import httpx
import structlog
from pydantic import ValidationError

from .errors import ConfigurationError, UpstreamFetchError
from .models import BookBase, FeedItem

logger = structlog.get_logger(__name__)

RAKUTEN_BOOKS_URL = "https://app.rakuten.co.jp/services/api/BooksTotal/Search/20170404"
DEFAULT_GENRE_ID = "001004"
THUMBNAIL_SUFFIX = "?_ex=120x120"


def normalize_cover_url(url: Optional[str]) -> Optional[str]:
    """Strip the thumbnail size suffix so the full-resolution image is used."""
    if not url:
        return None
    if url.endswith(THUMBNAIL_SUFFIX):
        return url[:-len(THUMBNAIL_SUFFIX)]
    return url


def feed_item_to_book(item: FeedItem, position: int) -> BookBase:
    """
    Map a feed entry onto a catalog record.

    Args:
        item: Parsed feed entry
        position: 1-based position in the feed, used when the entry has no rank

    Returns:
        BookBase ready to be inserted
    """
    return BookBase(
        title=item.title,
        author=item.author,
        cover_image_url=normalize_cover_url(item.large_image_url),
        synopsis=item.item_caption,
        purchase_link=item.item_url,
        ranking=item.rank if item.rank is not None else position,
    )


class RakutenFeedClient:
    """
    Fetches the ranking feed for a fixed genre.
    """

    def __init__(
        self,
        application_id: Optional[str],
        api_url: str = RAKUTEN_BOOKS_URL,
        genre_id: str = DEFAULT_GENRE_ID,
        timeout: float = 30,
        headers: Optional[dict] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the feed client.

        Args:
            application_id: Rakuten application id sent with every request
            api_url: Ranking endpoint
            genre_id: Fixed books genre to query
            timeout: Request timeout in seconds
            headers: Extra request headers
            transport: Optional httpx transport, mainly for tests

        Raises:
            ConfigurationError: If ``application_id`` is empty
        """
        if not application_id:
            raise ConfigurationError("Rakuten App ID not found in configuration.")
        self.application_id = application_id
        self.api_url = api_url
        self.genre_id = genre_id
        self.client_config = {
            "timeout": timeout,
            "headers": headers or {},
            "follow_redirects": True,
        }
        if transport is not None:
            self.client_config["transport"] = transport

    def _params(self) -> dict:
        return {
            "format": "json",
            "booksGenreId": self.genre_id,
            "applicationId": self.application_id,
        }

    async def fetch_items(self) -> List[FeedItem]:
        """
        Request the feed and parse its entries in feed order.

        Raises:
            UpstreamFetchError: On transport failure, non-success status or unusable body
        """
        try:
            async with httpx.AsyncClient(**self.client_config) as client:
                response = await client.get(self.api_url, params=self._params())
        except httpx.HTTPError as e:
            raise UpstreamFetchError(f"Rakuten API request failed: {e}") from e

        if not response.is_success:
            raise UpstreamFetchError(
                f"Rakuten API request failed: {response.status_code} {response.reason_phrase}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamFetchError(f"Rakuten API returned invalid JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("Items"), list):
            raise UpstreamFetchError("Rakuten API response has no Items list")

        try:
            items = [FeedItem(**entry["Item"]) for entry in data["Items"]]
        except (KeyError, TypeError, ValidationError) as e:
            raise UpstreamFetchError(f"Rakuten API returned a malformed item: {e}") from e

        logger.debug("Parsed ranking feed", item_count=len(items))
        return items

    async def fetch_books(self) -> List[BookBase]:
        """Fetch the feed and map every entry to a catalog record."""
        items = await self.fetch_items()
        return [feed_item_to_book(item, position) for position, item in enumerate(items, start=1)]

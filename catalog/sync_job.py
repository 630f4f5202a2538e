"""
Catalog sync job: replace the whole catalog with the latest feed snapshot.

A run fetches the feed, purges every record (``ranking >= 0``) and bulk-inserts
the fetched records. The purge and load are separate store calls. A failed
purge leaves the catalog untouched; a failed load after a successful purge
leaves it empty unless ``restore_on_load_failure`` is enabled. Concurrent runs
are not serialized here.
"""

from datetime import datetime
from typing import List, Optional

from .errors import StoreLoadError, StorePurgeError
from .feed_client import RakutenFeedClient
from .models import Book, BookBase, SyncResult
from .store import CatalogStore
from utilities.logger import SyncLogger

PURGE_RANKING_THRESHOLD = 0


class CatalogSyncJob:
    """
    Fetch-purge-load orchestration for one sync run.
    """

    def __init__(
        self,
        store: CatalogStore,
        feed_client: RakutenFeedClient,
        restore_on_load_failure: bool = False
    ):
        """
        Initialize the sync job.

        Args:
            store: Catalog store to replace
            feed_client: Source of the new records
            restore_on_load_failure: Re-insert the pre-purge snapshot if the load fails
        """
        self.store = store
        self.feed_client = feed_client
        self.restore_on_load_failure = restore_on_load_failure
        self.sync_logger = SyncLogger("catalog_sync")

    async def run(self) -> SyncResult:
        """
        Execute one sync run.

        Returns:
            SyncResult describing the inserted and purged counts

        Raises:
            UpstreamFetchError: The feed could not be fetched; nothing was mutated
            StorePurgeError: The purge failed; the catalog is unchanged
            StoreLoadError: The load failed after the purge
        """
        start_time = datetime.utcnow()
        self.sync_logger.clear_context().bind_context(operation="catalog_sync")
        self.sync_logger.log_sync_start(self.feed_client.api_url)

        try:
            books = await self.feed_client.fetch_books()
        except Exception as e:
            self.sync_logger.log_error(str(e), phase="fetch")
            raise
        self.sync_logger.log_feed_fetched(len(books))

        snapshot = await self._take_snapshot()
        purged = await self._purge()
        inserted = await self._load(books, snapshot)

        end_time = datetime.utcnow()
        duration = (end_time - start_time).total_seconds()
        self.sync_logger.log_sync_complete(inserted, purged, duration)

        return SyncResult(
            inserted_count=inserted,
            purged_count=purged,
            start_time=start_time,
            end_time=end_time,
            duration_seconds=duration
        )

    async def _take_snapshot(self) -> Optional[List[Book]]:
        if not self.restore_on_load_failure:
            return None
        try:
            return await self.store.select_all()
        except Exception as e:
            self.sync_logger.log_error(str(e), phase="snapshot")
            raise StorePurgeError(f"Failed to snapshot catalog before purge: {e}") from e

    async def _purge(self) -> int:
        try:
            purged = await self.store.delete_where_ranking_gte(PURGE_RANKING_THRESHOLD)
        except Exception as e:
            self.sync_logger.log_phase("purge", success=False)
            self.sync_logger.log_error(str(e), phase="purge")
            raise StorePurgeError(f"Failed to delete existing books: {e}") from e
        self.sync_logger.log_phase("purge", success=True, count=purged)
        return purged

    async def _load(self, books: List[BookBase], snapshot: Optional[List[Book]]) -> int:
        try:
            inserted = await self.store.insert_many(books)
        except Exception as e:
            self.sync_logger.log_phase("load", success=False)
            self.sync_logger.log_error(str(e), phase="load")
            restored = await self._restore(snapshot)
            raise StoreLoadError(f"Failed to insert new books: {e}", restored=restored) from e
        self.sync_logger.log_phase("load", success=True, count=inserted)
        return inserted

    async def _restore(self, snapshot: Optional[List[Book]]) -> bool:
        """Best-effort re-insert of the pre-purge catalog; identifiers change."""
        if snapshot is None:
            return False
        records = [BookBase(**book.to_document()) for book in snapshot]
        try:
            restored = await self.store.insert_many(records)
        except Exception as e:
            self.sync_logger.log_phase("restore", success=False)
            self.sync_logger.log_error(str(e), phase="restore")
            return False
        self.sync_logger.log_phase("restore", success=True, count=restored)
        return True


def build_sync_job(store: CatalogStore, settings) -> CatalogSyncJob:
    """
    Build a sync job from settings.

    Raises:
        ConfigurationError: If the feed credential is missing
    """
    feed_client = RakutenFeedClient(
        application_id=settings.require_feed_credential(),
        api_url=settings.rakuten_api_url,
        genre_id=settings.rakuten_genre_id,
        timeout=settings.request_timeout,
        headers=settings.get_headers(),
    )
    return CatalogSyncJob(
        store=store,
        feed_client=feed_client,
        restore_on_load_failure=settings.sync_restore_on_load_failure,
    )

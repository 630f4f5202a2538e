"""
Main entry point for a single catalog sync run.
Replaces the catalog with the latest ranking snapshot and exits.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from catalog.store import create_store
from catalog.sync_job import build_sync_job
from utilities.config import config
from utilities.logger import setup_logging, get_logger


async def main():
    """Run one catalog sync."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )

    logger = get_logger(__name__)
    logger.info("Starting catalog sync")

    store = None
    try:
        store = create_store(config)
        await store.connect()

        job = build_sync_job(store, config)
        result = await job.run()

        logger.info(
            result.message,
            inserted=result.inserted_count,
            purged=result.purged_count,
            duration_seconds=result.duration_seconds
        )

    except Exception as e:
        logger.error("Catalog sync failed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)

    finally:
        if store is not None:
            await store.disconnect()


if __name__ == "__main__":
    asyncio.run(main())

"""
Main entry point for the catalog sync scheduler.

Usage: python scheduler_main.py [--test|--once]
"""

import asyncio
import sys
from functools import partial
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

import structlog
from utilities.logger import setup_logging
from utilities.config import config
from catalog.store import create_store
from catalog.sync_job import build_sync_job
from scheduler.scheduler_service import SchedulerService
from scheduler.models import SchedulerConfig


async def main():
    """Main function to start the scheduler service."""
    store = None
    try:
        setup_logging(
            log_level=config.log_level,
            log_format=config.log_format,
            log_file=config.log_file,
            debug=config.debug
        )

        logger = structlog.get_logger(__name__)
        logger.info("Starting catalog sync scheduler")

        store = create_store(config)

        scheduler_config = SchedulerConfig(
            schedule_hour=config.schedule_hour,
            schedule_minute=config.schedule_minute,
            timezone=config.timezone,
            enable_scheduled_sync=config.enable_scheduled_sync
        )

        scheduler_service = SchedulerService(
            scheduler_config,
            store,
            partial(build_sync_job, settings=config)
        )

        test_mode = False
        run_once = False

        if len(sys.argv) > 1:
            if sys.argv[1] == '--test':
                test_mode = True
                print("\n" + "="*60)
                print("🧪 TEST MODE ENABLED")
                print("="*60)
                print(f"✅ Catalog Sync: Every {scheduler_config.test_interval_minutes} minutes")
                print("="*60)
            elif sys.argv[1] == '--once':
                run_once = True
                print("\n" + "="*60)
                print("🔄 RUN ONCE MODE ENABLED")
                print("="*60)
                print("✅ Catalog Sync: Single run")
                print("✅ Exit after completion")
                print("="*60)
            else:
                print(f"Unknown argument: {sys.argv[1]}")
                print("Usage: python scheduler_main.py [--test|--once]")
                sys.exit(1)
        else:
            print("\n" + "="*60)
            print("🏭 DAEMON MODE ENABLED")
            print("="*60)
            print(f"✅ Catalog Sync: Daily at {scheduler_config.schedule_hour:02d}:{scheduler_config.schedule_minute:02d} {scheduler_config.timezone}")
            print("="*60)

        await scheduler_service.start(test_mode=test_mode, run_once=run_once)

        if run_once and not (scheduler_service.last_run and scheduler_service.last_run.success):
            sys.exit(1)

    except KeyboardInterrupt:
        print("Received keyboard interrupt, shutting down...")
    except Exception as e:
        structlog.get_logger(__name__).error("Failed to start scheduler service", error=str(e))
        sys.exit(1)
    finally:
        if store is not None:
            await store.disconnect()


if __name__ == "__main__":
    asyncio.run(main())

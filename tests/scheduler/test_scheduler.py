"""
Test cases for the catalog sync scheduler.
Covers configuration validation, run recording and job registration.
"""

import pytest
from unittest.mock import AsyncMock
from apscheduler.triggers.cron import CronTrigger
from pydantic import ValidationError

from catalog.errors import ConfigurationError
from scheduler.models import SchedulerConfig, SyncRunRecord
from scheduler.scheduler_service import SchedulerService, SYNC_JOB_ID


class TestSchedulerConfig:
    """Test cases for SchedulerConfig model."""

    def test_defaults(self):
        config = SchedulerConfig()

        assert config.schedule_hour == 3
        assert config.schedule_minute == 0
        assert config.timezone == "Asia/Tokyo"
        assert config.enable_scheduled_sync is True

    def test_invalid_schedule_hour(self):
        """Test validation of invalid schedule hour."""
        with pytest.raises(ValidationError):
            SchedulerConfig(schedule_hour=24)

        with pytest.raises(ValidationError):
            SchedulerConfig(schedule_hour=-1)

    def test_invalid_schedule_minute(self):
        """Test validation of invalid schedule minute."""
        with pytest.raises(ValidationError):
            SchedulerConfig(schedule_minute=60)

    def test_edge_case_times(self):
        config = SchedulerConfig(schedule_hour=23, schedule_minute=59)
        assert config.schedule_hour == 23
        assert config.schedule_minute == 59


class TestSyncRunRecord:
    """Test cases for SyncRunRecord model."""

    def test_failure_record(self):
        record = SyncRunRecord(success=False, error="boom", error_type="UpstreamFetchError")

        assert record.inserted_count == 0
        assert record.started_at is not None


class TestSchedulerService:
    """Test cases for SchedulerService."""

    @pytest.fixture
    def service_factory(self, populated_store, sync_job_factory, feed_transport, feed_payload):
        def build(config=None, job_factory=None):
            if job_factory is None:
                def job_factory(store):
                    return sync_job_factory(store, feed_transport(payload=feed_payload))
            return SchedulerService(config or SchedulerConfig(), populated_store, job_factory)
        return build

    @pytest.mark.asyncio
    async def test_run_sync_records_success(self, service_factory, populated_store):
        service = service_factory()

        record = await service.run_sync()

        assert record.success is True
        assert record.inserted_count == 3
        assert service.last_run is record
        assert await populated_store.count() == 3

    @pytest.mark.asyncio
    async def test_run_sync_records_failure(self, service_factory, populated_store, sync_job_factory, feed_transport):
        service = service_factory(
            job_factory=lambda store: sync_job_factory(store, feed_transport(payload={}, status_code=500))
        )

        record = await service.run_sync()

        assert record.success is False
        assert record.error_type == "UpstreamFetchError"
        assert await populated_store.count() == 5

    @pytest.mark.asyncio
    async def test_configuration_error_is_recorded(self, service_factory):
        def missing_credential(store):
            raise ConfigurationError("Rakuten App ID not found in configuration.")

        service = service_factory(job_factory=missing_credential)

        record = await service.run_sync()

        assert record.success is False
        assert record.error_type == "ConfigurationError"

    def test_daily_job_registration(self, service_factory):
        service = service_factory(SchedulerConfig(schedule_hour=4, schedule_minute=15))

        service._add_scheduled_jobs()

        job = service.scheduler.get_job(SYNC_JOB_ID)
        assert job is not None
        assert isinstance(job.trigger, CronTrigger)
        assert job.max_instances == 1
        assert job.coalesce is True
        fields = {field.name: str(field) for field in job.trigger.fields}
        assert fields["hour"] == "4"
        assert fields["minute"] == "15"

    def test_disabled_sync_adds_no_job(self, service_factory):
        service = service_factory(SchedulerConfig(enable_scheduled_sync=False))

        service._add_scheduled_jobs()

        assert service.scheduler.get_jobs() == []

    def test_test_mode_job_registration(self, service_factory):
        service = service_factory(SchedulerConfig(test_interval_minutes=5))

        service._add_test_scheduled_jobs()

        assert service.scheduler.get_job(f"test_{SYNC_JOB_ID}") is not None

    @pytest.mark.asyncio
    async def test_run_once_does_not_start_scheduler(self, service_factory, populated_store, monkeypatch):
        connect = AsyncMock()
        monkeypatch.setattr(populated_store, "connect", connect)
        service = service_factory()

        await service.start(run_once=True)

        connect.assert_awaited_once()
        assert service.last_run.success is True
        assert service.scheduler.running is False

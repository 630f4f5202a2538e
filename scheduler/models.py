"""
Models for the catalog sync scheduler.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SchedulerConfig(BaseModel):
    """Configuration for the scheduler system."""
    schedule_hour: int = Field(default=3, ge=0, le=23, description="Hour to run the daily sync (24h format)")
    schedule_minute: int = Field(default=0, ge=0, le=59, description="Minute to run the daily sync")
    timezone: str = Field(default="Asia/Tokyo", description="Timezone for scheduling")
    enable_scheduled_sync: bool = Field(default=True)
    test_interval_minutes: int = Field(default=2, ge=1, description="Interval used in test mode")


class SyncRunRecord(BaseModel):
    """Outcome of one scheduled sync run, kept for logging and inspection."""
    started_at: datetime = Field(default_factory=datetime.utcnow)
    success: bool
    inserted_count: int = 0
    duration_seconds: float = 0.0
    error: Optional[str] = None
    error_type: Optional[str] = None

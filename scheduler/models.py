"""
Models for the scheduler and schedule change detection.

This module defines Pydantic models for:
- Field changes found by the diff engine
- Assembled change reports
- Poll cycle results
- Alerting and scheduler configuration
"""

from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel, Field


class FieldChange(BaseModel):
    """A single diffable field whose value differs between two snapshots."""
    field: str = Field(..., description="Name of the changed field")
    before: Optional[Any] = Field(default=None, description="Previous value")
    after: Optional[Any] = Field(default=None, description="New value")


class ChangeReport(BaseModel):
    """Human-readable report of the differences between two snapshots."""
    report_id: str = Field(..., description="Unique report identifier")
    event: str = Field(..., description="Event the schedule belongs to")
    generated_at: datetime = Field(default_factory=datetime.utcnow)
    before_fetched_at: Optional[datetime] = Field(default=None)
    after_fetched_at: Optional[datetime] = Field(default=None)

    field_changes: List[str] = Field(default_factory=list, description="Content change lines")
    order_changes: List[str] = Field(default_factory=list, description="Reorder lines")
    text: str = Field(default="", description="Assembled notification text")

    @property
    def has_changes(self) -> bool:
        """An empty report means there is nothing to send."""
        return bool(self.text)

    class Config:
        """Pydantic configuration."""
        json_encoders = {
            datetime: lambda v: v.isoformat()
        }


class CheckResult(BaseModel):
    """Outcome of one poll cycle."""
    event: str
    run_timestamp: datetime = Field(default_factory=datetime.utcnow)
    runs_fetched: int = Field(default=0)
    baseline: bool = Field(default=False, description="No previous snapshot existed")
    field_changes: int = Field(default=0)
    order_changes: int = Field(default=0)
    report_id: Optional[str] = Field(default=None)
    delivered: bool = Field(default=False)
    duration_seconds: float = Field(default=0.0)

    success: bool = Field(default=True)
    errors: List[str] = Field(default_factory=list)

    class Config:
        """Pydantic configuration."""
        json_encoders = {
            datetime: lambda v: v.isoformat()
        }


class AlertConfig(BaseModel):
    """Configuration for the alerting system."""
    enabled: bool = Field(default=True)
    log_enabled: bool = Field(default=True)
    webhook_url: Optional[str] = Field(default=None, description="Chat webhook receiving reports")
    webhook_timeout: float = Field(default=10.0, gt=0)
    message_limit: int = Field(default=2000, ge=100, description="Max characters per webhook message")


class SchedulerConfig(BaseModel):
    """Configuration for the scheduler system."""
    # Event
    event_id: int = Field(default=23, description="Tracker event identifier")
    event_name: str = Field(default="SGDQ2018", description="Event name used in reports and storage")

    # Scheduling
    poll_interval_seconds: int = Field(default=60, ge=10, le=86400, description="Seconds between schedule checks")
    test_poll_interval_seconds: int = Field(default=30, ge=1, description="Poll interval in test mode")
    timezone: str = Field(default="UTC", description="Timezone for scheduling")

    # Reporting
    store_reports: bool = Field(default=True, description="Keep delivered reports in the database")

    # Alerting
    alert_config: AlertConfig = Field(default_factory=AlertConfig)

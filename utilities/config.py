"""
Configuration management using environment variables.
Handles all watcher settings with proper validation and defaults.
"""

from typing import Optional
from pydantic import Field, validator
from pydantic_settings import BaseSettings
from pathlib import Path


class WatcherConfig(BaseSettings):
    """
    Configuration class for schedule watcher settings.
    Uses pydantic BaseSettings for environment variable management.
    """

    # MongoDB Configuration
    mongodb_url: str = Field(default="mongodb://localhost:27017", env="MONGODB_URL")
    mongodb_database: str = Field(default="schedule_watch", env="MONGODB_DATABASE")
    snapshot_collection: str = Field(default="snapshots", env="SNAPSHOT_COLLECTION")
    report_collection: str = Field(default="change_reports", env="REPORT_COLLECTION")

    # Tracker Configuration
    tracker_url: str = Field(default="https://gamesdonequick.com/tracker/search", env="TRACKER_URL")
    event_id: int = Field(default=23, env="EVENT_ID")
    event_name: str = Field(default="SGDQ2018", env="EVENT_NAME")
    request_timeout: int = Field(default=30, env="REQUEST_TIMEOUT")
    retry_attempts: int = Field(default=3, env="RETRY_ATTEMPTS")
    retry_delay: float = Field(default=1.0, env="RETRY_DELAY")

    # Polling Configuration
    poll_interval_seconds: int = Field(default=60, env="POLL_INTERVAL_SECONDS")
    timezone: str = Field(default="UTC", env="TIMEZONE")
    store_reports: bool = Field(default=True, env="STORE_REPORTS")

    # Alerting Configuration
    webhook_url: Optional[str] = Field(default=None, env="WEBHOOK_URL")
    alerting_enabled: bool = Field(default=True, env="ALERTING_ENABLED")

    # Logging Configuration
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    log_format: str = Field(default="json", env="LOG_FORMAT")
    log_file: Optional[str] = Field(default="logs/watcher.log", env="LOG_FILE")

    # Development/Testing
    debug: bool = Field(default=False, env="DEBUG")
    test_mode: bool = Field(default=False, env="TEST_MODE")

    @validator('request_timeout')
    def validate_timeout(cls, v):
        """Ensure timeout is reasonable."""
        if v < 5 or v > 300:
            raise ValueError('request_timeout must be between 5 and 300 seconds')
        return v

    @validator('retry_attempts')
    def validate_retry_attempts(cls, v):
        """Ensure retry attempts is reasonable."""
        if v < 0 or v > 10:
            raise ValueError('retry_attempts must be between 0 and 10')
        return v

    @validator('poll_interval_seconds')
    def validate_poll_interval(cls, v):
        """Don't hammer the tracker."""
        if v < 10 or v > 86400:
            raise ValueError('poll_interval_seconds must be between 10 and 86400')
        return v

    @validator('log_level')
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @validator('log_format')
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Ignore extra fields from .env

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None

    def get_user_agent(self) -> str:
        """Get user agent string for requests."""
        return "ScheduleWatch/1.0 (+marathon schedule change notifier)"

    def get_headers(self) -> dict:
        """Get default headers for HTTP requests."""
        return {
            "User-Agent": self.get_user_agent(),
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
        }


# Global configuration instance
config = WatcherConfig()

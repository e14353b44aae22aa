"""
Pydantic models for tracker run data.
Mirrors the shape of the donation tracker search API for speedrun records.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator


class RunFields(BaseModel):
    """
    Field set of a single scheduled run.

    Only ``name`` and ``order`` are required; everything else defaults so a
    payload that omits a field we never read still parses.
    """
    # Diffable content
    category: str = Field(default="", description="Run category, e.g. Any%")
    coop: bool = Field(default=False, description="Co-op run flag")
    console: str = Field(default="", description="Platform the run is played on")
    name: str = Field(..., description="Game name")
    release_year: Optional[int] = Field(default=None, description="Game release year")
    display_name: str = Field(default="", description="Name shown on the schedule")
    commentators: str = Field(default="", description="Commentator names")
    deprecated_runners: str = Field(default="", description="Legacy runner name text")
    description: str = Field(default="", description="Run description")

    # Schedule placement
    order: int = Field(..., description="Position of the run in the schedule")

    # Not diffed
    giantbomb_id: Optional[int] = Field(default=None)
    setup_time: Optional[str] = Field(default=None)
    event: Optional[int] = Field(default=None)
    public: str = Field(default="")
    run_time: Optional[str] = Field(default=None)
    starttime: Optional[str] = Field(default=None)
    endtime: Optional[str] = Field(default=None)
    runners: List[int] = Field(default_factory=list, description="Runner ids")

    class Config:
        """Pydantic configuration."""
        extra = "ignore"
        frozen = True


class Run(BaseModel):
    """One scheduled run with a stable identity."""
    pk: int = Field(..., description="Tracker primary key")
    model: str = Field(default="tracker.speedrun")
    fields: RunFields

    class Config:
        """Pydantic configuration."""
        extra = "ignore"
        frozen = True


class Snapshot(BaseModel):
    """
    Full schedule of an event as fetched at one point in time.

    ``runs`` keeps the order the tracker returned, which is the order the
    schedule is presented in.
    """
    event: str = Field(..., description="Event name the schedule belongs to")
    runs: List[Run] = Field(default_factory=list)
    fetched_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode="after")
    def validate_unique_pks(self):
        """Reject schedules where a pk appears more than once."""
        seen = set()
        duplicates = []
        for run in self.runs:
            if run.pk in seen and run.pk not in duplicates:
                duplicates.append(run.pk)
            seen.add(run.pk)
        if duplicates:
            raise ValueError(f"Snapshot contains duplicate run pks: {duplicates}")
        return self

    def __len__(self) -> int:
        return len(self.runs)

    class Config:
        """Pydantic configuration."""
        json_encoders = {
            datetime: lambda v: v.isoformat()
        }

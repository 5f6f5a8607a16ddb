from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path

from faxagent.config import Settings


class FileLocation(str, Enum):
    DROP = "drop"
    CACHE = "cache"


@dataclass(frozen=True)
class FileEntry:
    """Metadata snapshot of one file, taken right before a policy is applied."""

    path: Path
    location: FileLocation
    extension: str  # lower-case, including the dot ("" when there is none)
    last_write_time: datetime
    creation_time: datetime

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class LifecycleConfiguration:
    """Typed, immutable view of the lifecycle settings used by the scans."""

    drop_directory: Path
    cache_directory: Path
    prune_interval: timedelta
    drop_file_max_age: timedelta
    error_interval: timedelta
    max_error_checks: int
    cache_interval: timedelta
    cache_days_to_keep: int

    @property
    def cache_max_age(self) -> timedelta:
        return timedelta(days=self.cache_days_to_keep)

    @classmethod
    def from_settings(cls, settings: Settings) -> "LifecycleConfiguration":
        return cls(
            drop_directory=Path(settings.drop_directory),
            cache_directory=Path(settings.cache_directory),
            prune_interval=timedelta(hours=settings.drop_prune_interval_hours),
            drop_file_max_age=timedelta(hours=settings.drop_file_age_hours),
            error_interval=timedelta(minutes=settings.drop_error_interval_minutes),
            max_error_checks=settings.drop_max_error_checks,
            cache_interval=timedelta(hours=settings.cache_interval_hours),
            cache_days_to_keep=settings.error_cache_days_to_keep,
        )

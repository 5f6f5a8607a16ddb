from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ScanName(str, Enum):
    """
    De tre periodiske scans.

    Prune: sletter gamle filer uden kendt extension i drop mappen
    ErrorRetry: omdøber .error til .eml, eller flytter til cache efter max forsøg
    CacheExpiry: sletter .error filer i cache der er ældre end grænsen
    """

    PRUNE = "prune"
    ERROR_RETRY = "error-retry"
    CACHE_EXPIRY = "cache-expiry"


class ScanResult(BaseModel):
    """Tællere for ét gennemløb af en mappe."""

    scan_name: ScanName
    directory: str = Field(..., description="Mappen der blev scannet")
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    examined: int = Field(default=0, ge=0, description="Filer der matchede scannets extension filter")
    deleted: int = Field(default=0, ge=0)
    renamed: int = Field(default=0, ge=0)
    cached: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0, description="Filer der forsvandt undervejs")
    errors: int = Field(default=0, ge=0)

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    def summary(self) -> str:
        return (
            f"{self.scan_name.value} scan of {self.directory}: "
            f"examined={self.examined} deleted={self.deleted} renamed={self.renamed} "
            f"cached={self.cached} skipped={self.skipped} errors={self.errors} "
            f"({self.duration_seconds:.2f}s)"
        )


class ScanStatus(BaseModel):
    name: ScanName
    interval_seconds: float
    is_running: bool
    run_count: int = 0
    last_run_at: Optional[datetime] = None
    last_result: Optional[ScanResult] = None


class ServiceStatus(BaseModel):
    is_running: bool
    drop_directory: str
    cache_directory: str
    retry_ledger_size: int
    scans: List[ScanStatus]
    settings: Dict[str, Any] = Field(default_factory=dict)

"""
Pytest configuration og shared fixtures.
"""

import os
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from faxagent.config import Settings
from faxagent.core.audit import AuditLogger
from faxagent.core.retry_ledger import RetryLedger
from faxagent.dependencies import reset_singletons
from faxagent.services.domain_objects import LifecycleConfiguration
from faxagent.services.lifecycle_engine import LifecycleEngine
from faxagent.services.transmission_parties import TransmissionPartiesExtractor

FAX_CONTENT = (
    "x-sender: alice@example.com\n"
    "x-receiver: +4512345678\n"
    "\n"
    "Body without header\n"
)


@pytest.fixture(autouse=True)
def clean_singletons():
    """Automatically reset singletons before hver test."""
    reset_singletons()
    yield
    reset_singletons()


@pytest.fixture
def drop_dir(tmp_path) -> Path:
    path = tmp_path / "drop"
    path.mkdir()
    return path


@pytest.fixture
def cache_dir(tmp_path) -> Path:
    path = tmp_path / "cache"
    path.mkdir()
    return path


@pytest.fixture
def make_settings(tmp_path, drop_dir, cache_dir):
    """Settings factory isolated from settings.env files on disk."""

    def _make(**overrides) -> Settings:
        values = {
            "rightFaxDropDirectory": str(drop_dir),
            "rightFaxCacheDirectory": str(cache_dir),
            "rightFaxDropPruneInterval": 1,
            "rightFaxDropFileAgeHours": 8,
            "rightFaxDropErrorInterval": 5,
            "rightFaxDropMaxErrorChecks": 3,
            "rightFaxCacheInterval": 12,
            "errorCacheDaysToKeep": 30,
            "log_file_path": str(tmp_path / "logs" / "fax_agent.log"),
            "audit_log_file_path": str(tmp_path / "logs" / "fax_audit.log"),
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def audit_logger() -> AuditLogger:
    return AuditLogger(history_size=100)


@pytest.fixture
def retry_ledger() -> RetryLedger:
    return RetryLedger()


@pytest.fixture
def lifecycle_config(settings) -> LifecycleConfiguration:
    return LifecycleConfiguration.from_settings(settings)


@pytest.fixture
def clock():
    """Controllable clock; advance by assigning clock.now."""

    class _Clock:
        def __init__(self):
            self.now = datetime.now()

        def __call__(self) -> datetime:
            return self.now

        def advance(self, delta: timedelta) -> None:
            self.now += delta

    return _Clock()


@pytest.fixture
def engine(lifecycle_config, retry_ledger, audit_logger, clock) -> LifecycleEngine:
    return LifecycleEngine(
        config=lifecycle_config,
        retry_ledger=retry_ledger,
        audit_logger=audit_logger,
        parties_extractor=TransmissionPartiesExtractor(audit_logger),
        clock=clock,
    )


@pytest.fixture
def write_fax():
    """Create a fax file with its last-write time ``age`` in the past."""

    def _write(path: Path, content: str = FAX_CONTENT, age: timedelta = timedelta(0)) -> Path:
        path.write_text(content, encoding="utf-8")
        if age:
            timestamp = (datetime.now() - age).timestamp()
            os.utime(path, (timestamp, timestamp))
        return path

    return _write

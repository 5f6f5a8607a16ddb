import asyncio
import logging
from pathlib import Path
from typing import Dict

from faxagent.config import Settings
from faxagent.core.audit import AuditCategory, AuditLogger, AuditSeverity
from faxagent.core.retry_ledger import RetryLedger
from faxagent.models import ScanName, ScanResult, ServiceStatus
from .lifecycle_engine import LifecycleEngine
from .periodic_scan import PeriodicScan


class FaxDropService:
    """
    Service host: records the configuration, runs the three scan triggers and
    clears the retry ledger on shutdown.
    """

    def __init__(
        self,
        settings: Settings,
        engine: LifecycleEngine,
        retry_ledger: RetryLedger,
        audit_logger: AuditLogger,
    ):
        self._settings = settings
        self._engine = engine
        self._retry_ledger = retry_ledger
        self._audit_logger = audit_logger
        self._is_running = False

        config = engine.config
        self._scans: Dict[ScanName, PeriodicScan] = {
            ScanName.PRUNE: PeriodicScan(
                ScanName.PRUNE, config.prune_interval, engine.prune_drop_directory
            ),
            ScanName.ERROR_RETRY: PeriodicScan(
                ScanName.ERROR_RETRY, config.error_interval, engine.retry_error_files
            ),
            ScanName.CACHE_EXPIRY: PeriodicScan(
                ScanName.CACHE_EXPIRY, config.cache_interval, engine.expire_cache
            ),
        }

    @property
    def is_running(self) -> bool:
        return self._is_running

    async def start(self) -> None:
        if self._is_running:
            logging.warning("Fax drop service is already running")
            return

        await self._prepare_directories()
        self._record_configuration()

        if not self._settings.receiver_header_prefix:
            logging.warning(
                "receiverHeaderPrefix is empty - every line with a colon is reported as a Receiver"
            )

        for scan in self._scans.values():
            await scan.start()

        self._is_running = True
        logging.info("Fax drop service started")

    async def stop(self) -> None:
        if not self._is_running:
            return

        for scan in self._scans.values():
            await scan.stop()

        self._retry_ledger.clear()
        self._is_running = False
        logging.info("Fax drop service stopped")

    def get_scan(self, name: ScanName) -> PeriodicScan:
        return self._scans[name]

    async def run_scan_now(self, name: ScanName) -> ScanResult:
        logging.info(f"Manual {name.value} scan requested")
        return await self._scans[name].run_once()

    def get_status(self) -> ServiceStatus:
        config = self._engine.config
        return ServiceStatus(
            is_running=self._is_running,
            drop_directory=str(config.drop_directory),
            cache_directory=str(config.cache_directory),
            retry_ledger_size=len(self._retry_ledger),
            scans=[scan.status() for scan in self._scans.values()],
            settings=self._settings.lifecycle_settings(),
        )

    async def _prepare_directories(self) -> None:
        config = self._engine.config

        if not await asyncio.to_thread(config.drop_directory.is_dir):
            logging.warning(
                f"Drop directory does not exist: {config.drop_directory} - scans will report errors until it appears"
            )

        cache_directory: Path = config.cache_directory
        if not await asyncio.to_thread(cache_directory.is_dir):
            logging.info(f"Creating missing cache directory: {cache_directory}")
            try:
                await asyncio.to_thread(cache_directory.mkdir, parents=True, exist_ok=True)
            except OSError as e:
                logging.error(f"Failed to create cache directory {cache_directory}: {e}")

    def _record_configuration(self) -> None:
        lines = ["[Fax Agent Configuration]"]
        lines += [f"{key}: {value}" for key, value in self._settings.lifecycle_settings().items()]
        lines += ["", "[Event IDs]"]
        lines += [f"{category.label}: {int(category)}" for category in AuditCategory]

        self._audit_logger.record(
            "\n".join(lines) + "\n",
            AuditSeverity.INFORMATION,
            AuditCategory.CONFIG,
        )

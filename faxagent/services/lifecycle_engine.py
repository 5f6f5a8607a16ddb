import asyncio
import errno
import logging
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, List

import aiofiles.os

from faxagent.core.audit import AuditCategory, AuditLogger, AuditSeverity
from faxagent.core.exceptions import FileProbeError
from faxagent.core.retry_ledger import RetryLedger
from faxagent.models import ScanName, ScanResult
from faxagent.utils.file_operations import change_extension, move_to_directory
from .domain_objects import FileLocation, LifecycleConfiguration
from .metadata_prober import file_extension, list_directory_files, probe_file
from .transmission_parties import ARROW, TransmissionPartiesExtractor

ERROR_EXTENSION = ".error"
RETRY_EXTENSION = ".eml"
# Filer med disse extensions er i gang hos RightFax og må ikke prunes
PRUNE_EXEMPT_EXTENSIONS = frozenset({".eml", ".bak", ERROR_EXTENSION})

FileHandler = Callable[[Path, ScanResult], Awaitable[None]]


class LifecycleEngine:
    """
    The three scans that move fax files through their lifecycle.

    ACTIVE drop files older than the age threshold are deleted. ``.error``
    files are renamed back to ``.eml`` until the retry budget is spent, then
    moved to the cache. ``.error`` files in the cache are deleted once older
    than the configured number of days.

    Every scan lists its directory fresh and handles each file in isolation:
    a failure on one file becomes an Error audit event and the pass continues.
    """

    def __init__(
        self,
        config: LifecycleConfiguration,
        retry_ledger: RetryLedger,
        audit_logger: AuditLogger,
        parties_extractor: TransmissionPartiesExtractor,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._config = config
        self._retry_ledger = retry_ledger
        self._audit_logger = audit_logger
        self._parties = parties_extractor
        self._clock = clock

    @property
    def config(self) -> LifecycleConfiguration:
        return self._config

    async def prune_drop_directory(self) -> ScanResult:
        return await self._run_scan(
            ScanName.PRUNE, self._config.drop_directory, self._prune_file
        )

    async def retry_error_files(self) -> ScanResult:
        return await self._run_scan(
            ScanName.ERROR_RETRY, self._config.drop_directory, self._retry_error_file
        )

    async def expire_cache(self) -> ScanResult:
        return await self._run_scan(
            ScanName.CACHE_EXPIRY, self._config.cache_directory, self._expire_cache_file
        )

    async def _run_scan(
        self, scan_name: ScanName, directory: Path, handler: FileHandler
    ) -> ScanResult:
        result = ScanResult(
            scan_name=scan_name, directory=str(directory), started_at=self._clock()
        )

        for file_path in await self._list_files(directory, result):
            try:
                await handler(file_path, result)
            except FileProbeError as e:
                result.skipped += 1
                logging.debug(f"Skipping {file_path.name}: {e.reason}")
            except Exception as e:
                result.errors += 1
                logging.error(f"Error processing file {file_path}: {e}")
                self._audit_logger.record(
                    f"Error processing file: {file_path}.\n{e}",
                    AuditSeverity.ERROR,
                    AuditCategory.ERROR,
                )

        result.finished_at = self._clock()
        logging.debug(result.summary())
        return result

    async def _list_files(self, directory: Path, result: ScanResult) -> List[Path]:
        try:
            return await list_directory_files(directory)
        except OSError as e:
            result.errors += 1
            logging.error(f"Could not list {directory}: {e}")
            self._audit_logger.record(
                f"Error scanning directory: {directory}.\n{e}",
                AuditSeverity.ERROR,
                AuditCategory.ERROR,
            )
            return []

    # Prune

    async def _prune_file(self, file_path: Path, result: ScanResult) -> None:
        if file_extension(file_path) in PRUNE_EXEMPT_EXTENSIONS:
            return

        entry = await probe_file(file_path, FileLocation.DROP)
        result.examined += 1

        if self._clock() - entry.last_write_time <= self._config.drop_file_max_age:
            return

        # Læs afsender før filen slettes
        parties = await self._parties.describe(file_path)
        if not await self._delete(file_path, result):
            return

        result.deleted += 1
        self._audit_logger.record(
            f"[Automated Process - Removed File]\nFile: {entry.name}\n\n"
            f"[Action]\nFax transmission DELETED.\n{parties}",
            AuditSeverity.WARNING,
            AuditCategory.DELETED,
        )

    # Error retry

    async def _retry_error_file(self, file_path: Path, result: ScanResult) -> None:
        if file_extension(file_path) != ERROR_EXTENSION:
            return

        result.examined += 1
        filename = file_path.name
        previous_count = self._retry_ledger.current_count(filename)

        if previous_count is None or previous_count + 1 < self._config.max_error_checks:
            await self._requeue_error_file(file_path, result)
        else:
            await self._cache_error_file(file_path, previous_count + 1, result)

    async def _requeue_error_file(self, file_path: Path, result: ScanResult) -> None:
        filename = file_path.name
        target = change_extension(file_path, RETRY_EXTENSION)

        # Ikke atomisk: på POSIX overskriver rename en .eml der opstår imellem
        if await aiofiles.os.path.exists(target):
            raise FileExistsError(
                errno.EEXIST, "Retry target already exists", str(target)
            )

        parties = await self._parties.describe(file_path)
        try:
            await aiofiles.os.rename(file_path, target)
        except FileNotFoundError:
            result.skipped += 1
            logging.debug(f"{filename} disappeared before it could be renamed")
            return

        attempt = self._retry_ledger.record_attempt(filename)
        result.renamed += 1
        self._audit_logger.record(
            f"[Automated Process - Renamed File]\n{filename} {ARROW} {target.name}\n\n"
            f"[Action]\nERROR file renamed to EML.\nAttempt: {attempt}\n{parties}",
            AuditSeverity.WARNING,
            AuditCategory.RENAMED,
        )

    async def _cache_error_file(
        self, file_path: Path, attempt: int, result: ScanResult
    ) -> None:
        filename = file_path.name
        parties = await self._parties.describe(file_path)
        try:
            destination = await asyncio.to_thread(
                move_to_directory, file_path, self._config.cache_directory
            )
        except FileNotFoundError:
            result.skipped += 1
            logging.debug(f"{filename} disappeared before it could be cached")
            return

        self._retry_ledger.evict(filename)
        result.cached += 1
        self._audit_logger.record(
            f"[Automated Process - Moved File]\n{filename} {ARROW} {destination}\n\n"
            f"[Action]\nFax transmission moved to error cache. Max ERROR rename attempts met.\n"
            f"Attempts: {attempt} time(s)\n{parties}",
            AuditSeverity.WARNING,
            AuditCategory.CACHED,
        )

    # Cache expiry

    async def _expire_cache_file(self, file_path: Path, result: ScanResult) -> None:
        if file_extension(file_path) != ERROR_EXTENSION:
            return

        entry = await probe_file(file_path, FileLocation.CACHE)
        result.examined += 1

        if self._clock() - entry.creation_time <= self._config.cache_max_age:
            return

        parties = await self._parties.describe(file_path)
        if not await self._delete(file_path, result):
            return

        result.deleted += 1
        self._audit_logger.record(
            f"[Automated Process - Removed File]\n{entry.name} {ARROW} {{DELETED}}\n\n"
            f"[Action]\nERROR transmission DELETED. Age of file exceeds > "
            f"{self._config.cache_days_to_keep} days\n{parties}",
            AuditSeverity.WARNING,
            AuditCategory.DELETED,
        )

    async def _delete(self, file_path: Path, result: ScanResult) -> bool:
        """Remove the file. A file that is already gone counts as skipped."""
        try:
            await aiofiles.os.remove(file_path)
        except FileNotFoundError:
            result.skipped += 1
            logging.debug(f"{file_path.name} was already removed")
            return False
        return True

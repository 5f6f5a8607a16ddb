"""
Tests for LifecycleEngine - prune, error-retry og cache-expiry scans.

Scans are called directly with an injected clock, ledger and audit logger;
timers are covered separately in test_periodic_scan.py.
"""

from datetime import timedelta
from unittest.mock import patch

import aiofiles.os
import pytest

from faxagent.core.audit import AuditCategory, AuditSeverity
from faxagent.models import ScanName


class TestPruneScan:
    """Drop files without a recognized extension are deleted once they are too old."""

    @pytest.mark.asyncio
    async def test_old_file_is_deleted_with_sender_info(self, engine, drop_dir, audit_logger, write_fax):
        report = write_fax(drop_dir / "report.txt", age=timedelta(hours=10))

        result = await engine.prune_drop_directory()

        assert not report.exists()
        assert result.scan_name == ScanName.PRUNE
        assert result.deleted == 1
        deleted_events = audit_logger.events_in_category(AuditCategory.DELETED)
        assert len(deleted_events) == 1
        assert deleted_events[0].severity == AuditSeverity.WARNING
        assert "report.txt" in deleted_events[0].message
        assert "Sender: alice@example.com" in deleted_events[0].message

    @pytest.mark.asyncio
    async def test_extensionless_file_is_pruned(self, engine, drop_dir, write_fax):
        fax = write_fax(drop_dir / "FAX0001", age=timedelta(hours=9))

        await engine.prune_drop_directory()

        assert not fax.exists()

    @pytest.mark.asyncio
    async def test_young_file_is_kept(self, engine, drop_dir, audit_logger, write_fax):
        fresh = write_fax(drop_dir / "fresh.txt", age=timedelta(hours=2))

        result = await engine.prune_drop_directory()

        assert fresh.exists()
        assert result.examined == 1
        assert result.deleted == 0
        assert audit_logger.recent() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["queued.eml", "queued.EML", "backup.bak", "failed.error", "FAILED.Error"])
    async def test_exempt_extensions_are_never_pruned(self, engine, drop_dir, write_fax, name):
        exempt = write_fax(drop_dir / name, age=timedelta(days=5))

        result = await engine.prune_drop_directory()

        assert exempt.exists()
        assert result.examined == 0

    @pytest.mark.asyncio
    async def test_second_pass_does_nothing(self, engine, drop_dir, audit_logger, write_fax):
        write_fax(drop_dir / "report.txt", age=timedelta(hours=10))

        await engine.prune_drop_directory()
        second = await engine.prune_drop_directory()

        assert second.deleted == 0
        assert len(audit_logger.events_in_category(AuditCategory.DELETED)) == 1

    @pytest.mark.asyncio
    async def test_delete_failure_is_logged_and_scan_continues(
        self, engine, drop_dir, audit_logger, write_fax
    ):
        write_fax(drop_dir / "a_locked.txt", age=timedelta(hours=10))
        other = write_fax(drop_dir / "b_other.txt", age=timedelta(hours=10))

        real_remove = aiofiles.os.remove

        async def flaky_remove(path, *args, **kwargs):
            if str(path).endswith("a_locked.txt"):
                raise PermissionError(13, "Permission denied", str(path))
            return await real_remove(path, *args, **kwargs)

        with patch.object(aiofiles.os, "remove", side_effect=flaky_remove):
            result = await engine.prune_drop_directory()

        assert (drop_dir / "a_locked.txt").exists()
        assert not other.exists()
        assert result.errors == 1
        assert result.deleted == 1
        error_events = audit_logger.events_in_category(AuditCategory.ERROR)
        assert len(error_events) == 1
        assert "a_locked.txt" in error_events[0].message
        assert error_events[0].severity == AuditSeverity.ERROR

    @pytest.mark.asyncio
    async def test_file_vanishing_before_delete_is_benign(self, engine, drop_dir, audit_logger, write_fax):
        write_fax(drop_dir / "gone.txt", age=timedelta(hours=10))

        with patch.object(aiofiles.os, "remove", side_effect=FileNotFoundError(2, "No such file")):
            result = await engine.prune_drop_directory()

        assert result.skipped == 1
        assert result.errors == 0
        assert audit_logger.recent() == []

    @pytest.mark.asyncio
    async def test_scan_times_come_from_injected_clock(self, engine, clock):
        result = await engine.prune_drop_directory()

        assert result.started_at == clock.now
        assert result.finished_at == clock.now
        assert result.duration_seconds == 0.0

    @pytest.mark.asyncio
    async def test_missing_drop_directory_reports_error(self, engine, drop_dir, audit_logger):
        drop_dir.rmdir()

        result = await engine.prune_drop_directory()

        assert result.errors == 1
        assert result.examined == 0
        assert len(audit_logger.events_in_category(AuditCategory.ERROR)) == 1


class TestErrorRetryScan:
    """.error filer omdøbes til .eml indtil max forsøg, derefter flyttes de til cache."""

    @pytest.mark.asyncio
    async def test_first_occurrence_is_renamed_to_eml(
        self, engine, drop_dir, retry_ledger, audit_logger, write_fax
    ):
        write_fax(drop_dir / "fax1.error")

        result = await engine.retry_error_files()

        assert (drop_dir / "fax1.eml").exists()
        assert not (drop_dir / "fax1.error").exists()
        assert result.renamed == 1
        assert retry_ledger.current_count("fax1.error") == 1
        renamed = audit_logger.events_in_category(AuditCategory.RENAMED)
        assert len(renamed) == 1
        assert "Attempt: 1" in renamed[0].message
        assert "fax1.error" in renamed[0].message
        assert "fax1.eml" in renamed[0].message

    @pytest.mark.asyncio
    async def test_threshold_three_caches_on_third_occurrence(
        self, engine, drop_dir, cache_dir, retry_ledger, audit_logger, write_fax
    ):
        # tick1 rename, tick2 rename, tick3 flyt til cache
        for expected_attempt in (1, 2):
            write_fax(drop_dir / "fax1.error")
            await engine.retry_error_files()
            (drop_dir / "fax1.eml").unlink()
            assert retry_ledger.current_count("fax1.error") == expected_attempt

        write_fax(drop_dir / "fax1.error")
        result = await engine.retry_error_files()

        assert result.cached == 1
        assert (cache_dir / "fax1.error").exists()
        assert not (drop_dir / "fax1.error").exists()
        assert "fax1.error" not in retry_ledger

        renamed = audit_logger.events_in_category(AuditCategory.RENAMED)
        assert "Attempt: 1" in renamed[0].message
        assert "Attempt: 2" in renamed[1].message
        cached = audit_logger.events_in_category(AuditCategory.CACHED)
        assert len(cached) == 1
        assert "Attempts: 3 time(s)" in cached[0].message
        assert "Max ERROR rename attempts met" in cached[0].message

    @pytest.mark.asyncio
    async def test_name_is_attempt_one_again_after_eviction(
        self, engine, drop_dir, retry_ledger, write_fax
    ):
        for _ in range(3):
            write_fax(drop_dir / "fax1.error")
            await engine.retry_error_files()
            eml = drop_dir / "fax1.eml"
            if eml.exists():
                eml.unlink()
        assert "fax1.error" not in retry_ledger

        write_fax(drop_dir / "fax1.error")
        result = await engine.retry_error_files()

        assert result.renamed == 1
        assert retry_ledger.current_count("fax1.error") == 1

    @pytest.mark.asyncio
    async def test_uppercase_error_extension_is_handled(self, engine, drop_dir, write_fax):
        write_fax(drop_dir / "FAX2.ERROR")

        result = await engine.retry_error_files()

        assert result.renamed == 1
        assert (drop_dir / "FAX2.eml").exists()

    @pytest.mark.asyncio
    async def test_other_files_are_ignored(self, engine, drop_dir, retry_ledger, audit_logger, write_fax):
        write_fax(drop_dir / "queued.eml")
        write_fax(drop_dir / "report.txt", age=timedelta(days=3))

        result = await engine.retry_error_files()

        assert result.examined == 0
        assert len(retry_ledger) == 0
        assert audit_logger.recent() == []

    @pytest.mark.asyncio
    async def test_existing_eml_target_is_not_overwritten(
        self, engine, drop_dir, retry_ledger, audit_logger, write_fax
    ):
        write_fax(drop_dir / "fax3.error")
        write_fax(drop_dir / "fax3.eml", content="x-sender: someone-else@example.com\n")

        result = await engine.retry_error_files()

        assert (drop_dir / "fax3.error").exists()
        assert "someone-else" in (drop_dir / "fax3.eml").read_text(encoding="utf-8")
        assert result.errors == 1
        assert "fax3.error" not in retry_ledger
        assert len(audit_logger.events_in_category(AuditCategory.ERROR)) == 1

    @pytest.mark.asyncio
    async def test_target_appearing_during_rename_is_an_error(
        self, engine, drop_dir, retry_ledger, audit_logger, write_fax
    ):
        write_fax(drop_dir / "fax7.error")

        # Windows rename nægter at overskrive en .eml der opstod efter tjekket
        with patch.object(
            aiofiles.os, "rename", side_effect=FileExistsError(17, "File exists")
        ):
            result = await engine.retry_error_files()

        assert (drop_dir / "fax7.error").exists()
        assert result.errors == 1
        assert result.renamed == 0
        assert "fax7.error" not in retry_ledger
        assert len(audit_logger.events_in_category(AuditCategory.ERROR)) == 1

    @pytest.mark.asyncio
    async def test_cache_name_conflict_gets_numbered_name(
        self, engine, drop_dir, cache_dir, retry_ledger, write_fax
    ):
        write_fax(cache_dir / "fax4.error", content="older copy\n")
        retry_ledger.record_attempt("fax4.error")
        retry_ledger.record_attempt("fax4.error")
        write_fax(drop_dir / "fax4.error")

        result = await engine.retry_error_files()

        assert result.cached == 1
        assert (cache_dir / "fax4.error").read_text(encoding="utf-8") == "older copy\n"
        assert (cache_dir / "fax4_1.error").exists()

    @pytest.mark.asyncio
    async def test_failed_move_keeps_ledger_entry(
        self, engine, drop_dir, retry_ledger, audit_logger, write_fax
    ):
        retry_ledger.record_attempt("fax5.error")
        retry_ledger.record_attempt("fax5.error")
        write_fax(drop_dir / "fax5.error")

        with patch(
            "faxagent.services.lifecycle_engine.move_to_directory",
            side_effect=PermissionError(13, "Permission denied"),
        ):
            result = await engine.retry_error_files()

        assert result.errors == 1
        assert (drop_dir / "fax5.error").exists()
        assert retry_ledger.current_count("fax5.error") == 2
        assert len(audit_logger.events_in_category(AuditCategory.ERROR)) == 1

    @pytest.mark.asyncio
    async def test_listed_file_already_gone_is_skipped_without_event(
        self, engine, drop_dir, retry_ledger, audit_logger
    ):
        with patch(
            "faxagent.services.lifecycle_engine.list_directory_files",
            return_value=[drop_dir / "gone.error"],
        ):
            result = await engine.retry_error_files()

        assert result.skipped == 1
        assert result.errors == 0
        assert result.renamed == 0
        assert "gone.error" not in retry_ledger
        assert audit_logger.recent() == []

    @pytest.mark.asyncio
    async def test_file_gone_before_cache_move_is_skipped_without_event(
        self, engine, drop_dir, retry_ledger, audit_logger
    ):
        retry_ledger.record_attempt("gone.error")
        retry_ledger.record_attempt("gone.error")

        with patch(
            "faxagent.services.lifecycle_engine.list_directory_files",
            return_value=[drop_dir / "gone.error"],
        ):
            result = await engine.retry_error_files()

        assert result.skipped == 1
        assert result.cached == 0
        assert retry_ledger.current_count("gone.error") == 2
        assert audit_logger.recent() == []

    @pytest.mark.asyncio
    async def test_unchanged_directory_second_pass_is_quiet(self, engine, drop_dir, audit_logger, write_fax):
        write_fax(drop_dir / "fax6.error")

        await engine.retry_error_files()
        second = await engine.retry_error_files()

        assert second.examined == 0
        assert len(audit_logger.recent()) == 1


class TestCacheExpiryScan:
    """Error filer i cache slettes når de er ældre end errorCacheDaysToKeep."""

    @pytest.mark.asyncio
    async def test_expired_error_file_is_deleted(self, engine, cache_dir, clock, audit_logger, write_fax):
        cached = write_fax(cache_dir / "fax1.error")
        clock.advance(timedelta(days=31))

        result = await engine.expire_cache()

        assert not cached.exists()
        assert result.scan_name == ScanName.CACHE_EXPIRY
        assert result.deleted == 1
        deleted = audit_logger.events_in_category(AuditCategory.DELETED)
        assert len(deleted) == 1
        assert "Age of file exceeds > 30 days" in deleted[0].message
        assert "{DELETED}" in deleted[0].message

    @pytest.mark.asyncio
    async def test_young_error_file_is_kept(self, engine, cache_dir, clock, audit_logger, write_fax):
        cached = write_fax(cache_dir / "fax1.error")
        clock.advance(timedelta(days=29))

        result = await engine.expire_cache()

        assert cached.exists()
        assert result.examined == 1
        assert result.deleted == 0
        assert audit_logger.recent() == []

    @pytest.mark.asyncio
    async def test_age_uses_creation_time_not_last_write(self, engine, cache_dir, clock, write_fax):
        # mtime langt tilbage, men filen er netop oprettet i cache
        cached = write_fax(cache_dir / "fax1.error", age=timedelta(days=90))

        result = await engine.expire_cache()

        assert cached.exists()
        assert result.deleted == 0

    @pytest.mark.asyncio
    async def test_only_error_files_are_expired(self, engine, cache_dir, clock, write_fax):
        eml = write_fax(cache_dir / "fax1.eml")
        txt = write_fax(cache_dir / "notes.txt")
        clock.advance(timedelta(days=365))

        result = await engine.expire_cache()

        assert eml.exists()
        assert txt.exists()
        assert result.examined == 0

    @pytest.mark.asyncio
    async def test_drop_directory_is_not_touched(self, engine, drop_dir, clock, write_fax):
        in_drop = write_fax(drop_dir / "fax1.error")
        clock.advance(timedelta(days=365))

        await engine.expire_cache()

        assert in_drop.exists()

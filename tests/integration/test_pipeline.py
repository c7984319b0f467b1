"""Integration tests for the full scraping pipeline."""

from datetime import datetime

import pytest
import structlog

from shift_scraper.__main__ import EXIT_OK, EXIT_RUN_FAILED, EXIT_UNEXPECTED, main
from shift_scraper.config import ScraperSettings
from shift_scraper.core.errors import RowSourceError
from shift_scraper.core.models import RunResult
from shift_scraper.navigators.base import RowSource, TableSource
from shift_scraper.notifications import Notifier
from shift_scraper.orchestrator import ShiftScraper
from shift_scraper.storage import JsonFileRecordStore, MemoryRecordStore


ROTA_ROWS = [
    ["Mon 1 Jan"],
    ["09:00 - 10:00", "Ward Round", "Doctor", "", "Dr. A"],
    ["Doctor", "Unassigned"],
    ["Tue 2 Jan"],
    ["14:00 - 18:00", "Clinic", "Nurse", "", "N. C"],
    ["Doctor", "Dr. D"],
    ["Nurse", "N. E"],
]


class FakeRowSource(RowSource):
    """Row source returning fixed rows, or failing."""

    def __init__(self, rows=None, error=None):
        super().__init__(TableSource(url="https://example.com/rota"))
        self.rows = rows or []
        self.error = error
        self.fetches = 0

    async def fetch_rows(self):
        self.fetches += 1
        if self.error:
            raise self.error
        return [list(row) for row in self.rows]


class RecordingNotifier(Notifier):
    """Notifier that keeps sent messages."""

    def __init__(self):
        super().__init__()
        self.messages = []

    async def send(self, text):
        self.messages.append(text)


class BrokenWriteStore(MemoryRecordStore):
    """Store that accepts a fixed number of writes, then fails."""

    def __init__(self, allowed_writes):
        super().__init__()
        self.allowed_writes = allowed_writes

    async def upsert(self, key, record):
        if self.writes >= self.allowed_writes:
            raise ConnectionError("write quota exceeded")
        return await super().upsert(key, record)


def create_settings(**overrides):
    """Helper to build settings for an in-memory run."""
    values = {
        "scrape_url": "https://example.com/rota",
        "target_role": "Doctor",
        "store": "memory",
        "row_source": "static",
        "retry_base_delay": 0.0,
    }
    values.update(overrides)
    return ScraperSettings(**values).validate()


def create_scraper(store, notifier, rows=ROTA_ROWS, **kwargs):
    """Helper to build a scraper with test collaborators."""
    return ShiftScraper(
        create_settings(),
        row_source=FakeRowSource(rows),
        store=store,
        notifier=notifier,
        reference=datetime(2025, 6, 15, 12, 0),
        **kwargs,
    )


class TestPipeline:
    """End-to-end runs against in-memory collaborators."""

    @pytest.mark.asyncio
    async def test_first_run_records_and_reports(self):
        """Test new shifts are stored and reported once."""
        store = MemoryRecordStore()
        notifier = RecordingNotifier()

        result = await create_scraper(store, notifier).run()

        assert result.success is True
        assert result.rows == len(ROTA_ROWS)
        assert result.candidates == 3
        assert result.processed == 3
        assert len(store) == 3

        digest, summary = notifier.messages
        assert digest.startswith("3 new Doctor shifts (1 vacant):")
        assert digest.split("\n")[1] == "[VACANT] Mon 1 Jan | Ward Round | Unassigned"
        assert "Tue 2 Jan | Clinic | Dr. D" in digest
        assert summary.startswith("Scraper finished successfully. 3 new jobs. Duration: ")

    @pytest.mark.asyncio
    async def test_second_run_reports_nothing_new(self):
        """Test re-running on the same table creates nothing."""
        store = MemoryRecordStore()
        await create_scraper(store, RecordingNotifier()).run()

        notifier = RecordingNotifier()
        result = await create_scraper(store, notifier).run()

        assert result.success is True
        assert result.processed == 0
        assert store.writes == 3
        assert len(notifier.messages) == 1
        assert notifier.messages[0].startswith("Scraper finished successfully. 0 new jobs.")

    @pytest.mark.asyncio
    async def test_new_row_reported_alone(self):
        """Test only the added shift is reported on a later run."""
        store = MemoryRecordStore()
        await create_scraper(store, RecordingNotifier()).run()

        notifier = RecordingNotifier()
        rows = ROTA_ROWS + [["Doctor", "Dr. F"]]
        result = await create_scraper(store, notifier, rows=rows).run()

        assert [r.role_holder_name for r in result.new_records] == ["Dr. F"]
        assert notifier.messages[0].startswith("1 new Doctor shift:")

    @pytest.mark.asyncio
    async def test_json_store_across_processes(self, tmp_path):
        """Test a file store remembers identities between runs."""
        path = str(tmp_path / "jobs.json")

        first = await create_scraper(JsonFileRecordStore(path), RecordingNotifier()).run()
        second = await create_scraper(JsonFileRecordStore(path), RecordingNotifier()).run()

        assert first.processed == 3
        assert second.success is True
        assert second.processed == 0

    @pytest.mark.asyncio
    async def test_summary_disabled(self):
        """Test no summary when send_summary is off."""
        notifier = RecordingNotifier()
        scraper = ShiftScraper(
            create_settings(send_summary=False),
            row_source=FakeRowSource(ROTA_ROWS),
            store=MemoryRecordStore(),
            notifier=notifier,
        )

        await scraper.run()

        assert len(notifier.messages) == 1
        assert notifier.messages[0].startswith("3 new Doctor shifts")

    @pytest.mark.asyncio
    async def test_dry_run_writes_and_sends_nothing(self):
        """Test dry run leaves store and channel untouched."""
        store = MemoryRecordStore()
        notifier = RecordingNotifier()

        result = await create_scraper(store, notifier, dry_run=True).run()

        assert result.success is True
        assert result.processed == 3
        assert store.writes == 0
        assert notifier.messages == []

    @pytest.mark.asyncio
    async def test_row_source_failure(self):
        """Test extraction failure is reported and nothing is written."""
        store = MemoryRecordStore()
        notifier = RecordingNotifier()
        scraper = ShiftScraper(
            create_settings(),
            row_source=FakeRowSource(error=RowSourceError("navigation timed out")),
            store=store,
            notifier=notifier,
        )

        result = await scraper.run()

        assert result.success is False
        assert result.error == "navigation timed out"
        assert len(store) == 0
        assert notifier.messages == ["Scraper failed: navigation timed out"]

    @pytest.mark.asyncio
    async def test_store_failure_reports_partial_progress(self):
        """Test records written before a store failure are still reported."""
        store = BrokenWriteStore(allowed_writes=1)
        notifier = RecordingNotifier()

        result = await create_scraper(store, notifier).run()

        assert result.success is False
        assert [r.role_holder_name for r in result.new_records] == ["Dr. A"]
        assert notifier.messages[0].startswith("1 new Doctor shift:")
        assert notifier.messages[1] == "Scraper failed: write quota exceeded"

    @pytest.mark.asyncio
    async def test_empty_collaborators_kept(self):
        """Test an empty injected store and notifier are used, not replaced."""
        store = MemoryRecordStore()
        notifier = RecordingNotifier()
        scraper = create_scraper(store, notifier)

        assert scraper.store is store
        assert scraper.notifier is notifier

        await scraper.run()

        assert len(store) == 3
        assert len(notifier.messages) == 2


ENV_VARS = [
    "SCRAPE_URL", "TARGET_ROLE", "ROW_SOURCE", "RECORD_STORE",
    "FIREBASE_PROJECT_ID", "FIREBASE_SERVICE_ACCOUNT", "FIREBASE_SERVICE_ACCOUNT_PATH",
    "TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID",
]


class TestCli:
    """Tests for the command line entry point."""

    @pytest.fixture
    def env(self, monkeypatch):
        for name in ENV_VARS:
            monkeypatch.delenv(name, raising=False)
        yield monkeypatch
        structlog.reset_defaults()

    def test_configuration_error_exits_1(self, env):
        """Test missing URL aborts before scraping."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--store", "memory"])
        assert exc_info.value.code == EXIT_UNEXPECTED

    def test_successful_run_exits_0(self, env):
        """Test exit code for a successful run."""
        async def fake_run(self):
            return RunResult(success=True)

        env.setattr(ShiftScraper, "run", fake_run)
        with pytest.raises(SystemExit) as exc_info:
            main(["--url", "https://example.com/rota", "--store", "memory", "--row-source", "static"])
        assert exc_info.value.code == EXIT_OK

    def test_failed_run_exits_2(self, env):
        """Test exit code for a run that gave up."""
        async def fake_run(self):
            return RunResult(success=False, error="boom")

        env.setattr(ShiftScraper, "run", fake_run)
        with pytest.raises(SystemExit) as exc_info:
            main(["--url", "https://example.com/rota", "--store", "memory", "--row-source", "static"])
        assert exc_info.value.code == EXIT_RUN_FAILED

    def test_version(self, capsys):
        """Test --version prints and exits."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == EXIT_OK
        assert "shift-scraper" in capsys.readouterr().out

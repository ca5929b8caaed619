"""
Integration tests for the importer entry point
"""

import json

import pytest
from sqlalchemy import func, select

from core.config import Settings
from ingestion.stores.base import TableRef
from ingestion.stores.sql_sheets import SQLTabularStore
from models.import_run import ImportRun
from scripts.run_import import run_import


def write_feeds(path, feeds):
    path.write_text(json.dumps(feeds))
    return str(path)


class TestRunImport:
    """Test run_import exit status and wiring"""

    @pytest.mark.asyncio
    async def test_missing_feed_file_is_setup_failure(self, tmp_path):
        config = Settings(FEEDS_CONFIG_PATH=str(tmp_path / "missing.json"), RECORD_RUNS=False)

        assert await run_import(config) == 1

    @pytest.mark.asyncio
    async def test_google_backend_without_token(self, tmp_path):
        config = Settings(
            FEEDS_CONFIG_PATH=write_feeds(tmp_path / "feeds.json", [{
                "SHEET_NAME": "Checking",
                "SOURCE_FOLDER_ID": "folder-in",
                "PROCESSED_FOLDER_ID": "folder-done",
                "DATE_COLUMN_HEADER": "Date",
            }]),
            FILE_STORE_BACKEND="google_drive",
            TABULAR_STORE_BACKEND="google_sheets",
            GOOGLE_ACCESS_TOKEN=None,
            RECORD_RUNS=False,
        )

        assert await run_import(config) == 1

    @pytest.mark.asyncio
    async def test_no_feeds(self, tmp_path):
        config = Settings(FEEDS_CONFIG_PATH=write_feeds(tmp_path / "feeds.json", []), RECORD_RUNS=False)

        assert await run_import(config) == 0

    @pytest.mark.asyncio
    async def test_imports_and_records(self, tmp_path, session_maker):
        (tmp_path / "inbox").mkdir()
        (tmp_path / "inbox" / "export.csv").write_text("Date,Amount\n2024-01-05,10.00\nbad-date,5.00\n")
        await SQLTabularStore(session_maker).create_sheet(TableRef("Checking"), ["Date", "Amount"])

        config = Settings(
            DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
            FEEDS_CONFIG_PATH=write_feeds(tmp_path / "feeds.json", [{
                "target_table": "Checking",
                "source_location": "inbox",
                "archive_location": "archive",
                "watermark_column": "Date",
                "metadata_rows": 1,
            }]),
            LOCAL_STORAGE_ROOT=str(tmp_path),
            RECORD_RUNS=True,
        )

        assert await run_import(config) == 0

        rows = await SQLTabularStore(session_maker).get_rows(TableRef("Checking"))
        assert rows[1:] == [["2024-01-05", "10.00"], ["bad-date", "5.00"]]
        assert (tmp_path / "archive" / "export.csv").exists()

        async with session_maker() as session:
            runs = await session.execute(select(func.count()).select_from(ImportRun))
            assert runs.scalar() == 1

    @pytest.mark.asyncio
    async def test_failed_files_still_exit_zero(self, tmp_path, session_maker):
        (tmp_path / "inbox").mkdir()
        (tmp_path / "inbox" / "export.csv").write_text("2024-01-05,10.00\n")

        config = Settings(
            DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
            FEEDS_CONFIG_PATH=write_feeds(tmp_path / "feeds.json", [{
                "target_table": "Not Created",
                "source_location": "inbox",
                "archive_location": "archive",
                "watermark_column": "Date",
            }]),
            LOCAL_STORAGE_ROOT=str(tmp_path),
        )

        assert await run_import(config) == 0
        assert (tmp_path / "inbox" / "export.csv").exists()

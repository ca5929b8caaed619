"""
Integration tests for the SQL tabular store on SQLite
"""

import pytest
from sqlalchemy.exc import OperationalError

from core.exceptions import DatabaseConnectionError, DatabaseError, TableNotFoundError
from ingestion.runner import FeedRunner
from ingestion.stores.base import TableRef
from ingestion.stores.local import LocalFileStore
from ingestion.stores.sql_sheets import SQLTabularStore
from schemas.report import FileOutcome


@pytest.fixture
def sql_store(session_maker):
    return SQLTabularStore(session_maker, max_retries=1, retry_delay=0)


class TestSQLTabularStore:
    """Test SQLTabularStore against a real database"""

    @pytest.mark.asyncio
    async def test_header_and_empty_table(self, sql_store):
        table = TableRef("Checking")
        await sql_store.create_sheet(table, ["Date", "Description", "Amount"])

        assert await sql_store.get_header(table) == ["Date", "Description", "Amount"]
        assert await sql_store.get_last_value(table, 0) is None

    @pytest.mark.asyncio
    async def test_append_keeps_physical_order(self, sql_store):
        table = TableRef("Checking")
        await sql_store.create_sheet(table, ["Date", "Amount"])

        await sql_store.append_rows(table, [["2024-01-05", "1"], ["2024-01-06", "2"]])
        await sql_store.append_rows(table, [["2024-01-07", "3"]])

        assert await sql_store.get_rows(table) == [
            ["Date", "Amount"],
            ["2024-01-05", "1"],
            ["2024-01-06", "2"],
            ["2024-01-07", "3"],
        ]
        assert await sql_store.get_last_value(table, 0) == "2024-01-07"

    @pytest.mark.asyncio
    async def test_last_value_skips_blank_and_short_rows(self, sql_store):
        table = TableRef("Checking")
        await sql_store.create_sheet(table, ["Amount", "Date"])
        await sql_store.append_rows(table, [["1", "2024-01-05"], ["2", ""], ["3"]])

        assert await sql_store.get_last_value(table, 1) == "2024-01-05"

    @pytest.mark.asyncio
    async def test_missing_sheet(self, sql_store):
        with pytest.raises(TableNotFoundError):
            await sql_store.get_header(TableRef("Nope"))

        with pytest.raises(TableNotFoundError):
            await sql_store.append_rows(TableRef("Nope"), [["2024-01-05"]])

    @pytest.mark.asyncio
    async def test_workbooks_are_separate(self, sql_store):
        await sql_store.create_sheet(TableRef("Checking", "personal"), ["Date"])
        await sql_store.create_sheet(TableRef("Checking", "business"), ["Posted"])

        assert await sql_store.get_header(TableRef("Checking", "personal")) == ["Date"]
        assert await sql_store.get_header(TableRef("Checking", "business")) == ["Posted"]

        with pytest.raises(TableNotFoundError):
            await sql_store.get_header(TableRef("Checking"))

    @pytest.mark.asyncio
    async def test_duplicate_sheet_rejected(self, sql_store):
        await sql_store.create_sheet(TableRef("Checking"), ["Date"])

        with pytest.raises(DatabaseError) as exc_info:
            await sql_store.create_sheet(TableRef("Checking"), ["Date"])

        assert exc_info.value.context["operation"] == "create_sheet"


class DroppedConnectionSession:
    """Session whose every statement fails as if the connection dropped"""

    def __init__(self, statements):
        self.statements = statements

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_value, tb):
        return False

    async def execute(self, statement, *args, **kwargs):
        self.statements.append(statement)
        raise OperationalError("SELECT 1", {}, Exception("server closed the connection"))

    async def rollback(self):
        pass


class TestSQLTabularStoreRetry:
    """Test which operations are retried on connection errors"""

    @pytest.fixture
    def statements(self):
        return []

    @pytest.fixture
    def flaky_store(self, statements):
        return SQLTabularStore(lambda: DroppedConnectionSession(statements), max_retries=3, retry_delay=0)

    @pytest.mark.asyncio
    async def test_reads_retried(self, flaky_store, statements):
        with pytest.raises(DatabaseConnectionError) as exc_info:
            await flaky_store.get_header(TableRef("Checking"))

        assert len(statements) == 3
        assert exc_info.value.context["retry_count"] == 3

    @pytest.mark.asyncio
    async def test_append_single_attempt(self, flaky_store, statements):
        """An append interrupted mid-commit may be stored; it is never sent twice"""
        with pytest.raises(DatabaseConnectionError) as exc_info:
            await flaky_store.append_rows(TableRef("Checking"), [["2024-01-05", "1"]])

        assert len(statements) == 1
        assert exc_info.value.context["operation"] == "append_rows"


class TestLocalToSQLImport:
    """End-to-end: local directories into SQL sheets"""

    @pytest.mark.asyncio
    async def test_run_twice(self, tmp_path, sql_store, normalizer, make_feed):
        inbox = tmp_path / "inbox" / "checking"
        inbox.mkdir(parents=True)
        (inbox / "2024-01-a.csv").write_text(
            "Account 0001,,\nDate,Description,Amount\n01/04/2024,Coffee,-4.50\n01/05/2024,Paycheck,1500.00\n"
        )
        (inbox / "2024-01-b.csv").write_text(
            "Account 0001,,\nDate,Description,Amount\n01/05/2024,Paycheck,1500.00\n01/06/2024,Rent,-1200.00\n"
        )
        feed = make_feed("checking", target_table="Checking", metadata_rows=2)
        await sql_store.create_sheet(feed.table_ref, ["Date", "Description", "Amount"])

        runner = FeedRunner(LocalFileStore(str(tmp_path)), sql_store, normalizer)
        first = await runner.run([feed])
        second = await runner.run([feed])

        assert first.count(FileOutcome.SUCCESS) == 2
        assert first.rows_imported == 3
        assert second.files == []
        assert [row[0] for row in (await sql_store.get_rows(feed.table_ref))[1:]] == [
            "01/04/2024", "01/05/2024", "01/06/2024",
        ]
        assert sorted(p.name for p in (tmp_path / "archive" / "checking").iterdir()) == [
            "2024-01-a.csv", "2024-01-b.csv",
        ]
        assert list(inbox.iterdir()) == []

    @pytest.mark.asyncio
    async def test_reused_export_name(self, tmp_path, sql_store, normalizer, make_feed):
        """The bank names every download export.csv; each one is archived"""
        inbox = tmp_path / "inbox" / "checking"
        inbox.mkdir(parents=True)
        feed = make_feed("checking", target_table="Checking")
        await sql_store.create_sheet(feed.table_ref, ["Date", "Amount"])
        runner = FeedRunner(LocalFileStore(str(tmp_path)), sql_store, normalizer)

        (inbox / "export.csv").write_text("2024-01-05,1\n")
        first = await runner.run([feed])
        (inbox / "export.csv").write_text("2024-01-05,1\n2024-01-06,2\n")
        second = await runner.run([feed])

        assert first.count(FileOutcome.SUCCESS) == 1
        assert second.count(FileOutcome.SUCCESS) == 1
        assert second.rows_imported == 1
        assert list(inbox.iterdir()) == []
        assert sorted(p.name for p in (tmp_path / "archive" / "checking").iterdir()) == [
            "export (1).csv", "export.csv",
        ]

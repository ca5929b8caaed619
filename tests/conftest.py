"""
Pytest configuration and fixtures
"""

import asyncio
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pytest
import pytest_asyncio

from core.database import create_engine, create_session_maker
from core.exceptions import FileStoreError, TableNotFoundError, TabularStoreError
from ingestion.dates import DateNormalizer
from ingestion.stores.base import Cell, FileHandle, TableRef, is_blank
from models.base import Base
from schemas.feed import FeedConfig


class InMemoryFileStore:
    """FileStore fake: locations map to ordered lists of (handle, content)"""

    def __init__(self):
        self.locations: Dict[str, List[Tuple[FileHandle, Union[bytes, str]]]] = {}
        self.fail_list: set = set()
        self.fail_read: set = set()
        self.fail_move: set = set()
        self.reads: List[str] = []
        self.read_delay = 0.0

    def add_file(self, location: str, name: str, content: Union[bytes, str], content_type: Optional[str] = None) -> FileHandle:
        handle = FileHandle(id=f"{location}/{name}", name=name, content_type=content_type)
        self.locations.setdefault(location, []).append((handle, content))
        return handle

    def names(self, location: str) -> List[str]:
        return [h.name for h, _ in self.locations.get(location, [])]

    async def list_files(self, location: str) -> List[FileHandle]:
        if location in self.fail_list:
            raise FileStoreError("Listing failed", context={"operation": "list", "location": location})
        return [h for h, _ in self.locations.get(location, [])]

    async def read_content(self, handle: FileHandle) -> Union[bytes, str]:
        self.reads.append(handle.name)
        if self.read_delay:
            await asyncio.sleep(self.read_delay)
        if handle.name in self.fail_read:
            raise FileStoreError("Read failed", context={"operation": "read", "file_name": handle.name})
        for entries in self.locations.values():
            for h, content in entries:
                if h == handle:
                    return content
        raise FileStoreError("No such file", context={"operation": "read", "file_name": handle.name})

    async def move(self, handle: FileHandle, source: str, destination: str) -> None:
        if handle.name in self.fail_move:
            raise FileStoreError("Move failed", context={"operation": "move", "file_name": handle.name})
        entries = self.locations.get(source, [])
        for i, (h, content) in enumerate(entries):
            if h == handle:
                del entries[i]
                self.locations.setdefault(destination, []).append((h, content))
                return
        raise FileStoreError("File is not in the source location", context={"operation": "move"})


class InMemoryTabularStore:
    """TabularStore fake: tables map to row lists whose first row is the header"""

    def __init__(self):
        self.tables: Dict[TableRef, List[List[Cell]]] = {}
        self.fail_append: set = set()
        self.append_calls: List[Tuple[TableRef, int]] = []
        self.default_store_id: Optional[str] = None

    def create_table(self, name: str, header: Sequence[str], rows: Sequence[Sequence[Cell]] = (), store_id: Optional[str] = None) -> TableRef:
        table = self._resolve(TableRef(name=name, store_id=store_id))
        self.tables[table] = [list(header)] + [list(r) for r in rows]
        return table

    def data_rows(self, name: str, store_id: Optional[str] = None) -> List[List[Cell]]:
        return self.tables[self._resolve(TableRef(name=name, store_id=store_id))][1:]

    def _resolve(self, table: TableRef) -> TableRef:
        return TableRef(table.name, table.store_id or self.default_store_id)

    def _table(self, table: TableRef) -> List[List[Cell]]:
        table = self._resolve(table)
        if table not in self.tables:
            raise TableNotFoundError(f'Sheet "{table.name}" does not exist', context={"table": table.name})
        return self.tables[table]

    async def get_header(self, table: TableRef) -> List[str]:
        return [str(c) for c in self._table(table)[0]]

    async def get_last_value(self, table: TableRef, column_index: int) -> Cell:
        # Yield like a remote call would, so concurrent feeds interleave here
        await asyncio.sleep(0)
        for row in reversed(self._table(table)[1:]):
            if column_index < len(row) and not is_blank(row[column_index]):
                return row[column_index]
        return None

    async def append_rows(self, table: TableRef, rows: Sequence[Sequence[str]]) -> None:
        if table.name in self.fail_append:
            raise TabularStoreError("Append failed", context={"operation": "append_rows", "table": table.name})
        self._table(table).extend(list(r) for r in rows)
        self.append_calls.append((table, len(rows)))


@pytest.fixture
def normalizer():
    return DateNormalizer("UTC")


@pytest.fixture
def file_store():
    return InMemoryFileStore()


@pytest.fixture
def tabular_store():
    return InMemoryTabularStore()


@pytest.fixture
def make_feed():
    """Factory for FeedConfig with sensible defaults"""

    def _make(name: str = "checking", **overrides) -> FeedConfig:
        values = {
            "name": name,
            "target_table": f"{name} table",
            "source_location": f"inbox/{name}",
            "archive_location": f"archive/{name}",
            "watermark_column": "Date",
            "metadata_rows": 0,
        }
        values.update(overrides)
        return FeedConfig(**values)

    return _make


@pytest_asyncio.fixture(scope="function")
async def session_maker(tmp_path):
    """Session maker over a fresh SQLite database with all tables created"""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield create_session_maker(engine)

    await engine.dispose()


@pytest.fixture
def mock_csv_export():
    """Bank export with one metadata line above the header"""
    return (
        "Account: 0001 Checking,,\n"
        "Date,Description,Amount\n"
        "2024-01-04,Coffee,-4.50\n"
        "2024-01-05,Paycheck,1500.00\n"
        "\n"
        "2024-01-06,Rent,-1200.00\n"
    )

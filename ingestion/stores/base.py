"""
Collaborator interfaces consumed by the import pipeline
"""

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Union, runtime_checkable


@dataclass(frozen=True)
class FileHandle:
    """A file as returned by a file store listing."""
    id: str
    name: str
    content_type: Optional[str] = None


@dataclass(frozen=True)
class TableRef:
    """
    Destination table identity.

    store_id selects the destination store (spreadsheet, workbook) when more
    than one exists; None means the adapter's default store.
    """
    name: str
    store_id: Optional[str] = None

    def __str__(self) -> str:
        if self.store_id:
            return f"{self.store_id}/{self.name}"
        return self.name


Cell = Union[str, int, float, None]


@runtime_checkable
class FileStore(Protocol):
    """Locations holding files: the feed's source and archive locations."""

    async def list_files(self, location: str) -> List[FileHandle]:
        ...

    async def read_content(self, handle: FileHandle) -> Union[bytes, str]:
        ...

    async def move(self, handle: FileHandle, source: str, destination: str) -> None:
        ...


@runtime_checkable
class TabularStore(Protocol):
    """
    Append-only tables whose first row is the header.

    get_header raises TableNotFoundError for unknown tables.
    get_last_value returns the last non-empty value of the column below the
    header, or None when the column has no data.
    default_store_id is the store a TableRef without store_id resolves to.
    """

    @property
    def default_store_id(self) -> Optional[str]:
        ...

    async def get_header(self, table: TableRef) -> List[str]:
        ...

    async def get_last_value(self, table: TableRef, column_index: int) -> Cell:
        ...

    async def append_rows(self, table: TableRef, rows: Sequence[Sequence[str]]) -> None:
        ...


def is_blank(value: Cell) -> bool:
    """True for cells that carry no value"""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False

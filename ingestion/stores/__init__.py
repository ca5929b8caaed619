"""
File-store and tabular-store adapters.

Modules:
    base: FileStore / TabularStore interfaces, FileHandle and TableRef
    local: Directories on local disk as source and archive locations
    google_api: Shared Google REST client with retry and error mapping
    google_drive: Google Drive folders as source and archive locations
    google_sheets: Google Sheets tabs as destination tables
    sql_sheets: Spreadsheet-like tables kept in a SQL database
"""

from ingestion.stores.base import Cell, FileHandle, FileStore, TableRef, TabularStore

__all__ = [
    "Cell",
    "FileHandle",
    "FileStore",
    "TableRef",
    "TabularStore",
]

"""
SQLAlchemy ORM models for database tables.

Models:
    base: Base declarative class, JSON column type and RunStatus
    sheet: Spreadsheet-like destination tables (Sheet, SheetRow)
    import_run: Run ledger (ImportRun) and per-file outcomes (FileImport)

Usage:
    from models.sheet import Sheet, SheetRow
    from models.import_run import ImportRun, FileImport

Relationships:
    - Sheet → SheetRow (one-to-many, ordered by row_number)
    - ImportRun → FileImport (one-to-many)
"""

__all__ = [
    "Base",
    "RunStatus",
    "Sheet",
    "SheetRow",
    "ImportRun",
    "FileImport",
]

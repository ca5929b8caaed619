"""
SQL-backed tabular store: spreadsheet-like tables kept in sheets/sheet_rows
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.exceptions import DatabaseConnectionError, DatabaseError, TableNotFoundError
from ingestion.retry import retry_async
from ingestion.stores.base import Cell, TableRef, is_blank
from models.sheet import Sheet, SheetRow

logger = logging.getLogger(__name__)


class SQLTabularStore:
    """
    Tabular store over the ``sheets`` and ``sheet_rows`` tables.

    A table is a Sheet identified by (workbook, title); TableRef.store_id is
    the workbook, falling back to ``default_workbook``. Every operation runs
    in its own session, so an append is committed before it returns.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker,
        default_workbook: Optional[str] = None,
        max_retries: int = 3,
        retry_delay: float = 1.0
    ):
        self.session_maker = session_maker
        self.default_workbook = default_workbook or "default"
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    @property
    def default_store_id(self) -> str:
        return self.default_workbook

    def _workbook(self, table: TableRef) -> str:
        return table.store_id or self.default_workbook

    async def _find_sheet(self, session: AsyncSession, table: TableRef) -> Sheet:
        result = await session.execute(
            select(Sheet).where(
                Sheet.workbook == self._workbook(table),
                Sheet.title == table.name
            )
        )
        sheet = result.scalar_one_or_none()
        if sheet is None:
            raise TableNotFoundError(
                f'Sheet "{table.name}" does not exist',
                context={"table": table.name, "store_id": self._workbook(table)}
            )
        return sheet

    async def _run(self, operation: str, table: TableRef, work, idempotent: bool = True):
        """
        Run ``work(session)`` in a fresh session, mapping database errors.

        Writes that are not idempotent get a single attempt: a connection
        error during commit does not prove the rows were not stored.
        """

        async def attempt():
            async with self.session_maker() as session:
                try:
                    return await work(session)
                except OperationalError as e:
                    await session.rollback()
                    raise DatabaseConnectionError(
                        "Database connection failed",
                        context={"operation": operation, "table_name": "sheet_rows", "table": table.name},
                        original_exception=e
                    )
                except SQLAlchemyError as e:
                    await session.rollback()
                    raise DatabaseError(
                        "Database operation failed",
                        context={"operation": operation, "table_name": "sheet_rows", "table": table.name},
                        original_exception=e
                    )

        return await retry_async(
            attempt,
            description=f"{operation} on {table}",
            max_retries=self.max_retries if idempotent else 1,
            retry_delay=self.retry_delay,
        )

    async def create_sheet(self, table: TableRef, header: Sequence[str]) -> None:
        """Create an empty table with ``header`` as row 1"""

        async def work(session: AsyncSession):
            sheet = Sheet(workbook=self._workbook(table), title=table.name)
            sheet.rows.append(SheetRow(row_number=1, cells=list(header)))
            session.add(sheet)
            await session.commit()
            logger.info(f"Created sheet {table} with {len(header)} columns")

        await self._run("create_sheet", table, work)

    async def get_header(self, table: TableRef) -> List[str]:

        async def work(session: AsyncSession):
            sheet = await self._find_sheet(session, table)
            result = await session.execute(
                select(SheetRow.cells).where(
                    SheetRow.sheet_id == sheet.id,
                    SheetRow.row_number == 1
                )
            )
            cells = result.scalar_one_or_none() or []
            return ["" if c is None else str(c) for c in cells]

        return await self._run("get_header", table, work)

    async def get_last_value(self, table: TableRef, column_index: int) -> Cell:

        async def work(session: AsyncSession):
            sheet = await self._find_sheet(session, table)
            result = await session.execute(
                select(SheetRow.cells)
                .where(SheetRow.sheet_id == sheet.id, SheetRow.row_number > 1)
                .order_by(SheetRow.row_number.desc())
            )
            for cells in result.scalars():
                if column_index < len(cells) and not is_blank(cells[column_index]):
                    return cells[column_index]
            return None

        return await self._run("get_last_value", table, work)

    async def get_rows(self, table: TableRef) -> List[List[Cell]]:
        """All rows including the header, in physical order"""

        async def work(session: AsyncSession):
            sheet = await self._find_sheet(session, table)
            result = await session.execute(
                select(SheetRow.cells)
                .where(SheetRow.sheet_id == sheet.id)
                .order_by(SheetRow.row_number)
            )
            return [list(cells) for cells in result.scalars().all()]

        return await self._run("get_rows", table, work)

    async def append_rows(self, table: TableRef, rows: Sequence[Sequence[str]]) -> None:
        if not rows:
            return

        async def work(session: AsyncSession):
            sheet = await self._find_sheet(session, table)
            result = await session.execute(
                select(func.max(SheetRow.row_number)).where(SheetRow.sheet_id == sheet.id)
            )
            last_row = result.scalar() or 0

            session.add_all([
                SheetRow(sheet_id=sheet.id, row_number=last_row + offset, cells=list(row))
                for offset, row in enumerate(rows, start=1)
            ])
            await session.commit()

        await self._run("append_rows", table, work, idempotent=False)
        logger.debug(f"Appended {len(rows)} rows to sheet {table}")

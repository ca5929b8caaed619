"""
Watermark resolution: the date already imported into a destination table
"""

import logging
from dataclasses import dataclass
from typing import List

from core.exceptions import ColumnMissingError
from ingestion.dates import NO_DATE, DateNormalizer
from ingestion.stores.base import Cell, TableRef, TabularStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Watermark:
    """
    Deduplication boundary for one file.

    date_key is the normalized value of the last non-empty entry of the
    watermark column, or NO_DATE when the table has no data rows.
    """
    column_index: int
    date_key: int
    raw_value: Cell = None


class WatermarkResolver:
    """
    Derive the watermark of a destination table.

    The watermark is the last entry of the column, not its maximum: tables
    are assumed to be written append-only in ascending date order.
    """

    def __init__(self, store: TabularStore, normalizer: DateNormalizer):
        self.store = store
        self.normalizer = normalizer

    async def resolve_column(self, table: TableRef, column: str) -> int:
        """
        Locate ``column`` in the table header.

        Raises:
            TableNotFoundError: If the table does not exist
            ColumnMissingError: If the header lacks the column
        """
        header: List[str] = await self.store.get_header(table)
        try:
            return header.index(column)
        except ValueError:
            raise ColumnMissingError(
                f'Could not find column "{column}" in sheet {table.name}',
                context={"table": table.name, "column": column, "header": header}
            )

    async def read_watermark(self, table: TableRef, column_index: int) -> Watermark:
        value = await self.store.get_last_value(table, column_index)
        date_key = NO_DATE if value is None else self.normalizer.normalize(value)
        logger.debug(f"Watermark for {table}: {date_key} (last value {value!r})")
        return Watermark(column_index=column_index, date_key=date_key, raw_value=value)

    async def resolve(self, table: TableRef, column: str) -> Watermark:
        column_index = await self.resolve_column(table, column)
        return await self.read_watermark(table, column_index)

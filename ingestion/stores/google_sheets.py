"""
Google Sheets tabular store: sheet tabs act as destination tables
"""

import logging
from typing import List, Optional, Sequence
from urllib.parse import quote

from core.exceptions import RemoteCallFailure, TableNotFoundError, TabularStoreError
from ingestion.stores.base import Cell, TableRef, is_blank
from ingestion.stores.google_api import SHEETS_API_URL, GoogleAPIClient

logger = logging.getLogger(__name__)


def column_letter(column_number: int) -> str:
    """1-based column number to A1 column letters (1 -> A, 27 -> AA)"""
    if column_number < 1:
        raise ValueError(f"Column number must be >= 1, got {column_number}")

    letters = ""
    while column_number > 0:
        column_number, remainder = divmod(column_number - 1, 26)
        letters = chr(65 + remainder) + letters
    return letters


def quote_sheet_title(title: str) -> str:
    """Quote a tab title for use in an A1 range"""
    return "'" + title.replace("'", "''") + "'"


class GoogleSheetsTabularStore:
    """
    Tabular store backed by the Sheets v4 API.

    A table is a tab of a spreadsheet; TableRef.store_id is the spreadsheet
    id, falling back to ``default_spreadsheet_id``. Row 1 holds the header.
    """

    def __init__(self, client: GoogleAPIClient, default_spreadsheet_id: Optional[str] = None):
        self.client = client
        self.default_spreadsheet_id = default_spreadsheet_id

    @property
    def default_store_id(self) -> Optional[str]:
        return self.default_spreadsheet_id

    def _spreadsheet_id(self, table: TableRef) -> str:
        spreadsheet_id = table.store_id or self.default_spreadsheet_id
        if not spreadsheet_id:
            raise TabularStoreError(
                "No spreadsheet id configured for table",
                context={"table": table.name}
            )
        return spreadsheet_id

    def _values_url(self, spreadsheet_id: str, a1_range: str) -> str:
        return f"{SHEETS_API_URL}/spreadsheets/{spreadsheet_id}/values/{quote(a1_range, safe='')}"

    async def _sheet_titles(self, spreadsheet_id: str) -> List[str]:
        data = await self.client.get_json(
            f"{SHEETS_API_URL}/spreadsheets/{spreadsheet_id}",
            params={"fields": "sheets.properties.title"},
        )
        return [s.get("properties", {}).get("title") for s in data.get("sheets", [])]

    async def get_header(self, table: TableRef) -> List[str]:
        spreadsheet_id = self._spreadsheet_id(table)
        try:
            titles = await self._sheet_titles(spreadsheet_id)
            if table.name not in titles:
                raise TableNotFoundError(
                    f'Sheet "{table.name}" does not exist',
                    context={"table": table.name, "store_id": spreadsheet_id}
                )

            data = await self.client.get_json(
                self._values_url(spreadsheet_id, f"{quote_sheet_title(table.name)}!1:1")
            )
        except RemoteCallFailure as e:
            e.context.update({"operation": "get_header", "table": table.name})
            raise

        values = data.get("values") or [[]]
        return [str(v) for v in values[0]]

    async def get_last_value(self, table: TableRef, column_index: int) -> Cell:
        spreadsheet_id = self._spreadsheet_id(table)
        letter = column_letter(column_index + 1)
        a1_range = f"{quote_sheet_title(table.name)}!{letter}:{letter}"

        try:
            data = await self.client.get_json(self._values_url(spreadsheet_id, a1_range))
        except RemoteCallFailure as e:
            e.context.update({"operation": "get_last_value", "table": table.name})
            raise

        # values[0] is the header cell; trailing empty rows are omitted by the API
        # but blank cells in between come back as empty lists
        values = data.get("values") or []
        for row in reversed(values[1:]):
            if row and not is_blank(row[0]):
                return row[0]
        return None

    async def append_rows(self, table: TableRef, rows: Sequence[Sequence[str]]) -> None:
        if not rows:
            return

        spreadsheet_id = self._spreadsheet_id(table)
        url = self._values_url(spreadsheet_id, quote_sheet_title(table.name)) + ":append"
        try:
            await self.client.request(
                "POST",
                url,
                params={"valueInputOption": "USER_ENTERED", "insertDataOption": "INSERT_ROWS"},
                json={"values": [list(row) for row in rows]},
                idempotent=False,
            )
        except RemoteCallFailure as e:
            e.context.update({"operation": "append_rows", "table": table.name, "rows": len(rows)})
            raise

        logger.debug(f"Appended {len(rows)} rows to sheet {table.name}")

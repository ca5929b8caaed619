"""
Per-file import pipeline.

Each file goes through:
    listed → metadata_stripped → target_resolved → watermark_resolved
           → filtered → appended → archived

with two terminal exits: ``skipped`` (file too short, left in place) and
``failed`` (any error, left in place for the next run).

The append and the archive move are independent remote calls. A crash
between them leaves the file in the source location; the next run re-reads
the watermark and re-filters, so the file is imported at least once.
"""

import asyncio
import logging
from typing import Optional

from core.exceptions import ImporterException, ShortFileError, TransformFailure
from ingestion.csv_reader import decode_content, parse_csv, strip_metadata_rows
from ingestion.dates import DateNormalizer
from ingestion.row_filter import RowFilter
from ingestion.stores.base import FileHandle, FileStore, TabularStore
from ingestion.watermark import WatermarkResolver
from schemas.feed import FeedConfig
from schemas.report import FileOutcome, FileResult, FileState

logger = logging.getLogger(__name__)


class FileProcessor:
    """
    Import one CSV file into its feed's destination table.

    process() never raises for pipeline errors: every failure is caught at
    the file boundary and returned as a FileResult.
    """

    def __init__(
        self,
        file_store: FileStore,
        tabular_store: TabularStore,
        normalizer: DateNormalizer,
        encoding: str = "utf-8-sig"
    ):
        self.file_store = file_store
        self.tabular_store = tabular_store
        self.resolver = WatermarkResolver(tabular_store, normalizer)
        self.row_filter = RowFilter(normalizer)
        self.encoding = encoding

    async def process(
        self,
        feed: FeedConfig,
        handle: FileHandle,
        table_lock: Optional[asyncio.Lock] = None
    ) -> FileResult:
        """
        Run the pipeline for ``handle``.

        Args:
            feed: Feed the file belongs to
            handle: File as listed from the feed's source location
            table_lock: Held from watermark read to append when feeds sharing
                a destination table run concurrently
        """
        result = FileResult(
            feed_name=feed.name,
            file_id=handle.id,
            file_name=handle.name,
            outcome=FileOutcome.SUCCESS,
            state=FileState.LISTED,
        )
        logger.info(f"Processing file: {handle.name} (feed: {feed.name})")

        try:
            await self._run(feed, handle, result, table_lock)

        except ShortFileError as e:
            result.outcome = FileOutcome.SKIPPED
            result.state = FileState.SKIPPED
            result.reason = e.message
            logger.info(
                f"File too short, skipping: {handle.name} (feed: {feed.name}, "
                f"rows: {e.context.get('rows')}, metadata rows: {feed.metadata_rows})"
            )

        except ImporterException as e:
            self._fail(result, e, feed, handle)
            logger.error(
                f"Error processing {handle.name} (feed: {feed.name}): {e.message}",
                extra={"error_context": e.to_dict()}
            )

        except Exception as e:
            error = TransformFailure(
                "Unexpected error while processing file",
                context={"feed": feed.name, "file_name": handle.name},
                original_exception=e
            )
            self._fail(result, error, feed, handle)
            logger.exception(f"Unexpected error processing {handle.name} (feed: {feed.name})")

        return result

    async def _run(
        self,
        feed: FeedConfig,
        handle: FileHandle,
        result: FileResult,
        table_lock: Optional[asyncio.Lock]
    ) -> None:
        table = feed.table_ref

        # 1. Fetch, parse and drop metadata rows
        content = await self.file_store.read_content(handle)
        rows = parse_csv(decode_content(content, self.encoding))
        result.rows_read = len(rows)
        batch = strip_metadata_rows(rows, feed.metadata_rows)
        result.state = FileState.METADATA_STRIPPED

        logger.info(f"Processing {handle.name} for target table: {table}")

        if table_lock is None:
            await self._import(feed, batch, result)
        else:
            async with table_lock:
                await self._import(feed, batch, result)

        # 6. Archive
        await self.file_store.move(handle, feed.source_location, feed.archive_location)
        result.state = FileState.ARCHIVED

    async def _import(self, feed: FeedConfig, batch, result: FileResult) -> None:
        table = feed.table_ref

        # 2. Resolve destination table and watermark column
        column_index = await self.resolver.resolve_column(table, feed.watermark_column)
        result.state = FileState.TARGET_RESOLVED

        # 3. Watermark, read fresh for every file
        watermark = await self.resolver.read_watermark(table, column_index)
        result.watermark = watermark.date_key
        result.state = FileState.WATERMARK_RESOLVED

        # 4. Filter
        outcome = self.row_filter.select(batch, column_index, watermark.date_key)
        result.undated_rows_dropped = outcome.undated_dropped
        result.state = FileState.FILTERED

        if outcome.undated_dropped:
            logger.warning(
                f"Dropped {outcome.undated_dropped} rows without a usable "
                f'"{feed.watermark_column}" value from {result.file_name} (feed: {feed.name})'
            )

        # 5. Append
        if outcome.rows:
            await self.tabular_store.append_rows(table, outcome.rows)
            result.rows_imported = len(outcome.rows)
            result.state = FileState.APPENDED
            logger.info(f"Imported {len(outcome.rows)} rows to {table}.")
        else:
            logger.info(f"No new rows found in {result.file_name}.")

    @staticmethod
    def _fail(result: FileResult, error: ImporterException, feed: FeedConfig, handle: FileHandle) -> None:
        error.context.setdefault("feed", feed.name)
        error.context.setdefault("file_name", handle.name)
        result.outcome = FileOutcome.FAILED
        result.failed_at = result.state
        result.state = FileState.FAILED
        result.reason = error.message
        if error.original_exception is not None:
            result.reason += f": {error.original_exception}"
        result.error_type = type(error).__name__

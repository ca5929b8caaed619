# ============================================================================
# File: ingestion/runner.py
# Description: Feed iterator driving the file processor over every feed
# ============================================================================
"""
Feed Runner - drives the per-file import pipeline over all configured feeds.

This module provides run orchestration with:
- Feeds processed in configuration order, files in listing order
- Per-file and per-feed failure isolation (nothing aborts the run)
- Optional concurrency across feeds, serialized per destination table
- Optional per-run deadline checked between files
- An explicit RunReport instead of exceptions
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from core.exceptions import ImporterException
from ingestion.dates import DateNormalizer
from ingestion.processor import FileProcessor
from ingestion.stores.base import FileHandle, FileStore, TableRef, TabularStore
from schemas.feed import FeedConfig
from schemas.report import FeedReport, FileOutcome, FileResult, FileState, RunReport

logger = logging.getLogger(__name__)

CSV_CONTENT_TYPE = "text/csv"


def is_csv_file(handle: FileHandle) -> bool:
    """CSV-like by declared content type or by name suffix"""
    return handle.content_type == CSV_CONTENT_TYPE or handle.name.lower().endswith(".csv")


class FeedRunner:
    """
    Feed Iterator

    Responsibilities:
    - List each feed's source location and keep CSV-like files
    - Run the FileProcessor over every file, strictly one at a time per feed
    - Collect per-file results into a RunReport
    """

    def __init__(
        self,
        file_store: FileStore,
        tabular_store: TabularStore,
        normalizer: DateNormalizer,
        encoding: str = "utf-8-sig",
        max_concurrent_feeds: int = 1,
        deadline_seconds: Optional[float] = None
    ):
        self.file_store = file_store
        self.tabular_store = tabular_store
        self.processor = FileProcessor(file_store, tabular_store, normalizer, encoding=encoding)
        self.max_concurrent_feeds = max(1, max_concurrent_feeds)
        self.deadline_seconds = deadline_seconds

        self._deadline: Optional[float] = None

    async def run(self, feeds: Iterable[FeedConfig]) -> RunReport:
        """
        Run the importer over ``feeds``.

        Returns:
            RunReport with one FeedReport per feed, in configuration order
        """
        feeds = list(feeds)
        report = RunReport()
        self._deadline = (
            time.monotonic() + self.deadline_seconds if self.deadline_seconds else None
        )

        logger.info(f"Starting import run {report.run_id} for {len(feeds)} feeds")

        if self.max_concurrent_feeds == 1:
            for feed in feeds:
                report.feeds.append(await self.run_feed(feed))
        else:
            semaphore = asyncio.Semaphore(self.max_concurrent_feeds)
            # Feeds with disjoint destination tables need no coordination.
            # Locks are created per run: asyncio primitives bind to one loop.
            table_locks: Dict[TableRef, asyncio.Lock] = {
                table: asyncio.Lock() for table in self._shared_tables(feeds)
            }

            async def bounded(feed: FeedConfig) -> FeedReport:
                async with semaphore:
                    lock = table_locks.get(self._lock_key(feed))
                    return await self.run_feed(feed, table_lock=lock)

            report.feeds.extend(await asyncio.gather(*(bounded(feed) for feed in feeds)))

        report.completed_at = datetime.now(timezone.utc)
        logger.info(f"Import {report.summary()}")
        return report

    async def run_feed(self, feed: FeedConfig, table_lock: Optional[asyncio.Lock] = None) -> FeedReport:
        """Import every CSV-like file of one feed, in listing order"""
        feed_report = FeedReport(feed_name=feed.name, target_table=feed.target_table)
        logger.info(f"--- Processing: {feed.name} ---")

        try:
            handles = await self.file_store.list_files(feed.source_location)
        except ImporterException as e:
            feed_report.error = f"Error listing files: {e.message}"
            feed_report.error_type = type(e).__name__
            logger.error(
                f"Error listing files for feed {feed.name}: {e.message}",
                extra={"error_context": e.to_dict()}
            )
            return feed_report
        except Exception as e:
            feed_report.error = f"Error listing files: {e}"
            feed_report.error_type = type(e).__name__
            logger.exception(f"Unexpected error listing files for feed {feed.name}")
            return feed_report

        candidates = [h for h in handles if is_csv_file(h)]
        logger.info(f"Found {len(candidates)} CSV files of {len(handles)} in {feed.source_location}")

        for handle in candidates:
            if self._deadline_passed():
                feed_report.files.append(self._deadline_skip(feed, handle))
                continue
            feed_report.files.append(await self.processor.process(feed, handle, table_lock=table_lock))

        logger.info(
            f"Feed {feed.name} done: {feed_report.count(FileOutcome.SUCCESS)} imported, "
            f"{feed_report.count(FileOutcome.SKIPPED)} skipped, "
            f"{feed_report.count(FileOutcome.FAILED)} failed, "
            f"{feed_report.rows_imported} rows appended"
        )
        return feed_report

    def _lock_key(self, feed: FeedConfig) -> TableRef:
        """Destination table with the store's default filled in"""
        return TableRef(feed.target_table, feed.store_id or self.tabular_store.default_store_id)

    def _shared_tables(self, feeds: List[FeedConfig]) -> set:
        seen, shared = set(), set()
        for feed in feeds:
            key = self._lock_key(feed)
            if key in seen:
                shared.add(key)
            seen.add(key)
        return shared

    def _deadline_passed(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @staticmethod
    def _deadline_skip(feed: FeedConfig, handle: FileHandle) -> FileResult:
        logger.warning(f"Run deadline exceeded, leaving {handle.name} for the next run (feed: {feed.name})")
        return FileResult(
            feed_name=feed.name,
            file_id=handle.id,
            file_name=handle.name,
            outcome=FileOutcome.SKIPPED,
            state=FileState.SKIPPED,
            reason="run deadline exceeded",
        )

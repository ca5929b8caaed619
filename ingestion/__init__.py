"""
Import pipeline components for incremental CSV feed ingestion.

This package contains the watermark-based deduplication engine:

Modules:
    dates: Date normalization to comparable YYYYMMDD integers
    csv_reader: CSV decoding, tokenizing and metadata-row removal
    watermark: Watermark derivation from the destination table
    row_filter: Selection of rows newer than the watermark
    processor: Per-file pipeline with failure isolation and archiving
    runner: Feed iterator producing a RunReport
    retry: Bounded retry with exponential backoff
    recorder: Persistence of run reports
    bootstrap: Construction of the configured store adapters

Subpackages:
    stores: FileStore / TabularStore interfaces and their adapters

Architecture:
    FeedRunner → FileProcessor → {WatermarkResolver, RowFilter} → DateNormalizer

    For every file the watermark is read fresh from the destination table,
    only rows dated after it are appended, and the file is then moved to
    the feed's archive location. A failing file stays in place and is
    retried by the next run.

Usage:
    from ingestion.dates import DateNormalizer
    from ingestion.runner import FeedRunner
    from ingestion.stores.local import LocalFileStore

Example:
    runner = FeedRunner(file_store, tabular_store, DateNormalizer("UTC"))
    report = await runner.run(feeds)

    print(report.summary())
"""

__all__ = [
    "DateNormalizer",
    "WatermarkResolver",
    "RowFilter",
    "FileProcessor",
    "FeedRunner",
    "RunRecorder",
]

"""
Pydantic schemas for configuration and run reporting.

Schemas:
    feed: Immutable per-feed configuration (FeedConfig)
    report: Per-file results, per-feed and per-run reports

Usage:
    from schemas.feed import FeedConfig
    from schemas.report import FileResult, FileOutcome, RunReport

Example:
    feed = FeedConfig(
        target_table="Checking",
        source_location="inbox/checking",
        archive_location="archive/checking",
        watermark_column="Date",
        metadata_rows=1,
    )
    assert feed.name == "Checking"
"""

__all__ = [
    "FeedConfig",
    "FileState",
    "FileOutcome",
    "FileResult",
    "FeedReport",
    "RunReport",
]

"""
Pydantic schemas for per-file results and run reports
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field


class FileState(str, enum.Enum):
    """States of the per-file import pipeline"""
    LISTED = "listed"
    METADATA_STRIPPED = "metadata_stripped"
    TARGET_RESOLVED = "target_resolved"
    WATERMARK_RESOLVED = "watermark_resolved"
    FILTERED = "filtered"
    APPENDED = "appended"
    ARCHIVED = "archived"
    SKIPPED = "skipped"
    FAILED = "failed"


class FileOutcome(str, enum.Enum):
    """Explicit outcome of one file's pipeline"""
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FileResult(BaseModel):
    """
    Outcome of processing one file.

    ``state`` is the terminal state reached; for failures ``failed_at`` is
    the last state the file successfully reached before the error.
    """

    feed_name: str
    file_id: str
    file_name: str
    outcome: FileOutcome
    state: FileState
    failed_at: Optional[FileState] = None
    reason: Optional[str] = None
    error_type: Optional[str] = None

    rows_read: int = 0
    rows_imported: int = 0
    undated_rows_dropped: int = 0
    watermark: Optional[int] = None


class FeedReport(BaseModel):
    """All file results of one feed, plus any feed-level error (e.g. listing)"""

    feed_name: str
    target_table: str
    files: List[FileResult] = Field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def rows_imported(self) -> int:
        return sum(f.rows_imported for f in self.files)

    def count(self, outcome: FileOutcome) -> int:
        return sum(1 for f in self.files if f.outcome == outcome)

    @property
    def failed(self) -> bool:
        return self.error is not None or self.count(FileOutcome.FAILED) > 0


class RunReport(BaseModel):
    """Report of one importer run across all feeds"""

    run_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    started_at: datetime = Field(default_factory=utc_now)
    completed_at: Optional[datetime] = None
    feeds: List[FeedReport] = Field(default_factory=list)

    @property
    def files(self) -> List[FileResult]:
        return [f for feed in self.feeds for f in feed.files]

    @property
    def rows_imported(self) -> int:
        return sum(feed.rows_imported for feed in self.feeds)

    def count(self, outcome: FileOutcome) -> int:
        return sum(feed.count(outcome) for feed in self.feeds)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    def summary(self) -> str:
        return (
            f"run {self.run_id}: {len(self.feeds)} feeds, "
            f"{self.count(FileOutcome.SUCCESS)} files imported, "
            f"{self.count(FileOutcome.SKIPPED)} skipped, "
            f"{self.count(FileOutcome.FAILED)} failed, "
            f"{self.rows_imported} rows appended"
        )

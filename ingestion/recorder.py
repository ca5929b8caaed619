"""
Persist run reports into the import_runs / file_imports ledger
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from core.exceptions import DatabaseError
from models.base import RunStatus
from models.import_run import FileImport, ImportRun
from schemas.report import FileOutcome, RunReport

logger = logging.getLogger(__name__)


def run_status(report: RunReport) -> RunStatus:
    """SUCCESS without failures, FAILED when nothing succeeded, else PARTIAL"""
    failures = report.count(FileOutcome.FAILED) + sum(1 for f in report.feeds if f.error)
    if failures == 0:
        return RunStatus.SUCCESS
    if report.count(FileOutcome.SUCCESS) == 0:
        return RunStatus.FAILED
    return RunStatus.PARTIAL


def _naive_utc(value):
    return value.replace(tzinfo=None) if value is not None and value.tzinfo else value


class RunRecorder:
    """
    Write one ImportRun row and one FileImport row per file seen.

    The ledger is an audit trail for manual reconciliation; deduplication
    never reads it back.
    """

    def __init__(self, session_maker: async_sessionmaker):
        self.session_maker = session_maker

    async def record(self, report: RunReport) -> ImportRun:
        run = ImportRun(
            run_id=report.run_id,
            status=run_status(report),
            started_at=_naive_utc(report.started_at),
            completed_at=_naive_utc(report.completed_at),
            duration_seconds=report.duration_seconds,
            feeds_processed=len(report.feeds),
            files_imported=report.count(FileOutcome.SUCCESS),
            files_skipped=report.count(FileOutcome.SKIPPED),
            files_failed=report.count(FileOutcome.FAILED),
            rows_imported=report.rows_imported,
            feed_errors={
                f.feed_name: {"error": f.error, "error_type": f.error_type}
                for f in report.feeds if f.error
            } or None,
        )
        run.files = [
            FileImport(
                feed_name=f.feed_name,
                file_id=f.file_id,
                file_name=f.file_name,
                outcome=f.outcome.value,
                final_state=f.state.value,
                failed_at=f.failed_at.value if f.failed_at else None,
                reason=f.reason,
                error_type=f.error_type,
                rows_read=f.rows_read,
                rows_imported=f.rows_imported,
                undated_rows_dropped=f.undated_rows_dropped,
                watermark=f.watermark,
            )
            for f in report.files
        ]

        async with self.session_maker() as session:
            try:
                session.add(run)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise DatabaseError(
                    "Failed to record import run",
                    context={"operation": "INSERT", "table_name": "import_runs", "run_id": str(report.run_id)},
                    original_exception=e
                )

        logger.info(f"Recorded run {report.run_id} ({run.status.value}, {len(run.files)} files)")
        return run

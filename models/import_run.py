from sqlalchemy import Column, BigInteger, Integer, String, Enum, DateTime, Float, Text, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import uuid
from models.base import Base, JSONType, RunStatus


class ImportRun(Base):
    """
    Tracks metadata for each importer run.

    Purpose:
    - Audit trail of all runs
    - Manual reconciliation of skipped and failed files
    """
    __tablename__ = "import_runs"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    run_id = Column(Uuid(as_uuid=True), default=uuid.uuid4, unique=True, nullable=False, index=True)

    status = Column(Enum(RunStatus), default=RunStatus.RUNNING, nullable=False, index=True)

    # Timestamps
    started_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc).replace(tzinfo=None))
    completed_at = Column(DateTime, nullable=True)
    duration_seconds = Column(Float, nullable=True)

    # Statistics
    feeds_processed = Column(Integer, default=0)
    files_imported = Column(Integer, default=0)
    files_skipped = Column(Integer, default=0)
    files_failed = Column(Integer, default=0)
    rows_imported = Column(Integer, default=0)

    # Feed-level errors (e.g. listing failures)
    feed_errors = Column(JSONType, nullable=True)

    files = relationship("FileImport", back_populates="run", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_import_run_status", "status", "started_at"),
    )


class FileImport(Base):
    """
    Outcome of one file within an importer run.

    One row per file seen, whatever the outcome, so every skip and failure
    carries feed name, file name and reason.
    """
    __tablename__ = "file_imports"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    import_run_id = Column(
        BigInteger().with_variant(Integer, "sqlite"),
        ForeignKey("import_runs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    feed_name = Column(String(100), nullable=False, index=True)
    file_id = Column(String(500), nullable=False)
    file_name = Column(String(500), nullable=False)

    outcome = Column(String(20), nullable=False, index=True)
    final_state = Column(String(30), nullable=False)
    failed_at = Column(String(30), nullable=True)
    reason = Column(Text, nullable=True)
    error_type = Column(String(100), nullable=True)

    rows_read = Column(Integer, default=0)
    rows_imported = Column(Integer, default=0)
    undated_rows_dropped = Column(Integer, default=0)
    watermark = Column(Integer, nullable=True)

    run = relationship("ImportRun", back_populates="files")

    __table_args__ = (
        Index("idx_file_import_feed_file", "feed_name", "file_name"),
    )

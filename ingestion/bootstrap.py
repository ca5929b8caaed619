"""
Construction of the configured store adapters
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from core.config import Settings
from core.exceptions import SetupError
from ingestion.stores.base import FileStore, TabularStore
from ingestion.stores.google_api import GoogleAPIClient
from ingestion.stores.google_drive import GoogleDriveFileStore
from ingestion.stores.google_sheets import GoogleSheetsTabularStore
from ingestion.stores.local import LocalFileStore
from ingestion.stores.sql_sheets import SQLTabularStore

logger = logging.getLogger(__name__)


def build_google_client(settings: Settings) -> GoogleAPIClient:
    if not settings.GOOGLE_ACCESS_TOKEN:
        raise SetupError(
            "GOOGLE_ACCESS_TOKEN is required for the Google backends",
            context={
                "file_store": settings.FILE_STORE_BACKEND,
                "tabular_store": settings.TABULAR_STORE_BACKEND,
            }
        )
    return GoogleAPIClient(
        access_token=settings.GOOGLE_ACCESS_TOKEN,
        max_retries=settings.MAX_RETRIES,
        retry_delay=settings.RETRY_DELAY,
        timeout=settings.REQUEST_TIMEOUT,
    )


def build_file_store(settings: Settings, google_client: Optional[GoogleAPIClient] = None) -> FileStore:
    if settings.FILE_STORE_BACKEND == "google_drive":
        logger.info("Using Google Drive file store")
        return GoogleDriveFileStore(google_client or build_google_client(settings))

    logger.info(f"Using local file store at {settings.LOCAL_STORAGE_ROOT}")
    return LocalFileStore(settings.LOCAL_STORAGE_ROOT)


def build_tabular_store(
    settings: Settings,
    session_maker: Optional[async_sessionmaker] = None,
    google_client: Optional[GoogleAPIClient] = None
) -> TabularStore:
    if settings.TABULAR_STORE_BACKEND == "google_sheets":
        logger.info("Using Google Sheets tabular store")
        return GoogleSheetsTabularStore(
            google_client or build_google_client(settings),
            default_spreadsheet_id=settings.DEFAULT_STORE_ID,
        )

    if session_maker is None:
        raise SetupError(
            "A database session maker is required for the SQL tabular store",
            context={"tabular_store": settings.TABULAR_STORE_BACKEND}
        )
    logger.info("Using SQL tabular store")
    return SQLTabularStore(
        session_maker,
        default_workbook=settings.DEFAULT_STORE_ID,
        max_retries=settings.MAX_RETRIES,
        retry_delay=settings.RETRY_DELAY,
    )

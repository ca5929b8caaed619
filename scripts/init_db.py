import asyncio
import logging
import sys
import os

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings, load_feed_configs
from core.database import create_engine, create_session_maker
from core.exceptions import FeedConfigError, TableNotFoundError
from core.logging import setup_logging
from ingestion.stores.sql_sheets import SQLTabularStore
from models.base import Base
# Import all models to ensure they are registered
from models.sheet import Sheet, SheetRow
from models.import_run import ImportRun, FileImport

logger = logging.getLogger(__name__)


async def check_feed_sheets(session_maker) -> int:
    """Warn about configured feeds whose destination sheet is missing"""
    try:
        feeds = load_feed_configs(settings.FEEDS_CONFIG_PATH)
    except FeedConfigError as e:
        logger.warning(f"Skipping sheet check: {e.message} ({settings.FEEDS_CONFIG_PATH})")
        return 0

    store = SQLTabularStore(session_maker, default_workbook=settings.DEFAULT_STORE_ID)
    missing = 0
    for feed in feeds:
        try:
            header = await store.get_header(feed.table_ref)
        except TableNotFoundError:
            missing += 1
            logger.warning(f"Feed {feed.name}: sheet {feed.table_ref} does not exist yet")
            continue
        if feed.watermark_column not in header:
            logger.warning(f'Feed {feed.name}: sheet {feed.table_ref} has no "{feed.watermark_column}" column')
    return missing


async def init_database():
    logger.info("Connecting to database...")
    engine = create_engine(settings.DATABASE_URL)

    async with engine.begin() as conn:
        logger.info("Creating tables...")
        # Create all tables defined in models
        await conn.run_sync(Base.metadata.create_all)
        logger.info("Tables created successfully.")

    if settings.TABULAR_STORE_BACKEND == "sql":
        missing = await check_feed_sheets(create_session_maker(engine))
        if missing:
            logger.info(f"{missing} destination sheets must be created before importing")

    await engine.dispose()

if __name__ == "__main__":
    setup_logging()
    asyncio.run(init_database())

"""
Script to run the CSV importer for all configured feeds
"""

import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, ingestion, etc.
sys.path.append(os.getcwd())

from core.config import Settings, load_feed_configs, settings
from core.database import create_engine, create_session_maker
from core.logging import setup_logging
from ingestion.bootstrap import build_file_store, build_google_client, build_tabular_store
from ingestion.dates import DateNormalizer
from ingestion.recorder import RunRecorder
from ingestion.runner import FeedRunner

logger = logging.getLogger(__name__)


def _needs_google(config: Settings) -> bool:
    return config.FILE_STORE_BACKEND == "google_drive" or config.TABULAR_STORE_BACKEND == "google_sheets"


def _needs_database(config: Settings) -> bool:
    return config.TABULAR_STORE_BACKEND == "sql" or config.RECORD_RUNS


async def run_import(config: Settings = settings) -> int:
    """
    Run the importer once.

    Returns:
        Process exit status: 1 only when one-time setup fails; file and feed
        failures are reported and logged but still exit 0
    """
    engine = None
    google_client = None

    try:
        # --------------------------------------------------
        # SETUP (fatal on failure)
        # --------------------------------------------------
        try:
            feeds = load_feed_configs(config.FEEDS_CONFIG_PATH)
            if not feeds:
                logger.warning("No feeds configured. Nothing to import.")
                return 0

            session_maker = None
            if _needs_database(config):
                engine = create_engine(config.DATABASE_URL)
                session_maker = create_session_maker(engine)

            if _needs_google(config):
                google_client = build_google_client(config)

            file_store = build_file_store(config, google_client=google_client)
            tabular_store = build_tabular_store(config, session_maker=session_maker, google_client=google_client)
            normalizer = DateNormalizer(config.TIME_ZONE)

        except Exception as e:
            logger.error(f"Importer setup failed: {e}")
            return 1

        # --------------------------------------------------
        # RUN (never fatal)
        # --------------------------------------------------
        runner = FeedRunner(
            file_store,
            tabular_store,
            normalizer,
            encoding=config.CSV_ENCODING,
            max_concurrent_feeds=config.MAX_CONCURRENT_FEEDS,
            deadline_seconds=config.RUN_DEADLINE_SECONDS,
        )
        report = await runner.run(feeds)

        if config.RECORD_RUNS and session_maker is not None:
            try:
                await RunRecorder(session_maker).record(report)
            except Exception as e:
                logger.error(f"Failed to record run {report.run_id}: {e}")

        logger.info(f"Process completed: {report.summary()}")
        return 0

    finally:
        if google_client is not None:
            await google_client.aclose()
        if engine is not None:
            await engine.dispose()


def main():
    setup_logging()
    sys.exit(asyncio.run(run_import()))


if __name__ == "__main__":
    main()

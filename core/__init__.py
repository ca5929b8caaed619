"""
Core utilities and configuration for the CSV feed importer.

This package provides foundational components used throughout the importer:

Modules:
    config: Settings, environment variables and feed list loading
    database: Database engine and session management
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import settings, load_feed_configs
    from core.database import create_engine, create_session_maker
    from core.exceptions import TableNotFoundError, NetworkError
    from core.logging import setup_logging

Example:
    # Initialize logging
    setup_logging()

    # Load the configured feeds
    feeds = load_feed_configs(settings.FEEDS_CONFIG_PATH)
"""

__all__ = [
    "settings",
    "load_feed_configs",
    "create_engine",
    "create_session_maker",
    "setup_logging",
    # Exceptions
    "ImporterException",
    "InvalidConfigError",
    "FeedConfigError",
    "TableNotFoundError",
    "ColumnMissingError",
    "ShortFileError",
    "RemoteCallFailure",
    "FileStoreError",
    "TabularStoreError",
    "DatabaseError",
    "TransformFailure",
    "CSVParseError",
    "SetupError",
    "RetryableError",
    "NonRetryableError",
    "NetworkError",
    "RateLimitError",
    "DatabaseConnectionError",
    "AuthenticationError",
    "ResourceNotFoundError",
]

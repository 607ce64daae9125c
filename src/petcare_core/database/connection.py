"""
Database connection utilities for the petcare-core package.

This module provides async SQLAlchemy engine configuration and connection
management for PostgreSQL (asyncpg) and SQLite (aiosqlite) databases.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool, StaticPool

from ..exceptions import ConnectionException, DatabaseConfigException
from ..utils.config import AppSettings, ConfigError, DatabaseURLValidator

logger = logging.getLogger(__name__)

ASYNC_DRIVERS = {
    "postgresql": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}


class DatabaseConfig:
    """Configuration class for database connections."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
        echo: bool = False,
    ):
        """
        Initialize database configuration.

        Args:
            database_url: PostgreSQL or SQLite connection URL
            pool_size: Number of connections to maintain in the pool
            max_overflow: Maximum number of connections that can overflow the pool
            pool_timeout: Timeout for getting connection from pool
            pool_recycle: Time in seconds to recycle connections
            echo: Whether to echo SQL statements

        Raises:
            DatabaseConfigException: If the URL is invalid or unsupported
        """
        self.database_url = database_url
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.pool_timeout = pool_timeout
        self.pool_recycle = pool_recycle
        self.echo = echo

        try:
            self.url_info = DatabaseURLValidator.validate_url(database_url)
        except ConfigError as e:
            raise DatabaseConfigException(
                f"Invalid database URL: {e.message}", config_key="database_url"
            ) from e

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "DatabaseConfig":
        """Build a connection config from application settings."""
        return cls(
            database_url=settings.require_database_url(),
            pool_size=settings.pool_size,
            echo=settings.echo_sql,
        )

    @property
    def backend(self) -> str:
        return self.url_info["backend"]

    @property
    def is_sqlite(self) -> bool:
        return self.backend == "sqlite"

    @property
    def is_memory_database(self) -> bool:
        return self.is_sqlite and self.url_info["database"] in ("", ":memory:")

    def get_async_url(self) -> str:
        """Convert database URL to its async driver form if needed."""
        scheme = self.url_info["scheme"]
        if scheme == self.backend:
            return ASYNC_DRIVERS[self.backend] + self.database_url[len(scheme):]
        return self.database_url


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(
    database_url: str,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_timeout: int = 30,
    pool_recycle: int = 3600,
    pool_pre_ping: bool = True,
    echo: bool = False,
    use_null_pool: bool = False,
    connect_args: Optional[dict] = None,
) -> AsyncEngine:
    """
    Create an async SQLAlchemy engine with proper configuration.

    PostgreSQL engines get a queue pool. SQLite engines get a static pool
    for in-memory databases (so every session sees the same data) and no
    pool otherwise, and always enforce foreign keys so delete rules behave
    as they do on PostgreSQL.

    Args:
        database_url: PostgreSQL or SQLite connection URL
        pool_size: Number of connections to maintain in the pool
        max_overflow: Maximum number of connections that can overflow the pool
        pool_timeout: Timeout for getting connection from pool
        pool_recycle: Time in seconds to recycle connections
        pool_pre_ping: Whether to validate connections before use
        echo: Whether to echo SQL statements
        use_null_pool: Whether to use NullPool for server databases
        connect_args: Additional connection arguments

    Returns:
        Configured async SQLAlchemy engine

    Raises:
        DatabaseConfigException: If database URL is invalid
    """
    config = DatabaseConfig(
        database_url=database_url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        echo=echo,
    )

    async_url = config.get_async_url()

    engine_kwargs: Dict[str, Any] = {"echo": config.echo}

    if connect_args:
        engine_kwargs["connect_args"] = connect_args

    if config.is_sqlite:
        if config.is_memory_database:
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs.setdefault("connect_args", {})["check_same_thread"] = False
        else:
            engine_kwargs["poolclass"] = NullPool
    elif use_null_pool:
        engine_kwargs["poolclass"] = NullPool
    else:
        engine_kwargs.update(
            {
                "poolclass": AsyncAdaptedQueuePool,
                "pool_size": config.pool_size,
                "max_overflow": config.max_overflow,
                "pool_timeout": config.pool_timeout,
                "pool_recycle": config.pool_recycle,
                "pool_pre_ping": pool_pre_ping,
            }
        )

    engine = create_async_engine(async_url, **engine_kwargs)

    if config.is_sqlite:
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    logger.info(
        f"Created async {config.backend} engine for "
        f"{config.url_info['hostname'] or config.url_info['database'] or ':memory:'}"
    )
    return engine


def create_engine_from_settings(settings: AppSettings) -> AsyncEngine:
    """
    Create the application engine from settings.

    Raises:
        ConfigError: If no database URL is configured
    """
    config = DatabaseConfig.from_settings(settings)
    return create_engine(
        config.database_url,
        pool_size=config.pool_size,
        echo=config.echo,
    )


async def check_connection(
    engine: AsyncEngine, max_retries: int = 3, retry_delay: float = 1.0
) -> bool:
    """
    Check database connection health with retry logic.

    Args:
        engine: SQLAlchemy async engine
        max_retries: Maximum number of retry attempts
        retry_delay: Delay between retries in seconds

    Returns:
        True if connection is healthy, False otherwise
    """
    for attempt in range(max_retries + 1):
        try:
            async with engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("Database connection check successful")
            return True
        except (SQLAlchemyError, OSError) as e:
            if attempt < max_retries:
                logger.warning(
                    f"Database connection check failed (attempt {attempt + 1}/{max_retries + 1}): {e}"
                )
                await asyncio.sleep(retry_delay * (2**attempt))  # Exponential backoff
            else:
                logger.error(
                    f"Database connection check failed after {max_retries + 1} attempts: {e}"
                )
    return False


async def close_engine(engine: AsyncEngine) -> None:
    """
    Properly close the database engine and all connections.

    Args:
        engine: SQLAlchemy async engine to close
    """
    await engine.dispose()
    logger.info("Database engine closed successfully")


async def wait_for_database(
    engine: AsyncEngine, timeout: float = 30.0, check_interval: float = 1.0
) -> bool:
    """
    Wait for database to become available.

    Args:
        engine: SQLAlchemy async engine
        timeout: Maximum time to wait in seconds
        check_interval: Time between checks in seconds

    Returns:
        True once the database answers

    Raises:
        ConnectionException: If database doesn't become available within timeout
    """
    start_time = time.monotonic()

    while time.monotonic() - start_time < timeout:
        if await check_connection(engine, max_retries=0):
            return True
        await asyncio.sleep(check_interval)

    raise ConnectionException(
        f"Database did not become available within {timeout} seconds",
        database_url=str(engine.url),
    )


def get_database_url(
    host: str,
    port: int = 5432,
    database: str = "petcare",
    username: str = "postgres",
    password: str = "",  # nosec B107
    driver: str = "asyncpg",
    **kwargs: Any,
) -> str:
    """
    Construct a PostgreSQL database URL.

    Args:
        host: Database host
        port: Database port
        database: Database name
        username: Database username
        password: Database password
        driver: Database driver (asyncpg for async)
        **kwargs: Additional URL parameters

    Returns:
        Formatted database URL
    """
    if password:
        auth = f"{username}:{password}"
    else:
        auth = username

    base_url = f"postgresql+{driver}://{auth}@{host}:{port}/{database}"

    if kwargs:
        params = "&".join(f"{k}={v}" for k, v in kwargs.items())
        base_url += f"?{params}"

    return base_url

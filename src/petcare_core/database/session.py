"""
Database session management utilities for the petcare-core package.

This module provides the async session factory, session and transaction
context managers and retry support. Entity services never commit: the
caller opens a transaction here and hands its session to the services.
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, Optional

from sqlalchemy import MetaData, text
from sqlalchemy.exc import DisconnectionError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ..exceptions import DatabaseException, PetCareException, TransactionException

logger = logging.getLogger(__name__)


def _operation_name(operation: Any) -> str:
    return getattr(operation, "__name__", str(operation))


class SessionManager:
    """Manages database sessions and provides transaction utilities."""

    def __init__(
        self, engine: AsyncEngine, session_config: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize session manager with database engine.

        Args:
            engine: SQLAlchemy async engine
            session_config: Optional session configuration overrides
        """
        self.engine = engine
        self._is_initialized = False

        # Objects stay usable after commit so services can return them
        config = {"expire_on_commit": False, "autoflush": True}
        if session_config:
            config.update(session_config)

        self.session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            autoflush=config["autoflush"],
            expire_on_commit=config["expire_on_commit"],
        )

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Context manager for database sessions with automatic cleanup.

        Yields:
            Database session

        Example:
            async with session_manager.get_session() as session:
                result = await session.execute(select(Client))
        """
        session = self.session_factory()
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"Session error, rolling back: {e}")
            raise
        finally:
            await session.close()

    @asynccontextmanager
    async def get_transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Context manager for database transactions with automatic commit/rollback.

        Yields:
            Database session within a transaction

        Example:
            async with session_manager.get_transaction() as session:
                clients = ClientService(session, guard, segments)
                await clients.create(user, data)
                # Committed on success, rolled back on any exception
        """
        async with self.get_session() as session:
            async with session.begin():
                yield session

    async def execute_in_transaction(
        self, operation: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any
    ) -> Any:
        """
        Execute an operation within a transaction.

        Package exceptions (validation, authorization, not found...) pass
        through unchanged. Other failures are wrapped.

        Args:
            operation: Async function taking the session first
            *args: Arguments to pass to the operation
            **kwargs: Keyword arguments to pass to the operation

        Returns:
            Result of the operation

        Raises:
            TransactionException: If the database transaction fails
        """
        try:
            async with self.get_transaction() as session:
                return await operation(session, *args, **kwargs)
        except PetCareException:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Database operation failed: {e}")
            raise TransactionException(
                "Database transaction failed",
                operation=_operation_name(operation),
                original_error=e,
            ) from e

    async def execute_with_retry(
        self,
        operation: Callable[[AsyncSession], Awaitable[Any]],
        max_retries: int = 3,
        retry_delay: float = 1.0,
        exponential_backoff: bool = True,
    ) -> Any:
        """
        Execute a database operation with retry logic for transient failures.

        Each attempt runs in a fresh transaction. Only disconnects and
        operational errors are retried.

        Args:
            operation: Async function that takes a session and returns a result
            max_retries: Maximum number of retry attempts
            retry_delay: Initial delay between retries in seconds
            exponential_backoff: Whether to use exponential backoff

        Returns:
            Result of the operation

        Raises:
            DatabaseException: If operation fails after all retries
        """
        last_exception: Optional[Exception] = None

        for attempt in range(max_retries + 1):
            try:
                async with self.get_transaction() as session:
                    return await operation(session)

            except (DisconnectionError, OperationalError) as e:
                last_exception = e
                if attempt < max_retries:
                    delay = retry_delay * (2**attempt if exponential_backoff else 1)
                    logger.warning(
                        f"Database operation failed (attempt {attempt + 1}/{max_retries + 1}), "
                        f"retrying in {delay}s: {e}"
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error(
                        f"Database operation failed after {max_retries + 1} attempts: {e}"
                    )

            except PetCareException:
                raise

            except SQLAlchemyError as e:
                logger.error(f"Non-retryable database operation error: {e}")
                raise DatabaseException(
                    "Database operation failed",
                    details={"operation": _operation_name(operation)},
                    original_error=e,
                ) from e

        raise DatabaseException(
            f"Database operation failed after {max_retries + 1} attempts",
            details={"operation": _operation_name(operation)},
            original_error=last_exception,
            retry_count=max_retries,
            max_retries=max_retries,
        )

    async def health_check(self) -> Dict[str, Any]:
        """
        Check that sessions and transactions work.

        Returns:
            Dictionary with health check results
        """
        health_status: Dict[str, Any] = {
            "status": "healthy",
            "timestamp": time.time(),
            "checks": {},
        }

        try:
            start_time = time.perf_counter()
            async with self.get_session() as session:
                await session.execute(text("SELECT 1"))
            health_status["checks"]["basic_query"] = {
                "status": "pass",
                "response_time": round((time.perf_counter() - start_time) * 1000, 2),
            }

            start_time = time.perf_counter()
            async with self.get_transaction() as session:
                await session.execute(text("SELECT 1"))
            health_status["checks"]["transaction"] = {
                "status": "pass",
                "response_time": round((time.perf_counter() - start_time) * 1000, 2),
            }

        except SQLAlchemyError as e:
            health_status["status"] = "unhealthy"
            health_status["checks"]["database"] = {
                "status": "fail",
                "error": str(e),
                "error_type": type(e).__name__,
            }
            logger.error(f"Database error during health check: {e}")

        return health_status

    async def initialize_database(self, metadata: MetaData) -> None:
        """
        Create all tables of the given metadata.

        Intended for tests and local SQLite databases. Server databases are
        built with the Alembic migrations.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
        self._is_initialized = True
        logger.info(f"Created {len(metadata.tables)} database tables")

    async def drop_database(self, metadata: MetaData) -> None:
        """Drop all tables of the given metadata."""
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.drop_all)
        self._is_initialized = False
        logger.warning("All database tables dropped")

    async def close(self) -> None:
        """Dispose of the engine and all pooled connections."""
        await self.engine.dispose()
        logger.info("All database sessions and connections closed")

    @property
    def is_initialized(self) -> bool:
        """Check if the schema has been created by this manager."""
        return self._is_initialized


# Global session manager instance (initialized by the application)
_session_manager: Optional[SessionManager] = None


def initialize_session_manager(engine: AsyncEngine) -> SessionManager:
    """
    Initialize the global session manager.

    Args:
        engine: SQLAlchemy async engine

    Returns:
        Initialized session manager
    """
    global _session_manager
    _session_manager = SessionManager(engine)
    logger.info("Session manager initialized")
    return _session_manager


def get_session_manager() -> SessionManager:
    """
    Get the global session manager instance.

    Raises:
        RuntimeError: If session manager is not initialized
    """
    if _session_manager is None:
        raise RuntimeError(
            "Session manager not initialized. Call initialize_session_manager() first."
        )
    return _session_manager


def get_engine() -> AsyncEngine:
    """Get the database engine from the global session manager."""
    return get_session_manager().engine


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session from the global manager.

    Raises:
        RuntimeError: If session manager is not initialized
    """
    async with get_session_manager().get_session() as session:
        yield session


@asynccontextmanager
async def get_transaction() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database transaction from the global manager.

    Raises:
        RuntimeError: If session manager is not initialized
    """
    async with get_session_manager().get_transaction() as session:
        yield session


async def execute_with_retry(
    operation: Callable[[AsyncSession], Awaitable[Any]],
    max_retries: int = 3,
    retry_delay: float = 1.0,
    exponential_backoff: bool = True,
) -> Any:
    """
    Execute database operations with retry logic on the global manager.

    Raises:
        RuntimeError: If session manager is not initialized
        DatabaseException: If operation fails after all retries
    """
    return await get_session_manager().execute_with_retry(
        operation, max_retries, retry_delay, exponential_backoff
    )


async def health_check() -> Dict[str, Any]:
    """
    Perform database health check on the global manager.

    Raises:
        RuntimeError: If session manager is not initialized
    """
    return await get_session_manager().health_check()

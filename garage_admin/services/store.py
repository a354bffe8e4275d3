"""
Bounded calls to the database.

Every awaited store operation goes through ``call_store`` so that a slow
database surfaces as ``QueryTimeoutError`` and a failing one as
``StoreError``, never as an empty result.
"""
import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError

from garage_admin.exceptions import GarageAdminError, QueryTimeoutError, StoreError

logger = logging.getLogger(__name__)


def describe_store_error(error: Exception) -> str:
    """Underlying driver message when there is one."""
    orig = getattr(error, "orig", None)
    return str(orig or error).strip()


async def call_store(awaitable, *, timeout: float, operation: str):
    """Await a store call under a wall-clock bound."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("%s timed out after %ss", operation, timeout)
        raise QueryTimeoutError(f"Error during {operation}: timed out after {timeout:g}s") from None
    except SQLAlchemyError as e:
        logger.exception("Error during %s", operation)
        raise StoreError(f"Error during {operation}: {describe_store_error(e)}") from e


async def commit_store(db, *, timeout: float, operation: str) -> None:
    """Commit under ``call_store``; any failure, timeouts included, rolls the session back.

    Pending objects are expunged by the rollback, so a retried save starts
    from a clean session instead of flushing the failed attempt as well.
    """
    try:
        await call_store(db.commit(), timeout=timeout, operation=operation)
    except GarageAdminError:
        await db.rollback()
        raise

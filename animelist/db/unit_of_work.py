"""
Retried units of work.

Runs a coroutine inside one Database transaction and retries the whole unit
when SQLite reports lock contention. Any other error propagates unchanged.
"""

from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from animelist.core.exceptions import TransientStoreError
from animelist.core.retry import RetryPolicy
from animelist.db.session import Database, is_busy_error

T = TypeVar("T")


async def run_transaction(
    database: Database,
    work: Callable[[AsyncSession], Awaitable[T]],
    *,
    retry_policy: RetryPolicy,
) -> T:
    """
    Run `work(session)` in a transaction, retrying on busy storage.

    Raises:
        TransientStoreError: If storage stayed busy for every attempt
    """

    async def attempt() -> T:
        try:
            async with database.transaction() as session:
                return await work(session)
        except OperationalError as e:
            if is_busy_error(e):
                raise TransientStoreError(str(e.orig)) from e
            raise

    return await retry_policy.call(attempt, retry_on=(TransientStoreError,))

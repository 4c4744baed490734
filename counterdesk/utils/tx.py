from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction

@asynccontextmanager
async def maybe_begin(session: AsyncSession):
    """
    Reuse the session's open transaction, or open one for the block.
    """
    if session.in_transaction():
        yield
    else:
        async with session.begin():
            yield


async def begin_scope(session: AsyncSession) -> AsyncSessionTransaction:
    """
    Open the write scope for a multi-row unit of work.

    A fresh session gets a real transaction; a session that is already inside
    one gets a SAVEPOINT so that rolling the scope back only undoes our rows.
    The caller owns commit/rollback of the returned transaction.
    """
    if session.in_transaction():
        return await session.begin_nested()
    return await session.begin()

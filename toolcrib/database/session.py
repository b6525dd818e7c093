from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from toolcrib.database.engine import async_session


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields a database session.

    One session and one transaction per request: committed when the handler
    returns, rolled back when it raises.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

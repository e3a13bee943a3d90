from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

# Import all models so Base.metadata is populated for create_all() and Alembic.
import app.models  # noqa: F401
from app.context import ServiceContext


def get_context(request: Request) -> ServiceContext:
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise RuntimeError("Service context not initialized")
    return context


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    factory = get_context(request).session_factory
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

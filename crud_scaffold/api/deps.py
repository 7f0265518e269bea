"""
API Dependency Injection Module

Provides the dependencies shared by the CRUD routers.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crud_scaffold.db.session import get_db as _get_db


async def get_db():
    """
    Get database session dependency

    Yields:
        AsyncSession: Async database session
    """
    async for session in _get_db():
        yield session


# Database session dependency type
DbSession = Annotated[AsyncSession, Depends(get_db)]

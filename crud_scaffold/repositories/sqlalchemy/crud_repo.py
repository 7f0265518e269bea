"""
CRUD Repository SQLAlchemy Implementation

Provides the concrete database operations for any mapped entity.
"""

from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crud_scaffold.query.descriptor import QueryDescriptor
from crud_scaffold.query.executor import search_records
from crud_scaffold.repositories.base import CrudRepository, T


class SQLAlchemyCrudRepository(CrudRepository[T]):
    """
    CRUD Repository SQLAlchemy Implementation

    Uses SQLAlchemy ORM to implement database operations for one entity class.
    """

    def __init__(self, session: AsyncSession, model: type[T]):
        """
        Initialize Repository

        Args:
            session: Async database session
            model: Mapped entity class
        """
        self.session = session
        self.model = model

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise

    async def create(self, data: dict[str, Any]) -> T:
        """Create a record"""
        entity = self.model(**data)
        self.session.add(entity)
        await self._commit()
        await self.session.refresh(entity)
        return entity

    async def create_many(self, records: list[dict[str, Any]]) -> list[T]:
        """Create several records in one transaction"""
        entities = [self.model(**data) for data in records]
        self.session.add_all(entities)
        await self._commit()
        for entity in entities:
            await self.session.refresh(entity)
        return entities

    async def get_by_id(self, id: Any) -> Optional[T]:
        """Get a record by primary key"""
        return await self.session.get(self.model, id)

    async def update(self, id: Any, data: dict[str, Any]) -> Optional[T]:
        """Update a record"""
        entity = await self.session.get(self.model, id)
        if not entity:
            return None

        for key, value in data.items():
            setattr(entity, key, value)

        await self._commit()
        await self.session.refresh(entity)
        return entity

    async def delete(self, id: Any) -> Optional[T]:
        """Delete a record"""
        entity = await self.session.get(self.model, id)
        if not entity:
            return None

        await self.session.delete(entity)
        await self._commit()
        return entity

    async def search(self, descriptor: QueryDescriptor) -> tuple[list[T], int]:
        """Run a paginated search through the search executor"""
        return await search_records(self.session, self.model, descriptor)

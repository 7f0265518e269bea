"""
Base Repository Interface Module

Defines the generic data access interface used by the CRUD service, decoupling
it from a specific database implementation.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

from crud_scaffold.query.descriptor import QueryDescriptor

# Define generic type variable
T = TypeVar("T")


class CrudRepository(ABC, Generic[T]):
    """
    CRUD Repository Interface

    Defines standard CRUD operations plus the paginated search.
    """

    @abstractmethod
    async def create(self, data: dict[str, Any]) -> T:
        """Create a record"""
        pass

    @abstractmethod
    async def create_many(self, records: list[dict[str, Any]]) -> list[T]:
        """Create several records in one transaction"""
        pass

    @abstractmethod
    async def get_by_id(self, id: Any) -> Optional[T]:
        """Get a record by primary key"""
        pass

    @abstractmethod
    async def update(self, id: Any, data: dict[str, Any]) -> Optional[T]:
        """Update a record, None if it does not exist"""
        pass

    @abstractmethod
    async def delete(self, id: Any) -> Optional[T]:
        """Delete a record, returning it; None if it does not exist"""
        pass

    @abstractmethod
    async def search(self, descriptor: QueryDescriptor) -> tuple[list[T], int]:
        """Run a paginated search, returning (records, total)"""
        pass

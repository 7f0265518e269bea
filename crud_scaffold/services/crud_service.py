"""
CRUD Service Module

Provides the business logic shared by every entity exposed through the scaffold:
payload validation against the entity schemas, existence checks, and the
paginated search.
"""

import logging
from typing import Any, Generic

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

from crud_scaffold.common.errors import NotFoundError, ServiceError, ValidationError
from crud_scaffold.domain.entity import EntityConfig
from crud_scaffold.query.descriptor import QueryDescriptor
from crud_scaffold.repositories.base import CrudRepository, T

logger = logging.getLogger(__name__)


class CrudService(Generic[T]):
    """
    CRUD Service

    Handles create/read/update/delete and search for one entity.
    """

    def __init__(self, repo: CrudRepository[T], config: EntityConfig):
        """
        Initialize Service

        Args:
            repo: Entity Repository
            config: Entity configuration (schemas, id type)
        """
        self.repo = repo
        self.config = config

    def _validate(self, schema: type[BaseModel], payload: Any) -> dict[str, Any]:
        """
        Validate a payload and return the fields to persist

        Raises:
            ValidationError: Payload does not satisfy the schema, or names
                fields the entity does not have
        """
        try:
            validated = schema.model_validate(payload)
        except PydanticValidationError as e:
            logger.warning("Validation failed for %s: %s", self.config.name, e)
            raise ValidationError(
                details={
                    "errors": e.errors(include_url=False, include_context=False, include_input=False)
                }
            )

        data = validated.model_dump(exclude_unset=True)
        data.update(validated.model_extra or {})
        unknown = sorted(set(data) - self.config.column_names)
        if unknown:
            raise ValidationError(details={"unknown_fields": unknown})
        return data

    async def create_one(self, payload: Any) -> T:
        """
        Create a record

        Args:
            payload: Raw request body

        Returns:
            T: Created entity

        Raises:
            ValidationError: Payload rejected by create_schema
            ServiceError: Store rejected the insert
        """
        data = self._validate(self.config.create_schema, payload)
        try:
            return await self.repo.create(data)
        except SQLAlchemyError as e:
            logger.error("Error on create %s: %s | record=%s", self.config.name, e, data)
            raise ServiceError(details={"reason": type(e).__name__})

    async def create_many(self, records: list[Any]) -> list[T]:
        """
        Create several records, all or nothing

        Every record is validated before anything is written.
        """
        validated: list[dict[str, Any]] = []
        errors: list[dict[str, Any]] = []
        for index, record in enumerate(records):
            try:
                validated.append(self._validate(self.config.create_schema, record))
            except ValidationError as e:
                errors.append({"index": index, **e.details})
        if errors:
            raise ValidationError(details={"records": errors})

        try:
            return await self.repo.create_many(validated)
        except SQLAlchemyError as e:
            logger.error("Error on create %s: %s | records=%s", self.config.name, e, validated)
            raise ServiceError(details={"reason": type(e).__name__})

    async def find_one_by_id(self, id: Any) -> T:
        """
        Get a record by ID

        Raises:
            NotFoundError: Record not found
        """
        entity = await self.repo.get_by_id(id)
        if entity is None:
            raise NotFoundError(
                message=f"{self.config.name} with id {id} not found",
                code="record_not_found",
            )
        return entity

    async def update_one(self, id: Any, payload: Any) -> T:
        """
        Update a record

        Raises:
            ValidationError: Payload rejected by update_schema
            NotFoundError: Record not found
            ServiceError: Store rejected the update
        """
        data = self._validate(self.config.update_schema, payload)
        await self.find_one_by_id(id)
        try:
            entity = await self.repo.update(id, data)
        except SQLAlchemyError as e:
            logger.error(
                "Error on update %s: %s | id=%s data=%s", self.config.name, e, id, data
            )
            raise ServiceError(details={"reason": type(e).__name__})
        return entity  # type: ignore

    async def delete_one(self, id: Any) -> T:
        """
        Delete a record

        Raises:
            NotFoundError: Record not found
            ServiceError: Store rejected the delete (e.g., referenced by other rows)
        """
        await self.find_one_by_id(id)
        try:
            entity = await self.repo.delete(id)
        except SQLAlchemyError as e:
            logger.error("Error on delete %s: %s | id=%s", self.config.name, e, id)
            raise ServiceError(details={"reason": type(e).__name__})
        return entity  # type: ignore

    async def find_all(self, descriptor: QueryDescriptor) -> tuple[list[T], int]:
        """
        Search records

        Returns:
            tuple[list[T], int]: (page of records, total matching count)

        Raises:
            QueryGenerationError: The search could not be built or executed
        """
        return await self.repo.search(descriptor)

"""
Generic CRUD Controller

Builds the create / read / update / delete / list endpoints for one entity
from its EntityConfig. Subclass it to override id validation or the service
wiring; instantiate it directly for the default behaviour.
"""

import logging
from typing import Any, Awaitable, Optional

from fastapi import APIRouter, Body, Query, Request, status
from fastapi.responses import JSONResponse

from crud_scaffold.api.deps import DbSession
from crud_scaffold.common.authorization import AuthorizationDecision
from crud_scaffold.common.errors import (
    AppError,
    AuthorizationError,
    BadRequestError,
    QueryGenerationError,
)
from crud_scaffold.common.serializer import entities_to_list, entity_to_dict
from crud_scaffold.config import get_settings
from crud_scaffold.domain.base import FindResponse
from crud_scaffold.domain.entity import EntityConfig
from crud_scaffold.query.descriptor import QueryDescriptor, build_next_query
from crud_scaffold.query.executor import default_descriptor
from crud_scaffold.query.translator import (
    RECOGNIZED_KEYS,
    parse_search_criteria,
    translate_query_params,
)
from crud_scaffold.repositories.sqlalchemy.crud_repo import SQLAlchemyCrudRepository
from crud_scaffold.services.crud_service import CrudService

logger = logging.getLogger(__name__)


def error_response(error: AppError) -> JSONResponse:
    """Render an AppError; server-side details only leak in DEBUG mode"""
    include_details = get_settings().DEBUG or error.status_code < 500
    return JSONResponse(
        content=error.to_dict(include_details=include_details),
        status_code=error.status_code,
    )


class CrudController:
    """
    CRUD Controller

    Exposes, under `prefix`:
        POST   ""             create one record
        POST   "/create-many" create several records ({"records": [...]})
        GET    ""             paginated search -> {data, total, nextQuery}
        GET    "/{id}"        fetch one record
        PUT    "/{id}"        update one record
        DELETE "/{id}"        delete one record
    """

    def __init__(
        self,
        config: EntityConfig,
        *,
        prefix: str,
        tags: Optional[list[str]] = None,
    ):
        """
        Initialize Controller

        Args:
            config: Entity configuration
            prefix: Router prefix, e.g. "/customers"
            tags: OpenAPI tags, defaults to the entity name
        """
        self.config = config
        self.router = APIRouter(prefix=prefix, tags=tags or [config.name])
        self._register_routes()

    @property
    def page_size(self) -> int:
        return self.config.page_size or get_settings().DEFAULT_PAGE_SIZE

    def get_service(self, db) -> CrudService:
        """Build the service for this request's session"""
        repo = SQLAlchemyCrudRepository(db, self.config.model)
        return CrudService(repo, self.config)

    def validate_id(self, raw_id: str) -> Any:
        """
        Convert the path id to the entity id type

        Raises:
            BadRequestError: Id is not valid for this entity
        """
        if self.config.id_type is int:
            try:
                return int(raw_id)
            except ValueError:
                raise BadRequestError(message="Invalid Id", code="invalid_id")
        if not raw_id.strip():
            raise BadRequestError(message="Invalid Id", code="invalid_id")
        return raw_id

    async def authorize(self, check: Awaitable[AuthorizationDecision]) -> None:
        """
        Await an authorizer capability and enforce it

        Raises:
            AuthorizationError: Capability denied
        """
        decision = await check
        if not decision.allowed:
            details = {"reason": decision.reason} if decision.reason else None
            raise AuthorizationError(details=details)

    def translate(
        self, request: Request, query: Optional[str]
    ) -> tuple[dict[str, Any], QueryDescriptor]:
        """
        Build the descriptor from either the JSON "query" parameter or flat params

        Returns:
            tuple[dict, QueryDescriptor]: (client query as sent, descriptor)
        """
        if query is not None:
            return parse_search_criteria(query, default_take=self.page_size)
        flat = {
            key: value
            for key, value in request.query_params.items()
            if key in RECOGNIZED_KEYS
        }
        return flat, translate_query_params(flat, default_take=self.page_size)

    async def find_all(
        self, request: Request, db, query: Optional[str]
    ) -> dict[str, Any]:
        """
        Paginated search

        A search the store cannot run is logged and replaced by the default
        unfiltered query instead of failing the request.
        """
        await self.authorize(self.config.authorizer.can_list(request))
        service = self.get_service(db)
        client_query, descriptor = self.translate(request, query)
        try:
            records, total = await service.find_all(descriptor)
        except QueryGenerationError as e:
            logger.warning(
                "Incorrect query params for %s, bringing default query: %s | query=%s",
                self.config.name, e.details.get("reason"), client_query,
            )
            client_query, descriptor = {}, default_descriptor(self.page_size)
            records, total = await service.find_all(descriptor)

        response = FindResponse(
            data=entities_to_list(records),
            total=total,
            next_query=build_next_query(client_query, descriptor, total),
        )
        return response.model_dump(by_alias=True)

    def _register_routes(self) -> None:
        router = self.router
        config = self.config

        @router.post("/create-many", status_code=status.HTTP_201_CREATED)
        async def create_many(
            request: Request,
            db: DbSession,
            records: list[Any] = Body(..., embed=True),
        ):
            """Create several records; nothing is written if any record is invalid"""
            try:
                await self.authorize(config.authorizer.can_create(request))
                created = await self.get_service(db).create_many(records)
                return entities_to_list(created)
            except AppError as e:
                return error_response(e)

        @router.post("", status_code=status.HTTP_201_CREATED)
        async def create_one(
            request: Request,
            db: DbSession,
            payload: Any = Body(...),
        ):
            """Create a record"""
            try:
                await self.authorize(config.authorizer.can_create(request))
                created = await self.get_service(db).create_one(payload)
                return entity_to_dict(created)
            except AppError as e:
                return error_response(e)

        @router.get("")
        async def find_all(
            request: Request,
            db: DbSession,
            query: Optional[str] = Query(
                None, description='JSON search, e.g. {"where": {"name": {"like": "an"}}, "skip": 0, "take": 10}'
            ),
        ):
            """
            Search records

            Accepts either the JSON `query` parameter or the flat parameters
            where / relations / order / skip / take.
            """
            try:
                return await self.find_all(request, db, query)
            except AppError as e:
                return error_response(e)

        @router.get("/{record_id}")
        async def find_one_by_id(record_id: str, request: Request, db: DbSession):
            """Fetch a record"""
            try:
                id = self.validate_id(record_id)
                await self.authorize(config.authorizer.can_read(request, id))
                return entity_to_dict(await self.get_service(db).find_one_by_id(id))
            except AppError as e:
                return error_response(e)

        @router.put("/{record_id}")
        async def update_one(
            record_id: str,
            request: Request,
            db: DbSession,
            payload: Any = Body(...),
        ):
            """Update a record"""
            try:
                id = self.validate_id(record_id)
                await self.authorize(config.authorizer.can_update(request, id))
                updated = await self.get_service(db).update_one(id, payload)
                return entity_to_dict(updated)
            except AppError as e:
                return error_response(e)

        @router.delete("/{record_id}")
        async def delete_one(record_id: str, request: Request, db: DbSession):
            """Delete a record, returning it"""
            try:
                id = self.validate_id(record_id)
                await self.authorize(config.authorizer.can_delete(request, id))
                deleted = await self.get_service(db).delete_one(id)
                return entity_to_dict(deleted)
            except AppError as e:
                return error_response(e)

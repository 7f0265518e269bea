"""
Paginated Search Executor

Builds and runs the parameterized SELECT for a QueryDescriptor against an
explicit AsyncSession, returning the page of entities and the total number of
matching rows.
"""

import logging
from typing import Any, Optional

from sqlalchemy import asc, desc, func, inspect as sa_inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, selectinload
from sqlalchemy.sql import Select

from crud_scaffold.common.errors import QueryGenerationError
from crud_scaffold.config import get_settings
from crud_scaffold.query.descriptor import LikePredicate, QueryDescriptor

logger = logging.getLogger(__name__)

LIKE_ESCAPE = "\\"


def _unknown(kind: str, model: type, name: str) -> QueryGenerationError:
    return QueryGenerationError(
        details={"reason": f"unknown {kind} '{name}' on {model.__name__}"}
    )


def _column_attr(model: type, name: str):
    if name not in sa_inspect(model).column_attrs:
        raise _unknown("field", model, name)
    return getattr(model, name)


def _relationship_attr(model: type, name: str):
    if name not in sa_inspect(model).relationships:
        raise _unknown("relation", model, name)
    return getattr(model, name)


def _predicate_condition(column, predicate: Any):
    if isinstance(predicate, LikePredicate):
        return column.like(predicate.pattern(LIKE_ESCAPE), escape=LIKE_ESCAPE)
    if predicate is None:
        return column.is_(None)
    return column == predicate


def _filter_condition(model: type, path: str, predicate: Any):
    """
    Build the condition for one field path

    "name" compares a column of the entity; "customer.name" compares a column
    of a related entity through EXISTS, so the base rows are never duplicated.
    """
    head, _, rest = path.partition(".")
    if not rest:
        return _predicate_condition(_column_attr(model, head), predicate)
    attr = _relationship_attr(model, head)
    inner = _filter_condition(attr.property.mapper.class_, rest, predicate)
    return attr.any(inner) if attr.property.uselist else attr.has(inner)


def _relation_loader(model: type, path: str):
    loader = None
    current = model
    for name in path.split("."):
        attr = _relationship_attr(current, name)
        loader = selectinload(attr) if loader is None else loader.selectinload(attr)
        current = attr.property.mapper.class_
    return loader


def _primary_key_name(model: type) -> str:
    return sa_inspect(model).primary_key[0].key


class _OrderResolver:
    """Resolves sort paths, outer-joining each many-to-one relation once"""

    def __init__(self, model: type):
        self.model = model
        self.joins: dict[str, Any] = {}
        self.aliases: dict[str, Any] = {}

    def column(self, path: str):
        head, _, rest = path.partition(".")
        if not rest:
            return _column_attr(self.model, head)
        if "." in rest:
            raise QueryGenerationError(
                details={"reason": f"cannot order by nested path '{path}'"}
            )
        attr = _relationship_attr(self.model, head)
        if attr.property.uselist:
            raise QueryGenerationError(
                details={"reason": f"cannot order by collection relation '{head}'"}
            )
        alias = self.aliases.get(head)
        if alias is None:
            alias = aliased(attr.property.mapper.class_)
            self.aliases[head] = alias
            self.joins[head] = attr.of_type(alias)
        _column_attr(attr.property.mapper.class_, rest)
        return getattr(alias, rest)


def build_search_statements(
    model: type, descriptor: QueryDescriptor
) -> tuple[Select, Select]:
    """
    Build the page statement and the count statement

    Args:
        model: Mapped entity class
        descriptor: Search to run

    Returns:
        tuple[Select, Select]: (page statement, count statement)

    Raises:
        QueryGenerationError: A field or relation does not exist on the entity
    """
    conditions = [
        _filter_condition(model, path, predicate)
        for path, predicate in descriptor.filters.items()
    ]

    count_statement = select(func.count()).select_from(model)
    statement = select(model)
    if conditions:
        count_statement = count_statement.where(*conditions)
        statement = statement.where(*conditions)

    loaders = [_relation_loader(model, relation) for relation in descriptor.relations]
    if loaders:
        statement = statement.options(*loaders)

    order_by = descriptor.order_by or {_primary_key_name(model): "DESC"}
    resolver = _OrderResolver(model)
    clauses = []
    for path, direction in order_by.items():
        column = resolver.column(path)
        clauses.append(asc(column) if direction == "ASC" else desc(column))
    for onclause in resolver.joins.values():
        statement = statement.outerjoin(onclause)
    statement = statement.order_by(*clauses)

    if not descriptor.fetch_all:
        statement = statement.offset(descriptor.skip).limit(descriptor.take)

    return statement, count_statement


async def search_records(
    session: AsyncSession,
    model: type,
    descriptor: QueryDescriptor,
) -> tuple[list[Any], int]:
    """
    Run a search and return (entities, total)

    `total` ignores the pagination window. Any failure, whether while building
    the statement or inside the store, surfaces as QueryGenerationError.

    Args:
        session: Async database session
        model: Mapped entity class
        descriptor: Search to run

    Returns:
        tuple[list, int]: (entities of the requested page, total matching count)
    """
    try:
        statement, count_statement = build_search_statements(model, descriptor)
        total_result = await session.execute(count_statement)
        total = total_result.scalar() or 0
        result = await session.execute(statement)
        entities = list(result.scalars().all())
    except QueryGenerationError as e:
        logger.error(
            "Error generating query for %s: %s | query=%s",
            model.__name__, e.details.get("reason"), descriptor,
        )
        raise
    except SQLAlchemyError as e:
        logger.error(
            "Error generating query for %s: %s | query=%s",
            model.__name__, str(e), descriptor,
        )
        # a failed statement aborts the transaction on most backends
        await session.rollback()
        raise QueryGenerationError(details={"reason": type(e).__name__}) from e

    return entities, total


def default_descriptor(take: Optional[int] = None) -> QueryDescriptor:
    """Unfiltered first page, used when a requested search cannot run"""
    if take is None:
        take = get_settings().DEFAULT_PAGE_SIZE
    return QueryDescriptor(take=take)

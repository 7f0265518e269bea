"""
Record Serialization

Turns ORM entities into JSON-ready dictionaries. Only attributes that are
already loaded are read, so serializing never triggers a lazy load on an
async session.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import inspect as sa_inspect

from crud_scaffold.common.time import ensure_utc


def serialize_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: serialize_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    if isinstance(value, datetime):
        return ensure_utc(value).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    return value


def entity_to_dict(entity: Any, _seen: Optional[set[int]] = None) -> Optional[dict[str, Any]]:
    """
    Serialize an entity with its columns and every loaded relationship.

    Args:
        entity: Mapped instance

    Returns:
        dict: Column values plus nested loaded relations
    """
    if entity is None:
        return None
    # ancestors only, so a child shared by two branches is rendered in both
    seen = (set() if _seen is None else _seen) | {id(entity)}

    state = sa_inspect(entity)
    mapper = state.mapper
    unloaded = state.unloaded
    data: dict[str, Any] = {}
    for attr in mapper.column_attrs:
        if attr.key in unloaded:
            continue
        data[attr.key] = serialize_value(getattr(entity, attr.key))

    for rel in mapper.relationships:
        if rel.key in unloaded:
            continue
        value = getattr(entity, rel.key)
        if rel.uselist:
            data[rel.key] = [
                entity_to_dict(item, seen) for item in value if id(item) not in seen
            ]
        elif value is None or id(value) not in seen:
            data[rel.key] = entity_to_dict(value, seen)
    return data


def entities_to_list(entities: list[Any]) -> list[dict[str, Any]]:
    return [entity_to_dict(entity) for entity in entities]

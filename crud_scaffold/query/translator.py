"""
Query Translator

Converts an untrusted parameter bag (HTTP query string values or a decoded
JSON object) into a QueryDescriptor. Pure transformation: nothing here
touches the database.
"""

import json
import logging
import math
from typing import Any, Mapping, Optional

from crud_scaffold.common.errors import QueryParseError
from crud_scaffold.config import get_settings
from crud_scaffold.query.descriptor import (
    FILTER_KEYS,
    MAX_COUNT,
    LikePredicate,
    QueryDescriptor,
)

logger = logging.getLogger(__name__)

ORDER_KEYS = ("order", "orderBy")
RELATIONS_KEY = "relations"
SKIP_KEY = "skip"
TAKE_KEY = "take"
LIKE_OPERATOR = "like"

RECOGNIZED_KEYS = (*FILTER_KEYS, *ORDER_KEYS, RELATIONS_KEY, SKIP_KEY, TAKE_KEY)


def _decode_json(key: str, raw: Any) -> Any:
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise QueryParseError(
            message=f'Malformed JSON in "{key}" parameter',
            details={"parameter": key, "reason": e.msg},
        )


def parse_filters(raw: Any, key: str = "where") -> dict[str, Any]:
    """
    Parse the filter object

    Each top-level key is a field path. A value shaped exactly like
    {"like": "abc"} becomes a LikePredicate; any other value is an exact match.
    """
    decoded = _decode_json(key, raw)
    if not isinstance(decoded, dict):
        raise QueryParseError(
            message=f'"{key}" must be a JSON object',
            details={"parameter": key},
        )
    filters: dict[str, Any] = {}
    for field, value in decoded.items():
        if isinstance(value, dict) and list(value.keys()) == [LIKE_OPERATOR]:
            operand = value[LIKE_OPERATOR]
            if isinstance(operand, bool) or not isinstance(operand, (str, int, float)):
                raise QueryParseError(
                    message=f'"like" on "{field}" needs a string or number',
                    details={"parameter": key, "field": field},
                )
            filters[field] = LikePredicate(value=str(operand))
        else:
            filters[field] = value
    return filters


def parse_relations(raw: Any, legacy: Optional[bool] = None) -> list[str]:
    """
    Parse the relation list

    "[orders,address]" -> ["orders", "address"]. Only real bracket delimiters
    are stripped; with legacy parsing the first and last characters are dropped
    whatever they are.
    """
    if isinstance(raw, (list, tuple)):
        return [str(item) for item in raw]
    if not isinstance(raw, str):
        raise QueryParseError(
            message='"relations" must be a string like "[a,b]"',
            details={"parameter": RELATIONS_KEY},
        )

    if legacy is None:
        legacy = get_settings().QUERY_LEGACY_RELATIONS_PARSING
    if legacy:
        return raw[1:-1].split(",")

    text = raw.strip()
    if text.startswith("[") and text.endswith("]"):
        text = text[1:-1]
    return [part.strip() for part in text.split(",") if part.strip()]


def parse_order(raw: Any, key: str = "order") -> dict[str, str]:
    """Parse {"field": "ASC" | "DESC"}, keeping key order"""
    decoded = _decode_json(key, raw)
    if not isinstance(decoded, dict):
        raise QueryParseError(
            message=f'"{key}" must be a JSON object',
            details={"parameter": key},
        )
    order: dict[str, str] = {}
    for field, direction in decoded.items():
        normalized = str(direction).strip().upper()
        if normalized not in ("ASC", "DESC"):
            raise QueryParseError(
                message=f'Invalid sort direction for "{field}"',
                details={"parameter": key, "field": field, "direction": direction},
            )
        order[field] = normalized
    return order


def coerce_count(raw: Any, default: int) -> int:
    """
    Coerce skip/take to a non-negative integer

    Anything that is not a whole number in [0, MAX_COUNT] falls back to `default`.
    """
    if isinstance(raw, bool):
        return default
    if isinstance(raw, int):
        number = raw
    else:
        text = str(raw).strip()
        try:
            number = int(text)
        except ValueError:
            try:
                value = float(text)
            except ValueError:
                return default
            if not math.isfinite(value) or not value.is_integer():
                return default
            number = int(value)
    if number < 0 or number > MAX_COUNT:
        return default
    return number


def translate_query_params(
    params: Mapping[str, Any],
    *,
    default_take: Optional[int] = None,
    legacy_relations: Optional[bool] = None,
) -> QueryDescriptor:
    """
    Translate a parameter bag into a QueryDescriptor

    Args:
        params: Parameter name -> string or already decoded JSON value
        default_take: Page size used when "take" is missing or unusable
        legacy_relations: Override Settings.QUERY_LEGACY_RELATIONS_PARSING

    Returns:
        QueryDescriptor: Validated descriptor

    Raises:
        QueryParseError: A filter or order parameter is malformed
    """
    if default_take is None:
        default_take = get_settings().DEFAULT_PAGE_SIZE

    filters: dict[str, Any] = {}
    relations: list[str] = []
    order_by: dict[str, str] = {}
    skip = 0
    take = default_take

    for key, value in params.items():
        if key in FILTER_KEYS:
            filters = parse_filters(value, key)
        elif key == RELATIONS_KEY:
            relations = parse_relations(value, legacy_relations)
        elif key in ORDER_KEYS:
            order_by = parse_order(value, key)
        elif key == SKIP_KEY:
            skip = coerce_count(value, 0)
        elif key == TAKE_KEY:
            take = coerce_count(value, default_take)

    descriptor = QueryDescriptor(
        filters=filters,
        relations=relations,
        order_by=order_by,
        skip=skip,
        take=take,
    )
    logger.debug("Translated query params %s -> %s", dict(params), descriptor)
    return descriptor


def parse_search_criteria(
    raw: Optional[str],
    *,
    default_take: Optional[int] = None,
    legacy_relations: Optional[bool] = None,
) -> tuple[dict[str, Any], QueryDescriptor]:
    """
    Parse the single "query" parameter holding a JSON-encoded search

    Args:
        raw: JSON text, e.g. '{"where": {"name": {"like": "an"}}, "skip": 0, "take": 5}'

    Returns:
        tuple[dict, QueryDescriptor]: (decoded client query, descriptor)

    Raises:
        QueryParseError: JSON is malformed or not an object
    """
    if raw is None or not raw.strip():
        return {}, translate_query_params(
            {}, default_take=default_take, legacy_relations=legacy_relations
        )

    decoded = _decode_json("query", raw)
    if not isinstance(decoded, dict):
        raise QueryParseError(
            message='"query" must be a JSON object',
            details={"parameter": "query"},
        )
    descriptor = translate_query_params(
        decoded, default_take=default_take, legacy_relations=legacy_relations
    )
    return decoded, descriptor

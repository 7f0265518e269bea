"""
Query Descriptor Models

Defines the validated representation of a search request and the next-page
computation derived from a result page.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Direction = Literal["ASC", "DESC"]

# Keys under which a client may send the filter object
FILTER_KEYS = ("where", "filters")

# Largest skip/take the store accepts as a signed 64-bit integer
MAX_COUNT = 2**63 - 1


class LikePredicate(BaseModel):
    """Partial text match: the field contains `value` anywhere"""

    value: str = Field(..., description="Substring to look for")

    model_config = ConfigDict(frozen=True)

    def pattern(self, escape: str = "\\") -> str:
        """
        Build the LIKE pattern wrapped in wildcards

        Wildcard characters inside the substring are escaped so they match literally.
        """
        escaped = (
            self.value
            .replace(escape, escape + escape)
            .replace("%", escape + "%")
            .replace("_", escape + "_")
        )
        return f"%{escaped}%"


class QueryDescriptor(BaseModel):
    """
    Query Descriptor

    Fields cannot be reassigned once built. The executor and the next-page
    computation only read the containers.
    """

    # Field path -> exact value or LikePredicate
    filters: dict[str, Any] = Field(default_factory=dict, description="Filter predicates")
    # Relations eager-loaded with the base entity, in order
    relations: list[str] = Field(default_factory=list, description="Relations to load")
    # Field path -> direction; empty means "primary key DESC" at execution time
    order_by: dict[str, Direction] = Field(default_factory=dict, description="Sort keys")
    skip: int = Field(0, ge=0, le=MAX_COUNT, description="Offset into the result set")
    take: int = Field(10, ge=0, le=MAX_COUNT, description="Page size")

    model_config = ConfigDict(frozen=True)

    @property
    def fetch_all(self) -> bool:
        """skip == take == 0 disables the pagination window"""
        return self.skip == 0 and self.take == 0


def build_next_query(
    client_query: dict[str, Any],
    descriptor: QueryDescriptor,
    total: int,
) -> Optional[dict[str, Any]]:
    """
    Compute the query for the page following the one just served

    Args:
        client_query: Query as the client sent it (decoded JSON or flat params)
        descriptor: Descriptor that produced the current page
        total: Total number of matching records

    Returns:
        dict | None: Next query, or None when the current page is the last one
    """
    # take == 0 either returned everything (fetch_all) or cannot advance
    if descriptor.take == 0:
        return None

    skip, take = descriptor.skip, descriptor.take
    remaining = total - (skip + take)
    if remaining <= 0:
        return None

    next_query = dict(client_query)
    next_query["skip"] = skip + take
    next_query["take"] = take if remaining >= take else remaining
    if not descriptor.filters:
        for key in FILTER_KEYS:
            next_query.pop(key, None)
    return next_query

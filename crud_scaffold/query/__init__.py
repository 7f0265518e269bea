"""
Query Module Initialization

Query translation (untrusted params -> QueryDescriptor) and paginated search execution.
"""

from crud_scaffold.query.descriptor import (
    LikePredicate,
    QueryDescriptor,
    build_next_query,
)
from crud_scaffold.query.executor import (
    build_search_statements,
    default_descriptor,
    search_records,
)
from crud_scaffold.query.translator import (
    parse_relations,
    parse_search_criteria,
    translate_query_params,
)

__all__ = [
    "LikePredicate",
    "QueryDescriptor",
    "build_next_query",
    "build_search_statements",
    "default_descriptor",
    "search_records",
    "parse_relations",
    "parse_search_criteria",
    "translate_query_params",
]

"""
Domain Model Module Initialization
"""

from crud_scaffold.domain.base import (
    BaseDTO,
    FindResponse,
    READ_ONLY_FIELDS,
)
from crud_scaffold.domain.entity import EntityConfig

__all__ = [
    "BaseDTO",
    "FindResponse",
    "READ_ONLY_FIELDS",
    "EntityConfig",
]

"""
Entity Configuration

Binds a mapped entity to its validation schemas, id type and authorizer.
Resolved once, when the CRUD controller is built.
"""

from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import inspect as sa_inspect

from crud_scaffold.common.authorization import AllowAllAuthorizer, CrudAuthorizer
from crud_scaffold.domain.base import BaseDTO


@dataclass(frozen=True)
class EntityConfig:
    """
    Per-entity CRUD configuration

    Attributes:
        model: SQLAlchemy mapped class
        create_schema: Pydantic model validating create payloads
        update_schema: Pydantic model validating update payloads
        id_type: int for numeric primary keys, str for opaque ids
        authorizer: Capability checks run before each operation
        page_size: Default "take" for this entity; falls back to Settings.DEFAULT_PAGE_SIZE
    """

    model: type
    create_schema: type[BaseModel] = BaseDTO
    update_schema: type[BaseModel] = BaseDTO
    id_type: type = int
    authorizer: CrudAuthorizer = field(default_factory=AllowAllAuthorizer)
    page_size: Optional[int] = None

    def __post_init__(self):
        mapper = sa_inspect(self.model, raiseerr=False)
        if mapper is None:
            raise TypeError(f"{self.model!r} is not a mapped SQLAlchemy class")
        if self.id_type not in (int, str):
            raise TypeError("id_type must be int or str")

    @property
    def name(self) -> str:
        return self.model.__name__

    @property
    def column_names(self) -> set[str]:
        return {attr.key for attr in sa_inspect(self.model).column_attrs}

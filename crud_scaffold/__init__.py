"""
CRUD Scaffold

Reusable base controller + base service for exposing SQLAlchemy entities as
paginated, filterable CRUD endpoints.
"""

from crud_scaffold.api.crud import CrudController
from crud_scaffold.common.authorization import (
    AllowAllAuthorizer,
    AuthorizationDecision,
    CrudAuthorizer,
    ReadOnlyAuthorizer,
)
from crud_scaffold.domain.base import BaseDTO
from crud_scaffold.domain.entity import EntityConfig
from crud_scaffold.main import create_app
from crud_scaffold.services.crud_service import CrudService

__all__ = [
    "CrudController",
    "AllowAllAuthorizer",
    "AuthorizationDecision",
    "CrudAuthorizer",
    "ReadOnlyAuthorizer",
    "BaseDTO",
    "EntityConfig",
    "create_app",
    "CrudService",
]

"""
API Router Module Initialization
"""

from crud_scaffold.api.crud import CrudController, error_response
from crud_scaffold.api.deps import DbSession, get_db

__all__ = [
    "CrudController",
    "error_response",
    "DbSession",
    "get_db",
]

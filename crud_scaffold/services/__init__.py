"""
Service Layer Module Initialization
"""

from crud_scaffold.services.crud_service import CrudService

__all__ = [
    "CrudService",
]

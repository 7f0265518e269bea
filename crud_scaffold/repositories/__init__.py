"""
Data Access Layer Module Initialization
"""

from crud_scaffold.repositories.base import CrudRepository

__all__ = [
    "CrudRepository",
]

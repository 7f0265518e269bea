"""
Database Module Initialization
"""

from crud_scaffold.db.session import get_db, init_db, AsyncSessionLocal
from crud_scaffold.db.models import Base, EntityMixin

__all__ = [
    "get_db",
    "init_db",
    "AsyncSessionLocal",
    "Base",
    "EntityMixin",
]

"""Persistent store: async database access.

Repositories live in ``esgchampions.core.storage.repositories``; they are not
re-exported here because the ORM models import ``Base`` from this package.
"""
from .database import Base, Database, get_db, init_db

__all__ = [
    "Base",
    "Database",
    "get_db",
    "init_db",
]

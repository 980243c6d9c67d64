"""Persistence layer for Cacheside.

This module provides:
- Async PostgreSQL engine and session factory
- SQLAlchemy ORM table for customers
- Repository implementing the record store contract
"""

from cacheside.persistence.db import close_db, get_engine, get_session, init_db
from cacheside.persistence.repositories import CustomerRepository
from cacheside.persistence.tables import Base, CustomerTable

__all__ = [
    # DB
    "get_engine",
    "get_session",
    "init_db",
    "close_db",
    # Tables
    "Base",
    "CustomerTable",
    # Repositories
    "CustomerRepository",
]

"""PostgreSQL database layer.

This module provides:
- Connection pool lifecycle management
- Query composition and pagination
- Repository classes for data access
"""

from recipe_portal.database.connection import (
    call_procedure,
    check_database_health,
    close_database_pool,
    database_lifespan,
    get_database_pool,
    init_database_pool,
    transaction,
    translate_storage_errors,
)
from recipe_portal.database.query import Page, Pagination, QueryBuilder


__all__ = [
    "Page",
    "Pagination",
    "QueryBuilder",
    "call_procedure",
    "check_database_health",
    "close_database_pool",
    "database_lifespan",
    "get_database_pool",
    "init_database_pool",
    "transaction",
    "translate_storage_errors",
]

"""Database introspection module for autorepo.

This module provides the dialect-agnostic introspection contract with
implementations for SQLite, PostgreSQL and DuckDB.
"""

from .models import (
    AutoIncrementInfo,
    ColumnInfo,
    ForeignKeyInfo,
    IndexInfo,
    RelationshipInfo,
    SchemaInfo,
    TableInfo,
    TableRef,
    ViewInfo,
    MANY_TO_MANY,
    MANY_TO_ONE,
    ONE_TO_MANY,
)
from .base import DatabaseIntrospector
from .executor import DBAPIExecutor, ExecutionResult, StatementExecutor, create_executor
from .type_mappers import (
    TypeMapper,
    SQLiteTypeMapper,
    PostgresTypeMapper,
    DuckDBTypeMapper,
    map_column_type,
)
from .sqlite import SQLiteIntrospector
from .postgres import PostgresIntrospector
from .duckdb import DuckDBIntrospector

__all__ = [
    # Data models
    "AutoIncrementInfo",
    "ColumnInfo",
    "ForeignKeyInfo",
    "IndexInfo",
    "RelationshipInfo",
    "SchemaInfo",
    "TableInfo",
    "TableRef",
    "ViewInfo",
    "MANY_TO_MANY",
    "MANY_TO_ONE",
    "ONE_TO_MANY",
    # Execution
    "StatementExecutor",
    "DBAPIExecutor",
    "ExecutionResult",
    "create_executor",
    # Base classes
    "DatabaseIntrospector",
    # Type mappers
    "TypeMapper",
    "SQLiteTypeMapper",
    "PostgresTypeMapper",
    "DuckDBTypeMapper",
    "map_column_type",
    # Introspectors
    "SQLiteIntrospector",
    "PostgresIntrospector",
    "DuckDBIntrospector",
]

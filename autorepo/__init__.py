"""autorepo - schema discovery and relationship-aware repositories."""

from .config import Settings
from .database import (
    ColumnInfo,
    ForeignKeyInfo,
    IndexInfo,
    RelationshipInfo,
    SchemaInfo,
    TableInfo,
    ViewInfo,
    DBAPIExecutor,
    StatementExecutor,
    create_executor,
    map_column_type,
)
from .engine import Engine
from .errors import (
    AutoRepoError,
    ColumnNotFoundError,
    ConnectionError,
    DatabaseError,
    EntityNotFoundError,
    NotInitializedError,
    RelationshipNotFoundError,
    TableNotFoundError,
    UnsupportedDialectError,
    ValidationError,
)
from .performance import AnalyzerOptions, QueryAnalyzer
from .repository import Repository

__version__ = "0.1.0"

__all__ = [
    "Engine",
    "Settings",
    "Repository",
    "QueryAnalyzer",
    "AnalyzerOptions",
    "StatementExecutor",
    "DBAPIExecutor",
    "create_executor",
    "map_column_type",
    "ColumnInfo",
    "ForeignKeyInfo",
    "IndexInfo",
    "RelationshipInfo",
    "SchemaInfo",
    "TableInfo",
    "ViewInfo",
    "AutoRepoError",
    "ColumnNotFoundError",
    "ConnectionError",
    "DatabaseError",
    "EntityNotFoundError",
    "NotInitializedError",
    "RelationshipNotFoundError",
    "TableNotFoundError",
    "UnsupportedDialectError",
    "ValidationError",
]

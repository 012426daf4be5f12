"""Abstract base class for database introspection."""

from abc import ABC, abstractmethod
from typing import List, Optional

from .executor import StatementExecutor
from .models import AutoIncrementInfo, ColumnInfo, ForeignKeyInfo, IndexInfo, TableRef, ViewInfo
from .type_mappers import TypeMapper


class DatabaseIntrospector(ABC):
    """Abstract base class for database introspection.

    Subclasses issue dialect-specific catalog queries through the shared
    ``StatementExecutor``. Every method is independently fallible; callers
    decide how to degrade.
    """

    dialect: str = "generic"

    # Column that identifies rows of a table without a declared primary key
    IMPLICIT_ROW_IDENTIFIER: Optional[str] = None

    # Override in subclasses to exclude system schemas
    EXCLUDED_SCHEMAS: set = {'information_schema', 'pg_catalog'}

    type_mapper_class = TypeMapper

    def __init__(self, executor: StatementExecutor):
        self.executor = executor

    async def ping(self) -> None:
        """Run a trivial query; raises if the database is unreachable."""
        await self.executor.fetch_all("SELECT 1")

    @abstractmethod
    async def list_tables(self) -> List[TableRef]:
        """List user tables and views.

        Returns:
            List of TableRef objects (kind 'table' or 'view')
        """
        pass

    @abstractmethod
    async def list_columns(self, table: str) -> List[ColumnInfo]:
        """Get all columns for a table, in declaration order.

        Columns the database fills in on insert come back with
        ``is_auto_increment`` set.
        """
        pass

    @abstractmethod
    async def list_indexes(self, table: str) -> List[IndexInfo]:
        """Get all indexes for a table."""
        pass

    @abstractmethod
    async def list_foreign_keys(self, table: str) -> List[ForeignKeyInfo]:
        """Get foreign keys for a table.

        Composite foreign keys are reported as one entry per column pair.
        """
        pass

    async def list_views(self) -> List[ViewInfo]:
        """Get views with their definitions. Dialects without support return []."""
        return []

    def resolve_auto_increment(self, columns: List[ColumnInfo]) -> AutoIncrementInfo:
        """Decide how new rows of a table are keyed.

        The first column flagged auto-increment wins. Failing that, a table
        with no declared primary key falls back to the dialect's implicit row
        identifier when it has one.
        """
        for column in columns:
            if column.is_auto_increment:
                return AutoIncrementInfo(column=column.name, kind=column.auto_increment_type)

        row_id = self.IMPLICIT_ROW_IDENTIFIER
        if row_id and columns and not any(c.is_primary_key for c in columns):
            return AutoIncrementInfo(column=row_id, kind="rowid", row_identifier=row_id)

        return AutoIncrementInfo()

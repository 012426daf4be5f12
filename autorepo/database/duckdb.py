"""DuckDB database introspector."""

import logging
import re
from typing import List

from .base import DatabaseIntrospector
from .models import ColumnInfo, ForeignKeyInfo, IndexInfo, TableRef, ViewInfo
from .type_mappers import DuckDBTypeMapper

logger = logging.getLogger(__name__)

_INDEX_COLUMNS_RE = re.compile(r"\(([^)]*)\)")


def _as_list(value) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


class DuckDBIntrospector(DatabaseIntrospector):
    """Client for introspecting a DuckDB schema.

    Constraints come from ``duckdb_constraints()`` and indexes from
    ``duckdb_indexes()``; everything else from ``information_schema``.
    """

    dialect = "duckdb"
    type_mapper_class = DuckDBTypeMapper

    def __init__(self, executor, schema: str = "main"):
        super().__init__(executor)
        self.schema = schema

    async def list_tables(self) -> List[TableRef]:
        rows = await self.executor.fetch_all(
            """
            SELECT table_name, table_type
            FROM information_schema.tables
            WHERE table_schema = ?
              AND table_type IN ('BASE TABLE', 'VIEW')
            ORDER BY table_name
            """,
            (self.schema,),
        )
        return [
            TableRef(
                name=row["table_name"],
                schema=self.schema,
                kind="view" if row["table_type"] == "VIEW" else "table",
            )
            for row in rows
        ]

    async def _constraints(self, table: str, constraint_type: str) -> List[dict]:
        return await self.executor.fetch_all(
            """
            SELECT *
            FROM duckdb_constraints()
            WHERE schema_name = ?
              AND table_name = ?
              AND constraint_type = ?
            """,
            (self.schema, table, constraint_type),
        )

    async def list_columns(self, table: str) -> List[ColumnInfo]:
        rows = await self.executor.fetch_all(
            """
            SELECT column_name, data_type, is_nullable, column_default,
                   character_maximum_length, numeric_precision, numeric_scale
            FROM information_schema.columns
            WHERE table_schema = ? AND table_name = ?
            ORDER BY ordinal_position
            """,
            (self.schema, table),
        )
        pk: List[str] = []
        for row in await self._constraints(table, "PRIMARY KEY"):
            pk = _as_list(row["constraint_column_names"])

        columns = []
        for row in rows:
            name = row["column_name"]
            default = row["column_default"]
            is_sequence = isinstance(default, str) and default.lower().startswith("nextval(")
            columns.append(ColumnInfo(
                name=name,
                data_type=row["data_type"],
                is_nullable=row["is_nullable"] == "YES",
                default_value=default,
                is_primary_key=name in pk,
                primary_key_ordinal=pk.index(name) + 1 if name in pk else 0,
                is_auto_increment=is_sequence,
                auto_increment_type="sequence" if is_sequence else None,
                max_length=row["character_maximum_length"],
                precision=row["numeric_precision"],
                scale=row["numeric_scale"],
            ))
        return columns

    async def list_indexes(self, table: str) -> List[IndexInfo]:
        indexes = []
        for row in await self._constraints(table, "PRIMARY KEY"):
            indexes.append(IndexInfo(
                name=f"{table}_pkey",
                columns=_as_list(row["constraint_column_names"]),
                unique=True,
                origin="pk",
            ))
        for i, row in enumerate(await self._constraints(table, "UNIQUE")):
            indexes.append(IndexInfo(
                name=f"{table}_unique_{i}",
                columns=_as_list(row["constraint_column_names"]),
                unique=True,
                origin="u",
            ))

        rows = await self.executor.fetch_all(
            """
            SELECT index_name, is_unique, sql
            FROM duckdb_indexes()
            WHERE schema_name = ? AND table_name = ?
            ORDER BY index_name
            """,
            (self.schema, table),
        )
        for row in rows:
            match = _INDEX_COLUMNS_RE.search(row["sql"] or "")
            columns = [c.strip().strip('"') for c in match.group(1).split(",")] if match else []
            indexes.append(IndexInfo(
                name=row["index_name"],
                columns=[c for c in columns if c],
                unique=bool(row["is_unique"]),
                origin="c",
            ))
        return indexes

    async def list_foreign_keys(self, table: str) -> List[ForeignKeyInfo]:
        foreign_keys = []
        for row in await self._constraints(table, "FOREIGN KEY"):
            columns = _as_list(row["constraint_column_names"])
            referenced = _as_list(row.get("referenced_column_names"))
            referenced_table = row.get("referenced_table")
            if not referenced_table or len(referenced) != len(columns):
                logger.warning("Skipping unreadable foreign key on %s: %s", table, row.get("constraint_text"))
                continue
            for column, referenced_column in zip(columns, referenced):
                foreign_keys.append(ForeignKeyInfo(
                    name=f"fk_{table}_{column}",
                    column=column,
                    referenced_table=referenced_table,
                    referenced_column=referenced_column,
                ))
        return foreign_keys

    async def list_views(self) -> List[ViewInfo]:
        rows = await self.executor.fetch_all(
            """
            SELECT view_name, sql
            FROM duckdb_views()
            WHERE schema_name = ? AND NOT internal
            ORDER BY view_name
            """,
            (self.schema,),
        )
        views = []
        for row in rows:
            views.append(ViewInfo(
                name=row["view_name"],
                schema=self.schema,
                definition=row["sql"],
                columns=await self.list_columns(row["view_name"]),
            ))
        return views

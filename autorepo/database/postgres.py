"""PostgreSQL database introspector.

Covers the ``public`` schema (or the one passed in) through
``information_schema`` and ``pg_index``. Parameters use the ``%s`` style of
psycopg2.
"""

import logging
from typing import List

from .base import DatabaseIntrospector
from .models import ColumnInfo, ForeignKeyInfo, IndexInfo, TableRef, ViewInfo
from .type_mappers import PostgresTypeMapper

logger = logging.getLogger(__name__)


class PostgresIntrospector(DatabaseIntrospector):
    """Client for introspecting a PostgreSQL schema."""

    dialect = "postgresql"
    type_mapper_class = PostgresTypeMapper

    def __init__(self, executor, schema: str = "public"):
        super().__init__(executor)
        self.schema = schema

    async def list_tables(self) -> List[TableRef]:
        rows = await self.executor.fetch_all(
            """
            SELECT table_name, table_type
            FROM information_schema.tables
            WHERE table_schema = %s
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

    async def _primary_key(self, table: str) -> List[str]:
        rows = await self.executor.fetch_all(
            """
            SELECT kcu.column_name
            FROM information_schema.table_constraints tc
            JOIN information_schema.key_column_usage kcu
              ON tc.constraint_name = kcu.constraint_name
             AND tc.table_schema = kcu.table_schema
            WHERE tc.constraint_type = 'PRIMARY KEY'
              AND tc.table_schema = %s
              AND tc.table_name = %s
            ORDER BY kcu.ordinal_position
            """,
            (self.schema, table),
        )
        return [row["column_name"] for row in rows]

    async def list_columns(self, table: str) -> List[ColumnInfo]:
        rows = await self.executor.fetch_all(
            """
            SELECT column_name, data_type, is_nullable, column_default,
                   character_maximum_length, numeric_precision, numeric_scale,
                   is_identity
            FROM information_schema.columns
            WHERE table_schema = %s AND table_name = %s
            ORDER BY ordinal_position
            """,
            (self.schema, table),
        )
        pk = await self._primary_key(table)

        columns = []
        for row in rows:
            default = row["column_default"]
            auto_type = None
            if row.get("is_identity") == "YES":
                auto_type = "identity"
            elif isinstance(default, str) and default.startswith("nextval("):
                auto_type = "sequence"

            columns.append(ColumnInfo(
                name=row["column_name"],
                data_type=row["data_type"],
                is_nullable=row["is_nullable"] == "YES",
                default_value=default,
                is_primary_key=row["column_name"] in pk,
                primary_key_ordinal=pk.index(row["column_name"]) + 1 if row["column_name"] in pk else 0,
                is_auto_increment=auto_type is not None,
                auto_increment_type=auto_type,
                max_length=row["character_maximum_length"],
                precision=row["numeric_precision"],
                scale=row["numeric_scale"],
            ))
        return columns

    async def list_indexes(self, table: str) -> List[IndexInfo]:
        rows = await self.executor.fetch_all(
            """
            SELECT ic.relname AS name,
                   i.indisunique AS is_unique,
                   i.indisprimary AS is_primary,
                   array_agg(a.attname ORDER BY array_position(i.indkey, a.attnum)) AS columns
            FROM pg_index i
            JOIN pg_class c ON i.indrelid = c.oid
            JOIN pg_class ic ON i.indexrelid = ic.oid
            JOIN pg_namespace ns ON c.relnamespace = ns.oid
            JOIN pg_attribute a ON a.attrelid = c.oid AND a.attnum = ANY(i.indkey)
            WHERE c.relname = %s AND ns.nspname = %s
            GROUP BY ic.relname, i.indisunique, i.indisprimary
            ORDER BY ic.relname
            """,
            (table, self.schema),
        )
        return [
            IndexInfo(
                name=row["name"],
                columns=list(row["columns"] or []),
                unique=bool(row["is_unique"]),
                origin="pk" if row["is_primary"] else ("u" if row["is_unique"] else "c"),
            )
            for row in rows
        ]

    async def list_foreign_keys(self, table: str) -> List[ForeignKeyInfo]:
        rows = await self.executor.fetch_all(
            """
            SELECT tc.constraint_name,
                   kcu.column_name,
                   ccu.table_name AS referenced_table,
                   ccu.column_name AS referenced_column,
                   rc.delete_rule,
                   rc.update_rule
            FROM information_schema.table_constraints tc
            JOIN information_schema.key_column_usage kcu
              ON tc.constraint_name = kcu.constraint_name
             AND tc.table_schema = kcu.table_schema
            JOIN information_schema.constraint_column_usage ccu
              ON ccu.constraint_name = tc.constraint_name
             AND ccu.constraint_schema = tc.table_schema
            JOIN information_schema.referential_constraints rc
              ON rc.constraint_name = tc.constraint_name
             AND rc.constraint_schema = tc.table_schema
            WHERE tc.constraint_type = 'FOREIGN KEY'
              AND tc.table_schema = %s
              AND tc.table_name = %s
            ORDER BY tc.constraint_name, kcu.ordinal_position
            """,
            (self.schema, table),
        )
        return [
            ForeignKeyInfo(
                name=row["constraint_name"],
                column=row["column_name"],
                referenced_table=row["referenced_table"],
                referenced_column=row["referenced_column"],
                on_delete=row["delete_rule"],
                on_update=row["update_rule"],
            )
            for row in rows
        ]

    async def list_views(self) -> List[ViewInfo]:
        rows = await self.executor.fetch_all(
            """
            SELECT table_name, view_definition
            FROM information_schema.views
            WHERE table_schema = %s
            ORDER BY table_name
            """,
            (self.schema,),
        )
        views = []
        for row in rows:
            views.append(ViewInfo(
                name=row["table_name"],
                schema=self.schema,
                definition=row["view_definition"],
                columns=await self.list_columns(row["table_name"]),
            ))
        return views

"""SQLite database introspector."""

import logging
import re
from typing import Dict, List, Optional, Tuple

from .base import DatabaseIntrospector
from .models import ColumnInfo, ForeignKeyInfo, IndexInfo, TableRef, ViewInfo
from .type_mappers import SQLiteTypeMapper

logger = logging.getLogger(__name__)

_AUTOINCREMENT_RE = re.compile(r"\bAUTOINCREMENT\b", re.IGNORECASE)
_WITHOUT_ROWID_RE = re.compile(r"\bWITHOUT\s+ROWID\b", re.IGNORECASE)
_TYPE_ARGS_RE = re.compile(r"^\s*([A-Za-z_ ]+?)\s*\(\s*(\d+)\s*(?:,\s*(\d+)\s*)?\)")

_LENGTH_TYPES = ("CHAR", "TEXT", "CLOB", "STRING")
_NUMERIC_TYPES = ("DECIMAL", "NUMERIC", "NUMBER")


def parse_type_arguments(data_type: str) -> Tuple[Optional[int], Optional[int], Optional[int]]:
    """Pull ``(max_length, precision, scale)`` out of a declared type.

    ``VARCHAR(255)`` -> (255, None, None), ``DECIMAL(10,2)`` -> (None, 10, 2).
    """
    match = _TYPE_ARGS_RE.match(data_type or "")
    if not match:
        return None, None, None

    base = match.group(1).upper()
    first = int(match.group(2))
    second = int(match.group(3)) if match.group(3) is not None else None

    if any(t in base for t in _LENGTH_TYPES):
        return first, None, None
    if any(t in base for t in _NUMERIC_TYPES):
        return None, first, second if second is not None else 0
    return None, None, None


class SQLiteIntrospector(DatabaseIntrospector):
    """Introspect a SQLite database via ``sqlite_master`` and table-valued pragmas."""

    dialect = "sqlite"
    IMPLICIT_ROW_IDENTIFIER = "rowid"
    EXCLUDED_SCHEMAS = set()
    type_mapper_class = SQLiteTypeMapper

    async def _table_sql(self, table: str) -> Optional[str]:
        rows = await self.executor.fetch_all(
            "SELECT sql FROM sqlite_master WHERE name = ? AND type IN ('table', 'view')",
            (table,),
        )
        return rows[0]["sql"] if rows else None

    async def list_tables(self) -> List[TableRef]:
        rows = await self.executor.fetch_all(
            "SELECT name, type FROM sqlite_master "
            "WHERE type IN ('table', 'view') AND name NOT LIKE 'sqlite_%' "
            "ORDER BY name"
        )
        return [TableRef(name=row["name"], kind=row["type"]) for row in rows]

    async def list_columns(self, table: str) -> List[ColumnInfo]:
        rows = await self.executor.fetch_all(
            "SELECT * FROM pragma_table_info(?) ORDER BY cid",
            (table,),
        )
        columns = []
        for row in rows:
            data_type = row["type"] or ""
            max_length, precision, scale = parse_type_arguments(data_type)
            columns.append(ColumnInfo(
                name=row["name"],
                data_type=data_type,
                is_nullable=not row["notnull"] and not row["pk"],
                default_value=row["dflt_value"],
                is_primary_key=row["pk"] > 0,
                primary_key_ordinal=row["pk"],
                max_length=max_length,
                precision=precision,
                scale=scale,
            ))

        if columns:
            self.mark_auto_increment(columns, await self._table_sql(table))
        return columns

    @staticmethod
    def mark_auto_increment(columns: List[ColumnInfo], table_sql: Optional[str]) -> None:
        """Flag the rowid-backed key column, if any.

        A single-column primary key declared exactly ``INTEGER`` aliases the
        rowid. With the ``AUTOINCREMENT`` keyword the kind is
        ``autoincrement``, otherwise ``rowid``. ``WITHOUT ROWID`` tables have
        no alias. Tables with no primary key at all are handled by
        ``resolve_auto_increment``.
        """
        if not table_sql or _WITHOUT_ROWID_RE.search(table_sql):
            return

        pk_columns = [c for c in columns if c.is_primary_key]
        if len(pk_columns) != 1:
            return

        pk = pk_columns[0]
        if pk.data_type.strip().upper() != "INTEGER":
            return

        pk.is_auto_increment = True
        pk.auto_increment_type = "autoincrement" if _AUTOINCREMENT_RE.search(table_sql) else "rowid"

    async def list_indexes(self, table: str) -> List[IndexInfo]:
        index_rows = await self.executor.fetch_all(
            "SELECT * FROM pragma_index_list(?) ORDER BY seq",
            (table,),
        )
        indexes = []
        for row in index_rows:
            column_rows = await self.executor.fetch_all(
                "SELECT * FROM pragma_index_info(?) ORDER BY seqno",
                (row["name"],),
            )
            indexes.append(IndexInfo(
                name=row["name"],
                columns=[c["name"] for c in column_rows if c["name"] is not None],
                unique=bool(row["unique"]),
                origin=row.get("origin"),
            ))
        return indexes

    async def _primary_key_of(self, table: str) -> List[str]:
        rows = await self.executor.fetch_all(
            "SELECT name, pk FROM pragma_table_info(?) WHERE pk > 0 ORDER BY pk",
            (table,),
        )
        return [row["name"] for row in rows]

    async def list_foreign_keys(self, table: str) -> List[ForeignKeyInfo]:
        rows = await self.executor.fetch_all(
            "SELECT * FROM pragma_foreign_key_list(?) ORDER BY id, seq",
            (table,),
        )
        referenced_pks: Dict[str, List[str]] = {}
        foreign_keys = []
        for row in rows:
            referenced_table = row["table"]
            referenced_column = row["to"]
            if referenced_column is None:
                # REFERENCES parent without a column list targets the parent's primary key
                if referenced_table not in referenced_pks:
                    referenced_pks[referenced_table] = await self._primary_key_of(referenced_table)
                pk = referenced_pks[referenced_table]
                if row["seq"] >= len(pk):
                    logger.warning(
                        "Foreign key %s.%s references %s without a matching primary key column",
                        table, row["from"], referenced_table,
                    )
                    continue
                referenced_column = pk[row["seq"]]

            foreign_keys.append(ForeignKeyInfo(
                name=f"fk_{table}_{row['from']}",
                column=row["from"],
                referenced_table=referenced_table,
                referenced_column=referenced_column,
                on_delete=row["on_delete"],
                on_update=row["on_update"],
            ))
        return foreign_keys

    async def list_views(self) -> List[ViewInfo]:
        rows = await self.executor.fetch_all(
            "SELECT name, sql FROM sqlite_master WHERE type = 'view' ORDER BY name"
        )
        views = []
        for row in rows:
            views.append(ViewInfo(
                name=row["name"],
                definition=row["sql"],
                columns=await self.list_columns(row["name"]),
            ))
        return views

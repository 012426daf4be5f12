"""Table discovery: turns per-table catalog facets into TableInfo objects."""

import asyncio
import logging
from typing import Iterable, List, Optional

from ..database.base import DatabaseIntrospector
from ..database.models import ColumnInfo, TableInfo, TableRef
from ..database.type_mappers import TypeMapper

logger = logging.getLogger(__name__)


class TableDiscoveryService:
    """Discover tables with their columns, indexes and foreign keys.

    Every facet query for every table is issued concurrently. A failing
    facet is logged and replaced with empty metadata; its siblings still
    complete.
    """

    FACETS = ("columns", "indexes", "foreign_keys")

    def __init__(
        self,
        introspector: DatabaseIntrospector,
        type_mapper: Optional[TypeMapper] = None,
        exclude_tables: Optional[Iterable[str]] = None,
    ):
        self.introspector = introspector
        self.type_mapper = type_mapper or introspector.type_mapper_class()
        self.exclude_tables = set(exclude_tables or [])

    async def discover_tables(self) -> List[TableInfo]:
        """Discover every user table that is not excluded."""
        refs = await self.introspector.list_tables()
        refs = [r for r in refs if r.kind == "table" and r.name not in self.exclude_tables]

        tables = await asyncio.gather(*(self.discover_table(ref) for ref in refs))
        logger.info("Discovered %d tables", len(tables))
        return list(tables)

    async def discover_table(self, ref: TableRef) -> TableInfo:
        """Build one TableInfo from its three facets."""
        results = await asyncio.gather(
            self.introspector.list_columns(ref.name),
            self.introspector.list_indexes(ref.name),
            self.introspector.list_foreign_keys(ref.name),
            return_exceptions=True,
        )

        facets = []
        for facet, result in zip(self.FACETS, results):
            if isinstance(result, Exception):
                logger.warning("Could not read %s of table %s: %s", facet, ref.name, result)
                facets.append([])
            elif isinstance(result, BaseException):
                raise result
            else:
                facets.append(result)
        columns, indexes, foreign_keys = facets

        self._map_types(columns)
        pk_columns = sorted((c for c in columns if c.is_primary_key), key=lambda c: c.primary_key_ordinal)
        primary_key = [c.name for c in pk_columns] or None

        column_names = {c.name for c in columns}
        kept_foreign_keys = []
        for fk in foreign_keys:
            if fk.column not in column_names:
                logger.warning(
                    "Dropping foreign key %s on %s: column %s is not a column of the table",
                    fk.name, ref.name, fk.column,
                )
                continue
            kept_foreign_keys.append(fk)

        return TableInfo(
            name=ref.name,
            schema=ref.schema,
            columns=columns,
            primary_key=primary_key,
            indexes=indexes,
            foreign_keys=kept_foreign_keys,
            auto_increment=self.introspector.resolve_auto_increment(columns),
        )

    def _map_types(self, columns: List[ColumnInfo]) -> None:
        for column in columns:
            column.python_type = self.type_mapper.to_python_type(column.data_type)

"""Per-table data access with relationship loading."""

import functools
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..database.executor import ExecutionResult, Row, StatementExecutor
from ..database.models import MANY_TO_MANY, MANY_TO_ONE, RelationshipInfo, SchemaInfo, TableInfo
from ..database.naming import finder_name
from ..errors import (
    ColumnNotFoundError,
    EntityNotFoundError,
    RelationshipNotFoundError,
    TableNotFoundError,
    ValidationError,
)
from .sql import JOIN_KEY_ALIAS, StatementBuilder

logger = logging.getLogger(__name__)

# (sql, execution_time_ms, row_count, table)
QueryObserver = Callable[[str, float, Optional[int], Optional[str]], None]


class Repository:
    """CRUD and relationship loading for one table.

    Entities are plain dicts keyed by column name. Loaded relationships are
    stored on the entity under the relationship name.

    Column finders are generated from the table metadata:
    ``find_by_<column>`` returns the first match ordered by key and
    ``find_many_by_<column>`` returns every match. Asking for a finder on a
    column that does not exist raises ``ColumnNotFoundError``.
    """

    def __init__(
        self,
        table: TableInfo,
        schema: SchemaInfo,
        executor: StatementExecutor,
        supports_returning: bool = False,
        observer: Optional[QueryObserver] = None,
    ):
        self.table = table
        self.schema = schema
        self.executor = executor
        self.supports_returning = supports_returning
        self.observer = observer
        self.sql = StatementBuilder(table, executor.paramstyle)
        self.relationships: Dict[str, RelationshipInfo] = {
            r.name: r for r in schema.relationships_for(table.name)
        }
        self._finders: Dict[str, Callable] = self._build_finders()

    def __repr__(self):
        return f"Repository(table={self.table.name!r})"

    # Finders

    def _build_finders(self) -> Dict[str, Callable]:
        finders = {}
        key = set(self.table.primary_key or [])
        for column in self.table.columns:
            if column.name in key:
                continue
            finders[finder_name(column.name)] = functools.partial(self.find_by, column.name)
            finders[finder_name(column.name, many=True)] = functools.partial(self.find_many_by, column.name)
        return finders

    @property
    def finder_names(self) -> List[str]:
        return sorted(self._finders)

    @property
    def unique_columns(self) -> List[str]:
        """Columns for which ``find_by_<column>`` can match at most one row."""
        return self.table.unique_columns()

    def __getattr__(self, name: str):
        finders = self.__dict__.get("_finders")
        if finders is not None:
            if name in finders:
                return finders[name]
            for prefix in ("find_many_by_", "find_by_"):
                if name.startswith(prefix):
                    raise ColumnNotFoundError(name[len(prefix):], self.table.name, self.table.column_names)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    # Execution

    def _observe(self, sql: str, started: float, row_count: Optional[int], table: str):
        if self.observer is None:
            return
        elapsed_ms = (time.perf_counter() - started) * 1000
        self.observer(sql, elapsed_ms, row_count, table)

    async def _fetch(self, sql: str, params: Sequence[Any] = (), table: Optional[TableInfo] = None) -> List[Row]:
        table = table or self.table
        started = time.perf_counter()
        rows = await self.executor.fetch_all(sql, params)
        self._observe(sql, started, len(rows), table.name)
        return [self._normalize(row, table) for row in rows]

    async def _execute(self, sql: str, params: Sequence[Any] = ()) -> ExecutionResult:
        started = time.perf_counter()
        result = await self.executor.execute(sql, params)
        self._observe(sql, started, result.rowcount, self.table.name)
        return result

    @staticmethod
    def _normalize(row: Row, table: TableInfo) -> Row:
        """Turn 0/1 integers of boolean columns into bools."""
        for column in table.columns:
            if column.python_type != "bool":
                continue
            value = row.get(column.name)
            if isinstance(value, int) and not isinstance(value, bool) and value in (0, 1):
                row[column.name] = bool(value)
        return row

    # Keys and validation

    def _require_key(self) -> List[str]:
        key = self.table.key_columns
        if not key:
            raise ValidationError(
                f"Table '{self.table.name}' has no primary key or row identifier",
                table=self.table.name,
            )
        return key

    def _key_values(self, id: Any) -> Dict[str, Any]:
        """Map an id (scalar, tuple/list or dict) onto the key columns."""
        key = self._require_key()
        if isinstance(id, dict):
            missing = [k for k in key if k not in id]
            if missing:
                raise ValidationError(
                    f"Missing key value(s) for table '{self.table.name}': {', '.join(missing)}",
                    issues=[f"missing {k}" for k in missing],
                    table=self.table.name,
                )
            return {k: id[k] for k in key}
        if isinstance(id, (tuple, list)):
            values = list(id)
        else:
            values = [id]
        if len(values) != len(key):
            raise ValidationError(
                f"Table '{self.table.name}' has a {len(key)}-column key ({', '.join(key)}); "
                f"got {len(values)} value(s)",
                table=self.table.name,
            )
        return dict(zip(key, values))

    def _check_column(self, name: str) -> None:
        if self.table.has_column(name):
            return
        if self.sql.row_identifier and name == self.sql.row_identifier:
            return
        raise ColumnNotFoundError(name, self.table.name, self.table.column_names)

    def _relationship(self, name: str) -> RelationshipInfo:
        relationship = self.relationships.get(name)
        if relationship is None:
            raise RelationshipNotFoundError(name, self.table.name, sorted(self.relationships))
        return relationship

    def _target_table(self, name: str) -> TableInfo:
        table = self.schema.get_table(name)
        if table is None:
            raise TableNotFoundError(name, self.schema.table_names)
        return table

    # CRUD

    async def find_by_id(self, id: Any) -> Optional[Row]:
        """Fetch one row by primary key; composite keys take a tuple in key order."""
        key = self._key_values(id)
        rows = await self._fetch(self.sql.select(where=list(key), limit=1), list(key.values()))
        return rows[0] if rows else None

    async def find_all(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Row]:
        return await self._fetch(self.sql.select(limit=limit, offset=offset))

    async def find_by(self, column: str, value: Any) -> Optional[Row]:
        self._check_column(column)
        rows = await self._fetch(self.sql.select(where=[column], limit=1), [value])
        return rows[0] if rows else None

    async def find_many_by(self, column: str, value: Any) -> List[Row]:
        self._check_column(column)
        return await self._fetch(self.sql.select(where=[column]), [value])

    def _validate_new(self, data: Dict[str, Any]) -> None:
        for name in data:
            self._check_column(name)
        missing = [c.name for c in self.table.columns if c.is_required and data.get(c.name) is None]
        if missing:
            raise ValidationError(
                f"Missing required column(s) for table '{self.table.name}': {', '.join(missing)}",
                issues=[f"{name} is required" for name in missing],
                table=self.table.name,
            )

    async def create(self, data: Dict[str, Any]) -> Row:
        """Insert a row and return it as stored, database defaults included."""
        self._validate_new(data)
        columns = list(data)
        params = [data[c] for c in columns]

        if self.supports_returning:
            result = await self._execute(self.sql.insert(columns, returning=True), params)
            if result.rows:
                return self._normalize(result.rows[0], self.table)

        result = await self._execute(self.sql.insert(columns), params)

        key = self.table.key_columns
        if key and all(k in data for k in key):
            created = await self.find_by_id(tuple(data[k] for k in key))
        elif len(key) == 1 and result.lastrowid is not None:
            created = await self.find_by_id(result.lastrowid)
        else:
            created = None

        if created is None:
            logger.debug("Could not read back new row of %s; returning input data", self.table.name)
            return dict(data)
        return created

    async def update(self, entity: Dict[str, Any]) -> Row:
        """Write every non-key value of ``entity`` to the row it identifies.

        Raises:
            ValidationError: key values are missing
            EntityNotFoundError: no row has that key
        """
        key = self._key_values(entity)
        # keys added by load_relationship / with_count are not columns
        attached = set(self.relationships) | {f"{name}Count" for name in self.relationships}
        changes = {}
        for name, value in entity.items():
            if name in key:
                continue
            if name in attached and not self.table.has_column(name):
                continue
            self._check_column(name)
            changes[name] = value

        if changes:
            columns = list(changes)
            result = await self._execute(
                self.sql.update(columns, list(key)),
                [changes[c] for c in columns] + list(key.values()),
            )
            if result.rowcount == 0:
                raise EntityNotFoundError(self.table.name, key)

        updated = await self.find_by_id(tuple(key.values()))
        if updated is None:
            raise EntityNotFoundError(self.table.name, key)
        return updated

    async def delete(self, id: Any) -> bool:
        """Delete by key; False when nothing matched."""
        key = self._key_values(id)
        result = await self._execute(self.sql.delete(list(key)), list(key.values()))
        return result.rowcount > 0

    async def count(self, where: Optional[Dict[str, Any]] = None) -> int:
        where = where or {}
        for name in where:
            self._check_column(name)
        rows = await self._fetch(self.sql.count(list(where)), list(where.values()))
        return int(rows[0]["count"]) if rows else 0

    async def exists(self, id: Any) -> bool:
        key = self._key_values(id)
        rows = await self._fetch(self.sql.exists(list(key)), list(key.values()))
        return bool(rows)

    async def paginate(
        self,
        page: int = 1,
        limit: int = 10,
        where: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        direction: str = "asc",
    ) -> Dict[str, Any]:
        """One page of rows plus paging metadata."""
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive integers", table=self.table.name)
        direction = direction.upper()
        if direction not in ("ASC", "DESC"):
            raise ValidationError(f"direction must be 'asc' or 'desc', got {direction.lower()!r}")
        where = where or {}
        for name in where:
            self._check_column(name)
        if order_by is not None:
            self._check_column(order_by)

        total = await self.count(where)
        rows = await self._fetch(
            self.sql.select(
                where=list(where),
                order_by=order_by,
                direction=direction,
                limit=limit,
                offset=(page - 1) * limit,
            ),
            list(where.values()),
        )
        total_pages = (total + limit - 1) // limit
        return {
            "data": rows,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": total_pages,
                "has_next": page < total_pages,
                "has_prev": page > 1,
            },
        }

    # Relationships

    async def _query_related(self, relationship: RelationshipInfo, values: List[Any]) -> Dict[Any, List[Row]]:
        """Fetch related rows for every value in one statement, grouped by join value."""
        target = self._target_table(relationship.to_table)
        builder = StatementBuilder(target, self.executor.paramstyle)

        if relationship.type == MANY_TO_MANY:
            junction = self._target_table(relationship.junction_table)
            sql = builder.select_through(
                junction,
                relationship.junction_from_column,
                relationship.junction_to_column,
                relationship.to_column,
                len(values),
            )
            group_column = JOIN_KEY_ALIAS
        else:
            sql = builder.select_in(relationship.to_column, len(values))
            group_column = relationship.to_column

        grouped: Dict[Any, List[Row]] = {}
        for row in await self._fetch(sql, values, table=target):
            group_key = row.pop(JOIN_KEY_ALIAS) if group_column == JOIN_KEY_ALIAS else row[group_column]
            grouped.setdefault(group_key, []).append(row)
        return grouped

    @staticmethod
    def _attach(entity: Row, relationship: RelationshipInfo, grouped: Dict[Any, List[Row]]) -> None:
        related = grouped.get(entity.get(relationship.from_column), [])
        if relationship.type == MANY_TO_ONE:
            entity[relationship.name] = related[0] if related else None
        else:
            entity[relationship.name] = list(related)

    async def load_relationship(self, entity: Row, name: str) -> Row:
        """Attach one relationship to a single entity."""
        relationship = self._relationship(name)
        value = entity.get(relationship.from_column)
        grouped = await self._query_related(relationship, [value]) if value is not None else {}
        self._attach(entity, relationship, grouped)
        return entity

    async def load_relationships(self, entities: List[Row], names: Sequence[str]) -> List[Row]:
        """Attach relationships to many entities with one query per relationship.

        The result for each entity is the same as calling
        ``load_relationship`` on it individually.
        """
        relationships = [self._relationship(name) for name in names]
        for relationship in relationships:
            values = []
            seen = set()
            for entity in entities:
                value = entity.get(relationship.from_column)
                if value is not None and value not in seen:
                    seen.add(value)
                    values.append(value)
            grouped = await self._query_related(relationship, values)
            for entity in entities:
                self._attach(entity, relationship, grouped)
        return entities

    async def find_with_relations(self, id: Any, names: Sequence[str]) -> Optional[Row]:
        """Fetch one row and attach the named relationships."""
        for name in names:
            self._relationship(name)
        entity = await self.find_by_id(id)
        if entity is None:
            return None
        for name in names:
            await self.load_relationship(entity, name)
        return entity

    async def with_count(self, id: Any, names: Sequence[str]) -> Optional[Row]:
        """Fetch one row with ``<relationship>Count`` keys for the named relationships."""
        relationships = [self._relationship(name) for name in names]
        entity = await self.find_by_id(id)
        if entity is None:
            return None
        for relationship in relationships:
            value = entity.get(relationship.from_column)
            if value is None:
                entity[f"{relationship.name}Count"] = 0
                continue
            target = self._target_table(relationship.to_table)
            builder = StatementBuilder(target, self.executor.paramstyle)
            if relationship.type == MANY_TO_MANY:
                junction = self._target_table(relationship.junction_table)
                sql = builder.count_through(junction, relationship.junction_from_column)
                count_table = junction
            else:
                sql = builder.count([relationship.to_column])
                count_table = target
            rows = await self._fetch(sql, [value], table=count_table)
            entity[f"{relationship.name}Count"] = int(rows[0]["count"]) if rows else 0
        return entity

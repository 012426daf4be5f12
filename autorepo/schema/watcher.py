"""Poll a database for schema changes and notify listeners."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Set, Tuple

from ..database.models import SchemaInfo, TableInfo

logger = logging.getLogger(__name__)

TABLE_ADDED = "table_added"
TABLE_REMOVED = "table_removed"
COLUMN_ADDED = "column_added"
COLUMN_REMOVED = "column_removed"
COLUMN_CHANGED = "column_changed"
FOREIGN_KEY_ADDED = "foreign_key_added"
FOREIGN_KEY_REMOVED = "foreign_key_removed"
INDEX_ADDED = "index_added"
INDEX_REMOVED = "index_removed"


@dataclass
class SchemaChange:
    """One difference between two schema snapshots."""
    type: str
    table: str
    details: str = ""


ChangeCallback = Callable[[List[SchemaChange]], object]


def _column_shape(table: TableInfo) -> Dict[str, Tuple]:
    return {
        c.name: (c.data_type, c.is_nullable, c.is_primary_key, c.default_value)
        for c in table.columns
    }


def _foreign_keys(table: TableInfo) -> Set[Tuple[str, str, str]]:
    return {(fk.column, fk.referenced_table, fk.referenced_column) for fk in table.foreign_keys}


def _indexes(table: TableInfo) -> Set[Tuple[str, Tuple[str, ...], bool]]:
    return {(i.name, tuple(i.columns), i.unique) for i in table.indexes}


def _diff_table(old: TableInfo, new: TableInfo) -> List[SchemaChange]:
    changes = []
    old_columns, new_columns = _column_shape(old), _column_shape(new)
    for name in new_columns:
        if name not in old_columns:
            changes.append(SchemaChange(COLUMN_ADDED, new.name, name))
        elif new_columns[name] != old_columns[name]:
            changes.append(SchemaChange(COLUMN_CHANGED, new.name, name))
    for name in old_columns:
        if name not in new_columns:
            changes.append(SchemaChange(COLUMN_REMOVED, new.name, name))

    old_fks, new_fks = _foreign_keys(old), _foreign_keys(new)
    for column, table, referenced in sorted(new_fks - old_fks):
        changes.append(SchemaChange(FOREIGN_KEY_ADDED, new.name, f"{column} -> {table}.{referenced}"))
    for column, table, referenced in sorted(old_fks - new_fks):
        changes.append(SchemaChange(FOREIGN_KEY_REMOVED, new.name, f"{column} -> {table}.{referenced}"))

    old_indexes, new_indexes = _indexes(old), _indexes(new)
    for name, _, _ in sorted(new_indexes - old_indexes):
        changes.append(SchemaChange(INDEX_ADDED, new.name, name))
    for name, _, _ in sorted(old_indexes - new_indexes):
        changes.append(SchemaChange(INDEX_REMOVED, new.name, name))
    return changes


def diff_schemas(old: SchemaInfo, new: SchemaInfo, ignored_tables: Iterable[str] = ()) -> List[SchemaChange]:
    """List table, column, foreign-key and index differences between two snapshots.

    Tables named in ``ignored_tables`` are left out on both sides.
    """
    ignored = set(ignored_tables)
    old_tables = {t.name: t for t in old.tables if t.name not in ignored}
    new_tables = {t.name: t for t in new.tables if t.name not in ignored}

    changes = []
    for name, table in new_tables.items():
        if name not in old_tables:
            changes.append(SchemaChange(TABLE_ADDED, name))
        else:
            changes.extend(_diff_table(old_tables[name], table))
    for name in old_tables:
        if name not in new_tables:
            changes.append(SchemaChange(TABLE_REMOVED, name))
    return changes


class SchemaWatcher:
    """Rediscover the schema on an interval and report what changed.

    Usage:
        watcher = SchemaWatcher(coordinator.discover_schema, poll_interval=5)
        watcher.on_schema_change(lambda changes: print(changes))
        await watcher.start(current_schema)
        ...
        await watcher.stop()

    Callbacks may be plain functions or coroutine functions. A failing
    callback is logged and does not stop the others.
    """

    def __init__(
        self,
        discover: Callable[[], Awaitable[SchemaInfo]],
        poll_interval: float = 5.0,
        ignored_tables: Optional[Iterable[str]] = None,
    ):
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        self._discover = discover
        self.poll_interval = poll_interval
        self.ignored_tables = set(ignored_tables or [])
        self.last_schema: Optional[SchemaInfo] = None
        self._callbacks: List[ChangeCallback] = []
        self._task: Optional[asyncio.Task] = None

    @property
    def is_watching(self) -> bool:
        return self._task is not None and not self._task.done()

    def on_schema_change(self, callback: ChangeCallback) -> None:
        self._callbacks.append(callback)

    def remove_callback(self, callback: ChangeCallback) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    async def start(self, baseline: Optional[SchemaInfo] = None) -> None:
        """Take the baseline snapshot (discovering it if not given) and start polling."""
        if self.is_watching:
            logger.warning("Schema watcher already running")
            return
        self.last_schema = baseline if baseline is not None else await self._discover()
        self._task = asyncio.create_task(self._poll())
        logger.info("Schema watcher started (polling every %ss)", self.poll_interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Schema watcher stopped")

    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            try:
                await self.check_for_changes()
            except Exception as e:
                logger.error("Error checking for schema changes: %s", e)

    async def check_for_changes(self) -> List[SchemaChange]:
        """Discover once, compare with the last snapshot and notify on differences."""
        schema = await self._discover()
        if self.last_schema is None:
            self.last_schema = schema
            return []

        changes = diff_schemas(self.last_schema, schema, self.ignored_tables)
        self.last_schema = schema
        if changes:
            logger.info("Found %d schema changes", len(changes))
            await self._notify(changes)
        else:
            logger.debug("No schema changes across %d tables", len(schema.tables))
        return changes

    async def _notify(self, changes: List[SchemaChange]) -> None:
        for callback in list(self._callbacks):
            try:
                result = callback(changes)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error("Error in schema change callback: %s", e)

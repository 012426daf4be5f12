"""Tests for schema change detection and engine schema watching."""

import asyncio
import logging

import pytest

from autorepo.database.models import (
    ColumnInfo,
    ForeignKeyInfo,
    IndexInfo,
    SchemaInfo,
    TableInfo,
)
from autorepo.database.sqlite import SQLiteIntrospector
from autorepo.engine import Engine
from autorepo.errors import NotInitializedError
from autorepo.schema.factory import DiscoveryFactory
from autorepo.schema.watcher import (
    COLUMN_ADDED,
    COLUMN_CHANGED,
    COLUMN_REMOVED,
    FOREIGN_KEY_ADDED,
    INDEX_REMOVED,
    TABLE_ADDED,
    TABLE_REMOVED,
    SchemaWatcher,
    diff_schemas,
)

from tests.fixtures import make_settings


def _orders(**overrides):
    values = {
        "name": "orders",
        "columns": [
            ColumnInfo(name="id", data_type="INTEGER", is_primary_key=True, primary_key_ordinal=1),
            ColumnInfo(name="total", data_type="REAL"),
            ColumnInfo(name="note", data_type="TEXT"),
        ],
        "primary_key": ["id"],
        "indexes": [IndexInfo(name="idx_orders_total", columns=["total"])],
    }
    values.update(overrides)
    return TableInfo(**values)


class TestDiffSchemas:
    """Test snapshot comparison."""

    def test_identical(self):
        assert diff_schemas(SchemaInfo(tables=[_orders()]), SchemaInfo(tables=[_orders()])) == []

    def test_tables_added_and_removed(self):
        old = SchemaInfo(tables=[_orders(), TableInfo(name="legacy")])
        new = SchemaInfo(tables=[_orders(), TableInfo(name="customers")])

        changes = diff_schemas(old, new)

        assert [(c.type, c.table) for c in changes] == [
            (TABLE_ADDED, "customers"),
            (TABLE_REMOVED, "legacy"),
        ]

    def test_column_changes(self):
        new = _orders(columns=[
            ColumnInfo(name="id", data_type="INTEGER", is_primary_key=True, primary_key_ordinal=1),
            ColumnInfo(name="total", data_type="NUMERIC(10,2)"),
            ColumnInfo(name="customer_id", data_type="INTEGER"),
        ])

        changes = diff_schemas(SchemaInfo(tables=[_orders()]), SchemaInfo(tables=[new]))

        assert [(c.type, c.details) for c in changes] == [
            (COLUMN_CHANGED, "total"),
            (COLUMN_ADDED, "customer_id"),
            (COLUMN_REMOVED, "note"),
        ]

    def test_foreign_keys_and_indexes(self):
        new = _orders(
            indexes=[],
            foreign_keys=[ForeignKeyInfo(name="fk", column="note", referenced_table="notes", referenced_column="id")],
        )

        changes = diff_schemas(SchemaInfo(tables=[_orders()]), SchemaInfo(tables=[new]))

        assert [(c.type, c.details) for c in changes] == [
            (FOREIGN_KEY_ADDED, "note -> notes.id"),
            (INDEX_REMOVED, "idx_orders_total"),
        ]

    def test_ignored_tables(self):
        old = SchemaInfo(tables=[_orders()])
        new = SchemaInfo(tables=[_orders(columns=[]), TableInfo(name="scratch")])

        assert diff_schemas(old, new, ignored_tables=["orders", "scratch"]) == []


@pytest.fixture
def discover(blog_executor):
    introspector = SQLiteIntrospector(blog_executor)
    return DiscoveryFactory.create_coordinator(introspector, make_settings()).discover_schema


class TestSchemaWatcher:
    """Test change checks against a live SQLite database."""

    @pytest.mark.asyncio
    async def test_no_changes(self, discover):
        seen = []
        watcher = SchemaWatcher(discover)
        watcher.on_schema_change(seen.append)
        watcher.last_schema = await discover()

        assert await watcher.check_for_changes() == []
        assert seen == []

    @pytest.mark.asyncio
    async def test_added_column_notifies_callbacks(self, discover, blog_executor, caplog):
        sync_seen, async_seen = [], []

        async def async_callback(changes):
            async_seen.extend(changes)

        def broken_callback(changes):
            raise RuntimeError("listener failed")

        watcher = SchemaWatcher(discover)
        watcher.on_schema_change(broken_callback)
        watcher.on_schema_change(sync_seen.extend)
        watcher.on_schema_change(async_callback)
        watcher.last_schema = await discover()

        await blog_executor.execute("ALTER TABLE posts ADD COLUMN slug TEXT")
        with caplog.at_level(logging.ERROR):
            changes = await watcher.check_for_changes()

        assert [(c.type, c.table, c.details) for c in changes] == [(COLUMN_ADDED, "posts", "slug")]
        assert sync_seen == changes
        assert async_seen == changes
        assert "listener failed" in caplog.text
        assert watcher.last_schema.get_table("posts").has_column("slug")

    @pytest.mark.asyncio
    async def test_removed_callback(self, discover, blog_executor):
        seen = []
        watcher = SchemaWatcher(discover)
        watcher.on_schema_change(seen.append)
        watcher.remove_callback(seen.append)
        watcher.last_schema = await discover()

        await blog_executor.execute("CREATE TABLE drafts (id INTEGER PRIMARY KEY)")
        changes = await watcher.check_for_changes()

        assert [(c.type, c.table) for c in changes] == [(TABLE_ADDED, "drafts")]
        assert seen == []

    @pytest.mark.asyncio
    async def test_ignored_tables(self, discover, blog_executor):
        seen = []
        watcher = SchemaWatcher(discover, ignored_tables=["audit_log"])
        watcher.on_schema_change(seen.append)
        watcher.last_schema = await discover()

        await blog_executor.execute("ALTER TABLE audit_log ADD COLUMN source TEXT")

        assert await watcher.check_for_changes() == []
        assert seen == []

    def test_invalid_interval(self):
        async def discover():
            return SchemaInfo()

        with pytest.raises(ValueError):
            SchemaWatcher(discover, poll_interval=0)


class TestEngineSchemaWatching:
    """Test the engine's polling loop."""

    @pytest.mark.asyncio
    async def test_altered_table_fires_callback_and_refreshes(self, engine):
        fired = asyncio.Event()
        received = []

        def on_change(changes):
            received.extend(changes)
            fired.set()

        engine.on_schema_change(on_change)
        posts_before = engine.get_repository("posts")
        await engine.start_schema_watching(poll_interval=0.01)
        assert engine.is_watching_schema

        await engine.executor.execute("ALTER TABLE posts ADD COLUMN slug TEXT")
        await asyncio.wait_for(fired.wait(), timeout=5)

        assert (received[0].type, received[0].table, received[0].details) == (COLUMN_ADDED, "posts", "slug")
        assert engine.get_schema_info().get_table("posts").has_column("slug")
        posts_after = engine.get_repository("posts")
        assert posts_after is not posts_before
        assert posts_after.table.has_column("slug")

        await engine.stop_schema_watching()
        assert not engine.is_watching_schema

    @pytest.mark.asyncio
    async def test_start_twice_warns(self, engine, caplog):
        await engine.start_schema_watching(poll_interval=60)
        with caplog.at_level(logging.WARNING):
            await engine.start_schema_watching(poll_interval=60)

        assert "already running" in caplog.text

    @pytest.mark.asyncio
    async def test_requires_initialize(self, blog_executor, settings):
        engine = Engine(blog_executor, settings=settings)

        with pytest.raises(NotInitializedError):
            await engine.start_schema_watching()

    @pytest.mark.asyncio
    async def test_close_stops_watching(self, counting_executor, settings):
        engine = Engine(counting_executor, settings=settings)
        await engine.initialize()
        await engine.start_schema_watching(poll_interval=60)

        await engine.close()

        assert not engine.is_watching_schema

"""Tests for the SQLite introspector against a real in-memory database."""

import pytest

from autorepo.database.models import ColumnInfo
from autorepo.database.sqlite import SQLiteIntrospector, parse_type_arguments

from tests.fixtures import run_script


class TestParseTypeArguments:
    """Test length/precision extraction from declared types."""

    def test_varchar_length(self):
        assert parse_type_arguments("VARCHAR(255)") == (255, None, None)

    def test_decimal_precision_and_scale(self):
        assert parse_type_arguments("DECIMAL(10,2)") == (None, 10, 2)

    def test_numeric_without_scale(self):
        assert parse_type_arguments("NUMERIC(8)") == (None, 8, 0)

    def test_plain_type(self):
        assert parse_type_arguments("INTEGER") == (None, None, None)


class TestListing:
    """Test table, column, index and foreign-key listing."""

    @pytest.mark.asyncio
    async def test_list_tables_includes_views_and_skips_internal(self, blog_executor):
        refs = await SQLiteIntrospector(blog_executor).list_tables()
        names = [r.name for r in refs]

        assert names == sorted(names)
        assert "users" in names
        assert "sqlite_sequence" not in names
        kinds = {r.name: r.kind for r in refs}
        assert kinds["active_users"] == "view"
        assert kinds["posts"] == "table"

    @pytest.mark.asyncio
    async def test_list_columns(self, blog_executor):
        columns = await SQLiteIntrospector(blog_executor).list_columns("users")
        by_name = {c.name: c for c in columns}

        assert [c.name for c in columns] == ["id", "name", "email", "active", "created_at"]
        assert by_name["id"].is_primary_key
        assert by_name["id"].primary_key_ordinal == 1
        assert not by_name["name"].is_nullable
        assert by_name["email"].is_nullable
        assert by_name["email"].max_length == 255
        assert by_name["active"].default_value == "1"

    @pytest.mark.asyncio
    async def test_list_indexes(self, blog_executor):
        indexes = await SQLiteIntrospector(blog_executor).list_indexes("posts")
        by_name = {i.name: i for i in indexes}

        assert by_name["idx_posts_user_id"].columns == ["user_id"]
        assert not by_name["idx_posts_user_id"].unique

    @pytest.mark.asyncio
    async def test_unique_constraint_shows_as_unique_index(self, blog_executor):
        indexes = await SQLiteIntrospector(blog_executor).list_indexes("users")
        unique = [i for i in indexes if i.unique]

        assert any(i.columns == ["email"] for i in unique)

    @pytest.mark.asyncio
    async def test_list_foreign_keys(self, blog_executor):
        fks = await SQLiteIntrospector(blog_executor).list_foreign_keys("posts")

        assert len(fks) == 1
        fk = fks[0]
        assert fk.name == "fk_posts_user_id"
        assert fk.column == "user_id"
        assert fk.referenced_table == "users"
        assert fk.referenced_column == "id"
        assert fk.on_delete == "CASCADE"

    @pytest.mark.asyncio
    async def test_foreign_key_without_column_targets_primary_key(self, blog_executor):
        """REFERENCES users (no column list) resolves to users.id."""
        fks = await SQLiteIntrospector(blog_executor).list_foreign_keys("comments")
        author = next(fk for fk in fks if fk.column == "author_id")

        assert author.referenced_table == "users"
        assert author.referenced_column == "id"

    @pytest.mark.asyncio
    async def test_list_views(self, blog_executor):
        views = await SQLiteIntrospector(blog_executor).list_views()

        assert [v.name for v in views] == ["active_users"]
        assert "FROM users" in views[0].definition
        assert [c.name for c in views[0].columns] == ["id", "name"]

    @pytest.mark.asyncio
    async def test_ping(self, executor):
        await SQLiteIntrospector(executor).ping()


class TestAutoIncrement:
    """Test the three-tier key resolution."""

    @pytest.mark.asyncio
    async def test_autoincrement_keyword(self, blog_executor):
        introspector = SQLiteIntrospector(blog_executor)
        columns = await introspector.list_columns("users")
        info = introspector.resolve_auto_increment(columns)

        assert info.column == "id"
        assert info.kind == "autoincrement"
        assert info.row_identifier is None

    @pytest.mark.asyncio
    async def test_integer_primary_key_is_rowid_alias(self, blog_executor):
        introspector = SQLiteIntrospector(blog_executor)
        columns = await introspector.list_columns("posts")
        info = introspector.resolve_auto_increment(columns)

        assert info.column == "id"
        assert info.kind == "rowid"
        assert columns[0].is_auto_increment

    @pytest.mark.asyncio
    async def test_no_primary_key_uses_rowid(self, blog_executor):
        introspector = SQLiteIntrospector(blog_executor)
        columns = await introspector.list_columns("audit_log")
        info = introspector.resolve_auto_increment(columns)

        assert info.column == "rowid"
        assert info.kind == "rowid"
        assert info.row_identifier == "rowid"

    @pytest.mark.asyncio
    async def test_composite_key_has_no_auto_increment(self, blog_executor):
        introspector = SQLiteIntrospector(blog_executor)
        columns = await introspector.list_columns("post_tags")
        info = introspector.resolve_auto_increment(columns)

        assert not info.has_auto_increment
        assert [c.primary_key_ordinal for c in columns] == [1, 2]

    @pytest.mark.asyncio
    async def test_without_rowid_table(self, executor):
        await run_script(executor, ["CREATE TABLE kv (k INTEGER PRIMARY KEY, v TEXT) WITHOUT ROWID"])
        introspector = SQLiteIntrospector(executor)
        columns = await introspector.list_columns("kv")

        assert not introspector.resolve_auto_increment(columns).has_auto_increment

    @pytest.mark.asyncio
    async def test_int_is_not_rowid_alias(self, executor):
        """Only the exact type INTEGER aliases the rowid."""
        await run_script(executor, ["CREATE TABLE t (id INT PRIMARY KEY, v TEXT)"])
        introspector = SQLiteIntrospector(executor)
        columns = await introspector.list_columns("t")

        assert not introspector.resolve_auto_increment(columns).has_auto_increment

    def test_mark_auto_increment_without_sql(self):
        columns = [ColumnInfo(name="id", data_type="INTEGER", is_primary_key=True, primary_key_ordinal=1)]
        SQLiteIntrospector.mark_auto_increment(columns, None)

        assert not columns[0].is_auto_increment

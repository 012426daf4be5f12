"""Tests for repository statement building."""

from autorepo.database.models import AutoIncrementInfo, ColumnInfo, TableInfo
from autorepo.repository.sql import JOIN_KEY_ALIAS, StatementBuilder


def _audit_table():
    return TableInfo(
        name="audit_log",
        columns=[ColumnInfo(name="message", data_type="TEXT")],
        auto_increment=AutoIncrementInfo(column="rowid", kind="rowid", row_identifier="rowid"),
    )


class TestStatementBuilder:
    """Test generated SQL text."""

    def test_select_orders_by_key(self, users_table):
        sql = StatementBuilder(users_table).select()
        assert sql == 'SELECT * FROM "users" ORDER BY "id"'

    def test_select_with_filters_and_paging(self, users_table):
        sql = StatementBuilder(users_table).select(["email"], order_by="name", direction="DESC", limit=10, offset=20)
        assert sql == 'SELECT * FROM "users" WHERE "email" = ? ORDER BY "name" DESC LIMIT 10 OFFSET 20'

    def test_format_paramstyle(self, users_table):
        sql = StatementBuilder(users_table, paramstyle="format").select(["email", "name"])
        assert 'WHERE "email" = %s AND "name" = %s' in sql

    def test_schema_qualified(self, users_table):
        users_table.schema = "public"
        assert StatementBuilder(users_table).table_name == '"public"."users"'

    def test_quote_escapes(self, users_table):
        assert StatementBuilder(users_table).quote('we"ird') == '"we""ird"'

    def test_select_in(self, posts_table):
        sql = StatementBuilder(posts_table).select_in("user_id", 3)
        assert sql == 'SELECT * FROM "posts" WHERE "user_id" IN (?, ?, ?) ORDER BY "id"'

    def test_select_in_without_values(self, posts_table):
        sql = StatementBuilder(posts_table).select_in("user_id", 0)
        assert "WHERE 1 = 0" in sql

    def test_select_through(self, users_table):
        junction = TableInfo(
            name="post_tags",
            columns=[ColumnInfo(name="post_id", data_type="INTEGER"), ColumnInfo(name="tag_id", data_type="INTEGER")],
            primary_key=["post_id", "tag_id"],
        )
        tags = TableInfo(name="tags", columns=[ColumnInfo(name="id", data_type="INTEGER")], primary_key=["id"])

        sql = StatementBuilder(tags).select_through(junction, "post_id", "tag_id", "id", 2)

        assert sql == (
            f'SELECT t.*, j."post_id" AS {JOIN_KEY_ALIAS} FROM "tags" t '
            'JOIN "post_tags" j ON j."tag_id" = t."id" '
            'WHERE j."post_id" IN (?, ?) ORDER BY t."id"'
        )

    def test_row_identifier_table(self):
        builder = StatementBuilder(_audit_table())

        assert builder.select() == 'SELECT rowid AS rowid, * FROM "audit_log" ORDER BY rowid'
        assert builder.delete(["rowid"]) == 'DELETE FROM "audit_log" WHERE rowid = ?'

    def test_insert(self, users_table):
        builder = StatementBuilder(users_table)

        assert builder.insert(["name", "email"]) == 'INSERT INTO "users" ("name", "email") VALUES (?, ?)'
        assert builder.insert([]) == 'INSERT INTO "users" DEFAULT VALUES'
        assert builder.insert(["name"], returning=True).endswith("RETURNING *")

    def test_update_and_delete(self, users_table):
        builder = StatementBuilder(users_table)

        assert builder.update(["name"], ["id"]) == 'UPDATE "users" SET "name" = ? WHERE "id" = ?'
        assert builder.delete(["id"]) == 'DELETE FROM "users" WHERE "id" = ?'

    def test_count_and_exists(self, users_table):
        builder = StatementBuilder(users_table)

        assert builder.count() == 'SELECT COUNT(*) AS count FROM "users"'
        assert builder.exists(["id"]) == 'SELECT 1 AS found FROM "users" WHERE "id" = ? LIMIT 1'

"""Shared pytest fixtures for autorepo tests."""

import pytest
import pytest_asyncio

from autorepo.database.executor import create_executor
from autorepo.database.models import (
    ColumnInfo,
    ForeignKeyInfo,
    IndexInfo,
    TableInfo,
)
from autorepo.engine import Engine

from tests.fixtures import BLOG_SCHEMA, CountingExecutor, make_settings, run_script


@pytest.fixture
def settings():
    return make_settings()


@pytest_asyncio.fixture
async def executor():
    """Empty in-memory SQLite database."""
    executor = create_executor("sqlite://:memory:")
    yield executor
    await executor.close()


@pytest_asyncio.fixture
async def blog_executor(executor):
    """In-memory SQLite database with the blog schema, no rows."""
    await run_script(executor, BLOG_SCHEMA)
    return executor


@pytest_asyncio.fixture
async def counting_executor(blog_executor):
    return CountingExecutor(blog_executor)


@pytest_asyncio.fixture
async def engine(counting_executor, settings):
    """Initialized engine over the blog schema."""
    engine = Engine(counting_executor, settings=settings)
    await engine.initialize()
    yield engine
    if engine.is_initialized:
        await engine.close()


@pytest_asyncio.fixture
async def seeded_engine(engine):
    """Blog engine with users, posts, comments and tags."""
    ex = engine.executor
    for name, email in [("Ada", "ada@example.com"), ("Grace", "grace@example.com"), ("Linus", None)]:
        await ex.execute("INSERT INTO users (name, email) VALUES (?, ?)", (name, email))
    posts = [
        (1, "Notes on engines"),
        (1, "On analytical engines"),
        (2, "Compilers"),
        (None, "Anonymous"),
    ]
    for user_id, title in posts:
        await ex.execute("INSERT INTO posts (user_id, title) VALUES (?, ?)", (user_id, title))
    for post_id, author_id, body in [(1, 2, "Great"), (1, 3, "Agreed"), (3, None, "Nice")]:
        await ex.execute(
            "INSERT INTO comments (post_id, author_id, body) VALUES (?, ?, ?)",
            (post_id, author_id, body),
        )
    for name in ("history", "math"):
        await ex.execute("INSERT INTO tags (name) VALUES (?)", (name,))
    for post_id, tag_id in [(1, 1), (1, 2), (2, 2)]:
        await ex.execute("INSERT INTO post_tags (post_id, tag_id) VALUES (?, ?)", (post_id, tag_id))
    engine.executor.reset()
    return engine


@pytest.fixture
def users_table():
    """Hand-built users table metadata."""
    return TableInfo(
        name="users",
        columns=[
            ColumnInfo(name="id", data_type="INTEGER", is_nullable=False, is_primary_key=True,
                       primary_key_ordinal=1, is_auto_increment=True, python_type="int"),
            ColumnInfo(name="email", data_type="VARCHAR(255)", python_type="str"),
            ColumnInfo(name="name", data_type="TEXT", is_nullable=False, python_type="str"),
        ],
        primary_key=["id"],
        indexes=[IndexInfo(name="users_email_unique", columns=["email"], unique=True)],
    )


@pytest.fixture
def posts_table():
    """Hand-built posts table metadata with a foreign key to users."""
    return TableInfo(
        name="posts",
        columns=[
            ColumnInfo(name="id", data_type="INTEGER", is_nullable=False, is_primary_key=True,
                       primary_key_ordinal=1, python_type="int"),
            ColumnInfo(name="user_id", data_type="INTEGER", python_type="int"),
            ColumnInfo(name="title", data_type="TEXT", is_nullable=False, python_type="str"),
        ],
        primary_key=["id"],
        foreign_keys=[
            ForeignKeyInfo(name="fk_posts_user_id", column="user_id",
                           referenced_table="users", referenced_column="id"),
        ],
    )


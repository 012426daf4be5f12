"""Tests for batch relationship loading."""

import copy

import pytest

from autorepo.database.models import MANY_TO_MANY, RelationshipInfo
from autorepo.errors import RelationshipNotFoundError


async def _add_posts(engine, count):
    for i in range(count):
        await engine.executor.execute(
            "INSERT INTO posts (user_id, title) VALUES (?, ?)",
            (1 + i % 3, f"Post {i}"),
        )
    engine.executor.reset()


class TestBatchLoading:
    """load_relationships issues one query per relationship and matches per-entity loading."""

    @pytest.mark.asyncio
    async def test_same_result_as_individual_loading(self, seeded_engine):
        posts = seeded_engine.get_repository("posts")
        names = ["user", "comments", "postTags"]
        batch = await posts.find_all()
        single = copy.deepcopy(batch)

        await posts.load_relationships(batch, names)
        for entity in single:
            for name in names:
                await posts.load_relationship(entity, name)

        assert batch == single

    @pytest.mark.asyncio
    @pytest.mark.parametrize("entity_count", [0, 1, 50])
    async def test_query_count_is_per_relationship(self, engine, entity_count):
        for name in ("a", "b", "c"):
            await engine.executor.execute("INSERT INTO users (name) VALUES (?)", (name,))
        await _add_posts(engine, entity_count)

        posts = engine.get_repository("posts")
        entities = await posts.find_all()
        assert len(entities) == entity_count
        engine.executor.reset()

        await posts.load_relationships(entities, ["user", "comments"])

        assert engine.executor.query_count == 2

    @pytest.mark.asyncio
    async def test_shared_parent_is_fetched_once(self, seeded_engine):
        posts = seeded_engine.get_repository("posts")
        entities = await posts.find_all()
        seeded_engine.executor.reset()

        await posts.load_relationships(entities, ["user"])

        statement = seeded_engine.executor.statements[0]
        assert statement["params"] == [1, 2]
        assert entities[0]["user"]["name"] == "Ada"
        assert entities[1]["user"] == entities[0]["user"]
        assert entities[3]["user"] is None

    @pytest.mark.asyncio
    async def test_collection_relationships_default_to_empty(self, seeded_engine):
        users = seeded_engine.get_repository("users")
        entities = await users.load_relationships(await users.find_all(), ["posts", "comments"])

        assert [len(u["posts"]) for u in entities] == [2, 1, 0]
        assert [len(u["comments"]) for u in entities] == [0, 1, 1]

    @pytest.mark.asyncio
    async def test_unknown_relationship_runs_nothing(self, seeded_engine):
        posts = seeded_engine.get_repository("posts")
        entities = await posts.find_all()
        seeded_engine.executor.reset()

        with pytest.raises(RelationshipNotFoundError):
            await posts.load_relationships(entities, ["user", "tags"])

        assert seeded_engine.executor.query_count == 0


class TestManyToMany:
    """Test explicitly registered many-to-many relationships."""

    @pytest.fixture
    def tags_relationship(self):
        return RelationshipInfo(
            name="tags",
            type=MANY_TO_MANY,
            from_table="posts",
            from_column="id",
            to_table="tags",
            to_column="id",
            junction_table="post_tags",
            junction_from_column="post_id",
            junction_to_column="tag_id",
        )

    @pytest.mark.asyncio
    async def test_load_through_junction(self, seeded_engine, tags_relationship):
        seeded_engine.add_relationship(tags_relationship)
        posts = seeded_engine.get_repository("posts")

        post = await posts.find_with_relations(1, ["tags"])

        assert [t["name"] for t in post["tags"]] == ["history", "math"]
        assert all("__join_key" not in t for t in post["tags"])

    @pytest.mark.asyncio
    async def test_batch_through_junction(self, seeded_engine, tags_relationship):
        seeded_engine.add_relationship(tags_relationship)
        posts = seeded_engine.get_repository("posts")
        entities = await posts.find_all()
        seeded_engine.executor.reset()

        await posts.load_relationships(entities, ["tags"])

        assert seeded_engine.executor.query_count == 1
        assert [[t["name"] for t in p["tags"]] for p in entities] == [["history", "math"], ["math"], [], []]

    @pytest.mark.asyncio
    async def test_count_through_junction(self, seeded_engine, tags_relationship):
        seeded_engine.add_relationship(tags_relationship)
        post = await seeded_engine.get_repository("posts").with_count(1, ["tags"])

        assert post["tagsCount"] == 2

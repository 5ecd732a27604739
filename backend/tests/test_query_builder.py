"""Tests for list-plan predicate and ordering construction."""

from pathlib import Path

import pytest
from sqlalchemy.dialects import sqlite

from vibestack.enrichers import register_builtin_enrichers
from vibestack.metadata.loader import MetadataLoader
from vibestack.persistence.config import DatabaseConfig
from vibestack.persistence.database import Database
from vibestack.routing.query import (
    ListQuery,
    build_list_plan,
    scope_conditions,
    select_count,
    select_entity,
    select_page,
)
from vibestack.routing.registry import build_route_configs

METADATA_DIR = Path(__file__).resolve().parents[2] / "metadata"


@pytest.fixture(scope="module")
def configs():
    register_builtin_enrichers()
    loader = MetadataLoader(METADATA_DIR)
    loader.load_all()
    database = Database(DatabaseConfig(url="sqlite://"))
    database.define_tables(loader.list_tables())
    return {c.path: c for c in build_route_configs(loader, database.tables)}


def _sql(stmt) -> str:
    return str(stmt.compile(dialect=sqlite.dialect(), compile_kwargs={"literal_binds": True}))


class TestScope:
    def test_scoped_resource(self, configs):
        conditions = scope_conditions(configs["/lab/songs"])
        assert len(conditions) == 1
        assert _sql(conditions[0]) == "songs.context = 'lab'"

    def test_point_lookup_is_scoped(self, configs):
        sql = _sql(select_entity(configs["/my-music/songs"], 7))
        assert "songs.id = 7" in sql
        assert "songs.context = 'my_music'" in sql


class TestListPlan:
    def test_defaults(self, configs):
        plan = build_list_plan(configs["/my-music/songs"], ListQuery())

        assert len(plan.conditions) == 1
        assert [_sql(o) for o in plan.order_by] == ["songs.created_at DESC", "songs.id DESC"]
        assert plan.limit == 25
        assert plan.offset == 0

    def test_offset(self, configs):
        plan = build_list_plan(configs["/my-music/songs"], ListQuery(page=3, page_size=10))
        assert plan.limit == 10
        assert plan.offset == 20

    def test_sort_by_allowed_column(self, configs):
        plan = build_list_plan(configs["/my-music/songs"], ListQuery(sort="name", order="asc"))
        assert [_sql(o) for o in plan.order_by] == ["songs.name ASC", "songs.id ASC"]

    def test_unknown_sort_uses_default(self, configs):
        plan = build_list_plan(configs["/my-music/songs"], ListQuery(sort="isrc"))
        assert _sql(plan.order_by[0]) == "songs.created_at DESC"

    def test_configured_default_sort(self, configs):
        plan = build_list_plan(configs["/lab/vibes"], ListQuery(order="asc"))
        assert _sql(plan.order_by[0]) == "vibes.name ASC"

    def test_archived_filter(self, configs):
        plan = build_list_plan(configs["/my-music/songs"], ListQuery(archived=False))
        assert len(plan.conditions) == 2
        assert _sql(plan.conditions[1]).startswith("songs.archived")

    def test_search_spans_search_columns(self, configs):
        plan = build_list_plan(configs["/lab/songs"], ListQuery(search="blue"))
        sql = _sql(plan.conditions[-1])
        assert "lower(songs.name) LIKE" in sql
        assert "lower(songs.isrc) LIKE" in sql
        assert " OR " in sql

    def test_search_escapes_wildcards(self, configs):
        plan = build_list_plan(configs["/lab/songs"], ListQuery(search="50%_off"))
        sql = _sql(plan.conditions[-1])
        assert "50/%/_off" in sql
        assert "ESCAPE '/'" in sql

    def test_search_disabled(self, configs):
        plan = build_list_plan(configs["/lab/song-profiles"], ListQuery(search="anything"))
        assert len(plan.conditions) == 1

    def test_eq_filter(self, configs):
        plan = build_list_plan(configs["/lab/vibes"], ListQuery(filters={"category": "mood"}))
        assert _sql(plan.conditions[-1]) == "vibes.vibe_category = 'mood'"

    def test_like_filter(self, configs):
        plan = build_list_plan(configs["/bin/songs"], ListQuery(filters={"notes": "chorus"}))
        assert "lower(bin_songs.notes) LIKE" in _sql(plan.conditions[-1])

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_filters_skipped(self, configs, value):
        plan = build_list_plan(configs["/lab/vibes"], ListQuery(filters={"category": value}))
        assert len(plan.conditions) == 1

    def test_page_and_count_share_predicates(self, configs):
        config = configs["/lab/songs"]
        plan = build_list_plan(
            config,
            ListQuery(search="x", archived=True, filters={"spotify_uid": "abc"}, page=2),
        )

        page_where = _sql(select_page(config, plan).whereclause)
        count_where = _sql(select_count(config, plan).whereclause)

        assert page_where == count_where
        assert "LIMIT" not in _sql(select_count(config, plan))

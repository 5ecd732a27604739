"""Catalog enrichers for songs, artists, profiles and prompt collections."""

from collections import defaultdict
from typing import Any

from sqlalchemy import func, select

from vibestack.enrichers.types import EnricherContext

UNKNOWN_SONG = "Unknown Song"


def song_artists(ctx: EnricherContext, rows: list[dict]) -> list[dict]:
    """Attach artists: [{id, name}] to each song with one pivot join for the page."""
    if not rows:
        return rows
    pivot = ctx.tables["artist_songs"]
    artists = ctx.tables["artists"]
    song_ids = [row["id"] for row in rows]

    stmt = (
        select(pivot.c.song_id, artists.c.id, artists.c.name)
        .select_from(pivot.join(artists, pivot.c.artist_id == artists.c.id))
        .where(pivot.c.song_id.in_(song_ids))
        .order_by(artists.c.name)
    )
    by_song: dict[int, list[dict]] = defaultdict(list)
    for song_id, artist_id, artist_name in ctx.conn.execute(stmt):
        by_song[song_id].append({"id": artist_id, "name": artist_name})

    return [{**row, "artists": by_song.get(row["id"], [])} for row in rows]


def _related_rows(ctx: EnricherContext, pivot_name: str, related_name: str, fk: str, song_id: int) -> list[dict]:
    pivot = ctx.tables[pivot_name]
    related = ctx.tables[related_name]
    stmt = (
        select(related)
        .select_from(related.join(pivot, pivot.c[fk] == related.c.id))
        .where(pivot.c.song_id == song_id)
        .order_by(related.c.id)
    )
    return [dict(r) for r in ctx.conn.execute(stmt).mappings()]


def song_artists_and_albums(ctx: EnricherContext, entity: dict) -> dict[str, Any]:
    return {
        "artists": _related_rows(ctx, "artist_songs", "artists", "artist_id", entity["id"]),
        "albums": _related_rows(ctx, "album_songs", "albums", "album_id", entity["id"]),
    }


def artist_song_count(ctx: EnricherContext, rows: list[dict]) -> list[dict]:
    if not rows:
        return rows
    pivot = ctx.tables["artist_songs"]
    stmt = (
        select(pivot.c.artist_id, func.count())
        .where(pivot.c.artist_id.in_([row["id"] for row in rows]))
        .group_by(pivot.c.artist_id)
    )
    counts = dict(ctx.conn.execute(stmt).all())
    return [{**row, "songCount": counts.get(row["id"], 0)} for row in rows]


def _song_name(row: dict) -> str:
    # FK enrichment runs first, so the song sub-object is already present
    song = row.get("song")
    return song["name"] if song else UNKNOWN_SONG


def profile_song_names(ctx: EnricherContext, rows: list[dict]) -> list[dict]:
    return [{**row, "songName": _song_name(row)} for row in rows]


def profile_song_name(ctx: EnricherContext, entity: dict) -> dict[str, Any]:
    return {"songName": _song_name(entity)}


def collection_prompts(ctx: EnricherContext, entity: dict) -> dict[str, Any]:
    pivot = ctx.tables["suno_collection_prompts"]
    prompts = ctx.tables["suno_prompts"]
    stmt = (
        select(prompts)
        .select_from(prompts.join(pivot, pivot.c.prompt_id == prompts.c.id))
        .where(pivot.c.collection_id == entity["id"])
        .order_by(prompts.c.id)
    )
    return {"prompts": [dict(r) for r in ctx.conn.execute(stmt).mappings()]}


def _row_by_id(ctx: EnricherContext, table_name: str, row_id: int | None) -> dict | None:
    if row_id is None:
        return None
    table = ctx.tables[table_name]
    row = ctx.conn.execute(select(table).where(table.c.id == row_id)).mappings().first()
    return dict(row) if row is not None else None


def bin_song_sources(ctx: EnricherContext, rows: list[dict]) -> list[dict]:
    """Attach source: {id, name} (or None) to each bin song with one lookup for the page."""
    if not rows:
        return rows
    sources = ctx.tables["bin_sources"]
    source_ids = {row["bin_source_id"] for row in rows if row.get("bin_source_id") is not None}

    by_id: dict[int, dict] = {}
    if source_ids:
        stmt = select(sources.c.id, sources.c.name).where(sources.c.id.in_(source_ids))
        by_id = {source_id: {"id": source_id, "name": name} for source_id, name in ctx.conn.execute(stmt)}

    return [{**row, "source": by_id.get(row.get("bin_source_id"))} for row in rows]


def bin_song_source(ctx: EnricherContext, entity: dict) -> dict[str, Any]:
    """The full source row on detail."""
    return {"source": _row_by_id(ctx, "bin_sources", entity.get("bin_source_id"))}


def suno_prompt_profile(ctx: EnricherContext, entity: dict) -> dict[str, Any]:
    return {"profile": _row_by_id(ctx, "song_profiles", entity.get("song_profile_id"))}

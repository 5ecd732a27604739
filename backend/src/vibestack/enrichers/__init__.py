"""Custom list and detail enrichers referenced by name from resource metadata.

Usage:
    from vibestack.enrichers import list_enricher, EnricherContext

    @list_enricher("songArtists")
    def song_artists(ctx: EnricherContext, rows: list[dict]) -> list[dict]:
        ...
"""

from vibestack.enrichers import catalog
from vibestack.enrichers.registry import EnricherRegistry, detail_enricher, list_enricher
from vibestack.enrichers.types import EnricherContext


def register_builtin_enrichers() -> None:
    """Register the catalog enrichers. Called at application startup."""
    EnricherRegistry.register_list("songArtists", catalog.song_artists)
    EnricherRegistry.register_detail("songArtistsAndAlbums", catalog.song_artists_and_albums)
    EnricherRegistry.register_list("artistSongCount", catalog.artist_song_count)
    EnricherRegistry.register_list("profileSongName", catalog.profile_song_names)
    EnricherRegistry.register_detail("profileSongName", catalog.profile_song_name)
    EnricherRegistry.register_detail("collectionPrompts", catalog.collection_prompts)
    EnricherRegistry.register_list("binSongSource", catalog.bin_song_sources)
    EnricherRegistry.register_detail("binSongSource", catalog.bin_song_source)
    EnricherRegistry.register_detail("sunoPromptProfile", catalog.suno_prompt_profile)


__all__ = [
    "EnricherContext",
    "EnricherRegistry",
    "detail_enricher",
    "list_enricher",
    "register_builtin_enrichers",
]

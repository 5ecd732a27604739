"""Enricher registry.

Resources reference custom enrichers by name from YAML; the functions
themselves are registered here, typically at startup via
register_builtin_enrichers() or the decorators below.
"""

from collections.abc import Callable

from vibestack.routing.types import DetailEnricherFn, ListEnricherFn


class EnricherRegistry:
    """Registry for list and detail enrichers.

    Example:
        @list_enricher("songArtists")
        def song_artists(ctx: EnricherContext, rows: list[dict]) -> list[dict]:
            ...
    """

    _list: dict[str, ListEnricherFn] = {}
    _detail: dict[str, DetailEnricherFn] = {}

    @classmethod
    def register_list(cls, name: str, fn: ListEnricherFn) -> None:
        """Register a list enricher. Re-registering a name is a no-op."""
        cls._list.setdefault(name, fn)

    @classmethod
    def register_detail(cls, name: str, fn: DetailEnricherFn) -> None:
        """Register a detail enricher. Re-registering a name is a no-op."""
        cls._detail.setdefault(name, fn)

    @classmethod
    def get_list(cls, name: str) -> ListEnricherFn:
        """Get a registered list enricher.

        Raises:
            ValueError: If no list enricher is registered under the name
        """
        if name not in cls._list:
            raise ValueError(
                f"List enricher '{name}' is not registered. "
                "Enrichers must be registered at application startup."
            )
        return cls._list[name]

    @classmethod
    def get_detail(cls, name: str) -> DetailEnricherFn:
        """Get a registered detail enricher.

        Raises:
            ValueError: If no detail enricher is registered under the name
        """
        if name not in cls._detail:
            raise ValueError(
                f"Detail enricher '{name}' is not registered. "
                "Enrichers must be registered at application startup."
            )
        return cls._detail[name]

    @classmethod
    def list_registered(cls) -> dict[str, list[str]]:
        return {"list": sorted(cls._list), "detail": sorted(cls._detail)}

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._list.clear()
        cls._detail.clear()


def list_enricher(name: str) -> Callable[[ListEnricherFn], ListEnricherFn]:
    def decorator(fn: ListEnricherFn) -> ListEnricherFn:
        EnricherRegistry.register_list(name, fn)
        return fn

    return decorator


def detail_enricher(name: str) -> Callable[[DetailEnricherFn], DetailEnricherFn]:
    def decorator(fn: DetailEnricherFn) -> DetailEnricherFn:
        EnricherRegistry.register_detail(name, fn)
        return fn

    return decorator

"""Port for catalog metadata lookups (TMDB)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from reelgate.domain.entities.playback import MediaDetails, MediaKind, MediaPreview


@runtime_checkable
class CrossReferencePort(Protocol):
    """Maps an internal catalog id to the stream provider's external id."""

    async def resolve_external_id(self, kind: MediaKind, catalog_id: str) -> str:
        """Return the external (IMDb-style) id.

        Raises CrossReferenceError when no usable id can be obtained.
        """
        ...


@runtime_checkable
class CatalogMetadataPort(Protocol):
    """Display metadata for the player page."""

    async def get_details(
        self, kind: MediaKind, catalog_id: str
    ) -> MediaDetails | None:
        """Details for one title. None if not found or unreachable."""
        ...

    async def get_recommendations(
        self, kind: MediaKind, catalog_id: str
    ) -> list[MediaPreview]:
        """Related titles. Empty list on any failure."""
        ...

"""Collaborators the smart album engine depends on."""

from typing import Optional, Protocol, Sequence

from smartalbums.core.enums import OrderDirection, Permission
from smartalbums.core.pagination import PageRequest
from smartalbums.domain.matching import MetadataFilters, PersonFilter
from smartalbums.domain.models import Album, Asset
from smartalbums.schemas.search_spec import SearchSpecification


class AssetStore(Protocol):
    async def get_by_id(self, asset_id: str) -> Optional[Asset]: ...

    async def get_all_by_person_ids(self, owner_id: str, person_ids: Sequence[str], together: bool) -> list[Asset]: ...


class AlbumStore(Protocol):
    async def get_by_id(self, album_id: str) -> Optional[Album]: ...

    async def get_smart_albums_owned_by(self, owner_id: str) -> list[Album]: ...

    async def get_asset_ids(self, album_id: str) -> frozenset[str]: ...

    async def add_asset_ids(self, album_id: str, asset_ids: Sequence[str]) -> list[str]:
        """Add the ids not yet in the album in one transaction; return the ones added."""
        ...

    async def update(self, album_id: str, *, album_name: Optional[str] = None,
                     search: Optional[SearchSpecification] = None) -> Album: ...


class SearchBackend(Protocol):
    async def search_smart(self, page: PageRequest, *, owner_ids: Sequence[str],
                           embedding: Sequence[float], people: PersonFilter) -> list[str]: ...

    async def search_metadata(self, page: PageRequest, *, owner_ids: Sequence[str],
                              filters: MetadataFilters, people: PersonFilter,
                              order_direction: OrderDirection = OrderDirection.desc) -> list[str]: ...


class TextEncoder(Protocol):
    async def encode_text(self, url: str, text: str, model_name: str) -> list[float]: ...


class AccessControl(Protocol):
    async def require_permission(self, user_id: str, permission: Permission, resource_id: str) -> None: ...

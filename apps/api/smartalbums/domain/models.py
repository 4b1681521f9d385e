from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from smartalbums.schemas.search_spec import SearchSpecification


@dataclass(frozen=True)
class Face:
    face_id: str
    person_id: Optional[str] = None
    person_name: Optional[str] = None


@dataclass(frozen=True)
class Asset:
    """Read-only view of an asset with the derived data matching needs."""
    asset_id: str
    owner_id: str
    faces: tuple[Face, ...] = ()
    taken_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def person_ids(self) -> frozenset[str]:
        return frozenset(f.person_id for f in self.faces if f.person_id)


@dataclass(frozen=True)
class Album:
    album_id: str
    owner_id: str
    album_name: str = "Untitled Album"
    thumbnail_asset_id: Optional[str] = None
    search: Optional["SearchSpecification"] = None
    asset_ids: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_smart(self) -> bool:
        return self.search is not None and not self.search.is_empty()

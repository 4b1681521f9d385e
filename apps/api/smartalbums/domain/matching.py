"""
Matching queries derived from a stored search specification.

A specification is read once and turned into exactly one of two query
variants. Filters belonging to the other variant are dropped at that
point, so downstream code never has to decide which fields apply.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Iterable, Optional, Union

from smartalbums.core.enums import AssetType
from smartalbums.core.pagination import PageRequest


@dataclass(frozen=True)
class PersonFilter:
    """People an asset must depict.

    ``together`` requires every listed person, otherwise one is enough.
    An empty filter does not narrow the search.
    """
    person_ids: frozenset[str] = frozenset()
    together: bool = False

    @classmethod
    def of(cls, person_ids: Optional[Iterable[str]], together: Optional[bool] = None) -> "PersonFilter":
        return cls(frozenset(person_ids or ()), bool(together))

    def __bool__(self) -> bool:
        return bool(self.person_ids)


@dataclass(frozen=True)
class MetadataFilters:
    library_id: Optional[str] = None
    device_id: Optional[str] = None
    type: Optional[AssetType] = None

    is_archived: Optional[bool] = None
    with_archived: Optional[bool] = None
    is_encoded: Optional[bool] = None
    is_external: Optional[bool] = None
    is_favorite: Optional[bool] = None
    is_motion: Optional[bool] = None
    is_offline: Optional[bool] = None
    is_read_only: Optional[bool] = None
    is_visible: Optional[bool] = None
    with_deleted: Optional[bool] = None
    with_exif: Optional[bool] = None
    is_not_in_album: Optional[bool] = None

    created_before: Optional[datetime] = None
    created_after: Optional[datetime] = None
    updated_before: Optional[datetime] = None
    updated_after: Optional[datetime] = None
    trashed_before: Optional[datetime] = None
    trashed_after: Optional[datetime] = None
    taken_before: Optional[datetime] = None
    taken_after: Optional[datetime] = None

    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    lens_model: Optional[str] = None

    def active(self) -> dict[str, object]:
        """Only the filters that were actually set."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass(frozen=True)
class SemanticQuery:
    text: str
    people: PersonFilter = field(default_factory=PersonFilter)
    page: PageRequest = field(default_factory=lambda: PageRequest(1, 100))


@dataclass(frozen=True)
class MetadataQuery:
    filters: MetadataFilters = field(default_factory=MetadataFilters)
    people: PersonFilter = field(default_factory=PersonFilter)
    page: PageRequest = field(default_factory=lambda: PageRequest(1, 250))


SearchQuery = Union[SemanticQuery, MetadataQuery]

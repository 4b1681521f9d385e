from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from smartalbums.core.enums import AssetType
from smartalbums.core.errors import SearchSpecValidationError
from smartalbums.core.pagination import PageRequest
from smartalbums.domain.matching import MetadataFilters, MetadataQuery, PersonFilter, SearchQuery, SemanticQuery

_RANGES = ("created", "updated", "trashed", "taken")

class SearchSpecification(BaseModel):
    """Persisted description of which assets belong in a smart album."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    query: Optional[str] = None
    person_ids: List[str] = []
    people_together: Optional[bool] = None

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

    page: Optional[int] = Field(default=None, ge=1)
    size: Optional[int] = Field(default=None, ge=1, le=1000)

    @model_validator(mode="after")
    def _check_conflicts(self) -> "SearchSpecification":
        errors = []
        for name in _RANGES:
            after = getattr(self, f"{name}_after")
            before = getattr(self, f"{name}_before")
            if after is not None and before is not None and _as_utc(after) > _as_utc(before):
                errors.append(f"{name}After must not be later than {name}Before")
        if self.with_deleted is False and (self.trashed_after or self.trashed_before):
            errors.append("trashed date filters require withDeleted")
        if self.is_archived is True and self.with_archived is False:
            errors.append("isArchived conflicts with withArchived=false")
        if self.is_empty():
            errors.append("a smart search needs a query, people or at least one filter")
        if errors:
            raise ValueError("; ".join(errors))
        return self

    @property
    def semantic(self) -> bool:
        return bool(self.query and self.query.strip())

    def metadata_filters(self) -> MetadataFilters:
        return MetadataFilters(**self.model_dump(
            exclude={"query", "person_ids", "people_together", "page", "size"}
        ))

    def is_empty(self) -> bool:
        return not self.semantic and not self.person_ids and not self.metadata_filters().active()

    def to_query(self, semantic_page_size: int = 100, metadata_page_size: int = 250) -> SearchQuery:
        """Pick the matching strategy once; filters of the other kind are dropped."""
        people = PersonFilter.of(self.person_ids, self.people_together)
        if self.semantic:
            page = PageRequest(self.page or 1, self.size or semantic_page_size)
            return SemanticQuery(text=self.query.strip(), people=people, page=page)
        page = PageRequest(self.page or 1, self.size or metadata_page_size)
        return MetadataQuery(filters=self.metadata_filters(), people=people, page=page)


def parse_search_spec(data: Mapping[str, Any] | SearchSpecification) -> SearchSpecification:
    """Validate raw input into a specification, raising SearchSpecValidationError on failure."""
    if isinstance(data, SearchSpecification):
        data = data.model_dump(by_alias=True, exclude_none=True)
    try:
        return SearchSpecification.model_validate(data)
    except ValidationError as e:
        raise SearchSpecValidationError([_format_error(err) for err in e.errors()]) from e


def _format_error(err: Mapping[str, Any]) -> str:
    loc = ".".join(str(p) for p in err.get("loc", ()))
    msg = str(err.get("msg", "invalid value"))
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return f"{loc}: {msg}" if loc else msg


def _as_utc(value: datetime) -> datetime:
    # naive values are read as UTC so mixed inputs stay comparable
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value

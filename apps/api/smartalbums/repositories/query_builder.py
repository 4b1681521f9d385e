from typing import Any, List, Sequence

from sqlalchemy import and_, func, select
from sqlalchemy.sql import Select

from smartalbums.core.enums import OrderDirection
from smartalbums.domain.matching import MetadataFilters, PersonFilter
from smartalbums.repositories.tables import albums_assets, assets, exif, faces

_FLAG_COLUMNS = ("is_archived", "is_encoded", "is_external", "is_favorite",
                 "is_motion", "is_offline", "is_read_only", "is_visible")
_EXIF_COLUMNS = ("city", "state", "country", "make", "model", "lens_model")
_DATE_RANGES = (("created", "created_at"), ("updated", "updated_at"),
                ("trashed", "deleted_at"), ("taken", "taken_at"))

def build_base_query(owner_ids: Sequence[str]) -> Select:
    return select(assets.c.asset_id).where(assets.c.owner_id.in_(list(owner_ids)))

def build_person_condition(people: PersonFilter) -> Any:
    """Condition for the person filter, or None when it does not narrow anything."""
    if not people:
        return None
    ids = sorted(people.person_ids)
    if people.together:
        # every requested person must appear on the asset
        matched = (
            select(func.count(func.distinct(faces.c.person_id)))
            .where(and_(faces.c.asset_id == assets.c.asset_id, faces.c.person_id.in_(ids)))
            .scalar_subquery()
        )
        return matched == len(ids)
    return select(faces.c.asset_id).where(
        and_(faces.c.asset_id == assets.c.asset_id, faces.c.person_id.in_(ids))
    ).exists()

def build_metadata_conditions(filters: MetadataFilters) -> List[Any]:
    where = []
    # flags
    for name in _FLAG_COLUMNS:
        val = getattr(filters, name)
        if val is not None:
            where.append(assets.c[name] == val)
    if filters.is_archived is None and not filters.with_archived:
        where.append(assets.c.is_archived.is_(False))
    if not filters.with_deleted:
        where.append(assets.c.deleted_at.is_(None))
    # plain equality
    for name in ("library_id", "device_id"):
        val = getattr(filters, name)
        if val is not None:
            where.append(assets.c[name] == val)
    if filters.type is not None:
        where.append(assets.c.type == str(filters.type))
    # date ranges
    for prefix, column in _DATE_RANGES:
        after = getattr(filters, f"{prefix}_after")
        before = getattr(filters, f"{prefix}_before")
        if after is not None:
            where.append(assets.c[column] >= after)
        if before is not None:
            where.append(assets.c[column] <= before)
    # exif strings
    exif_conds = [exif.c[name] == getattr(filters, name)
                  for name in _EXIF_COLUMNS if getattr(filters, name) is not None]
    if exif_conds or filters.with_exif:
        where.append(select(exif.c.asset_id).where(
            and_(exif.c.asset_id == assets.c.asset_id, *exif_conds)
        ).exists())
    # not in any album
    if filters.is_not_in_album:
        where.append(~select(albums_assets.c.asset_id).where(
            albums_assets.c.asset_id == assets.c.asset_id
        ).exists())
    return where

def build_metadata_query(owner_ids: Sequence[str], filters: MetadataFilters,
                         people: PersonFilter, order_direction: OrderDirection) -> Select:
    where = build_metadata_conditions(filters)
    person_cond = build_person_condition(people)
    if person_cond is not None:
        where.append(person_cond)
    sel = build_base_query(owner_ids)
    if where:
        sel = sel.where(and_(*where))
    return apply_capture_order(sel, order_direction)

def apply_capture_order(sel: Select, order_direction: OrderDirection) -> Select:
    """Order by capture time, falling back to creation time, then asset id."""
    captured = func.coalesce(assets.c.taken_at, assets.c.created_at)
    if order_direction == OrderDirection.asc:
        return sel.order_by(captured.asc(), assets.c.asset_id.asc())
    return sel.order_by(captured.desc(), assets.c.asset_id.desc())

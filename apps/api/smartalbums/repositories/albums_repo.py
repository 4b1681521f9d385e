import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy import func, insert, select, update
from sqlalchemy.engine import Row
from sqlalchemy.orm import Session

from smartalbums.core.errors import NotFound
from smartalbums.domain.models import Album
from smartalbums.repositories.base import SqlStore
from smartalbums.repositories.tables import albums, albums_assets
from smartalbums.schemas.search_spec import SearchSpecification

logger = logging.getLogger(__name__)


class SqlAlbumStore(SqlStore):

    async def get_by_id(self, album_id: str) -> Optional[Album]:
        def _get(db: Session) -> Optional[Album]:
            row = db.execute(select(albums).where(albums.c.album_id == album_id)).first()
            if row is None:
                return None
            return self._to_album(row, self._asset_ids(db, album_id))
        return await self._run(_get)

    async def get_smart_albums_owned_by(self, owner_id: str) -> List[Album]:
        def _get(db: Session) -> List[Album]:
            rows = db.execute(
                select(albums)
                .where(albums.c.owner_id == owner_id, albums.c.smart_search.is_not(None))
                .order_by(albums.c.created_at, albums.c.album_id)
            ).all()
            result = []
            for row in rows:
                album = self._to_album(row)
                if album.is_smart:
                    result.append(album)
            return result
        return await self._run(_get)

    async def get_asset_ids(self, album_id: str) -> frozenset[str]:
        return await self._run(lambda db: self._asset_ids(db, album_id))

    async def add_asset_ids(self, album_id: str, asset_ids: Sequence[str]) -> List[str]:
        """Insert the missing memberships in a single transaction."""
        wanted = list(dict.fromkeys(asset_ids))

        def _add(db: Session) -> List[str]:
            with db.begin():
                album = db.execute(
                    select(albums.c.thumbnail_asset_id).where(albums.c.album_id == album_id)
                ).first()
                if album is None:
                    raise NotFound("album", album_id)
                existing = self._asset_ids(db, album_id, wanted)
                added = [aid for aid in wanted if aid not in existing]
                if not added:
                    return []
                db.execute(insert(albums_assets), [{"album_id": album_id, "asset_id": aid} for aid in added])
                values: Dict[str, Any] = {"updated_at": func.now()}
                if album.thumbnail_asset_id is None:
                    values["thumbnail_asset_id"] = added[0]
                db.execute(update(albums).where(albums.c.album_id == album_id).values(**values))
                return added
        return await self._run(_add)

    async def update(self, album_id: str, *, album_name: Optional[str] = None,
                     search: Optional[SearchSpecification] = None) -> Album:
        values: Dict[str, Any] = {"updated_at": func.now()}
        if album_name is not None:
            values["album_name"] = album_name
        if search is not None:
            values["smart_search"] = search.model_dump(mode="json", by_alias=True, exclude_none=True)

        def _update(db: Session) -> None:
            with db.begin():
                result = db.execute(update(albums).where(albums.c.album_id == album_id).values(**values))
                if result.rowcount == 0:
                    raise NotFound("album", album_id)
        await self._run(_update)

        album = await self.get_by_id(album_id)
        if album is None:
            raise NotFound("album", album_id)
        return album

    def _asset_ids(self, db: Session, album_id: str, within: Optional[List[str]] = None) -> frozenset[str]:
        query = select(albums_assets.c.asset_id).where(albums_assets.c.album_id == album_id)
        if within is not None:
            query = query.where(albums_assets.c.asset_id.in_(within))
        return frozenset(db.execute(query).scalars())

    def _to_album(self, row: Row, asset_ids: frozenset[str] = frozenset()) -> Album:
        search = None
        if row.smart_search is not None:
            try:
                search = SearchSpecification.model_validate(row.smart_search)
            except ValidationError as e:
                logger.warning("Ignoring invalid smart search on album %s: %s", row.album_id, e)
        return Album(
            album_id=row.album_id,
            owner_id=row.owner_id,
            album_name=row.album_name,
            thumbnail_asset_id=row.thumbnail_asset_id,
            search=search,
            asset_ids=asset_ids,
        )

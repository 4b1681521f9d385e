from typing import Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.engine import Row
from sqlalchemy.orm import Session

from smartalbums.core.enums import OrderDirection
from smartalbums.domain.matching import PersonFilter
from smartalbums.domain.models import Asset, Face
from smartalbums.repositories.base import SqlStore
from smartalbums.repositories.query_builder import apply_capture_order, build_base_query, build_person_condition
from smartalbums.repositories.tables import assets, faces, people


class SqlAssetStore(SqlStore):

    async def get_by_id(self, asset_id: str) -> Optional[Asset]:
        def _get(db: Session) -> Optional[Asset]:
            row = db.execute(
                select(assets.c.asset_id, assets.c.owner_id, assets.c.taken_at, assets.c.created_at)
                .where(assets.c.asset_id == asset_id)
            ).first()
            if row is None:
                return None
            return self._hydrate(db, [row])[0]
        return await self._run(_get)

    async def get_all_by_person_ids(self, owner_id: str, person_ids: Sequence[str], together: bool) -> List[Asset]:
        """All of the owner's live assets depicting the given people."""
        person_filter = PersonFilter.of(person_ids, together)
        if not person_filter:
            return []

        def _get(db: Session) -> List[Asset]:
            query = (
                build_base_query([owner_id])
                .add_columns(assets.c.owner_id, assets.c.taken_at, assets.c.created_at)
                .where(assets.c.deleted_at.is_(None), build_person_condition(person_filter))
            )
            rows = list(db.execute(apply_capture_order(query, OrderDirection.desc)).all())
            return self._hydrate(db, rows)
        return await self._run(_get)

    def _hydrate(self, db: Session, rows: List[Row]) -> List[Asset]:
        """Attach faces (and the people they belong to) to asset rows."""
        if not rows:
            return []
        ids = [r.asset_id for r in rows]
        faces_map: Dict[str, List[Face]] = {aid: [] for aid in ids}
        for r in db.execute(
            select(faces.c.asset_id, faces.c.face_id, faces.c.person_id, people.c.name)
            .select_from(faces.outerjoin(people, faces.c.person_id == people.c.person_id))
            .where(faces.c.asset_id.in_(ids))
            .order_by(faces.c.face_id)
        ).all():
            faces_map[r.asset_id].append(Face(face_id=r.face_id, person_id=r.person_id, person_name=r.name))
        return [
            Asset(
                asset_id=r.asset_id,
                owner_id=r.owner_id,
                faces=tuple(faces_map[r.asset_id]),
                taken_at=r.taken_at,
                created_at=r.created_at,
            )
            for r in rows
        ]

from typing import List, Sequence

import numpy as np
from sqlalchemy import and_
from sqlalchemy.orm import Session

from smartalbums.core.enums import OrderDirection
from smartalbums.core.pagination import PageRequest, slice_page
from smartalbums.domain.matching import MetadataFilters, PersonFilter
from smartalbums.repositories.base import SqlStore
from smartalbums.repositories.query_builder import build_base_query, build_metadata_query, build_person_condition
from smartalbums.repositories.tables import assets, embeddings


class SqlSearchBackend(SqlStore):
    """Metadata search in SQL, similarity ranking over stored CLIP embeddings."""

    component = "search backend"

    async def search_metadata(self, page: PageRequest, *, owner_ids: Sequence[str],
                              filters: MetadataFilters, people: PersonFilter,
                              order_direction: OrderDirection = OrderDirection.desc) -> List[str]:
        query = (
            build_metadata_query(owner_ids, filters, people, order_direction)
            .offset(page.offset)
            .limit(page.size)
        )
        return await self._run(lambda db: list(db.execute(query).scalars()))

    async def search_smart(self, page: PageRequest, *, owner_ids: Sequence[str],
                           embedding: Sequence[float], people: PersonFilter) -> List[str]:
        where = [assets.c.deleted_at.is_(None)]
        person_cond = build_person_condition(people)
        if person_cond is not None:
            where.append(person_cond)
        query = (
            build_base_query(owner_ids)
            .add_columns(embeddings.c.embedding)
            .join_from(assets, embeddings, embeddings.c.asset_id == assets.c.asset_id)
            .where(and_(*where))
        )

        def _search(db: Session) -> List[str]:
            rows = db.execute(query).all()
            return slice_page(rank_by_similarity(embedding, [(r.asset_id, r.embedding) for r in rows]), page)
        return await self._run(_search)


def rank_by_similarity(target: Sequence[float], candidates: Sequence[tuple[str, Sequence[float]]]) -> List[str]:
    """Asset ids ordered by cosine similarity to ``target``, best first; ties by asset id."""
    if not candidates:
        return []
    query = np.asarray(target, dtype=np.float32)
    dim = query.shape[0]
    usable = [(aid, vec) for aid, vec in candidates if len(vec) == dim]
    if not usable:
        return []
    matrix = np.asarray([vec for _, vec in usable], dtype=np.float32)
    norms = np.linalg.norm(matrix, axis=1) * (np.linalg.norm(query) or 1.0)
    norms[norms == 0] = 1.0
    scores = matrix @ query / norms
    order = sorted(range(len(usable)), key=lambda i: (-float(scores[i]), usable[i][0]))
    return [usable[i][0] for i in order]

import uuid
from datetime import datetime, timezone
from typing import List, Optional

import pytest
from sqlalchemy import create_engine, insert
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from smartalbums.repositories.tables import albums, albums_assets, assets, embeddings, exif, faces, metadata, people


class Catalog:
    """Seeds an in-memory catalog for the SQLAlchemy store tests."""

    def __init__(self, sessions: sessionmaker):
        self.sessions = sessions

    def _insert(self, table, **row):
        with self.sessions.begin() as db:
            db.execute(insert(table).values(**row))

    def person(self, person_id: str, name: str, owner_id: str = "owner1") -> str:
        self._insert(people, person_id=person_id, name=name, owner_id=owner_id)
        return person_id

    def asset(self, asset_id: str, owner_id: str = "owner1", *, person_ids: List[str] = (),
              embedding: Optional[List[float]] = None, exif_row: Optional[dict] = None, **columns) -> str:
        columns.setdefault("created_at", datetime(2024, 1, 1, tzinfo=timezone.utc))
        columns.setdefault("updated_at", columns["created_at"])
        self._insert(assets, asset_id=asset_id, owner_id=owner_id, **columns)
        for pid in person_ids:
            self._insert(faces, face_id=str(uuid.uuid4()), asset_id=asset_id, person_id=pid)
        if embedding is not None:
            self._insert(embeddings, asset_id=asset_id, embedding=embedding)
        if exif_row is not None:
            self._insert(exif, asset_id=asset_id, **exif_row)
        return asset_id

    def album(self, album_id: str, owner_id: str = "owner1", *, smart_search: Optional[dict] = None,
              asset_ids: List[str] = (), **columns) -> str:
        self._insert(albums, album_id=album_id, owner_id=owner_id, smart_search=smart_search, **columns)
        for aid in asset_ids:
            self._insert(albums_assets, album_id=album_id, asset_id=aid)
        return album_id


@pytest.fixture
def sessions() -> sessionmaker:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)
    engine.dispose()


@pytest.fixture
def catalog(sessions) -> Catalog:
    return Catalog(sessions)

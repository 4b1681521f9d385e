# features/environment.py
from typing import List

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from smartalbums.core.config import MachineLearningConfig, StaticConfigProvider, SystemConfig
from smartalbums.core.enums import Feature
from smartalbums.jobs.barrier import CompletionBarrier
from smartalbums.jobs.queue import InMemoryJobQueue
from smartalbums.repositories.albums_repo import SqlAlbumStore
from smartalbums.repositories.assets_repo import SqlAssetStore
from smartalbums.repositories.search_repo import SqlSearchBackend
from smartalbums.repositories.tables import metadata
from smartalbums.services.access import OwnerAccessControl
from smartalbums.services.smart_album_service import SmartAlbumService


class KeywordEncoder:
    """Stands in for the ML service: beach-like text points one way, everything else the other."""

    def __init__(self):
        self.calls: List[str] = []

    async def encode_text(self, url: str, text: str, model_name: str) -> List[float]:
        self.calls.append(text)
        if "beach" in text or "sunset" in text:
            return [1.0, 0.0]
        return [0.0, 1.0]


def before_scenario(context, scenario):
    # SQLite in-memory DB, fresh per scenario
    context.engine = create_engine("sqlite+pysqlite:///:memory:", future=True,
                                   connect_args={"check_same_thread": False}, poolclass=StaticPool)
    metadata.create_all(context.engine)
    context.Session = sessionmaker(bind=context.engine, autoflush=False, expire_on_commit=False, future=True)

    context.owner_id = "owner1"
    context.queue = InMemoryJobQueue()
    context.pending_jobs = []
    context.encoder = KeywordEncoder()
    context.smart_search_enabled = True
    context.last_status = None
    context.last_error = None

    albums = SqlAlbumStore(context.Session)
    context.albums = albums
    context.build_service = lambda: SmartAlbumService(
        assets=SqlAssetStore(context.Session),
        albums=albums,
        search=SqlSearchBackend(context.Session),
        encoder=context.encoder,
        barrier=CompletionBarrier(context.queue, poll_interval=0.01, timeout=5),
        config_provider=StaticConfigProvider(SystemConfig(
            features=frozenset({Feature.smart_search} if context.smart_search_enabled else ()),
            machine_learning=MachineLearningConfig("http://ml:3003", "ViT-B-32__openai"),
        )),
        access=OwnerAccessControl(albums),
    )


def after_scenario(context, scenario):
    context.engine.dispose()

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from smartalbums.core.config import SettingsConfigProvider, get_settings
from smartalbums.jobs.barrier import CompletionBarrier
from smartalbums.jobs.queue import InMemoryJobQueue, JobQueue
from smartalbums.repositories.albums_repo import SqlAlbumStore
from smartalbums.repositories.assets_repo import SqlAssetStore
from smartalbums.repositories.search_repo import SqlSearchBackend
from smartalbums.services.access import OwnerAccessControl
from smartalbums.services.encoder import HttpTextEncoder
from smartalbums.services.smart_album_service import SmartAlbumService

# In tests the FastAPI dependency is overridden. These defaults are only for dev/prod.

@lru_cache
def get_session_factory() -> sessionmaker:
    engine = create_engine(get_settings().database_url, future=True)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)

@lru_cache
def get_job_queue() -> JobQueue:
    # single-node queue: only pipeline stages running in this process report into it
    return InMemoryJobQueue()

@lru_cache
def get_smart_album_service() -> SmartAlbumService:
    settings = get_settings()
    sessions = get_session_factory()
    albums = SqlAlbumStore(sessions)
    return SmartAlbumService(
        assets=SqlAssetStore(sessions),
        albums=albums,
        search=SqlSearchBackend(sessions),
        encoder=HttpTextEncoder(timeout=settings.encoder_timeout),
        barrier=CompletionBarrier(
            get_job_queue(),
            poll_interval=settings.barrier_poll_interval,
            timeout=settings.barrier_timeout,
        ),
        config_provider=SettingsConfigProvider(settings),
        access=OwnerAccessControl(albums),
    )

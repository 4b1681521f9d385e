import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Iterable, List, Optional, Sequence

from smartalbums.repositories.interfaces import AlbumStore

logger = logging.getLogger(__name__)


def compute_additions(current: Iterable[str], candidates: Sequence[str]) -> List[str]:
    """Candidates not yet in the album, in candidate order, without repeats."""
    present = set(current)
    additions = []
    for asset_id in candidates:
        if asset_id not in present:
            present.add(asset_id)
            additions.append(asset_id)
    return additions


class KeyedLock:
    """One asyncio.Lock per key, dropped again once nobody holds or waits on it."""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class MembershipReconciler:
    """Merges matched assets into an album. Additive only: nothing is ever removed."""

    def __init__(self, albums: AlbumStore, locks: Optional[KeyedLock] = None):
        self.albums = albums
        self.locks = locks or KeyedLock()

    async def reconcile(self, album_id: str, candidate_ids: Sequence[str]) -> frozenset[str]:
        if not candidate_ids:
            return frozenset()
        # read-then-write must not interleave with another run on the same album
        async with self.locks.hold(album_id):
            current = await self.albums.get_asset_ids(album_id)
            additions = compute_additions(current, candidate_ids)
            if not additions:
                logger.debug("Album %s already holds all %d candidates", album_id, len(candidate_ids))
                return frozenset()
            added = await self.albums.add_asset_ids(album_id, additions)
        logger.info("Added %d assets to album %s", len(added), album_id)
        return frozenset(added)

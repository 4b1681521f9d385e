import asyncio
from typing import Callable, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from smartalbums.core.errors import InfrastructureUnavailable

T = TypeVar("T")


class SqlStore:
    """Runs blocking SQLAlchemy work in a worker thread, one session per call."""

    component = "database"

    def __init__(self, sessions: sessionmaker):
        self.sessions = sessions

    async def _run(self, fn: Callable[[Session], T]) -> T:
        return await asyncio.to_thread(self._call, fn)

    def _call(self, fn: Callable[[Session], T]) -> T:
        try:
            with self.sessions() as db:
                return fn(db)
        except OperationalError as e:
            raise InfrastructureUnavailable(self.component, str(e.orig)) from e

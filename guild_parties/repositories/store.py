# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Transaction boundary shared by every repository.

All connections are handed out under one re-entrant lock, so a read-validate-
write sequence inside ``begin()`` is never interleaved with another writer
in this process. Writers in other processes are caught by the version check
in ``PartyRepository.update_slots``.
"""
import threading
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

from guild_parties.core.database import init_schema


class Store:
    def __init__(self, engine: Engine):
        self._engine = engine
        self._lock = threading.RLock()

    @contextmanager
    def begin(self) -> Iterator[Connection]:
        """Open a transaction; it commits on exit and rolls back on any exception."""
        with self._lock:
            with self._engine.begin() as conn:
                yield conn

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        with self._lock:
            with self._engine.connect() as conn:
                yield conn

    def init_schema(self) -> None:
        with self._lock:
            init_schema(self._engine)

    def verify_connection(self) -> None:
        with self.connect() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self) -> None:
        self._engine.dispose()

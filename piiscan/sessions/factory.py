from piiscan.config.settings import Settings
from piiscan.database.connection import Database
from piiscan.sessions.base import SessionStore
from piiscan.sessions.memory import InMemorySessionStore
from piiscan.sessions.postgres import PostgresSessionStore


class SessionStoreFactory:
    """Creates the session store matching settings.queue_backend."""

    @classmethod
    def create(cls, settings: Settings, database: Database | None = None) -> SessionStore:
        backend = settings.queue_backend.lower()
        if backend == "memory":
            return InMemorySessionStore()
        if backend == "postgres":
            if database is None:
                raise ValueError("queue_backend=postgres requires a Database")
            return PostgresSessionStore(database)
        raise ValueError(f"Unknown queue backend '{backend}'. Choose from: ['memory', 'postgres']")

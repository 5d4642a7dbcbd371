# =======================================================================================
# gatekeeper/database.py - Database Management
# =======================================================================================
import logging
from contextlib import contextmanager
from typing import Optional
from sqlalchemy import Column, Index, MetaData, String, Table, Text, create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool, StaticPool

from .config import Config, config as default_config

logger = logging.getLogger(__name__)

metadata = MetaData()

# Timestamps are fixed-width ISO-8601 UTC strings (see time_utils.STORAGE_FORMAT);
# sets and payloads are JSON text.
users_table = Table(
    "users", metadata,
    Column("user_id", String(64), primary_key=True),
    Column("username", String(100), nullable=False, unique=True),
    Column("role", String(32), nullable=False),
    Column("allowed_checkpoints", Text, nullable=False, default="[]"),
    Column("supervisor_id", String(64), nullable=True),
    Column("last_login", String(32), nullable=True),
    Column("created_at", String(32), nullable=False),
    Index("ix_users_supervisor_id", "supervisor_id"),
)

checkpoints_table = Table(
    "checkpoints", metadata,
    Column("checkpoint_id", String(64), primary_key=True),
    Column("name", String(200), nullable=False),
    Column("location", String(200), nullable=False, default=""),
)

entries_table = Table(
    "entries", metadata,
    Column("record_id", String(128), primary_key=True),
    Column("checkpoint_id", String(64), nullable=False),
    Column("entry_type", String(32), nullable=False),
    Column("logging_user_id", String(64), nullable=False),
    Column("client_timestamp", String(32), nullable=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Column("status", String(16), nullable=False),
    Column("payload", Text, nullable=False, default="{}"),
    Index("ix_entries_updated_at", "updated_at"),
    Index("ix_entries_logging_user_id", "logging_user_id"),
)

credentials_table = Table(
    "credentials", metadata,
    Column("user_id", String(64), primary_key=True),
    Column("password_hash", String(255), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


class DatabaseManager:
    """Manages database connections and transactions."""

    def __init__(self, settings: Optional[Config] = None):
        settings = settings or default_config
        self.url = settings.DB_URL
        self.engine: Engine = self._build_engine(settings)

    @staticmethod
    def _build_engine(settings: Config) -> Engine:
        url = settings.DB_URL
        if url.startswith("sqlite"):
            # In-memory SQLite lives inside one connection; share it across threads.
            in_memory = url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url
            kwargs = {"connect_args": {"check_same_thread": False}, "future": True}
            if in_memory:
                kwargs["poolclass"] = StaticPool
            return create_engine(url, **kwargs)

        return create_engine(
            url,
            poolclass=QueuePool,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
            isolation_level="READ COMMITTED",
            future=True,
        )

    def init_schema(self) -> None:
        """Create all tables and indexes that do not exist yet."""
        metadata.create_all(self.engine)
        logger.info("Database schema ready (%s)", self.engine.url.render_as_string(hide_password=True))

    def drop_schema(self) -> None:
        metadata.drop_all(self.engine)

    @contextmanager
    def get_connection(self):
        """Get a database connection with automatic cleanup."""
        with self.engine.begin() as conn:
            yield conn

    def execute_query(self, query: str, params: dict = None):
        """Execute a query with parameters."""
        with self.get_connection() as conn:
            return conn.execute(text(query), params or {})

    def fetch_one(self, query: str, params: dict = None):
        """Fetch a single result."""
        with self.get_connection() as conn:
            result = conn.execute(text(query), params or {})
            return result.mappings().first()

    def fetch_all(self, query: str, params: dict = None):
        """Fetch all results."""
        with self.get_connection() as conn:
            result = conn.execute(text(query), params or {})
            return result.mappings().all()

    def dispose(self) -> None:
        self.engine.dispose()

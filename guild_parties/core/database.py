# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""SQLAlchemy engine factory and schema bootstrap."""
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from guild_parties.core.config import settings

# Member ids are never reused, so a stale view cannot address a new member.
MEMBER_ID_COLUMNS = {
    "sqlite": "id INTEGER PRIMARY KEY AUTOINCREMENT",
    "postgresql": "id SERIAL PRIMARY KEY",
}

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS members (
        {member_id},
        name VARCHAR(255) NOT NULL,
        class_name VARCHAR(100) NOT NULL DEFAULT '',
        created_at VARCHAR(64) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS party_groups (
        id VARCHAR(36) PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        type VARCHAR(16) NOT NULL,
        description TEXT,
        party_ids TEXT NOT NULL DEFAULT '[]',
        created_at VARCHAR(64) NOT NULL,
        updated_at VARCHAR(64) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS parties (
        id VARCHAR(36) PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        type VARCHAR(16) NOT NULL,
        group_id VARCHAR(36),
        member_ids TEXT NOT NULL,
        version INTEGER NOT NULL DEFAULT 1,
        seq INTEGER NOT NULL DEFAULT 0,
        created_at VARCHAR(64) NOT NULL,
        updated_at VARCHAR(64) NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_parties_type ON parties (type)",
)

_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def build_engine(url: str | None = None) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across threads."""
    url = url or settings.DATABASE_URL
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in _MEMORY_URLS:
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=settings.POOL_SIZE,
        max_overflow=settings.MAX_OVERFLOW,
        pool_recycle=settings.POOL_RECYCLE,
    )


def schema_statements(dialect: str) -> list[str]:
    member_id = MEMBER_ID_COLUMNS.get(dialect, "id INTEGER GENERATED ALWAYS AS IDENTITY PRIMARY KEY")
    return [s.replace("{member_id}", member_id) for s in SCHEMA_STATEMENTS]


def init_schema(engine: Engine) -> None:
    with engine.begin() as conn:
        for statement in schema_statements(engine.dialect.name):
            conn.execute(text(statement))


engine = build_engine()

from collections.abc import AsyncGenerator
from typing import Any, Dict
from sqlalchemy import event
from sqlalchemy.engine.url import make_url, URL
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from counterdesk.core.settings import settings


def build_engine(raw: str, *, echo: bool = False) -> AsyncEngine:
    """
    PostgreSQL URLs are rebuilt without query string and forced onto asyncpg
    (sslmode/channel_binding must not reach asyncpg.connect()).
    Anything else (sqlite+aiosqlite) is used as given.
    """
    u = make_url(raw)
    kwargs: Dict[str, Any] = {"echo": echo}

    if u.get_backend_name() == "postgresql":
        clean_url: URL = URL.create(
            drivername="postgresql+asyncpg",
            username=u.username,
            password=u.password,
            host=u.host,
            port=u.port,
            database=u.database,
        )
        url = clean_url.render_as_string(hide_password=False)
        kwargs.update(
            poolclass=NullPool,
            pool_pre_ping=True,
            execution_options={"isolation_level": "READ COMMITTED"},
            connect_args={
                "ssl": True,
                "statement_cache_size": 0,
            },
        )
    else:
        url = u.render_as_string(hide_password=False)

    engine = create_async_engine(url, **kwargs)
    if u.get_backend_name() == "sqlite":
        enable_sqlite_foreign_keys(engine)
    return engine


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite leaves FOREIGN KEY constraints unchecked unless each connection opts in."""

    @event.listens_for(engine.sync_engine, "connect")
    def _fk_on(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = build_engine(
    settings.DATABASE_URL.get_secret_value(),
    echo=bool(getattr(settings, "DEBUG", False)),
)

async_session = async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False, class_=AsyncSession)

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    session: AsyncSession = async_session()
    try:
        yield session
    finally:
        await session.close()

async def dispose_engine() -> None:
    await engine.dispose()

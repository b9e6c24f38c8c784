from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from typing import AsyncGenerator

from app.config.settings import settings

# SQLAlchemy declarative base for models
Base = declarative_base()


def build_engine(url: str, echo: bool = False, **kwargs) -> AsyncEngine:
    """Create an async engine; SQLite URLs get explicit BEGIN handling."""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", settings.database.pool_pre_ping)
    async_engine = create_async_engine(url, echo=echo, future=True, **kwargs)

    if url.startswith("sqlite"):
        # aiosqlite defers BEGIN until the first DML; emit it ourselves so
        # rollbacks after a constraint violation cover the whole unit.
        @event.listens_for(async_engine.sync_engine, "connect")
        def _disable_driver_transactions(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(async_engine.sync_engine, "begin")
        def _emit_begin(conn):
            conn.exec_driver_sql("BEGIN")

    return async_engine


def build_session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=async_engine, autoflush=False, expire_on_commit=False
    )


engine = build_engine(settings.database.url, echo=settings.database.echo)
SessionLocal = build_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    async with SessionLocal() as session:
        yield session


async def create_all_tables(async_engine: AsyncEngine = engine) -> None:
    """Create tables for every registered model (development and tests)."""
    import app.models  # noqa: F401 - register models on Base.metadata

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from config import settings


def enable_sqlite_savepoints(engine: AsyncEngine) -> AsyncEngine:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest inside the transaction.

    The sqlite3 driver otherwise starts transactions lazily on its own,
    which breaks `session.begin_nested()`.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


# SQLite doesn't support pool sizing arguments
engine_kwargs = {"echo": settings.debug, "pool_pre_ping": True}
if settings.database_url.startswith("postgresql"):
    engine_kwargs.update(pool_size=10, max_overflow=20, pool_recycle=300)

engine = create_async_engine(settings.database_url, **engine_kwargs)
if settings.database_url.startswith("sqlite"):
    enable_sqlite_savepoints(engine)

async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()


async def get_db():
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(bind=None):
    # Import tables so they register on Base.metadata
    import models.tables  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

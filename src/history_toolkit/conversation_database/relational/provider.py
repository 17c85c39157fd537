"""
Relational 'StoreProvider' built on an SQLAlchemy async engine.

The engine's connection pool is the only shared mutable resource: it is sized once at
construction (10 persistent connections, up to 100 in total, recycled after an hour) and is
safe to share between concurrent callers. Tables are created on construction; creation is
idempotent and never alters existing tables.
"""

from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from history_toolkit.conversation_database.provider import BackendKind, StoreProvider
from history_toolkit.conversation_database.relational.attachment import SQLAttachmentDatabase
from history_toolkit.conversation_database.relational.conversation import SQLConversationDatabase
from history_toolkit.conversation_database.relational.message import SQLMessageDatabase
from history_toolkit.conversation_database.relational.message_attachment import SQLMessageAttachmentDatabase
from history_toolkit.conversation_database.relational.tables import Base
from history_toolkit.errors import BackendError
from history_toolkit.utils.logging import StoreLogger

LOGGER_NAME = "SQL"

POOL_SIZE = 10
MAX_CONNECTIONS = 100
POOL_RECYCLE_SECONDS = 3600

# Plain dialect names are mapped onto their asyncio drivers.
_ASYNC_DRIVERS = {
    "mysql": "mysql+aiomysql",
    "sqlite": "sqlite+aiosqlite",
}


def create_engine_from_dsn(dsn: str) -> AsyncEngine:
    url = make_url(dsn)
    if url.drivername in _ASYNC_DRIVERS:
        url = url.set(drivername=_ASYNC_DRIVERS[url.drivername])
    if url.get_backend_name() == "sqlite":
        return create_async_engine(url)
    return create_async_engine(
        url,
        pool_size=POOL_SIZE,
        max_overflow=MAX_CONNECTIONS - POOL_SIZE,
        pool_recycle=POOL_RECYCLE_SECONDS,
        pool_pre_ping=True,
    )


class SQLProvider(StoreProvider):
    backend = BackendKind.RELATIONAL

    def __init__(self, engine: AsyncEngine, logger: StoreLogger) -> None:
        self.engine = engine
        self.logger = logger
        session_factory = async_sessionmaker(engine, expire_on_commit=False)
        self.conversation_db = SQLConversationDatabase(session_factory, logger)
        self.message_db = SQLMessageDatabase(session_factory, logger)
        self.attachment_db = SQLAttachmentDatabase(session_factory, logger)
        self.message_attachment_db = SQLMessageAttachmentDatabase(session_factory, logger)

    @classmethod
    async def create(cls, dsn: str, debug_enabled: bool = False, log_level: str | None = None) -> "SQLProvider":
        """Connect, create missing tables and return a ready provider."""
        logger = StoreLogger(LOGGER_NAME, debug_enabled, log_level)
        logger.info("Initialising relational provider")
        try:
            engine = create_engine_from_dsn(dsn)
        except (SQLAlchemyError, ImportError) as exc:
            logger.error(f"Invalid connection string: {exc}")
            raise BackendError(f"Invalid connection string: {exc}") from exc

        try:
            async with engine.begin() as connection:
                await connection.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            await engine.dispose()
            logger.error(f"Schema creation failed: {exc}")
            raise BackendError(f"Schema creation failed: {exc}") from exc

        logger.info("Relational provider ready")
        return cls(engine, logger)

    async def close(self) -> None:
        self.logger.info("Closing relational provider")
        await self.engine.dispose()

"""
Key-value 'StoreProvider' built on a 'redis.asyncio' client.

The client is created from a Redis URL ('redis://host:port/db') and pinged once at
construction so a wrong address fails fast instead of on the first store call.
"""

from redis.asyncio import Redis
from redis.exceptions import RedisError

from history_toolkit.conversation_database.key_value.attachment import RedisAttachmentDatabase
from history_toolkit.conversation_database.key_value.conversation import RedisConversationDatabase
from history_toolkit.conversation_database.key_value.message import RedisMessageDatabase
from history_toolkit.conversation_database.key_value.message_attachment import RedisMessageAttachmentDatabase
from history_toolkit.conversation_database.provider import BackendKind, StoreProvider
from history_toolkit.errors import BackendError
from history_toolkit.utils.logging import StoreLogger

LOGGER_NAME = "Redis"


def connect(dsn: str) -> Redis:
    return Redis.from_url(dsn, decode_responses=True)


class RedisProvider(StoreProvider):
    backend = BackendKind.KEY_VALUE

    def __init__(self, client: Redis, logger: StoreLogger) -> None:
        self.client = client
        self.logger = logger
        self.conversation_db = RedisConversationDatabase(client, logger)
        self.message_db = RedisMessageDatabase(client, logger)
        self.attachment_db = RedisAttachmentDatabase(client, logger)
        self.message_attachment_db = RedisMessageAttachmentDatabase(client, logger)

    @classmethod
    async def create(cls, dsn: str, debug_enabled: bool = False, log_level: str | None = None) -> "RedisProvider":
        """Connect, ping and return a ready provider."""
        logger = StoreLogger(LOGGER_NAME, debug_enabled, log_level)
        logger.info("Initialising key-value provider")
        try:
            client = connect(dsn)
        except ValueError as exc:
            logger.error(f"Invalid connection string: {exc}")
            raise BackendError(f"Invalid connection string: {exc}") from exc

        try:
            await client.ping()
        except RedisError as exc:
            await client.aclose()
            logger.error(f"Connection failed: {exc}")
            raise BackendError(f"Connection failed: {exc}") from exc

        logger.info("Key-value provider ready")
        return cls(client, logger)

    async def close(self) -> None:
        self.logger.info("Closing key-value provider")
        await self.client.aclose()

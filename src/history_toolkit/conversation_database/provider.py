"""
Provider abstraction and runtime configuration.

A 'StoreProvider' is the uniform handle returned by the factory: it owns one backend
connection (an SQLAlchemy engine or a Redis client) and exposes the four repositories built
on top of it. Callers construct it once, pass it explicitly to whoever needs storage and close
it when done; it also works as an async context manager.

'ProviderConfig' mirrors the caller-facing configuration: connection string, backend kind,
whether logging is enabled and at which level. 'BackendKind.parse' accepts the canonical
names plus the engine aliases callers tend to use ('mysql', 'redis', ...).
"""

import os
from abc import ABC, abstractmethod
from enum import StrEnum
from types import TracebackType
from typing import Self

from pydantic import BaseModel

from history_toolkit.conversation_database.data_models.attachment import AttachmentDatabase
from history_toolkit.conversation_database.data_models.conversation import ConversationDatabase
from history_toolkit.conversation_database.data_models.message import MessageDatabase
from history_toolkit.conversation_database.data_models.message_attachment import MessageAttachmentDatabase
from history_toolkit.errors import UnsupportedBackendError


class BackendKind(StrEnum):
    """Storage engines a provider can be built on."""

    RELATIONAL = "relational"
    KEY_VALUE = "key_value"

    @classmethod
    def parse(cls, kind: "BackendKind | str | None") -> "BackendKind":
        """Resolve a configured kind; an empty value selects the relational backend."""
        name = (kind or "").strip().lower()
        if not name:
            return cls.RELATIONAL
        try:
            return _BACKEND_ALIASES[name]
        except KeyError:
            raise UnsupportedBackendError(str(kind)) from None


_BACKEND_ALIASES: dict[str, BackendKind] = {
    "relational": BackendKind.RELATIONAL,
    "sql": BackendKind.RELATIONAL,
    "mysql": BackendKind.RELATIONAL,
    "sqlite": BackendKind.RELATIONAL,
    "key_value": BackendKind.KEY_VALUE,
    "key-value": BackendKind.KEY_VALUE,
    "kv": BackendKind.KEY_VALUE,
    "redis": BackendKind.KEY_VALUE,
}

_TRUTHY = {"1", "true", "yes", "on"}


class ProviderConfig(BaseModel):
    """Runtime configuration consumed by 'create_provider'.

    Attributes:
        connection_string: SQLAlchemy URL for the relational backend (e.g. 'mysql://user:pw@host/db'),
            Redis URL for the key-value backend (e.g. 'redis://localhost:6379/0').
        backend_kind: One of the 'BackendKind' names or aliases. Empty selects the relational backend.
        debug_enabled: Whether the backend emits log records at all.
        log_level: 'error', 'info' or 'debug'. Unknown names fall back to 'error'.
    """

    connection_string: str = ""
    backend_kind: str = ""
    debug_enabled: bool = False
    log_level: str = "info"

    @classmethod
    def from_env(cls) -> "ProviderConfig":
        """Build a config from 'HISTORY_DSN', 'HISTORY_BACKEND', 'HISTORY_DEBUG' and 'HISTORY_LOG_LEVEL'."""
        return cls(
            connection_string=os.environ.get("HISTORY_DSN", ""),
            backend_kind=os.environ.get("HISTORY_BACKEND", ""),
            debug_enabled=os.environ.get("HISTORY_DEBUG", "").strip().lower() in _TRUTHY,
            log_level=os.environ.get("HISTORY_LOG_LEVEL", "info"),
        )


class StoreProvider(ABC):
    """
    Handle over one storage backend exposing the four repositories.

    Attributes:
        backend: Which engine the repositories are built on.
        conversation_db: Repository for 'Conversation' records.
        message_db: Repository for 'Message' records.
        attachment_db: Repository for 'Attachment' records.
        message_attachment_db: Repository for 'MessageAttachment' associations.
    """

    backend: BackendKind
    conversation_db: ConversationDatabase
    message_db: MessageDatabase
    attachment_db: AttachmentDatabase
    message_attachment_db: MessageAttachmentDatabase

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying connection pool or client."""
        pass

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.close()

"""
Chat-history persistence with interchangeable relational and key-value backends.

Build a provider from configuration, then wrap it in the controller:

    from history_toolkit import HistoryController, LLMMessage, ProviderConfig, Roles, create_provider

    provider = await create_provider(ProviderConfig(connection_string="sqlite:///history.db"))
    history = HistoryController.from_provider(provider)
    await history.save_message(LLMMessage(role=Roles.USER, content="hi"), "conv-1")

Log records are disabled until a provider is created with 'debug_enabled=True'.
"""

from loguru import logger

from history_toolkit.conversation_database.controller import ConversationInput, HistoryController
from history_toolkit.conversation_database.data_models.attachment import Attachment, AttachmentDatabase
from history_toolkit.conversation_database.data_models.conversation import Conversation, ConversationDatabase
from history_toolkit.conversation_database.data_models.message import Message, MessageDatabase
from history_toolkit.conversation_database.data_models.message_attachment import (
    MessageAttachment,
    MessageAttachmentDatabase,
)
from history_toolkit.conversation_database.factory import create_provider
from history_toolkit.conversation_database.provider import BackendKind, ProviderConfig, StoreProvider
from history_toolkit.errors import (
    BackendError,
    ConflictError,
    HistoryStoreError,
    ImmutableFieldError,
    NotFoundError,
    SerializationError,
    UnsupportedBackendError,
)
from history_toolkit.llms.base import LLMMessage, Roles

logger.disable("history_toolkit")

__all__ = [
    "Attachment",
    "AttachmentDatabase",
    "BackendError",
    "BackendKind",
    "ConflictError",
    "Conversation",
    "ConversationDatabase",
    "ConversationInput",
    "HistoryController",
    "HistoryStoreError",
    "ImmutableFieldError",
    "LLMMessage",
    "Message",
    "MessageAttachment",
    "MessageAttachmentDatabase",
    "MessageDatabase",
    "NotFoundError",
    "ProviderConfig",
    "Roles",
    "SerializationError",
    "StoreProvider",
    "UnsupportedBackendError",
    "create_provider",
]

"""
History controller (Facade).

'HistoryController' is the single entry point callers use for chat history. It composes one
'ConversationDatabase' and one 'MessageDatabase' (usually both taken from the same
'StoreProvider') and adds the behaviour the raw repositories do not have:

    'save_message' - translate an 'LLMMessage' chat turn into a 'Message' and append it,
                     creating the conversation on first use and refreshing its 'updated_at'.
    'get_history'  - return a conversation's turns as 'LLMMessage' objects in 'order_seq'
                     order, creating an empty conversation when the id is new.

The remaining methods are thin conversation-management pass-throughs. Store errors are
never swallowed: a 'NotFoundError' from the repository reaches the caller unchanged.
"""

from typing import Any

from pydantic import BaseModel

from history_toolkit.conversation_database.data_models.conversation import Conversation, ConversationDatabase
from history_toolkit.conversation_database.data_models.message import Message, MessageDatabase
from history_toolkit.conversation_database.provider import StoreProvider
from history_toolkit.llms.base import LLMMessage
from history_toolkit.utils.database import generate_uid

DEFAULT_CONVERSATION_TITLE = "New Conversation"
DEFAULT_HISTORY_LIMIT = 100


class ConversationInput(BaseModel):
    title: str | None = None
    settings: dict[str, Any] | None = None


class HistoryController:
    def __init__(
        self,
        conversation_db: ConversationDatabase,
        message_db: MessageDatabase,
        provider: StoreProvider | None = None,
    ):
        self.conversation_db = conversation_db
        self.message_db = message_db
        self.provider = provider

    @classmethod
    def from_provider(cls, provider: StoreProvider) -> "HistoryController":
        """Build a controller that owns 'provider' and closes it in 'close'."""
        return cls(provider.conversation_db, provider.message_db, provider)

    async def close(self) -> None:
        if self.provider is not None:
            await self.provider.close()

    async def save_message(self, message: LLMMessage, conversation_id: str) -> Message:
        await self.conversation_db.first_or_create_conversation(conversation_id)
        saved = await self.message_db.create_message(
            Message(conversation_id=conversation_id, role=message.role, content=message.content)
        )
        await self.conversation_db.touch_conversation(conversation_id)
        return saved

    async def get_history(self, conversation_id: str, limit: int = 0) -> list[LLMMessage]:
        """Return up to 'limit' turns (100 when 0) from the start of the conversation."""
        if limit == 0:
            limit = DEFAULT_HISTORY_LIMIT
        await self.conversation_db.first_or_create_conversation(conversation_id)
        messages = await self.message_db.get_messages_by_conversation_id(conversation_id, offset=0, limit=limit)
        return [LLMMessage(role=message.role, content=message.content) for message in messages]

    async def create_conversation(self, conversation_input: ConversationInput | None = None) -> Conversation:
        conversation_input = conversation_input or ConversationInput()
        return await self.conversation_db.create_conversation(
            Conversation(
                id=generate_uid(),
                title=conversation_input.title or DEFAULT_CONVERSATION_TITLE,
                settings=conversation_input.settings or {},
            )
        )

    async def update_conversation(self, conversation_id: str, conversation_updates: ConversationInput) -> Conversation:
        conversation = await self.conversation_db.get_conversation_by_id(conversation_id)
        changes: dict[str, Any] = {}
        if conversation_updates.title is not None:
            changes["title"] = conversation_updates.title
        if conversation_updates.settings is not None:
            changes["settings"] = conversation_updates.settings
        return await self.conversation_db.update_conversation(conversation.model_copy(update=changes))

    async def get_conversation_by_id(self, conversation_id: str) -> Conversation:
        return await self.conversation_db.get_conversation_by_id(conversation_id)

    async def delete_conversation(self, conversation_id: str) -> None:
        await self.conversation_db.delete_conversation(conversation_id)

    async def list_conversations(self, offset: int = 0, limit: int = 20) -> list[Conversation]:
        return await self.conversation_db.list_conversations(offset=offset, limit=limit)

    async def archive_conversation(self, conversation_id: str) -> None:
        await self.conversation_db.archive_conversation(conversation_id)

    async def unarchive_conversation(self, conversation_id: str) -> None:
        await self.conversation_db.unarchive_conversation(conversation_id)

    async def pin_conversation(self, conversation_id: str) -> None:
        await self.conversation_db.pin_conversation(conversation_id)

    async def unpin_conversation(self, conversation_id: str) -> None:
        await self.conversation_db.unpin_conversation(conversation_id)

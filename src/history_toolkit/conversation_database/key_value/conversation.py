from history_toolkit.conversation_database.data_models.conversation import Conversation, ConversationDatabase
from history_toolkit.conversation_database.key_value.base import RedisRepository
from history_toolkit.conversation_database.key_value.keys import (
    CONVERSATIONS_KEY,
    conversation_key,
    conversation_messages_key,
    message_key,
)
from history_toolkit.utils.database import check_page
from history_toolkit.utils.time import get_current_timestamp


class RedisConversationDatabase(RedisRepository, ConversationDatabase):
    async def create_conversation(self, conversation: Conversation) -> Conversation:
        now = get_current_timestamp()
        conversation = conversation.model_copy(
            update={"created_at": conversation.created_at or now, "updated_at": conversation.updated_at or now}
        )
        with self._errors(f"Create conversation {conversation.id}"):
            await self._store(conversation)
        self.logger.info(f"Conversation {conversation.id} created")
        return conversation

    async def update_conversation(self, conversation: Conversation) -> Conversation:
        with self._errors(f"Update conversation {conversation.id}"):
            stored = await self._load(Conversation, conversation_key(conversation.id), "Conversation", conversation.id)
            updated = conversation.model_copy(
                update={"created_at": stored.created_at, "updated_at": get_current_timestamp()}
            )
            await self._store(updated)
        self.logger.info(f"Conversation {conversation.id} updated")
        return updated

    async def delete_conversation(self, conversation_id: str) -> None:
        """Cascade to the conversation's messages. Stops at the first failure; there is no rollback."""
        with self._errors(f"Delete conversation {conversation_id}"):
            if not await self.client.exists(conversation_key(conversation_id)):
                raise self._not_found("Conversation", conversation_id)
            messages_key = conversation_messages_key(conversation_id)
            message_ids = await self.client.zrange(messages_key, 0, -1)
            for message_id in message_ids:
                await self.client.delete(message_key(message_id))
            await self.client.delete(messages_key)
            await self.client.delete(conversation_key(conversation_id))
            await self.client.zrem(CONVERSATIONS_KEY, conversation_id)
        self.logger.info(f"Conversation {conversation_id} deleted with {len(message_ids)} messages")

    async def get_conversation_by_id(self, conversation_id: str) -> Conversation:
        with self._errors(f"Get conversation {conversation_id}"):
            return await self._load(Conversation, conversation_key(conversation_id), "Conversation", conversation_id)

    async def first_or_create_conversation(self, conversation_id: str) -> Conversation:
        now = get_current_timestamp()
        conversation = Conversation(id=conversation_id, created_at=now, updated_at=now)
        with self._errors(f"First-or-create conversation {conversation_id}"):
            # SET NX makes the record write atomic; the index ZADD is idempotent.
            created = await self.client.set(conversation_key(conversation_id), self._encode(conversation), nx=True)
            if not created:
                self.logger.debug(f"Conversation {conversation_id} found")
                return await self._load(
                    Conversation, conversation_key(conversation_id), "Conversation", conversation_id
                )
            await self.client.zadd(CONVERSATIONS_KEY, {conversation_id: conversation.updated_at})
        self.logger.info(f"Conversation {conversation_id} created on first use")
        return conversation

    async def list_conversations(self, offset: int = 0, limit: int = 20) -> list[Conversation]:
        if not check_page(offset, limit):
            return []
        with self._errors("List conversations"):
            conversation_ids = await self.client.zrevrange(CONVERSATIONS_KEY, offset, offset + limit - 1)
            conversations = await self._load_many(
                Conversation, [conversation_key(conversation_id) for conversation_id in conversation_ids]
            )
        self.logger.debug(f"Listed {len(conversations)} conversations (offset={offset}, limit={limit})")
        return conversations

    async def touch_conversation(self, conversation_id: str) -> None:
        await self._modify(conversation_id, "touched")

    async def archive_conversation(self, conversation_id: str) -> None:
        await self._modify(conversation_id, "archived", is_archived=True)

    async def unarchive_conversation(self, conversation_id: str) -> None:
        await self._modify(conversation_id, "unarchived", is_archived=False)

    async def pin_conversation(self, conversation_id: str) -> None:
        await self._modify(conversation_id, "pinned", is_pinned=True)

    async def unpin_conversation(self, conversation_id: str) -> None:
        await self._modify(conversation_id, "unpinned", is_pinned=False)

    async def _store(self, conversation: Conversation) -> None:
        await self.client.set(conversation_key(conversation.id), self._encode(conversation))
        await self.client.zadd(CONVERSATIONS_KEY, {conversation.id: conversation.updated_at})

    async def _modify(self, conversation_id: str, verb: str, **values: bool) -> None:
        """Read-modify-write of one record; 'updated_at' and the listing score are always refreshed."""
        with self._errors(f"Conversation {conversation_id} {verb}"):
            stored = await self._load(Conversation, conversation_key(conversation_id), "Conversation", conversation_id)
            await self._store(stored.model_copy(update={"updated_at": get_current_timestamp(), **values}))
        self.logger.info(f"Conversation {conversation_id} {verb}")

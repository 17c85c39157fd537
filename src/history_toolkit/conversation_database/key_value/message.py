from history_toolkit.conversation_database.data_models.message import Message, MessageDatabase
from history_toolkit.conversation_database.key_value.base import RedisRepository
from history_toolkit.conversation_database.key_value.keys import conversation_messages_key, message_key
from history_toolkit.errors import ImmutableFieldError
from history_toolkit.utils.database import check_page, generate_uid
from history_toolkit.utils.logging import preview
from history_toolkit.utils.time import get_current_timestamp


class RedisMessageDatabase(RedisRepository, MessageDatabase):
    async def create_message(self, message: Message) -> Message:
        message = message.model_copy(
            update={"id": message.id or generate_uid(), "created_at": message.created_at or get_current_timestamp()}
        )
        with self._errors(f"Create message {message.id}"):
            if message.order_seq is None:
                # Read-then-write: concurrent appends to one conversation may draw the same seq.
                message = message.model_copy(update={"order_seq": await self._next_order_seq(message.conversation_id)})
            await self._store(message)
        self.logger.info(f"Message {message.id} created (conversation={message.conversation_id}, seq={message.order_seq})")
        return message

    async def update_message(self, message: Message) -> Message:
        with self._errors(f"Update message {message.id}"):
            stored = await self._load(Message, message_key(message.id), "Message", message.id)
            if stored.conversation_id != message.conversation_id:
                self.logger.error(f"Message {message.id} cannot move to conversation {message.conversation_id}")
                raise ImmutableFieldError(f"Message {message.id} belongs to conversation {stored.conversation_id}")
            updated = message.model_copy(
                update={
                    "created_at": stored.created_at,
                    "order_seq": stored.order_seq if message.order_seq is None else message.order_seq,
                }
            )
            await self._store(updated)
        self.logger.info(f"Message {message.id} updated")
        return updated

    async def delete_message(self, message_id: str) -> None:
        with self._errors(f"Delete message {message_id}"):
            stored = await self._load(Message, message_key(message_id), "Message", message_id)
            await self.client.delete(message_key(message_id))
            await self.client.zrem(conversation_messages_key(stored.conversation_id), message_id)
        self.logger.info(f"Message {message_id} deleted")

    async def get_message_by_id(self, message_id: str) -> Message:
        with self._errors(f"Get message {message_id}"):
            return await self._load(Message, message_key(message_id), "Message", message_id)

    async def get_messages_by_conversation_id(
        self, conversation_id: str, offset: int = 0, limit: int = 100
    ) -> list[Message]:
        if not check_page(offset, limit):
            return []
        with self._errors(f"List messages of conversation {conversation_id}"):
            message_ids = await self.client.zrange(
                conversation_messages_key(conversation_id), offset, offset + limit - 1
            )
            messages = await self._load_many(Message, [message_key(message_id) for message_id in message_ids])
        self.logger.debug(f"Conversation {conversation_id}: {len(messages)} messages")
        if self.logger.is_enabled_for("DEBUG"):
            for i, message in enumerate(messages):
                self.logger.debug(f"Message[{i}] role={message.role} content={preview(message.content)}")
        return messages

    async def update_message_status(self, message_id: str, status: str) -> None:
        await self._set_field(message_id, "status", status)

    async def update_message_token_count(self, message_id: str, token_count: int) -> None:
        await self._set_field(message_id, "token_count", token_count)

    async def set_message_context_edge(self, message_id: str, is_context_edge: bool) -> None:
        await self._set_field(message_id, "is_context_edge", is_context_edge)

    async def set_message_variant(self, message_id: str, is_variant: bool) -> None:
        await self._set_field(message_id, "is_variant", is_variant)

    async def _next_order_seq(self, conversation_id: str) -> int:
        last = await self.client.zrevrange(conversation_messages_key(conversation_id), 0, 0, withscores=True)
        return int(last[0][1]) + 1 if last else 1

    async def _store(self, message: Message) -> None:
        await self.client.set(message_key(message.id), self._encode(message))
        await self.client.zadd(conversation_messages_key(message.conversation_id), {message.id: message.order_seq})

    async def _set_field(self, message_id: str, field: str, value: str | int | bool) -> None:
        with self._errors(f"Set {field} of message {message_id}"):
            stored = await self._load(Message, message_key(message_id), "Message", message_id)
            await self.client.set(message_key(message_id), self._encode(stored.model_copy(update={field: value})))
        self.logger.info(f"Message {message_id} {field} set to {value!r}")

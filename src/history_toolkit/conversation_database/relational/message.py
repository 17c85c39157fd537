from sqlalchemy import delete, func, select, update

from history_toolkit.conversation_database.data_models.message import Message, MessageDatabase
from history_toolkit.conversation_database.relational.base import SQLRepository
from history_toolkit.conversation_database.relational.tables import MessageRecord
from history_toolkit.errors import ImmutableFieldError
from history_toolkit.llms.base import Roles
from history_toolkit.utils.database import check_page, generate_uid
from history_toolkit.utils.logging import preview
from history_toolkit.utils.time import get_current_timestamp


def _to_message(record: MessageRecord) -> Message:
    return Message(
        id=record.msg_id,
        conversation_id=record.conversation_id,
        role=Roles(record.role),
        content=record.content,
        order_seq=record.order_seq,
        status=record.status,
        token_count=record.token_count,
        is_context_edge=record.is_context_edge,
        is_variant=record.is_variant,
        created_at=record.created_at,
    )


class SQLMessageDatabase(SQLRepository, MessageDatabase):
    async def create_message(self, message: Message) -> Message:
        message = message.model_copy(
            update={"id": message.id or generate_uid(), "created_at": message.created_at or get_current_timestamp()}
        )
        with self._errors(f"Create message {message.id}"):
            async with self.session_factory.begin() as session:
                if message.order_seq is None:
                    last_seq = await session.scalar(
                        select(func.max(MessageRecord.order_seq)).where(
                            MessageRecord.conversation_id == message.conversation_id
                        )
                    )
                    message = message.model_copy(update={"order_seq": (last_seq or 0) + 1})
                session.add(
                    MessageRecord(
                        msg_id=message.id,
                        conversation_id=message.conversation_id,
                        role=message.role.value,
                        content=message.content,
                        order_seq=message.order_seq,
                        status=message.status,
                        token_count=message.token_count,
                        is_context_edge=message.is_context_edge,
                        is_variant=message.is_variant,
                        created_at=message.created_at,
                    )
                )
        self.logger.info(f"Message {message.id} created (conversation={message.conversation_id}, seq={message.order_seq})")
        return message

    async def update_message(self, message: Message) -> Message:
        with self._errors(f"Update message {message.id}"):
            async with self.session_factory.begin() as session:
                record = await session.scalar(select(MessageRecord).where(MessageRecord.msg_id == message.id))
                if record is None:
                    raise self._not_found("Message", message.id)
                if record.conversation_id != message.conversation_id:
                    self.logger.error(f"Message {message.id} cannot move to conversation {message.conversation_id}")
                    raise ImmutableFieldError(f"Message {message.id} belongs to conversation {record.conversation_id}")
                record.role = message.role.value
                record.content = message.content
                if message.order_seq is not None:
                    record.order_seq = message.order_seq
                record.status = message.status
                record.token_count = message.token_count
                record.is_context_edge = message.is_context_edge
                record.is_variant = message.is_variant
                updated = _to_message(record)
        self.logger.info(f"Message {message.id} updated")
        return updated

    async def delete_message(self, message_id: str) -> None:
        with self._errors(f"Delete message {message_id}"):
            async with self.session_factory.begin() as session:
                result = await session.execute(delete(MessageRecord).where(MessageRecord.msg_id == message_id))
                if result.rowcount == 0:
                    raise self._not_found("Message", message_id)
        self.logger.info(f"Message {message_id} deleted")

    async def get_message_by_id(self, message_id: str) -> Message:
        with self._errors(f"Get message {message_id}"):
            async with self.session_factory() as session:
                record = await session.scalar(select(MessageRecord).where(MessageRecord.msg_id == message_id))
                if record is None:
                    raise self._not_found("Message", message_id)
                return _to_message(record)

    async def get_messages_by_conversation_id(
        self, conversation_id: str, offset: int = 0, limit: int = 100
    ) -> list[Message]:
        if not check_page(offset, limit):
            return []
        with self._errors(f"List messages of conversation {conversation_id}"):
            async with self.session_factory() as session:
                records = await session.scalars(
                    select(MessageRecord)
                    .where(MessageRecord.conversation_id == conversation_id)
                    .order_by(MessageRecord.order_seq.asc(), MessageRecord.msg_id.asc())
                    .offset(offset)
                    .limit(limit)
                )
                messages = [_to_message(record) for record in records]
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

    async def _set_field(self, message_id: str, column: str, value: str | int | bool) -> None:
        """Single-column update, no read-modify-write."""
        with self._errors(f"Set {column} of message {message_id}"):
            async with self.session_factory.begin() as session:
                result = await session.execute(
                    update(MessageRecord).where(MessageRecord.msg_id == message_id).values({column: value})
                )
                if result.rowcount == 0:
                    raise self._not_found("Message", message_id)
        self.logger.info(f"Message {message_id} {column} set to {value!r}")

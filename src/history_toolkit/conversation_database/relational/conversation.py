from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from history_toolkit.conversation_database.data_models.conversation import Conversation, ConversationDatabase
from history_toolkit.conversation_database.relational.base import SQLRepository
from history_toolkit.conversation_database.relational.tables import ConversationRecord, MessageRecord
from history_toolkit.utils.database import check_page
from history_toolkit.utils.time import get_current_timestamp


def _to_conversation(record: ConversationRecord) -> Conversation:
    return Conversation(
        id=record.conv_id,
        title=record.title,
        settings=record.settings or {},
        created_at=record.created_at,
        updated_at=record.updated_at,
        is_archived=record.is_archived,
        is_pinned=record.is_pinned,
    )


def _to_record(conversation: Conversation) -> ConversationRecord:
    return ConversationRecord(
        conv_id=conversation.id,
        title=conversation.title,
        settings=conversation.settings,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
        is_archived=conversation.is_archived,
        is_pinned=conversation.is_pinned,
    )


class SQLConversationDatabase(SQLRepository, ConversationDatabase):
    async def create_conversation(self, conversation: Conversation) -> Conversation:
        now = get_current_timestamp()
        conversation = conversation.model_copy(
            update={"created_at": conversation.created_at or now, "updated_at": conversation.updated_at or now}
        )
        with self._errors(f"Create conversation {conversation.id}"):
            async with self.session_factory.begin() as session:
                session.add(_to_record(conversation))
        self.logger.info(f"Conversation {conversation.id} created")
        return conversation

    async def update_conversation(self, conversation: Conversation) -> Conversation:
        with self._errors(f"Update conversation {conversation.id}"):
            async with self.session_factory.begin() as session:
                record = await session.scalar(
                    select(ConversationRecord).where(ConversationRecord.conv_id == conversation.id)
                )
                if record is None:
                    raise self._not_found("Conversation", conversation.id)
                record.title = conversation.title
                record.settings = conversation.settings
                record.is_archived = conversation.is_archived
                record.is_pinned = conversation.is_pinned
                record.updated_at = get_current_timestamp()
                updated = _to_conversation(record)
        self.logger.info(f"Conversation {conversation.id} updated")
        return updated

    async def delete_conversation(self, conversation_id: str) -> None:
        with self._errors(f"Delete conversation {conversation_id}"):
            async with self.session_factory.begin() as session:
                await session.execute(delete(MessageRecord).where(MessageRecord.conversation_id == conversation_id))
                result = await session.execute(
                    delete(ConversationRecord).where(ConversationRecord.conv_id == conversation_id)
                )
                if result.rowcount == 0:
                    raise self._not_found("Conversation", conversation_id)
        self.logger.info(f"Conversation {conversation_id} deleted")

    async def get_conversation_by_id(self, conversation_id: str) -> Conversation:
        with self._errors(f"Get conversation {conversation_id}"):
            conversation = await self._find(conversation_id)
        if conversation is None:
            raise self._not_found("Conversation", conversation_id)
        return conversation

    async def first_or_create_conversation(self, conversation_id: str) -> Conversation:
        with self._errors(f"First-or-create conversation {conversation_id}"):
            existing = await self._find(conversation_id)
            if existing is not None:
                self.logger.debug(f"Conversation {conversation_id} found")
                return existing

            now = get_current_timestamp()
            conversation = Conversation(id=conversation_id, created_at=now, updated_at=now)
            try:
                async with self.session_factory.begin() as session:
                    session.add(_to_record(conversation))
            except IntegrityError:
                # A concurrent caller inserted the same conv_id first.
                existing = await self._find(conversation_id)
                if existing is None:
                    raise
                return existing
        self.logger.info(f"Conversation {conversation_id} created on first use")
        return conversation

    async def list_conversations(self, offset: int = 0, limit: int = 20) -> list[Conversation]:
        if not check_page(offset, limit):
            return []
        with self._errors("List conversations"):
            async with self.session_factory() as session:
                records = await session.scalars(
                    select(ConversationRecord)
                    .order_by(ConversationRecord.updated_at.desc(), ConversationRecord.conv_id.desc())
                    .offset(offset)
                    .limit(limit)
                )
                conversations = [_to_conversation(record) for record in records]
        self.logger.debug(f"Listed {len(conversations)} conversations (offset={offset}, limit={limit})")
        return conversations

    async def touch_conversation(self, conversation_id: str) -> None:
        await self._set_fields(conversation_id, "touched")

    async def archive_conversation(self, conversation_id: str) -> None:
        await self._set_fields(conversation_id, "archived", is_archived=True)

    async def unarchive_conversation(self, conversation_id: str) -> None:
        await self._set_fields(conversation_id, "unarchived", is_archived=False)

    async def pin_conversation(self, conversation_id: str) -> None:
        await self._set_fields(conversation_id, "pinned", is_pinned=True)

    async def unpin_conversation(self, conversation_id: str) -> None:
        await self._set_fields(conversation_id, "unpinned", is_pinned=False)

    async def _find(self, conversation_id: str) -> Conversation | None:
        async with self.session_factory() as session:
            record = await session.scalar(select(ConversationRecord).where(ConversationRecord.conv_id == conversation_id))
            return _to_conversation(record) if record is not None else None

    async def _set_fields(self, conversation_id: str, verb: str, **values: bool) -> None:
        """Targeted column update; 'updated_at' is always refreshed."""
        with self._errors(f"Conversation {conversation_id} {verb}"):
            async with self.session_factory.begin() as session:
                result = await session.execute(
                    update(ConversationRecord)
                    .where(ConversationRecord.conv_id == conversation_id)
                    .values(updated_at=get_current_timestamp(), **values)
                )
                if result.rowcount == 0:
                    raise self._not_found("Conversation", conversation_id)
        self.logger.info(f"Conversation {conversation_id} {verb}")

from sqlalchemy import ColumnElement, delete, select

from history_toolkit.conversation_database.data_models.message_attachment import (
    MessageAttachment,
    MessageAttachmentDatabase,
)
from history_toolkit.conversation_database.relational.base import SQLRepository
from history_toolkit.conversation_database.relational.tables import MessageAttachmentRecord


def _to_message_attachment(record: MessageAttachmentRecord) -> MessageAttachment:
    return MessageAttachment(id=record.id, message_id=record.message_id, attachment_id=record.attachment_id)


class SQLMessageAttachmentDatabase(SQLRepository, MessageAttachmentDatabase):
    async def create_message_attachment(self, message_attachment: MessageAttachment) -> MessageAttachment:
        record = MessageAttachmentRecord(
            message_id=message_attachment.message_id, attachment_id=message_attachment.attachment_id
        )
        with self._errors(f"Link attachment {message_attachment.attachment_id} to message {message_attachment.message_id}"):
            async with self.session_factory.begin() as session:
                session.add(record)
                await session.flush()
                created = _to_message_attachment(record)
        self.logger.info(
            f"Attachment {created.attachment_id} linked to message {created.message_id} (association {created.id})"
        )
        return created

    async def delete_message_attachment(self, message_attachment_id: int) -> None:
        removed = await self._delete_where(
            f"association {message_attachment_id}", MessageAttachmentRecord.id == message_attachment_id
        )
        if removed == 0:
            raise self._not_found("MessageAttachment", message_attachment_id)

    async def get_message_attachments_by_message_id(self, message_id: str) -> list[MessageAttachment]:
        return await self._list_where(f"message {message_id}", MessageAttachmentRecord.message_id == message_id)

    async def get_message_attachments_by_attachment_id(self, attachment_id: str) -> list[MessageAttachment]:
        return await self._list_where(
            f"attachment {attachment_id}", MessageAttachmentRecord.attachment_id == attachment_id
        )

    async def delete_message_attachment_by_pair(self, message_id: str, attachment_id: str) -> int:
        return await self._delete_where(
            f"links between message {message_id} and attachment {attachment_id}",
            (MessageAttachmentRecord.message_id == message_id) & (MessageAttachmentRecord.attachment_id == attachment_id),
        )

    async def delete_message_attachments_by_message_id(self, message_id: str) -> int:
        return await self._delete_where(f"links of message {message_id}", MessageAttachmentRecord.message_id == message_id)

    async def delete_message_attachments_by_attachment_id(self, attachment_id: str) -> int:
        return await self._delete_where(
            f"links of attachment {attachment_id}", MessageAttachmentRecord.attachment_id == attachment_id
        )

    async def _list_where(self, owner: str, condition: ColumnElement[bool]) -> list[MessageAttachment]:
        with self._errors(f"List associations of {owner}"):
            async with self.session_factory() as session:
                records = await session.scalars(
                    select(MessageAttachmentRecord).where(condition).order_by(MessageAttachmentRecord.id)
                )
                associations = [_to_message_attachment(record) for record in records]
        self.logger.debug(f"{len(associations)} associations for {owner}")
        return associations

    async def _delete_where(self, target: str, condition: ColumnElement[bool]) -> int:
        with self._errors(f"Delete {target}"):
            async with self.session_factory.begin() as session:
                result = await session.execute(delete(MessageAttachmentRecord).where(condition))
        if result.rowcount:
            self.logger.info(f"Deleted {result.rowcount} {target}")
        return result.rowcount

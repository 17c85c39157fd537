from sqlalchemy import delete, select

from history_toolkit.conversation_database.data_models.attachment import Attachment, AttachmentDatabase
from history_toolkit.conversation_database.relational.base import SQLRepository
from history_toolkit.conversation_database.relational.tables import AttachmentRecord, MessageAttachmentRecord
from history_toolkit.utils.database import generate_uid, resolve_then_fetch
from history_toolkit.utils.time import get_current_timestamp


def _to_attachment(record: AttachmentRecord) -> Attachment:
    return Attachment(
        id=record.attach_id,
        attachment_type=record.attachment_type,
        file_name=record.file_name,
        file_size=record.file_size,
        storage_type=record.storage_type,
        storage_path=record.storage_path,
        mime_type=record.mime_type,
        created_at=record.created_at,
    )


class SQLAttachmentDatabase(SQLRepository, AttachmentDatabase):
    async def create_attachment(self, attachment: Attachment) -> Attachment:
        attachment = attachment.model_copy(
            update={"id": attachment.id or generate_uid(), "created_at": attachment.created_at or get_current_timestamp()}
        )
        with self._errors(f"Create attachment {attachment.id}"):
            async with self.session_factory.begin() as session:
                session.add(
                    AttachmentRecord(
                        attach_id=attachment.id,
                        attachment_type=attachment.attachment_type,
                        file_name=attachment.file_name,
                        file_size=attachment.file_size,
                        storage_type=attachment.storage_type,
                        storage_path=attachment.storage_path,
                        mime_type=attachment.mime_type,
                        created_at=attachment.created_at,
                    )
                )
        self.logger.info(f"Attachment {attachment.id} created")
        return attachment

    async def update_attachment(self, attachment: Attachment) -> Attachment:
        with self._errors(f"Update attachment {attachment.id}"):
            async with self.session_factory.begin() as session:
                record = await session.scalar(select(AttachmentRecord).where(AttachmentRecord.attach_id == attachment.id))
                if record is None:
                    raise self._not_found("Attachment", attachment.id)
                record.attachment_type = attachment.attachment_type
                record.file_name = attachment.file_name
                record.file_size = attachment.file_size
                record.storage_type = attachment.storage_type
                record.storage_path = attachment.storage_path
                record.mime_type = attachment.mime_type
                updated = _to_attachment(record)
        self.logger.info(f"Attachment {attachment.id} updated")
        return updated

    async def delete_attachment(self, attachment_id: str) -> None:
        with self._errors(f"Delete attachment {attachment_id}"):
            async with self.session_factory.begin() as session:
                result = await session.execute(delete(AttachmentRecord).where(AttachmentRecord.attach_id == attachment_id))
                if result.rowcount == 0:
                    raise self._not_found("Attachment", attachment_id)
        self.logger.info(f"Attachment {attachment_id} deleted")

    async def get_attachment_by_id(self, attachment_id: str) -> Attachment:
        with self._errors(f"Get attachment {attachment_id}"):
            async with self.session_factory() as session:
                record = await session.scalar(select(AttachmentRecord).where(AttachmentRecord.attach_id == attachment_id))
                if record is None:
                    raise self._not_found("Attachment", attachment_id)
                return _to_attachment(record)

    async def get_attachments_by_message_id(self, message_id: str) -> list[Attachment]:
        with self._errors(f"List attachments of message {message_id}"):
            async with self.session_factory() as session:

                async def linked_attachment_ids() -> list[str]:
                    result = await session.scalars(
                        select(MessageAttachmentRecord.attachment_id).where(
                            MessageAttachmentRecord.message_id == message_id
                        )
                    )
                    return list(result)

                async def fetch_attachments(attachment_ids: list[str]) -> list[Attachment]:
                    records = await session.scalars(
                        select(AttachmentRecord).where(AttachmentRecord.attach_id.in_(attachment_ids))
                    )
                    return [_to_attachment(record) for record in records]

                attachments = await resolve_then_fetch(linked_attachment_ids, fetch_attachments)
        self.logger.debug(f"Message {message_id}: {len(attachments)} attachments")
        return attachments

from history_toolkit.conversation_database.data_models.attachment import Attachment, AttachmentDatabase
from history_toolkit.conversation_database.data_models.message_attachment import MessageAttachment
from history_toolkit.conversation_database.key_value.base import RedisRepository
from history_toolkit.conversation_database.key_value.keys import (
    attachment_key,
    message_attachment_key,
    message_attachments_key,
)
from history_toolkit.utils.database import generate_uid, resolve_then_fetch
from history_toolkit.utils.time import get_current_timestamp


class RedisAttachmentDatabase(RedisRepository, AttachmentDatabase):
    async def create_attachment(self, attachment: Attachment) -> Attachment:
        attachment = attachment.model_copy(
            update={"id": attachment.id or generate_uid(), "created_at": attachment.created_at or get_current_timestamp()}
        )
        with self._errors(f"Create attachment {attachment.id}"):
            await self.client.set(attachment_key(attachment.id), self._encode(attachment))
        self.logger.info(f"Attachment {attachment.id} created")
        return attachment

    async def update_attachment(self, attachment: Attachment) -> Attachment:
        with self._errors(f"Update attachment {attachment.id}"):
            stored = await self._load(Attachment, attachment_key(attachment.id), "Attachment", attachment.id)
            updated = attachment.model_copy(update={"created_at": stored.created_at})
            await self.client.set(attachment_key(attachment.id), self._encode(updated))
        self.logger.info(f"Attachment {attachment.id} updated")
        return updated

    async def delete_attachment(self, attachment_id: str) -> None:
        with self._errors(f"Delete attachment {attachment_id}"):
            removed = await self.client.delete(attachment_key(attachment_id))
        if removed == 0:
            raise self._not_found("Attachment", attachment_id)
        self.logger.info(f"Attachment {attachment_id} deleted")

    async def get_attachment_by_id(self, attachment_id: str) -> Attachment:
        with self._errors(f"Get attachment {attachment_id}"):
            return await self._load(Attachment, attachment_key(attachment_id), "Attachment", attachment_id)

    async def get_attachments_by_message_id(self, message_id: str) -> list[Attachment]:
        async def linked_attachment_ids() -> list[str]:
            association_ids = await self.client.smembers(message_attachments_key(message_id))
            associations = await self._load_many(
                MessageAttachment, [message_attachment_key(association_id) for association_id in association_ids]
            )
            return [association.attachment_id for association in associations]

        async def fetch_attachments(attachment_ids: list[str]) -> list[Attachment]:
            return await self._load_many(Attachment, [attachment_key(attachment_id) for attachment_id in attachment_ids])

        with self._errors(f"List attachments of message {message_id}"):
            attachments = await resolve_then_fetch(linked_attachment_ids, fetch_attachments)
        self.logger.debug(f"Message {message_id}: {len(attachments)} attachments")
        return attachments

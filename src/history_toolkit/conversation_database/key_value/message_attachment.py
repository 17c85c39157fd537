"""
Associations on the key-value backend.

Each association is one record plus a member in two reverse-index sets (by message and by
attachment). Creation and deletion touch all three keys in sequence without a transaction,
so a failure half-way can leave an orphaned set member; listing skips such members.
"""

from history_toolkit.conversation_database.data_models.message_attachment import (
    MessageAttachment,
    MessageAttachmentDatabase,
)
from history_toolkit.conversation_database.key_value.base import RedisRepository
from history_toolkit.conversation_database.key_value.keys import (
    MESSAGE_ATTACHMENT_SEQ_KEY,
    attachment_messages_key,
    message_attachment_key,
    message_attachments_key,
)


class RedisMessageAttachmentDatabase(RedisRepository, MessageAttachmentDatabase):
    async def create_message_attachment(self, message_attachment: MessageAttachment) -> MessageAttachment:
        action = f"Link attachment {message_attachment.attachment_id} to message {message_attachment.message_id}"
        with self._errors(action):
            association_id = await self.client.incr(MESSAGE_ATTACHMENT_SEQ_KEY)
            created = message_attachment.model_copy(update={"id": association_id})
            await self.client.set(message_attachment_key(association_id), self._encode(created))
            await self.client.sadd(message_attachments_key(created.message_id), association_id)
            await self.client.sadd(attachment_messages_key(created.attachment_id), association_id)
        self.logger.info(
            f"Attachment {created.attachment_id} linked to message {created.message_id} (association {created.id})"
        )
        return created

    async def delete_message_attachment(self, message_attachment_id: int) -> None:
        with self._errors(f"Delete association {message_attachment_id}"):
            stored = await self._load(
                MessageAttachment,
                message_attachment_key(message_attachment_id),
                "MessageAttachment",
                message_attachment_id,
            )
            await self._remove([stored])
        self.logger.info(f"Deleted association {message_attachment_id}")

    async def get_message_attachments_by_message_id(self, message_id: str) -> list[MessageAttachment]:
        with self._errors(f"List associations of message {message_id}"):
            associations = await self._members(message_attachments_key(message_id))
        self.logger.debug(f"{len(associations)} associations for message {message_id}")
        return associations

    async def get_message_attachments_by_attachment_id(self, attachment_id: str) -> list[MessageAttachment]:
        with self._errors(f"List associations of attachment {attachment_id}"):
            associations = await self._members(attachment_messages_key(attachment_id))
        self.logger.debug(f"{len(associations)} associations for attachment {attachment_id}")
        return associations

    async def delete_message_attachment_by_pair(self, message_id: str, attachment_id: str) -> int:
        target = f"links between message {message_id} and attachment {attachment_id}"
        with self._errors(f"Delete {target}"):
            associations = [
                association
                for association in await self._members(message_attachments_key(message_id))
                if association.attachment_id == attachment_id
            ]
            await self._remove(associations)
        if associations:
            self.logger.info(f"Deleted {len(associations)} {target}")
        return len(associations)

    async def delete_message_attachments_by_message_id(self, message_id: str) -> int:
        with self._errors(f"Delete links of message {message_id}"):
            associations = await self._members(message_attachments_key(message_id))
            await self._remove(associations)
            await self.client.delete(message_attachments_key(message_id))
        if associations:
            self.logger.info(f"Deleted {len(associations)} links of message {message_id}")
        return len(associations)

    async def delete_message_attachments_by_attachment_id(self, attachment_id: str) -> int:
        with self._errors(f"Delete links of attachment {attachment_id}"):
            associations = await self._members(attachment_messages_key(attachment_id))
            await self._remove(associations)
            await self.client.delete(attachment_messages_key(attachment_id))
        if associations:
            self.logger.info(f"Deleted {len(associations)} links of attachment {attachment_id}")
        return len(associations)

    async def _members(self, index_key: str) -> list[MessageAttachment]:
        """Resolve a reverse-index set into association records, ordered by id."""
        association_ids = sorted(int(association_id) for association_id in await self.client.smembers(index_key))
        return await self._load_many(
            MessageAttachment, [message_attachment_key(association_id) for association_id in association_ids]
        )

    async def _remove(self, associations: list[MessageAttachment]) -> None:
        for association in associations:
            await self.client.delete(message_attachment_key(association.id))
            await self.client.srem(message_attachments_key(association.message_id), association.id)
            await self.client.srem(attachment_messages_key(association.attachment_id), association.id)

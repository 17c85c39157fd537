"""
Attachment data model and storage interface.

An attachment only describes where a binary payload lives ('storage_type' / 'storage_path');
the payload itself is never stored inline. Attachments are not owned by a message: they exist
on their own and are linked to messages through 'MessageAttachment' records.

Concrete implementations: 'SQLAttachmentDatabase', 'RedisAttachmentDatabase'.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel


class Attachment(BaseModel):
    """Metadata for a file referenced by one or more messages."""

    id: str = ""
    attachment_type: str = ""
    file_name: str = ""
    file_size: int = 0
    storage_type: str = ""
    storage_path: str = ""
    mime_type: str = ""
    created_at: int = 0


class AttachmentDatabase(ABC):
    """Abstract repository for 'Attachment' records."""

    @abstractmethod
    async def create_attachment(self, attachment: Attachment) -> Attachment:
        pass

    @abstractmethod
    async def update_attachment(self, attachment: Attachment) -> Attachment:
        pass

    @abstractmethod
    async def delete_attachment(self, attachment_id: str) -> None:
        pass

    @abstractmethod
    async def get_attachment_by_id(self, attachment_id: str) -> Attachment:
        pass

    @abstractmethod
    async def get_attachments_by_message_id(self, message_id: str) -> list[Attachment]:
        """Return every attachment linked to 'message_id'. Order is not guaranteed."""
        pass

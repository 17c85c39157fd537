"""
MessageAttachment association model and storage interface.

A many-to-many link between one message and one attachment. The surrogate integer 'id' is
assigned by the store on creation and is the primary handle for deletion.

Neither backend removes associations automatically when a message or attachment is deleted;
use 'delete_message_attachments_by_message_id' / '..._by_attachment_id' for that.

Concrete implementations: 'SQLMessageAttachmentDatabase', 'RedisMessageAttachmentDatabase'.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel


class MessageAttachment(BaseModel):
    """Link between a message and an attachment."""

    message_id: str
    attachment_id: str
    id: int | None = None


class MessageAttachmentDatabase(ABC):
    """Abstract repository for 'MessageAttachment' records."""

    @abstractmethod
    async def create_message_attachment(self, message_attachment: MessageAttachment) -> MessageAttachment:
        pass

    @abstractmethod
    async def delete_message_attachment(self, message_attachment_id: int) -> None:
        pass

    @abstractmethod
    async def get_message_attachments_by_message_id(self, message_id: str) -> list[MessageAttachment]:
        pass

    @abstractmethod
    async def get_message_attachments_by_attachment_id(self, attachment_id: str) -> list[MessageAttachment]:
        pass

    @abstractmethod
    async def delete_message_attachment_by_pair(self, message_id: str, attachment_id: str) -> int:
        """Delete every link between the two ids and return how many were removed."""
        pass

    @abstractmethod
    async def delete_message_attachments_by_message_id(self, message_id: str) -> int:
        pass

    @abstractmethod
    async def delete_message_attachments_by_attachment_id(self, attachment_id: str) -> int:
        pass

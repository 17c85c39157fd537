"""
Conversation data model and storage interface.

'updated_at' is the global sort key for listing: every mutation and every message appended
to the conversation refreshes it. 'settings' is an opaque blob owned by the caller and never
interpreted by the store. The archive and pin flags are independent toggles.

The 'ConversationDatabase' ABC is the pluggable storage backend. Concrete implementations
('SQLConversationDatabase', 'RedisConversationDatabase') are interchangeable at construction
time and must behave identically from the caller's point of view.
"""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field


class Conversation(BaseModel):
    """A conversation; 'id' is immutable once assigned."""

    id: str
    title: str = ""
    settings: dict[str, Any] = Field(default_factory=dict)
    created_at: int = 0
    updated_at: int = 0
    is_archived: bool = False
    is_pinned: bool = False


class ConversationDatabase(ABC):
    """Abstract repository for 'Conversation' records."""

    @abstractmethod
    async def create_conversation(self, conversation: Conversation) -> Conversation:
        """Persist 'conversation', filling zero timestamps with the current time."""
        pass

    @abstractmethod
    async def update_conversation(self, conversation: Conversation) -> Conversation:
        """Rewrite the mutable fields of an existing conversation and refresh 'updated_at'."""
        pass

    @abstractmethod
    async def delete_conversation(self, conversation_id: str) -> None:
        """Delete the conversation and every message it owns."""
        pass

    @abstractmethod
    async def get_conversation_by_id(self, conversation_id: str) -> Conversation:
        pass

    @abstractmethod
    async def first_or_create_conversation(self, conversation_id: str) -> Conversation:
        """Return the conversation with 'conversation_id', creating an empty one if absent."""
        pass

    @abstractmethod
    async def list_conversations(self, offset: int = 0, limit: int = 20) -> list[Conversation]:
        """Return one page of conversations, most recently updated first."""
        pass

    @abstractmethod
    async def touch_conversation(self, conversation_id: str) -> None:
        """Refresh 'updated_at' without changing anything else."""
        pass

    @abstractmethod
    async def archive_conversation(self, conversation_id: str) -> None:
        pass

    @abstractmethod
    async def unarchive_conversation(self, conversation_id: str) -> None:
        pass

    @abstractmethod
    async def pin_conversation(self, conversation_id: str) -> None:
        pass

    @abstractmethod
    async def unpin_conversation(self, conversation_id: str) -> None:
        pass

"""
Message data model and storage interface.

Within one conversation 'order_seq' defines a strict total order, and every history read is
returned in ascending 'order_seq'. Passing 'order_seq=None' to 'create_message' lets the store
assign the next number (last sequence in the conversation + 1, starting at 1). A message's
'conversation_id' cannot change after creation.

'status', 'token_count', 'is_context_edge' and 'is_variant' are bookkeeping fields for the
caller's context-window management; each has a targeted setter so callers do not need to
read-modify-write the whole message.

Concrete implementations: 'SQLMessageDatabase', 'RedisMessageDatabase'.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel

from history_toolkit.llms.base import Roles


class Message(BaseModel):
    """A single message within a conversation. An empty 'id' asks the store to generate one."""

    conversation_id: str
    role: Roles
    content: str = ""
    id: str = ""
    order_seq: int | None = None
    status: str = ""
    token_count: int = 0
    is_context_edge: bool = False
    is_variant: bool = False
    created_at: int = 0


class MessageDatabase(ABC):
    """Abstract repository for 'Message' records."""

    @abstractmethod
    async def create_message(self, message: Message) -> Message:
        pass

    @abstractmethod
    async def update_message(self, message: Message) -> Message:
        pass

    @abstractmethod
    async def delete_message(self, message_id: str) -> None:
        pass

    @abstractmethod
    async def get_message_by_id(self, message_id: str) -> Message:
        pass

    @abstractmethod
    async def get_messages_by_conversation_id(
        self, conversation_id: str, offset: int = 0, limit: int = 100
    ) -> list[Message]:
        """Return one page of the conversation's messages in ascending 'order_seq'."""
        pass

    @abstractmethod
    async def update_message_status(self, message_id: str, status: str) -> None:
        pass

    @abstractmethod
    async def update_message_token_count(self, message_id: str, token_count: int) -> None:
        pass

    @abstractmethod
    async def set_message_context_edge(self, message_id: str, is_context_edge: bool) -> None:
        pass

    @abstractmethod
    async def set_message_variant(self, message_id: str, is_variant: bool) -> None:
        pass

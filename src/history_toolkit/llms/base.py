"""
Chat-turn representation shared with the conversation-driving caller.

'LLMMessage' is the backend-agnostic shape in which chat turns enter and leave the
history facade: a role tag plus text content. It deliberately carries nothing about
storage (ids, ordering, flags) so callers can hand turns straight to an LLM client
without knowing which backend persisted them.
"""

from enum import StrEnum

from pydantic import BaseModel


class Roles(StrEnum):
    """Conversation roles as used by the OpenAI chat completions API."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class LLMMessage(BaseModel):
    """A single chat turn sent to or received from an LLM."""

    content: str = ""
    role: Roles = Roles.ASSISTANT

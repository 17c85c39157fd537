"""
Key layout of the key-value backend.

Records live under '<type>:<id>' as JSON strings. Index structures:

- 'conversations': sorted set, member = conversation id, score = 'updated_at'.
- 'conversation:messages:<conversation_id>': sorted set, member = message id, score = 'order_seq'.
- 'message:attachments:<message_id>' / 'attachment:messages:<attachment_id>': sets of association ids.
- 'message_attachment:next_id': counter handing out association ids.

The index keys share their record type's prefix, so a conversation id starting with 'messages:'
would address another conversation's message index (likewise 'attachments:' for message ids and
'messages:' for attachment ids). Such ids are rejected with 'ValueError' before any key is built.
"""

CONVERSATION_PREFIX = "conversation:"
CONVERSATIONS_KEY = "conversations"
CONVERSATION_MESSAGES_PREFIX = "conversation:messages:"
MESSAGE_PREFIX = "message:"
ATTACHMENT_PREFIX = "attachment:"
MESSAGE_ATTACHMENT_PREFIX = "message_attachment:"
MESSAGE_ATTACHMENT_SEQ_KEY = "message_attachment:next_id"
MESSAGE_ATTACHMENTS_PREFIX = "message:attachments:"
ATTACHMENT_MESSAGES_PREFIX = "attachment:messages:"


def _record_key(prefix: str, index_prefix: str, entity_id: str) -> str:
    key = prefix + entity_id
    if key.startswith(index_prefix):
        raise ValueError(f"Id {entity_id!r} collides with the index key namespace {index_prefix!r}")
    return key


def conversation_key(conversation_id: str) -> str:
    return _record_key(CONVERSATION_PREFIX, CONVERSATION_MESSAGES_PREFIX, conversation_id)


def conversation_messages_key(conversation_id: str) -> str:
    return CONVERSATION_MESSAGES_PREFIX + conversation_id


def message_key(message_id: str) -> str:
    return _record_key(MESSAGE_PREFIX, MESSAGE_ATTACHMENTS_PREFIX, message_id)


def attachment_key(attachment_id: str) -> str:
    return _record_key(ATTACHMENT_PREFIX, ATTACHMENT_MESSAGES_PREFIX, attachment_id)


def message_attachment_key(message_attachment_id: int | str) -> str:
    return f"{MESSAGE_ATTACHMENT_PREFIX}{message_attachment_id}"


def message_attachments_key(message_id: str) -> str:
    return MESSAGE_ATTACHMENTS_PREFIX + message_id


def attachment_messages_key(attachment_id: str) -> str:
    return ATTACHMENT_MESSAGES_PREFIX + attachment_id

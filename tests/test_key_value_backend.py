"""Key layout and failure handling specific to the key-value backend."""

import json

import fakeredis
import pytest

from history_toolkit.conversation_database.data_models.conversation import Conversation
from history_toolkit.conversation_database.data_models.message import Message
from history_toolkit.conversation_database.data_models.message_attachment import MessageAttachment
from history_toolkit.conversation_database.key_value.provider import RedisProvider
from history_toolkit.errors import BackendError, NotFoundError, SerializationError
from history_toolkit.llms.base import Roles
from history_toolkit.utils.logging import StoreLogger


@pytest.mark.asyncio
async def test_conversation_record_and_listing_index(
    redis_provider: RedisProvider, redis_client: fakeredis.FakeAsyncRedis
) -> None:
    await redis_provider.conversation_db.create_conversation(Conversation(id="conv-1", title="t", updated_at=123))

    stored = json.loads(await redis_client.get("conversation:conv-1"))
    assert stored["id"] == "conv-1"
    assert stored["title"] == "t"
    assert await redis_client.zscore("conversations", "conv-1") == 123


@pytest.mark.asyncio
async def test_message_record_and_order_index(
    redis_provider: RedisProvider, redis_client: fakeredis.FakeAsyncRedis
) -> None:
    message = await redis_provider.message_db.create_message(
        Message(id="msg-1", conversation_id="conv-1", role=Roles.USER, content="hi", order_seq=4)
    )

    assert json.loads(await redis_client.get("message:msg-1"))["content"] == "hi"
    assert await redis_client.zscore("conversation:messages:conv-1", message.id) == 4

    await redis_provider.message_db.update_message(message.model_copy(update={"order_seq": 9}))
    assert await redis_client.zscore("conversation:messages:conv-1", message.id) == 9


@pytest.mark.asyncio
async def test_association_reverse_indices(redis_provider: RedisProvider, redis_client: fakeredis.FakeAsyncRedis) -> None:
    link = await redis_provider.message_attachment_db.create_message_attachment(
        MessageAttachment(message_id="msg-1", attachment_id="att-1")
    )

    assert link.id == 1
    assert await redis_client.get("message_attachment:next_id") == "1"
    assert await redis_client.smembers("message:attachments:msg-1") == {"1"}
    assert await redis_client.smembers("attachment:messages:att-1") == {"1"}

    await redis_provider.message_attachment_db.delete_message_attachment(link.id)

    assert await redis_client.exists("message_attachment:1") == 0
    assert await redis_client.smembers("message:attachments:msg-1") == set()
    assert await redis_client.smembers("attachment:messages:att-1") == set()


@pytest.mark.asyncio
async def test_message_and_attachment_ids_do_not_share_an_index(redis_provider: RedisProvider) -> None:
    db = redis_provider.message_attachment_db
    await db.create_message_attachment(MessageAttachment(message_id="same-id", attachment_id="att-1"))
    await db.create_message_attachment(MessageAttachment(message_id="msg-1", attachment_id="same-id"))

    by_message = await db.get_message_attachments_by_message_id("same-id")
    by_attachment = await db.get_message_attachments_by_attachment_id("same-id")

    assert [link.attachment_id for link in by_message] == ["att-1"]
    assert [link.message_id for link in by_attachment] == ["msg-1"]


@pytest.mark.asyncio
async def test_first_or_create_does_not_overwrite_existing_record(
    redis_provider: RedisProvider, redis_client: fakeredis.FakeAsyncRedis
) -> None:
    await redis_provider.conversation_db.create_conversation(Conversation(id="conv-1", title="kept"))

    conversation = await redis_provider.conversation_db.first_or_create_conversation("conv-1")

    assert conversation.title == "kept"
    assert await redis_client.zcard("conversations") == 1


@pytest.mark.asyncio
async def test_dangling_index_members_are_skipped(
    redis_provider: RedisProvider, redis_client: fakeredis.FakeAsyncRedis
) -> None:
    await redis_provider.conversation_db.create_conversation(Conversation(id="conv-1", updated_at=10))
    await redis_client.zadd("conversations", {"orphan": 20})
    await redis_client.zadd("conversation:messages:conv-1", {"orphan-msg": 1})

    assert [c.id for c in await redis_provider.conversation_db.list_conversations()] == ["conv-1"]
    assert await redis_provider.message_db.get_messages_by_conversation_id("conv-1") == []


@pytest.mark.asyncio
async def test_create_overwrites_existing_record(redis_provider: RedisProvider) -> None:
    await redis_provider.conversation_db.create_conversation(Conversation(id="conv-1", title="first"))
    await redis_provider.conversation_db.create_conversation(Conversation(id="conv-1", title="second"))

    assert (await redis_provider.conversation_db.get_conversation_by_id("conv-1")).title == "second"


@pytest.mark.asyncio
async def test_corrupted_record_raises_serialization_error(
    redis_provider: RedisProvider, redis_client: fakeredis.FakeAsyncRedis
) -> None:
    await redis_client.set("conversation:broken", "{not json")

    with pytest.raises(SerializationError):
        await redis_provider.conversation_db.get_conversation_by_id("broken")


@pytest.mark.asyncio
async def test_delete_missing_message_leaves_store_untouched(
    redis_provider: RedisProvider, redis_client: fakeredis.FakeAsyncRedis
) -> None:
    await redis_provider.message_db.create_message(Message(id="msg-1", conversation_id="conv-1", role=Roles.USER))

    with pytest.raises(NotFoundError):
        await redis_provider.message_db.delete_message("missing")

    assert await redis_client.zrange("conversation:messages:conv-1", 0, -1) == ["msg-1"]


@pytest.mark.asyncio
async def test_connection_failure_raises_backend_error() -> None:
    server = fakeredis.FakeServer()
    client = fakeredis.FakeAsyncRedis(server=server, decode_responses=True)
    provider = RedisProvider(client, StoreLogger("Redis"))
    server.connected = False

    with pytest.raises(BackendError) as exc_info:
        await provider.conversation_db.get_conversation_by_id("conv-1")

    assert exc_info.value.__cause__ is not None


@pytest.mark.asyncio
async def test_ids_that_would_address_an_index_key_are_rejected(
    redis_provider: RedisProvider, redis_client: fakeredis.FakeAsyncRedis
) -> None:
    await redis_provider.message_db.create_message(Message(id="msg-1", conversation_id="x", role=Roles.USER))

    with pytest.raises(ValueError):
        await redis_provider.conversation_db.create_conversation(Conversation(id="messages:x"))
    with pytest.raises(ValueError):
        await redis_provider.conversation_db.first_or_create_conversation("messages:x")
    with pytest.raises(ValueError):
        await redis_provider.message_db.create_message(
            Message(id="attachments:msg-1", conversation_id="x", role=Roles.USER)
        )

    assert await redis_client.type("conversation:messages:x") == "zset"
    assert await redis_client.zrange("conversation:messages:x", 0, -1) == ["msg-1"]
    assert await redis_client.zcard("conversations") == 0

"""Message repository contract, exercised on both backends."""

import pytest

from history_toolkit.conversation_database.data_models.message import Message
from history_toolkit.conversation_database.provider import StoreProvider
from history_toolkit.errors import ImmutableFieldError, NotFoundError
from history_toolkit.llms.base import Roles


@pytest.mark.asyncio
async def test_create_message_assigns_id_sequence_and_timestamp(provider: StoreProvider) -> None:
    first = await provider.message_db.create_message(Message(conversation_id="conv-1", role=Roles.USER, content="hi"))
    second = await provider.message_db.create_message(
        Message(conversation_id="conv-1", role=Roles.ASSISTANT, content="hello")
    )
    other = await provider.message_db.create_message(Message(conversation_id="conv-2", role=Roles.USER, content="yo"))

    assert first.id and second.id and first.id != second.id
    assert first.created_at > 0
    assert (first.order_seq, second.order_seq) == (1, 2)
    assert other.order_seq == 1
    assert await provider.message_db.get_message_by_id(second.id) == second


@pytest.mark.asyncio
async def test_create_message_keeps_caller_id_and_sequence(provider: StoreProvider) -> None:
    created = await provider.message_db.create_message(
        Message(id="msg-1", conversation_id="conv-1", role=Roles.SYSTEM, content="be brief", order_seq=7)
    )

    assert created.id == "msg-1"
    assert created.order_seq == 7

    following = await provider.message_db.create_message(Message(conversation_id="conv-1", role=Roles.USER))
    assert following.order_seq == 8


@pytest.mark.asyncio
async def test_messages_are_listed_in_order_seq_order(provider: StoreProvider) -> None:
    for order_seq, content in [(3, "third"), (1, "first"), (2, "second")]:
        await provider.message_db.create_message(
            Message(conversation_id="conv-1", role=Roles.USER, content=content, order_seq=order_seq)
        )

    messages = await provider.message_db.get_messages_by_conversation_id("conv-1")
    assert [message.content for message in messages] == ["first", "second", "third"]

    page = await provider.message_db.get_messages_by_conversation_id("conv-1", offset=1, limit=1)
    assert [message.content for message in page] == ["second"]


@pytest.mark.asyncio
async def test_messages_with_equal_sequence_are_ordered_by_id(provider: StoreProvider) -> None:
    for message_id in ["m-b", "m-c", "m-a"]:
        await provider.message_db.create_message(
            Message(id=message_id, conversation_id="conv-1", role=Roles.USER, order_seq=1)
        )

    messages = await provider.message_db.get_messages_by_conversation_id("conv-1")
    assert [message.id for message in messages] == ["m-a", "m-b", "m-c"]


@pytest.mark.asyncio
async def test_list_messages_pagination_arguments(provider: StoreProvider) -> None:
    await provider.message_db.create_message(Message(conversation_id="conv-1", role=Roles.USER))

    assert await provider.message_db.get_messages_by_conversation_id("conv-1", limit=0) == []
    assert await provider.message_db.get_messages_by_conversation_id("unknown") == []
    with pytest.raises(ValueError):
        await provider.message_db.get_messages_by_conversation_id("conv-1", offset=-1)


@pytest.mark.asyncio
async def test_update_message(provider: StoreProvider) -> None:
    created = await provider.message_db.create_message(
        Message(conversation_id="conv-1", role=Roles.ASSISTANT, content="draft")
    )

    updated = await provider.message_db.update_message(
        created.model_copy(update={"content": "final", "status": "done", "order_seq": None})
    )

    assert updated.content == "final"
    assert updated.status == "done"
    assert updated.order_seq == created.order_seq
    assert updated.created_at == created.created_at
    assert await provider.message_db.get_message_by_id(created.id) == updated


@pytest.mark.asyncio
async def test_update_message_cannot_change_conversation(provider: StoreProvider) -> None:
    created = await provider.message_db.create_message(Message(conversation_id="conv-1", role=Roles.USER))

    with pytest.raises(ImmutableFieldError):
        await provider.message_db.update_message(created.model_copy(update={"conversation_id": "conv-2"}))

    assert (await provider.message_db.get_message_by_id(created.id)).conversation_id == "conv-1"


@pytest.mark.asyncio
async def test_update_missing_message_raises(provider: StoreProvider) -> None:
    with pytest.raises(NotFoundError):
        await provider.message_db.update_message(Message(id="missing", conversation_id="conv-1", role=Roles.USER))


@pytest.mark.asyncio
async def test_delete_message(provider: StoreProvider) -> None:
    kept = await provider.message_db.create_message(Message(conversation_id="conv-1", role=Roles.USER, content="a"))
    removed = await provider.message_db.create_message(
        Message(conversation_id="conv-1", role=Roles.USER, content="b")
    )

    await provider.message_db.delete_message(removed.id)

    with pytest.raises(NotFoundError):
        await provider.message_db.get_message_by_id(removed.id)
    assert await provider.message_db.get_messages_by_conversation_id("conv-1") == [kept]
    with pytest.raises(NotFoundError):
        await provider.message_db.delete_message(removed.id)


@pytest.mark.asyncio
async def test_targeted_message_setters(provider: StoreProvider) -> None:
    created = await provider.message_db.create_message(Message(conversation_id="conv-1", role=Roles.ASSISTANT))

    await provider.message_db.update_message_status(created.id, "streaming")
    await provider.message_db.update_message_token_count(created.id, 42)
    await provider.message_db.set_message_context_edge(created.id, True)
    await provider.message_db.set_message_variant(created.id, True)

    stored = await provider.message_db.get_message_by_id(created.id)
    assert stored.status == "streaming"
    assert stored.token_count == 42
    assert stored.is_context_edge is True
    assert stored.is_variant is True
    assert stored.order_seq == created.order_seq

    await provider.message_db.set_message_context_edge(created.id, False)
    assert (await provider.message_db.get_message_by_id(created.id)).is_context_edge is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "setter, value",
    [
        ("update_message_status", "done"),
        ("update_message_token_count", 1),
        ("set_message_context_edge", True),
        ("set_message_variant", True),
    ],
)
async def test_targeted_setters_on_missing_message_raise(provider: StoreProvider, setter: str, value: object) -> None:
    with pytest.raises(NotFoundError):
        await getattr(provider.message_db, setter)("missing", value)

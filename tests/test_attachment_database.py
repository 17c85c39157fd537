"""Attachment and association repositories, exercised on both backends."""

import pytest

from history_toolkit.conversation_database.data_models.attachment import Attachment
from history_toolkit.conversation_database.data_models.message_attachment import MessageAttachment
from history_toolkit.conversation_database.provider import StoreProvider
from history_toolkit.errors import NotFoundError


def _attachment(attachment_id: str, file_name: str = "report.pdf") -> Attachment:
    return Attachment(
        id=attachment_id,
        attachment_type="file",
        file_name=file_name,
        file_size=2048,
        storage_type="s3",
        storage_path=f"bucket/{file_name}",
        mime_type="application/pdf",
    )


@pytest.mark.asyncio
async def test_attachment_crud(provider: StoreProvider) -> None:
    created = await provider.attachment_db.create_attachment(_attachment(""))

    assert created.id
    assert created.created_at > 0
    assert await provider.attachment_db.get_attachment_by_id(created.id) == created

    updated = await provider.attachment_db.update_attachment(
        created.model_copy(update={"file_name": "renamed.pdf", "file_size": 4096})
    )
    assert updated.file_name == "renamed.pdf"
    assert updated.file_size == 4096
    assert updated.created_at == created.created_at
    assert await provider.attachment_db.get_attachment_by_id(created.id) == updated

    await provider.attachment_db.delete_attachment(created.id)

    with pytest.raises(NotFoundError):
        await provider.attachment_db.get_attachment_by_id(created.id)
    with pytest.raises(NotFoundError):
        await provider.attachment_db.delete_attachment(created.id)
    with pytest.raises(NotFoundError):
        await provider.attachment_db.update_attachment(updated)


@pytest.mark.asyncio
async def test_linked_attachments_are_listed_by_message(provider: StoreProvider) -> None:
    first = await provider.attachment_db.create_attachment(_attachment("att-1", "a.pdf"))
    second = await provider.attachment_db.create_attachment(_attachment("att-2", "b.pdf"))
    unrelated = await provider.attachment_db.create_attachment(_attachment("att-3", "c.pdf"))
    link = await provider.message_attachment_db.create_message_attachment(
        MessageAttachment(message_id="msg-1", attachment_id=first.id)
    )
    await provider.message_attachment_db.create_message_attachment(
        MessageAttachment(message_id="msg-1", attachment_id=second.id)
    )
    await provider.message_attachment_db.create_message_attachment(
        MessageAttachment(message_id="msg-2", attachment_id=unrelated.id)
    )

    attachments = await provider.attachment_db.get_attachments_by_message_id("msg-1")
    assert sorted(attachments, key=lambda a: a.id) == [first, second]

    await provider.message_attachment_db.delete_message_attachment(link.id)

    assert await provider.attachment_db.get_attachments_by_message_id("msg-1") == [second]
    assert await provider.attachment_db.get_attachments_by_message_id("msg-unknown") == []


@pytest.mark.asyncio
async def test_listing_skips_deleted_attachments(provider: StoreProvider) -> None:
    kept = await provider.attachment_db.create_attachment(_attachment("att-1"))
    gone = await provider.attachment_db.create_attachment(_attachment("att-2"))
    for attachment in (kept, gone):
        await provider.message_attachment_db.create_message_attachment(
            MessageAttachment(message_id="msg-1", attachment_id=attachment.id)
        )

    await provider.attachment_db.delete_attachment(gone.id)

    assert await provider.attachment_db.get_attachments_by_message_id("msg-1") == [kept]


@pytest.mark.asyncio
async def test_association_ids_are_assigned_and_listed_in_both_directions(provider: StoreProvider) -> None:
    db = provider.message_attachment_db
    first = await db.create_message_attachment(MessageAttachment(message_id="msg-1", attachment_id="att-1"))
    second = await db.create_message_attachment(MessageAttachment(message_id="msg-1", attachment_id="att-2"))
    third = await db.create_message_attachment(MessageAttachment(message_id="msg-2", attachment_id="att-1"))

    assert first.id is not None
    assert first.id < second.id < third.id
    assert await db.get_message_attachments_by_message_id("msg-1") == [first, second]
    assert await db.get_message_attachments_by_attachment_id("att-1") == [first, third]
    assert await db.get_message_attachments_by_message_id("msg-unknown") == []


@pytest.mark.asyncio
async def test_delete_missing_association_raises(provider: StoreProvider) -> None:
    with pytest.raises(NotFoundError):
        await provider.message_attachment_db.delete_message_attachment(12345)


@pytest.mark.asyncio
async def test_delete_association_by_pair(provider: StoreProvider) -> None:
    db = provider.message_attachment_db
    await db.create_message_attachment(MessageAttachment(message_id="msg-1", attachment_id="att-1"))
    other = await db.create_message_attachment(MessageAttachment(message_id="msg-1", attachment_id="att-2"))

    assert await db.delete_message_attachment_by_pair("msg-1", "att-1") == 1
    assert await db.delete_message_attachment_by_pair("msg-1", "att-1") == 0
    assert await db.get_message_attachments_by_message_id("msg-1") == [other]
    assert await db.get_message_attachments_by_attachment_id("att-1") == []


@pytest.mark.asyncio
async def test_delete_associations_of_a_message(provider: StoreProvider) -> None:
    db = provider.message_attachment_db
    await db.create_message_attachment(MessageAttachment(message_id="msg-1", attachment_id="att-1"))
    await db.create_message_attachment(MessageAttachment(message_id="msg-1", attachment_id="att-2"))
    kept = await db.create_message_attachment(MessageAttachment(message_id="msg-2", attachment_id="att-1"))

    assert await db.delete_message_attachments_by_message_id("msg-1") == 2

    assert await db.get_message_attachments_by_message_id("msg-1") == []
    assert await db.get_message_attachments_by_attachment_id("att-1") == [kept]
    assert await db.get_message_attachments_by_attachment_id("att-2") == []


@pytest.mark.asyncio
async def test_delete_associations_of_an_attachment(provider: StoreProvider) -> None:
    db = provider.message_attachment_db
    await db.create_message_attachment(MessageAttachment(message_id="msg-1", attachment_id="att-1"))
    await db.create_message_attachment(MessageAttachment(message_id="msg-2", attachment_id="att-1"))
    kept = await db.create_message_attachment(MessageAttachment(message_id="msg-1", attachment_id="att-2"))

    assert await db.delete_message_attachments_by_attachment_id("att-1") == 2
    assert await db.delete_message_attachments_by_attachment_id("att-1") == 0

    assert await db.get_message_attachments_by_message_id("msg-1") == [kept]
    assert await db.get_message_attachments_by_message_id("msg-2") == []

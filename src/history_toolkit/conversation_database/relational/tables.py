"""
SQLAlchemy table definitions for the relational backend.

Every table keeps the engine's own integer primary key ('id') next to a unique index on the
entity's natural id ('conv_id', 'msg_id', 'attach_id'), which is what the stores query by.
'message_attachments' is the exception: its surrogate primary key is the association's public
id. There are no foreign key constraints; cascading is done by the stores inside a transaction.
Id columns use a binary collation on MySQL so 'ORDER BY conv_id' and equality lookups are
case-sensitive, matching SQLite and the key-value backend.
"""

from typing import Any

from sqlalchemy import JSON, BigInteger, Boolean, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only auto-increments a column declared exactly as INTEGER PRIMARY KEY.
SurrogateId = BigInteger().with_variant(Integer, "sqlite")

NaturalId = String(64).with_variant(String(64, collation="utf8mb4_bin"), "mysql", "mariadb")


class Base(DeclarativeBase):
    """Base class for all history tables."""

    pass


class ConversationRecord(Base):
    __tablename__ = "conversations"

    pk: Mapped[int] = mapped_column("id", Integer, primary_key=True, autoincrement=True)
    conv_id: Mapped[str] = mapped_column(NaturalId, unique=True, index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    settings: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class MessageRecord(Base):
    __tablename__ = "messages"

    pk: Mapped[int] = mapped_column("id", Integer, primary_key=True, autoincrement=True)
    msg_id: Mapped[str] = mapped_column(NaturalId, unique=True, index=True, nullable=False)
    conversation_id: Mapped[str] = mapped_column(NaturalId, nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    order_seq: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    token_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_context_edge: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_variant: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (Index("ix_messages_conversation_order", "conversation_id", "order_seq"),)


class AttachmentRecord(Base):
    __tablename__ = "attachments"

    pk: Mapped[int] = mapped_column("id", Integer, primary_key=True, autoincrement=True)
    attach_id: Mapped[str] = mapped_column(NaturalId, unique=True, index=True, nullable=False)
    attachment_type: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    file_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    storage_type: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    storage_path: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    mime_type: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


class MessageAttachmentRecord(Base):
    __tablename__ = "message_attachments"

    id: Mapped[int] = mapped_column(SurrogateId, primary_key=True, autoincrement=True)
    message_id: Mapped[str] = mapped_column(NaturalId, nullable=False, index=True)
    attachment_id: Mapped[str] = mapped_column(NaturalId, nullable=False, index=True)

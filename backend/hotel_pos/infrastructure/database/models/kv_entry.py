"""SQLAlchemy ORM models backing the relational key-value store."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hotel_pos.infrastructure.database.base import Base


class KVEntryModel(Base):
    """ORM model — maps to the 'kv_store' table (one row per plain value)."""

    __tablename__ = "kv_store"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<KVEntryModel(key='{self.key}')>"


class KVSetMemberModel(Base):
    """ORM model — maps to the 'kv_set_members' table (one row per set member)."""

    __tablename__ = "kv_set_members"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    member: Mapped[str] = mapped_column(String(255), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_kv_set_members_key", "key"),
    )

    def __repr__(self) -> str:
        return f"<KVSetMemberModel(key='{self.key}', member='{self.member}')>"

"""Contest, contest entry and vote ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Contest(Base):
    """A time-boxed contest users can enter."""

    __tablename__ = "contests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    starts_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    ends_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    entries: Mapped[List["ContestEntry"]] = relationship(
        "ContestEntry",
        back_populates="contest",
        cascade="all, delete-orphan",
    )


class ContestEntry(Base):
    """A user's submission to a contest."""

    __tablename__ = "contest_entries"
    __table_args__ = (
        Index("ix_contest_entries_contest_id", "contest_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    contest_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("contests.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    votes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    contest: Mapped["Contest"] = relationship("Contest", back_populates="entries")
    votes: Mapped[List["ContestEntryVote"]] = relationship(
        "ContestEntryVote",
        back_populates="entry",
        cascade="all, delete-orphan",
    )


class ContestEntryVote(Base):
    """One vote per user per entry, enforced by a unique constraint."""

    __tablename__ = "contest_entry_votes"
    __table_args__ = (
        UniqueConstraint("entry_id", "user_id", name="uq_contest_entry_votes_entry_user"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entry_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("contest_entries.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    entry: Mapped["ContestEntry"] = relationship("ContestEntry", back_populates="votes")


__all__ = ["Contest", "ContestEntry", "ContestEntryVote"]

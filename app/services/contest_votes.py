"""Contest entry voting."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.contest import ContestEntry, ContestEntryVote
from app.models.user import User


class ContestVoteError(Exception):
    """Base class for voting failures."""


class ContestEntryNotFoundError(ContestVoteError):
    """Raised when the entry does not exist."""


class SelfVoteError(ContestVoteError):
    """Raised when a user votes for their own entry."""


class DuplicateVoteError(ContestVoteError):
    """Raised when the user already voted for the entry."""


def _has_voted(db: Session, user: User, entry_id: int) -> bool:
    existing = db.execute(
        select(ContestEntryVote.id).where(
            ContestEntryVote.entry_id == entry_id,
            ContestEntryVote.user_id == user.id,
        )
    ).first()
    return existing is not None


def cast_vote(db: Session, user: User, entry_id: int) -> ContestEntryVote:
    """Record one vote by ``user`` and bump the entry's counter."""

    entry = db.get(ContestEntry, entry_id)
    if entry is None:
        raise ContestEntryNotFoundError("Contest entry not found.")
    if entry.user_id == user.id:
        raise SelfVoteError("You cannot vote for your own entry.")

    if _has_voted(db, user, entry_id):
        raise DuplicateVoteError("You have already voted for this entry.")

    vote = ContestEntryVote(entry_id=entry_id, user_id=user.id)
    db.add(vote)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateVoteError("You have already voted for this entry.") from exc

    entry.votes_count = ContestEntry.votes_count + 1
    db.commit()
    db.refresh(vote)
    return vote


__all__ = [
    "ContestEntryNotFoundError",
    "ContestVoteError",
    "DuplicateVoteError",
    "SelfVoteError",
    "cast_vote",
]

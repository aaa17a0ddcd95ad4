"""Pydantic schemas for contest voting."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ContestEntryVoteCreate(BaseModel):
    """Payload for voting on a contest entry."""

    entry_id: int = Field(gt=0)

    model_config = ConfigDict(frozen=True)


class ContestEntryVoteRead(BaseModel):
    id: int
    entry_id: int
    votes_count: int

    model_config = ConfigDict(frozen=True)


__all__ = ["ContestEntryVoteCreate", "ContestEntryVoteRead"]

"""Contest entry voting route."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.dependencies import get_db, require_role
from app.api.responses import api_response
from app.core.config import settings
from app.models.user import User
from app.schemas.contest import ContestEntryVoteCreate, ContestEntryVoteRead
from app.services.contest_votes import (
    ContestEntryNotFoundError,
    DuplicateVoteError,
    SelfVoteError,
    cast_vote,
)


router = APIRouter(tags=["contests"])


@router.post("/contests-entries-votes", status_code=status.HTTP_201_CREATED)
def vote_for_entry(
    payload: ContestEntryVoteCreate,
    current_user: User = Depends(require_role(settings.default_user_role)),
    db: Session = Depends(get_db),
) -> JSONResponse:
    try:
        vote = cast_vote(db, current_user, payload.entry_id)
    except ContestEntryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SelfVoteError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except DuplicateVoteError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    return api_response(
        "Vote recorded.",
        {
            "vote": ContestEntryVoteRead(
                id=vote.id,
                entry_id=vote.entry_id,
                votes_count=vote.entry.votes_count,
            )
        },
        status_code=status.HTTP_201_CREATED,
    )


__all__ = ["router"]

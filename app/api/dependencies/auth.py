"""Authentication dependencies for API routes."""

from __future__ import annotations

from typing import Annotated, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.access_token import AccessToken
from app.models.user import User
from app.services.access_tokens import (
    AccessTokenExpiredError,
    UnauthenticatedError,
    resolve_bearer_token,
)


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login", auto_error=False)


def _credentials_exception(detail: str = "Unauthenticated.") -> HTTPException:
    """Return a standardised HTTP 401 exception for auth failures."""

    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_access_token(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> AccessToken:
    """Resolve the bearer token presented with the request."""

    try:
        access_token = resolve_bearer_token(db, token)
    except AccessTokenExpiredError as exc:
        raise _credentials_exception("Token has expired.") from exc
    except UnauthenticatedError as exc:
        raise _credentials_exception() from exc

    db.commit()
    return access_token


def require_active_user(
    access_token: Annotated[AccessToken, Depends(get_current_access_token)],
) -> User:
    """Return the owner of the caller's bearer token."""

    user = access_token.user
    if user is None:
        raise _credentials_exception()
    return user


def require_role(name: str) -> Callable[..., User]:
    """Build a dependency rejecting callers without the named role."""

    def dependency(
        current_user: Annotated[User, Depends(require_active_user)],
    ) -> User:
        if not current_user.has_role(name):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You are not allowed to perform this action.",
            )
        return current_user

    return dependency


__all__ = ["get_current_access_token", "oauth2_scheme", "require_active_user", "require_role"]

"""Google sign-in routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.dependencies import get_db
from app.api.responses import api_response
from app.api.routes.auth import client_info, login_payload, pending_two_factor_response
from app.core.config import settings
from app.core.rate_limit import limiter
from app.integrations.oauth import (
    GoogleIdentityProvider,
    OAuth2ConfigurationError,
    OAuth2ValidationError,
    get_google_provider,
)
from app.schemas.auth import GoogleLogin
from app.services.login import complete_login, requires_second_factor
from app.services.users import find_or_create_google_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/google", tags=["oauth"])


@router.get("/redirect")
def google_redirect(
    provider: GoogleIdentityProvider = Depends(get_google_provider),
) -> JSONResponse:
    """Return the Google consent URL the client should open."""

    try:
        url = provider.get_authorization_url()
    except OAuth2ConfigurationError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return api_response("Redirect URL generated.", {"url": url})


@router.post("/callback")
@limiter.limit(settings.login_rate_limit)
async def google_callback(
    request: Request,
    payload: GoogleLogin,
    db: Session = Depends(get_db),
    provider: GoogleIdentityProvider = Depends(get_google_provider),
) -> JSONResponse:
    """Log in with a Google access token obtained by the client."""

    try:
        identity = await provider.fetch_identity(payload.token)
    except OAuth2ValidationError as exc:
        logger.info("Google sign-in rejected: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unable to authenticate with Google.",
        ) from exc

    user = find_or_create_google_user(db, identity)
    if requires_second_factor(user):
        return pending_two_factor_response(user)

    result = complete_login(db, user, client_info(request, payload.device_type))
    return api_response("Logged in successfully.", login_payload(result))


__all__ = ["router"]

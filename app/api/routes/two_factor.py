"""Two-factor authentication management routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.dependencies import get_db, require_active_user
from app.api.responses import api_response
from app.models.user import User
from app.schemas.two_factor import (
    ActivateTwoFactorRequest,
    EnableTwoFactorRequest,
    TwoFactorSetupRead,
)
from app.services import two_factor
from app.services.users import IncorrectPasswordError


router = APIRouter(tags=["two-factor"])


def _not_set_up(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.post("/enable-2fa")
def enable_two_factor(
    payload: EnableTwoFactorRequest,
    current_user: User = Depends(require_active_user),
    db: Session = Depends(get_db),
) -> JSONResponse:
    """Start setup: returns the shared secret and provisioning URI."""

    try:
        setup = two_factor.begin_setup(db, current_user, payload.password)
    except IncorrectPasswordError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Password is incorrect.",
        ) from exc

    if setup is None:
        return api_response("2FA already enabled.")

    return api_response(
        "Scan the QR code with your authenticator app, then confirm with a code.",
        {"two_fa": TwoFactorSetupRead(secret=setup.secret, qr_url=setup.provisioning_uri)},
    )


@router.post("/activate-2fa")
def activate_two_factor(
    payload: ActivateTwoFactorRequest,
    current_user: User = Depends(require_active_user),
    db: Session = Depends(get_db),
) -> JSONResponse:
    try:
        codes = two_factor.activate(db, current_user, payload.code)
    except two_factor.TwoFactorAlreadyEnabledError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except (two_factor.TwoFactorNotSetUpError, two_factor.InvalidTwoFactorCodeError) as exc:
        raise _not_set_up(exc) from exc

    return api_response(
        "Two-factor authentication enabled.",
        {"recovery_codes": codes},
    )


@router.get("/show-recovery-codes")
def show_recovery_codes(current_user: User = Depends(require_active_user)) -> JSONResponse:
    try:
        codes = two_factor.get_recovery_codes(current_user)
    except two_factor.TwoFactorNotSetUpError as exc:
        raise _not_set_up(exc) from exc

    return api_response("Recovery codes retrieved successfully.", {"recovery_codes": codes})


@router.get("/regenerate-recovery-code")
def regenerate_recovery_codes(
    current_user: User = Depends(require_active_user),
    db: Session = Depends(get_db),
) -> JSONResponse:
    try:
        codes = two_factor.regenerate_recovery_codes(db, current_user)
    except two_factor.TwoFactorNotSetUpError as exc:
        raise _not_set_up(exc) from exc

    return api_response("Recovery codes regenerated successfully.", {"recovery_codes": codes})


@router.post("/disable-twofa")
def disable_two_factor(
    current_user: User = Depends(require_active_user),
    db: Session = Depends(get_db),
) -> JSONResponse:
    try:
        two_factor.disable(db, current_user)
    except two_factor.TwoFactorNotEnabledError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return api_response("Two-factor authentication disabled.")


__all__ = ["router"]

"""Authentication API routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.dependencies import get_current_access_token, get_db, require_active_user
from app.api.errors import field_error
from app.api.responses import api_response
from app.core.config import settings
from app.core.rate_limit import limiter
from app.models.access_token import AccessToken
from app.models.user import User
from app.schemas.auth import (
    PasswordResetInstructionRequest,
    PasswordResetRequest,
    PasswordUpdateRequest,
    RecoveryCodeLogin,
    ResendVerificationRequest,
    TokenRead,
    TwoFactorLogin,
    UserCreate,
    UserLogin,
    UserRead,
)
from app.services import two_factor
from app.services.access_tokens import revoke_access_token
from app.services.email_verification import EmailVerificationError, verify_email_token
from app.services.login import (
    ClientInfo,
    LoginResult,
    complete_login,
    requires_second_factor,
    start_pending_login,
)
from app.services.password_reset import (
    PasswordResetError,
    request_password_reset,
    reset_password,
)
from app.services.pending_two_factor import (
    InvalidPendingSessionError,
    PendingTwoFactorState,
    TwoFactorNotRequiredError,
    clear_pending_cookie,
    decode_pending_state,
    set_pending_cookie,
)
from app.services.user_sessions import (
    delete_session_by_token,
    list_sessions_for_user,
    summarize_session,
)
from app.services.users import (
    EmailAlreadyVerifiedError,
    EmailUnverifiedError,
    IncorrectPasswordError,
    InvalidCredentialsError,
    UserAlreadyExistsError,
    UserNotFoundError,
    authenticate,
    change_user_password,
    create_user,
    get_user_by_email,
    resend_verification,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def client_info(request: Request, device_type: str | None = None) -> ClientInfo:
    return ClientInfo(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        device_type=device_type,
    )


def login_payload(result: LoginResult) -> dict:
    return {
        "user": UserRead.model_validate(result.user),
        "token": TokenRead(
            id=result.token.id,
            expires_at=result.token.expires_at,
            plain_text_token=result.token.plain_text_token,
        ),
    }


def pending_two_factor_response(user: User) -> JSONResponse:
    """Response asking the client for a second factor, carrying the pending cookie."""

    session_id = start_pending_login(user)
    response = api_response(
        "Two-factor authentication is required.",
        {"two_factor": True},
    )
    set_pending_cookie(response, user.email, session_id)
    return response


def _load_pending_user(request: Request, db: Session) -> tuple[User, PendingTwoFactorState]:
    try:
        state = decode_pending_state(request.cookies.get(settings.pending_two_factor_cookie_name))
    except InvalidPendingSessionError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session.") from exc
    except TwoFactorNotRequiredError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Two-factor authentication is not required.",
        ) from exc

    user = get_user_by_email(db, state.email)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    if not user.has_two_factor_enabled:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Two-factor authentication is not enabled for this account.",
        )
    return user, state


def _finish_two_factor_login(
    request: Request,
    db: Session,
    user: User,
    state: PendingTwoFactorState,
    device_type: str | None,
) -> JSONResponse:
    result = complete_login(db, user, client_info(request, device_type), session_id=state.session_id)
    response = api_response("Logged in successfully.", login_payload(result))
    clear_pending_cookie(response)
    return response


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register_user(
    payload: UserCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
) -> JSONResponse:
    """Register a new user and queue a verification email."""

    try:
        user = create_user(db, payload, background_tasks=background_tasks)
    except UserAlreadyExistsError as exc:
        raise field_error(exc.field, f"The {exc.field} has already been taken.") from exc

    return api_response(
        "Registered successfully. Please check your email to verify your account.",
        {"user": UserRead.model_validate(user)},
        status_code=status.HTTP_201_CREATED,
    )


@router.post("/login")
@limiter.limit(settings.login_rate_limit)
def login_user(
    request: Request,
    payload: UserLogin,
    db: Session = Depends(get_db),
) -> JSONResponse:
    """Authenticate by email/password; either log in or ask for a second factor."""

    try:
        user = authenticate(db, payload.email, payload.password)
    except InvalidCredentialsError as exc:
        logger.info("Failed login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        ) from exc
    except EmailUnverifiedError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Email address must be verified before logging in.",
        ) from exc

    if requires_second_factor(user):
        return pending_two_factor_response(user)

    result = complete_login(db, user, client_info(request, payload.device_type))
    return api_response("Logged in successfully.", login_payload(result))


@router.post("/login-with-twofa")
@limiter.limit(settings.login_rate_limit)
def login_with_two_factor(
    request: Request,
    payload: TwoFactorLogin,
    db: Session = Depends(get_db),
) -> JSONResponse:
    """Complete a pending login with a TOTP code."""

    user, state = _load_pending_user(request, db)
    if not two_factor.verify_code(user, payload.two_factor_code):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="The provided two-factor code is invalid.",
        )
    return _finish_two_factor_login(request, db, user, state, payload.device_type)


@router.post("/login-with-recovery-code")
@limiter.limit(settings.login_rate_limit)
def login_with_recovery_code(
    request: Request,
    payload: RecoveryCodeLogin,
    db: Session = Depends(get_db),
) -> JSONResponse:
    """Complete a pending login with a one-time recovery code."""

    user, state = _load_pending_user(request, db)
    if not two_factor.verify_recovery_code(db, user, payload.code):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="The provided recovery code is invalid.",
        )
    return _finish_two_factor_login(request, db, user, state, payload.device_type)


@router.post("/logout")
def logout_user(
    access_token: AccessToken = Depends(get_current_access_token),
    db: Session = Depends(get_db),
) -> JSONResponse:
    """Revoke the caller's token and forget the matching device session."""

    user = access_token.user
    token_id = access_token.id
    if not delete_session_by_token(db, user, token_id):
        logger.info("No session matched token %s of user %s", token_id, user.id)
    revoke_access_token(db, token_id)
    db.commit()
    return api_response("Logged out successfully.")


@router.get("/current-user-sessions")
def current_user_sessions(
    current_user: User = Depends(require_active_user),
    db: Session = Depends(get_db),
) -> JSONResponse:
    sessions = [summarize_session(session) for session in list_sessions_for_user(db, current_user)]
    return api_response("Sessions retrieved successfully.", {"sessions": sessions})


@router.get("/current-user-info")
def current_user_info(current_user: User = Depends(require_active_user)) -> JSONResponse:
    return api_response(
        "User retrieved successfully.",
        {"user": UserRead.model_validate(current_user)},
    )


@router.get("/email/verify")
def verify_email(
    token: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
) -> JSONResponse:
    """Verify an email address using the emailed token."""

    try:
        user = verify_email_token(db, token)
        db.commit()
    except EmailVerificationError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired verification token.",
        ) from exc

    db.refresh(user)
    return api_response(
        "Email verified successfully.",
        {"user": UserRead.model_validate(user)},
    )


@router.post("/resend-email-verification")
def resend_email_verification(
    payload: ResendVerificationRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
) -> JSONResponse:
    try:
        resend_verification(db, payload.email, background_tasks=background_tasks)
    except UserNotFoundError as exc:
        raise field_error("email", "The selected email is invalid.") from exc
    except EmailAlreadyVerifiedError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email is already verified.",
        ) from exc

    return api_response("Verification email sent.")


@router.patch("/update-password")
def update_password(
    payload: PasswordUpdateRequest,
    current_user: User = Depends(require_active_user),
    db: Session = Depends(get_db),
) -> JSONResponse:
    """Change the password after re-checking the current one."""

    try:
        change_user_password(db, current_user, payload)
    except IncorrectPasswordError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Current password is incorrect.",
        ) from exc

    return api_response("Password updated successfully.")


@router.post("/send-reset-password-instruction")
def send_reset_password_instruction(
    payload: PasswordResetInstructionRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
) -> JSONResponse:
    try:
        request_password_reset(db, payload.email, background_tasks=background_tasks)
    except UserNotFoundError as exc:
        raise field_error("email", "The selected email is invalid.") from exc

    return api_response("Password reset instructions have been sent to your email.")


@router.patch("/reset-password")
def reset_user_password(
    payload: PasswordResetRequest,
    db: Session = Depends(get_db),
) -> JSONResponse:
    try:
        reset_password(db, payload.email, payload.token, payload.password)
    except PasswordResetError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired password reset token.",
        ) from exc

    return api_response("Password has been reset successfully.")


__all__ = ["client_info", "login_payload", "pending_two_factor_response", "router"]

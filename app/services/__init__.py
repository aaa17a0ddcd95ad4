"""Service layer helpers for domain operations."""

from .access_tokens import (
    AccessTokenError,
    AccessTokenExpiredError,
    IssuedAccessToken,
    UnauthenticatedError,
    extend_latest_token,
    issue_access_token,
    resolve_bearer_token,
    revoke_access_token,
)
from .email import (
    EmailDeliveryError,
    build_password_reset_email,
    build_verification_email,
    queue_email,
    send_password_reset_email,
    send_verification_email,
)
from .email_verification import (
    EmailVerificationError,
    EmailVerificationTokenExpiredError,
    EmailVerificationTokenInvalidError,
    build_verification_link,
    issue_verification_token,
    verify_email_token,
)
from .users import (
    EmailAlreadyVerifiedError,
    EmailUnverifiedError,
    IncorrectPasswordError,
    InvalidCredentialsError,
    UserAlreadyExistsError,
    UserNotFoundError,
    authenticate,
    change_user_password,
    create_user,
    find_or_create_google_user,
    get_user_by_email,
    resend_verification,
)

__all__ = [
    "AccessTokenError",
    "AccessTokenExpiredError",
    "EmailAlreadyVerifiedError",
    "EmailDeliveryError",
    "EmailUnverifiedError",
    "EmailVerificationError",
    "EmailVerificationTokenExpiredError",
    "EmailVerificationTokenInvalidError",
    "IncorrectPasswordError",
    "InvalidCredentialsError",
    "IssuedAccessToken",
    "UnauthenticatedError",
    "UserAlreadyExistsError",
    "UserNotFoundError",
    "authenticate",
    "build_password_reset_email",
    "build_verification_email",
    "build_verification_link",
    "change_user_password",
    "create_user",
    "extend_latest_token",
    "find_or_create_google_user",
    "get_user_by_email",
    "issue_access_token",
    "issue_verification_token",
    "queue_email",
    "resend_verification",
    "resolve_bearer_token",
    "revoke_access_token",
    "send_password_reset_email",
    "send_verification_email",
    "verify_email_token",
]

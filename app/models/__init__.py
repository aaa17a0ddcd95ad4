"""ORM model exports."""

from .access_token import AccessToken
from .contest import Contest, ContestEntry, ContestEntryVote
from .email_verification_token import EmailVerificationToken
from .password_reset_token import PasswordResetToken
from .role import Role, user_roles
from .user import User
from .user_session import UserSession

__all__ = [
	"AccessToken",
	"Contest",
	"ContestEntry",
	"ContestEntryVote",
	"EmailVerificationToken",
	"PasswordResetToken",
	"Role",
	"User",
	"UserSession",
	"user_roles",
]

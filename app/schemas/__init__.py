"""Application schema exports."""

from .auth import (
    GoogleLogin,
    PasswordResetInstructionRequest,
    PasswordResetRequest,
    PasswordUpdateRequest,
    RecoveryCodeLogin,
    ResendVerificationRequest,
    SessionRead,
    TokenRead,
    TwoFactorLogin,
    UserCreate,
    UserLogin,
    UserRead,
)
from .contest import ContestEntryVoteCreate, ContestEntryVoteRead
from .two_factor import ActivateTwoFactorRequest, EnableTwoFactorRequest, TwoFactorSetupRead

__all__ = [
    "ActivateTwoFactorRequest",
    "ContestEntryVoteCreate",
    "ContestEntryVoteRead",
    "EnableTwoFactorRequest",
    "GoogleLogin",
    "PasswordResetInstructionRequest",
    "PasswordResetRequest",
    "PasswordUpdateRequest",
    "RecoveryCodeLogin",
    "ResendVerificationRequest",
    "SessionRead",
    "TokenRead",
    "TwoFactorLogin",
    "TwoFactorSetupRead",
    "UserCreate",
    "UserLogin",
    "UserRead",
]

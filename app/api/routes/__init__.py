"""API route modules."""

from . import auth
from . import contest_votes
from . import oauth
from . import two_factor

__all__ = ["auth", "contest_votes", "oauth", "two_factor"]

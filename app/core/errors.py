"""Error taxonomy shared by the services and the HTTP layer."""
from typing import Any, Dict, Optional


class MatchEngineError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, **self.extra}


class AuthenticationError(MatchEngineError):
    """No usable identity from the auth gateway."""
    status_code = 401
    default_message = "Authentication required"


class ValidationError(MatchEngineError):
    """Missing or malformed input. Not retried."""
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(MatchEngineError):
    """Profile or match absent, or the caller is not a party to it."""
    status_code = 404
    default_message = "Not found"


class QuotaExceededError(MatchEngineError):
    """Daily like limit reached. Carries remainingLikes / dailyLimit / isPremium."""
    status_code = 429
    default_message = "Daily like limit reached"


class ConflictError(MatchEngineError):
    """A concurrent write won the race for the same row. Safe to retry once."""
    status_code = 409
    default_message = "Concurrent update, please retry"


class DependencyError(MatchEngineError):
    """Persistence or another collaborator is unavailable."""
    status_code = 503
    default_message = "Service temporarily unavailable, please retry later"

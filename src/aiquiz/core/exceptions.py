"""Custom exception classes for AI Quiz.

This module defines application-specific exceptions following Google Python
Style Guide. Route handlers translate them into HTTP responses.
"""

from typing import Optional


class AIQuizError(Exception):
    """Base exception for all AI Quiz errors."""

    pass


class ValidationError(AIQuizError):
    """Raised when a PIN, username, password or other input is malformed."""

    pass


class NoUpdatesProvidedError(ValidationError):
    """Raised when a partial update carries no recognised field."""

    def __init__(self):
        super().__init__("No updates provided")


class AuthenticationError(AIQuizError):
    """Raised on bad credentials or a missing/expired/invalid session token."""

    pass


class NotFoundError(AIQuizError):
    """Raised when a requested record does not exist."""

    def __init__(self, kind: str, record_id: int):
        """Initialize the exception.

        Args:
            kind: Human readable record kind, e.g. "Admin".
            record_id: The ID that was not found.
        """
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found")


class ConflictError(AIQuizError):
    """Raised on duplicate username/PIN or when deleting the last admin."""

    pass


class RateLimitExceededError(AIQuizError):
    """Raised when the anonymous sliding-window quota is exhausted."""

    def __init__(self, max_calls: int, reset_in_seconds: int):
        """Initialize the exception.

        Args:
            max_calls: Window capacity.
            reset_in_seconds: Seconds until the oldest call leaves the window.
        """
        self.max_calls = max_calls
        self.reset_in_seconds = reset_in_seconds
        super().__init__(
            f"Rate limit exceeded. You've used all {max_calls} AI explanations "
            f"for this minute. Please wait {reset_in_seconds} seconds before "
            "trying again."
        )


class DailyLimitExceededError(AIQuizError):
    """Raised when a registered user has used up today's AI calls."""

    def __init__(self, daily_limit: int):
        self.daily_limit = daily_limit
        super().__init__(
            f"You've reached your daily limit of {daily_limit} AI explanations. "
            "Resets tomorrow."
        )


class ConfigurationError(AIQuizError):
    """Raised when there is a configuration error."""

    pass


class LLMError(AIQuizError):
    """Raised when there is an error communicating with the LLM."""

    pass


class ApiError(AIQuizError):
    """Raised by the REST client when the server answers with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class QuizStateError(AIQuizError):
    """Raised when a quiz action is not allowed in the current quiz state."""

    pass

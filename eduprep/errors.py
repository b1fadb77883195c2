"""
Error taxonomy shared by services, routers and the client-side test engine

Services raise these; ``main.py`` maps them to JSON responses. The test
session state machine returns them inside a ``Transition`` instead of
raising, so a failed transition never unwinds caller state.
"""


class EduPlatformError(Exception):
    """Base class for expected, user-facing failures"""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class ValidationError(EduPlatformError):
    """Malformed input or an operation that is not allowed in the current state"""

    status_code = 400
    code = "validation_error"


class NotFoundError(EduPlatformError):
    """Referenced question, test or user does not exist"""

    status_code = 404
    code = "not_found"


class AuthenticationError(EduPlatformError):
    """Missing, malformed or expired credential"""

    status_code = 401
    code = "authentication_required"


class AuthorizationError(EduPlatformError):
    """Authenticated, but the role does not permit the action"""

    status_code = 403
    code = "forbidden"


class UpstreamServiceError(EduPlatformError):
    """Persistence backend or AI provider unreachable or erroring"""

    status_code = 503
    code = "upstream_unavailable"


class RateLimitError(EduPlatformError):
    """Too many requests from one client"""

    status_code = 429
    code = "rate_limit_exceeded"

    def __init__(self, message: str, retry_after: int):
        super().__init__(message)
        self.retry_after = retry_after

    def to_dict(self) -> dict:
        return {**super().to_dict(), "retry_after": self.retry_after}

# services/errors.py


class ProfileReviewError(Exception):
    """Base for everything the review pipeline raises on purpose."""


class AnalysisValidationError(ProfileReviewError):
    """Request carries nothing the model could look at."""


class AuthError(ProfileReviewError):
    """Missing or invalid caller identity token."""


class InvokerError(ProfileReviewError):
    """The completion service call failed."""

    kind = "invoker"

    def __init__(self, message: str, detail: str = ""):
        super().__init__(message)
        self.detail = detail


class InvokerTimeout(InvokerError):
    kind = "timeout"


class InvokerNetworkError(InvokerError):
    kind = "network"


class InvokerRateLimited(InvokerError):
    kind = "rate_limit"


class InvokerAuthError(InvokerError):
    kind = "provider_auth"


class InvokerBadRequest(InvokerError):
    kind = "bad_request"


class PersistenceError(ProfileReviewError):
    """Document store write failed. Logged, never surfaced to the user."""

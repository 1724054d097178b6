"""Error taxonomy for the lead research API.

Each error carries the HTTP status it is rendered with at the request
boundary (see the exception handlers registered in app.main).
"""

from __future__ import annotations

from fastapi import status


class SearchError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(SearchError):
    """Required search credentials are missing from the environment.

    Not retryable: the operator has to fix the environment.
    """

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            f"Missing {' or '.join(self.missing)}. "
            "Add them to your .env file and restart the server."
        )


class ValidationError(SearchError):
    """Malformed search request."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        details = "; ".join(f"{field}: {reason}" for field, reason in self.errors.items())
        super().__init__(f"Invalid request: {details}")


class ProviderError(SearchError):
    """The search provider returned a non-success response or timed out."""

    def __init__(self, status_code: int, body: str, provider: str = "Google CSE") -> None:
        self.provider_status = status_code
        self.body = body
        super().__init__(f"{provider} error: {status_code} {body}".strip())

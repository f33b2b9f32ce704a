"""Failure taxonomy for the subscription endpoint."""

from __future__ import annotations


class SubscribeError(Exception):
    """Base error carrying an HTTP status and a message safe to show callers."""

    status_code: int = 500
    public_message: str = "An error occurred"

    def __init__(self, code: str, detail: str = "") -> None:
        self.code = code
        self.detail = detail
        super().__init__(f"{code}: {detail}" if detail else code)


class ValidationError(SubscribeError):
    """The submitted form data is malformed."""

    status_code = 400

    MESSAGES: dict[str, str] = {
        "missing_fields": "Missing required fields",
        "invalid_postcode": "Invalid postcode format",
        "invalid_body": "Invalid request body",
    }

    @property
    def public_message(self) -> str:  # type: ignore[override]
        return self.MESSAGES.get(self.code, "Invalid request")


class ConfigurationError(SubscribeError):
    """Required Klaviyo settings are missing from the deployment."""

    public_message = "Server configuration error"


class IntegrationError(SubscribeError):
    """A Klaviyo API call failed in a way the flow cannot recover from."""

    public_message = "Unable to complete subscription"

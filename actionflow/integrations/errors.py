"""Integration errors."""

from typing import Optional


class IntegrationError(Exception):
    """Error communicating with an external provider."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class FirefliesError(IntegrationError):
    """Fireflies API returned an error."""
    pass


class SlackError(IntegrationError):
    """Slack Web API returned ``ok: false`` or a non-2xx status."""
    pass


class MondayError(IntegrationError):
    """Monday.com API returned an error."""
    pass

"""
Actionflow Integrations

HTTP clients for transcript sources and destinations, plus channel
resolution and notifications.
"""

from .channel_resolver import ChannelResolution, SlackChannelResolver
from .errors import FirefliesError, IntegrationError, MondayError, SlackError
from .fireflies import FirefliesClient, FirefliesTranscript, format_transcript_text
from .monday import MondayClient, format_column_value
from .notifier import NotificationResult, Notifier
from .slack import SlackClient

__all__ = [
    "ChannelResolution",
    "SlackChannelResolver",
    "FirefliesError",
    "IntegrationError",
    "MondayError",
    "SlackError",
    "FirefliesClient",
    "FirefliesTranscript",
    "format_transcript_text",
    "MondayClient",
    "format_column_value",
    "NotificationResult",
    "Notifier",
    "SlackClient",
]

"""
Notifier

Best-effort notification fan-out to every active Slack integration of a
user. A failed send is logged and reported, never raised.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..common.schemas import CredentialType, render_notification, section_blocks
from ..common.store import BaseStore
from .channel_resolver import SlackChannelResolver
from .slack import SlackClient

logger = logging.getLogger("actionflow.integrations.notifier")

DEFAULT_CHANNEL = "#general"

SlackClientFactory = Callable[[str], SlackClient]


@dataclass
class NotificationResult:
    integration_id: str
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class Notifier:
    """Sends notifications through a user's Slack integrations"""

    def __init__(
        self,
        store: BaseStore,
        slack_client_factory: SlackClientFactory = SlackClient,
        resolver: Optional[SlackChannelResolver] = None,
    ):
        self._store = store
        self._slack_client_factory = slack_client_factory
        self._resolver = resolver or SlackChannelResolver(store)

    async def send_to_all(
        self,
        user_id: str,
        title: str,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        priority: str = "normal",
    ) -> List[NotificationResult]:
        """
        Post one notification per active Slack integration of the user.

        Returns:
            One result per integration attempted
        """
        text = render_notification(title, message, priority=priority, metadata=metadata)
        results: List[NotificationResult] = []

        for integration in await self._store.list_integrations(user_id, provider="slack"):
            token = integration.credential(CredentialType.BOT_TOKEN)
            if not token:
                results.append(NotificationResult(integration.id, False, error="No Slack bot token found"))
                continue

            resolution = await self._resolver.resolve_channel(integration_id=integration.id)
            channel = resolution.channel or DEFAULT_CHANNEL

            try:
                client = self._slack_client_factory(token)
                ts = await client.post_message(channel, title or message, blocks=section_blocks(text))
                results.append(NotificationResult(integration.id, True, message_id=ts))
            except Exception as e:
                logger.warning("Notification via integration %s failed: %s", integration.id, e)
                results.append(NotificationResult(integration.id, False, error=str(e)))

        return results

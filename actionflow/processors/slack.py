"""
Slack Processor

Posts one digest message per batch to a resolved Slack channel. The batch
is a single unit of work: the post either covers every item or none.
"""

import logging
from typing import Callable, List, Optional

from ..common.schemas import (
    DIGEST_TITLE,
    ConfigValidation,
    CreatedItem,
    CredentialType,
    ParsedActionItem,
    ProcessorKind,
    ProcessorResult,
    ProcessorStatus,
    render_action_digest,
    render_notification,
    render_project_context,
    section_blocks,
)
from ..common.store import BaseStore
from ..integrations.slack import SlackClient
from .base import BaseProcessor, ProcessorConfig

logger = logging.getLogger("actionflow.processors.slack")


class SlackProcessor(BaseProcessor):
    """Chat-notification destination backed by a Slack bot token"""

    kind = ProcessorKind.CHAT_NOTIFICATION
    name = "Slack Notifications"

    def __init__(
        self,
        config: ProcessorConfig,
        store: BaseStore,
        slack_client_factory: Callable[[str], SlackClient] = SlackClient,
    ):
        super().__init__(config)
        self._store = store
        self._slack_client_factory = slack_client_factory
        self._client: Optional[SlackClient] = None

    async def _get_client(self) -> Optional[SlackClient]:
        if self._client:
            return self._client
        if not self.config.integration_id:
            return None

        integration = await self._store.get_integration(self.config.integration_id)
        if (
            not integration
            or integration.provider != "slack"
            or integration.user_id != self.config.user_id
            or not integration.is_active
        ):
            return None

        token = integration.credential(CredentialType.BOT_TOKEN)
        if not token:
            return None

        self._client = self._slack_client_factory(token)
        return self._client

    async def validate_config(self) -> ConfigValidation:
        errors = []

        if not self.config.user_id:
            errors.append("User ID is required")
        if not self.config.integration_id:
            errors.append("Integration ID is required for Slack processor")
        if not self.config.channel:
            errors.append("No Slack channel configured")

        if self.config.integration_id:
            client = await self._get_client()
            if client is None:
                errors.append("Slack integration not found, inactive, or missing a bot token")
            else:
                try:
                    await client.auth_test()
                except Exception as e:
                    errors.append(f"Slack connection failed: {e}")

        return ConfigValidation(valid=not errors, errors=errors)

    async def get_status(self) -> ProcessorStatus:
        client = await self._get_client()
        if client is None:
            return ProcessorStatus(available=False, message="Slack service not configured")
        try:
            await client.auth_test()
        except Exception as e:
            return ProcessorStatus(available=False, message=f"Slack connection failed: {e}")
        return ProcessorStatus(available=True)

    async def _context_line(self) -> Optional[str]:
        if not self.config.project_id:
            return None
        project = await self._store.get_project(self.config.project_id)
        if not project:
            return None
        team = await self._store.get_team(project.team_id) if project.team_id else None
        return render_project_context(project.name, team.name if team else None)

    async def process_action_items(self, items: List[ParsedActionItem]) -> ProcessorResult:
        result = ProcessorResult()
        if not items:
            return result

        try:
            client = await self._get_client()
            if client is None:
                result.add_error("Slack service not available")
                return result

            message = render_action_digest(items, context_line=await self._context_line())
            text = render_notification(
                DIGEST_TITLE,
                message,
                metadata={
                    "actionCount": len(items),
                    "source": "meeting_transcript",
                    "transcriptionId": self.config.transcription_id,
                    "projectId": self.config.project_id,
                },
            )
            ts = await client.post_message(self.config.channel, DIGEST_TITLE, blocks=section_blocks(text))
        except Exception as e:
            logger.warning("Slack digest to %s failed: %s", self.config.channel, e)
            result.add_error(f"Slack processing failed: {e}")
            return result

        result.processed_count = len(items)
        result.created_items.append(CreatedItem(
            id=ts or "slack-notification",
            title="Slack notification sent",
            url=f"slack://channel/{self.config.channel.lstrip('#')}",
        ))
        return result

"""
Slack Channel Resolver

Picks the Slack channel for a project/team context.

Priority:
1. Project channel config
2. Channel config of the project's team
3. Direct team channel config
4. Any config of the given integration

Only active configs whose integration is also active are considered.
Ties within a level go to the first config the store returns.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..common.schemas import ChannelConfig
from ..common.store import BaseStore

logger = logging.getLogger("actionflow.integrations.channel_resolver")


@dataclass
class ChannelResolution:
    """Resolved channel and the integration whose config produced it"""
    channel: Optional[str] = None
    integration_id: Optional[str] = None
    source: Optional[str] = None  # "project", "project_team", "team", "integration"

    @property
    def resolved(self) -> bool:
        return self.channel is not None


class SlackChannelResolver:
    """Resolves channels from configs held in the store"""

    def __init__(self, store: BaseStore):
        self._store = store

    async def _first_usable(self, configs: List[ChannelConfig]) -> Optional[ChannelConfig]:
        for config in configs:
            integration = await self._store.get_integration(config.integration_id)
            if integration and integration.is_active:
                return config
        return None

    async def resolve_channel(
        self,
        project_id: Optional[str] = None,
        team_id: Optional[str] = None,
        integration_id: Optional[str] = None,
    ) -> ChannelResolution:
        """
        Resolve the channel for a context.

        Args:
            project_id: Project the items belong to
            team_id: Team the items belong to
            integration_id: Integration to fall back on

        Returns:
            ChannelResolution (``resolved`` is False when nothing matched)
        """
        levels = []
        if project_id:
            levels.append(("project", dict(project_id=project_id)))
            project = await self._store.get_project(project_id)
            if project and project.team_id:
                levels.append(("project_team", dict(team_id=project.team_id)))
        if team_id:
            levels.append(("team", dict(team_id=team_id)))
        if integration_id:
            levels.append(("integration", dict(integration_id=integration_id)))

        for source, filters in levels:
            configs = await self._store.list_channel_configs(active_only=True, **filters)
            config = await self._first_usable(configs)
            if config:
                logger.debug("Resolved channel %s from %s config", config.channel, source)
                return ChannelResolution(
                    channel=config.channel,
                    integration_id=config.integration_id,
                    source=source,
                )

        return ChannelResolution()

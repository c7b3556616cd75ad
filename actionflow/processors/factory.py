"""
Processor Factory

Decides which processors apply to a user/project/team context. Pure
selection: it creates processors but never extracts or delivers.

- Internal is always included.
- Each active integration of the user maps to a ProcessorKind by provider.
  Providers without a processor are skipped.
- Chat-notification integrations need a channel that resolves AND whose
  config belongs to that same integration.
- External-board integrations use the project's board config, else the
  integration default, else an empty one (validate_config then rejects it).
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

from ..common.schemas import ActionStatus, BoardConfig, Integration, ProcessorKind
from ..common.store import BaseStore
from ..integrations.channel_resolver import SlackChannelResolver
from ..integrations.monday import MondayClient
from ..integrations.slack import SlackClient
from .base import BaseProcessor, ProcessorConfig
from .internal import InternalProcessor
from .monday import MondayProcessor
from .slack import SlackProcessor

logger = logging.getLogger("actionflow.processors.factory")

PROVIDER_KINDS: Dict[str, ProcessorKind] = {
    "slack": ProcessorKind.CHAT_NOTIFICATION,
    "monday": ProcessorKind.EXTERNAL_BOARD,
}


class ProcessorFactory:
    """Builds the processor set for one pipeline run"""

    def __init__(
        self,
        store: BaseStore,
        resolver: Optional[SlackChannelResolver] = None,
        slack_client_factory: Callable[[str], SlackClient] = SlackClient,
        monday_client_factory: Callable[[str], MondayClient] = MondayClient,
    ):
        self._store = store
        self._resolver = resolver or SlackChannelResolver(store)
        self._slack_client_factory = slack_client_factory
        self._monday_client_factory = monday_client_factory

    async def create_processors(
        self,
        user_id: str,
        project_id: Optional[str] = None,
        team_id: Optional[str] = None,
        transcription_id: Optional[str] = None,
        action_status: ActionStatus = ActionStatus.ACTIVE,
        screenshot_ids: Sequence[str] = (),
    ) -> List[BaseProcessor]:
        """
        Select processors for a context.

        Args:
            user_id: User who runs the pipeline (owner of created tasks)
            project_id: Project the items belong to
            team_id: Team the items belong to
            transcription_id: Source transcript session
            action_status: Status of created internal tasks
            screenshot_ids: Ordered screenshot ids of the session

        Returns:
            Internal processor first, then one per applicable integration
        """
        def context(integration_id: Optional[str] = None, channel: Optional[str] = None) -> ProcessorConfig:
            return ProcessorConfig(
                user_id=user_id,
                project_id=project_id,
                team_id=team_id,
                transcription_id=transcription_id,
                integration_id=integration_id,
                action_status=action_status,
                screenshot_ids=list(screenshot_ids),
                channel=channel,
            )

        processors: List[BaseProcessor] = [InternalProcessor(context(), self._store)]

        for integration in await self._store.list_integrations(user_id, active_only=True):
            kind = PROVIDER_KINDS.get(integration.provider)
            if kind is None:
                continue

            if kind is ProcessorKind.CHAT_NOTIFICATION:
                processor = await self._chat_processor(integration, project_id, team_id, context)
            elif kind is ProcessorKind.EXTERNAL_BOARD:
                processor = await self._board_processor(integration, project_id, context)
            else:
                raise ValueError(f"No processor for kind {kind}")

            if processor is not None:
                processors.append(processor)

        logger.info(
            "Selected processors for user %s: %s",
            user_id, ", ".join(p.kind.value for p in processors),
        )
        return processors

    async def _chat_processor(
        self,
        integration: Integration,
        project_id: Optional[str],
        team_id: Optional[str],
        context: Callable[..., ProcessorConfig],
    ) -> Optional[BaseProcessor]:
        resolution = await self._resolver.resolve_channel(project_id, team_id, integration.id)
        if not resolution.resolved or resolution.integration_id != integration.id:
            logger.debug("Skipping %s integration %s: no channel of its own", integration.provider, integration.id)
            return None
        return SlackProcessor(
            context(integration.id, resolution.channel),
            self._store,
            slack_client_factory=self._slack_client_factory,
        )

    async def _board_processor(
        self,
        integration: Integration,
        project_id: Optional[str],
        context: Callable[..., ProcessorConfig],
    ) -> BaseProcessor:
        board = await self._store.find_board_config(integration.id, project_id)
        if board is None:
            board = BoardConfig(integration_id=integration.id)
        return MondayProcessor(
            context(integration.id),
            board,
            self._store,
            monday_client_factory=self._monday_client_factory,
        )

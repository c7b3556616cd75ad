"""
Store

Persistence seam of the pipeline. The pipeline reads users, projects,
integrations and transcript sessions through ``BaseStore`` and writes only
actions, their assignee/screenshot links and external links.

Two implementations ship with the package:
- InMemoryStore: process-local dictionaries (tests, one-shot runs)
- JsonFileStore: InMemoryStore persisted to ~/.actionflow/store.json after
  every mutation
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel

from .config import STORE_PATH
from .schemas import (
    Action,
    ActionAssignee,
    ActionScreenshot,
    BoardConfig,
    ChannelConfig,
    ExternalLink,
    Integration,
    Project,
    Screenshot,
    Team,
    TranscriptSession,
    User,
    utcnow,
)

logger = logging.getLogger("actionflow.common.store")

M = TypeVar("M", bound=BaseModel)


class BaseStore(ABC):
    """Async create/find/update operations used by processors and sync"""

    # ---- users / projects / teams -------------------------------------------

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    async def find_user_by_exact_name(self, name: str) -> Optional[User]:
        """Case-insensitive full-name match"""
        ...

    @abstractmethod
    async def find_user_by_name_parts(self, parts: Sequence[str]) -> Optional[User]:
        """First user whose name contains any of the parts, case-insensitively"""
        ...

    @abstractmethod
    async def get_project(self, project_id: str) -> Optional[Project]:
        ...

    @abstractmethod
    async def get_team(self, team_id: str) -> Optional[Team]:
        ...

    # ---- actions -------------------------------------------------------------

    @abstractmethod
    async def create_action(self, action: Action) -> Action:
        ...

    @abstractmethod
    async def create_action_assignee(self, action_id: str, user_id: str) -> ActionAssignee:
        ...

    @abstractmethod
    async def link_action_screenshot(self, action_id: str, screenshot_id: str) -> ActionScreenshot:
        ...

    @abstractmethod
    async def list_actions(self, transcription_session_id: Optional[str] = None) -> List[Action]:
        ...

    @abstractmethod
    async def list_screenshots(self, transcription_session_id: str) -> List[Screenshot]:
        """Screenshots of a session, oldest first"""
        ...

    # ---- integrations --------------------------------------------------------

    @abstractmethod
    async def get_integration(self, integration_id: str) -> Optional[Integration]:
        ...

    @abstractmethod
    async def list_integrations(
        self,
        user_id: str,
        provider: Optional[str] = None,
        active_only: bool = True,
    ) -> List[Integration]:
        ...

    @abstractmethod
    async def update_integration_last_sync(self, integration_id: str, synced_at: datetime) -> None:
        ...

    @abstractmethod
    async def list_channel_configs(
        self,
        project_id: Optional[str] = None,
        team_id: Optional[str] = None,
        integration_id: Optional[str] = None,
        active_only: bool = True,
    ) -> List[ChannelConfig]:
        """Channel configs matching every given filter, in insertion order"""
        ...

    @abstractmethod
    async def find_board_config(
        self,
        integration_id: str,
        project_id: Optional[str] = None,
    ) -> Optional[BoardConfig]:
        """Project-specific board config, else the integration default"""
        ...

    # ---- transcripts ---------------------------------------------------------

    @abstractmethod
    async def find_transcript_session(self, session_id: str) -> Optional[TranscriptSession]:
        ...

    @abstractmethod
    async def create_transcript_session(self, session: TranscriptSession) -> TranscriptSession:
        ...

    @abstractmethod
    async def update_transcript_session(self, session: TranscriptSession) -> TranscriptSession:
        ...

    @abstractmethod
    async def upsert_external_link(self, link: ExternalLink) -> ExternalLink:
        """Insert or update by (provider, external_id)"""
        ...

    @abstractmethod
    async def list_external_links(self, transcription_session_id: Optional[str] = None) -> List[ExternalLink]:
        ...


class InMemoryStore(BaseStore):
    """Dictionary-backed store"""

    def __init__(self) -> None:
        self.users: Dict[str, User] = {}
        self.teams: Dict[str, Team] = {}
        self.projects: Dict[str, Project] = {}
        self.integrations: Dict[str, Integration] = {}
        self.channel_configs: Dict[str, ChannelConfig] = {}
        self.board_configs: Dict[str, BoardConfig] = {}
        self.sessions: Dict[str, TranscriptSession] = {}
        self.screenshots: Dict[str, Screenshot] = {}
        self.actions: Dict[str, Action] = {}
        self.action_assignees: List[ActionAssignee] = []
        self.action_screenshots: List[ActionScreenshot] = []
        self.external_links: Dict[str, ExternalLink] = {}

    def _changed(self) -> None:
        """Hook called after every mutation"""

    # ---- seeding ---------------------------------------------------------------

    def add_user(self, user: User) -> User:
        self.users[user.id] = user
        self._changed()
        return user

    def add_team(self, team: Team) -> Team:
        self.teams[team.id] = team
        self._changed()
        return team

    def add_project(self, project: Project) -> Project:
        self.projects[project.id] = project
        self._changed()
        return project

    def add_integration(self, integration: Integration) -> Integration:
        self.integrations[integration.id] = integration
        self._changed()
        return integration

    def add_channel_config(self, config: ChannelConfig) -> ChannelConfig:
        if bool(config.project_id) == bool(config.team_id):
            raise ValueError("Channel config must be bound to exactly one of project or team")
        self.channel_configs[config.id] = config
        self._changed()
        return config

    def add_board_config(self, config: BoardConfig) -> BoardConfig:
        self.board_configs[config.id] = config
        self._changed()
        return config

    def add_screenshot(self, screenshot: Screenshot) -> Screenshot:
        self.screenshots[screenshot.id] = screenshot
        self._changed()
        return screenshot

    # ---- users / projects / teams -------------------------------------------

    async def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    async def find_user_by_exact_name(self, name: str) -> Optional[User]:
        wanted = name.strip().lower()
        for user in self.users.values():
            if user.name.lower() == wanted:
                return user
        return None

    async def find_user_by_name_parts(self, parts: Sequence[str]) -> Optional[User]:
        lowered = [p.lower() for p in parts if p]
        if not lowered:
            return None
        for user in self.users.values():
            name = user.name.lower()
            if any(p in name for p in lowered):
                return user
        return None

    async def get_project(self, project_id: str) -> Optional[Project]:
        return self.projects.get(project_id)

    async def get_team(self, team_id: str) -> Optional[Team]:
        return self.teams.get(team_id)

    # ---- actions -------------------------------------------------------------

    async def create_action(self, action: Action) -> Action:
        self.actions[action.id] = action
        self._changed()
        return action

    async def create_action_assignee(self, action_id: str, user_id: str) -> ActionAssignee:
        link = ActionAssignee(action_id=action_id, user_id=user_id)
        self.action_assignees.append(link)
        self._changed()
        return link

    async def link_action_screenshot(self, action_id: str, screenshot_id: str) -> ActionScreenshot:
        link = ActionScreenshot(action_id=action_id, screenshot_id=screenshot_id)
        self.action_screenshots.append(link)
        self._changed()
        return link

    async def list_actions(self, transcription_session_id: Optional[str] = None) -> List[Action]:
        return [
            a for a in self.actions.values()
            if transcription_session_id is None
            or a.transcription_session_id == transcription_session_id
        ]

    async def list_screenshots(self, transcription_session_id: str) -> List[Screenshot]:
        shots = [
            s for s in self.screenshots.values()
            if s.transcription_session_id == transcription_session_id
        ]
        return sorted(shots, key=lambda s: s.created_at)

    # ---- integrations --------------------------------------------------------

    async def get_integration(self, integration_id: str) -> Optional[Integration]:
        return self.integrations.get(integration_id)

    async def list_integrations(
        self,
        user_id: str,
        provider: Optional[str] = None,
        active_only: bool = True,
    ) -> List[Integration]:
        return [
            i for i in self.integrations.values()
            if i.user_id == user_id
            and (provider is None or i.provider == provider)
            and (not active_only or i.is_active)
        ]

    async def update_integration_last_sync(self, integration_id: str, synced_at: datetime) -> None:
        integration = self.integrations.get(integration_id)
        if integration is None:
            raise KeyError(f"Unknown integration: {integration_id}")
        integration.last_sync_at = synced_at
        self._changed()

    async def list_channel_configs(
        self,
        project_id: Optional[str] = None,
        team_id: Optional[str] = None,
        integration_id: Optional[str] = None,
        active_only: bool = True,
    ) -> List[ChannelConfig]:
        return [
            c for c in self.channel_configs.values()
            if (project_id is None or c.project_id == project_id)
            and (team_id is None or c.team_id == team_id)
            and (integration_id is None or c.integration_id == integration_id)
            and (not active_only or c.is_active)
        ]

    async def find_board_config(
        self,
        integration_id: str,
        project_id: Optional[str] = None,
    ) -> Optional[BoardConfig]:
        configs = [c for c in self.board_configs.values() if c.integration_id == integration_id]
        if project_id:
            for config in configs:
                if config.project_id == project_id:
                    return config
        for config in configs:
            if config.project_id is None:
                return config
        return None

    # ---- transcripts ---------------------------------------------------------

    async def find_transcript_session(self, session_id: str) -> Optional[TranscriptSession]:
        for session in self.sessions.values():
            if session.session_id == session_id:
                return session
        return None

    async def create_transcript_session(self, session: TranscriptSession) -> TranscriptSession:
        if await self.find_transcript_session(session.session_id):
            raise ValueError(f"Transcript session already exists: {session.session_id}")
        self.sessions[session.id] = session
        self._changed()
        return session

    async def update_transcript_session(self, session: TranscriptSession) -> TranscriptSession:
        if session.id not in self.sessions:
            raise KeyError(f"Unknown transcript session: {session.id}")
        session.updated_at = utcnow()
        self.sessions[session.id] = session
        self._changed()
        return session

    async def upsert_external_link(self, link: ExternalLink) -> ExternalLink:
        key = f"{link.provider}:{link.external_id}"
        existing = self.external_links.get(key)
        if existing:
            link = existing.model_copy(update=link.model_dump(exclude={"id", "created_at"}))
        self.external_links[key] = link
        self._changed()
        return link

    async def list_external_links(self, transcription_session_id: Optional[str] = None) -> List[ExternalLink]:
        return [
            l for l in self.external_links.values()
            if transcription_session_id is None
            or l.transcription_session_id == transcription_session_id
        ]


class JsonFileStore(InMemoryStore):
    """
    InMemoryStore persisted to a JSON file.

    The whole store is rewritten after every mutation; fine for the
    single-worker sync model, not for concurrent writers.
    """

    _COLLECTIONS: Dict[str, Type[BaseModel]] = {
        "users": User,
        "teams": Team,
        "projects": Project,
        "integrations": Integration,
        "channel_configs": ChannelConfig,
        "board_configs": BoardConfig,
        "sessions": TranscriptSession,
        "screenshots": Screenshot,
        "actions": Action,
        "external_links": ExternalLink,
    }

    def __init__(self, path: Optional[Path] = None):
        """
        Initialize the file store.

        Args:
            path: Path to store file (default: ~/.actionflow/store.json)
        """
        super().__init__()
        self._path = Path(path) if path else STORE_PATH
        self._loading = False
        self._load()

    def _load(self) -> None:
        """Load store from disk"""
        if not self._path.exists():
            return

        self._loading = True
        try:
            with open(self._path) as f:
                data = json.load(f)

            for name, model in self._COLLECTIONS.items():
                items = [model.model_validate(raw) for raw in data.get(name, [])]
                if name == "external_links":
                    self.external_links = {f"{l.provider}:{l.external_id}": l for l in items}
                else:
                    setattr(self, name, {item.id: item for item in items})
            self.action_assignees = [
                ActionAssignee.model_validate(raw) for raw in data.get("action_assignees", [])
            ]
            self.action_screenshots = [
                ActionScreenshot.model_validate(raw) for raw in data.get("action_screenshots", [])
            ]
        except (json.JSONDecodeError, IOError, ValueError) as e:
            logger.warning("Failed to load store from %s: %s", self._path, e)
        finally:
            self._loading = False

    def _changed(self) -> None:
        if not self._loading:
            self._save()

    def _save(self) -> None:
        """Save store to disk"""
        self._path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            name: [m.model_dump(mode="json") for m in getattr(self, name).values()]
            for name in self._COLLECTIONS
        }
        data["action_assignees"] = [a.model_dump(mode="json") for a in self.action_assignees]
        data["action_screenshots"] = [s.model_dump(mode="json") for s in self.action_screenshots]

        # readers see the previous store or the new one, never a partial write
        fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2, default=str)
            os.replace(tmp_path, self._path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

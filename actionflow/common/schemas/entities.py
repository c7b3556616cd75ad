"""
Store Entities

Records read from and written to the persistence layer. The pipeline owns
only Action, ActionAssignee, ActionScreenshot and ExternalLink; everything
else is read as configured by the surrounding application.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field

from .action_item import ActionPriority, ActionStatus


def generate_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IntegrationStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    REVOKED = "REVOKED"


class CredentialType(str, Enum):
    API_KEY = "API_KEY"
    BOT_TOKEN = "BOT_TOKEN"


class User(BaseModel):
    id: str = Field(default_factory=generate_id)
    name: str = ""
    email: Optional[str] = None


class Team(BaseModel):
    id: str = Field(default_factory=generate_id)
    name: str


class Project(BaseModel):
    id: str = Field(default_factory=generate_id)
    name: str
    created_by_id: Optional[str] = None
    team_id: Optional[str] = None


class Integration(BaseModel):
    """Destination or source credential owned by a user"""
    id: str = Field(default_factory=generate_id)
    user_id: str
    provider: str  # "slack", "monday", "fireflies", ...
    name: str = ""
    status: IntegrationStatus = IntegrationStatus.ACTIVE
    credentials: Dict[str, str] = Field(default_factory=dict)  # CredentialType -> secret
    last_sync_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == IntegrationStatus.ACTIVE

    def credential(self, key_type: CredentialType) -> Optional[str]:
        return self.credentials.get(key_type.value) or None


class ChannelConfig(BaseModel):
    """Slack channel bound to exactly one of a project or a team"""
    id: str = Field(default_factory=generate_id)
    integration_id: str
    channel: str
    project_id: Optional[str] = None
    team_id: Optional[str] = None
    is_active: bool = True


class ColumnMapping(BaseModel):
    """Board column ids per semantic slot; unset slots are never written"""
    assignee: Optional[str] = None
    due_date: Optional[str] = None
    priority: Optional[str] = None
    description: Optional[str] = None


class BoardConfig(BaseModel):
    """Board target of a board-based integration, optionally per project"""
    id: str = Field(default_factory=generate_id)
    integration_id: str
    board_id: str = ""
    project_id: Optional[str] = None
    workspace: Optional[str] = None  # <workspace>.monday.com, used for item URLs
    columns: ColumnMapping = Field(default_factory=ColumnMapping)


class TranscriptSession(BaseModel):
    """Transcript record keyed by the source's session id"""
    id: str = Field(default_factory=generate_id)
    session_id: str
    user_id: str
    title: str = ""
    description: Optional[str] = None
    transcription: str = ""
    summary: Optional[str] = None  # JSON text of the provider summary
    source_integration_id: Optional[str] = None
    project_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    processed_at: Optional[datetime] = None

    @property
    def is_processed(self) -> bool:
        return self.processed_at is not None


class Screenshot(BaseModel):
    id: str = Field(default_factory=generate_id)
    transcription_session_id: str
    created_at: datetime = Field(default_factory=utcnow)


class Action(BaseModel):
    """Task in the internal store"""
    id: str = Field(default_factory=generate_id)
    name: str
    description: Optional[str] = None
    priority: ActionPriority = ActionPriority.QUICK
    status: ActionStatus = ActionStatus.ACTIVE
    created_by_id: str
    project_id: Optional[str] = None
    transcription_session_id: Optional[str] = None
    due_date: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)


class ActionAssignee(BaseModel):
    action_id: str
    user_id: str


class ActionScreenshot(BaseModel):
    action_id: str
    screenshot_id: str


class ExternalLink(BaseModel):
    """Remote item created for a transcript, unique per (provider, external_id)"""
    id: str = Field(default_factory=generate_id)
    provider: str
    external_id: str
    integration_id: Optional[str] = None
    transcription_session_id: Optional[str] = None
    internal_id: Optional[str] = None
    title: str = ""
    url: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
